# =============================================================================
# core/__init__.py
# =============================================================================
# This package contains the session & request-dispatch layer for the PI
# Dashboard API.
#
# CRITICAL ARCHITECTURAL RULE:
#   Nothing in this package imports FastMCP, Google ADK, or any orchestration
#   framework.  The only third-party import is httpx, for the HTTP call
#   itself.  Every piece of state is an explicit Session object passed in;
#   there are no module-level globals to reset between tests.
#
# Dependency order (leaf first):
#   errors, models  ->  session  ->  filters  ->  dispatcher
#                   ->  verifier ->  lifecycle          (config stands alone)
# =============================================================================
