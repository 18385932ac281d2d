# =============================================================================
# tools/__init__.py
# =============================================================================
# This package contains the FastMCP server for the PI Dashboard API.
#
# ARCHITECTURAL ROLE:
#   tools/ is the translation layer between MCP clients and core/:
#     1. Each tool calls ONE core operation (dispatcher or lifecycle)
#     2. Results become dicts; DashboardError becomes {"error": ...}
#     3. Resources render text; prompts only describe which tools to use
#
# WHAT TOOLS DO NOT DO:
#   - They do NOT build URLs, headers or query strings (core/dispatcher.py)
#   - They do NOT change session state directly (core/lifecycle.py)
#   - They do NOT know about Google ADK (that's agent/)
# =============================================================================
