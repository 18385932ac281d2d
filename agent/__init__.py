# =============================================================================
# agent/__init__.py
# =============================================================================
# This package contains the Google ADK agent that drives the MCP server.
#
# ARCHITECTURAL ROLE:
#   The agent decides WHICH tools to call and WHEN.  It holds no dashboard
#   logic and never talks HTTP itself; everything goes through the MCP
#   server in tools/, which in turn uses core/.
#
#   prompt.py           system prompt (connection setup first, then data)
#   dashboard_agent.py  ADK Agent + LiteLlm model + MCPToolset over stdio
# =============================================================================
