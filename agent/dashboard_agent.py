# =============================================================================
# agent/dashboard_agent.py  -  Google ADK Agent Configuration
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Builds the Google ADK agent that talks to the PI Dashboard MCP server.
#
#   ┌──────────────────────────────┐        stdio        ┌─────────────────────┐
#   │  ADK Agent                   │  ◀───────────────▶  │  tools/mcp_server   │
#   │  LiteLlm model + prompt      │    MCP JSON-RPC     │  (FastMCP)          │
#   └──────────────────────────────┘                     └──────────┬──────────┘
#                                                                   │ httpx
#                                                                   ▼
#                                                        PI Dashboard REST API
#
# MCP CONNECTION:
#   ADK starts the server as a subprocess ("uv run python -m tools.mcp_server")
#   from the project root, so the subprocess sees the same .venv and can
#   import core/ and tools/.  A configured API URL / token is forwarded as
#   --api-url / --auth-token so the server verifies it before the first
#   question is asked.
#
# MODEL CHOICE:
#   Any LiteLlm model string works; the default routes GPT-4o through
#   OpenRouter (OPENROUTER_API_KEY must be set).  Override with
#   DASHBOARD_AGENT_MODEL.
# =============================================================================

import os
from typing import Optional

from google.adk.agents import Agent
from google.adk.models.lite_llm import LiteLlm
from google.adk.tools.mcp_tool import MCPToolset
from mcp import StdioServerParameters

from agent.prompt import get_dashboard_analyst_prompt
from core.config import Settings, load_settings

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def build_server_command(settings: Settings) -> tuple[str, list[str]]:
    """Command and arguments that launch the MCP server subprocess."""
    args = ["run", "python", "-m", "tools.mcp_server"]
    if settings.api_url:
        args += ["--api-url", settings.api_url]
    if settings.auth_token:
        args += ["--auth-token", settings.auth_token]
    return "uv", args


def create_agent(settings: Optional[Settings] = None) -> Agent:
    """Create the dashboard analyst agent.

    Args:
        settings: Launch settings; read from the environment when omitted.

    Returns:
        A configured Google ADK Agent with the MCP server attached.
    """
    settings = settings or load_settings()
    command, args = build_server_command(settings)

    mcp_tools = MCPToolset(
        connection_params=StdioServerParameters(
            command=command,
            args=args,
            cwd=PROJECT_ROOT,
        ),
    )

    return Agent(
        name="pi_dashboard_analyst",
        model=LiteLlm(model=settings.agent_model),
        instruction=get_dashboard_analyst_prompt(),
        tools=[mcp_tools],
    )
