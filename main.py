# =============================================================================
# main.py  -  Interactive console for the PI Dashboard analyst agent
# =============================================================================
#
# HOW TO RUN:
#   uv run python main.py
#
#   Optional .env values:
#     API_URL=http://localhost:8224/pi/api/v2
#     PI_API_KEY=<token>
#     OPENROUTER_API_KEY=<key for the default model>
#     DASHBOARD_AGENT_MODEL=openrouter/openai/gpt-4o
#
# WHAT HAPPENS:
#   1. Creates the ADK agent (agent/dashboard_agent.py), which launches the
#      MCP server (tools/mcp_server.py) as a stdio subprocess
#   2. Opens an in-memory conversation session
#   3. Reads questions from the console and streams the agent's events,
#      printing each tool call as it happens
#
# The MCP server has its own session state (URL, token, organization).  It
# lives as long as the subprocess, i.e. as long as this console is open.
# =============================================================================

import asyncio

from dotenv import load_dotenv

# LiteLlm reads provider keys from the environment when it initializes, so
# the .env file must be loaded before the agent is created.
load_dotenv()

from google.adk.runners import Runner
from google.adk.sessions import InMemorySessionService
from google.genai import types

from agent.dashboard_agent import create_agent
from core.config import configure_logging, load_settings

APP_NAME = "pi_dashboard"
USER_ID = "console_user"


async def run_agent():
    """Run the dashboard analyst agent in a console loop."""
    settings = load_settings()
    configure_logging(settings.log_level)

    print("=" * 70)
    print("  PI DASHBOARD ANALYST")
    print(f"  Google ADK + {settings.agent_model} + FastMCP")
    print("=" * 70)
    print("\n🔧 Initializing agent...")
    agent = create_agent(settings)

    session_service = InMemorySessionService()
    runner = Runner(
        agent=agent,
        app_name=APP_NAME,
        session_service=session_service,
    )
    session = await session_service.create_session(app_name=APP_NAME, user_id=USER_ID)

    print("✅ Agent initialized and ready!\n")
    print("💬 Ask about your dashboard's categories and charts.")
    print("   (Type 'quit' to exit)\n")
    print("-" * 70)

    while True:
        try:
            user_input = input("\n🧑 You: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\n\n👋 Goodbye!")
            break

        if user_input.lower() in ("quit", "exit", "q"):
            print("\n👋 Goodbye!")
            break
        if not user_input:
            continue

        user_message = types.Content(role="user", parts=[types.Part(text=user_input)])

        print("\n🤖 Agent is thinking...\n")
        print("-" * 70)

        final_response = ""
        async for event in runner.run_async(
            user_id=USER_ID,
            session_id=session.id,
            new_message=user_message,
        ):
            if event.content and event.content.parts:
                for part in event.content.parts:
                    if getattr(part, "text", None):
                        final_response = part.text
                    if getattr(part, "function_call", None):
                        print(f"  🔧 Calling tool: {part.function_call.name}")

        print("-" * 70)
        if final_response:
            print(f"\n🤖 Agent:\n\n{final_response}")
        else:
            print("\n⚠️  No response generated. The agent may have encountered an error.")

        print("\n" + "=" * 70)


if __name__ == "__main__":
    asyncio.run(run_agent())
