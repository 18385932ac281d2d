"""Tests for the agent's prompt and MCP server launch command."""

import re
from datetime import date
from pathlib import Path

import pytest

from agent.dashboard_agent import build_server_command
from agent.prompt import get_dashboard_analyst_prompt
from core.config import Settings


class TestPrompt:

    def test_has_today_and_setup_stage(self):
        prompt = get_dashboard_analyst_prompt()
        assert date.today().isoformat() in prompt
        assert "check-connection" in prompt
        assert "nlike" in prompt


class TestBuildServerCommand:

    def test_plain_launch(self):
        command, args = build_server_command(Settings())
        assert command == "uv"
        assert args == ["run", "python", "-m", "tools.mcp_server"]

    def test_forwards_url_and_token(self):
        _, args = build_server_command(Settings(api_url="https://x.test/api", auth_token="tok"))
        assert args[-4:] == ["--api-url", "https://x.test/api", "--auth-token", "tok"]


class TestDeclaredDependencies:

    def test_entry_point_distributions_are_declared(self):
        tomllib = pytest.importorskip("tomllib")
        pyproject = Path(__file__).resolve().parent.parent / "pyproject.toml"
        with pyproject.open("rb") as handle:
            declared = tomllib.load(handle)["project"]["dependencies"]

        names = {re.split(r"[<>=!~\[ ]", spec, maxsplit=1)[0] for spec in declared}
        assert {"google-adk", "google-genai", "litellm", "mcp", "fastmcp", "httpx", "python-dotenv"} <= names
