# =============================================================================
# core/config.py  -  Launch settings and logging setup
# =============================================================================
#
# WHERE SETTINGS COME FROM (later wins):
#   1. Defaults below
#   2. Environment (a .env file is loaded by the entry points via dotenv)
#        API_URL                dashboard API base URL
#        PI_API_KEY             bearer token
#        PI_API_TIMEOUT         per-request timeout in seconds (unset = httpx default)
#        LOG_LEVEL              DEBUG / INFO / WARNING ... (default INFO)
#        DASHBOARD_AGENT_MODEL  LiteLlm model string for agent/
#   3. Command line:  --api-url URL  --auth-token TOKEN
#
# LOGGING GOES TO STDERR.
#   The MCP server talks to its client over stdin/stdout.  Anything we print
#   to stdout would corrupt the JSON-RPC stream, so logs use stderr only.
# =============================================================================

import argparse
import logging
import os
import sys
from dataclasses import dataclass
from typing import Optional, Sequence

from core.errors import ValidationError

DEFAULT_AGENT_MODEL = "openrouter/openai/gpt-4o"
LOG_FORMAT = "%(asctime)s [MCP] %(message)s"


@dataclass(frozen=True)
class Settings:
    api_url: Optional[str] = None
    auth_token: Optional[str] = None
    request_timeout: Optional[float] = None
    log_level: str = "INFO"
    agent_model: str = DEFAULT_AGENT_MODEL


def _parse_timeout(raw: Optional[str]) -> Optional[float]:
    if raw is None or not raw.strip():
        return None
    try:
        timeout = float(raw)
    except ValueError as exc:
        raise ValidationError(f"PI_API_TIMEOUT must be a number of seconds, got {raw!r}") from exc
    if timeout <= 0:
        raise ValidationError(f"PI_API_TIMEOUT must be positive, got {raw!r}")
    return timeout


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="PI Dashboard API MCP server")
    parser.add_argument("--api-url", help="API base URL, e.g. http://localhost:8224/pi/api/v2")
    parser.add_argument("--auth-token", help="Bearer token to start with")
    return parser


def load_settings(argv: Optional[Sequence[str]] = None, environ: Optional[dict] = None) -> Settings:
    """Merge environment and command-line values into a Settings object.

    Args:
        argv: Command-line arguments without the program name.  None means
              "no flags" (tests and the agent), not sys.argv.
        environ: Mapping to read instead of os.environ.
    """
    env = os.environ if environ is None else environ
    args, _unknown = build_arg_parser().parse_known_args(list(argv or []))

    return Settings(
        api_url=args.api_url or env.get("API_URL") or None,
        auth_token=args.auth_token or env.get("PI_API_KEY") or None,
        request_timeout=_parse_timeout(env.get("PI_API_TIMEOUT")),
        log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        agent_model=env.get("DASHBOARD_AGENT_MODEL") or DEFAULT_AGENT_MODEL,
    )


def configure_logging(level: str = "INFO") -> None:
    """Send all log records to stderr with a short timestamped format."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
