# =============================================================================
# tools/mcp_server.py  -  FastMCP Server (ALL tools, resources, prompts)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Exposes the PI Dashboard API to an MCP client.  Each tool is a thin
#   wrapper around core/: it logs the call, invokes ONE core operation, and
#   turns the result (or the DashboardError) into a dict.
#
# HOW IT WORKS (the flow):
#   1. The agent calls a tool by name (e.g., "list-charts")
#   2. FastMCP routes the call to the function registered below
#   3. The function calls core/ (dispatcher or a lifecycle operation)
#   4. Errors come back as {"error": "..."}; the message already says which
#      tool fixes the problem ("set-api-url", "authenticate", ...)
#
# THE SESSION:
#   The server owns exactly one Session and one RequestDispatcher (module
#   globals `session` and `dispatcher` below).  Tools always go through
#   `dispatcher.session`, so tests can swap in a dispatcher with a stubbed
#   transport by monkeypatching this module's `dispatcher`.
#
# REGISTRATION:
#   Tool/resource/prompt functions are plain async functions.  They are
#   registered with FastMCP at the bottom of the file, under the hyphenated
#   names MCP clients see.  Keeping them plain means the tests can call them
#   directly.
#
# RUNNING THIS SERVER:
#   python -m tools.mcp_server --api-url http://localhost:8224/pi/api/v2 [--auth-token T]
# =============================================================================

import asyncio
import json
import logging
import sys
from typing import Literal, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP

from core.config import configure_logging, load_settings
from core.dispatcher import RequestDispatcher
from core.errors import ApiError, DashboardError, ValidationError
from core.filters import parse_filters
from core.lifecycle import (
    authenticate_with_password,
    initialize_session,
    invalidate_session,
    parse_credentials,
    refresh_session,
    set_endpoint,
    set_scope,
    supply_credential,
)
from core.models import BinaryPayload, DecodedResponse, StructuredData, TextPayload
from core.session import Session
from core.verifier import verify_connection
from tools import prompts

# =============================================================================
# Logging Setup
# =============================================================================
# Logs go to STDERR: stdout carries the MCP JSON-RPC stream.
#
# ANSI colours make tool traffic easy to scan in a terminal:
#     CYAN    incoming tool calls (name + parameters, secrets masked)
#     YELLOW  intermediate status
#     GREEN   the response dict
# =============================================================================
_CYAN = "\033[36m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RESET = "\033[0m"

_SECRET_PARAMS = {"token", "credentials"}

load_dotenv()


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    shown = {k: ("<redacted>" if k in _SECRET_PARAMS and v else v) for k, v in params.items()}
    param_str = ", ".join(f"{k}={v!r}" for k, v in shown.items())
    logging.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logging.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, result: dict) -> dict:
    """Log the tool response as compact JSON in GREEN, then return it."""
    logging.info(f"{_GREEN}  ← {tool_name} response: {json.dumps(result, separators=(',', ':'), default=str)[:500]}{_RESET}")
    return result


def _fail(tool_name: str, exc: DashboardError, prefix: str = "") -> dict:
    _log_status(f"{type(exc).__name__}: {exc}")
    return _log_response(tool_name, {"error": f"{prefix}{exc}"})


# =============================================================================
# Server state
# =============================================================================
mcp = FastMCP("pi-dashboard-api")

session = Session()
dispatcher = RequestDispatcher(session)

EXPORT_FORMATS = ("csv", "docx", "xlsx", "jpeg", "json", "png", "pdf", "pptx")
ExportFormat = Literal["csv", "docx", "xlsx", "jpeg", "json", "png", "pdf", "pptx"]
ObjectsPosition = Literal["RIGHT", "TOP"]


async def _call(
    tool_name: str,
    message: str,
    path: str,
    method: str = "GET",
    body: Optional[dict] = None,
    query_params: Optional[dict] = None,
) -> dict:
    """Run one API call and wrap the decoded result for the agent."""
    try:
        result = await dispatcher.perform_request(path, method, body, query_params)
    except DashboardError as exc:
        return _fail(tool_name, exc)
    return _log_response(tool_name, {"message": message, "data": result.to_jsonable()})


def _category_payload(**fields) -> dict:
    """Drop unset optional fields; the API treats absent and null differently."""
    return {key: value for key, value in fields.items() if value is not None}


# =============================================================================
# CONNECTION & SESSION TOOLS
# =============================================================================
async def check_connection() -> dict:
    """Check whether the API URL and authentication token are valid.

    WHEN TO CALL THIS: Before anything else in a new conversation, and
    whenever another tool reports an authentication problem.

    Returns:
        A dict with "connected" (bool) and a "message" or "error" telling you
        which setup step is missing.
    """
    _log_request("check-connection")
    current = dispatcher.session

    if not current.is_endpoint_set:
        return _log_response("check-connection", {
            "connected": False,
            "message": "API URL not set. Please set the API URL using the set-api-url tool.",
        })
    if not current.is_authenticated:
        return _log_response("check-connection", {
            "connected": False,
            "message": "Not authenticated. Please authenticate using the authenticate tool.",
        })

    if await verify_connection(dispatcher):
        return _log_response("check-connection", {
            "connected": True,
            "message": "Connection successful! The API URL and token are valid. You're ready to use the PI API.",
        })
    return _log_response("check-connection", {
        "connected": False,
        "error": "Connection failed. The token might be invalid or expired. Please try to authenticate again.",
    })


async def set_api_url(url: str) -> dict:
    """Set the API base URL for all requests.

    Args:
        url: API base URL including protocol, e.g. http://localhost:8224/pi/api/v2
    """
    _log_request("set-api-url", url=url)
    try:
        set_endpoint(dispatcher.session, url)
    except DashboardError as exc:
        return _fail("set-api-url", exc)
    return _log_response("set-api-url", {
        "message": f"API URL set to: {dispatcher.session.endpoint}",
        "next_step": "Please authenticate to start using the API.",
    })


async def authenticate() -> dict:
    """Explain how to authenticate with the PI API (or confirm you already are)."""
    _log_request("authenticate")
    current = dispatcher.session

    if current.is_authenticated and await verify_connection(dispatcher):
        return _log_response("authenticate", {
            "message": "You are already authenticated and your token is valid. "
                       "You can use the API without further authentication.",
        })
    if not current.is_endpoint_set:
        return _log_response("authenticate", {
            "error": "API URL not set. Please set the API URL first using the set-api-url tool.",
        })

    return _log_response("authenticate", {
        "message": "Authentication options:\n\n"
                   "1. If you have a token (strongly preferred):\n"
                   "   - Use the keep-session-alive tool with your token\n"
                   "   - This will verify and set your token in one step\n\n"
                   "2. If you don't have a token (last resort):\n"
                   "   - Use the authenticate-with-credentials tool\n"
                   "   - Format: authenticate-with-credentials with \"username password\"",
    })


async def keep_session_alive(token: Optional[str] = None) -> dict:
    """Verify and refresh the current token, or adopt a new one.

    If `token` is given it replaces the current token ONLY if the API accepts
    it; a rejected token leaves the previous session untouched.

    Args:
        token: Optional token to authenticate with.
    """
    _log_request("keep-session-alive", token=token)

    if token:
        try:
            await supply_credential(dispatcher, token)
        except ApiError as exc:
            return _fail(
                "keep-session-alive", exc,
                prefix="The provided token is invalid or expired. Please try with another token "
                       "or use authenticate-with-credentials. ",
            )
        except DashboardError as exc:
            return _fail("keep-session-alive", exc)
        return _log_response("keep-session-alive", {
            "message": "Token validated and set successfully. You are now authenticated.",
        })

    try:
        await refresh_session(dispatcher)
    except ApiError as exc:
        return _fail(
            "keep-session-alive", exc,
            prefix="Your session token is invalid or expired. Please authenticate again. ",
        )
    except DashboardError as exc:
        return _fail("keep-session-alive", exc)
    return _log_response("keep-session-alive", {
        "message": "Session kept alive successfully. Your token is valid.",
    })


async def authenticate_with_credentials(credentials: str) -> dict:
    """Authenticate with username and password (last resort option).

    Args:
        credentials: Username and password separated by a space: "username password".
    """
    _log_request("authenticate-with-credentials", credentials=credentials)
    try:
        identity, secret = parse_credentials(credentials)
        await authenticate_with_password(dispatcher, identity, secret)
    except DashboardError as exc:
        return _fail("authenticate-with-credentials", exc)
    return _log_response("authenticate-with-credentials", {
        "message": "Authentication successful. You can now use other tools and resources.",
    })


async def logout() -> dict:
    """Invalidate the current token and end the session.

    The local token is always cleared.  `remote_invalidated` tells you
    whether the API confirmed the invalidation.
    """
    _log_request("logout")
    if not dispatcher.session.is_endpoint_set:
        return _log_response("logout", {
            "error": "API URL not set. Please set the API URL first using the set-api-url tool.",
        })

    try:
        result = await invalidate_session(dispatcher)
    except DashboardError as exc:
        return _fail("logout", exc)

    response = {"local_cleared": result.local_cleared, "remote_invalidated": result.remote_invalidated}
    if result.remote_invalidated:
        response["message"] = "Logged out successfully. Token invalidated."
    else:
        response["error"] = f"Error during logout: {result.error}. Token cleared locally."
    return _log_response("logout", response)


async def set_organization(org_id: int) -> dict:
    """Set the organization ID sent (as orgId) with every following request.

    Args:
        org_id: Organization ID.
    """
    _log_request("set-organization", org_id=org_id)
    set_scope(dispatcher.session, org_id)
    return _log_response("set-organization", {"message": f"Organization ID set to {org_id}"})


# =============================================================================
# CATEGORY TOOLS
# =============================================================================
async def list_categories(filters: Optional[str] = None, page: int = 1, page_size: int = 20) -> dict:
    """List categories with pagination and optional filtering.

    Args:
        filters: Filter expression "field(operator)=value", chain with "&".
                 Operators: eq, ne, gt, lt, ge, le, like, nlike.
                 Example: "description(eq)=Marketing".
        page: Page number (1-based).
        page_size: Items per page.
    """
    _log_request("list-categories", filters=filters, page=page, page_size=page_size)
    query = {"page": page, "pageSize": page_size, **parse_filters(filters)}
    return await _call("list-categories", "Categories retrieved successfully", "/categories", query_params=query)


async def get_category(category_id: int) -> dict:
    """Get a category by ID."""
    _log_request("get-category", category_id=category_id)
    return await _call("get-category", "Category details", f"/categories/{category_id}")


async def create_category(
    description: str,
    org_id: int,
    label: Optional[str] = None,
    help_text: Optional[str] = None,
    category_objects_position: Optional[ObjectsPosition] = None,
    cascade_filters: Optional[bool] = None,
) -> dict:
    """Create a new category.

    Args:
        description: Unique name of the category.
        org_id: Organization ID that owns the category.
        label: Alternative text for the category.
        help_text: Help text describing the category.
        category_objects_position: Position of the category objects panel ("RIGHT" or "TOP").
        cascade_filters: Enable cascading filters.
    """
    _log_request("create-category", description=description, org_id=org_id)
    payload = _category_payload(
        description=description,
        orgId=org_id,
        label=label,
        helpText=help_text,
        categoryObjectsPosition=category_objects_position,
        cascadeFilters=cascade_filters,
    )
    return await _call("create-category", "Category created successfully", "/categories", "POST", payload)


async def update_category(
    category_id: int,
    description: Optional[str] = None,
    label: Optional[str] = None,
    help_text: Optional[str] = None,
    category_objects_position: Optional[ObjectsPosition] = None,
    cascade_filters: Optional[bool] = None,
) -> dict:
    """Update an existing category.  Only the fields you pass are changed."""
    _log_request("update-category", category_id=category_id, description=description)
    payload = _category_payload(
        description=description,
        label=label,
        helpText=help_text,
        categoryObjectsPosition=category_objects_position,
        cascadeFilters=cascade_filters,
    )
    return await _call("update-category", "Category updated successfully",
                       f"/categories/{category_id}", "PUT", payload)


async def delete_category(category_id: int) -> dict:
    """Delete a category."""
    _log_request("delete-category", category_id=category_id)
    return await _call("delete-category", f"Category with ID {category_id} successfully deleted.",
                       f"/categories/{category_id}", "DELETE")


async def list_category_objects(category_id: int) -> dict:
    """List all objects of a specific category."""
    _log_request("list-category-objects", category_id=category_id)
    return await _call("list-category-objects", "Category objects retrieved successfully",
                       f"/categories/{category_id}/categoryObjects")


# =============================================================================
# CHART TOOLS
# =============================================================================
async def list_charts(filters: Optional[str] = None, page: int = 1, page_size: int = 20) -> dict:
    """List charts with pagination and optional filtering.

    Args:
        filters: Filter expression "field(operator)=value", chain with "&".
        page: Page number (1-based).
        page_size: Items per page.
    """
    _log_request("list-charts", filters=filters, page=page, page_size=page_size)
    query = {"page": page, "pageSize": page_size, **parse_filters(filters)}
    return await _call("list-charts", "Charts retrieved successfully", "/charts", query_params=query)


async def get_chart(chart_id: int) -> dict:
    """Get a chart by ID."""
    _log_request("get-chart", chart_id=chart_id)
    return await _call("get-chart", "Chart details", f"/charts/{chart_id}")


async def delete_chart(chart_id: int) -> dict:
    """Delete a chart."""
    _log_request("delete-chart", chart_id=chart_id)
    return await _call("delete-chart", f"Chart with ID {chart_id} successfully deleted.",
                       f"/charts/{chart_id}", "DELETE")


async def export_chart(chart_id: int, export_format: ExportFormat) -> dict:
    """Export a chart's data in one of several formats.

    CONTEXT BUDGET: binary formats (csv, pdf, images, office documents) are
    NOT returned in full.  You get the content type, the base64 size and a
    short preview.  JSON exports come back as data.

    Args:
        chart_id: Chart ID.
        export_format: One of csv, docx, xlsx, jpeg, json, png, pdf, pptx.
    """
    _log_request("export-chart", chart_id=chart_id, export_format=export_format)
    if export_format not in EXPORT_FORMATS:
        return _log_response("export-chart", {
            "error": f"Unsupported export format {export_format!r}. Use one of: {', '.join(EXPORT_FORMATS)}",
        })

    try:
        result = await dispatcher.perform_request(f"/charts/{chart_id}/{export_format}")
    except DashboardError as exc:
        return _fail("export-chart", exc)

    message = f"Chart exported successfully as {export_format.upper()}."
    if isinstance(result, BinaryPayload):
        _log_status(f"Binary export of {len(result.data)} base64 characters")
        return _log_response("export-chart", {
            "message": message,
            "content_type": result.content_type,
            "size": len(result.data),
            "data_preview": result.preview(),
        })
    return _log_response("export-chart", {"message": message, "data": result.to_jsonable()})


# =============================================================================
# RESOURCES
# =============================================================================
# Resources return plain text.  Failures are rendered as text too, since a
# resource read has no separate error channel the agent would look at.
# =============================================================================
def _render_text(result: DecodedResponse) -> str:
    if isinstance(result, TextPayload):
        return result.text
    if isinstance(result, BinaryPayload):
        return f"Binary data of type {result.content_type}"
    if isinstance(result, StructuredData):
        return json.dumps(result.value, indent=2)
    raise TypeError(f"Unexpected response type {type(result).__name__}")


async def _read(path: str, what: str) -> str:
    try:
        return _render_text(await dispatcher.perform_request(path))
    except DashboardError as exc:
        return f"Error fetching {what}: {exc}"


async def auth_status() -> str:
    """Connection and authentication status, with the remaining setup steps."""
    current = dispatcher.session
    if current.is_endpoint_set and current.is_authenticated and not current.verified:
        await verify_connection(dispatcher)

    status = current.describe()
    lines = [
        f"API URL: {status.endpoint or 'Not set'}",
        f"Authentication: {'Token present' if status.has_credential else 'Not authenticated'}",
        f"Connection Status: {status.connection}",
        f"Organization: {status.scope if status.scope is not None else 'Not set'}",
        f"Ready to use: {'Yes - You can use the API' if status.ready else 'No - Additional setup required'}",
    ]
    if status.next_steps:
        lines.append("")
        lines.append("Setup Instructions:")
        lines.extend(f"{i}. {step}" for i, step in enumerate(status.next_steps, start=1))
    return "\n".join(lines)


async def categories_list() -> str:
    """All categories as JSON."""
    return await _read("/categories", "categories")


async def category_detail(category_id: str) -> str:
    """One category as JSON."""
    return await _read(f"/categories/{category_id}", "category")


async def category_objects(category_id: str) -> str:
    """Objects of one category as JSON."""
    return await _read(f"/categories/{category_id}/categoryObjects", "category objects")


async def charts_list() -> str:
    """All charts as JSON."""
    return await _read("/charts", "charts")


async def chart_detail(chart_id: str) -> str:
    """One chart as JSON."""
    return await _read(f"/charts/{chart_id}", "chart")


async def chart_export(chart_id: str, export_format: str) -> str:
    """One chart exported; binary formats are summarized, not inlined."""
    return await _read(f"/charts/{chart_id}/{export_format}", "chart export")


# =============================================================================
# PROMPTS
# =============================================================================
def analyze_categories() -> str:
    """Analyze categories in the dashboard."""
    return prompts.analyze_categories_prompt(not dispatcher.session.is_ready)


def analyze_charts() -> str:
    """Analyze charts in the dashboard."""
    return prompts.analyze_charts_prompt(not dispatcher.session.is_ready)


def compare_charts(chart_id_1: str, chart_id_2: str, export_format: str = "json") -> str:
    """Compare data between two charts."""
    return prompts.compare_charts_prompt(not dispatcher.session.is_ready, chart_id_1, chart_id_2, export_format)


def category_usage_analysis() -> str:
    """Analyze how categories are being used in charts."""
    return prompts.category_usage_prompt(not dispatcher.session.is_ready)


# =============================================================================
# Registration
# =============================================================================
TOOLS = {
    "check-connection": check_connection,
    "set-api-url": set_api_url,
    "authenticate": authenticate,
    "keep-session-alive": keep_session_alive,
    "authenticate-with-credentials": authenticate_with_credentials,
    "logout": logout,
    "set-organization": set_organization,
    "list-categories": list_categories,
    "get-category": get_category,
    "create-category": create_category,
    "update-category": update_category,
    "delete-category": delete_category,
    "list-category-objects": list_category_objects,
    "list-charts": list_charts,
    "get-chart": get_chart,
    "delete-chart": delete_chart,
    "export-chart": export_chart,
}

RESOURCES = {
    "auth://status": ("auth-status", auth_status),
    "categories://list": ("categories-list", categories_list),
    "categories://{category_id}": ("category-detail", category_detail),
    "categories://{category_id}/objects": ("category-objects", category_objects),
    "charts://list": ("charts-list", charts_list),
    "charts://{chart_id}": ("chart-detail", chart_detail),
    "charts://{chart_id}/export/{export_format}": ("chart-export", chart_export),
}

PROMPTS = {
    "analyze-categories": analyze_categories,
    "analyze-charts": analyze_charts,
    "compare-charts": compare_charts,
    "category-usage-analysis": category_usage_analysis,
}

for _name, _fn in TOOLS.items():
    mcp.tool(name=_name)(_fn)
for _uri, (_name, _fn) in RESOURCES.items():
    mcp.resource(_uri, name=_name)(_fn)
for _name, _fn in PROMPTS.items():
    mcp.prompt(name=_name)(_fn)


# =============================================================================
# Server entry point
# =============================================================================
# Settings are read here, not at import, so a bad environment value stops
# the launch with a log line instead of breaking every import of this module.
# Launch values are applied and verified BEFORE the stdio loop starts, so
# the first tool call already sees a verified (or cleanly reset) session.
# =============================================================================
def main(argv: Optional[list[str]] = None) -> None:
    try:
        settings = load_settings(sys.argv[1:] if argv is None else argv)
    except ValidationError as exc:
        configure_logging()
        logging.error(f"Invalid configuration: {exc}")
        raise SystemExit(2) from exc

    configure_logging(settings.log_level)
    dispatcher.timeout = settings.request_timeout
    status = asyncio.run(initialize_session(dispatcher, settings.api_url, settings.auth_token))
    logging.info(f"PI API MCP Server running on stdio (connection: {status})")
    mcp.run()


if __name__ == "__main__":
    main()
