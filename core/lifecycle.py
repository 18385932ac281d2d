# =============================================================================
# core/lifecycle.py  -  Session Lifecycle Operations
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   The operations that CHANGE the session.  Each one documents how it
#   leaves the state when it fails, because that's what the agent relies on
#   to recover:
#
#   set_endpoint                bad URL        -> nothing changes
#   supply_credential           probe fails    -> previous token restored
#   refresh_session             probe fails    -> token kept, verified False
#   authenticate_with_password  anything fails -> nothing changes
#   invalidate_session          remote fails   -> local token cleared ANYWAY
#   set_scope                   cannot fail
#
# initialize_session() applies the launch parameters once at startup.
# =============================================================================

import logging
from typing import Optional

import httpx

from core.dispatcher import RequestDispatcher
from core.errors import (
    DashboardError,
    NotAuthenticatedError,
    NotConfiguredError,
    ValidationError,
)
from core.models import LogoutResult
from core.session import Session
from core.verifier import PROBE_PATH, verify_connection

logger = logging.getLogger(__name__)

INVALIDATE_PATH = "/tokens/invalidate"


def set_endpoint(session: Session, url: str) -> None:
    """Point the session at a new API base URL.

    The token is kept (it may still be valid for the new URL), but the
    verified flag is cleared until the next probe.

    Raises:
        ValidationError: url is not an absolute http(s) URL.  State unchanged.
    """
    invalid = ValidationError(
        "Invalid URL format. Please provide a valid URL including protocol (http:// or https://)."
    )
    try:
        parsed = httpx.URL(url.strip())
    except (httpx.InvalidURL, TypeError, AttributeError) as exc:
        raise invalid from exc
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise invalid
    if any(ch.isspace() or ch == "%" for ch in parsed.host):
        raise invalid
    if parsed.port is not None and not 0 < parsed.port <= 65535:
        raise invalid

    session.replace_endpoint(url.strip())
    logger.info("API URL set to %s", session.endpoint)


async def supply_credential(dispatcher: RequestDispatcher, token: str) -> None:
    """Adopt a new bearer token, but only if the API accepts it.

    The previous token (possibly None) is restored if the probe fails, so a
    typo never logs the user out of a working session.
    """
    session = dispatcher.session
    if not session.is_endpoint_set:
        raise NotConfiguredError()
    if not token or not token.strip():
        raise ValidationError("Token must not be empty.")

    previous = session.credential
    session.stage_credential(token.strip())
    logger.info("Token provided, verifying with keep-alive probe")

    try:
        await dispatcher.perform_request(PROBE_PATH, "POST")
    except BaseException:
        session.stage_credential(previous)
        logger.warning("Provided token rejected; previous token restored")
        raise

    session.commit_credential(token.strip())


async def refresh_session(dispatcher: RequestDispatcher) -> None:
    """Keep the current token alive, propagating any failure."""
    session = dispatcher.session
    if not session.is_endpoint_set:
        raise NotConfiguredError()
    if not session.is_authenticated:
        raise NotAuthenticatedError(
            "No token available. Please provide a token or authenticate with credentials."
        )

    try:
        await dispatcher.perform_request(PROBE_PATH, "POST")
    except DashboardError:
        session.mark_verified(False)
        raise
    session.mark_verified(True)


def parse_credentials(text: str) -> tuple[str, str]:
    """Split "username password" into its two parts.

    Everything after the first whitespace run is the password, so passwords
    containing spaces survive (runs of whitespace collapse to one space).
    """
    parts = (text or "").split()
    if len(parts) < 2:
        raise ValidationError("Invalid credentials format. Please provide as 'username password'")
    return parts[0], " ".join(parts[1:])


async def authenticate_with_password(dispatcher: RequestDispatcher, identity: str, secret: str) -> None:
    """Exchange username/password for a token and commit it.

    Nothing is rolled back on failure because nothing was touched: the
    session only changes after the token has been received.
    """
    if not dispatcher.session.is_endpoint_set:
        raise NotConfiguredError()
    if not identity or not secret:
        raise ValidationError(
            "Both username and password are required. Please provide as 'username password'"
        )

    token = await dispatcher.exchange_credentials(identity, secret)
    dispatcher.session.commit_credential(token)
    logger.info("Authenticated with credentials for user %s", identity)


async def invalidate_session(dispatcher: RequestDispatcher) -> LogoutResult:
    """Log out: ask the API to drop the token, then forget it locally.

    The local token is cleared whatever the API says.  Whether the remote
    side confirmed is reported in the result instead of raised.
    """
    session = dispatcher.session
    if not session.is_authenticated:
        raise NotAuthenticatedError("Not authenticated yet. No need to logout.")

    try:
        await dispatcher.perform_request(INVALIDATE_PATH, "POST")
    except DashboardError as exc:
        logger.warning("Remote token invalidation failed: %s", exc)
        session.clear_credential()
        return LogoutResult(remote_invalidated=False, error=str(exc))

    session.clear_credential()
    return LogoutResult(remote_invalidated=True)


def set_scope(session: Session, org_id: Optional[int]) -> None:
    """Inject `org_id` as orgId into every following request."""
    session.assign_scope(org_id)
    logger.info("Organization ID set to %s", org_id)


async def initialize_session(
    dispatcher: RequestDispatcher,
    api_url: Optional[str] = None,
    auth_token: Optional[str] = None,
) -> str:
    """Apply launch parameters and report a one-word connection status.

    A launch token that fails verification is discarded, so the agent starts
    from a clean "please authenticate" state rather than a broken one.

    Returns:
        "Ready", "Failed", "Partial" or "Not configured".
    """
    session = dispatcher.session

    if api_url:
        try:
            set_endpoint(session, api_url)
        except ValidationError as exc:
            logger.error("Ignoring launch API URL %r: %s", api_url, exc)
    if auth_token:
        session.stage_credential(auth_token)
        logger.info("Auth token provided via launch parameters")

    if session.is_endpoint_set and session.is_authenticated:
        logger.info("API URL and auth token provided. Verifying connection...")
        if await verify_connection(dispatcher):
            logger.info("CONNECTION STATUS: Ready - Authentication verified")
            return "Ready"
        session.clear_credential()
        logger.error("CONNECTION STATUS: Failed - Authentication provided but validation failed")
        return "Failed"

    if session.is_endpoint_set:
        logger.info("CONNECTION STATUS: Partial - API URL set but authentication needed")
        return "Partial"

    logger.info("CONNECTION STATUS: Not configured - API URL and authentication needed")
    return "Not configured"
