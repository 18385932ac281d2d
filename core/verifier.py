# =============================================================================
# core/verifier.py  -  Connection Verifier
# =============================================================================
#
# A cheap authenticated call ("keep-alive probe") that answers one question:
# does the remote still accept our token?  The answer goes into
# session.verified and is returned as a plain bool.
#
# This is the ONLY place in core/ that swallows errors.  Verification is
# advisory polling (startup, check-connection, auth://status), so a failure
# is a "no", not an exception.  The reason is logged.
# =============================================================================

import logging

from core.dispatcher import RequestDispatcher
from core.errors import DashboardError

logger = logging.getLogger(__name__)

PROBE_PATH = "/tokens/keepAlive"


async def verify_connection(dispatcher: RequestDispatcher) -> bool:
    """Probe the API with the current token and record the outcome."""
    session = dispatcher.session
    if not session.is_endpoint_set or not session.is_authenticated:
        return False

    try:
        await dispatcher.perform_request(PROBE_PATH, "POST")
    except DashboardError as exc:
        logger.warning("Connection verification failed: %s", exc)
        session.mark_verified(False)
        return False

    session.mark_verified(True)
    return True
