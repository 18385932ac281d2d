# =============================================================================
# core/errors.py  -  Error taxonomy for the dashboard session layer
# =============================================================================
#
# Every failure the core can produce is one of these classes.  The tools/
# layer catches DashboardError and turns the message into an {"error": ...}
# dict for the agent, so the messages here are written for an LLM reader:
# they say what went wrong AND which tool fixes it.
#
#   ValidationError        bad caller input, rejected before any network call
#   NotConfiguredError     no API URL yet           -> set-api-url
#   NotAuthenticatedError  no token yet             -> keep-session-alive / authenticate
#   ApiError               remote answered with a non-success status
#   TransportError         no response at all (DNS, refused, timeout...)
#   InvalidResponseError   remote answered 2xx but the body is not what we need
# =============================================================================


class DashboardError(Exception):
    """Base class for all errors raised by the core package."""


class ValidationError(DashboardError):
    """Caller input is malformed (bad URL, blank token, bad credentials string)."""


class NotConfiguredError(DashboardError):
    """The API base URL has not been set."""

    def __init__(self, message: str = "API URL not set. Please set the API URL using the set-api-url tool."):
        super().__init__(message)


class NotAuthenticatedError(DashboardError):
    """No bearer token is present."""

    def __init__(self, message: str = "Not authenticated. Please authenticate first."):
        super().__init__(message)


class ApiError(DashboardError):
    """The dashboard API rejected the call.

    Only the status code and reason phrase travel with the exception.  The
    raw response body is logged by the dispatcher instead, so the message
    stays stable whether the server answered with JSON, HTML or plain text.
    """

    def __init__(self, status: int, status_text: str):
        self.status = status
        self.status_text = status_text
        super().__init__(f"API request failed with status {status}: {status_text}")


class TransportError(DashboardError):
    """The request never produced a response."""


class InvalidResponseError(DashboardError):
    """A successful response did not carry the expected payload."""
