# =============================================================================
# core/models.py  -  Data Models (the "nouns" of the system)
# =============================================================================
#
# These dataclasses define the *shape* of what flows out of the core:
#
#   DecodedResponse   what perform_request() hands back, one of three variants
#   LogoutResult      the two separate outcomes of invalidate_session()
#   SessionStatus     a read-only snapshot used by the auth://status resource
#
# WHY A TAGGED VARIANT FOR RESPONSES?
#   The dispatcher looks at the content-type header exactly ONCE and picks a
#   variant.  Everything downstream (tool wrappers, resources) just calls
#   to_jsonable() or checks isinstance() against a named class, instead of
#   sniffing "is this a dict with a contentType key?" all over the place.
#
# The Session itself lives in core/session.py because it has behavior
# (state transitions), not just shape.
# =============================================================================

from dataclasses import dataclass, field
from typing import Any, Optional, Union


# -----------------------------------------------------------------------------
# Decoded responses
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class StructuredData:
    """A JSON body, already parsed."""

    value: Any

    def to_jsonable(self) -> Any:
        return self.value


@dataclass(frozen=True)
class BinaryPayload:
    """A file-like body (CSV, PDF, image, office document) as base64 text."""

    content_type: str                  # Header value as sent, e.g. "text/csv; charset=utf-8"
    data: str                          # base64 of the raw bytes

    def to_jsonable(self) -> dict:
        return {"contentType": self.content_type, "data": self.data}

    def preview(self, length: int = 100) -> str:
        """First `length` characters of the base64 data, for context-friendly output."""
        if len(self.data) <= length:
            return self.data
        return f"{self.data[:length]}..."


@dataclass(frozen=True)
class TextPayload:
    """Anything that is neither JSON nor a known binary type."""

    text: str

    def to_jsonable(self) -> str:
        return self.text


DecodedResponse = Union[StructuredData, BinaryPayload, TextPayload]


# -----------------------------------------------------------------------------
# LogoutResult
# -----------------------------------------------------------------------------
# Logging out has two independent facts.  The LOCAL token is always gone
# afterwards; the REMOTE invalidation may or may not have worked.  Keeping
# them in separate fields lets the tool say "cleared locally, but the server
# did not confirm" instead of collapsing both into one boolean.
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class LogoutResult:
    """Outcome of invalidate_session()."""

    remote_invalidated: bool
    local_cleared: bool = True
    error: Optional[str] = None        # Message of the remote failure, if any


# -----------------------------------------------------------------------------
# SessionStatus
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class SessionStatus:
    """Snapshot of a Session, safe to show to the agent (no token value)."""

    endpoint: Optional[str]
    has_credential: bool
    scope: Optional[int]
    connection: str                    # "Verified", "Not verified" or "Not configured"
    ready: bool
    next_steps: list[str] = field(default_factory=list)
