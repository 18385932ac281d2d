# =============================================================================
# core/session.py  -  Credential & Endpoint State
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Holds the four pieces of state the whole server revolves around:
#
#     endpoint    base URL every request is relative to
#     credential  bearer token
#     scope       optional organization id, injected as ?orgId=
#     verified    "the remote accepted this token at the last probe"
#
# STATE MACHINE (informal):
#
#     set endpoint ─────────────► verified = False   (token is KEPT)
#     probe ok ─────────────────► verified = True
#     probe failed ─────────────► verified = False
#     credential committed ─────► verified = whatever the probe said
#     credential cleared ───────► verified = False
#     scope set ────────────────► verified unchanged
#
# WHO MAY MUTATE IT?
#   Only core/lifecycle.py and core/verifier.py.  They go through the small
#   mutator methods below so the "endpoint change clears verified" rule can't
#   be forgotten.  The dispatcher only reads.
#
# WHY AN OBJECT AND NOT MODULE GLOBALS?
#   Each test builds its own Session, and the server owns exactly one.
#   Nothing in core/ reaches for a hidden global.
# =============================================================================

from dataclasses import dataclass
from typing import Optional

from core.models import SessionStatus


@dataclass
class Session:
    """Mutable connection state for one dashboard API."""

    endpoint: Optional[str] = None
    credential: Optional[str] = None
    scope: Optional[int] = None
    verified: bool = False

    # --- Queries -------------------------------------------------------------

    @property
    def is_endpoint_set(self) -> bool:
        return self.endpoint is not None

    @property
    def is_authenticated(self) -> bool:
        return self.credential is not None

    @property
    def is_ready(self) -> bool:
        """Endpoint set, token present AND accepted at the last probe.

        Verification is advisory: it is not re-checked before each request,
        so a token that expired since the last probe still reads as ready.
        """
        return self.is_endpoint_set and self.is_authenticated and self.verified

    def describe(self) -> SessionStatus:
        """Build a token-free snapshot, including what the user should do next."""
        if self.is_endpoint_set and self.is_authenticated:
            connection = "Verified" if self.verified else "Not verified"
        else:
            connection = "Not configured"

        next_steps = []
        if not self.is_endpoint_set:
            next_steps.append("Set API URL using the set-api-url tool")
        if not self.is_authenticated:
            next_steps.append("Authenticate using the authenticate tool")
        elif not self.verified:
            next_steps.append("Verify your token using the keep-session-alive tool")

        return SessionStatus(
            endpoint=self.endpoint,
            has_credential=self.is_authenticated,
            scope=self.scope,
            connection=connection,
            ready=self.is_ready,
            next_steps=next_steps,
        )

    # --- Mutators (lifecycle / verifier only) --------------------------------

    def replace_endpoint(self, url: str) -> None:
        self.endpoint = url
        self.verified = False

    def stage_credential(self, token: Optional[str]) -> None:
        """Swap the token in without claiming it works yet."""
        self.credential = token
        self.verified = False

    def commit_credential(self, token: str) -> None:
        self.credential = token
        self.verified = True

    def clear_credential(self) -> None:
        self.credential = None
        self.verified = False

    def mark_verified(self, verified: bool) -> None:
        self.verified = verified

    def assign_scope(self, org_id: Optional[int]) -> None:
        self.scope = org_id

    def __repr__(self) -> str:
        # Never leak the token into logs or tracebacks.
        token = "<set>" if self.credential else None
        return (
            f"Session(endpoint={self.endpoint!r}, credential={token!r}, "
            f"scope={self.scope!r}, verified={self.verified!r})"
        )
