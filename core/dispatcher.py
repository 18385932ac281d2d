# =============================================================================
# core/dispatcher.py  -  Request Dispatcher (the one way to talk to the API)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Every tool and resource ends up here.  perform_request():
#
#     1. fails fast when there is no endpoint / no token (no network call)
#     2. builds  endpoint + path  and the query string
#        (orgId from the session's scope always wins over the caller's value)
#     3. sends  Authorization: bearer <token>  and a JSON body for POST/PUT
#     4. turns a non-success status into ApiError(status, reason)
#     5. picks ONE DecodedResponse variant from the content-type header
#
# HOW THE HTTP CALL IS MADE:
#   A short-lived httpx.AsyncClient per request, following redirects.  The
#   server handles one tool call at a time, so there is nothing to gain from
#   pooling, and it keeps the dispatcher free of open/close lifecycle.
#
#   The httpx transport can be injected.  Tests pass httpx.MockTransport to
#   stand in for the dashboard server and count how many calls went out.
#
#   Every httpx.RequestError (connect, timeout, bad content-encoding, redirect
#   loop) becomes core.errors.TransportError, so callers only see
#   DashboardError.
#
# WHAT IT DOES NOT DO:
#   - No retries.  Errors go straight back to the caller.
#   - No Session writes.  Whether a call counts as a successful "probe" is
#     decided by the caller (core/verifier.py, core/lifecycle.py).
# =============================================================================

import base64
import json
import logging
from typing import Any, Mapping, Optional

import httpx

from core.errors import (
    ApiError,
    InvalidResponseError,
    NotAuthenticatedError,
    NotConfiguredError,
    TransportError,
)
from core.models import BinaryPayload, DecodedResponse, StructuredData, TextPayload
from core.session import Session

logger = logging.getLogger(__name__)

SCOPE_PARAM = "orgId"
BODY_METHODS = ("POST", "PUT")

# Substrings of the content-type header that mean "file, not text".
BINARY_CONTENT_TYPES = (
    "text/csv",
    "application/pdf",
    "image/",
    "application/vnd.openxmlformats",
)


def decode_response(response: httpx.Response) -> DecodedResponse:
    """Classify a successful response by its declared content type."""
    content_type = response.headers.get("content-type", "")

    if "application/json" in content_type:
        try:
            value = response.json()
        except ValueError as exc:
            raise InvalidResponseError(f"Response declared JSON but could not be decoded: {exc}") from exc
        logger.info("Received JSON response: %s...", json.dumps(value)[:200])
        return StructuredData(value)

    if any(kind in content_type for kind in BINARY_CONTENT_TYPES):
        data = base64.b64encode(response.content).decode("ascii")
        logger.info("Received binary response of type %s, length: %d", content_type, len(data))
        return BinaryPayload(content_type=content_type, data=data)

    text = response.text
    logger.info("Received text response: %s...", text[:200])
    return TextPayload(text)


class RequestDispatcher:
    """Builds, sends and decodes authenticated requests for a Session.

    Args:
        session: The state to read endpoint / token / scope from.
        transport: Optional httpx transport (tests use httpx.MockTransport).
        timeout: Seconds per request.  None keeps httpx's default.
    """

    def __init__(
        self,
        session: Session,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self.session = session
        self._transport = transport
        self.timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        options: dict[str, Any] = {"follow_redirects": True}
        if self._transport is not None:
            options["transport"] = self._transport
        if self.timeout is not None:
            options["timeout"] = self.timeout
        return httpx.AsyncClient(**options)

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            async with self._client() as client:
                return await client.request(method, url, **kwargs)
        except httpx.RequestError as exc:
            logger.error("API request error: %s", exc)
            raise TransportError(f"Request to {url} failed: {exc}") from exc

    def build_query(self, query_params: Optional[Mapping[str, Any]] = None) -> dict[str, str]:
        """Copy the caller's params as strings and inject the session scope."""
        params = {key: str(value) for key, value in (query_params or {}).items()}
        if self.session.scope is not None:
            params[SCOPE_PARAM] = str(self.session.scope)
        return params

    async def perform_request(
        self,
        path: str,
        method: str = "GET",
        body: Any = None,
        query_params: Optional[Mapping[str, Any]] = None,
    ) -> DecodedResponse:
        """Send one authenticated request and decode the answer.

        Args:
            path: Path relative to the endpoint, e.g. "/charts/12/csv".
            method: HTTP verb.
            body: JSON-serializable payload, only sent for POST and PUT.
            query_params: Extra query parameters.  Not modified.

        Returns:
            StructuredData, BinaryPayload or TextPayload.

        Raises:
            NotConfiguredError, NotAuthenticatedError, ApiError, TransportError,
            InvalidResponseError.
        """
        if not self.session.is_endpoint_set:
            raise NotConfiguredError()
        if not self.session.is_authenticated:
            raise NotAuthenticatedError()

        method = method.upper()
        url = f"{self.session.endpoint}{path}"
        params = self.build_query(query_params)

        request_options: dict[str, Any] = {
            "headers": {"Authorization": f"bearer {self.session.credential}"},
        }
        if params:
            request_options["params"] = params
        if body is not None and method in BODY_METHODS:
            request_options["json"] = body
            logger.info("Request body: %s", json.dumps(body))

        logger.info("Making %s request to %s", method, httpx.URL(url, params=params))
        response = await self._send(method, url, **request_options)

        if not response.is_success:
            logger.error("API request failed with status %d: %s", response.status_code, response.text)
            raise ApiError(response.status_code, response.reason_phrase)

        return decode_response(response)

    async def exchange_credentials(self, identity: str, secret: str) -> str:
        """Trade a username/password for a token via POST /tokens.

        This call is deliberately NOT authenticated with the session token and
        does not touch the session; core/lifecycle.py commits the result.
        """
        if not self.session.is_endpoint_set:
            raise NotConfiguredError()

        encoded = base64.b64encode(f"{identity}:{secret}".encode("utf-8")).decode("ascii")
        response = await self._send(
            "POST",
            f"{self.session.endpoint}/tokens",
            headers={
                "Authorization": f"basic {encoded}",
                "Content-Type": "application/json",
            },
        )

        if not response.is_success:
            logger.error("Authentication failed with status %d: %s", response.status_code, response.text)
            raise ApiError(response.status_code, response.reason_phrase)

        try:
            data = response.json()
        except ValueError as exc:
            raise InvalidResponseError("Authentication failed: Invalid response format") from exc

        if not isinstance(data, dict) or not isinstance(data.get("token"), str):
            raise InvalidResponseError("Authentication failed: Invalid response format")
        return data["token"]
