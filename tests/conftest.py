# tests/conftest.py
"""
Shared fixtures: a Session, and a RequestDispatcher wired to a stub of the
dashboard API (httpx.MockTransport) that records every request it receives.
"""
import httpx
import pytest

from core.dispatcher import RequestDispatcher
from core.session import Session

BASE_URL = "https://pi.example.test/pi/api/v2"
BASE_PATH = "/pi/api/v2"


class StubApi:
    """Routes (method, path) to canned responses and records requests.

    Paths are given relative to BASE_URL, e.g. stub.add("POST", "/tokens/keepAlive").
    Unrouted requests get a 404.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], object] = {}

    def add(self, method: str, path: str, status: int = 200, **response_kwargs) -> None:
        self._routes[(method, BASE_PATH + path)] = (status, response_kwargs)

    def fail(self, method: str, path: str, exc: Exception) -> None:
        self._routes[(method, BASE_PATH + path)] = exc

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self._routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, text="no such route")
        if isinstance(route, Exception):
            raise route
        status, kwargs = route
        return httpx.Response(status, **kwargs)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def stub_api():
    return StubApi()


@pytest.fixture
def session():
    return Session()


@pytest.fixture
def dispatcher(session, stub_api):
    return RequestDispatcher(session, transport=httpx.MockTransport(stub_api.handler))


@pytest.fixture
def ready_dispatcher(dispatcher):
    """Dispatcher whose session has an endpoint, a verified token and no scope."""
    dispatcher.session.replace_endpoint(BASE_URL)
    dispatcher.session.commit_credential("good-token")
    return dispatcher
