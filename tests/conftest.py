"""Pytest configuration and shared fixtures for the fetcher tests."""
import httpx
import pytest

from fetcher.session import Fetcher


class FakeClock:
    """Epoch-seconds clock that only moves when told to."""

    def __init__(self, now: int = 1_700_000_000):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


class RecordingServer:
    """Handler for httpx.MockTransport that answers from canned routes.

    Every request that reaches it is recorded, including those it fails on
    purpose through `failures`.
    """

    def __init__(self):
        self.requests = []
        self.routes = {}
        self.failures = 0

    def route(self, path: str, status_code: int = 200, **kwargs) -> None:
        self.routes[path] = (status_code, kwargs)

    def paths(self):
        return [request.url.path for request in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.failures > 0:
            self.failures -= 1
            raise httpx.ConnectError("connection refused", request=request)

        if request.url.path not in self.routes:
            return _wire_response(404, text="not found")
        status_code, kwargs = self.routes[request.url.path]
        return _wire_response(status_code, **kwargs)


def _wire_response(status_code: int, **kwargs) -> httpx.Response:
    """Response whose body is still unread, as one arriving from a socket.

    Building with content= reads (and decodes) the body up front, which
    leaves nothing for iter_raw.
    """
    encoded = httpx.Response(status_code, **kwargs)
    return httpx.Response(status_code, headers=encoded.headers, stream=encoded.stream)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def server():
    return RecordingServer()


@pytest.fixture
def transport(server):
    return httpx.MockTransport(server)


@pytest.fixture
def fetcher(transport, clock):
    session = Fetcher(host="example.com", transport=transport, clock=clock)
    yield session
    session.close()
