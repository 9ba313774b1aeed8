"""
Wraps an httpx transport so every request and response passes through
session hooks. The wrapper holds no session state of its own.
"""
from typing import Callable, Optional

import httpx

BeforeSend = Callable[[httpx.Request], None]
AfterSend = Callable[[httpx.Response, httpx.Request], None]


def _skip_request(request: httpx.Request) -> None:
    pass


def _skip_response(response: httpx.Response, request: httpx.Request) -> None:
    pass


class HookedTransport(httpx.BaseTransport):
    def __init__(
        self,
        transport: Optional[httpx.BaseTransport] = None,
        before_send: Optional[BeforeSend] = None,
        after_send: Optional[AfterSend] = None,
    ):
        """Decorate `transport` with a before-send and an after-send hook.

        `after_send` only runs when the wrapped transport returned a response;
        a failed send leaves whatever the hook would have mutated untouched.
        """
        self._transport = transport or httpx.HTTPTransport()
        self.before_send = before_send or _skip_request
        self.after_send = after_send or _skip_response

    @property
    def wrapped(self) -> httpx.BaseTransport:
        return self._transport

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        self.before_send(request)
        response = self._transport.handle_request(request)
        self.after_send(response, request)
        return response

    def close(self) -> None:
        self._transport.close()


def build_transport(https: bool = False) -> httpx.BaseTransport:
    """Create the network transport for a session.

    HTTPS sessions skip certificate verification.
    """
    if https:
        return httpx.HTTPTransport(verify=False)
    return httpx.HTTPTransport()
