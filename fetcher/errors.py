"""
Errors raised by the session layer itself.

Network failures are not wrapped: they surface as the httpx exceptions
raised by the transport.
"""
from typing import Optional


class FetcherError(Exception):
    """Base class for errors raised by the fetcher session."""


class DecodeError(FetcherError):
    """Raised when a response body can not be decoded as JSON."""

    def __init__(self, body: bytes, reason: str):
        self.body = body
        self.text = body.decode('utf-8', errors='replace')
        super().__init__(f"unmarshal fail: {self.text}, {reason}")


class UnexpectedStatusError(FetcherError):
    """Raised when a response falls outside the 2xx range."""

    def __init__(self, status_code: int, url: Optional[str] = None):
        self.status_code = status_code
        self.url = url
        super().__init__(f"fetcher: unexpected status {status_code}")


class StateError(FetcherError):
    """Raised when a stored session blob can not be restored."""
