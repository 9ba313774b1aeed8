"""
Response data handed back by the session, body kept exactly as received.
"""
from typing import List, Optional

import httpx


class FetchResult:
    def __init__(
        self,
        url: str,
        status_code: int,
        content: bytes = b'',
        headers: Optional[httpx.Headers] = None,
        encoding: Optional[str] = None,
        history: Optional[List[httpx.Response]] = None,
    ):
        """`url` is where the body came from, after any redirects; `history` holds the hops."""
        self.url = url
        self.status_code = status_code
        self.content = content
        self.headers = headers if headers is not None else httpx.Headers()
        self.encoding = encoding
        self.history = history or []

    @classmethod
    def from_response(cls, response: httpx.Response, body: bytes) -> "FetchResult":
        """Pair response metadata with the raw (never decompressed) body."""
        return cls(
            url=str(response.url),
            status_code=response.status_code,
            content=body,
            headers=response.headers,
            encoding=response.charset_encoding,
            history=list(response.history),
        )

    @property
    def success(self) -> bool:
        """Check if the status code is in the 2xx range."""
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        """Decode the body using the declared charset, falling back to utf-8."""
        if not self.content:
            return ""
        try:
            return self.content.decode(self.encoding or 'utf-8', errors='replace')
        except LookupError:
            return self.content.decode('utf-8', errors='replace')

    @property
    def size(self) -> int:
        return len(self.content)

    def __repr__(self) -> str:
        return f"<FetchResult [{self.status_code}] {self.url}>"
