"""
Flat, session-wide cookie storage.

Cookies are identified by name only; domain and path are kept for the
record but never used to pick which cookies go out with a request.
"""
from typing import Iterator, List, Optional

import httpx
import structlog
from pydantic import BaseModel

logger = structlog.get_logger(__name__)


class Cookie(BaseModel):
    name: str
    value: str = ""
    domain: str = ""
    path: str = ""
    expires: Optional[str] = None
    max_age: Optional[int] = None
    secure: bool = False
    http_only: bool = False
    same_site: str = ""

    def header_pair(self) -> str:
        """Render the cookie as it appears inside a Cookie request header.

        Bytes that could end the pair early or start a new one are dropped.
        """
        value = sanitize_value(self.value)
        if ' ' in value or ',' in value:
            value = f'"{value}"'
        return f"{sanitize_name(self.name)}={value}"


def _valid_value_char(char: str) -> bool:
    return '\x20' <= char < '\x7f' and char not in '";\\'


def sanitize_value(value: str) -> str:
    return ''.join(char for char in value if _valid_value_char(char))


_NAME_SEPARATORS = '()<>@,;:\\"/[]?={} \t'


def sanitize_name(name: str) -> str:
    """Replace anything outside the RFC 6265 token set with '-'."""
    return ''.join(
        char if '\x20' < char < '\x7f' and char not in _NAME_SEPARATORS else '-'
        for char in name
    )


def parse_set_cookie(header: str) -> Optional[Cookie]:
    """Parse a single Set-Cookie header value. Returns None when it holds no cookie."""
    parts = header.split(';')
    name, sep, value = parts[0].partition('=')
    name = name.strip()
    if not sep or not name:
        return None

    value = value.strip()
    if len(value) > 1 and value.startswith('"') and value.endswith('"'):
        value = value[1:-1]

    cookie = Cookie(name=name, value=value)
    for part in parts[1:]:
        attr, _, attr_value = part.strip().partition('=')
        attr = attr.strip().lower()
        attr_value = attr_value.strip()

        if attr == 'domain':
            cookie.domain = attr_value.lstrip('.')
        elif attr == 'path':
            cookie.path = attr_value
        elif attr == 'expires':
            cookie.expires = attr_value
        elif attr == 'max-age':
            try:
                cookie.max_age = int(attr_value)
            except ValueError:
                pass
        elif attr == 'secure':
            cookie.secure = True
        elif attr == 'httponly':
            cookie.http_only = True
        elif attr == 'samesite':
            cookie.same_site = attr_value

    return cookie


def response_cookies(response: httpx.Response) -> List[Cookie]:
    """Extract the cookies a response sets, in header order."""
    cookies = []
    for header in response.headers.get_list('set-cookie'):
        cookie = parse_set_cookie(header)
        if cookie is None:
            logger.debug("set_cookie_skipped", header=header)
            continue
        cookies.append(cookie)
    return cookies


class CookieJar:
    def __init__(self, cookies: Optional[List[Cookie]] = None):
        self._cookies: List[Cookie] = []
        if cookies:
            self.merge(cookies)

    def __iter__(self) -> Iterator[Cookie]:
        return iter(self._cookies)

    def __len__(self) -> int:
        return len(self._cookies)

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def get(self, name: str) -> Optional[Cookie]:
        for cookie in self._cookies:
            if cookie.name == name:
                return cookie
        return None

    def set(self, cookie: Cookie) -> None:
        self.merge([cookie])

    def clear(self) -> None:
        self._cookies.clear()

    def attach(self, request: httpx.Request) -> None:
        """Append every held cookie to the request's Cookie header, in jar order."""
        if not self._cookies:
            return
        pairs = '; '.join(cookie.header_pair() for cookie in self._cookies)
        existing = request.headers.get('Cookie')
        request.headers['Cookie'] = f"{existing}; {pairs}" if existing else pairs

    def merge(self, cookies: List[Cookie]) -> None:
        """Last write wins per name.

        A cookie replacing an existing name keeps that name's position; new
        names are appended in the order they were presented.
        """
        for cookie in cookies:
            for idx, held in enumerate(self._cookies):
                if held.name == cookie.name:
                    self._cookies[idx] = cookie
                    break
            else:
                self._cookies.append(cookie)
