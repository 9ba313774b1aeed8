"""
URL helpers: turn session-relative paths into absolute URLs and encode form bodies.
"""
from typing import Mapping, Optional, Sequence, Union
from urllib.parse import urlencode, urlsplit

FormValue = Union[str, Sequence[str]]
FormValues = Mapping[str, FormValue]


def is_absolute(path: str) -> bool:
    return path.find('://') > 0


def resolve(path: str, host: str = "", https: bool = False) -> str:
    """Resolve `path` against `host`.

    Absolute URLs come back unchanged. Anything else is appended to the host
    and prefixed with the session scheme, so resolve("") gives the bare origin.
    """
    if is_absolute(path):
        return path
    scheme = 'https' if https else 'http'
    return f"{scheme}://{host}{path}"


def learn_host(url: str) -> str:
    """Return the host[:port] of an absolute URL, or "" when there is none."""
    if not is_absolute(url):
        return ""
    try:
        netloc = urlsplit(url).netloc
    except ValueError:
        return ""
    # drop userinfo
    return netloc.rpartition('@')[2]


def encode_form(values: Optional[FormValues]) -> str:
    """Percent-encode form values, sorted by name."""
    if not values:
        return ""
    pairs = []
    for name in sorted(values):
        value = values[name]
        if isinstance(value, (str, bytes)):
            pairs.append((name, value))
        else:
            pairs.extend((name, item) for item in value)
    return urlencode(pairs)
