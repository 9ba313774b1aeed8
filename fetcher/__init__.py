"""fetcher - a stateful, browser-like HTTP session on top of httpx."""

from .session import Fetcher, SessionState, new_fetcher, new_fetcher_https, restore
from .cookies import Cookie, CookieJar
from .result import FetchResult
from .errors import FetcherError, DecodeError, UnexpectedStatusError, StateError

__version__ = "0.1.0"
