"""
Browser-like HTTP session: cookies carried across requests, a rolling
Referer, fixed default headers and an optional TTL cache for GET.

Not safe for concurrent use; one Fetcher is one sequential browsing session.
"""
import base64
import json
import time
from http.cookiejar import CookieJar as _ClientCookieJar, DefaultCookiePolicy
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Type, Union

import httpx
import structlog
from pydantic import BaseModel, Field

from .cache import Clock, ResponseCache, get_key, post_key
from .cookies import Cookie, CookieJar, response_cookies
from .errors import DecodeError, StateError, UnexpectedStatusError
from .headers import HeaderPolicy
from .result import FetchResult
from .transport import HookedTransport, build_transport
from .urls import FormValues, encode_form, is_absolute, learn_host, resolve

logger = structlog.get_logger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class HeaderState(BaseModel):
    agent: str = ""
    custom: Dict[str, str] = Field(default_factory=dict)


class SessionState(BaseModel):
    """Portable part of a session. Cache contents and connections never go in here."""
    https: bool = False
    host: str = ""
    referer: str = ""
    cache_time: int = 0
    auto_host: bool = False
    cookies: List[Cookie] = Field(default_factory=list)
    header: HeaderState = Field(default_factory=HeaderState)


def _detached_cookie_jar() -> _ClientCookieJar:
    # The client must neither store nor send cookies on its own; the session jar does that.
    return _ClientCookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))


class Fetcher:
    def __init__(
        self,
        host: str = "",
        https: bool = False,
        cache_time: int = 0,
        auto_host: bool = False,
        agent: str = "",
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = 30.0,
        max_redirects: int = 10,
        clock: Clock = time.time,
    ):
        """Create a session.

        Args:
            host: Host (and optional port) relative paths are resolved against.
            https: Use https:// for relative paths and skip certificate checks.
            cache_time: Seconds a GET response stays cached. 0 disables caching.
            auto_host: Adopt the host of any absolute URL requested.
            agent: User-Agent override.
            headers: Custom headers sent with every request.
            transport: Underlying httpx transport. Defaults to a network transport.
            timeout: Per-request timeout handed to httpx.
            max_redirects: Redirect hops httpx follows before giving up.
            clock: Epoch-seconds source for cache timestamps.
        """
        self.https = https
        self.host = host
        self.referer = ""
        self.auto_host = auto_host
        self.cookies = CookieJar()
        self.header = HeaderPolicy(agent=agent, custom=headers)
        self.cache = ResponseCache(ttl_seconds=cache_time, clock=clock)

        self._transport = HookedTransport(
            transport or build_transport(https),
            before_send=self._before_send,
            after_send=self._after_send,
        )
        self.client = httpx.Client(
            transport=self._transport,
            follow_redirects=True,
            max_redirects=max_redirects,
            timeout=timeout,
            cookies=_detached_cookie_jar(),
        )

    @classmethod
    def from_config(cls, config=None, **kwargs) -> "Fetcher":
        """Build a session from a Config (the global one when omitted)."""
        if config is None:
            from .config import config
        settings = config.fetcher
        options = dict(
            host=str(settings.get('host') or ""),
            https=bool(settings.get('https', False)),
            cache_time=int(settings.get('cache_time') or 0),
            auto_host=bool(settings.get('auto_host', False)),
            agent=str(settings.get('user_agent') or ""),
            headers={str(k): str(v) for k, v in (settings.get('headers') or {}).items()},
            timeout=float(settings.get('timeout') or 30.0),
            max_redirects=int(settings.get('max_redirects') or 10),
        )
        options.update(kwargs)
        return cls(**options)

    @property
    def cache_time(self) -> int:
        return self.cache.ttl

    @cache_time.setter
    def cache_time(self, seconds: int) -> None:
        self.cache.ttl = seconds

    @property
    def agent(self) -> str:
        return self.header.agent

    @agent.setter
    def agent(self, value: str) -> None:
        self.header.agent = value

    def set_header(self, name: str, value: str) -> None:
        self.header.set(name, value)

    def resolve(self, path: str, learn: bool = True) -> str:
        """Absolute URL for `path`. With auto_host on, absolute URLs also become the new host."""
        url = resolve(path, self.host, self.https)
        if learn and self.auto_host and is_absolute(path):
            host = learn_host(path)
            if host and host != self.host:
                logger.info("host_learned", previous=self.host, host=host)
                self.host = host
        return url

    def _before_send(self, request: httpx.Request) -> None:
        self.header.apply(request, origin=self.resolve("", learn=False))
        self.cookies.attach(request)
        if self.referer:
            request.headers['Referer'] = self.referer
        logger.info("request_dispatched",
                    method=request.method,
                    url=str(request.url),
                    cookie=request.headers.get('Cookie', ''))

    def _after_send(self, response: httpx.Response, request: httpx.Request) -> None:
        self.cookies.merge(response_cookies(response))
        self.referer = str(request.url)

    def _request(self, method: str, url: str, content: Union[str, bytes, None] = None,
                 headers: Optional[Dict[str, str]] = None) -> Tuple[httpx.Response, bytes]:
        """Send through the client and read the body as it came off the wire.

        Content-Encoding is never undone; the caller gets the bytes the server sent.
        """
        request = self.client.build_request(method, url, content=content, headers=headers)
        response = self.client.send(request, stream=True)
        try:
            body = b"".join(response.iter_raw())
        finally:
            response.close()
        return response, body

    def get(self, path: str) -> FetchResult:
        url = self.resolve(path)
        key = get_key(url)

        entry = self.cache.lookup(key)
        if entry is not None:
            return FetchResult.from_response(entry.response, entry.body)

        response, body = self._request("GET", url)
        self.cache.store(key, response, body)
        return FetchResult.from_response(response, body)

    def get_no_cache(self, path: str) -> FetchResult:
        """GET that skips the cache lookup but still refreshes the cached copy."""
        url = self.resolve(path)
        response, body = self._request("GET", url)
        self.cache.store(get_key(url), response, body)
        return FetchResult.from_response(response, body)

    def post(self, path: str, content_type: str, content: Union[str, bytes, None] = None) -> FetchResult:
        url = self.resolve(path)
        response, body = self._request("POST", url, content=content, headers={'Content-Type': content_type})
        self.referer = url
        return FetchResult.from_response(response, body)

    def post_form(self, path: str, values: Optional[FormValues] = None) -> FetchResult:
        return self.post(path, FORM_CONTENT_TYPE, encode_form(values))

    def post_form_retry(self, path: str, values: Optional[FormValues], attempts: int) -> FetchResult:
        """post_form up to `attempts` times, stopping at the first that gets a response.

        Raises the last transport error when every attempt fails.
        """
        if attempts < 1:
            raise ValueError(f"attempts must be at least 1, got {attempts}")

        last_error = None
        for attempt in range(1, attempts + 1):
            try:
                return self.post_form(path, values)
            except httpx.RequestError as e:
                last_error = e
                logger.warning("post_retry_failed",
                               path=path,
                               attempt=attempt,
                               attempts=attempts,
                               error=str(e))
        raise last_error

    def call_post_form(self, path: str, values: Optional[FormValues] = None,
                       model: Optional[Type[BaseModel]] = None) -> Any:
        """post_form and decode the JSON body, into `model` when one is given."""
        body = self.post_form(path, values).content
        try:
            if model is not None:
                return model.model_validate_json(body)
            return json.loads(body)
        except ValueError as e:
            raise DecodeError(body, str(e)) from e

    def save_file(self, path: str, dst_path: Union[str, Path]) -> None:
        Path(dst_path).write_bytes(self.get(path).content)

    def get_base64(self, path: str) -> str:
        result = self.get(path)
        if not result.success:
            raise UnexpectedStatusError(result.status_code, url=result.url)
        return base64.b64encode(result.content).decode('ascii')

    def remove_get_cache(self, path: str) -> None:
        self.cache.invalidate(get_key(self.resolve(path, learn=False)))

    def remove_post_cache(self, path: str, values: Optional[FormValues] = None) -> None:
        self.cache.invalidate(post_key(path, values))

    def state(self) -> SessionState:
        return SessionState(
            https=self.https,
            host=self.host,
            referer=self.referer,
            cache_time=self.cache_time,
            auto_host=self.auto_host,
            cookies=[cookie.model_copy() for cookie in self.cookies],
            header=HeaderState(agent=self.header.agent, custom=dict(self.header.custom)),
        )

    def store(self) -> str:
        """Serialize the session to a base64 text blob."""
        return base64.b64encode(self.state().model_dump_json().encode('utf-8')).decode('ascii')

    @classmethod
    def from_state(cls, state: SessionState, **kwargs) -> "Fetcher":
        fetcher = cls(
            host=state.host,
            https=state.https,
            cache_time=state.cache_time,
            auto_host=state.auto_host,
            agent=state.header.agent,
            headers=state.header.custom,
            **kwargs,
        )
        fetcher.referer = state.referer
        fetcher.cookies.merge(state.cookies)
        return fetcher

    @classmethod
    def restore(cls, blob: str, **kwargs) -> "Fetcher":
        """Rebuild a session from store() output. The cache starts empty."""
        try:
            data = base64.b64decode(blob, validate=True)
            state = SessionState.model_validate_json(data)
        except ValueError as e:
            raise StateError(f"fetcher: can not restore session: {e}") from e
        return cls.from_state(state, **kwargs)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def new_fetcher(host: str, **kwargs) -> Fetcher:
    return Fetcher(host=host, **kwargs)


def new_fetcher_https(host: str, **kwargs) -> Fetcher:
    return Fetcher(host=host, https=True, **kwargs)


def restore(blob: str, **kwargs) -> Fetcher:
    return Fetcher.restore(blob, **kwargs)
