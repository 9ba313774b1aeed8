"""
Time-bounded response cache keyed by request identity.

Stale entries are purged lazily, the first time a read finds them expired.
"""
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import httpx
import structlog

from .urls import FormValues, encode_form

logger = structlog.get_logger(__name__)

Clock = Callable[[], float]


def get_key(url: str) -> str:
    return "get-" + url


def post_key(path: str, values: Optional[FormValues] = None) -> str:
    return "post-" + path + encode_form(values)


@dataclass
class CacheEntry:
    response: httpx.Response
    body: bytes
    stored_at: int

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self.response.headers


class ResponseCache:
    def __init__(self, ttl_seconds: int = 0, clock: Clock = time.time):
        self.ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    @property
    def enabled(self) -> bool:
        return self.ttl > 0

    def _now(self) -> int:
        return int(self._clock())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def keys(self) -> List[str]:
        return list(self._entries.keys())

    def lookup(self, key: str) -> Optional[CacheEntry]:
        if not self.enabled:
            return None

        entry = self._entries.get(key)
        if entry is None:
            return None

        age = self._now() - entry.stored_at
        if age > self.ttl:
            del self._entries[key]
            logger.debug("cache_expired", key=key, age_seconds=age, ttl_seconds=self.ttl)
            return None

        logger.debug("cache_hit", key=key, age_seconds=age)
        return entry

    def store(self, key: str, response: httpx.Response, body: bytes) -> None:
        """Keep `body` with the response metadata. `body` is what the caller is served on a hit."""
        if not self.enabled:
            return
        self._entries[key] = CacheEntry(response=response, body=body, stored_at=self._now())

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
