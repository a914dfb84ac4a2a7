from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from integrations.errors import CacheFetchFailed, ServiceError

log = logging.getLogger("arrhub.cache")

Fetcher = Callable[[], Awaitable[Any]]

DEFAULT_TTL_SEC = 3600.0


@dataclass
class CacheEntry:
    key: str
    value: Any
    fetched_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.fetched_at >= self.ttl


class ReferenceCache:
    """TTL cache for reference documents with at most one in-flight fetch per key.

    Expiry is checked lazily on access. Failed fetches are never stored: a
    previous entry is served (stale) when one exists, otherwise the failure
    is raised as ``CacheFetchFailed`` to every caller waiting on that fetch.
    """

    def __init__(self, default_ttl_sec: float = DEFAULT_TTL_SEC, clock: Optional[Callable[[], float]] = None) -> None:
        self.default_ttl_sec = float(default_ttl_sec)
        self._clock = clock or time.monotonic
        self._entries: Dict[str, CacheEntry] = {}
        self._inflight: Dict[str, "asyncio.Future[Any]"] = {}

    async def get(self, key: str, fetch: Fetcher, ttl_sec: Optional[float] = None) -> Any:
        ttl = self.default_ttl_sec if ttl_sec is None else float(ttl_sec)
        entry = self._entries.get(key)
        if entry is not None and not entry.is_expired(self._clock()):
            return entry.value

        task = self._inflight.get(key)
        if task is None or task.done():
            task = asyncio.ensure_future(self._refresh(key, ttl, fetch, entry))
            self._inflight[key] = task
            task.add_done_callback(lambda t, k=key: self._forget(k, t))
        else:
            log.debug("Joining in-flight fetch for %s", key)
        # shield: one caller being cancelled must not cancel the shared fetch
        return await asyncio.shield(task)

    def _forget(self, key: str, task: "asyncio.Future[Any]") -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]

    async def _refresh(self, key: str, ttl: float, fetch: Fetcher, stale: Optional[CacheEntry]) -> Any:
        try:
            value = await fetch()
        except Exception as e:
            if stale is not None:
                log.warning("Refresh of %s failed (%s); serving cached copy", key, e)
                return stale.value
            if isinstance(e, CacheFetchFailed):
                raise
            detail = e.message if isinstance(e, ServiceError) else str(e) or e.__class__.__name__
            raise CacheFetchFailed(f"could not fetch {key}: {detail}") from e

        self._entries[key] = CacheEntry(key=key, value=value, fetched_at=self._clock(), ttl=ttl)
        return value

    def peek(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def invalidate(self, key: Optional[str] = None) -> None:
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def get_stats(self) -> Dict[str, Any]:
        now = self._clock()
        return {
            "entries": len(self._entries),
            "fresh": sum(1 for e in self._entries.values() if not e.is_expired(now)),
            "inflight": len(self._inflight),
        }
