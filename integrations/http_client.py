from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp

logger = logging.getLogger("arrhub.http")


@dataclass
class HttpConfig:
    connect_timeout_ms: int = 2000
    read_timeout_ms: int = 8000
    total_timeout_ms: int = 12000
    max_connections: int = 20
    retry_max: int = 1
    backoff_base_ms: int = 100

    @classmethod
    def from_runtime_config(cls, runtime_config: dict) -> "HttpConfig":
        http_cfg = (runtime_config or {}).get("http", {}) or {}
        return cls(
            connect_timeout_ms=int(http_cfg.get("connectTimeoutMs", cls.connect_timeout_ms)),
            read_timeout_ms=int(http_cfg.get("readTimeoutMs", cls.read_timeout_ms)),
            total_timeout_ms=int(http_cfg.get("totalTimeoutMs", cls.total_timeout_ms)),
            max_connections=int(http_cfg.get("maxConnections", cls.max_connections)),
            retry_max=int(http_cfg.get("retryMax", cls.retry_max)),
            backoff_base_ms=int(http_cfg.get("backoffBaseMs", cls.backoff_base_ms)),
        )


class SharedHttpClient:
    """One pooled aiohttp session for outbound calls that are not per-service API calls."""

    def __init__(self, base_headers: Optional[Dict[str, str]] = None, config: Optional[HttpConfig] = None) -> None:
        self._cfg = config or HttpConfig()
        self._headers = base_headers or {}
        self._session: Optional[aiohttp.ClientSession] = None

    def _get_session(self) -> aiohttp.ClientSession:
        # Created lazily so the session binds to the running loop
        if self._session is None or self._session.closed:
            cfg = self._cfg
            timeout = aiohttp.ClientTimeout(
                total=cfg.total_timeout_ms / 1000.0,
                connect=cfg.connect_timeout_ms / 1000.0,
                sock_read=cfg.read_timeout_ms / 1000.0,
            )
            connector = aiohttp.TCPConnector(
                limit=cfg.max_connections,
                keepalive_timeout=30,
                use_dns_cache=True,
                ttl_dns_cache=300,
            )
            self._session = aiohttp.ClientSession(timeout=timeout, connector=connector, headers=self._headers)
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def get_json(self, url: str, *, params: Optional[Dict[str, Any]] = None,
                       headers: Optional[Dict[str, str]] = None) -> Any:
        """GET a JSON document, retrying 429/5xx and transport errors with backoff."""
        attempt = 0
        start = time.time()
        while True:
            try:
                t0 = time.time()
                async with self._get_session().get(url, params=params, headers=headers) as resp:
                    duration_ms = int((time.time() - t0) * 1000)
                    status = resp.status
                    if status in (429, 500, 502, 503, 504) and attempt < self._cfg.retry_max:
                        self._log_req("GET", url, status, duration_ms, attempt, retried=True)
                        await asyncio.sleep(self._backoff(attempt))
                        attempt += 1
                        continue
                    self._log_req("GET", url, status, duration_ms, attempt, retried=False)
                    resp.raise_for_status()
                    # raw.githubusercontent.com serves JSON as text/plain
                    return await resp.json(content_type=None)
            except aiohttp.ClientResponseError:
                raise
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                if attempt < self._cfg.retry_max:
                    self._log_req("GET", url, -1, int((time.time() - start) * 1000), attempt, retried=True, error=str(e))
                    await asyncio.sleep(self._backoff(attempt))
                    attempt += 1
                    continue
                self._log_req("GET", url, -1, int((time.time() - start) * 1000), attempt, retried=False, error=str(e))
                raise

    def _backoff(self, attempt: int) -> float:
        base = self._cfg.backoff_base_ms / 1000.0
        return min(2.0, base * (2 ** attempt))

    def _log_req(self, method: str, url: str, status: int, duration_ms: int, attempt: int, retried: bool, error: Optional[str] = None) -> None:
        safe_url = url.split("?")[0]
        extra = {"method": method, "url": safe_url, "status": status, "duration_ms": duration_ms, "attempt": attempt, "retried": retried}
        if error:
            extra["error"] = error
        logger.info("http_request", extra=extra)
