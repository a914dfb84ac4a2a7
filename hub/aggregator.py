"""
Cross-service fan-out.

Every live handle gets its own task, bounded by its own timeout. Tasks are all
started before any is awaited, and the result keeps canonical service order
no matter which call finishes first. Per-service failures are classified and
reported inline; ``run_all`` itself does not raise for them.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional, Tuple, Union

from integrations.errors import ErrorKind, ServiceTimeout, classify_exception

from .services import ServiceHandle, ServiceRegistry

log = logging.getLogger("arrhub.aggregator")

DEFAULT_TIMEOUT_SEC = 10.0

HandleOp = Callable[[ServiceHandle], Awaitable[Any]]


@dataclass(frozen=True)
class Success:
    payload: Any
    ok = True

    def to_dict(self) -> Dict[str, Any]:
        return {"ok": True, "data": self.payload}


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str
    ok = False

    def to_dict(self) -> Dict[str, Any]:
        return {"ok": False, "error": self.kind.value, "message": self.message}


ServiceOutcome = Union[Success, Failure]


@dataclass
class AggregateResult:
    """One (service name, outcome) pair per participating handle, in canonical order."""

    entries: List[Tuple[str, ServiceOutcome]] = field(default_factory=list)
    elapsed_ms: int = 0

    def __iter__(self) -> Iterator[Tuple[str, ServiceOutcome]]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def outcome(self, service: str) -> Optional[ServiceOutcome]:
        for name, outcome in self.entries:
            if name == service:
                return outcome
        return None

    def successes(self) -> Dict[str, Any]:
        """Successful payloads grouped under their service key."""
        return {name: o.payload for name, o in self.entries if isinstance(o, Success)}

    def failures(self) -> Dict[str, Failure]:
        return {name: o for name, o in self.entries if isinstance(o, Failure)}

    def summary(self) -> Dict[str, int]:
        ok = sum(1 for _, o in self.entries if o.ok)
        return {"total": len(self.entries), "ok": ok, "failed": len(self.entries) - ok}

    def to_dict(self) -> Dict[str, Any]:
        services = []
        for name, outcome in self.entries:
            item = {"service": name}
            item.update(outcome.to_dict())
            services.append(item)
        return {"services": services, "summary": self.summary(), "elapsed_ms": self.elapsed_ms}


class Aggregator:
    def __init__(self, registry: ServiceRegistry, timeout_sec: float = DEFAULT_TIMEOUT_SEC) -> None:
        self.registry = registry
        self.timeout_sec = float(timeout_sec)

    async def run_all(self, op: HandleOp, *, timeout_sec: Optional[float] = None) -> AggregateResult:
        timeout = self.timeout_sec if timeout_sec is None else float(timeout_sec)
        handles = self.registry.live_services()
        start = time.monotonic()

        tasks = [asyncio.ensure_future(self._run_one(handle, op, timeout)) for handle in handles]
        outcomes = await asyncio.gather(*tasks)

        result = AggregateResult(
            entries=[(handle.name, outcome) for handle, outcome in zip(handles, outcomes)],
            elapsed_ms=int((time.monotonic() - start) * 1000),
        )
        summary = result.summary()
        log.info("Fan-out finished: %d ok, %d failed in %d ms", summary["ok"], summary["failed"], result.elapsed_ms)
        return result

    @staticmethod
    async def _call(handle: ServiceHandle, op: HandleOp) -> Any:
        try:
            return await op(handle)
        except asyncio.TimeoutError as e:
            # Raised by the client itself, not by the deadline in _run_one
            raise classify_exception(e, handle.name) from e

    async def _run_one(self, handle: ServiceHandle, op: HandleOp, timeout: float) -> ServiceOutcome:
        try:
            payload = await asyncio.wait_for(self._call(handle, op), timeout=timeout)
        except asyncio.TimeoutError:
            err = ServiceTimeout(f"no response within {timeout:g}s", service=handle.name)
        except Exception as e:
            err = classify_exception(e, handle.name)
        else:
            return Success(payload)
        log.warning("%s failed: %s (%s)", handle.name, err.kind.value, err.message)
        return Failure(err.kind, err.message)

    async def probe_all(self, *, timeout_sec: Optional[float] = None) -> AggregateResult:
        return await self.run_all(lambda h: h.client.probe(), timeout_sec=timeout_sec)

    async def search_all(self, query: str, limit: int = 10, *, timeout_sec: Optional[float] = None) -> AggregateResult:
        return await self.run_all(lambda h: h.client.search(query, limit), timeout_sec=timeout_sec)
