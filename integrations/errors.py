from __future__ import annotations

import asyncio
import json
from enum import Enum
from typing import Optional

import aiohttp
import httpx


class ErrorKind(str, Enum):
    NOT_CONFIGURED = "not_configured"
    UNAUTHORIZED = "unauthorized"
    UNREACHABLE = "unreachable"
    TIMEOUT = "timeout"
    UNEXPECTED_RESPONSE = "unexpected_response"
    CACHE_FETCH_FAILED = "cache_fetch_failed"


class ServiceError(Exception):
    """Base for every classified failure raised by clients, the aggregator and the cache."""

    kind: ErrorKind = ErrorKind.UNEXPECTED_RESPONSE

    def __init__(self, message: str, *, service: Optional[str] = None) -> None:
        super().__init__(message)
        self.service = service
        self.message = message

    def to_dict(self) -> dict:
        out = {"ok": False, "error": self.kind.value, "message": self.message}
        if self.service:
            out["service"] = self.service
        return out


class ServiceNotConfigured(ServiceError):
    kind = ErrorKind.NOT_CONFIGURED


class ServiceUnauthorized(ServiceError):
    kind = ErrorKind.UNAUTHORIZED


class ServiceUnreachable(ServiceError):
    kind = ErrorKind.UNREACHABLE


class ServiceTimeout(ServiceError):
    kind = ErrorKind.TIMEOUT


class UnexpectedResponse(ServiceError):
    kind = ErrorKind.UNEXPECTED_RESPONSE


class CacheFetchFailed(ServiceError):
    kind = ErrorKind.CACHE_FETCH_FAILED


_BY_KIND = {
    ErrorKind.NOT_CONFIGURED: ServiceNotConfigured,
    ErrorKind.UNAUTHORIZED: ServiceUnauthorized,
    ErrorKind.UNREACHABLE: ServiceUnreachable,
    ErrorKind.TIMEOUT: ServiceTimeout,
    ErrorKind.UNEXPECTED_RESPONSE: UnexpectedResponse,
    ErrorKind.CACHE_FETCH_FAILED: CacheFetchFailed,
}


def error_for(kind: ErrorKind, message: str, *, service: Optional[str] = None) -> ServiceError:
    return _BY_KIND[kind](message, service=service)


def _status_error(status: int, detail: str, service: Optional[str]) -> ServiceError:
    if status in (401, 403):
        return ServiceUnauthorized(f"HTTP {status}: credential rejected", service=service)
    snippet = (detail or "").strip()[:200]
    msg = f"HTTP {status}" + (f": {snippet}" if snippet else "")
    return UnexpectedResponse(msg, service=service)


def classify_exception(exc: BaseException, service: Optional[str] = None) -> ServiceError:
    """Map a raw failure onto the closed ErrorKind taxonomy."""
    if isinstance(exc, ServiceError):
        if service and not exc.service:
            exc.service = service
        return exc

    # Timeouts first: httpx.ConnectTimeout is also a transport error
    if isinstance(exc, (httpx.TimeoutException, aiohttp.ServerTimeoutError, asyncio.TimeoutError)):
        return ServiceTimeout(str(exc) or "request timed out", service=service)

    if isinstance(exc, httpx.HTTPStatusError):
        try:
            detail = exc.response.text
        except Exception:
            detail = ""
        return _status_error(exc.response.status_code, detail, service)
    if isinstance(exc, aiohttp.ClientResponseError):
        return _status_error(exc.status, exc.message, service)

    if isinstance(exc, (httpx.TransportError, aiohttp.ClientConnectionError, OSError)):
        return ServiceUnreachable(str(exc) or exc.__class__.__name__, service=service)

    if isinstance(exc, (json.JSONDecodeError, aiohttp.ContentTypeError, ValueError, KeyError, TypeError, AttributeError)):
        return UnexpectedResponse(f"malformed response: {exc}", service=service)

    return UnexpectedResponse(f"{exc.__class__.__name__}: {exc}", service=service)
