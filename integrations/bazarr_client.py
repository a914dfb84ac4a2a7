from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from integrations.errors import UnexpectedResponse, classify_exception


class BazarrClient:
    """Bazarr subtitle manager. Authenticates with an ``apikey`` query parameter."""

    service = "bazarr"

    def __init__(self, base_url: str, api_key: str, timeout: float = 20.0):
        if not base_url or not base_url.strip():
            raise ValueError("base_url cannot be empty")
        if not api_key or not api_key.strip():
            raise ValueError("api_key cannot be empty")
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        query = dict(params or {})
        query["apikey"] = self.api_key
        try:
            async with self._new_client() as client:
                r = await client.get(path, params=query)
                r.raise_for_status()
                return r.json()
        except Exception as e:
            raise classify_exception(e, self.service) from e

    @staticmethod
    def _unwrap(payload: Any) -> Any:
        # Most Bazarr endpoints wrap their body in {"data": ...}
        if isinstance(payload, dict) and "data" in payload:
            return payload["data"]
        return payload

    async def system_status(self) -> Dict[str, Any]:
        data = self._unwrap(await self._get("/api/system/status"))
        if not isinstance(data, dict):
            raise UnexpectedResponse("system status is not an object", service=self.service)
        return data

    async def probe(self) -> Dict[str, Any]:
        status = await self.system_status()
        version = status.get("bazarr_version")
        if not version:
            raise UnexpectedResponse("system status has no bazarr_version", service=self.service)
        return {
            "service": self.service,
            "reachable": True,
            "version": str(version),
            "sonarr_version": status.get("sonarr_version") or None,
            "radarr_version": status.get("radarr_version") or None,
        }

    async def search(self, query: str, limit: int = 10) -> List[Dict[str, Any]]:
        data = self._unwrap(await self._get("/api/system/searches", params={"query": query}))
        if not isinstance(data, list):
            raise UnexpectedResponse("search did not return a list", service=self.service)
        out = []
        for item in data[: max(limit, 0)]:
            if not isinstance(item, dict):
                continue
            out.append({
                "title": item.get("title"),
                "year": item.get("year"),
                "sonarr_series_id": item.get("sonarrSeriesId"),
                "radarr_id": item.get("radarrId"),
                "type": "series" if item.get("sonarrSeriesId") else "movie",
            })
        return out
