from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import httpx

from integrations.errors import UnexpectedResponse, classify_exception


class LingarrClient:
    service = "lingarr"

    def __init__(self, base_url: str, api_key: str, timeout: float = 20.0):
        if not base_url or not base_url.strip():
            raise ValueError("base_url cannot be empty")
        if not api_key or not api_key.strip():
            raise ValueError("api_key cannot be empty")
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"X-Api-Key": self.api_key},
            timeout=self.timeout,
        )

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            async with self._new_client() as client:
                if params:
                    r = await client.get(path, params=params)
                else:
                    r = await client.get(path)
                r.raise_for_status()
                # Lingarr answers some calls with an empty body
                if not r.content:
                    return {}
                return r.json()
        except Exception as e:
            raise classify_exception(e, self.service) from e

    async def version(self) -> Dict[str, Any]:
        return await self._get("/api/Version")

    async def probe(self) -> Dict[str, Any]:
        info = await self.version()
        if not isinstance(info, dict) or not info.get("currentVersion"):
            raise UnexpectedResponse("version response has no currentVersion", service=self.service)
        return {
            "service": self.service,
            "reachable": True,
            "version": str(info["currentVersion"]),
            "latest_version": info.get("latestVersion"),
            "update_available": bool(info.get("newVersion")),
        }

    async def _media_page(self, kind: str, query: str, page_size: int) -> List[Dict[str, Any]]:
        params = {"pageNumber": 1, "pageSize": page_size, "ascending": "true", "searchQuery": query}
        data = await self._get(f"/api/Media/{kind}", params=params)
        if not isinstance(data, dict) or not isinstance(data.get("items"), list):
            raise UnexpectedResponse(f"{kind} page has no items", service=self.service)
        return data["items"]

    async def search(self, query: str, limit: int = 10) -> List[Dict[str, Any]]:
        limit = max(limit, 0)
        movies, shows = await asyncio.gather(
            self._media_page("movies", query, limit or 1),
            self._media_page("shows", query, limit or 1),
        )
        out: List[Dict[str, Any]] = []
        for m in movies:
            out.append({"title": m.get("title"), "type": "movie", "id": m.get("id"), "radarr_id": m.get("radarrId")})
        for s in shows:
            out.append({"title": s.get("title"), "type": "show", "id": s.get("id"), "sonarr_id": s.get("sonarrId")})
        return out[:limit]
