from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from integrations.errors import UnexpectedResponse, classify_exception


class ArrClient:
    """Shared plumbing for the *arr family (X-Api-Key header, JSON bodies)."""

    service = "arr"
    api_prefix = "/api/v3"
    lookup_path = ""
    lookup_param = "term"

    def __init__(self, base_url: str, api_key: str, timeout: float = 20.0):
        if not base_url or not base_url.strip():
            raise ValueError("base_url cannot be empty")
        if not api_key or not api_key.strip():
            raise ValueError("api_key cannot be empty")
        if not base_url.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")

        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def _new_client(self) -> httpx.AsyncClient:
        # Per-call clients so nothing is bound to a specific event loop
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
                return r.json()
        except Exception as e:
            raise classify_exception(e, self.service) from e

    # System & Status
    async def system_status(self) -> Dict[str, Any]:
        data = await self._get(f"{self.api_prefix}/system/status")
        if not isinstance(data, dict):
            raise UnexpectedResponse("system status is not an object", service=self.service)
        return data

    async def probe(self) -> Dict[str, Any]:
        status = await self.system_status()
        version = status.get("version")
        if not version:
            raise UnexpectedResponse("system status has no version", service=self.service)
        return {
            "service": self.service,
            "reachable": True,
            "version": str(version),
            "app_name": status.get("appName"),
            "branch": status.get("branch"),
        }

    # Search
    def _compact(self, item: Dict[str, Any]) -> Dict[str, Any]:
        return {"title": item.get("title"), "year": item.get("year")}

    async def search(self, query: str, limit: int = 10) -> List[Dict[str, Any]]:
        data = await self._get(f"{self.api_prefix}/{self.lookup_path}", params={self.lookup_param: query})
        if not isinstance(data, list):
            raise UnexpectedResponse("lookup did not return a list", service=self.service)
        return [self._compact(item) for item in data[: max(limit, 0)] if isinstance(item, dict)]


class _ProfileArrClient(ArrClient):
    """v3 apps whose quality profiles and naming can be checked against TRaSH Guides."""

    async def quality_profiles(self) -> List[Dict[str, Any]]:
        data = await self._get("/api/v3/qualityprofile")
        if not isinstance(data, list) or not all(isinstance(p, dict) for p in data):
            raise UnexpectedResponse("quality profiles are not a list of objects", service=self.service)
        return data

    async def naming_config(self) -> Dict[str, Any]:
        data = await self._get("/api/v3/config/naming")
        if not isinstance(data, dict):
            raise UnexpectedResponse("naming config is not an object", service=self.service)
        return data


class SonarrClient(_ProfileArrClient):
    service = "sonarr"
    lookup_path = "series/lookup"

    def _compact(self, item: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "title": item.get("title"),
            "year": item.get("year"),
            "tvdb_id": item.get("tvdbId"),
            "id": item.get("id"),
            "network": item.get("network"),
            "status": item.get("status"),
            "in_library": bool(item.get("id")),
        }


class RadarrClient(_ProfileArrClient):
    service = "radarr"
    lookup_path = "movie/lookup"

    def _compact(self, item: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "title": item.get("title"),
            "year": item.get("year"),
            "tmdb_id": item.get("tmdbId"),
            "imdb_id": item.get("imdbId"),
            "id": item.get("id"),
            "in_library": bool(item.get("id")),
        }


class LidarrClient(ArrClient):
    service = "lidarr"
    api_prefix = "/api/v1"
    lookup_path = "artist/lookup"

    def _compact(self, item: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "title": item.get("artistName"),
            "foreign_artist_id": item.get("foreignArtistId"),
            "id": item.get("id"),
            "in_library": bool(item.get("id")),
        }


class ReadarrClient(ArrClient):
    service = "readarr"
    api_prefix = "/api/v1"
    lookup_path = "author/lookup"

    def _compact(self, item: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "title": item.get("authorName"),
            "foreign_author_id": item.get("foreignAuthorId"),
            "id": item.get("id"),
            "in_library": bool(item.get("id")),
        }


class ProwlarrClient(ArrClient):
    service = "prowlarr"
    api_prefix = "/api/v1"
    lookup_path = "search"
    lookup_param = "query"

    def _compact(self, item: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "title": item.get("title"),
            "indexer": item.get("indexer"),
            "size": item.get("size"),
            "seeders": item.get("seeders"),
            "protocol": item.get("protocol"),
        }

    async def search(self, query: str, limit: int = 10) -> List[Dict[str, Any]]:
        data = await self._get("/api/v1/search", params={"query": query, "type": "search"})
        if not isinstance(data, list):
            raise UnexpectedResponse("search did not return a list", service=self.service)
        return [self._compact(item) for item in data[: max(limit, 0)] if isinstance(item, dict)]
