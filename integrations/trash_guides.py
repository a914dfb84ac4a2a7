from __future__ import annotations

from typing import Any, Dict, List, Optional

from integrations.errors import UnexpectedResponse
from integrations.http_client import SharedHttpClient


SUPPORTED_SERVICES = ("radarr", "sonarr")
CATEGORIES = ("quality-profiles", "cf", "naming", "quality-size")


class TrashGuidesSource:
    """Read-only access to the JSON documents published by the TRaSH Guides repo.

    Listings go through the GitHub contents API; documents are read from raw
    content. Neither call is cached here (see ReferenceCache).
    """

    def __init__(
        self,
        http: SharedHttpClient,
        *,
        repo: str = "TRaSH-Guides/Guides",
        branch: str = "master",
        raw_base_url: str = "https://raw.githubusercontent.com",
        api_base_url: str = "https://api.github.com",
    ) -> None:
        self.http = http
        self.repo = repo
        self.branch = branch
        self.raw_base_url = raw_base_url.rstrip("/")
        self.api_base_url = api_base_url.rstrip("/")

    @staticmethod
    def _dir(service: str, category: str) -> str:
        if service not in SUPPORTED_SERVICES:
            raise ValueError(f"TRaSH Guides only cover {', '.join(SUPPORTED_SERVICES)}, not {service!r}")
        if category not in CATEGORIES:
            raise ValueError(f"unknown reference category {category!r}")
        return f"docs/json/{service}/{category}"

    def document_url(self, service: str, category: str, name: str) -> str:
        return f"{self.raw_base_url}/{self.repo}/{self.branch}/{self._dir(service, category)}/{name}.json"

    def listing_url(self, service: str, category: str) -> str:
        return f"{self.api_base_url}/repos/{self.repo}/contents/{self._dir(service, category)}"

    async def list_documents(self, service: str, category: str) -> List[str]:
        """Document names (file stems, sorted) available in one category."""
        data = await self.http.get_json(
            self.listing_url(service, category),
            params={"ref": self.branch},
            headers={"Accept": "application/vnd.github+json"},
        )
        if not isinstance(data, list):
            raise UnexpectedResponse(f"listing for {service}/{category} is not a list")
        names = []
        for item in data:
            if not isinstance(item, dict):
                continue
            filename = str(item.get("name") or "")
            if item.get("type", "file") == "file" and filename.endswith(".json"):
                names.append(filename[: -len(".json")])
        return sorted(names)

    async def fetch_document(self, service: str, category: str, name: str) -> Dict[str, Any]:
        data = await self.http.get_json(self.document_url(service, category, name))
        if not isinstance(data, dict):
            raise UnexpectedResponse(f"{service}/{category}/{name} is not a JSON object")
        return data


def score_for(custom_format: Dict[str, Any], score_set: Optional[str] = None) -> Optional[int]:
    """Recommended score of a custom format document for a score set (falls back to default)."""
    scores = custom_format.get("trash_scores") or {}
    if not isinstance(scores, dict):
        return None
    if score_set and score_set in scores:
        return scores[score_set]
    return scores.get("default")
