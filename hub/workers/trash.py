from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from integrations.errors import UnexpectedResponse
from integrations.trash_guides import SUPPORTED_SERVICES, TrashGuidesSource, score_for
from integrations.ttl_cache import ReferenceCache

from hub.comparator import compare
from hub.services import ServiceKind, ServiceRegistry

log = logging.getLogger("arrhub.trash")

# TRaSH publishes a few hundred custom formats per service
_CF_FETCH_CONCURRENCY = 8

_VARIANT_FALLBACKS = ("default", "standard")


class ReferenceNotFound(LookupError):
    def __init__(self, message: str, available: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.available = available or []


def _dict_items(value: Any, what: str, service: Optional[str] = None) -> List[Dict[str, Any]]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, dict) for v in value):
        raise UnexpectedResponse(f"{what} is not a list of objects", service=service)
    return value


def _format_items(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Custom-format name -> trash_id map of a reference profile."""
    items = doc.get("formatItems") or {}
    if not isinstance(items, dict):
        raise UnexpectedResponse("reference profile formatItems is not an object")
    return items


def _pick_variant(section: Any, variant: str) -> Optional[str]:
    if not isinstance(section, dict):
        return None
    for key in (variant, *_VARIANT_FALLBACKS):
        if key in section and isinstance(section[key], str):
            return section[key]
    return None


# --------------------------- field adapters ---------------------------
def live_profile_fields(profile: Dict[str, Any], recommended_cf_names: Optional[set] = None) -> Dict[str, Any]:
    """Flatten a live *arr quality profile into comparable named fields."""
    fields: Dict[str, Any] = {}
    for key in ("upgradeAllowed", "minFormatScore", "cutoffFormatScore"):
        if key in profile:
            fields[key] = profile[key]

    names_by_id: Dict[Any, str] = {}
    for item in _dict_items(profile.get("items"), "profile items"):
        quality = item.get("quality")
        if isinstance(quality, dict):
            name, item_id = quality.get("name"), quality.get("id")
        else:
            name, item_id = item.get("name"), item.get("id")
        if not name:
            continue
        names_by_id[item_id] = name
        fields[f"quality:{name}"] = bool(item.get("allowed"))
    if "cutoff" in profile:
        fields["cutoff"] = names_by_id.get(profile["cutoff"])

    wanted = {n.casefold() for n in (recommended_cf_names or set())}
    for fi in _dict_items(profile.get("formatItems"), "profile formatItems"):
        name = fi.get("name")
        score = fi.get("score", 0)
        # Live profiles list every custom format; unscored ones are noise
        if name and (score or name.casefold() in wanted):
            fields[f"cf:{name}"] = score
    return fields


def recommended_profile_fields(doc: Dict[str, Any], cf_index: Dict[str, Dict[str, Any]], score_set: Optional[str] = None) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    for key in ("upgradeAllowed", "minFormatScore", "cutoffFormatScore", "cutoff"):
        if key in doc:
            fields[key] = doc[key]
    for item in _dict_items(doc.get("items"), "reference profile items"):
        if item.get("name"):
            fields[f"quality:{item['name']}"] = bool(item.get("allowed"))
    score_set = score_set or doc.get("trash_score_set")
    for cf_name, trash_id in _format_items(doc).items():
        cf = cf_index.get(trash_id)
        fields[f"cf:{cf_name}"] = score_for(cf, score_set) if cf else None
    return fields


def naming_fields(service: str, doc: Dict[str, Any], variant: str) -> Dict[str, Any]:
    if service == "radarr":
        pairs = {
            "standardMovieFormat": _pick_variant(doc.get("file"), variant),
            "movieFolderFormat": _pick_variant(doc.get("folder"), variant),
        }
    else:
        episodes = doc.get("episodes")
        if not isinstance(episodes, dict):
            episodes = {}
        pairs = {
            "standardEpisodeFormat": _pick_variant(episodes.get("standard"), variant),
            "dailyEpisodeFormat": _pick_variant(episodes.get("daily"), variant),
            "animeEpisodeFormat": _pick_variant(episodes.get("anime"), variant),
            "seriesFolderFormat": _pick_variant(doc.get("series"), variant),
            "seasonFolderFormat": _pick_variant(doc.get("season"), variant),
        }
    return {k: v for k, v in pairs.items() if v is not None}


# --------------------------- worker ---------------------------
class TrashWorker:
    """Reference-document reads (through the cache) and comparisons against live services."""

    def __init__(self, source: TrashGuidesSource, cache: ReferenceCache, registry: ServiceRegistry,
                 ttl_sec: Optional[float] = None) -> None:
        self.source = source
        self.cache = cache
        self.registry = registry
        self.ttl_sec = ttl_sec

    @staticmethod
    def _service(service: Any) -> str:
        kind = ServiceKind.parse(service)
        if kind.value not in SUPPORTED_SERVICES:
            raise ValueError(f"TRaSH Guides only cover {', '.join(SUPPORTED_SERVICES)}, not {kind.value}")
        return kind.value

    async def _listing(self, service: str, category: str) -> List[str]:
        return await self.cache.get(
            f"{service}/{category}",
            lambda: self.source.list_documents(service, category),
            self.ttl_sec,
        )

    async def _document(self, service: str, category: str, name: str) -> Dict[str, Any]:
        return await self.cache.get(
            f"{service}/{category}/{name}",
            lambda: self.source.fetch_document(service, category, name),
            self.ttl_sec,
        )

    async def _documents(self, service: str, category: str) -> Dict[str, Dict[str, Any]]:
        names = await self._listing(service, category)
        sem = asyncio.Semaphore(_CF_FETCH_CONCURRENCY)

        async def one(name: str) -> Dict[str, Any]:
            async with sem:
                return await self._document(service, category, name)

        docs = await asyncio.gather(*(one(n) for n in names))
        return dict(zip(names, docs))

    async def _resolve_profile(self, service: str, profile: str) -> Dict[str, Any]:
        wanted = str(profile or "").strip()
        if not wanted:
            raise ValueError("profile is required")
        names = await self._listing(service, "quality-profiles")
        for name in names:
            if name.casefold() == wanted.casefold():
                return await self._document(service, "quality-profiles", name)
        # Fall back to the display name inside each document
        docs = await self._documents(service, "quality-profiles")
        for doc in docs.values():
            if str(doc.get("name", "")).casefold() == wanted.casefold():
                return doc
        raise ReferenceNotFound(f"no TRaSH {service} profile named {wanted!r}", available=names)

    async def custom_format_index(self, service: str) -> Dict[str, Dict[str, Any]]:
        """Custom-format documents keyed by trash_id."""
        docs = await self._documents(service, "cf")
        return {doc["trash_id"]: doc for doc in docs.values() if doc.get("trash_id")}

    # --------------------------- operations ---------------------------
    async def list_profiles(self, service: Any) -> Dict[str, Any]:
        service = self._service(service)
        docs = await self._documents(service, "quality-profiles")
        profiles = [
            {
                "id": name,
                "name": doc.get("name", name),
                "description": doc.get("trash_description"),
                "trash_id": doc.get("trash_id"),
            }
            for name, doc in docs.items()
        ]
        return {"service": service, "count": len(profiles), "profiles": profiles}

    async def get_profile(self, service: Any, profile: str) -> Dict[str, Any]:
        service = self._service(service)
        doc = await self._resolve_profile(service, profile)
        return {
            "service": service,
            "name": doc.get("name"),
            "trash_id": doc.get("trash_id"),
            "description": doc.get("trash_description"),
            "upgrade_allowed": doc.get("upgradeAllowed"),
            "cutoff": doc.get("cutoff"),
            "min_format_score": doc.get("minFormatScore"),
            "cutoff_format_score": doc.get("cutoffFormatScore"),
            "qualities": [
                {"name": i.get("name"), "allowed": bool(i.get("allowed")), "items": i.get("items") or []}
                for i in _dict_items(doc.get("items"), "reference profile items")
            ],
            "custom_formats": sorted(_format_items(doc)),
        }

    async def list_custom_formats(self, service: Any) -> Dict[str, Any]:
        service = self._service(service)
        index = await self.custom_format_index(service)
        formats = sorted(
            ({"name": doc.get("name"), "trash_id": tid, "default_score": score_for(doc)} for tid, doc in index.items()),
            key=lambda f: str(f["name"] or "").casefold(),
        )
        return {"service": service, "count": len(formats), "custom_formats": formats}

    async def get_naming(self, service: Any) -> Dict[str, Any]:
        service = self._service(service)
        doc = await self._document(service, "naming", f"{service}-naming")
        return {"service": service, "naming": doc}

    async def get_quality_sizes(self, service: Any) -> Dict[str, Any]:
        service = self._service(service)
        docs = await self._documents(service, "quality-size")
        sizes = [
            {"id": name, "type": doc.get("type"), "trash_id": doc.get("trash_id"), "qualities": doc.get("qualities") or []}
            for name, doc in docs.items()
        ]
        return {"service": service, "quality_sizes": sizes}

    async def compare_profile(
        self,
        service: Any,
        *,
        reference: str,
        profile_id: Optional[int] = None,
        profile_name: Optional[str] = None,
        score_set: Optional[str] = None,
    ) -> Dict[str, Any]:
        service = self._service(service)
        if profile_id is None and not profile_name:
            raise ValueError("profile_id or profile_name is required")
        handle = self.registry.get(service)

        live_profiles, doc, cf_index = await asyncio.gather(
            handle.client.quality_profiles(),
            self._resolve_profile(service, reference),
            self.custom_format_index(service),
        )

        live_profiles = _dict_items(live_profiles, f"{service} quality profiles", service)
        live = None
        for p in live_profiles:
            if profile_id is not None and p.get("id") == profile_id:
                live = p
                break
            if profile_name and str(p.get("name", "")).casefold() == str(profile_name).casefold():
                live = p
                break
        if live is None:
            available = [str(p.get("name")) for p in live_profiles]
            raise ReferenceNotFound(f"no {service} quality profile matching {profile_id or profile_name!r}", available=available)

        recommended = recommended_profile_fields(doc, cf_index, score_set)
        rec_cf_names = {k[len("cf:"):] for k in recommended if k.startswith("cf:")}
        result = compare(live_profile_fields(live, rec_cf_names), recommended)
        log.info("Compared %s profile %r with %r: %s", service, live.get("name"), doc.get("name"), result.summary())
        out = result.to_dict()
        out.update({"service": service, "profile": live.get("name"), "reference": doc.get("name")})
        return out

    async def compare_naming(self, service: Any, media_server: str = "default") -> Dict[str, Any]:
        service = self._service(service)
        handle = self.registry.get(service)
        live, ref = await asyncio.gather(handle.client.naming_config(), self.get_naming(service))
        if not isinstance(live, dict):
            raise UnexpectedResponse(f"{service} naming config is not an object", service=service)
        current = {k: v for k, v in live.items() if k.endswith("Format") and isinstance(v, str)}
        result = compare(current, naming_fields(service, ref["naming"], media_server or "default"))
        out = result.to_dict()
        out.update({"service": service, "media_server": media_server or "default"})
        return out
