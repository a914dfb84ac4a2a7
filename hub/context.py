from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from config.loader import Settings, aggregator_timeout, load_runtime_config, load_settings, search_limit, trash_config
from integrations.http_client import HttpConfig, SharedHttpClient
from integrations.trash_guides import TrashGuidesSource
from integrations.ttl_cache import ReferenceCache

from .aggregator import Aggregator
from .services import ServiceRegistry
from .workers.trash import TrashWorker


@dataclass
class HubContext:
    """Everything the tools share for the life of the process."""

    settings: Settings
    runtime_config: dict
    registry: ServiceRegistry
    aggregator: Aggregator
    cache: ReferenceCache
    http: SharedHttpClient
    trash: TrashWorker
    search_limit: int

    async def close(self) -> None:
        await self.http.close()


def build_context(
    project_root: Path,
    *,
    settings: Optional[Settings] = None,
    runtime_config: Optional[dict] = None,
    registry: Optional[ServiceRegistry] = None,
    source: Optional[TrashGuidesSource] = None,
) -> HubContext:
    settings = settings if settings is not None else load_settings(project_root)
    rc = runtime_config if runtime_config is not None else load_runtime_config(project_root)
    registry = registry if registry is not None else ServiceRegistry.from_settings(settings)

    trash_cfg = trash_config(rc)
    http = SharedHttpClient(base_headers={"User-Agent": "arrhub/0.1"}, config=HttpConfig.from_runtime_config(rc))
    if source is None:
        source = TrashGuidesSource(
            http,
            repo=trash_cfg["repo"],
            branch=trash_cfg["branch"],
            raw_base_url=trash_cfg["raw_base_url"],
            api_base_url=trash_cfg["api_base_url"],
        )
    cache = ReferenceCache(default_ttl_sec=trash_cfg["ttl_sec"])

    return HubContext(
        settings=settings,
        runtime_config=rc,
        registry=registry,
        aggregator=Aggregator(registry, timeout_sec=aggregator_timeout(rc)),
        cache=cache,
        http=http,
        trash=TrashWorker(source, cache, registry),
        search_limit=search_limit(rc),
    )
