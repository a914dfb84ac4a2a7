from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv


SERVICE_NAMES = ("sonarr", "radarr", "lidarr", "readarr", "prowlarr", "lingarr", "bazarr")

DEFAULT_TIMEOUT_SEC = 10.0
DEFAULT_TRASH_TTL_SEC = 3600
DEFAULT_SEARCH_LIMIT = 10


@dataclass(frozen=True)
class Settings:
    sonarr_url: Optional[str] = None
    sonarr_api_key: Optional[str] = None
    radarr_url: Optional[str] = None
    radarr_api_key: Optional[str] = None
    lidarr_url: Optional[str] = None
    lidarr_api_key: Optional[str] = None
    readarr_url: Optional[str] = None
    readarr_api_key: Optional[str] = None
    prowlarr_url: Optional[str] = None
    prowlarr_api_key: Optional[str] = None
    lingarr_url: Optional[str] = None
    lingarr_api_key: Optional[str] = None
    bazarr_url: Optional[str] = None
    bazarr_api_key: Optional[str] = None

    def credentials(self, service: str) -> tuple[Optional[str], Optional[str]]:
        """Return the (url, api_key) pair for a service name."""
        return getattr(self, f"{service}_url"), getattr(self, f"{service}_api_key")


def _env(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def load_settings(project_root: Path) -> Settings:
    env_path = project_root / ".env"
    load_dotenv(env_path)

    values: Dict[str, Optional[str]] = {}
    for name in SERVICE_NAMES:
        prefix = name.upper()
        # *_BASE_URL is accepted for older .env files
        values[f"{name}_url"] = _env(f"{prefix}_URL") or _env(f"{prefix}_BASE_URL")
        values[f"{name}_api_key"] = _env(f"{prefix}_API_KEY")
    return Settings(**values)


def load_runtime_config(project_root: Path) -> dict:
    config_path = project_root / "config" / "config.yaml"
    if not config_path.exists():
        return {}
    with open(config_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _section(runtime_config: dict, name: str) -> Dict[str, Any]:
    return (runtime_config or {}).get(name, {}) or {}


def aggregator_timeout(runtime_config: dict) -> float:
    raw = _section(runtime_config, "aggregator").get("timeoutSec", DEFAULT_TIMEOUT_SEC)
    return float(raw)


def search_limit(runtime_config: dict) -> int:
    raw = _section(runtime_config, "search").get("limitPerService", DEFAULT_SEARCH_LIMIT)
    return int(raw)


def trash_config(runtime_config: dict) -> Dict[str, Any]:
    """Reference-document source settings with defaults filled in."""
    trash = _section(runtime_config, "trash")
    return {
        "ttl_sec": int(trash.get("ttlSec", DEFAULT_TRASH_TTL_SEC)),
        "repo": str(trash.get("repo", "TRaSH-Guides/Guides")),
        "branch": str(trash.get("branch", "master")),
        "raw_base_url": str(trash.get("rawBaseUrl", "https://raw.githubusercontent.com")).rstrip("/"),
        "api_base_url": str(trash.get("apiBaseUrl", "https://api.github.com")).rstrip("/"),
    }

