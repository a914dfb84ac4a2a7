from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, List, Tuple

from hub.context import HubContext

from .tool_impl_services import make_arr_search_all, make_arr_status, make_service_status
from .tool_impl_trash import (
    make_trash_compare_naming,
    make_trash_compare_profile,
    make_trash_get_naming,
    make_trash_get_profile,
    make_trash_get_quality_sizes,
    make_trash_list_custom_formats,
    make_trash_list_profiles,
)


ToolCallable = Callable[[dict], Awaitable[dict]]


class ToolRegistry:
    def __init__(self) -> None:
        self._tools: Dict[str, ToolCallable] = {}

    def register(self, name: str, fn: ToolCallable) -> None:
        self._tools[name] = fn

    def get(self, name: str) -> ToolCallable:
        return self._tools[name]

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def names(self) -> List[str]:
        return sorted(self._tools.keys())


_SERVICE_ENUM = ["sonarr", "radarr", "lidarr", "readarr", "prowlarr", "lingarr", "bazarr"]
_TRASH_SERVICE = {"type": "string", "enum": ["radarr", "sonarr"], "description": "Service the guide applies to"}


def tool_definitions() -> List[Dict[str, Any]]:
    def fn(name: str, description: str, params: Dict[str, Any], required: List[str] | None = None) -> Dict[str, Any]:
        return {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": params,
                "required": required or [],
                "additionalProperties": False,
            },
        }

    return [
        fn("arr_status", "Check connectivity and version of every configured service in parallel.", {}),
        fn("arr_search_all", "Search all configured services at once; results are grouped by service.", {
            "query": {"type": "string", "description": "Search term (title, artist, author, ...)"},
            "limit": {"type": ["integer", "null"], "description": "Maximum matches per service (default: 10)"},
        }, ["query"]),
        fn("service_status", "Check a single service's connectivity and version.", {
            "service": {"type": "string", "enum": _SERVICE_ENUM},
        }, ["service"]),
        fn("trash_list_profiles", "List TRaSH Guides recommended quality profiles.", {
            "service": _TRASH_SERVICE,
        }, ["service"]),
        fn("trash_get_profile", "Get one TRaSH Guides quality profile with its qualities and custom formats.", {
            "service": _TRASH_SERVICE,
            "profile": {"type": "string", "description": "Profile file id (e.g. 'hd-bluray-web') or display name"},
        }, ["service", "profile"]),
        fn("trash_list_custom_formats", "List TRaSH Guides custom formats with their default scores.", {
            "service": _TRASH_SERVICE,
        }, ["service"]),
        fn("trash_get_naming", "Get TRaSH Guides recommended naming schemes.", {
            "service": _TRASH_SERVICE,
        }, ["service"]),
        fn("trash_get_quality_sizes", "Get TRaSH Guides recommended quality size limits.", {
            "service": _TRASH_SERVICE,
        }, ["service"]),
        fn("trash_compare_profile", "Compare a live quality profile against a TRaSH Guides profile.", {
            "service": _TRASH_SERVICE,
            "profile_id": {"type": ["integer", "null"], "description": "Live quality profile id"},
            "profile_name": {"type": ["string", "null"], "description": "Live quality profile name (if no id)"},
            "reference": {"type": "string", "description": "TRaSH profile id or name to compare with"},
            "score_set": {"type": ["string", "null"], "description": "TRaSH score set (default: profile's own or 'default')"},
        }, ["service", "reference"]),
        fn("trash_compare_naming", "Compare live naming configuration against TRaSH Guides recommendations.", {
            "service": _TRASH_SERVICE,
            "media_server": {"type": ["string", "null"], "description": "Naming variant, e.g. default, plex-imdb, emby-tmdb"},
        }, ["service"]),
    ]


def build_tools_and_registry(ctx: HubContext) -> Tuple[List[Dict[str, Any]], ToolRegistry]:
    tools = ToolRegistry()

    # Cross-service
    tools.register("arr_status", make_arr_status(ctx))
    tools.register("arr_search_all", make_arr_search_all(ctx))
    tools.register("service_status", make_service_status(ctx))

    # Reference data
    tools.register("trash_list_profiles", make_trash_list_profiles(ctx))
    tools.register("trash_get_profile", make_trash_get_profile(ctx))
    tools.register("trash_list_custom_formats", make_trash_list_custom_formats(ctx))
    tools.register("trash_get_naming", make_trash_get_naming(ctx))
    tools.register("trash_get_quality_sizes", make_trash_get_quality_sizes(ctx))
    tools.register("trash_compare_profile", make_trash_compare_profile(ctx))
    tools.register("trash_compare_naming", make_trash_compare_naming(ctx))

    return tool_definitions(), tools
