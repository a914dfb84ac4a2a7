from __future__ import annotations

from typing import Awaitable, Callable

from hub.context import HubContext
from hub.services import ServiceKind


def _coerce_limit(value, default: int) -> int:
    try:
        limit = int(value)
    except (TypeError, ValueError):
        return default
    return max(1, min(limit, 100))


def make_arr_status(ctx: HubContext) -> Callable[[dict], Awaitable[dict]]:
    """Probe every configured service at once."""

    async def impl(args: dict) -> dict:
        result = await ctx.aggregator.probe_all()
        out = result.to_dict()
        out["configured"] = [h.name for h in ctx.registry.live_services()]
        out["misconfigured"] = ctx.registry.rejected()
        out["overall_health"] = "healthy" if out["summary"]["failed"] == 0 else "degraded"
        return out

    return impl


def make_arr_search_all(ctx: HubContext) -> Callable[[dict], Awaitable[dict]]:
    async def impl(args: dict) -> dict:
        query = str(args.get("query") or "").strip()
        if not query:
            raise ValueError("query is required")
        limit = _coerce_limit(args.get("limit"), ctx.search_limit)
        result = await ctx.aggregator.search_all(query, limit)
        out = result.to_dict()
        out["query"] = query
        out["results"] = result.successes()
        out["total_matches"] = sum(len(v) for v in out["results"].values() if isinstance(v, list))
        return out

    return impl


def make_service_status(ctx: HubContext) -> Callable[[dict], Awaitable[dict]]:
    async def impl(args: dict) -> dict:
        kind = ServiceKind.parse(args.get("service"))
        # Raises ServiceNotConfigured before any network call
        handle = ctx.registry.get(kind)
        return await handle.client.probe()

    return impl
