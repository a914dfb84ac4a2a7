from __future__ import annotations

from typing import Awaitable, Callable, Optional

from hub.context import HubContext


def _opt_int(value) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"expected an integer, got {value!r}") from None


def make_trash_list_profiles(ctx: HubContext) -> Callable[[dict], Awaitable[dict]]:
    async def impl(args: dict) -> dict:
        return await ctx.trash.list_profiles(args.get("service"))

    return impl


def make_trash_get_profile(ctx: HubContext) -> Callable[[dict], Awaitable[dict]]:
    async def impl(args: dict) -> dict:
        return await ctx.trash.get_profile(args.get("service"), str(args.get("profile") or ""))

    return impl


def make_trash_list_custom_formats(ctx: HubContext) -> Callable[[dict], Awaitable[dict]]:
    async def impl(args: dict) -> dict:
        return await ctx.trash.list_custom_formats(args.get("service"))

    return impl


def make_trash_get_naming(ctx: HubContext) -> Callable[[dict], Awaitable[dict]]:
    async def impl(args: dict) -> dict:
        return await ctx.trash.get_naming(args.get("service"))

    return impl


def make_trash_get_quality_sizes(ctx: HubContext) -> Callable[[dict], Awaitable[dict]]:
    async def impl(args: dict) -> dict:
        return await ctx.trash.get_quality_sizes(args.get("service"))

    return impl


def make_trash_compare_profile(ctx: HubContext) -> Callable[[dict], Awaitable[dict]]:
    """Compare a live quality profile with a TRaSH reference profile."""

    async def impl(args: dict) -> dict:
        return await ctx.trash.compare_profile(
            args.get("service"),
            reference=str(args.get("reference") or ""),
            profile_id=_opt_int(args.get("profile_id")),
            profile_name=args.get("profile_name"),
            score_set=args.get("score_set"),
        )

    return impl


def make_trash_compare_naming(ctx: HubContext) -> Callable[[dict], Awaitable[dict]]:
    async def impl(args: dict) -> dict:
        return await ctx.trash.compare_naming(args.get("service"), str(args.get("media_server") or "default"))

    return impl
