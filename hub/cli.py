from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from .context import build_context
from .tools.dispatch import invoke_tool
from .tools.registry import build_tools_and_registry

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="arrhub", description="Query all configured *arr services from one place")
    parser.add_argument("--project-root", type=Path, default=PROJECT_ROOT, help="Directory holding .env and config/")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Probe every configured service")

    search = sub.add_parser("search", help="Search all configured services")
    search.add_argument("query")
    search.add_argument("--limit", type=int, default=None, help="Matches per service")

    sub.add_parser("tools", help="List available tools")

    call = sub.add_parser("call", help="Invoke a tool by name")
    call.add_argument("tool")
    call.add_argument("--args", default="{}", help="Tool arguments as a JSON object")
    return parser


async def _run(ns: argparse.Namespace) -> dict:
    ctx = build_context(ns.project_root)
    try:
        definitions, tools = build_tools_and_registry(ctx)
        if ns.command == "tools":
            return {"ok": True, "tools": [{"name": d["name"], "description": d["description"]} for d in definitions]}
        if ns.command == "status":
            return await invoke_tool(tools, "arr_status")
        if ns.command == "search":
            return await invoke_tool(tools, "arr_search_all", {"query": ns.query, "limit": ns.limit})
        try:
            args = json.loads(ns.args)
        except json.JSONDecodeError as e:
            return {"ok": False, "tool": ns.tool, "error": "invalid_arguments", "message": f"--args is not valid JSON: {e}"}
        return await invoke_tool(tools, ns.tool, args)
    finally:
        await ctx.close()


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=os.getenv("ARRHUB_LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    ns = _parser().parse_args(argv)
    out = asyncio.run(_run(ns))
    print(json.dumps(out, indent=2, default=str))
    return 0 if out.get("ok") else 1
