from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from integrations.errors import ServiceError
from hub.workers.trash import ReferenceNotFound

from .registry import ToolRegistry

log = logging.getLogger("arrhub.dispatch")


async def invoke_tool(tools: ToolRegistry, name: str, args: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Run one tool call and always answer with a structured dict.

    Success: ``{"ok": True, "tool": name, "result": {...}}``.
    Failure: ``{"ok": False, "tool": name, "error": kind, "message": text}``.
    """
    if name not in tools:
        return {"ok": False, "tool": name, "error": "unknown_tool", "message": f"Unknown tool: {name}"}
    if args is not None and not isinstance(args, dict):
        return {"ok": False, "tool": name, "error": "invalid_arguments", "message": "arguments must be an object"}

    try:
        result = await tools.get(name)(args or {})
    except ServiceError as e:
        log.warning("Tool %s failed: %s (%s)", name, e.kind.value, e.message)
        out = e.to_dict()
        out["tool"] = name
        return out
    except ReferenceNotFound as e:
        return {"ok": False, "tool": name, "error": "not_found", "message": e.message, "available": e.available}
    except (ValueError, TypeError, KeyError) as e:
        return {"ok": False, "tool": name, "error": "invalid_arguments", "message": str(e)}
    return {"ok": True, "tool": name, "result": result}
