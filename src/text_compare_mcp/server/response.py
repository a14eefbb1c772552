"""Response rendering helpers for the MCP server."""

from __future__ import annotations

import json
from typing import Any

from ..config import TOOL_MAX_RESPONSE_CHARS, TOOL_OUTPUT_MODE

_MODE_NORMAL = {"normal", "debug"}
_MODE_DEBUG = "debug"


def _response_mode() -> str:
    """Global response mode from environment-backed config."""
    return TOOL_OUTPUT_MODE


def _response_char_cap() -> int | None:
    """Global response size cap from environment-backed config."""
    return TOOL_MAX_RESPONSE_CHARS if TOOL_MAX_RESPONSE_CHARS > 0 else None


def _minimal_payload(payload: dict[str, Any]) -> dict[str, Any]:
    """Build minimal JSON payload when response exceeds the size cap."""
    keep_order = ("ok", "tool", "stats", "segment_count", "error")
    minimal: dict[str, Any] = {}
    for key in keep_order:
        if key in payload:
            minimal[key] = payload[key]
    minimal["truncated"] = True
    minimal["message"] = "Response truncated by max_response_chars"
    return minimal


def _dumps(payload: dict[str, Any]) -> str:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def _render_response(payload: dict[str, Any], max_response_chars: int | None) -> str:
    """Render tool response as compact JSON with optional size cap."""
    body = _dumps(payload)
    if max_response_chars is not None and max_response_chars > 0:
        if len(body) > max_response_chars:
            body = _dumps(_minimal_payload(payload))
        if len(body) > max_response_chars:
            body = json.dumps({"ok": False, "truncated": True}, separators=(",", ":"))
    return body


def _render_error(tool: str, message: str, max_response_chars: int | None) -> str:
    """Render consistent error responses."""
    payload = {"ok": False, "tool": tool, "error": message}
    return _render_response(payload, max_response_chars)
