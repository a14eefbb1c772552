"""MCP tool implementations."""

from __future__ import annotations

import logging
import time
from importlib.metadata import version as _pkg_version
from typing import Any

from fastmcp import Context

from ..core.tokenizer import tokenize
from ..runner import ComputeOutcome, DiffSession
from ..types import DiffInputError, DiffOptions, TextSegment, TokenizeOptions
from ._mcp import mcp
from .response import (
    _MODE_DEBUG,
    _MODE_NORMAL,
    _render_error,
    _render_response,
    _response_char_cap,
    _response_mode,
)

logger = logging.getLogger(__name__)


def compare_payload(outcome: ComputeOutcome, mode: str, elapsed_ms: float) -> dict[str, Any]:
    """Shape a compare outcome for the given response mode."""
    result = outcome.result
    payload: dict[str, Any] = {
        "ok": True,
        "tool": "compare_texts",
        "stats": result.stats.to_dict(),
        "navigation": [n.to_dict() for n in result.navigation],
    }
    if mode in _MODE_NORMAL:
        payload["items"] = [item.to_dict() for item in result.items]
    if mode == _MODE_DEBUG:
        payload["route"] = outcome.route
        payload["sequence"] = outcome.sequence
        payload["accepted"] = outcome.accepted
        payload["elapsed_ms"] = round(elapsed_ms, 2)
    return payload


def _segment_dict(segment: TextSegment) -> dict[str, Any]:
    return {
        "index": segment.index,
        "kind": segment.kind.value,
        "content": segment.content,
        "start": segment.start,
        "end": segment.end,
    }


def tokenize_payload(segments: list[TextSegment], mode: str) -> dict[str, Any]:
    """Shape tokenizer output; offsets are included outside compact mode."""
    if mode in _MODE_NORMAL:
        rendered: list[Any] = [_segment_dict(s) for s in segments]
    else:
        rendered = [s.content for s in segments]
    return {
        "ok": True,
        "tool": "tokenize_text",
        "segment_count": len(segments),
        "segments": rendered,
    }


@mcp.tool(
    meta={
        "version": _pkg_version("text-compare-mcp"),
    }
)
async def compare_texts(
    ctx: Context,
    left_text: str,
    right_text: str,
    ignore_case: bool = False,
    ignore_whitespace: bool = False,
    ignore_punctuation: bool = False,
    split_by_paragraph: bool = True,
    split_by_sentence: bool = True,
    async_hint: bool = True,
) -> str:
    """Compare two texts and return a structured diff.

    Output:
    - stats: additions, deletions, modifications, word/line counts, similarity (0-100)
    - navigation: one entry per change with line number and a short preview
    - items (normal/debug mode): every equal/add/remove/modify item with positions

    Timing guidance:
    - With both split switches off the comparison is character-level with
      changes widened to whole lines.
    - Large inputs are diffed off the event loop; progress is reported while
      they run.

    Args:
        left_text: Original document
        right_text: Updated document
        ignore_case: Compare case-insensitively
        ignore_whitespace: Collapse whitespace runs before comparing
        ignore_punctuation: Drop punctuation before comparing
        split_by_paragraph: Compare whole paragraphs (default: true)
        split_by_sentence: Compare whole sentences (default: true)
        async_hint: Allow the background worker for large inputs (default: true)
    """
    session: DiffSession = ctx.lifespan_context["session"]
    mode = _response_mode()
    max_response_chars = _response_char_cap()

    async def on_progress(progress: float) -> None:
        await ctx.report_progress(progress=progress, total=100)

    try:
        options = DiffOptions(
            ignore_case=ignore_case,
            ignore_whitespace=ignore_whitespace,
            ignore_punctuation=ignore_punctuation,
            split_by_paragraph=split_by_paragraph,
            split_by_sentence=split_by_sentence,
            async_hint=async_hint,
        )
        start = time.perf_counter()
        outcome = await session.compute_async(left_text, right_text, options, on_progress)
        elapsed_ms = (time.perf_counter() - start) * 1000
        payload = compare_payload(outcome, mode, elapsed_ms)
        return _render_response(payload, max_response_chars)

    except DiffInputError as e:
        return _render_error("compare_texts", str(e), max_response_chars)
    except Exception:
        logger.exception("Unexpected error in compare_texts")
        return _render_error(
            "compare_texts", "Internal error occurred while comparing", max_response_chars
        )


@mcp.tool()
def tokenize_text(
    text: str,
    split_by_paragraph: bool = True,
    split_by_sentence: bool = True,
    preserve_whitespace: bool = False,
) -> str:
    """Split text into paragraphs, sentences or word/punctuation tokens.

    With both split switches off, text is cut into tokens: each CJK
    character alone, letter and digit runs kept together.

    Args:
        text: Text to segment
        split_by_paragraph: Split on blank lines (default: true)
        split_by_sentence: Split after . ! ? ; and their CJK forms (default: true)
        preserve_whitespace: Keep whitespace tokens in token mode (default: false)
    """
    mode = _response_mode()
    max_response_chars = _response_char_cap()

    if not isinstance(text, str):
        return _render_error(
            "tokenize_text", f"text: expected str, got {type(text).__name__}", max_response_chars
        )

    options = TokenizeOptions(
        split_by_paragraph=split_by_paragraph,
        split_by_sentence=split_by_sentence,
        preserve_whitespace=preserve_whitespace,
    )
    segments = tokenize(text, options)
    return _render_response(tokenize_payload(segments, mode), max_response_chars)
