"""
Chunked diff for large inputs with cooperative progress reporting.

Both texts are cut at the same offsets into chunk pairs of ``chunk_size``
characters (the last one may be shorter) and each pair is diffed on its own.
An edit that straddles a chunk boundary is reported as an unrelated
remove + add on either side of the cut, so change counts above the threshold
are an approximation of what a single compute_diff() would report.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import math
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import replace
from typing import TypeAlias

from ..config import CHUNK_SIZE
from ..core.diff import compute_diff
from ..core.navigation import build_navigation
from ..core.stats import calculate_stats
from ..types import (
    DiffChunk,
    DiffItem,
    DiffOptions,
    DiffResult,
    Position,
    require_options,
    require_text,
)

logger = logging.getLogger(__name__)

ProgressCallback: TypeAlias = Callable[[float], Awaitable[None] | None]


def iter_diff_chunks(
    left_text: str,
    right_text: str,
    options: DiffOptions | None = None,
    chunk_size: int = CHUNK_SIZE,
) -> Iterator[DiffChunk]:
    """
    Diff same-offset chunk pairs one at a time.

    Always yields at least one chunk; inputs that fit in one chunk yield
    exactly the compute_diff() result as a single chunk.
    """
    require_text("left_text", left_text)
    require_text("right_text", right_text)
    options = require_options(options)
    if chunk_size <= 0:
        raise ValueError(f"chunk_size ({chunk_size}) must be > 0")

    total_size = max(len(left_text), len(right_text))
    total = max(1, math.ceil(total_size / chunk_size))

    for index in range(total):
        start = index * chunk_size
        result = compute_diff(
            left_text[start : start + chunk_size],
            right_text[start : start + chunk_size],
            options,
        )
        yield DiffChunk(
            index=index,
            total=total,
            items=result.items,
            partial_stats=result.stats,
        )


async def notify_progress(on_progress: ProgressCallback | None, progress: float) -> None:
    """Call on_progress if set, awaiting it when it returns an awaitable."""
    if on_progress is None:
        return
    outcome = on_progress(progress)
    if inspect.isawaitable(outcome):
        await outcome


def _shift(item: DiffItem, new_id: str, line_offset: int, char_offset: int) -> DiffItem:
    return replace(
        item,
        id=new_id,
        line_number=item.line_number + line_offset,
        position=Position(item.position.start + char_offset, item.position.end + char_offset),
    )


async def compute_diff_async(
    left_text: str,
    right_text: str,
    options: DiffOptions | None = None,
    on_progress: ProgressCallback | None = None,
    chunk_size: int = CHUNK_SIZE,
) -> DiffResult:
    """
    Compute a diff without monopolizing the event loop.

    Inputs no longer than ``chunk_size`` are delegated to compute_diff()
    unchanged. Larger inputs are diffed chunk by chunk, yielding to the loop
    between chunks and reporting progress (0-100) after each one. Navigation
    and stats are computed once over the concatenated items.

    Item positions are offsets into each chunk's compared form shifted by
    the chunk's raw start offset. They are raw document offsets only in
    character mode without whitespace or punctuation folding. Otherwise
    they locate the chunk, not the exact span.

    Args:
        left_text: Original document text
        right_text: Updated document text
        options: Comparison switches
        on_progress: Called with a percentage; may be a coroutine function
        chunk_size: Characters per chunk pair

    Returns:
        DiffResult over the full inputs
    """
    require_text("left_text", left_text)
    require_text("right_text", right_text)
    options = require_options(options)

    if max(len(left_text), len(right_text)) <= chunk_size:
        return compute_diff(left_text, right_text, options)

    items: list[DiffItem] = []
    line_offset = 0
    # Segment rows and whitespace-collapsed lines do not track raw newlines
    count_rows = options.hierarchical or options.ignore_whitespace

    for chunk in iter_diff_chunks(left_text, right_text, options, chunk_size):
        start = chunk.index * chunk_size
        for item in chunk.items:
            items.append(_shift(item, f"diff-{len(items)}", line_offset, start))

        # The next chunk's lines start after every line this one used
        if count_rows:
            line_offset += max((item.line_number for item in chunk.items), default=0)
        else:
            line_offset += max(
                left_text.count("\n", start, start + chunk_size),
                right_text.count("\n", start, start + chunk_size),
            )

        progress = (chunk.index + 1) / chunk.total * 100
        logger.debug(f"Chunk {chunk.index + 1}/{chunk.total}: {len(chunk.items)} items")
        await notify_progress(on_progress, progress)
        await asyncio.sleep(0)

    navigation = build_navigation(items)
    stats = calculate_stats(items, left_text, right_text)
    return DiffResult(items=items, stats=stats, navigation=navigation)
