"""Diff statistics: per-type counts, word/line totals and similarity."""

from __future__ import annotations

import re
from typing import assert_never

from ..types import DiffItem, DiffStats, DiffType

_WHITESPACE_RUN = re.compile(r"\s+")


def count_words(text: str) -> int:
    """Number of non-empty tokens after splitting on whitespace runs."""
    return sum(1 for word in _WHITESPACE_RUN.split(text) if word)


def count_lines(text: str) -> int:
    """Number of newline-separated pieces (an empty string is one line)."""
    return len(text.split("\n"))


def similarity_percent(items: list[DiffItem], left_text: str, right_text: str) -> float:
    """
    Similarity in [0, 100] from changed characters over the longer raw input.

    Two empty inputs are 100% similar.
    """
    max_len = max(len(left_text), len(right_text))
    if max_len == 0:
        return 100.0
    changed = sum(len(item.content) for item in items if item.type is not DiffType.EQUAL)
    similarity = (max_len - changed) / max_len * 100
    return max(0.0, min(100.0, similarity))


def calculate_stats(items: list[DiffItem], left_text: str, right_text: str) -> DiffStats:
    """Aggregate counts over items; left/right are the raw (unprocessed) inputs."""
    additions = deletions = modifications = 0
    added_words = deleted_words = 0
    added_lines = deleted_lines = 0

    for item in items:
        match item.type:
            case DiffType.ADD:
                additions += 1
                added_words += count_words(item.content)
                added_lines += count_lines(item.content)
            case DiffType.REMOVE:
                deletions += 1
                deleted_words += count_words(item.content)
                deleted_lines += count_lines(item.content)
            case DiffType.MODIFY:
                modifications += 1
                added_words += count_words(item.content)
                deleted_words += count_words(item.original_content or "")
            case DiffType.EQUAL:
                pass
            case _:
                assert_never(item.type)

    return DiffStats(
        total_changes=additions + deletions + modifications,
        additions=additions,
        deletions=deletions,
        modifications=modifications,
        added_words=added_words,
        deleted_words=deleted_words,
        added_lines=added_lines,
        deleted_lines=deleted_lines,
        similarity=similarity_percent(items, left_text, right_text),
    )
