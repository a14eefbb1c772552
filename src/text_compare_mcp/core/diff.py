"""
Structured text diff: edit script, line items, modify merging.

Pipeline per call:
1. Preprocess (case fold, whitespace collapse, punctuation strip)
2. Edit script via diff-match-patch (Myers with time budget) + semantic cleanup
   - character mode: hunks widened to whole physical lines
   - hierarchical mode: each paragraph/sentence segment is one atomic unit
3. One DiffItem per physical line (equal / add / remove)
4. Adjacent remove+add collapsed into modify
5. Navigation index and statistics

A one-character edit inside a long segment shows up in hierarchical mode as
the whole segment removed and re-added. That is the cost of comparing
segments atomically.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import replace

from diff_match_patch import diff_match_patch

from ..config import DIFF_EDIT_COST, DIFF_TIMEOUT
from ..types import (
    DiffItem,
    DiffOptions,
    DiffResult,
    DiffType,
    EditOp,
    Position,
    TokenizeOptions,
    require_options,
    require_text,
)
from .navigation import build_navigation
from .stats import calculate_stats
from .tokenizer import tokenize

logger = logging.getLogger(__name__)

DELETE = diff_match_patch.DIFF_DELETE
INSERT = diff_match_patch.DIFF_INSERT
EQUAL = diff_match_patch.DIFF_EQUAL

_WHITESPACE_RUN = re.compile(r"\s+")
_PUNCTUATION = re.compile(r"[^\w\s]")  # \w keeps letters, digits and CJK ideographs


# ---------------------------------------------------------------------------
# Preprocessing
# ---------------------------------------------------------------------------


def preprocess(text: str, options: DiffOptions) -> str:
    """Apply case folding, whitespace collapse and punctuation strip, in that order."""
    if options.ignore_case:
        text = text.lower()
    if options.ignore_whitespace:
        text = _WHITESPACE_RUN.sub(" ", text).strip()
    if options.ignore_punctuation:
        text = _PUNCTUATION.sub("", text)
    return text


# ---------------------------------------------------------------------------
# Edit scripts
# ---------------------------------------------------------------------------


def _matcher(timeout: float) -> diff_match_patch:
    dmp = diff_match_patch()
    dmp.Diff_Timeout = timeout
    dmp.Diff_EditCost = DIFF_EDIT_COST
    return dmp


def _run_diff(dmp: diff_match_patch, text1: str, text2: str, checklines: bool) -> list[EditOp]:
    """diff_main + semantic cleanup, logging when the time budget ran out."""
    start = time.perf_counter()
    diffs = dmp.diff_main(text1, text2, checklines)
    elapsed = time.perf_counter() - start
    if dmp.Diff_Timeout > 0 and elapsed >= dmp.Diff_Timeout:
        logger.warning(
            f"Diff hit {dmp.Diff_Timeout:.1f}s budget ({len(text1)}/{len(text2)} units); "
            "returning best-effort edit script"
        )
    dmp.diff_cleanupSemantic(diffs)
    return [(op, text) for op, text in diffs]


def _at_line_boundary(parts: list[str]) -> bool:
    text = "".join(parts)
    return not text or text.endswith("\n")


def snap_to_lines(diffs: list[EditOp]) -> list[EditOp]:
    """Widen every hunk to whole physical lines.

    The partial line before a hunk (tail of the previous equal run) and the
    partial line after it (head of the next equal run) are moved into both
    the delete and the insert side. Equal + delete still spells the left
    text and equal + insert the right text.
    """
    diffs = list(diffs)
    result: list[EditOp] = []
    n = len(diffs)
    i = 0

    while i < n:
        op, text = diffs[i]
        if op == EQUAL:
            result.append((op, text))
            i += 1
            continue

        prefix = ""
        if result and result[-1][0] == EQUAL:
            prev = result[-1][1]
            cut = prev.rfind("\n") + 1
            prefix = prev[cut:]
            if cut:
                result[-1] = (EQUAL, prev[:cut])
            else:
                result.pop()

        left = [prefix]
        right = [prefix]
        while True:
            while i < n and diffs[i][0] != EQUAL:
                (left if diffs[i][0] == DELETE else right).append(diffs[i][1])
                i += 1
            if i >= n or (_at_line_boundary(left) and _at_line_boundary(right)):
                break
            following = diffs[i][1]
            cut = following.find("\n")
            if cut < 0:
                # Equal run ends mid-line; keep absorbing the edits after it
                left.append(following)
                right.append(following)
                i += 1
                continue
            left.append(following[:cut])
            right.append(following[:cut])
            diffs[i] = (EQUAL, following[cut:])
            break

        deleted = "".join(left)
        inserted = "".join(right)
        if deleted:
            result.append((DELETE, deleted))
        if inserted:
            result.append((INSERT, inserted))

    return result


def compute_character_diff(
    left: str,
    right: str,
    options: DiffOptions | None = None,
    *,
    timeout: float = DIFF_TIMEOUT,
) -> list[EditOp]:
    """
    Character-level edit script over the preprocessed texts.

    Args:
        left: Original text
        right: Updated text
        options: Preprocessing switches
        timeout: Time budget in seconds; on expiry a coarser script is returned

    Returns:
        (op, text) tuples covering both inputs exactly once
    """
    options = require_options(options)
    dmp = _matcher(timeout)
    diffs = _run_diff(dmp, preprocess(left, options), preprocess(right, options), True)
    return snap_to_lines(diffs)


def _segment_units(text: str, options: DiffOptions) -> list[str]:
    """Tokenize raw text into segments, then preprocess each one."""
    tokenize_options = TokenizeOptions(
        split_by_paragraph=options.split_by_paragraph,
        split_by_sentence=options.split_by_sentence,
        preserve_whitespace=not options.ignore_whitespace,
    )
    units = (preprocess(seg.content, options) for seg in tokenize(text, tokenize_options))
    return [unit for unit in units if unit]


def _encode_units(
    left: list[str], right: list[str]
) -> tuple[str, str, list[str]]:
    """Map each distinct segment to one character so the diff treats it atomically."""
    table: dict[str, int] = {}
    units: list[str] = [""]  # index 0 unused, matches diff_linesToChars

    def encode(segments: list[str]) -> str:
        chars: list[str] = []
        for seg in segments:
            code = table.get(seg)
            if code is None:
                code = len(units)
                table[seg] = code
                units.append(seg)
            chars.append(chr(code))
        return "".join(chars)

    return encode(left), encode(right), units


def compute_hierarchical_diff(
    left: str,
    right: str,
    options: DiffOptions | None = None,
    *,
    timeout: float = DIFF_TIMEOUT,
) -> list[EditOp]:
    """
    Segment-level edit script: paragraphs/sentences are atomic units.

    Each segment is rendered as one newline-terminated line of the result.
    """
    options = require_options(options)
    left_units = _segment_units(left, options)
    right_units = _segment_units(right, options)

    chars1, chars2, units = _encode_units(left_units, right_units)
    dmp = _matcher(timeout)
    # Cleanup runs on the encoded form so it can never split a segment
    encoded = _run_diff(dmp, chars1, chars2, False)

    return [(op, "".join(units[ord(c)] + "\n" for c in chars)) for op, chars in encoded]


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------


def _physical_lines(text: str) -> list[tuple[str, bool]]:
    """Split into (line, newline_follows); a final terminator adds no empty line."""
    pieces = text.split("\n")
    last = len(pieces) - 1
    lines = [(piece, k < last) for k, piece in enumerate(pieces)]
    if last > 0 and pieces[-1] == "":
        lines.pop()
    return lines


def diff_to_items(diffs: list[EditOp]) -> list[DiffItem]:
    """
    Emit one DiffItem per physical line of an edit script.

    Equal and remove positions are offsets into the (preprocessed) left text,
    add positions into the right text. A delete directly followed by an insert
    is laid out row by row, so removed line k and added line k share a line
    number and end up adjacent for merge_modifications().
    """
    items: list[DiffItem] = []
    left_pos = 0
    right_pos = 0
    line_number = 1

    def emit(dtype: DiffType, content: str, start: int) -> None:
        items.append(
            DiffItem(
                id=f"diff-{len(items)}",
                type=dtype,
                content=content,
                line_number=line_number,
                position=Position(start, start + len(content)),
                original_content=content if dtype is DiffType.REMOVE else None,
            )
        )

    i = 0
    n = len(diffs)
    while i < n:
        op, text = diffs[i]

        if op == EQUAL:
            for line, newline in _physical_lines(text):
                if line:
                    emit(DiffType.EQUAL, line, left_pos)
                step = len(line) + newline
                left_pos += step
                right_pos += step
                if newline:
                    line_number += 1
            i += 1
            continue

        deleted = text if op == DELETE else ""
        inserted = text if op == INSERT else ""
        if op == DELETE and i + 1 < n and diffs[i + 1][0] == INSERT:
            inserted = diffs[i + 1][1]
            i += 1
        i += 1

        old_lines = _physical_lines(deleted) if deleted else []
        new_lines = _physical_lines(inserted) if inserted else []
        for row in range(max(len(old_lines), len(new_lines))):
            crossed = False
            if row < len(old_lines):
                line, newline = old_lines[row]
                emit(DiffType.REMOVE, line, left_pos)
                left_pos += len(line) + newline
                crossed = newline
            if row < len(new_lines):
                line, newline = new_lines[row]
                emit(DiffType.ADD, line, right_pos)
                right_pos += len(line) + newline
                crossed = crossed or newline
            if crossed:
                line_number += 1

    return items


def merge_modifications(items: list[DiffItem]) -> list[DiffItem]:
    """
    Collapse each remove directly followed by an add into one modify item.

    Single forward pass: the add must be the very next item and at most one
    line away. The first eligible add wins and is consumed. A pair whose
    lines are identical is an unchanged line that line widening pulled into
    the hunk; it becomes an equal item. Ids are renumbered so they stay
    unique and ordered.
    """
    merged: list[DiffItem] = []
    i = 0
    n = len(items)

    while i < n:
        current = items[i]
        following = items[i + 1] if i + 1 < n else None

        if (
            current.type is DiffType.REMOVE
            and following is not None
            and following.type is DiffType.ADD
            and abs(current.line_number - following.line_number) <= 1
        ):
            if current.content == following.content:
                merged.append(
                    replace(
                        current,
                        id=f"diff-{len(merged)}",
                        type=DiffType.EQUAL,
                        original_content=None,
                    )
                )
                i += 2
                continue
            merged.append(
                DiffItem(
                    id=f"diff-{len(merged)}",
                    type=DiffType.MODIFY,
                    content=following.content,
                    line_number=current.line_number,
                    position=current.position,
                    original_content=current.content,
                )
            )
            i += 2
        else:
            merged.append(replace(current, id=f"diff-{len(merged)}"))
            i += 1

    return merged


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


def compute_diff(
    left_text: str,
    right_text: str,
    options: DiffOptions | None = None,
) -> DiffResult:
    """
    Compute the structured diff between two documents.

    Args:
        left_text: Original document text
        right_text: Updated document text
        options: Comparison switches (defaults to DiffOptions())

    Returns:
        DiffResult with items, stats and navigation

    Raises:
        DiffInputError: If a text is not a str or options is not DiffOptions
    """
    require_text("left_text", left_text)
    require_text("right_text", right_text)
    options = require_options(options)

    start = time.perf_counter()
    if options.hierarchical:
        diffs = compute_hierarchical_diff(left_text, right_text, options)
    else:
        diffs = compute_character_diff(left_text, right_text, options)

    items = merge_modifications(diff_to_items(diffs))
    navigation = build_navigation(items)
    stats = calculate_stats(items, left_text, right_text)

    logger.debug(
        f"Diff {len(left_text)}/{len(right_text)} chars -> {len(items)} items, "
        f"{stats.total_changes} changes in {(time.perf_counter() - start) * 1000:.1f}ms"
    )
    return DiffResult(items=items, stats=stats, navigation=navigation)
