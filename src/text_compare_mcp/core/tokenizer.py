"""CJK-aware text segmentation: paragraphs, sentences and character tokens.

Three granularities feed the diff engine:
- Paragraphs: blocks separated by one or more blank lines
- Sentences: quote-aware scan ending at Latin or CJK terminators
- Tokens: CJK ideographs one per token, letter/digit runs merged,
  whitespace and punctuation runs split on class change

Offsets of paragraph and sentence segments are recovered by forward search
from the last matched position, so they never move backwards.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator

from ..config import MIN_SEGMENT_LENGTH, STREAM_BATCH_SIZE
from ..types import SegmentKind, TextSegment, TokenizeOptions

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Character classes
# ---------------------------------------------------------------------------

# CJK ideograph blocks (unified, extensions A-H, compatibility)
_CJK_RANGES: tuple[tuple[int, int], ...] = (
    (0x3400, 0x4DBF),  # Extension A
    (0x4E00, 0x9FFF),  # Unified Ideographs
    (0xF900, 0xFAFF),  # Compatibility Ideographs
    (0x20000, 0x2A6DF),  # Extension B
    (0x2A700, 0x2EBEF),  # Extensions C-F
    (0x2F800, 0x2FA1F),  # Compatibility Supplement
    (0x30000, 0x323AF),  # Extensions G-H
)

_CJK_CLASS = "".join(f"\\U{lo:08x}-\\U{hi:08x}" for lo, hi in _CJK_RANGES)
_CJK_REGEX = re.compile(f"[{_CJK_CLASS}]")

_PARAGRAPH_SPLIT = re.compile(r"\r?\n\s*\n")

SENTENCE_TERMINATORS = frozenset(".!?;。！？；")

# Opening quote -> the quote that closes it
_QUOTE_PAIRS = {
    '"': '"',
    "“": "”",  # “ ”
    "‘": "’",  # ‘ ’
    "「": "」",  # 「 」
    "『": "』",  # 『 』
}
_CLOSING_QUOTES = frozenset(_QUOTE_PAIRS.values()) | {"'"}

_CJK = "cjk"
_LETTER = "letter"
_DIGIT = "digit"
_SPACE = "whitespace"
_PUNCT = "punctuation"


def is_cjk_char(char: str) -> bool:
    """True if the single character is a CJK ideograph."""
    cp = ord(char)
    return any(lo <= cp <= hi for lo, hi in _CJK_RANGES)


def contains_cjk(text: str) -> bool:
    """True if any code point of text falls in a CJK ideograph range."""
    return _CJK_REGEX.search(text) is not None


def _char_class(char: str) -> str:
    if is_cjk_char(char):
        return _CJK
    if char.isspace():
        return _SPACE
    if char.isdigit():
        return _DIGIT
    if char.isalpha():
        return _LETTER
    return _PUNCT


# ---------------------------------------------------------------------------
# Splitters
# ---------------------------------------------------------------------------


def split_paragraphs(text: str) -> list[str]:
    """Split on one or more blank lines; trimmed, empties dropped."""
    paragraphs = [p.strip() for p in _PARAGRAPH_SPLIT.split(text)]
    paragraphs = [p for p in paragraphs if p]
    if not paragraphs and text.strip():
        paragraphs = [text.strip()]
    return paragraphs


def split_sentences(text: str) -> list[str]:
    """Split text into sentences with a single quote-aware scan.

    A sentence ends at the first terminator outside quotes. A closing quote
    directly after the terminator belongs to the same sentence. Trailing text
    without a terminator is flushed as the last sentence.
    """
    sentences: list[str] = []
    current: list[str] = []
    closing_quote: str | None = None
    i = 0
    n = len(text)

    while i < n:
        char = text[i]
        current.append(char)

        if closing_quote is None and char in _QUOTE_PAIRS:
            closing_quote = _QUOTE_PAIRS[char]
        elif closing_quote is not None and char == closing_quote:
            closing_quote = None
        elif closing_quote is None and char in SENTENCE_TERMINATORS:
            if i + 1 < n and text[i + 1] in _CLOSING_QUOTES:
                current.append(text[i + 1])
                i += 1
            sentence = "".join(current).strip()
            if sentence:
                sentences.append(sentence)
            current = []
        i += 1

    tail = "".join(current).strip()
    if tail:
        sentences.append(tail)
    return sentences


def tokenize_characters(text: str) -> list[str]:
    """Split text into character-class tokens.

    Each CJK ideograph is its own token. Letters and digits merge into one
    run; any other class change starts a new token.
    """
    tokens: list[str] = []
    current: list[str] = []
    last_class: str | None = None

    for char in text:
        cls = _char_class(char)

        if cls == _CJK:
            if current:
                tokens.append("".join(current))
                current = []
            tokens.append(char)
        elif cls in (_LETTER, _DIGIT) and last_class in (_LETTER, _DIGIT):
            current.append(char)
        elif cls != last_class:
            if current:
                tokens.append("".join(current))
            current = [char]
        else:
            current.append(char)
        last_class = cls

    if current:
        tokens.append("".join(current))
    return tokens


def _token_kind(token: str) -> SegmentKind:
    cls = _char_class(token[0])
    if cls == _SPACE:
        return SegmentKind.WHITESPACE
    if cls == _PUNCT:
        return SegmentKind.PUNCTUATION
    return SegmentKind.WORD


# ---------------------------------------------------------------------------
# Main entry points
# ---------------------------------------------------------------------------


def _locate(text: str, piece: str, cursor: int) -> int:
    """Forward search for piece from cursor; never moves before cursor."""
    found = text.find(piece, cursor)
    return found if found >= 0 else cursor


def tokenize(text: str, options: TokenizeOptions | None = None) -> list[TextSegment]:
    """
    Segment text into paragraphs, sentences or character tokens.

    Args:
        text: Source text
        options: Segmentation switches (defaults: paragraphs split into sentences)

    Returns:
        Segments in document order with monotonically non-decreasing offsets
    """
    if options is None:
        options = TokenizeOptions()

    segments: list[TextSegment] = []
    cursor = 0

    def emit(content: str, kind: SegmentKind, start: int) -> None:
        segments.append(
            TextSegment(
                content=content,
                kind=kind,
                index=len(segments),
                start=start,
                end=start + len(content),
            )
        )

    if options.split_by_paragraph:
        for paragraph in split_paragraphs(text):
            para_start = _locate(text, paragraph, cursor)
            if options.split_by_sentence:
                sentence_cursor = para_start
                for sentence in split_sentences(paragraph):
                    start = _locate(text, sentence, sentence_cursor)
                    emit(sentence, SegmentKind.SENTENCE, start)
                    sentence_cursor = start + len(sentence)
            else:
                emit(paragraph, SegmentKind.PARAGRAPH, para_start)
            cursor = para_start + len(paragraph)
    elif options.split_by_sentence:
        for sentence in split_sentences(text):
            start = _locate(text, sentence, cursor)
            emit(sentence, SegmentKind.SENTENCE, start)
            cursor = start + len(sentence)
    else:
        min_length = max(options.min_segment_length, MIN_SEGMENT_LENGTH)
        for token in tokenize_characters(text):
            start = cursor
            cursor += len(token)
            if not options.preserve_whitespace and not token.strip():
                continue
            if len(token) >= min_length:
                emit(token, _token_kind(token), start)

    logger.debug(f"Tokenized {len(text)} chars into {len(segments)} segments")
    return segments


def tokenize_stream(
    text: str,
    options: TokenizeOptions | None = None,
    batch_size: int = STREAM_BATCH_SIZE,
) -> Iterator[list[TextSegment]]:
    """
    Yield segments in fixed-size batches.

    Note: the full segment list is computed up front; this only batches
    delivery and does not reduce peak memory for huge inputs.
    """
    if batch_size <= 0:
        raise ValueError(f"batch_size ({batch_size}) must be > 0")

    segments = tokenize(text, options)
    for i in range(0, len(segments), batch_size):
        yield segments[i : i + batch_size]
