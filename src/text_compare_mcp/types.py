"""Data models for text-compare-mcp."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from enum import StrEnum
from typing import Any, TypeAlias

# Type aliases
EditOp: TypeAlias = tuple[int, str]  # (diff-match-patch op: -1 delete, 0 equal, 1 insert, text)


class DiffInputError(ValueError):
    """Rejected input: non-text document, malformed options or message.

    Attributes:
        field: Name of the offending input ("left_text", "options.ignore_case", ...).
        reason: Human-readable description.
    """

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason


class DiffType(StrEnum):
    """Classification of one diff item."""

    ADD = "add"
    REMOVE = "remove"
    MODIFY = "modify"
    EQUAL = "equal"


class SegmentKind(StrEnum):
    """Structural kind of a text segment."""

    PARAGRAPH = "paragraph"
    SENTENCE = "sentence"
    WORD = "word"
    PUNCTUATION = "punctuation"
    WHITESPACE = "whitespace"


# -----------------------------------------------------------------------------
# Tokenizer types
# -----------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class TextSegment:
    """One paragraph, sentence or token with absolute offsets into its source."""

    content: str
    kind: SegmentKind
    index: int
    start: int
    end: int


@dataclass(slots=True, frozen=True)
class TokenizeOptions:
    """Segmentation switches for tokenize()."""

    split_by_paragraph: bool = True
    split_by_sentence: bool = True
    preserve_whitespace: bool = False
    min_segment_length: int = 1


# -----------------------------------------------------------------------------
# Diff types
# -----------------------------------------------------------------------------

_OPTION_ALIASES = {
    "ignoreCase": "ignore_case",
    "ignoreWhitespace": "ignore_whitespace",
    "ignorePunctuation": "ignore_punctuation",
    "splitByParagraph": "split_by_paragraph",
    "splitBySentence": "split_by_sentence",
    "asyncHint": "async_hint",
    # older clients sent the worker toggle under this name
    "useWebWorker": "async_hint",
}


@dataclass(slots=True, frozen=True)
class DiffOptions:
    """Comparison switches. ``async_hint`` is advisory only."""

    ignore_case: bool = False
    ignore_whitespace: bool = False
    ignore_punctuation: bool = False
    split_by_paragraph: bool = True
    split_by_sentence: bool = True
    async_hint: bool = True

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, bool):
                raise DiffInputError(
                    f"options.{f.name}", f"expected bool, got {type(value).__name__}"
                )

    @property
    def hierarchical(self) -> bool:
        """True when segments (not characters) are the comparison unit."""
        return self.split_by_paragraph or self.split_by_sentence

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> DiffOptions:
        """Build options from a camelCase or snake_case mapping.

        Missing keys take defaults; unknown keys and non-bool values are rejected.
        """
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise DiffInputError("options", f"expected mapping, got {type(data).__name__}")

        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _OPTION_ALIASES.get(key, key)
            if name not in known:
                raise DiffInputError(f"options.{key}", "unknown option")
            kwargs[name] = value
        return cls(**kwargs)

    def to_dict(self) -> dict[str, bool]:
        return {
            "ignoreCase": self.ignore_case,
            "ignoreWhitespace": self.ignore_whitespace,
            "ignorePunctuation": self.ignore_punctuation,
            "splitByParagraph": self.split_by_paragraph,
            "splitBySentence": self.split_by_sentence,
            "asyncHint": self.async_hint,
        }


def require_text(name: str, value: object) -> str:
    """Return value if it is a str; raise DiffInputError naming the field otherwise."""
    if not isinstance(value, str):
        raise DiffInputError(name, f"expected str, got {type(value).__name__}")
    return value


def require_options(options: object) -> DiffOptions:
    """Default None to DiffOptions(); reject anything that is not DiffOptions."""
    if options is None:
        return DiffOptions()
    if not isinstance(options, DiffOptions):
        raise DiffInputError("options", f"expected DiffOptions, got {type(options).__name__}")
    return options


@dataclass(slots=True, frozen=True)
class Position:
    """Absolute [start, end) offsets of an item in the compared text."""

    start: int
    end: int


@dataclass(slots=True, frozen=True)
class DiffItem:
    """One physical line of the diff, classified."""

    id: str
    type: DiffType
    content: str
    line_number: int
    position: Position
    original_content: str | None = None  # remove / modify only

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "content": self.content,
            "lineNumber": self.line_number,
            "position": asdict(self.position),
        }
        if self.original_content is not None:
            data["originalContent"] = self.original_content
        return data


@dataclass(slots=True, frozen=True)
class DiffStats:
    """Aggregate counts for a diff. totalChanges == additions + deletions + modifications."""

    total_changes: int
    additions: int
    deletions: int
    modifications: int
    added_words: int
    deleted_words: int
    added_lines: int
    deleted_lines: int
    similarity: float  # 0.0-100.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalChanges": self.total_changes,
            "additions": self.additions,
            "deletions": self.deletions,
            "modifications": self.modifications,
            "addedWords": self.added_words,
            "deletedWords": self.deleted_words,
            "addedLines": self.added_lines,
            "deletedLines": self.deleted_lines,
            "similarity": self.similarity,
        }


@dataclass(slots=True, frozen=True)
class NavigationItem:
    """Jump target for one non-equal item."""

    id: str
    type: DiffType
    line_number: int
    preview: str  # first PREVIEW_LENGTH chars + "..." if truncated

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "lineNumber": self.line_number,
            "preview": self.preview,
        }


@dataclass(slots=True, frozen=True)
class DiffResult:
    """Result from compute_diff: items, stats and navigation index."""

    items: list[DiffItem]
    stats: DiffStats
    navigation: list[NavigationItem]

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "stats": self.stats.to_dict(),
            "navigation": [nav.to_dict() for nav in self.navigation],
        }


@dataclass(slots=True, frozen=True)
class DiffChunk:
    """Diff of one same-offset chunk pair of a large input."""

    index: int
    total: int
    items: list[DiffItem] = field(default_factory=list)
    partial_stats: DiffStats | None = None
