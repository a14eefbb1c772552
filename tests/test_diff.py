"""Tests for the structured diff pipeline."""

from __future__ import annotations

import pytest

from text_compare_mcp.core.diff import (
    DELETE,
    EQUAL,
    INSERT,
    compute_character_diff,
    compute_diff,
    compute_hierarchical_diff,
    diff_to_items,
    merge_modifications,
    preprocess,
    snap_to_lines,
)
from text_compare_mcp.types import DiffInputError, DiffItem, DiffOptions, DiffType, Position

CHANGE_PAIRS = [
    ("alpha\nbeta\ngamma", "alpha\nBETA\ngamma"),
    ("a\nc", "a\nb\nc"),
    ("one\ntwo\nthree\nfour\nfive", "one\n2\nthree\nfour\nfive\nsix"),
]


def _signature(items: list[DiffItem], flip: bool = False) -> list[tuple[str, str, str | None]]:
    """Non-equal items as (type, content, original), optionally with roles swapped."""
    result = []
    for item in items:
        match item.type:
            case DiffType.EQUAL:
                continue
            case DiffType.MODIFY if flip:
                result.append(("modify", item.original_content, item.content))
            case DiffType.ADD if flip:
                result.append(("remove", item.content, None))
            case DiffType.REMOVE if flip:
                result.append(("add", item.content, None))
            case _:
                original = item.original_content if item.type is DiffType.MODIFY else None
                result.append((item.type.value, item.content, original))
    return result


def _side(items: list[DiffItem], side: str) -> list[str]:
    """Lines of one side: equal + add/remove, modify read from the matching field."""
    lines = []
    for item in items:
        if item.type is DiffType.EQUAL:
            lines.append(item.content)
        elif item.type is DiffType.MODIFY:
            lines.append(item.content if side == "right" else item.original_content)
        elif (item.type is DiffType.ADD) == (side == "right"):
            lines.append(item.content)
    return lines


class TestPreprocess:
    """Tests for option-driven preprocessing."""

    def test_no_options_is_identity(self) -> None:
        text = "Hello,  World!\n"
        assert preprocess(text, DiffOptions()) == text

    def test_ignore_case(self) -> None:
        assert preprocess("HeLLo", DiffOptions(ignore_case=True)) == "hello"

    def test_ignore_whitespace_collapses_and_trims(self) -> None:
        options = DiffOptions(ignore_whitespace=True)
        assert preprocess("  a \t b\n\nc  ", options) == "a b c"

    def test_ignore_punctuation_keeps_cjk(self) -> None:
        options = DiffOptions(ignore_punctuation=True)
        assert preprocess("你好，世界! Hi, there.", options) == "你好世界 Hi there"

    def test_fixed_order(self) -> None:
        """Whitespace collapse runs before punctuation strip."""
        options = DiffOptions(ignore_whitespace=True, ignore_punctuation=True)
        assert preprocess("a , b", options) == "a  b"


class TestSnapToLines:
    """Tests for widening character hunks to whole lines."""

    def test_mid_line_edit_widened(self) -> None:
        diffs = [(EQUAL, "foo\nba"), (DELETE, "r"), (INSERT, "z")]
        assert snap_to_lines(diffs) == [(EQUAL, "foo\n"), (DELETE, "bar"), (INSERT, "baz")]

    def test_suffix_absorbed(self) -> None:
        diffs = [(EQUAL, "x\n"), (DELETE, "a"), (INSERT, "b"), (EQUAL, "c\nd")]
        assert snap_to_lines(diffs) == [
            (EQUAL, "x\n"),
            (DELETE, "ac"),
            (INSERT, "bc"),
            (EQUAL, "\nd"),
        ]

    def test_whole_line_insert_untouched(self) -> None:
        diffs = [(EQUAL, "a\n"), (INSERT, "b\n"), (EQUAL, "c")]
        assert snap_to_lines(diffs) == diffs

    def test_sides_still_spell_inputs(self) -> None:
        diffs = [(EQUAL, "ab"), (DELETE, "c"), (EQUAL, "d e"), (INSERT, "f"), (EQUAL, "g\nh")]
        snapped = snap_to_lines(diffs)
        left = "".join(t for op, t in snapped if op != INSERT)
        right = "".join(t for op, t in snapped if op != DELETE)
        assert left == "abcd eg\nh"
        assert right == "abd efg\nh"


class TestEditScripts:
    """Tests for character and hierarchical edit scripts."""

    def test_character_script_covers_inputs(self) -> None:
        left, right = "The quick brown fox", "The quick red fox"
        diffs = compute_character_diff(left, right)
        assert "".join(t for op, t in diffs if op != INSERT) == left
        assert "".join(t for op, t in diffs if op != DELETE) == right

    def test_hierarchical_segments_are_atomic(self) -> None:
        """A one-character edit replaces the whole sentence."""
        diffs = compute_hierarchical_diff("Keep this. Change me.", "Keep this. Change me!")
        assert diffs == [
            (EQUAL, "Keep this.\n"),
            (DELETE, "Change me.\n"),
            (INSERT, "Change me!\n"),
        ]

    def test_hierarchical_identical(self) -> None:
        diffs = compute_hierarchical_diff("A. B.", "A. B.")
        assert diffs == [(EQUAL, "A.\nB.\n")]

    def test_hierarchical_empty(self) -> None:
        assert compute_hierarchical_diff("", "") == []


class TestDiffToItems:
    """Tests for per-line item emission."""

    def test_equal_lines_and_positions(self) -> None:
        items = diff_to_items([(EQUAL, "ab\ncd")])
        assert [(i.content, i.line_number) for i in items] == [("ab", 1), ("cd", 2)]
        assert items[1].position == Position(3, 5)

    def test_rows_interleaved(self) -> None:
        """Removed line k and added line k share a line number."""
        items = diff_to_items([(DELETE, "a\nb\n"), (INSERT, "x\n")])
        assert [(i.type, i.content, i.line_number) for i in items] == [
            (DiffType.REMOVE, "a", 1),
            (DiffType.ADD, "x", 1),
            (DiffType.REMOVE, "b", 2),
        ]

    def test_add_positions_use_right_offsets(self) -> None:
        items = diff_to_items([(EQUAL, "a\n"), (DELETE, "bbbb\n"), (INSERT, "c\n"), (EQUAL, "d")])
        add = next(i for i in items if i.type is DiffType.ADD)
        equal_d = items[-1]
        assert add.position == Position(2, 3)
        assert equal_d.position == Position(7, 8)

    def test_remove_keeps_original(self) -> None:
        items = diff_to_items([(DELETE, "gone")])
        assert items[0].original_content == "gone"

    def test_ids_unique_and_ordered(self) -> None:
        items = diff_to_items([(EQUAL, "a\nb\n"), (INSERT, "c\nd")])
        assert [i.id for i in items] == [f"diff-{n}" for n in range(len(items))]


class TestMergeModifications:
    """Tests for remove+add collapsing."""

    @staticmethod
    def _item(kind: DiffType, content: str, line: int, start: int = 0) -> DiffItem:
        return DiffItem(
            id="x",
            type=kind,
            content=content,
            line_number=line,
            position=Position(start, start + len(content)),
            original_content=content if kind is DiffType.REMOVE else None,
        )

    def test_adjacent_pair_becomes_modify(self) -> None:
        items = [self._item(DiffType.REMOVE, "old", 3, 10), self._item(DiffType.ADD, "new", 3, 12)]
        merged = merge_modifications(items)
        assert len(merged) == 1
        assert merged[0].type is DiffType.MODIFY
        assert merged[0].content == "new"
        assert merged[0].original_content == "old"
        assert merged[0].position == Position(10, 13)

    def test_far_apart_not_merged(self) -> None:
        items = [self._item(DiffType.REMOVE, "old", 1), self._item(DiffType.ADD, "new", 3)]
        assert [i.type for i in merge_modifications(items)] == [DiffType.REMOVE, DiffType.ADD]

    def test_add_then_remove_not_merged(self) -> None:
        items = [self._item(DiffType.ADD, "new", 1), self._item(DiffType.REMOVE, "old", 1)]
        assert [i.type for i in merge_modifications(items)] == [DiffType.ADD, DiffType.REMOVE]

    def test_first_eligible_add_wins(self) -> None:
        items = [
            self._item(DiffType.REMOVE, "r", 1),
            self._item(DiffType.ADD, "a1", 1),
            self._item(DiffType.ADD, "a2", 2),
        ]
        merged = merge_modifications(items)
        assert [(i.type, i.content) for i in merged] == [
            (DiffType.MODIFY, "a1"),
            (DiffType.ADD, "a2"),
        ]

    def test_identical_pair_becomes_equal(self) -> None:
        items = [self._item(DiffType.REMOVE, "same", 5), self._item(DiffType.ADD, "same", 5)]
        merged = merge_modifications(items)
        assert [(i.type, i.content, i.original_content) for i in merged] == [
            (DiffType.EQUAL, "same", None)
        ]

    def test_ids_renumbered(self) -> None:
        items = [
            self._item(DiffType.EQUAL, "e", 1),
            self._item(DiffType.REMOVE, "r", 2),
            self._item(DiffType.ADD, "a", 2),
            self._item(DiffType.EQUAL, "f", 3),
        ]
        assert [i.id for i in merge_modifications(items)] == ["diff-0", "diff-1", "diff-2"]


class TestComputeDiff:
    """Tests for the full pipeline and its properties."""

    def test_merge_correctness(self, char_options: DiffOptions) -> None:
        """A changed last line is one modify item, never remove + add."""
        result = compute_diff("foo\nbar", "foo\nbaz", char_options)

        assert [(i.type, i.content) for i in result.items] == [
            (DiffType.EQUAL, "foo"),
            (DiffType.MODIFY, "baz"),
        ]
        modify = result.items[1]
        assert modify.original_content == "bar"
        assert modify.line_number == 2
        assert result.stats.modifications == 1
        assert result.stats.additions == 0
        assert result.stats.deletions == 0

    @pytest.mark.parametrize(
        "options",
        [
            DiffOptions(),
            DiffOptions(split_by_paragraph=False, split_by_sentence=False),
            DiffOptions(split_by_paragraph=False),
            DiffOptions(ignore_case=True, ignore_whitespace=True, ignore_punctuation=True),
        ],
    )
    def test_idempotence(self, sample_texts: dict[str, str], options: DiffOptions) -> None:
        """Comparing a text with itself yields only equal items."""
        for text in sample_texts.values():
            result = compute_diff(text, text, options)
            assert all(i.type is DiffType.EQUAL for i in result.items)
            assert result.stats.similarity == 100.0
            assert result.stats.total_changes == 0
            assert result.navigation == []

    @pytest.mark.parametrize(("left", "right"), CHANGE_PAIRS)
    def test_symmetry(self, char_options: DiffOptions, left: str, right: str) -> None:
        """Swapping inputs swaps add/remove and modify content/original."""
        forward = compute_diff(left, right, char_options)
        backward = compute_diff(right, left, char_options)
        assert _signature(forward.items, flip=True) == _signature(backward.items)

    def test_symmetry_hierarchical(self, sample_texts: dict[str, str]) -> None:
        forward = compute_diff(sample_texts["prose"], sample_texts["prose_changed"])
        backward = compute_diff(sample_texts["prose_changed"], sample_texts["prose"])
        assert _signature(forward.items, flip=True) == _signature(backward.items)

    @pytest.mark.parametrize(("left", "right"), CHANGE_PAIRS)
    def test_coverage(self, char_options: DiffOptions, left: str, right: str) -> None:
        """Equal + add lines rebuild the right text, equal + remove the left."""
        result = compute_diff(left, right, char_options)
        assert "\n".join(_side(result.items, "right")) == right
        assert "\n".join(_side(result.items, "left")) == left

    def test_coverage_hierarchical(self, sample_texts: dict[str, str]) -> None:
        """In sentence mode each side is rebuilt at sentence granularity."""
        result = compute_diff(sample_texts["prose"], sample_texts["prose_changed"])
        assert _side(result.items, "left") == [
            "The cat sat.",
            "The dog ran.",
            "Birds sing at dawn.",
        ]
        assert _side(result.items, "right") == [
            "The cat sat.",
            "The dog walked.",
            "Birds sing at dawn.",
        ]

    def test_sentence_change_is_modify(self, sample_texts: dict[str, str]) -> None:
        result = compute_diff(sample_texts["prose"], sample_texts["prose_changed"])
        assert result.stats.modifications == 1
        assert result.stats.total_changes == 1
        assert result.stats.added_words == 3
        assert result.stats.deleted_words == 3
        assert [n.preview for n in result.navigation] == ["The dog walked."]

    def test_appended_line_after_unterminated_last_line(self, char_options: DiffOptions) -> None:
        """The unchanged last line is not reported as modified."""
        result = compute_diff("a\nb", "a\nb\nc", char_options)
        assert result.stats.additions == 1
        assert result.stats.modifications == 0
        assert [i.content for i in result.items if i.type is DiffType.ADD] == ["c"]

    def test_empty_inputs(self, char_options: DiffOptions) -> None:
        """Empty strings are valid inputs."""
        both_empty = compute_diff("", "", char_options)
        assert both_empty.items == []
        assert both_empty.stats.similarity == 100.0

        added = compute_diff("", "new text", char_options)
        assert [i.type for i in added.items] == [DiffType.ADD]
        assert added.stats.similarity == 0.0

        removed = compute_diff("old text", "")
        assert [i.type for i in removed.items] == [DiffType.REMOVE]
        assert removed.stats.similarity < 100.0

    def test_ignore_case_equalizes(self, char_options: DiffOptions) -> None:
        options = DiffOptions(ignore_case=True, split_by_paragraph=False, split_by_sentence=False)
        result = compute_diff("Hello\nWorld", "hello\nWORLD", options)
        assert result.stats.total_changes == 0
        assert [i.content for i in result.items] == ["hello", "world"]
        assert compute_diff("Hello", "hello", char_options).stats.total_changes == 1

    def test_ignore_punctuation_hierarchical(self) -> None:
        options = DiffOptions(ignore_punctuation=True)
        result = compute_diff("Hello, world!", "Hello world", options)
        assert result.stats.total_changes == 0

    def test_ignore_whitespace_hierarchical(self) -> None:
        options = DiffOptions(ignore_whitespace=True)
        result = compute_diff("Spaced   out  text.", "Spaced out text.", options)
        assert result.stats.total_changes == 0

    def test_cjk_sentences(self, sample_texts: dict[str, str]) -> None:
        result = compute_diff(sample_texts["cjk"], "今天天气很好。我们去海边吧！")
        assert [(i.type, i.content) for i in result.items] == [
            (DiffType.EQUAL, "今天天气很好。"),
            (DiffType.MODIFY, "我们去海边吧！"),
        ]

    def test_stats_invariant(self, sample_texts: dict[str, str]) -> None:
        stats = compute_diff(sample_texts["lines"], sample_texts["prose"]).stats
        assert stats.total_changes == stats.additions + stats.deletions + stats.modifications
        assert 0.0 <= stats.similarity <= 100.0


class TestInputValidation:
    """Tests for rejected inputs."""

    def test_non_text_left(self) -> None:
        with pytest.raises(DiffInputError) as exc:
            compute_diff(None, "x")  # type: ignore[arg-type]
        assert exc.value.field == "left_text"

    def test_bytes_right(self) -> None:
        with pytest.raises(DiffInputError, match="right_text"):
            compute_diff("x", b"x")  # type: ignore[arg-type]

    def test_options_must_be_options(self) -> None:
        with pytest.raises(DiffInputError, match="options"):
            compute_diff("a", "b", {"ignoreCase": True})  # type: ignore[arg-type]

    def test_non_bool_option(self) -> None:
        with pytest.raises(DiffInputError, match="options.ignore_case"):
            DiffOptions(ignore_case="yes")  # type: ignore[arg-type]

    def test_input_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            compute_diff(1, 2)  # type: ignore[arg-type]
