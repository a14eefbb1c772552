"""Core algorithms: segmentation, edit scripts, merging, stats and navigation."""

from .diff import (
    compute_character_diff,
    compute_diff,
    compute_hierarchical_diff,
    diff_to_items,
    merge_modifications,
    preprocess,
    snap_to_lines,
)
from .navigation import build_navigation, make_preview
from .stats import calculate_stats, count_lines, count_words, similarity_percent
from .tokenizer import (
    contains_cjk,
    is_cjk_char,
    split_paragraphs,
    split_sentences,
    tokenize,
    tokenize_characters,
    tokenize_stream,
)

__all__ = [
    # tokenizer
    "contains_cjk",
    "is_cjk_char",
    "split_paragraphs",
    "split_sentences",
    "tokenize_characters",
    "tokenize",
    "tokenize_stream",
    # diff
    "preprocess",
    "compute_character_diff",
    "compute_hierarchical_diff",
    "snap_to_lines",
    "diff_to_items",
    "merge_modifications",
    "compute_diff",
    # stats / navigation
    "calculate_stats",
    "count_words",
    "count_lines",
    "similarity_percent",
    "build_navigation",
    "make_preview",
]
