"""Pytest fixtures for text-compare-mcp tests."""

from __future__ import annotations

from typing import Generator

import pytest

from text_compare_mcp.runner import DiffWorker
from text_compare_mcp.types import DiffOptions


@pytest.fixture
def char_options() -> DiffOptions:
    """Character-mode options (no paragraph or sentence segmentation)."""
    return DiffOptions(split_by_paragraph=False, split_by_sentence=False)


@pytest.fixture
def sentence_options() -> DiffOptions:
    """Hierarchical options with sentence segments inside paragraphs."""
    return DiffOptions()


@pytest.fixture
def sample_texts() -> dict[str, str]:
    """Small documents used across diff tests."""
    return {
        "empty": "",
        "lines": "alpha\nbeta\ngamma",
        "lines_changed": "alpha\nBETA\ngamma",
        "prose": "The cat sat. The dog ran.\n\nBirds sing at dawn.",
        "prose_changed": "The cat sat. The dog walked.\n\nBirds sing at dawn.",
        "cjk": "今天天气很好。我们去公园吧！",
    }


@pytest.fixture
def worker() -> Generator[DiffWorker, None, None]:
    """A started DiffWorker that is stopped after the test."""
    with DiffWorker(name="test-diff-worker") as w:
        yield w
