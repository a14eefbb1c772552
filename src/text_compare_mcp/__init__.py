"""Text Compare MCP - Structured document diffs with paragraph, sentence and CJK-aware tokens."""

from importlib.metadata import version as _pkg_version

from .config import CHUNK_SIZE, TOOL_MAX_RESPONSE_CHARS, TOOL_OUTPUT_MODE, WORKER_THRESHOLD
from .core import compute_diff, tokenize
from .runner import DiffSession, DiffWorker, compute_diff_async
from .server import mcp
from .types import (
    DiffInputError,
    DiffItem,
    DiffOptions,
    DiffResult,
    DiffStats,
    DiffType,
    NavigationItem,
    TextSegment,
    TokenizeOptions,
)

__version__ = _pkg_version("text-compare-mcp")

__all__ = [
    # Functions
    "compute_diff",
    "compute_diff_async",
    "tokenize",
    # Runners
    "DiffWorker",
    "DiffSession",
    # Types
    "DiffOptions",
    "DiffResult",
    "DiffItem",
    "DiffStats",
    "DiffType",
    "NavigationItem",
    "TextSegment",
    "TokenizeOptions",
    "DiffInputError",
    # Server
    "mcp",
    # Configuration
    "CHUNK_SIZE",
    "WORKER_THRESHOLD",
    "TOOL_OUTPUT_MODE",
    "TOOL_MAX_RESPONSE_CHARS",
]
