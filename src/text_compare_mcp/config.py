"""Configuration constants for text-compare-mcp."""

import logging
from os import environ
from typing import Final

# Logging configuration
LOG_LEVEL: Final = environ.get("LOG_LEVEL", "INFO").upper()
LOG_FORMAT: Final = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)


def _env_int(name: str, default: int) -> int:
    """Read integer env var with fallback."""
    raw = environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    """Read float env var with fallback."""
    raw = environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def _env_mode(name: str, default: str) -> str:
    """Read normalized response mode env var."""
    raw = environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower()


# Edit-script algorithm (diff-match-patch)
DIFF_TIMEOUT: Final = _env_float("DIFF_TIMEOUT", 2.0)  # seconds, 0 = no budget
DIFF_EDIT_COST: Final = _env_int("DIFF_EDIT_COST", 4)

# Large-input handling
CHUNK_SIZE: Final = _env_int("DIFF_CHUNK_SIZE", 10_000)  # chars per chunk pair
WORKER_THRESHOLD: Final = _env_int("DIFF_WORKER_THRESHOLD", 10_000)  # chars before off-thread
WORKER_TIMEOUT: Final = _env_float("DIFF_WORKER_TIMEOUT", 60.0)  # seconds to wait for a result

# Tokenizer / navigation
STREAM_BATCH_SIZE: Final = 100
MIN_SEGMENT_LENGTH: Final = 1
PREVIEW_LENGTH: Final = 50

# Tool response policy
TOOL_OUTPUT_MODE: Final = _env_mode("TOOL_OUTPUT_MODE", "compact")
TOOL_MAX_RESPONSE_CHARS: Final = _env_int("TOOL_MAX_RESPONSE_CHARS", 0)

# ---------------------------------------------------------------------------
# Configuration validation
# ---------------------------------------------------------------------------


def _validate_config() -> None:
    """Validate configuration constants at module load time."""
    errors: list[str] = []

    if DIFF_TIMEOUT < 0:
        errors.append(f"DIFF_TIMEOUT ({DIFF_TIMEOUT}) must be >= 0")

    if DIFF_EDIT_COST <= 0:
        errors.append(f"DIFF_EDIT_COST ({DIFF_EDIT_COST}) must be > 0")

    if CHUNK_SIZE <= 0:
        errors.append(f"DIFF_CHUNK_SIZE ({CHUNK_SIZE}) must be > 0")

    if WORKER_THRESHOLD < 0:
        errors.append(f"DIFF_WORKER_THRESHOLD ({WORKER_THRESHOLD}) must be >= 0")

    if WORKER_TIMEOUT <= 0:
        errors.append(f"DIFF_WORKER_TIMEOUT ({WORKER_TIMEOUT}) must be > 0")

    if TOOL_OUTPUT_MODE not in {"compact", "normal", "debug"}:
        errors.append(
            f"TOOL_OUTPUT_MODE ({TOOL_OUTPUT_MODE}) must be one of: compact, normal, debug"
        )

    if TOOL_MAX_RESPONSE_CHARS < 0:
        errors.append(f"TOOL_MAX_RESPONSE_CHARS ({TOOL_MAX_RESPONSE_CHARS}) must be >= 0")

    if errors:
        raise ValueError("Configuration errors:\n  " + "\n  ".join(errors))


_validate_config()
