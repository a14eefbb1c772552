"""Worker channel messages and their flat wire form.

Host -> worker: COMPUTE_DIFF, CANCEL.
Worker -> host: zero or more PROGRESS, then exactly one RESULT or ERROR.

Wire dicts use camelCase keys::

    {"type": "COMPUTE_DIFF", "requestId": 3, "leftText": ..., "rightText": ..., "options": {...}}
    {"type": "PROGRESS", "requestId": 3, "progress": 42.0}
    {"type": "RESULT", "requestId": 3, "payload": {"items": [...], "stats": {...}, "navigation": [...]}}
    {"type": "ERROR", "requestId": 3, "error": "..."}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, TypeAlias, assert_never

from ..types import DiffInputError, DiffOptions, DiffResult


@dataclass(slots=True, frozen=True)
class ComputeDiffRequest:
    """Ask the worker to diff two texts. request_id is assigned on submit if None."""

    TYPE: ClassVar[str] = "COMPUTE_DIFF"

    left_text: str
    right_text: str
    options: DiffOptions
    request_id: int | None = None


@dataclass(slots=True, frozen=True)
class CancelRequest:
    """Best-effort cancel; only requests not yet started are skipped."""

    TYPE: ClassVar[str] = "CANCEL"

    request_id: int


@dataclass(slots=True, frozen=True)
class ProgressMessage:
    TYPE: ClassVar[str] = "PROGRESS"

    request_id: int
    progress: float  # 0-100


@dataclass(slots=True, frozen=True)
class ResultMessage:
    TYPE: ClassVar[str] = "RESULT"

    request_id: int
    payload: DiffResult


@dataclass(slots=True, frozen=True)
class ErrorMessage:
    TYPE: ClassVar[str] = "ERROR"

    request_id: int
    error: str


HostMessage: TypeAlias = ComputeDiffRequest | CancelRequest
WorkerMessage: TypeAlias = ProgressMessage | ResultMessage | ErrorMessage

TERMINAL_TYPES: tuple[type, ...] = (ResultMessage, ErrorMessage)


def is_terminal(message: WorkerMessage) -> bool:
    """True for the single RESULT/ERROR that ends a request."""
    return isinstance(message, TERMINAL_TYPES)


def encode_message(message: HostMessage | WorkerMessage) -> dict[str, Any]:
    """Render a message as its flat wire dict."""
    data: dict[str, Any] = {"type": message.TYPE, "requestId": message.request_id}
    match message:
        case ComputeDiffRequest():
            data["leftText"] = message.left_text
            data["rightText"] = message.right_text
            data["options"] = message.options.to_dict()
        case CancelRequest():
            pass
        case ProgressMessage():
            data["progress"] = message.progress
        case ResultMessage():
            data["payload"] = message.payload.to_dict()
        case ErrorMessage():
            data["error"] = message.error
        case _:
            assert_never(message)
    return data


def _request_id(data: dict[str, Any], required: bool) -> int | None:
    value = data.get("requestId")
    if value is None:
        if required:
            raise DiffInputError("requestId", "missing")
        return None
    if not isinstance(value, int) or isinstance(value, bool):
        raise DiffInputError("requestId", f"expected int, got {type(value).__name__}")
    return value


def decode_request(data: object) -> HostMessage:
    """
    Parse a host -> worker wire dict.

    Raises:
        DiffInputError: Unknown type, non-text documents or malformed options
    """
    if not isinstance(data, dict):
        raise DiffInputError("message", f"expected mapping, got {type(data).__name__}")

    kind = data.get("type")
    if kind == ComputeDiffRequest.TYPE:
        left = data.get("leftText")
        right = data.get("rightText")
        if not isinstance(left, str):
            raise DiffInputError("leftText", f"expected str, got {type(left).__name__}")
        if not isinstance(right, str):
            raise DiffInputError("rightText", f"expected str, got {type(right).__name__}")
        return ComputeDiffRequest(
            left_text=left,
            right_text=right,
            options=DiffOptions.from_dict(data.get("options")),
            request_id=_request_id(data, required=False),
        )
    if kind == CancelRequest.TYPE:
        return CancelRequest(request_id=_request_id(data, required=True))
    raise DiffInputError("type", f"unknown message type {kind!r}")
