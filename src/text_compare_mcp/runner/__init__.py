"""Runner package: chunked async driver, off-thread worker and caller session."""

from __future__ import annotations

from .chunked import compute_diff_async, iter_diff_chunks
from .protocol import (
    CancelRequest,
    ComputeDiffRequest,
    ErrorMessage,
    ProgressMessage,
    ResultMessage,
    decode_request,
    encode_message,
    is_terminal,
)
from .session import ComputeOutcome, DiffSession
from .worker import DiffWorker, DiffWorkerError

__all__ = [
    # chunked
    "compute_diff_async",
    "iter_diff_chunks",
    # protocol
    "ComputeDiffRequest",
    "CancelRequest",
    "ProgressMessage",
    "ResultMessage",
    "ErrorMessage",
    "encode_message",
    "decode_request",
    "is_terminal",
    # worker / session
    "DiffWorker",
    "DiffWorkerError",
    "DiffSession",
    "ComputeOutcome",
]
