"""Caller-side diff session: routing, worker fallback and stale-result guard.

Each compute call takes a sequence number. A finished result is accepted
only if no newer call has started since; otherwise it is discarded. The
accepted result replaces ``latest`` as a whole under a lock and is never
merged with the previous one. Debouncing rapid input changes is left to
the caller.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

from ..config import CHUNK_SIZE, WORKER_THRESHOLD
from ..core.diff import compute_diff
from ..types import DiffOptions, DiffResult, require_options, require_text
from .chunked import ProgressCallback, compute_diff_async, notify_progress
from .worker import DiffWorker, DiffWorkerError

logger = logging.getLogger(__name__)

ROUTE_SYNC = "sync"
ROUTE_CHUNKED = "chunked"
ROUTE_WORKER = "worker"
ROUTE_FALLBACK = "fallback"


@dataclass(slots=True, frozen=True)
class ComputeOutcome:
    """Result of one session compute call."""

    sequence: int
    result: DiffResult
    accepted: bool  # False if a newer call superseded this one
    route: str  # sync / chunked / worker / fallback


class DiffSession:
    """Holds the latest accepted DiffResult for one caller."""

    __slots__ = ("_worker", "_worker_threshold", "_lock", "_sequence", "_latest")

    def __init__(
        self,
        worker: DiffWorker | None = None,
        worker_threshold: int = WORKER_THRESHOLD,
    ) -> None:
        self._worker = worker
        self._worker_threshold = worker_threshold
        self._lock = threading.Lock()
        self._sequence = 0
        self._latest: DiffResult | None = None

    @property
    def latest(self) -> DiffResult | None:
        """Most recently accepted result (None before the first one)."""
        with self._lock:
            return self._latest

    def begin(self) -> int:
        """Issue the next sequence number; supersedes every earlier one."""
        with self._lock:
            self._sequence += 1
            return self._sequence

    def accept(self, sequence: int, result: DiffResult) -> bool:
        """Store result if sequence is still the newest issued; else discard it."""
        with self._lock:
            if sequence != self._sequence:
                logger.debug(f"Discarding stale result #{sequence} (newest #{self._sequence})")
                return False
            self._latest = result
            return True

    def clear(self) -> None:
        """Drop the latest result; in-flight results will be discarded too."""
        with self._lock:
            self._sequence += 1
            self._latest = None

    def _wants_worker(self, left_text: str, right_text: str, options: DiffOptions) -> bool:
        return (
            self._worker is not None
            and self._worker.is_running
            and options.async_hint
            and max(len(left_text), len(right_text)) > self._worker_threshold
        )

    def _compute_on_worker(
        self,
        left_text: str,
        right_text: str,
        options: DiffOptions,
        on_progress: Callable[[float], None] | None = None,
    ) -> tuple[DiffResult, str]:
        try:
            result = self._worker.compute(
                left_text, right_text, options, on_progress=on_progress
            )
            return result, ROUTE_WORKER
        except DiffWorkerError as e:
            logger.warning(f"Diff worker failed ({e}); falling back to synchronous diff")
            return compute_diff(left_text, right_text, options), ROUTE_FALLBACK

    def compute(
        self, left_text: str, right_text: str, options: DiffOptions | None = None
    ) -> ComputeOutcome:
        """Blocking compute; large inputs go to the worker when one is attached."""
        require_text("left_text", left_text)
        require_text("right_text", right_text)
        options = require_options(options)

        sequence = self.begin()
        if self._wants_worker(left_text, right_text, options):
            result, route = self._compute_on_worker(left_text, right_text, options)
        else:
            result, route = compute_diff(left_text, right_text, options), ROUTE_SYNC

        return ComputeOutcome(sequence, result, self.accept(sequence, result), route)

    async def compute_async(
        self,
        left_text: str,
        right_text: str,
        options: DiffOptions | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> ComputeOutcome:
        """Non-blocking compute: worker thread or chunked driver."""
        require_text("left_text", left_text)
        require_text("right_text", right_text)
        options = require_options(options)

        sequence = self.begin()
        if self._wants_worker(left_text, right_text, options):
            loop = asyncio.get_running_loop()

            def forward(progress: float) -> None:
                # Runs on the waiting thread; the callback itself runs on the loop
                future = asyncio.run_coroutine_threadsafe(
                    notify_progress(on_progress, progress), loop
                )
                try:
                    future.result()
                except Exception:
                    logger.warning(f"Progress callback failed at {progress:.0f}%", exc_info=True)

            result, route = await asyncio.to_thread(
                self._compute_on_worker,
                left_text,
                right_text,
                options,
                forward if on_progress is not None else None,
            )
            if route == ROUTE_FALLBACK:
                await notify_progress(on_progress, 100.0)
        else:
            result = await compute_diff_async(left_text, right_text, options, on_progress)
            chunked = max(len(left_text), len(right_text)) > CHUNK_SIZE
            route = ROUTE_CHUNKED if chunked else ROUTE_SYNC

        return ComputeOutcome(sequence, result, self.accept(sequence, result), route)
