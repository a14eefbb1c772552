"""Off-thread diff worker.

One daemon thread owns its copy of each request's texts and runs the same
compute_diff() pipeline. Every request ends with exactly one RESULT or ERROR
message; a queued request that was cancelled, or that is still waiting when
the worker stops, ends with ERROR instead of being dropped.
"""

from __future__ import annotations

import itertools
import logging
import queue
import threading
import time
from collections.abc import Callable
from dataclasses import replace

from ..config import WORKER_TIMEOUT
from ..core.diff import compute_diff
from ..types import DiffInputError, DiffOptions, DiffResult
from .protocol import (
    CancelRequest,
    ComputeDiffRequest,
    ErrorMessage,
    ProgressMessage,
    ResultMessage,
    WorkerMessage,
    decode_request,
    is_terminal,
)

logger = logging.getLogger(__name__)

CANCELLED = "cancelled"
STOPPED = "worker stopped"


class DiffWorkerError(RuntimeError):
    """The worker could not deliver a result (ERROR terminal, not running, timeout)."""


class DiffWorker:
    """Single-thread diff worker fed by a request queue.

    Messages go to ``on_message`` when given (called on the worker thread),
    otherwise to an outbox read with ``get_message()``. Requests made through
    ``compute()`` are answered on a private queue instead. Use as a context
    manager so the thread is stopped and joined on every exit path.
    """

    __slots__ = (
        "name",
        "_on_message",
        "_inbox",
        "_outbox",
        "_pending",
        "_cancelled",
        "_waiters",
        "_lock",
        "_ids",
        "_thread",
        "_stopping",
    )

    def __init__(
        self,
        on_message: Callable[[WorkerMessage], None] | None = None,
        name: str = "diff-worker",
    ) -> None:
        self.name = name
        self._on_message = on_message
        self._inbox: queue.Queue[ComputeDiffRequest | None] = queue.Queue()
        self._outbox: queue.Queue[WorkerMessage] = queue.Queue()
        self._pending: set[int] = set()  # queued, not yet started
        self._cancelled: set[int] = set()
        # request id -> private queue of a blocking compute() caller
        self._waiters: dict[int, queue.Queue[WorkerMessage]] = {}
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._thread: threading.Thread | None = None
        self._stopping = False

    # -- lifecycle ----------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the worker thread (no-op if already running)."""
        if self.is_running:
            return
        self._stopping = False
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        logger.info(f"Diff worker {self.name} started")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop after the running request; queued requests end with ERROR."""
        thread = self._thread
        if thread is None:
            return
        with self._lock:
            self._stopping = True
            self._inbox.put(None)
        thread.join(timeout)
        if thread.is_alive():
            # Keep the handle: start() must not spawn a second thread on this inbox
            logger.warning(f"Diff worker {self.name} did not stop within {timeout}s")
            return
        self._thread = None
        logger.info(f"Diff worker {self.name} stopped")

    def __enter__(self) -> DiffWorker:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    # -- host side ----------------------------------------------------------

    def _next_id(self) -> int:
        with self._lock:
            return next(self._ids)

    def submit(
        self, left_text: str, right_text: str, options: DiffOptions | None = None
    ) -> int:
        """Queue a diff and return its request id."""
        return self._enqueue(
            ComputeDiffRequest(
                left_text=left_text,
                right_text=right_text,
                options=options if options is not None else DiffOptions(),
            )
        )

    def post(self, message: dict | ComputeDiffRequest | CancelRequest) -> int:
        """
        Accept a host message (wire dict or dataclass).

        A request that cannot be decoded still gets its own id and a
        terminal ERROR.

        Returns:
            Request id the message refers to
        """
        if isinstance(message, dict):
            try:
                message = decode_request(message)
            except DiffInputError as e:
                request_id = self._next_id()
                self._emit(ErrorMessage(request_id=request_id, error=str(e)))
                return request_id

        if isinstance(message, CancelRequest):
            self.cancel(message.request_id)
            return message.request_id
        return self._enqueue(message)

    def _enqueue(
        self,
        request: ComputeDiffRequest,
        waiter: queue.Queue[WorkerMessage] | None = None,
    ) -> int:
        with self._lock:
            if not self.is_running or self._stopping:
                raise DiffWorkerError(f"Diff worker {self.name} is not running")
            if request.request_id is None:
                request = replace(request, request_id=next(self._ids))
            if waiter is not None:
                self._waiters[request.request_id] = waiter
            self._pending.add(request.request_id)
            self._inbox.put(request)
        return request.request_id

    def cancel(self, request_id: int) -> None:
        """Skip the request if it has not started yet; ignored otherwise."""
        with self._lock:
            if request_id in self._pending:
                self._cancelled.add(request_id)

    def get_message(self, timeout: float | None = None) -> WorkerMessage:
        """Next message from the outbox (raises queue.Empty on timeout)."""
        return self._outbox.get(timeout=timeout)

    def compute(
        self,
        left_text: str,
        right_text: str,
        options: DiffOptions | None = None,
        *,
        timeout: float = WORKER_TIMEOUT,
        on_progress: Callable[[float], None] | None = None,
    ) -> DiffResult:
        """
        Submit and block until the terminal message for this request.

        Messages for this request go to a private queue, so any number of
        threads may call compute() at once. They never reach the outbox or
        the ``on_message`` callback. ``on_progress`` runs on the calling
        thread.

        Raises:
            DiffWorkerError: ERROR terminal, not running, or timeout
        """
        waiter: queue.Queue[WorkerMessage] = queue.Queue()
        request_id = self._enqueue(
            ComputeDiffRequest(
                left_text=left_text,
                right_text=right_text,
                options=options if options is not None else DiffOptions(),
            ),
            waiter=waiter,
        )
        deadline = time.monotonic() + timeout

        try:
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    self.cancel(request_id)
                    raise DiffWorkerError(f"Request {request_id} timed out after {timeout}s")
                try:
                    message = waiter.get(timeout=remaining)
                except queue.Empty:
                    continue

                match message:
                    case ProgressMessage():
                        if on_progress is not None:
                            on_progress(message.progress)
                    case ResultMessage():
                        return message.payload
                    case ErrorMessage():
                        raise DiffWorkerError(message.error)
        finally:
            # Late messages of an abandoned request go to the outbox or on_message
            with self._lock:
                self._waiters.pop(request_id, None)

    # -- worker side --------------------------------------------------------

    def _emit(self, message: WorkerMessage) -> None:
        with self._lock:
            if is_terminal(message):
                waiter = self._waiters.pop(message.request_id, None)
            else:
                waiter = self._waiters.get(message.request_id)
        if waiter is not None:
            waiter.put(message)
            return
        if self._on_message is None:
            self._outbox.put(message)
            return
        try:
            self._on_message(message)
        except Exception:
            logger.warning(f"on_message callback failed for {message.TYPE}", exc_info=True)

    def _run(self) -> None:
        while True:
            request = self._inbox.get()
            if request is None:
                break
            request_id = request.request_id

            with self._lock:
                self._pending.discard(request_id)
                cancelled = request_id in self._cancelled
                self._cancelled.discard(request_id)
            if cancelled or self._stopping:
                self._emit(ErrorMessage(request_id, CANCELLED if cancelled else STOPPED))
                continue

            start = time.perf_counter()
            try:
                self._emit(ProgressMessage(request_id, 0.0))
                result = compute_diff(request.left_text, request.right_text, request.options)
            except Exception as e:
                # Any failure must still end the request with its terminal message
                logger.warning(f"Request {request_id} failed: {e}")
                self._emit(ErrorMessage(request_id, f"{type(e).__name__}: {e}"))
                continue

            self._emit(ProgressMessage(request_id, 100.0))
            self._emit(ResultMessage(request_id, result))
            logger.debug(
                f"Request {request_id} done in {(time.perf_counter() - start) * 1000:.1f}ms"
            )

