from __future__ import annotations

import logging
import queue
import threading
from collections import deque
from collections.abc import Callable
from time import perf_counter

from app.core.exceptions import RunCancelledError
from app.domain.run import ProgressUpdate

logger = logging.getLogger(__name__)

ProgressListener = Callable[[ProgressUpdate], None]

_STOP = object()


class ProgressDispatcher:
    """Delivers progress updates to a listener on its own thread.

    The queue is bounded; when the listener falls behind, new updates are dropped
    instead of stalling the search loop that produced them.
    """

    def __init__(self, listener: ProgressListener, *, run_id: str | None = None, maxsize: int = 256) -> None:
        self.listener = listener
        self.run_id = run_id
        self.dropped = 0
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._thread = threading.Thread(target=self._drain, name=f"progress-{run_id or 'anon'}", daemon=True)
        self._thread.start()

    def submit(self, update: ProgressUpdate) -> None:
        try:
            self._queue.put_nowait(update)
        except queue.Full:
            self.dropped += 1

    def _drain(self) -> None:
        while True:
            update = self._queue.get()
            if update is _STOP:
                return
            try:
                self.listener(update)
            except Exception:
                logger.exception("PROGRESS LISTENER FAILED | run_id=%s", self.run_id)

    def close(self, timeout: float | None = 2.0) -> bool:
        """Stop after pending updates are delivered; False if the listener is still busy."""
        try:
            self._queue.put(_STOP, timeout=timeout)
        except queue.Full:
            logger.warning("PROGRESS LISTENER BACKLOGGED | run_id=%s | dropped=%s", self.run_id, self.dropped)
            return False
        self._thread.join(timeout)
        if self.dropped:
            logger.debug("PROGRESS UPDATES DROPPED | run_id=%s | dropped=%s", self.run_id, self.dropped)
        return not self._thread.is_alive()


class SearchMonitor:
    """Iteration checkpoint shared by all strategies of one run.

    ``checkpoint`` is the only place a search loop can be suspended: it raises
    ``RunCancelledError`` once cancellation is requested and returns False when the
    time or iteration budget is spent, in which case the caller stops and keeps its best.
    """

    def __init__(
        self,
        *,
        run_id: str | None = None,
        cancel_event: threading.Event | None = None,
        time_budget_seconds: float | None = None,
        max_iterations: int | None = None,
        progress_every: int = 1,
        listener: ProgressListener | None = None,
        buffer_size: int = 256,
    ) -> None:
        self.run_id = run_id
        self.cancel_event = cancel_event or threading.Event()
        self.time_budget_seconds = time_budget_seconds
        self.max_iterations = max_iterations
        self.progress_every = max(1, progress_every)
        self.buffer: deque[ProgressUpdate] = deque(maxlen=buffer_size)
        self.dispatcher = (
            ProgressDispatcher(listener, run_id=run_id, maxsize=buffer_size) if listener is not None else None
        )
        self.started_at = perf_counter()
        self.budget_exhausted = False
        self.total_iterations = 0
        self.stage = "idle"
        self._offset = 0
        self._stage_iterations = 0
        self._consumed = 0

    def plan(self, total_iterations: int) -> None:
        self.total_iterations = max(0, total_iterations)

    def begin_stage(self, stage: str, iterations: int, *, capped: bool = True) -> int:
        """Start a stage and return how many iterations it may actually run."""
        self._offset = self._consumed
        self.stage = stage
        allowed = iterations
        if capped and self.max_iterations is not None:
            allowed = min(allowed, self.max_iterations)
        self._stage_iterations = allowed
        if self.total_iterations < self._offset + allowed:
            self.total_iterations = self._offset + allowed
        return allowed

    @property
    def elapsed_seconds(self) -> float:
        return perf_counter() - self.started_at

    def raise_if_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise RunCancelledError(self.run_id)

    def checkpoint(self, iteration: int, best_score: float) -> bool:
        self.raise_if_cancelled()
        self._consumed = self._offset + iteration
        if iteration % self.progress_every == 0 or iteration >= self._stage_iterations:
            self.report(iteration, best_score)
        if self.time_budget_seconds is not None and self.elapsed_seconds >= self.time_budget_seconds:
            if not self.budget_exhausted:
                logger.info(
                    "OPTIMIZATION BUDGET REACHED | run_id=%s | stage=%s | elapsed_s=%.2f",
                    self.run_id,
                    self.stage,
                    self.elapsed_seconds,
                )
            self.budget_exhausted = True
            return False
        return iteration < self._stage_iterations

    def report(self, iteration: int, best_score: float) -> None:
        update = ProgressUpdate(
            stage=self.stage,
            iteration=self._offset + iteration,
            total_iterations=self.total_iterations,
            best_score=round(best_score, 4),
        )
        self.buffer.append(update)
        if self.dispatcher is not None:
            self.dispatcher.submit(update)

    @property
    def latest(self) -> ProgressUpdate | None:
        return self.buffer[-1] if self.buffer else None

    def close(self, timeout: float | None = 2.0) -> bool:
        if self.dispatcher is None:
            return True
        return self.dispatcher.close(timeout)

    def finish_stage(self, best_score: float) -> None:
        self._consumed = self._offset + self._stage_iterations
        self.report(self._stage_iterations, best_score)
