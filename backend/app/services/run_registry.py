from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from functools import lru_cache

from app.core.config import Settings, get_settings
from app.core.exceptions import RunNotFoundError
from app.domain.run import RunState, RunStatus
from app.schemas.optimizer import OptimizationSettings
from app.services.notification_hub import OPTIMIZER_CHANNEL, notification_hub
from app.services.optimization_controller import Notifier, OptimizationController
from app.services.schedule_store import ScheduleStore, SqlScheduleStore

logger = logging.getLogger(__name__)


@dataclass
class RunHandle:
    controller: OptimizationController
    future: Future | None = None


class RunRegistry:
    """Runs optimizations on a background executor and keeps recent results in memory."""

    def __init__(
        self,
        *,
        store: ScheduleStore,
        app_settings: Settings,
        max_workers: int = 2,
        retained_runs: int = 50,
        notifier: Notifier | None = None,
    ) -> None:
        self.store = store
        self.app_settings = app_settings
        self.retained_runs = max(1, retained_runs)
        self.notifier = notifier
        self.executor = ThreadPoolExecutor(max_workers=max(1, max_workers), thread_name_prefix="optimizer")
        self._runs: OrderedDict[str, RunHandle] = OrderedDict()
        self._lock = threading.Lock()

    def start(self, settings: OptimizationSettings) -> RunState:
        controller = OptimizationController(
            store=self.store,
            settings=settings,
            app_settings=self.app_settings,
            notifier=self.notifier,
        )
        handle = RunHandle(controller=controller)
        with self._lock:
            self._runs[controller.run_id] = handle
            self._evict()
        handle.future = self.executor.submit(controller.start)
        logger.info("OPTIMIZATION RUN QUEUED | run_id=%s | algorithm=%s", controller.run_id, settings.algorithm.value)
        return controller.snapshot()

    def _evict(self) -> None:
        overflow = len(self._runs) - self.retained_runs
        if overflow <= 0:
            return
        for run_id in list(self._runs):
            if overflow <= 0:
                break
            if self._runs[run_id].controller.snapshot().status.is_terminal:
                del self._runs[run_id]
                overflow -= 1

    def _handle(self, run_id: str) -> RunHandle:
        with self._lock:
            handle = self._runs.get(run_id)
        if handle is None:
            raise RunNotFoundError(run_id)
        return handle

    def get(self, run_id: str) -> RunState:
        return self._handle(run_id).controller.snapshot()

    def cancel(self, run_id: str) -> RunState:
        handle = self._handle(run_id)
        status = handle.controller.cancel()
        logger.info("OPTIMIZATION CANCEL REQUESTED | run_id=%s | status=%s", run_id, status.value)
        return handle.controller.snapshot()

    def wait(self, run_id: str, timeout: float | None = None) -> RunState:
        handle = self._handle(run_id)
        if handle.future is not None:
            handle.future.result(timeout=timeout)
        return handle.controller.snapshot()

    def list_runs(self) -> list[RunState]:
        with self._lock:
            handles = list(self._runs.values())
        return [handle.controller.snapshot() for handle in reversed(handles)]

    def active_count(self) -> int:
        return sum(1 for state in self.list_runs() if state.status in (RunStatus.idle, RunStatus.running))

    def shutdown(self) -> None:
        with self._lock:
            handles = list(self._runs.values())
        for handle in handles:
            handle.controller.cancel()
        # Queued runs still get picked up, observe the cancel flag and finish as cancelled.
        self.executor.shutdown(wait=True)
        logger.info("OPTIMIZER REGISTRY STOPPED | runs=%s", len(handles))


def publish_run_event(payload: dict) -> None:
    notification_hub.publish_threadsafe(OPTIMIZER_CHANNEL, payload)


@lru_cache
def get_run_registry() -> RunRegistry:
    from app.db.session import SessionLocal

    settings = get_settings()
    return RunRegistry(
        store=SqlScheduleStore(SessionLocal),
        app_settings=settings,
        max_workers=settings.optimizer_max_workers,
        retained_runs=settings.optimizer_retained_runs,
        notifier=publish_run_event,
    )


def shutdown_run_registry() -> None:
    """Cancel and drain the app-wide registry if one was ever created."""
    if get_run_registry.cache_info().currsize == 0:
        return
    get_run_registry().shutdown()
    get_run_registry.cache_clear()
