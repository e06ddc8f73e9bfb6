import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_registry
from app.domain.run import RunState
from app.schemas.optimizer import (
    MetricsOut,
    OptimizationSettings,
    RunProgressOut,
    RunResultOut,
    RunSummaryOut,
    StartRunRequest,
    StartRunResponse,
)
from app.schemas.timetable import ScheduleEntryOut
from app.services.notification_hub import OPTIMIZER_CHANNEL, notification_hub
from app.services.optimization_settings import load_optimization_settings, save_optimization_settings
from app.services.run_registry import RunRegistry

router = APIRouter()
logger = logging.getLogger(__name__)


def _progress_out(state: RunState) -> RunProgressOut:
    progress = state.progress
    if progress is None:
        return RunProgressOut(run_id=state.run_id, status=state.status)
    return RunProgressOut(
        run_id=state.run_id,
        status=state.status,
        stage=progress.stage,
        generation_or_iteration=progress.iteration,
        total_iterations=progress.total_iterations,
        percent_complete=progress.percent_complete,
        best_score_so_far=progress.best_score,
    )


def _result_out(state: RunState) -> RunResultOut:
    schedule = None
    unresolved: list[str] = []
    if state.schedule is not None:
        schedule = [ScheduleEntryOut.model_validate(entry) for entry in state.schedule.entries]
        unresolved = [item.describe() for item in state.schedule.unresolved]
    metrics = None
    if state.metrics is not None:
        metrics = MetricsOut(
            total_conflicts=state.metrics.total_conflicts,
            faculty_utilization=state.metrics.faculty_utilization,
            room_utilization=state.metrics.room_utilization,
            student_satisfaction=state.metrics.student_satisfaction,
            overall_score=state.metrics.overall_score,
        )
    return RunResultOut(
        run_id=state.run_id,
        status=state.status,
        algorithm=state.algorithm,
        schedule=schedule,
        metrics=metrics,
        improvements=list(state.improvements),
        warnings=list(state.warnings),
        unresolved_sessions=unresolved,
        error=state.error,
        random_seed=state.random_seed,
        runtime_ms=state.runtime_ms,
    )


@router.get("/optimizer/settings", response_model=OptimizationSettings)
def get_optimizer_settings(db: Session = Depends(get_db)) -> OptimizationSettings:
    return load_optimization_settings(db)


@router.put("/optimizer/settings", response_model=OptimizationSettings)
def update_optimizer_settings(
    payload: OptimizationSettings,
    db: Session = Depends(get_db),
) -> OptimizationSettings:
    saved = save_optimization_settings(db, payload)
    logger.info(
        "OPTIMIZER SETTINGS UPDATED | algorithm=%s | population=%s | generations=%s",
        saved.algorithm.value,
        saved.population_size,
        saved.generations,
    )
    return saved


@router.post("/optimizer/runs", response_model=StartRunResponse, status_code=status.HTTP_202_ACCEPTED)
def start_run(
    payload: StartRunRequest | None = None,
    db: Session = Depends(get_db),
    registry: RunRegistry = Depends(get_registry),
) -> StartRunResponse:
    payload = payload or StartRunRequest()
    settings = payload.settings_override or load_optimization_settings(db)
    updates = {}
    if payload.algorithm is not None:
        updates["algorithm"] = payload.algorithm
    if payload.planning_period is not None:
        updates["planning_period"] = payload.planning_period
    if updates:
        settings = settings.model_copy(update=updates)
    state = registry.start(settings)
    return StartRunResponse(run_id=state.run_id, status=state.status)


@router.get("/optimizer/runs", response_model=list[RunSummaryOut])
def list_runs(registry: RunRegistry = Depends(get_registry)) -> list[RunSummaryOut]:
    return [
        RunSummaryOut(
            run_id=state.run_id,
            algorithm=state.algorithm,
            status=state.status,
            percent_complete=state.progress.percent_complete if state.progress else 0.0,
        )
        for state in registry.list_runs()
    ]


@router.get("/optimizer/runs/{run_id}/progress", response_model=RunProgressOut)
def get_run_progress(run_id: str, registry: RunRegistry = Depends(get_registry)) -> RunProgressOut:
    return _progress_out(registry.get(run_id))


@router.get("/optimizer/runs/{run_id}/result", response_model=RunResultOut)
def get_run_result(run_id: str, registry: RunRegistry = Depends(get_registry)) -> RunResultOut:
    return _result_out(registry.get(run_id))


@router.post("/optimizer/runs/{run_id}/cancel", response_model=RunProgressOut)
def cancel_run(run_id: str, registry: RunRegistry = Depends(get_registry)) -> RunProgressOut:
    return _progress_out(registry.cancel(run_id))


@router.websocket("/optimizer/events")
async def optimizer_events(websocket: WebSocket) -> None:
    await notification_hub.connect(OPTIMIZER_CHANNEL, websocket)
    try:
        await websocket.send_json({"event": "connected", "channel": OPTIMIZER_CHANNEL})
        while True:
            message = await websocket.receive_text()
            if message.strip().lower() == "ping":
                await websocket.send_json({"event": "pong"})
    except WebSocketDisconnect:
        pass
    finally:
        await notification_hub.disconnect(OPTIMIZER_CHANNEL, websocket)
