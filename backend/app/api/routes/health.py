from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.api.deps import get_registry
from app.db.bootstrap import missing_schema_items
from app.db.session import engine
from app.services.run_registry import RunRegistry

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def database_status() -> dict:
    """Connectivity plus the optimizer tables and columns that are still missing."""
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
            missing_tables, missing_columns = missing_schema_items(connection)
    except Exception as exc:  # pragma: no cover - environment dependent
        return {"ok": False, "schema_ok": False, "missing_tables": [], "missing_columns": {}, "error": str(exc)}
    return {
        "ok": True,
        "schema_ok": not missing_tables and not missing_columns,
        "missing_tables": missing_tables,
        "missing_columns": missing_columns,
        "error": None,
    }


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live() -> dict:
    return {"status": "ok", "timestamp": _now()}


@router.get("/health/ready")
def health_ready(registry: RunRegistry = Depends(get_registry)) -> JSONResponse:
    database = database_status()
    ready = database["ok"] and database["schema_ok"]
    runs = registry.list_runs()
    payload = {
        "status": "ok" if ready else "degraded",
        "timestamp": _now(),
        "database": database,
        "optimizer": {
            "active_runs": registry.active_count(),
            "retained_runs": len(runs),
        },
    }
    return JSONResponse(status_code=200 if ready else 503, content=payload)
