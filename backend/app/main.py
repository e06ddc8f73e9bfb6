import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import health, optimizer
from app.core.config import get_settings
from app.core.exceptions import AppError
from app.core.middleware import RequestSizeLimitMiddleware, SecurityHeadersMiddleware
from app.db.bootstrap import ensure_runtime_schema
from app.services.notification_hub import notification_hub
from app.services.run_registry import shutdown_run_registry

logger = logging.getLogger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(_: FastAPI):
    ensure_runtime_schema()
    # Search threads publish run events onto this loop.
    notification_hub.bind_loop(asyncio.get_running_loop())
    logger.info("OPTIMIZER API STARTED | prefix=%s | planning_period=%s", settings.api_prefix, settings.planning_period)
    try:
        yield
    finally:
        shutdown_run_registry()
        notification_hub.bind_loop(None)


app = FastAPI(title=settings.project_name, lifespan=lifespan)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("REQUEST FAILED | path=%s | status=%s | error=%s", request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message, "details": exc.details})


app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)
app.add_middleware(SecurityHeadersMiddleware, settings=settings)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for module, tag in ((health, "health"), (optimizer, "optimizer")):
    app.include_router(module.router, prefix=settings.api_prefix, tags=[tag])
