from __future__ import annotations

import logging

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.config import Settings

logger = logging.getLogger(__name__)

STATIC_RESPONSE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}
BODY_METHODS = {"POST", "PUT", "PATCH"}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, *, settings: Settings) -> None:
        super().__init__(app)
        self._headers = dict(STATIC_RESPONSE_HEADERS)
        if settings.security_enable_hsts:
            max_age = max(1, settings.security_hsts_max_age_seconds)
            self._headers["Strict-Transport-Security"] = f"max-age={max_age}; includeSubDomains"

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        for name, value in self._headers.items():
            response.headers.setdefault(name, value)
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Rejects settings and run requests whose declared body exceeds the configured size."""

    def __init__(self, app, *, max_bytes: int) -> None:
        super().__init__(app)
        self._max_bytes = max(1, max_bytes)

    def _reject(self, request: Request, status_code: int, message: str) -> JSONResponse:
        logger.warning(
            "REQUEST REJECTED | method=%s | path=%s | status=%s | reason=%s",
            request.method,
            request.url.path,
            status_code,
            message,
        )
        return JSONResponse(
            status_code=status_code,
            content={"message": message, "details": {"max_bytes": self._max_bytes}},
        )

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method not in BODY_METHODS:
            return await call_next(request)

        declared = request.headers.get("content-length")
        if not declared:
            return await call_next(request)
        if not declared.isdigit():
            return self._reject(request, 400, "Invalid Content-Length header")
        if int(declared) > self._max_bytes:
            return self._reject(request, 413, f"Request body too large ({declared} bytes)")
        return await call_next(request)
