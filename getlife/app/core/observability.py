"""
Observability: logging setup and request middleware.

Every request gets a correlation id (taken from X-Correlation-ID when the
client sends one) that is echoed back and included in the request log line.
"""

import time
import uuid
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("getlife")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Logged at DEBUG
QUIET_PATHS = {"/health"}


def configure_logging(level: str = "INFO") -> None:
    """Attach a stream handler to the application logger once."""
    logger.setLevel(level.upper())
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)


def _level_for(path: str, status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    if path in QUIET_PATHS:
        return logging.DEBUG
    return logging.INFO


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        started = time.perf_counter()

        response = await call_next(request)

        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        response.headers["X-Correlation-ID"] = correlation_id
        response.headers["X-Process-Time"] = str(duration_ms)

        path = request.url.path
        logger.log(
            _level_for(path, response.status_code),
            "%s %s -> %s in %sms [cid=%s]",
            request.method, path, response.status_code, duration_ms, correlation_id,
            extra={
                "correlation_id": correlation_id,
                "method": request.method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "ip": request.client.host if request.client else "unknown",
            },
        )
        return response
