"""
Progress Reporting Portal - HTTP Middleware
Per-request correlation ids, report context and timing
"""

import time
from typing import Callable, Set
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from portal.core.logging_config import (
    logger,
    set_request_id,
    set_report_id,
    generate_request_id,
)


# Health checks and API docs are not worth a log line
QUIET_PATHS: Set[str] = {
    "/",
    "/health",
    "/favicon.ico",
    "/docs",
    "/redoc",
    "/openapi.json",
}

# Segments after /reports/ that are routes, not report ids
NON_ID_REPORT_SEGMENTS: Set[str] = {"export", "college", "year"}


def should_skip_logging(path: str) -> bool:
    return (
        path in QUIET_PATHS
        or path.endswith("/health")
        or path.startswith("/static/")
    )


def extract_report_id(path: str) -> str:
    """Return the report id embedded in a /reports/<id>/... path, or ''"""
    if "/reports/" not in path:
        return ""
    segment = path.split("/reports/", 1)[1].split("/")[0]
    if not segment or segment in NON_ID_REPORT_SEGMENTS:
        return ""
    return segment


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an X-Request-ID (reusing the caller's one when
    present), exposes the report id under work to downstream log records
    and logs one line per completed request. Requests slower than
    slow_request_ms are logged again as a warning.
    """

    def __init__(self, app: ASGIApp, slow_request_ms: float = 1000):
        super().__init__(app)
        self.slow_request_ms = slow_request_ms

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        path = request.url.path
        set_request_id(request_id)
        set_report_id(extract_report_id(path))

        quiet = should_skip_logging(path)
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.log_error_with_context(
                exc,
                context=f"{request.method} {path}",
                duration_ms=(time.perf_counter() - start_time) * 1000,
            )
            set_request_id("")
            set_report_id("")
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

        if not quiet:
            logger.log_request(
                request.method,
                path,
                response.status_code,
                duration_ms,
                client_ip=request.client.host if request.client else "unknown",
            )
            if duration_ms > self.slow_request_ms:
                logger.warning(
                    f"Slow request: {request.method} {path} took {duration_ms:.2f}ms",
                    extra={"event_type": "slow_request", "duration_ms": duration_ms},
                )

        set_request_id("")
        set_report_id("")
        return response


__all__ = [
    "RequestLoggingMiddleware",
    "should_skip_logging",
    "extract_report_id",
]
