"""Request logging middleware for the Palaro services.

Every request gets an ``X-Request-ID`` (propagated from the caller when
present) that is bound to the logging context for the lifetime of the
request and echoed back on the response.

Usage:
    from libs.common.middleware import add_observability_middleware

    app = FastAPI()
    add_observability_middleware(app)
"""
import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from libs.common.logging import (
    clear_request_context,
    configure_logging,
    get_logger,
    set_request_context,
)

logger = get_logger(__name__)

# Paths that are polled constantly or held open for streaming.
QUIET_PATHS = ("/health", "/store/realtime", "/chat/realtime")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id to the log context and log request duration."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = set_request_context(
            request_id=request.headers.get("X-Request-ID"),
            path=request.url.path,
            method=request.method,
        )
        quiet = request.url.path in QUIET_PATHS
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(
                "Request failed with unhandled exception",
                extra={"extra_fields": {
                    "error": str(e),
                    "duration_ms": round((time.perf_counter() - start_time) * 1000, 2),
                }},
            )
            raise
        finally:
            clear_request_context()

        if not quiet:
            duration_ms = (time.perf_counter() - start_time) * 1000
            level = "warning" if response.status_code >= 400 else "info"
            getattr(logger, level)(
                "%s %s -> %s (%.2f ms)",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
                extra={"extra_fields": {
                    "status_code": response.status_code,
                    "duration_ms": round(duration_ms, 2),
                }},
            )

        response.headers["X-Request-ID"] = request_id
        return response


def add_observability_middleware(app: FastAPI) -> None:
    """
    Configure logging and install the request context middleware.
    """
    configure_logging()
    app.add_middleware(RequestContextMiddleware)
