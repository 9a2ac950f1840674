"""
Structured access log middleware.

Replaces Uvicorn's access log with one structlog entry per request carrying
method, path, status, timing and a correlation ID, so a failing integration
test can be matched to the exact request the mock received.
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from structlog.contextvars import bind_contextvars, clear_contextvars

from mock_servers.core.logging_config import get_logger

logger = get_logger(__name__)


def correlation_headers(correlation_id: str) -> dict:
    return {"X-Correlation-ID": correlation_id, "X-Request-ID": correlation_id}


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Log every request with a correlation ID and its duration."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = (
            request.headers.get("X-Correlation-ID")
            or request.headers.get("X-Request-ID")
            or str(uuid.uuid4())
        )

        # Visible to every log emitted while handling this request
        bind_contextvars(correlation_id=correlation_id)
        request.state.correlation_id = correlation_id

        start_time = time.perf_counter()
        method = request.method
        path = request.url.path
        client_host = request.client.host if request.client else None

        logger.debug("request_started", method=method, path=path, client_ip=client_host)

        response = None
        error = None
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception as e:
            error = e
            logger.error(
                "request_error_unhandled",
                method=method,
                path=path,
                error_type=type(e).__name__,
                error=str(e),
                exc_info=True,
            )
            raise
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000

            if status_code >= 500:
                log_method = logger.error
            elif status_code >= 400:
                log_method = logger.warning
            else:
                log_method = logger.info

            # For event streams this is time-to-headers, not time-to-last-frame
            log_method(
                "http_request",
                method=method,
                path=path,
                query_params=str(request.url.query) or None,
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
                client_ip=client_host,
                error_type=type(error).__name__ if error else None,
            )

            clear_contextvars()

        response.headers.update(correlation_headers(correlation_id))
        return response
