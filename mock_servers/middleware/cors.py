"""
Permissive CORS handling and last-resort error conversion.

Starlette's CORSMiddleware only answers preflights that carry an Origin and
Access-Control-Request-Method, and answers them with 200. Browser-based test
clients of the mobile app expect the mock contract instead: every OPTIONS is a
204, and every response, errors included, carries the allow headers.
"""

from typing import Callable, Sequence

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from mock_servers.core.logging_config import get_logger
from mock_servers.middleware.access_log import correlation_headers

logger = get_logger(__name__)

DEFAULT_ALLOW_HEADERS = ("Content-Type", "Authorization")


class CORSHeadersMiddleware(BaseHTTPMiddleware):
    """
    Outermost middleware of both mock servers.

    Any exception that escapes the route handlers is turned into a
    500 ``{"error": "<cause>"}`` body here, so nothing propagates past the
    dispatcher and the error still carries CORS headers.
    """

    def __init__(
        self,
        app: ASGIApp,
        allow_methods: Sequence[str],
        allow_headers: Sequence[str] = DEFAULT_ALLOW_HEADERS,
    ):
        super().__init__(app)
        self.cors_headers = {
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": ", ".join(allow_methods),
            "Access-Control-Allow-Headers": ", ".join(allow_headers),
        }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=status.HTTP_204_NO_CONTENT, headers=self.cors_headers)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                exc_info=True,
            )
            response = JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": str(e)},
            )
            # Set by AccessLogMiddleware before the error escaped it
            correlation_id = getattr(request.state, "correlation_id", None)
            if correlation_id:
                response.headers.update(correlation_headers(correlation_id))

        response.headers.update(self.cors_headers)
        return response
