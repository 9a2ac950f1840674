from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mock_servers.core.logging_config import get_logger

logger = get_logger(__name__)


class MockServerError(Exception):
    """Base class for errors that map to a JSON error body."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, payload: Any):
        super().__init__(payload)
        self.payload = payload


class InvalidRequestError(MockServerError):
    """Raised when a chat completion body cannot be parsed."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Invalid request"):
        super().__init__({"error": {"message": message, "type": "invalid_request_error"}})


class SessionNotFoundError(MockServerError):
    """Raised when a session id does not resolve to a live session."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, session_id: str):
        super().__init__({"error": "Session not found"})
        self.session_id = session_id


def register_exception_handlers(app: FastAPI, include_path_in_not_found: bool = False) -> None:
    """
    Install the JSON error handlers used by both mock servers.

    Unknown routes and known routes hit with an unsupported method both
    answer 404, matching a path-and-method dispatcher.
    """

    async def handle_mock_error(request: Request, exc: MockServerError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.payload)

    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            body: dict[str, Any] = {"error": "Not found"}
            if include_path_in_not_found:
                body["path"] = request.url.path
            return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=body)
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    app.add_exception_handler(MockServerError, handle_mock_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
