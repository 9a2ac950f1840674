"""
Dependency injection for FastAPI routes.

Each application instance owns its services on ``app.state``; routes reach
them through these dependencies, which tests can override:

    app.dependency_overrides[get_session_store] = lambda: SessionStore()
"""

import re

from fastapi import Request, status
from starlette.exceptions import HTTPException as StarletteHTTPException

from mock_servers.config import MockServerSettings
from mock_servers.services.completion_service import CompletionService
from mock_servers.services.session_store import SessionStore

SESSION_ID_PATTERN = re.compile(r"[\w-]+", re.ASCII)


def get_completion_service(request: Request) -> CompletionService:
    return request.app.state.completion_service


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_settings(request: Request) -> MockServerSettings:
    return request.app.state.settings


def get_session_id(session_id: str) -> str:
    """
    Path segment naming a session.

    Only letters, digits, underscores and hyphens form a session route; any
    other segment is an unknown path, not an unknown session.
    """
    if not SESSION_ID_PATTERN.fullmatch(session_id):
        raise StarletteHTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return session_id
