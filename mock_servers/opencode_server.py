"""
Mock OpenCode Server

Minimal REST backend compatible with the OpenCode mobile client. Serves fake
sessions and messages from in-memory tables that live as long as the process.

Features:
- Session CRUD with a one-way idle -> archived lifecycle
- Message posting with an immediate mock assistant reply
- Static config/project endpoints and a per-session status map
- One seeded session at startup

Usage:
    mock-opencode-server
    # or
    uvicorn mock_servers.opencode_server:app --port 4096
"""

from typing import Optional

import uvicorn
from fastapi import FastAPI

from mock_servers.config import OpenCodeMockSettings
from mock_servers.core.exceptions import register_exception_handlers
from mock_servers.core.logging_config import get_logger, setup_logging
from mock_servers.middleware.access_log import AccessLogMiddleware
from mock_servers.middleware.cors import CORSHeadersMiddleware
from mock_servers.routes import opencode
from mock_servers.services.session_store import SessionStore

logger = get_logger(__name__)


def create_app(settings: Optional[OpenCodeMockSettings] = None) -> FastAPI:
    """Build an independent session backend mock with its own store."""
    settings = settings or OpenCodeMockSettings()

    app = FastAPI(
        title="Mock OpenCode Server",
        description="Session backend mock for client integration tests",
        version=settings.APP_VERSION,
        # A trailing slash is a different, unknown path
        redirect_slashes=False,
    )

    store = SessionStore(working_directory=settings.WORKING_DIRECTORY)
    if settings.SEED_SESSION:
        store.create_session(title=settings.SEED_SESSION_TITLE)

    app.state.settings = settings
    app.state.session_store = store

    register_exception_handlers(app, include_path_in_not_found=True)

    # Last added runs first: CORS wraps access logging
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(
        CORSHeadersMiddleware,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    )

    app.include_router(opencode.router)
    return app


app = create_app()


def main() -> None:
    settings = app.state.settings
    setup_logging(settings)

    logger.info(
        "mock_server_starting",
        url=f"http://localhost:{settings.port}",
        host=settings.HOST,
        seeded_sessions=len(app.state.session_store.list_sessions()),
    )

    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.port,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=False,  # AccessLogMiddleware logs requests
    )


if __name__ == "__main__":
    main()
