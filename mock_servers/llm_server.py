"""
Mock LLM Server

OpenAI-compatible chat completion API that returns predictable, echo-style
responses for integration testing of the mobile client. No model inference
takes place.

Features:
- Non-streaming completions with heuristic token usage
- Word-by-word SSE streaming on a fixed, deterministic schedule
- Permissive CORS for browser-based test clients

Usage:
    mock-llm-server
    # or
    uvicorn mock_servers.llm_server:app --port 4097
"""

from typing import Optional

import uvicorn
from fastapi import FastAPI

from mock_servers.config import LLMMockSettings
from mock_servers.core.exceptions import register_exception_handlers
from mock_servers.core.logging_config import get_logger, setup_logging
from mock_servers.middleware.access_log import AccessLogMiddleware
from mock_servers.middleware.cors import CORSHeadersMiddleware
from mock_servers.routes import llm
from mock_servers.services.completion_service import CompletionService

logger = get_logger(__name__)

ENDPOINTS = [
    "GET  /health - Health check",
    "GET  /v1/models - List models",
    "POST /v1/chat/completions - Chat completion (supports streaming)",
]


def create_app(settings: Optional[LLMMockSettings] = None) -> FastAPI:
    """Build an independent LLM mock application."""
    settings = settings or LLMMockSettings()

    app = FastAPI(
        title="Mock LLM Server",
        description="OpenAI-compatible chat completion mock for client integration tests",
        version=settings.APP_VERSION,
        # A trailing slash is a different, unknown path
        redirect_slashes=False,
    )

    app.state.settings = settings
    app.state.completion_service = CompletionService(
        word_delay_ms=settings.STREAM_WORD_DELAY_MS,
        finish_delay_ms=settings.STREAM_FINISH_DELAY_MS,
    )

    register_exception_handlers(app)

    # Last added runs first: CORS wraps access logging
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(CORSHeadersMiddleware, allow_methods=["GET", "POST", "OPTIONS"])

    app.include_router(llm.router)
    return app


app = create_app()


def main() -> None:
    settings = app.state.settings
    setup_logging(settings)

    logger.info(
        "mock_server_starting",
        url=f"http://localhost:{settings.port}",
        host=settings.HOST,
        endpoints=ENDPOINTS,
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
