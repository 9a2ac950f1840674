"""
Structured logging configuration with structlog.

Both mock servers log to STDOUT so a test harness can capture their output
next to the client under test:

- Human-readable console logs for local development
- Structured JSON logs when ENVIRONMENT=production (CI log collectors)
- Per-request correlation IDs bound through structlog contextvars
- Uvicorn access logs disabled in favour of AccessLogMiddleware
"""

import logging
import logging.config
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from mock_servers.config import MockServerSettings


def _app_context_processor(settings: MockServerSettings):
    """Build a processor that stamps every entry with the server identity."""

    def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict["service"] = settings.SERVICE_NAME
        event_dict["version"] = settings.APP_VERSION
        event_dict["environment"] = settings.ENVIRONMENT
        return event_dict

    return add_app_context


def add_severity_level(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Mirror the level as an upper-case severity label for log aggregators."""
    if "level" in event_dict:
        event_dict["severity"] = event_dict["level"].upper()
    return event_dict


def setup_logging(settings: MockServerSettings) -> None:
    """
    Configure structlog and the standard library logging tree.

    Third-party loggers (uvicorn, asyncio) are routed through the same
    formatter so one server produces one homogeneous stream.
    """
    log_level_name = settings.LOG_LEVEL.upper()
    json_output = settings.ENVIRONMENT == "production"

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _app_context_processor(settings),
        add_severity_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=True)
    )

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processor": renderer,
                "foreign_pre_chain": shared_processors,
            },
        },
        "handlers": {
            "default": {
                "level": log_level_name,
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
                "formatter": "structured",
            },
        },
        "loggers": {
            "": {
                "handlers": ["default"],
                "level": log_level_name,
                "propagate": False,
            },
            "uvicorn": {
                "handlers": ["default"],
                "level": log_level_name,
                "propagate": False,
            },
            "uvicorn.error": {
                "handlers": ["default"],
                "level": log_level_name,
                "propagate": False,
            },
            # Replaced by AccessLogMiddleware
            "uvicorn.access": {
                "handlers": [],
                "level": "CRITICAL",
                "propagate": False,
            },
            "asyncio": {
                "handlers": ["default"],
                "level": "WARNING",
                "propagate": False,
            },
        },
    })

    get_logger(__name__).info(
        "logging_configured",
        log_level=log_level_name,
        format="json" if json_output else "console",
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Usage:
        logger = get_logger(__name__)
        logger.info("session_created", session_id=session.id)
    """
    return structlog.get_logger(name)
