"""Structured logging (structlog) with a stdlib bridge.

JSON lines in production, colored console output when debugging. Every entry
carries the request/correlation ids bound in ``lawnation.core.correlation``.
"""

import logging
import logging.config

import structlog

from lawnation.core.config import get_settings
from lawnation.core.correlation import get_correlation_id, get_request_id


def add_request_context(logger, method, event_dict):
    """Inject request/correlation ids when the caller did not bind them."""
    request_id = get_request_id()
    correlation_id = get_correlation_id()
    if request_id:
        event_dict.setdefault("request_id", request_id)
    if correlation_id:
        event_dict.setdefault("correlation_id", correlation_id)
    return event_dict


def setup_logging(debug: bool = False) -> None:
    """Configure structlog and route stdlib loggers through the same renderer.

    Call once at process start (API lifespan, Celery worker init).
    """
    settings = get_settings()
    log_level = "DEBUG" if debug else settings.log_level.upper()

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_request_context,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.log_json and not debug:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processors": [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    renderer,
                ],
                "foreign_pre_chain": shared_processors,
            },
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "structured",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {"handlers": ["default"], "level": log_level},
        "loggers": {
            "uvicorn.access": {"level": "WARNING"},
            "httpx": {"level": "WARNING"},
            "sqlalchemy.engine": {"level": "WARNING"},
        },
    })

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str):
    return structlog.get_logger(name)
