"""Request and correlation ids for the current HTTP request or worker job.

Ids are kept in context variables and mirrored into structlog's context so
every log line and every persisted job or audit row carries them.
"""

from __future__ import annotations

from contextvars import ContextVar
from uuid import uuid4

import structlog

_request_id: ContextVar[str] = ContextVar("request_id", default="")
_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def _short_id(prefix: str) -> str:
    return f"{prefix}-{uuid4().hex[:20]}"


def new_request_id() -> str:
    return _short_id("req")


def new_correlation_id() -> str:
    return _short_id("corr")


def get_request_id() -> str:
    return _request_id.get()


def get_correlation_id() -> str:
    return _correlation_id.get()


def bind_context(*, request_id: str | None, correlation_id: str | None, **extra: str) -> None:
    _request_id.set(request_id or "")
    _correlation_id.set(correlation_id or "")
    structlog.contextvars.bind_contextvars(
        request_id=_request_id.get(),
        correlation_id=_correlation_id.get(),
        **extra,
    )


def clear_context() -> None:
    for var in (_request_id, _correlation_id):
        var.set("")
    structlog.contextvars.clear_contextvars()
