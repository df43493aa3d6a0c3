"""Response envelope shared by every route and exception handler.

    {"ok": bool, "data": ..., "error": {code, message, details} | null,
     "meta": {request_id, correlation_id, timestamp, ...}}
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi.responses import JSONResponse

from lawnation.core.correlation import get_correlation_id, get_request_id
from lawnation.core.exceptions import LawNationError


def response_meta(extra: dict[str, Any] | None = None) -> dict[str, Any]:
    return {
        "request_id": get_request_id() or None,
        "correlation_id": get_correlation_id() or None,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        **(extra or {}),
    }


def _envelope(status_code: int, *, data: Any = None, error: dict[str, Any] | None = None, meta=None) -> JSONResponse:
    body = {"ok": error is None, "data": data, "error": error, "meta": response_meta(meta)}
    return JSONResponse(status_code=status_code, content=body)


def success_envelope(data: Any, *, status_code: int = 200, meta: dict[str, Any] | None = None) -> JSONResponse:
    return _envelope(status_code, data=data, meta=meta)


def error_envelope(
    *,
    code: str,
    message: str,
    status_code: int = 400,
    details: Any = None,
    meta: dict[str, Any] | None = None,
) -> JSONResponse:
    return _envelope(status_code, error={"code": code, "message": message, "details": details}, meta=meta)


def envelope_for_error(exc: LawNationError, *, meta: dict[str, Any] | None = None) -> JSONResponse:
    """Domain errors keep their stable code and HTTP status."""
    return error_envelope(
        code=exc.code,
        message=exc.message,
        status_code=exc.http_status,
        details=exc.details or None,
        meta=meta,
    )
