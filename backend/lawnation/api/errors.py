"""Exception handlers: every failure leaves the API inside the envelope."""

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError

from lawnation.api.envelope import envelope_for_error, error_envelope
from lawnation.core.exceptions import LawNationError
from lawnation.core.logging import get_logger

logger = get_logger("api.errors")


def _path_meta(request: Request) -> dict[str, str]:
    return {"path": request.url.path}


async def on_domain_error(request: Request, exc: LawNationError):
    logger.warning(
        "workflow_request_refused",
        path=request.url.path,
        error_code=exc.code,
        status_code=exc.http_status,
        error=exc.message,
    )
    return envelope_for_error(exc, meta=_path_meta(request))


async def on_http_error(request: Request, exc: HTTPException):
    logger.warning("http_exception", path=request.url.path, status_code=exc.status_code, detail=str(exc.detail))
    return error_envelope(
        code="http_error",
        message="Request failed",
        status_code=exc.status_code,
        details=exc.detail,
        meta=_path_meta(request),
    )


async def on_validation_error(request: Request, exc: RequestValidationError):
    problems = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    logger.warning("validation_error", path=request.url.path, errors=problems)
    return error_envelope(
        code="validation_error",
        message="Validation failed",
        status_code=422,
        details=problems,
        meta=_path_meta(request),
    )


async def on_unhandled(request: Request, exc: Exception):
    logger.error("unhandled_exception", path=request.url.path, error=str(exc), error_type=type(exc).__name__)
    return error_envelope(
        code="internal_error",
        message="Internal server error",
        status_code=500,
        meta=_path_meta(request),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LawNationError, on_domain_error)
    app.add_exception_handler(HTTPException, on_http_error)
    app.add_exception_handler(RequestValidationError, on_validation_error)
    app.add_exception_handler(Exception, on_unhandled)
