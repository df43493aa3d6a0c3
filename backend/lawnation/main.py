"""
Law Nation Editorial
====================
Editorial workflow for the Law Nation journal: submission, editing,
review, citation and publication of articles with a full version and
change history.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from lawnation.api.errors import register_exception_handlers
from lawnation.api.routes.admin import router as admin_router
from lawnation.api.routes.articles import router as articles_router
from lawnation.api.routes.submissions import router as submissions_router
from lawnation.core.config import get_settings
from lawnation.core.correlation import bind_context, clear_context, new_correlation_id, new_request_id
from lawnation.core.database import init_db
from lawnation.core.logging import get_logger, setup_logging
from lawnation.scheduler import start_scheduler, stop_scheduler

VERSION = "1.0.0"

settings = get_settings()
logger = get_logger("main")

_started = time.monotonic()
_UNLOGGED = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(debug=settings.app_debug)
    logger.info("app_starting", app=settings.app_name, env=settings.app_env)
    await init_db()
    start_scheduler()
    logger.info("app_ready", port=settings.app_port)
    try:
        yield
    finally:
        stop_scheduler()
        logger.info("app_shutdown")


async def request_context(request: Request, call_next):
    """Bind request/correlation ids for the request and echo them back."""
    ids = {
        "request_id": request.headers.get("x-request-id") or new_request_id(),
        "correlation_id": request.headers.get("x-correlation-id") or new_correlation_id(),
    }
    bind_context(**ids)
    began = time.perf_counter()
    status = 500
    try:
        response = await call_next(request)
        status = response.status_code
        response.headers["x-request-id"] = ids["request_id"]
        response.headers["x-correlation-id"] = ids["correlation_id"]
        return response
    finally:
        if request.url.path not in _UNLOGGED:
            logger.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status=status,
                elapsed_ms=round((time.perf_counter() - began) * 1000, 2),
                **ids,
            )
        clear_context()


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.app_name,
        description="Editorial workflow service: submissions, assignments, corrections, citation and publication.",
        version=VERSION,
        lifespan=lifespan,
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.middleware("http")(request_context)
    register_exception_handlers(application)

    for router in (submissions_router, articles_router, admin_router):
        application.include_router(router, prefix="/api/v1")

    @application.get("/health", tags=["System"])
    async def health_check():
        return {"status": "ok", "version": VERSION, "uptime_seconds": round(time.monotonic() - _started, 2)}

    return application


app = create_app()
