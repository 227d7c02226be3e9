"""FastAPI application factory and entry point.

Creates the application instance, registers the request-logging middleware
and the domain exception handler, and mounts the route routers.

Usage::

    # Development server (from project root)
    uvicorn funnel_builder.api.main:app --reload

    # Production
    gunicorn funnel_builder.api.main:app -k uvicorn.workers.UvicornWorker
"""

from __future__ import annotations

import time
import uuid
from typing import Callable, Optional

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse

from funnel_builder.config.settings import get_settings
from funnel_builder.core.exceptions import (
    CloneConstraintError,
    CloneFatalError,
    CloneTimeoutError,
    ConflictError,
    FunnelBuilderError,
    NotFoundError,
)
from funnel_builder.core.logging_config import configure_logging, request_id_var

# ---------------------------------------------------------------------------
# Logging configuration - applied once at module import time so that log
# records emitted during app construction are captured correctly.
# The log level is re-applied inside create_app() after settings are loaded.
# ---------------------------------------------------------------------------

configure_logging("INFO")

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Domain error -> HTTP status
# ---------------------------------------------------------------------------

_STATUS_BY_ERROR: tuple[tuple[type[FunnelBuilderError], int], ...] = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (CloneConstraintError, status.HTTP_409_CONFLICT),
    (CloneTimeoutError, status.HTTP_504_GATEWAY_TIMEOUT),
    (CloneFatalError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)
"""Ordered most-specific first; the first ``isinstance`` match wins."""


def status_for_error(exc: FunnelBuilderError) -> int:
    """Return the HTTP status code for a domain exception."""
    for error_cls, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def funnel_builder_error_handler(request: Request, exc: FunnelBuilderError) -> JSONResponse:
    """Render a domain exception as ``{"error": <class>, "detail": <message>}``.

    Constraint violations also carry ``"retryable": true``.
    """
    status_code = status_for_error(exc)
    body: dict[str, object] = {"error": type(exc).__name__, "detail": str(exc)}
    if isinstance(exc, CloneConstraintError):
        body["retryable"] = exc.retryable
    return JSONResponse(status_code=status_code, content=body)


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application.

    Separated from the module-level ``app`` singleton so that tests can
    call ``create_app()`` with a patched settings environment before the
    singleton is created.

    Returns:
        A fully configured ``FastAPI`` instance.
    """
    settings = get_settings()

    # Re-apply logging configuration with the correct level from settings.
    configure_logging(settings.log_level)

    application = FastAPI(
        title=settings.app_name,
        description="Internal API of the funnel builder backend.",
        version="0.1.0",
        debug=settings.debug,
        redirect_slashes=False,
    )

    # ---- Request logging middleware ----------------------------------------

    @application.middleware("http")
    async def request_logging_middleware(
        request: Request, call_next: Callable
    ) -> Response:
        """Log every incoming request and its response status + duration.

        Attaches a unique ``request_id`` to the structlog context so that all
        log lines emitted during a request can be correlated.
        """
        request_id = str(uuid.uuid4())
        request_id_var.set(request_id)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        start = time.perf_counter()
        response: Optional[Response] = None
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error("unhandled_exception", exc_info=exc)
            raise
        finally:
            elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = getattr(response, "status_code", 500)
            log_fn = logger.warning if status_code >= 400 else logger.info
            log_fn(
                "request_complete",
                status_code=status_code,
                elapsed_ms=elapsed_ms,
            )

        response.headers["X-Request-ID"] = request_id
        return response

    # ---- Exception handlers -------------------------------------------------

    application.add_exception_handler(FunnelBuilderError, funnel_builder_error_handler)

    # ---- Routers -------------------------------------------------------------

    from funnel_builder.api.routes import health, workspace_clones  # noqa: PLC0415

    application.include_router(health.router, prefix="/api")
    application.include_router(
        workspace_clones.router,
        prefix="/internal/workspace-clones",
        tags=["workspace-clones"],
    )

    # ---- Lifecycle events ----------------------------------------------------

    @application.on_event("startup")
    async def on_startup() -> None:
        """Log application startup information."""
        logger.info(
            "application_startup",
            app_name=settings.app_name,
            debug=settings.debug,
            log_level=settings.log_level,
            workspace_domain=settings.workspace_domain,
        )

    @application.on_event("shutdown")
    async def on_shutdown() -> None:
        """Log clean shutdown."""
        logger.info("application_shutdown")

    # ---- Liveness endpoint ---------------------------------------------------

    @application.get("/health", tags=["system"])
    async def health_check() -> JSONResponse:
        """Return a minimal process-level liveness status.

        Deep infrastructure checks (DB, Redis) are at ``/api/health``.
        """
        return JSONResponse({"status": "ok"})

    return application


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

app = create_app()
"""The FastAPI application instance.

This is the ASGI callable passed to Uvicorn / Gunicorn.
"""
