"""FastAPI application factory and entry point.

Creates the application instance, registers middleware and exception
handlers, mounts the route routers, and owns the database engine's
lifecycle.

Usage::

    # Development server (from project root)
    uvicorn ad_targeting.api.main:app --reload

    # Production (via Gunicorn + Uvicorn workers)
    gunicorn ad_targeting.api.main:app -k uvicorn.workers.UvicornWorker
"""

from __future__ import annotations

import time
import uuid
from typing import Callable

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ad_targeting import __version__
from ad_targeting.api.metrics import (
    get_metrics_response,
    http_request_duration_seconds,
    http_requests_total,
)
from ad_targeting.config.settings import get_settings
from ad_targeting.core.database import build_engine, build_session_factory
from ad_targeting.core.exceptions import FilterValidationError
from ad_targeting.core.logging_config import configure_logging, request_id_var

configure_logging("INFO")

logger = structlog.get_logger(__name__)


def _format_validation_error(exc: RequestValidationError) -> str:
    """Render the first validation error as ``<field path>: <message>``."""
    errors = exc.errors()
    if not errors:
        return "invalid request"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part != "body"]
    message = first.get("msg", "invalid value")
    return f"{'.'.join(loc)}: {message}" if loc else message


def _route_path(request: Request) -> str:
    """Return the matched route template, falling back to the raw path."""
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


def create_app() -> FastAPI:
    """Build and configure the FastAPI application.

    Separated from the module-level ``app`` singleton so that tests can
    call ``create_app()`` with a patched settings environment.

    The database engine is created on startup and disposed on shutdown.
    Its session factory is stored on ``app.state.session_factory`` where
    the route dependencies pick it up.

    Returns:
        A fully configured ``FastAPI`` instance.
    """
    settings = get_settings()

    configure_logging(settings.log_level)

    application = FastAPI(
        title=settings.app_name,
        description=(
            "Register advertisements with audience-targeting conditions and "
            "list the ones currently active for an audience."
        ),
        version=__version__,
        debug=settings.debug,
        redirect_slashes=False,
    )

    # ---- Middleware --------------------------------------------------------

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @application.middleware("http")
    async def request_logging_middleware(
        request: Request, call_next: Callable
    ) -> Response:
        """Log every request with its status and duration, and record metrics.

        Binds a unique ``request_id`` to the structlog context so all log
        lines emitted during the request can be correlated, and echoes it in
        the ``X-Request-ID`` response header.
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
        response: Response | None = None
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error("unhandled_exception", exc_info=exc)
            raise
        finally:
            elapsed = time.perf_counter() - start
            status_code = getattr(response, "status_code", 500)
            path = _route_path(request)
            http_requests_total.labels(
                method=request.method, path=path, status=str(status_code)
            ).inc()
            http_request_duration_seconds.labels(method=request.method, path=path).observe(
                elapsed
            )
            log_fn = logger.warning if status_code >= 400 else logger.info
            log_fn(
                "request_complete",
                status_code=status_code,
                elapsed_ms=round(elapsed * 1000, 2),
            )

        response.headers["X-Request-ID"] = request_id
        return response

    # ---- Exception handlers -----------------------------------------------

    @application.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Report malformed bodies and parameters as HTTP 400."""
        message = _format_validation_error(exc)
        logger.info("request_validation_failed", error=message)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})

    @application.exception_handler(FilterValidationError)
    async def filter_validation_handler(
        request: Request, exc: FilterValidationError
    ) -> JSONResponse:
        """Report invalid list-filter parameters as HTTP 400."""
        logger.info("list_filter_rejected", param=exc.param)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)})

    # ---- Routers -----------------------------------------------------------

    from ad_targeting.api.routes import advertisements, health as health_routes  # noqa: PLC0415

    application.include_router(advertisements.router)
    application.include_router(health_routes.router)

    # ---- Lifecycle events -------------------------------------------------

    @application.on_event("startup")
    async def on_startup() -> None:
        """Create the database engine and session factory."""
        engine = build_engine(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            echo=settings.debug,
        )
        application.state.engine = engine
        application.state.session_factory = build_session_factory(engine)
        logger.info(
            "application_startup",
            app_name=settings.app_name,
            database_url=settings.database_url,
            debug=settings.debug,
            log_level=settings.log_level,
        )

    @application.on_event("shutdown")
    async def on_shutdown() -> None:
        """Dispose the engine so pooled connections are closed cleanly."""
        engine = getattr(application.state, "engine", None)
        if engine is not None:
            await engine.dispose()
        logger.info("application_shutdown")

    # ---- System endpoints -------------------------------------------------

    @application.get("/health", tags=["system"], include_in_schema=True)
    async def health() -> JSONResponse:
        """Return a minimal process-level liveness status.

        Used by container health checks and load balancers that need a fast
        ``200 OK`` without performing any I/O.  The database check is at
        ``/api/health``.
        """
        return JSONResponse({"status": "ok"})

    if settings.metrics_enabled:

        @application.get("/metrics", tags=["system"], include_in_schema=False)
        async def metrics() -> Response:
            """Expose Prometheus metrics in the text exposition format."""
            body, content_type = get_metrics_response()
            return Response(content=body, media_type=content_type)

    return application


app = create_app()
"""The FastAPI application instance.

This is the ASGI callable passed to Uvicorn / Gunicorn.
"""
