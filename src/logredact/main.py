"""
Main FastAPI application entry point.

This module wires logging, the redaction engine and the HTTP routes.
Logging is configured so every record, structlog or stdlib, is redacted
once at format time, right before rendering.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from . import __version__
from .api import healthz_router, metrics_router, policy_router, redact_router
from .config import LoggingSettings, Settings, get_settings
from .core.engine import RedactionEngine, build_engine, set_redaction_engine
from .core.exceptions import LogRedactException
from .core.log_processor import RedactionProcessor
from .core.metrics import get_redaction_metrics


def configure_logging(
    settings: Optional[LoggingSettings] = None,
    engine: Optional[RedactionEngine] = None,
) -> None:
    """
    Configure structured logging for the application.

    Without an explicit engine the redaction processor uses the process
    engine installed by ``set_redaction_engine``.
    """
    settings = settings or LoggingSettings()
    level = getattr(logging, settings.level.upper(), logging.INFO)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    if settings.format == "json":
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            # Must stay directly before the renderer
            RedactionProcessor(engine),
            renderer,
        ],
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)

    # Silence the verbose watchfiles logger
    logging.getLogger("watchfiles").setLevel(logging.WARNING)


def create_lifespan_handler(settings: Settings) -> Any:
    """Create a lifespan handler with access to settings."""
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger = structlog.get_logger(__name__)
        engine = app.state.engine
        logger.info(
            "Starting logredact service",
            version=app.version,
            redaction_active=engine.active,
            patterns=len(engine.policy.patterns) if engine.policy is not None else 0,
        )

        try:
            yield
        finally:
            logger.info("logredact service shutdown complete")

    return lifespan


async def logredact_exception_handler(request: Request, exc: LogRedactException) -> JSONResponse:
    """Handle custom logredact exceptions."""
    logger = structlog.get_logger(__name__)
    logger.error(
        "logredact exception occurred",
        error=str(exc),
        error_code=exc.error_code,
        status_code=exc.status_code,
        path=request.url.path,
        method=request.method,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": str(exc),
            "details": exc.details,
        },
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger = structlog.get_logger(__name__)
    logger.error(
        "Unexpected exception occurred",
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred",
        },
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    The redaction policy is built here; an invalid policy raises
    PolicyError and the service does not start.
    """
    settings = settings or get_settings()

    configure_logging(settings.logging)

    metrics = get_redaction_metrics()
    engine = build_engine(settings.redaction, metrics)
    set_redaction_engine(engine)

    lifespan = create_lifespan_handler(settings)

    app = FastAPI(
        title="logredact",
        description="Sensitive-data redaction for logs and traces",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.metrics = metrics

    app.add_exception_handler(LogRedactException, logredact_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(redact_router, prefix="/v1", tags=["redaction"])
    app.include_router(policy_router, prefix="/v1", tags=["policy"])
    app.include_router(metrics_router, tags=["metrics"])
    app.include_router(healthz_router, tags=["health"])

    @app.get("/", include_in_schema=False)
    async def root() -> Dict[str, str]:
        """Root endpoint with service information."""
        return {
            "service": "logredact",
            "version": app.version,
            "description": "Sensitive-data redaction for logs and traces",
            "docs": "/docs",
        }

    return app


# Create the app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "logredact.main:app",
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.logging.level.lower(),
        reload=settings.server.debug,
    )
