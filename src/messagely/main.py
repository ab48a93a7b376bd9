"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown: the database handle is opened
before the first request and disposed after the last one.
Middleware, CORS, error handlers, and routers all registered here.
"""

import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from messagely import __version__
from messagely.api import api_router
from messagely.config import settings
from messagely.db.engine import Database
from messagely.errors import MessagelyError

logger = structlog.get_logger()


def configure_logging() -> None:
    """Set up structlog: level filter, ISO timestamps, request-scoped context.

    JSON lines in production (MESSAGELY_LOG_JSON=true), coloured console
    output otherwise.
    """
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_json
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: FastAPI lifespan replaces on_event("startup") / on_event("shutdown").
    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    logger.info(
        "messagely.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )
    app.state.db = Database(settings.database_url, echo=settings.debug)

    yield

    # Shutdown
    logger.info("messagely.shutdown")
    await app.state.db.dispose()


def register_exception_handlers(app: FastAPI) -> None:
    """Render every MessagelyError as {"error", "message", "request_id"}."""

    @app.exception_handler(MessagelyError)
    async def handle_messagely_error(request: Request, exc: MessagelyError):
        request_id = structlog.contextvars.get_contextvars().get("request_id")
        if exc.status_code >= 500:
            logger.error("request.failed", error=exc.code, message=exc.message)
        else:
            logger.info("request.rejected", error=exc.code, status=exc.status_code)
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": exc.code,
                "message": exc.message,
                "request_id": request_id,
            },
            headers=headers,
        )


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    configure_logging()

    app = FastAPI(
        title="Messagely",
        description="Direct messaging between registered users",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → Security → RequestId → handler

    from messagely.middleware.request_id import RequestIdMiddleware
    from messagely.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Mount API routes
    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: messagely.main:app)
app = create_app()
