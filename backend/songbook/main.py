"""
Songbook Backend: FastAPI Application Factory
=============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app(settings) builds the engine and session factory, registers
       middleware, exception handlers and routers, and returns the app.
Who:   uvicorn (`uvicorn songbook.main:app`) and the test suite.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware:  Request ID → Access Log → CORS        │
    │                                                     │
    │  Routes:      /songs  /users  /health               │
    │                                                     │
    │  Exception Handlers:                                │
    │    NotFound→404 │ Authentication→401                │
    │    Authorization→403 │ Invariant→500                │
    │    Database→500 │ Exception→500                     │
    │                                                     │
    │  app.state:   settings, engine, session_factory     │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, log the effective configuration
    Shutdown: dispose the engine (close all pooled connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from songbook import __version__
from songbook.config import Settings, settings as default_settings
from songbook.database import build_engine, build_session_factory, dispose_engine
from songbook.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DatabaseError,
    NotFoundError,
    PersistenceInvariantError,
    SongbookError,
)
from songbook.middleware.logging import RequestLoggingMiddleware
from songbook.middleware.request_id import (
    REQUEST_ID_HEADER,
    RequestIDMiddleware,
    request_id_var,
)
from songbook.routes import health, songs, users

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str) -> None:
    """
    Configure root logging once, to stdout.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-statement and per-request chatter from third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    config: Settings = app.state.settings

    setup_logging(config.log_level)
    logger.info("Songbook Backend %s starting up", __version__)
    logger.info("Database: %s", app.state.engine.url.render_as_string(hide_password=True))
    logger.info("Server ready at http://%s:%d", config.backend_host, config.backend_port)

    yield

    logger.info("Songbook Backend shutting down...")
    await dispose_engine(app.state.engine)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "") or request_id_var.get("")


def _error_response(
    request: Request, status_code: int, error: str, message: str
) -> JSONResponse:
    """
    Error envelope. The X-Request-ID header is set here as well, because
    the catch-all handler answers outside RequestIDMiddleware.
    """
    rid = _request_id(request)
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": message, "request_id": rid},
        headers={REQUEST_ID_HEADER: rid} if rid else None,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map domain exceptions to HTTP responses.

        NotFoundError              → 404
        AuthenticationError        → 401
        AuthorizationError         → 403
        PersistenceInvariantError  → 500
        DatabaseError              → 500 (generic message)
        SongbookError (base)       → 500
        Exception (fallback)       → 500 (generic message, traceback logged)

    `context` is logged server-side and never included in the response body.
    """

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(request, 404, "not_found", exc.message)

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        logger.warning(
            "[%s] Unidentified caller on %s: %s",
            _request_id(request), request.url.path, exc.context,
        )
        return _error_response(request, 401, "unauthorized", exc.message)

    @app.exception_handler(AuthorizationError)
    async def handle_authorization_error(request: Request, exc: AuthorizationError):
        logger.warning(
            "[%s] Access denied on %s: %s",
            _request_id(request), request.url.path, exc.context,
        )
        return _error_response(request, 403, "forbidden", exc.message)

    @app.exception_handler(PersistenceInvariantError)
    async def handle_persistence_invariant(request: Request, exc: PersistenceInvariantError):
        logger.error(
            "[%s] Persistence invariant violated: %s | Context: %s",
            _request_id(request), exc.message, exc.context,
        )
        return _error_response(request, 500, "persistence_error", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            _request_id(request), exc.message, exc.context,
        )
        return _error_response(
            request, 500, "server_error", "An internal error occurred. Please try again later."
        )

    @app.exception_handler(SongbookError)
    async def handle_songbook_error(request: Request, exc: SongbookError):
        logger.error("[%s] %s: %s", _request_id(request), type(exc).__name__, exc.message)
        return _error_response(request, 500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            _request_id(request),
            str(exc),
            exc_info=exc,
        )
        return _error_response(
            request,
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    The engine is created here rather than at import so that each app
    (and each test) owns its own connection pool.
    """
    config = settings or default_settings

    app = FastAPI(
        title="Songbook API",
        description="Songs with owner and collaborator access control.",
        version=__version__,
        lifespan=lifespan,
    )

    engine = build_engine(config)
    app.state.settings = config
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    # Middleware executes in reverse order of addition: RequestID → Logging → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(songs.router)
    app.include_router(users.router)
    app.include_router(health.router)

    return app


app = create_app()
