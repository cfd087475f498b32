"""
Inkpost API: FastAPI Application Factory
==========================================

What:  Builds the FastAPI application.
How:   create_app() registers middleware, exception handlers and routers and
       returns a fresh instance. uvicorn serves the module-level `app`
       (uvicorn app.main:app); tests call create_app() per test.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware:                                             │
    │  ┌────────────────┐ ┌───────────┐ ┌──────────────────┐  │
    │  │ Req ID         │→│ Throttle  │→│ Access Log       │  │
    │  └────────────────┘ └───────────┘ └──────────────────┘  │
    │                                                          │
    │  Routes:                                                 │
    │  ┌──────────┐ ┌──────────┐ ┌──────────┐ ┌────────────┐  │
    │  │ auth     │ │ posts    │ │ comments │ │ users      │  │
    │  └──────────┘ └──────────┘ └──────────┘ └────────────┘  │
    │                                                          │
    │  Exception Handlers:                                     │
    │  ┌────────────────────────────────────────────────────┐ │
    │  │ 422 validation │ 401 │ 403 │ 404 │ 429 │ 500       │ │
    │  └────────────────────────────────────────────────────┘ │
    └──────────────────────────────────────────────────────────┘

Every error leaves the API as `{"message": ..., "errors"?: {...}}`.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import __version__
from app.config import settings
from app.database import dispose_engine
from app.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DatabaseError,
    InkpostError,
    NotFoundError,
    RateLimitExceededError,
    ValidationError,
)
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.rate_limit import LoginThrottleMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.routes import auth, comments, health, posts, users
from app.schemas.validation import translate_errors

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# ══════════════════════════════════════════════════════════════════════════
# Logging
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: Optional[str] = None) -> None:
    """
    Configures the root logger once for the API process (also used by the CLI).

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, level or settings.log_level, logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-query and per-request noise from libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: logging, configuration check.
    Shutdown: close pooled database connections.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("Inkpost API %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: requests that do not send mail still work
        logger.error("Configuration error: %s", str(e))

    logger.info("Mail driver: %s", settings.mail_driver)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Inkpost API shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error(status_code: int, message: str, **kwargs) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message}, **kwargs)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Maps exceptions to status codes and the `{message, errors?}` body.

    Handler table:
        ValidationError / RequestValidationError → 422 with `errors`
        AuthenticationError                      → 401
        AuthorizationError                       → 403
        NotFoundError                            → 404
        RateLimitExceededError                   → 429 + Retry-After
        Starlette HTTPException (404 route, 405) → its status, same body shape
        DatabaseError                            → 500, generic message
        InkpostError (any other)                 → 500
        Exception (fallback)                     → 500, stack trace logged only

    `context` from our exceptions is logged, never returned.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.info("[%s] Validation failed: %s", request_id_var.get(""), exc.errors)
        return JSONResponse(
            status_code=422,
            content={"message": exc.message, "errors": exc.errors},
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = translate_errors(exc.errors())
        logger.info("[%s] Request validation failed: %s", request_id_var.get(""), errors)
        return JSONResponse(
            status_code=422,
            content={"message": ValidationError.summarize(errors), "errors": errors},
        )

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        logger.info("[%s] Unauthenticated: %s", request_id_var.get(""), exc.context)
        return _error(401, exc.message, headers={"WWW-Authenticate": "Bearer"})

    @app.exception_handler(AuthorizationError)
    async def handle_authorization_error(request: Request, exc: AuthorizationError):
        logger.warning("[%s] Forbidden: %s", request_id_var.get(""), exc.context)
        return _error(403, exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error(404, exc.message)

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return _error(429, exc.message, headers={"Retry-After": str(exc.retry_after)})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""), exc.message, exc.context,
        )
        return _error(500, "An internal error occurred. Please try again later.")

    @app.exception_handler(InkpostError)
    async def handle_inkpost_error(request: Request, exc: InkpostError):
        logger.error(
            "[%s] Unhandled application error %s: %s | Context: %s",
            request_id_var.get(""), type(exc).__name__, exc.message, exc.context,
        )
        return _error(500, "An internal error occurred. Please try again later.")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return _error(500, "Server Error")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Returns a fully configured app. Each call has its own throttle state."""
    app = FastAPI(
        title="Inkpost API",
        description=(
            "Blog API: users write posts in categories and comment on each other's "
            "posts. Bearer-token authentication; only authors may edit or delete."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Middleware ────────────────────────────────────────────────────────
    # Executed in reverse order of addition: request id → throttle → access
    # log → gzip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(LoginThrottleMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(posts.router)
    app.include_router(comments.router)
    app.include_router(users.router)
    app.include_router(health.router)

    return app


app = create_app()
