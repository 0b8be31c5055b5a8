"""
DevCamper API: FastAPI Application Factory
===========================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers, routers and the
       static mount for uploaded photos.
Who:   uvicorn (`uvicorn devcamper.main:app`) and the test suite.

Error envelope:
    Every failure, whatever raised it, is answered as
        {"success": false, "error": "<message>"}
    with the status code of the matching handler below. Stack traces and
    exception context only go to the log.

    DevCamperError subclasses   → exc.status_code
    RequestValidationError      → 400, joined field messages
    IntegrityError (unique)     → 400 "Duplicate field value entered"
    Starlette HTTPException     → its status (unknown route, bad method)
    anything else               → 500 "Server Error"
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from devcamper import __version__
from devcamper.config import settings
from devcamper.database import dispose_engine
from devcamper.exceptions import (
    DevCamperError,
    DuplicateKeyError,
    RateLimitExceededError,
    ValidationError,
)
from devcamper.middleware.logging import RequestLoggingMiddleware
from devcamper.middleware.rate_limit import RateLimitMiddleware
from devcamper.middleware.request_id import RequestIDMiddleware, request_id_var
from devcamper.routes import auth, bootcamps, courses, health, reviews, users

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """Configure the root logger once, timestamped lines to stdout."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers are chatty at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("DevCamper API %s starting (%s)", __version__, settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: health checks and public reads still work
        logger.error("Configuration error: %s", str(e))

    upload_dir = Path(settings.file_upload_path)
    upload_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Upload directory: %s", upload_dir.resolve())
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("DevCamper API shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
        headers=headers,
    )


def format_validation_errors(exc: RequestValidationError) -> str:
    """
    Join FastAPI/Pydantic validation errors into one message.

    [{"loc": ("body", "name"), "msg": "Field required"}, ...]
        → "name: Field required, careers: List should have at least 1 item ..."
    """
    messages = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc)
        messages.append(f"{field}: {error['msg']}" if field else error["msg"])
    return ", ".join(messages) or "Validation failed"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DevCamperError)
    async def handle_devcamper_error(request: Request, exc: DevCamperError):
        rid = request_id_var.get()
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        else:
            logger.info("[%s] %s: %s", rid, type(exc).__name__, exc.message)

        headers = None
        if isinstance(exc, RateLimitExceededError):
            headers = {"Retry-After": str(exc.retry_after)}
        return error_response(exc.status_code, exc.message, headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        message = format_validation_errors(exc)
        logger.info("[%s] Request validation failed: %s", request_id_var.get(), message)
        return error_response(ValidationError.status_code, message)

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError):
        detail = str(exc.orig).lower()
        logger.warning("[%s] Integrity error: %s", request_id_var.get(), str(exc.orig))
        if "unique" in detail or "duplicate" in detail:
            error: ValidationError = DuplicateKeyError()
        else:
            error = ValidationError("Invalid reference or constraint violation")
        return error_response(error.status_code, error.message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(), str(exc), exc_info=True)
        return error_response(500, "Server Error")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="DevCamper API",
        description="Bootcamp directory: bootcamps, courses, reviews and users.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware runs in reverse order of addition:
    # RateLimit → RequestID → Logging → CORS → route
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(bootcamps.router)
    app.include_router(courses.router)
    app.include_router(reviews.router)
    app.include_router(users.router)

    # Uploaded bootcamp photos; the directory is created in lifespan
    app.mount(
        "/uploads",
        StaticFiles(directory=settings.file_upload_path, check_dir=False),
        name="uploads",
    )
    return app


app = create_app()
