"""
Main FastAPI application.
"""
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1.api import api_router
from app.core.config import settings
from app.core.error_responses import QuizEngineError
from app.core.logging_config import setup_logging
from app.middleware import RequestLoggingMiddleware
from app.observability import error_tracker

# Initialize logging configuration at startup
setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan event handler.

    - On startup: initializes error tracking (skipped without a Sentry DSN)
    - On shutdown: flushes pending error events
    """
    error_tracker.init(
        settings.SENTRY_DSN,
        environment=settings.ENV,
        release=settings.APP_VERSION,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
    )
    logger.info(f"{settings.APP_NAME} {settings.APP_VERSION} starting ({settings.ENV})")

    yield

    error_tracker.shutdown()
    logger.info("Application shutting down")


# OpenAPI tags metadata
tags_metadata = [
    {
        "name": "health",
        "description": "Health check endpoints for monitoring application status",
    },
    {
        "name": "tests",
        "description": (
            "Quiz lifecycle: create, answer, heartbeat, pause, resume, "
            "complete, status and results"
        ),
    },
]


def create_application() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        lifespan=lifespan,
        description=(
            "**MedPrep API** - quiz engine for USMLE-style exam preparation.\n\n"
            "This API provides:\n"
            "* Test creation from subject, topic and system selections\n"
            "* Answer submission with difficulty, time and streak scoring\n"
            "* Session heartbeats, pause and guarded resume\n"
            "* Completion scoring with an optional incomplete-test penalty\n\n"
            "## Authentication\n\n"
            "All test endpoints require a JWT Bearer token.\n\n"
            "## Errors\n\n"
            "Expected failures return `detail`, a machine-readable `reason` and, "
            "where relevant, a `recommended_action` (RESUME, REVIEW, RESTART, NONE)."
        ),
        docs_url=f"{settings.API_V1_PREFIX}/docs",
        redoc_url=f"{settings.API_V1_PREFIX}/redoc",
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        openapi_tags=tags_metadata,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )

    # Configure Request Logging
    app.add_middleware(RequestLoggingMiddleware, slow_request_threshold=1.0)

    # Include API router
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    @app.exception_handler(QuizEngineError)
    async def quiz_engine_exception_handler(request: Request, exc: QuizEngineError):
        """
        Render expected quiz engine failures with their reason code.
        """
        logger.info(
            f"{exc.__class__.__name__} on {request.method} {request.url.path}: "
            f"{exc.reason.value}",
            extra={
                "method": request.method,
                "path": str(request.url.path),
                "status_code": exc.status_code,
                "reason": exc.reason.value,
            },
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """
        Handle HTTP exceptions; server errors are reported to error tracking.
        """
        if exc.status_code >= 500:
            error_tracker.capture_error(
                exc,
                context={
                    "path": str(request.url.path),
                    "method": request.method,
                    "status_code": exc.status_code,
                },
                tags={"error_type": "HTTPException"},
            )

        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        """
        Handle request validation errors.
        """
        errors = [
            {
                "loc": list(error.get("loc", [])),
                "msg": str(error.get("msg", "")),
                "type": str(error.get("type", "")),
            }
            for error in exc.errors()
        ]
        logger.info(
            f"Validation error on {request.method} {request.url.path}",
            extra={"method": request.method, "path": str(request.url.path)},
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": errors},
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """
        Handle unexpected exceptions and track them.

        Generates a unique error_id (UUID) for each exception to enable
        support teams to trace specific errors in logs. The error_id is
        included in the response body and logged with the full exception.
        """
        error_id = str(uuid.uuid4())

        logger.exception(
            f"Unhandled exception [error_id={error_id}]: {exc}",
            extra={"error_id": error_id},
        )

        error_tracker.capture_error(
            exc,
            context={
                "path": str(request.url.path),
                "method": request.method,
                "error_id": error_id,
            },
            tags={"error_type": exc.__class__.__name__},
        )

        # Don't leak internal details
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "Internal server error",
                "error_id": error_id,
            },
        )

    return app


app = create_application()


@app.get("/")
async def root():
    """
    Root endpoint.
    """
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": f"{settings.API_V1_PREFIX}/docs",
    }
