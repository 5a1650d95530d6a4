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

from cogassess.api.v1.api import api_router
from cogassess.core.config import settings
from cogassess.core.errors import InputValidationError
from cogassess.core.logging_config import setup_logging
from cogassess.middleware import RequestLoggingMiddleware
from cogassess.observability import observability

# Initialize logging configuration at startup
setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialize Sentry on startup and flush it on shutdown."""
    if settings.SENTRY_DSN:
        observability.init(
            settings.SENTRY_DSN,
            environment=settings.ENV,
            release=settings.APP_VERSION,
            traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        )
    if not settings.GOOGLE_API_KEY:
        logger.info("GOOGLE_API_KEY not set; content will come from the fallback bank")

    yield

    observability.shutdown()
    logger.info("Application shutting down")


tags_metadata = [
    {
        "name": "health",
        "description": "Health check endpoints for monitoring application status",
    },
    {
        "name": "assessment",
        "description": "Difficulty seeding, adaptive replay, report aggregation and IQ estimation",
    },
    {
        "name": "content",
        "description": "Age-appropriate question generation with a static fallback bank",
    },
]


def _serialize_validation_errors(exc: RequestValidationError) -> list:
    errors = []
    for error in exc.errors():
        error_dict = {
            "loc": list(error.get("loc", [])),
            "msg": str(error.get("msg", "")),
            "type": str(error.get("type", "")),
        }
        if "input" in error:
            error_dict["input"] = error["input"]
        errors.append(error_dict)
    return errors


def create_application() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        lifespan=lifespan,
        description=(
            "**Cognitive Assessment API** - scoring, adaptive difficulty and "
            "reporting for a battery of cognitive tests.\n\n"
            "This API provides:\n"
            "* Initial difficulty from a pre-test profile\n"
            "* Adaptive difficulty replay\n"
            "* Cognitive profile reports with IQ estimates\n"
            "* Age-appropriate question generation"
        ),
        docs_url=f"{settings.API_V1_PREFIX}/docs",
        redoc_url=f"{settings.API_V1_PREFIX}/redoc",
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        openapi_tags=tags_metadata,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        """
        Handle request validation errors.
        """
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": _serialize_validation_errors(exc)},
        )

    @app.exception_handler(InputValidationError)
    async def input_validation_exception_handler(
        request: Request, exc: InputValidationError
    ):
        """
        Interaction data that passed schema validation but is unusable.
        """
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": str(exc)},
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """
        Handle unexpected exceptions.

        Each one gets an error_id that is logged with the traceback and
        returned to the client, without leaking internal details.
        """
        error_id = str(uuid.uuid4())

        logger.exception(
            f"Unhandled exception [error_id={error_id}]: {exc}",
            extra={"error_id": error_id},
        )

        observability.capture_error(
            exc,
            context={
                "path": str(request.url.path),
                "method": request.method,
                "error_id": error_id,
            },
            tags={"error_type": exc.__class__.__name__},
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "Internal server error",
                "error_id": error_id,
            },
        )

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

    return app


app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
