import traceback
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from parquet_viewer.core.config import get_settings
from parquet_viewer.core.constants import API_PREFIX
from parquet_viewer.core.exceptions import AppException
from parquet_viewer.core.logging import get_logger, setup_logging
from parquet_viewer.interfaces.http.middleware import LoggingMiddleware
from parquet_viewer.interfaces.http.routes import api_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()
    setup_logging()
    logger.info(
        f"Starting {settings.PROJECT_NAME} {settings.VERSION} "
        f"({settings.ENVIRONMENT}, storage backend: {settings.storage.backend})"
    )
    try:
        yield
    finally:
        logger.info("Shutting down")


def create_application() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Browse, page through and export Parquet files stored in S3",
        version=settings.VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    app.add_middleware(LoggingMiddleware)

    if settings.cors_settings.allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_settings.allowed_origins,
            allow_credentials=settings.cors_settings.allow_credentials,
            allow_methods=settings.cors_settings.allowed_methods,
            allow_headers=settings.cors_settings.allowed_headers,
            expose_headers=["Content-Disposition", "X-Request-ID", "X-Process-Time"],
        )

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        """Handle application-specific exceptions."""
        if exc.status_code >= 500:
            logger.error(f"{exc.error_code} on {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": {
                    "type": exc.error_code,
                    "message": exc.message,
                    "details": exc.details,
                }
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle general exceptions."""
        logger.exception(f"Unhandled error on {request.url.path}: {exc}")
        if settings.DEBUG:
            return JSONResponse(
                status_code=500,
                content={
                    "error": {
                        "type": "internal_server_error",
                        "message": str(exc),
                        "traceback": traceback.format_exc(),
                    }
                },
            )
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "type": "internal_server_error",
                    "message": "Internal server error occurred",
                }
            },
        )

    # Health check endpoint
    @app.get("/health")
    async def health_check() -> dict:
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": settings.VERSION,
            "environment": settings.ENVIRONMENT,
        }

    app.include_router(api_router, prefix=API_PREFIX)

    return app


app = create_application()


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "parquet_viewer.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG and not settings.is_production,
        log_level=settings.logging.level.lower(),
    )


if __name__ == "__main__":
    main()
