"""Main FastAPI application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from interfaces.api.routes import file_router  # isort: skip

from application.ports.repositories.file_repository import FileRepository
from infrastructure.config import settings
from infrastructure.logging import setup_logging
from interfaces.api.middleware import UploadSizeLimitMiddleware
from interfaces.dependencies import get_container

# Configure structured logging
setup_logging()

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:  # noqa: ARG001
    """Handle application startup and shutdown."""
    logger.info(
        "app_starting",
        env=settings.app_env,
        files_path=str(settings.files_path),
        limit_filesize=settings.limit_filesize,
    )

    container = get_container()
    try:
        await container[FileRepository].ensure_indexes()
        logger.info("mongo_indexes_ensured")
    except Exception as e:  # noqa: BLE001
        logger.warning("mongo_index_initialization_failed", error=str(e))
        # Don't fail startup - requests will surface the database error

    logger.info("app_ready")

    yield

    # Cleanup
    logger.info("app_shutting_down")
    logger.info("app_stopped")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="File asset API",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Oversized uploads are cut off before the body is buffered
    app.add_middleware(
        UploadSizeLimitMiddleware,
        max_body_bytes=settings.limit_filesize + settings.upload_overhead_bytes,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(file_router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


# Create app instance
app = create_app()


def run() -> None:
    """Serve the API with uvicorn using the configured host and port."""
    import uvicorn  # noqa: PLC0415

    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_config=None)
