"""FastAPI dependency injection integration with Lagom."""

from functools import lru_cache

import structlog
from lagom import Container

from infrastructure.config import settings
from infrastructure.di.container import create_container

logger = structlog.get_logger()


@lru_cache
def get_container() -> Container:
    """Get the DI container instance.

    Built on first use and cached, so the blob store directories, the thumbnail
    lock table and the Mongo client are shared by every request.
    """
    logger.info(
        "container_created",
        blob_base_url=settings.blob_base_url,
        thumbnail_base_url=settings.thumbnail_base_url,
    )
    return create_container(settings)
