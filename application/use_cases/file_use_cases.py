import asyncio
from uuid import UUID

import structlog
from returns.result import Failure, Result, Success

from application.dtos.errors import AppError
from application.dtos.file_dtos import THUMBNAIL_MIME_TYPE, FileContent, FileResponse
from application.ports.blob_store import BlobStore
from application.ports.repositories.file_repository import FileRepository
from application.ports.thumbnail_cache import ThumbnailCache
from domain.exceptions import (
    BlobNotFoundError,
    DerivationError,
    InfrastructureError,
    StorageError,
    UnsupportedMediaTypeError,
)
from domain.value_objects.mime_type import MimeType

logger = structlog.get_logger()


class ListFilesUseCase:
    """List file records."""

    def __init__(self, file_repository: FileRepository) -> None:
        self.file_repository = file_repository

    async def execute(self, skip: int = 0, limit: int = 100) -> Result[list[FileResponse], AppError]:
        try:
            return Success(await self.file_repository.list_files(skip=skip, limit=limit))
        except InfrastructureError as e:
            return Failure(AppError("infrastructure", f"Failed to list files: {e!s}"))


class GetFileUseCase:
    """Fetch one file record."""

    def __init__(self, file_repository: FileRepository) -> None:
        self.file_repository = file_repository

    async def execute(self, file_id: UUID) -> Result[FileResponse, AppError]:
        try:
            record = await self.file_repository.get_by_id(file_id)
        except InfrastructureError as e:
            return Failure(AppError("infrastructure", f"Failed to read file record: {e!s}"))
        if record is None:
            return Failure(AppError("not_found", "There is no such file document."))
        return Success(record)


class GetFileContentUseCase:
    """Open the blob behind a file record, or its thumbnail.

    Thumbnails are only offered for image MIME types and are served as JPEG
    regardless of the source type.
    """

    def __init__(
        self,
        file_repository: FileRepository,
        blob_store: BlobStore,
        thumbnail_cache: ThumbnailCache,
    ) -> None:
        self.file_repository = file_repository
        self.blob_store = blob_store
        self.thumbnail_cache = thumbnail_cache

    async def execute(
        self,
        file_id: UUID,
        *,
        thumbnail: bool = False,
    ) -> Result[FileContent, AppError]:
        try:
            record = await self.file_repository.get_by_id(file_id)
            if record is None:
                return Failure(AppError("not_found", "There is no such file document."))

            if not await asyncio.to_thread(self.blob_store.exists, record.name):
                logger.warning("file_blob_missing", file_id=str(file_id), name=record.name)
                return Failure(AppError("not_found", "Cannot read such file."))

            if thumbnail:
                if not MimeType.is_image(record.mimetype):
                    raise UnsupportedMediaTypeError(record.mimetype)
                stream = await asyncio.to_thread(
                    self.thumbnail_cache.get_or_derive,
                    record.name,
                    record.mimetype,
                )
                return Success(
                    FileContent(
                        stream=stream,
                        media_type=THUMBNAIL_MIME_TYPE,
                        filename=record.original_name,
                    ),
                )

            stream = await asyncio.to_thread(self.blob_store.get_stream, record.name)
            return Success(
                FileContent(
                    stream=stream,
                    media_type=record.mimetype or MimeType.OCTET_STREAM.value,
                    filename=record.original_name,
                ),
            )
        except UnsupportedMediaTypeError as e:
            return Failure(AppError("unsupported_media_type", str(e)))
        except BlobNotFoundError:
            return Failure(AppError("not_found", "Cannot read such file."))
        except DerivationError as e:
            logger.exception("thumbnail_derivation_failed", file_id=str(file_id), error=str(e))
            return Failure(AppError("derivation", f"Failed to generate thumbnail: {e!s}"))
        except StorageError as e:
            logger.exception("file_read_failed", file_id=str(file_id), error=str(e))
            return Failure(AppError("storage", f"Failed to read file: {e!s}"))
        except InfrastructureError as e:
            return Failure(AppError("infrastructure", f"Failed to read file record: {e!s}"))
