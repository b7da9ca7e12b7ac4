import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, BinaryIO

import structlog
from returns.result import Failure, Result, Success

from application.dtos.errors import AppError
from application.dtos.file_dtos import FILE_FIELD_NAME, UploadFileRequest
from application.ports.blob_store import BlobStore, StoredBlob
from domain.exceptions import MissingFieldError, SizeExceededError, StorageError
from domain.value_objects.blob_ref import BlobRef
from domain.value_objects.ingestion_mode import IngestionMode

logger = structlog.get_logger()


class IngestAssetUseCase:
    """Validate an upload and store its content in the blob store.

    The use case never touches file metadata: it hands back the assigned name
    together with the declared filename, MIME type and stored size so the
    caller can persist them. If that later write fails the blob is orphaned.
    """

    def __init__(self, blob_store: BlobStore) -> None:
        self.blob_store = blob_store

    async def execute(
        self,
        stream: BinaryIO | None,
        cmd: UploadFileRequest | None,
        mode: IngestionMode = IngestionMode.WITH_BLOB,
    ) -> Result[BlobRef | None, AppError]:
        """Store one upload.

        Args:
            stream: Binary stream of the uploaded content, ``None`` if no file arrived
            cmd: Declared upload attributes
            mode: ``METADATA_ONLY`` skips blob handling entirely

        Returns:
            Result containing the stored blob reference (``None`` when skipped) or error

        """
        if mode is IngestionMode.METADATA_ONLY:
            return Success(None)

        try:
            self._validate(stream, cmd)

            stored: StoredBlob = await asyncio.to_thread(
                self.blob_store.put_stream,
                stream,
                size_hint=cmd.size,
            )
            logger.info(
                "asset_ingested",
                name=stored.name,
                original_name=cmd.filename,
                mime_type=cmd.mime_type,
                size_bytes=stored.size_bytes,
            )

            return Success(
                BlobRef(
                    name=stored.name,
                    original_name=cmd.filename,
                    mime_type=cmd.mime_type,
                    size=stored.size_bytes,
                ),
            )
        except MissingFieldError as e:
            return Failure(AppError("missing_field", str(e)))
        except SizeExceededError as e:
            logger.info("asset_rejected_too_large", limit_bytes=e.limit_bytes)
            return Failure(AppError("size_exceeded", str(e)))
        except StorageError as e:
            logger.exception("asset_ingest_failed", error=str(e))
            return Failure(AppError("storage", f"Failed to store file: {e!s}"))

    def _validate(self, stream: BinaryIO | None, cmd: UploadFileRequest | None) -> None:
        if stream is None or cmd is None or cmd.field_name != FILE_FIELD_NAME:
            msg = f"Field of {FILE_FIELD_NAME} is something wrong"
            raise MissingFieldError(msg)
        if cmd.size is not None and cmd.size > self.blob_store.max_size_bytes:
            raise SizeExceededError(self.blob_store.max_size_bytes)


class DeleteAssetUseCase:
    """Delete a blob. A blob that is already gone counts as deleted."""

    def __init__(self, blob_store: BlobStore) -> None:
        self.blob_store = blob_store

    async def execute(self, name: str) -> Result[None, AppError]:
        try:
            await asyncio.to_thread(self.blob_store.delete, name)
            logger.info("asset_deleted", name=name)
            return Success(None)
        except StorageError as e:
            logger.exception("asset_delete_failed", name=name, error=str(e))
            return Failure(AppError("storage", f"Failed to delete file: {e!s}"))


class ReplaceAssetUseCase:
    """Swap the blob behind a metadata record without ever dangling the record.

    Replacement happens in two phases. ``stage`` stores the new upload; the
    caller then updates its metadata record; only once that update is durable
    does ``commit`` delete the previous blob. A failed metadata update leaves
    the previous blob untouched.
    """

    def __init__(
        self,
        ingest_asset_use_case: IngestAssetUseCase,
        delete_asset_use_case: DeleteAssetUseCase,
    ) -> None:
        self.ingest_asset = ingest_asset_use_case
        self.delete_asset = delete_asset_use_case

    async def stage(
        self,
        stream: BinaryIO | None,
        cmd: UploadFileRequest | None,
        mode: IngestionMode = IngestionMode.WITH_BLOB,
    ) -> Result[BlobRef | None, AppError]:
        # PATCH may legitimately omit the file; that is a metadata-only change.
        if stream is None and cmd is None:
            mode = IngestionMode.METADATA_ONLY
        return await self.ingest_asset.execute(stream, cmd, mode)

    async def commit(self, previous_name: str, current_name: str) -> Result[None, AppError]:
        """Delete the previous blob once the record durably points at ``current_name``."""
        if previous_name == current_name:
            return Success(None)
        logger.info("asset_replaced", previous_name=previous_name, name=current_name)
        return await self.delete_asset.execute(previous_name)

    async def discard(self, staged: BlobRef | None) -> None:
        """Drop a staged blob that no record will ever reference."""
        if staged is None:
            return
        result = await self.delete_asset.execute(staged.name)
        if isinstance(result, Failure):
            logger.warning("staged_asset_discard_failed", name=staged.name)

    async def execute(
        self,
        existing_name: str,
        stream: BinaryIO | None,
        cmd: UploadFileRequest | None,
        confirm: Callable[[BlobRef | None], Awaitable[Result[Any, AppError]]],
        mode: IngestionMode = IngestionMode.WITH_BLOB,
    ) -> Result[str, AppError]:
        """Replace ``existing_name`` and return the name the record now points at.

        Args:
            existing_name: Assigned name currently referenced by the record
            stream: New content, or ``None`` for a metadata-only change
            cmd: Declared attributes of the new upload
            confirm: Persists the metadata change; its Failure aborts the cleanup
            mode: ``METADATA_ONLY`` skips blob handling entirely

        Returns:
            Result containing the current assigned name or error

        """
        staged_result = await self.stage(stream, cmd, mode)
        if isinstance(staged_result, Failure):
            return staged_result
        staged = staged_result.unwrap()

        confirmed = await confirm(staged)
        if isinstance(confirmed, Failure):
            logger.warning(
                "asset_replacement_unconfirmed",
                previous_name=existing_name,
                staged_name=staged.name if staged else None,
            )
            return confirmed

        if staged is None:
            return Success(existing_name)

        committed = await self.commit(existing_name, staged.name)
        if isinstance(committed, Failure):
            return committed
        return Success(staged.name)
