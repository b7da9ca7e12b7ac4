from __future__ import annotations

from typing import TYPE_CHECKING, BinaryIO

import structlog
from returns.result import Failure, Result, Success

from application.dtos.errors import AppError
from application.dtos.file_dtos import FILE_FIELD_NAME
from domain.exceptions import InfrastructureError, RecordNotFoundError
from domain.value_objects.ingestion_mode import IngestionMode

if TYPE_CHECKING:
    from uuid import UUID

    from application.dtos.file_dtos import FileMetadataRequest, FileResponse, UploadFileRequest
    from application.ports.repositories.file_repository import FileRepository
    from application.use_cases.asset_use_cases import (
        DeleteAssetUseCase,
        IngestAssetUseCase,
        ReplaceAssetUseCase,
    )

logger = structlog.get_logger()


class CreateFileSaga:
    """Orchestrates blob ingestion → file record creation."""

    def __init__(
        self,
        ingest_asset_use_case: IngestAssetUseCase,
        file_repository: FileRepository,
    ) -> None:
        self.ingest_asset = ingest_asset_use_case
        self.file_repository = file_repository

    async def execute(
        self,
        stream: BinaryIO | None,
        upload_req: UploadFileRequest | None,
        metadata: FileMetadataRequest,
        mode: IngestionMode = IngestionMode.WITH_BLOB,
    ) -> Result[FileResponse, AppError]:
        # A record without a blob has nothing to point at.
        if mode is IngestionMode.METADATA_ONLY:
            return Failure(
                AppError("missing_field", f"Field of {FILE_FIELD_NAME} is required to create a file"),
            )

        blob_result = await self.ingest_asset.execute(stream, upload_req, mode)
        if isinstance(blob_result, Failure):
            return blob_result
        blob = blob_result.unwrap()

        try:
            record = await self.file_repository.create(
                blob,
                category=metadata.category,
                description=metadata.description,
            )
        except InfrastructureError as e:
            # The stored blob is now an orphan; no reconciliation happens here.
            logger.exception("file_record_create_failed", name=blob.name, error=str(e))
            return Failure(AppError("infrastructure", f"Failed to save file record: {e!s}"))

        logger.info("file_created", file_id=str(record.file_id), name=record.name)
        return Success(record)


class UpdateFileSaga:
    """Orchestrates optional blob replacement → record update → stale blob cleanup."""

    def __init__(
        self,
        replace_asset_use_case: ReplaceAssetUseCase,
        file_repository: FileRepository,
    ) -> None:
        self.replace_asset = replace_asset_use_case
        self.file_repository = file_repository

    async def execute(
        self,
        file_id: UUID,
        stream: BinaryIO | None,
        upload_req: UploadFileRequest | None,
        metadata: FileMetadataRequest,
        mode: IngestionMode = IngestionMode.WITH_BLOB,
    ) -> Result[FileResponse, AppError]:
        # Step 1: Store the new blob, if any
        staged_result = await self.replace_asset.stage(stream, upload_req, mode)
        if isinstance(staged_result, Failure):
            return staged_result
        staged = staged_result.unwrap()

        fields = metadata.model_dump(exclude_none=True)
        if staged is not None:
            fields.update(
                name=staged.name,
                original_name=staged.original_name,
                mimetype=staged.mime_type,
                size=staged.size,
            )

        # Step 2: Point the record at it
        try:
            previous, current = await self.file_repository.update(file_id, fields)
        except RecordNotFoundError as e:
            await self.replace_asset.discard(staged)
            return Failure(AppError("not_found", f"File not found: {e!s}"))
        except InfrastructureError as e:
            # Whether the update landed is unknown, so neither blob may be removed.
            logger.exception("file_record_update_failed", file_id=str(file_id), error=str(e))
            return Failure(AppError("infrastructure", f"Failed to update file record: {e!s}"))

        # Step 3: Only now is the previous blob an orphan
        committed = await self.replace_asset.commit(previous.name, current.name)
        if isinstance(committed, Failure):
            logger.warning(
                "stale_blob_cleanup_failed",
                file_id=str(file_id),
                name=previous.name,
                error=committed.failure().message,
            )

        return Success(current)


class DeleteFileSaga:
    """Orchestrates record deletion → best-effort blob deletion."""

    def __init__(
        self,
        delete_asset_use_case: DeleteAssetUseCase,
        file_repository: FileRepository,
    ) -> None:
        self.delete_asset = delete_asset_use_case
        self.file_repository = file_repository

    async def execute(self, file_id: UUID) -> Result[FileResponse, AppError]:
        try:
            record = await self.file_repository.delete(file_id)
        except InfrastructureError as e:
            logger.exception("file_record_delete_failed", file_id=str(file_id), error=str(e))
            return Failure(AppError("infrastructure", f"Failed to delete file record: {e!s}"))

        if record is None:
            return Failure(AppError("not_found", "File document does not exist"))

        deleted = await self.delete_asset.execute(record.name)
        if isinstance(deleted, Failure):
            # The record is gone either way; a leftover blob is only an orphan.
            logger.warning(
                "blob_cleanup_failed",
                file_id=str(file_id),
                name=record.name,
                error=deleted.failure().message,
            )

        return Success(record)
