from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from application.dtos.file_dtos import FileResponse
from application.ports.repositories.file_repository import FileRepository
from domain.exceptions import InfrastructureError, RecordNotFoundError
from domain.value_objects.blob_ref import BlobRef
from infrastructure.config import Settings


class MongoFileRepository(FileRepository):
    def __init__(self, client: AsyncIOMotorClient, settings: Settings) -> None:
        self.client = client
        self.db = self.client[settings.mongo_db]
        self.files = self.db[settings.mongo_files_collection]

    @staticmethod
    def _to_document(record: FileResponse) -> dict[str, Any]:
        doc = record.model_dump()
        doc["file_id"] = str(record.file_id)
        return doc

    @staticmethod
    def _from_document(doc: dict[str, Any]) -> FileResponse:
        doc.pop("_id", None)
        return FileResponse(**doc)

    async def create(
        self,
        blob: BlobRef,
        *,
        category: str | None = None,
        description: str | None = None,
    ) -> FileResponse:
        now = datetime.now(tz=UTC)
        record = FileResponse(
            file_id=uuid4(),
            name=blob.name,
            original_name=blob.original_name,
            mimetype=blob.mime_type,
            size=blob.size,
            category=category,
            description=description,
            created_at=now,
            updated_at=now,
        )
        try:
            await self.files.insert_one(self._to_document(record))
        except PyMongoError as e:
            msg = f"Failed to insert file record: {e!s}"
            raise InfrastructureError(msg) from e
        return record

    async def get_by_id(self, file_id: UUID) -> FileResponse | None:
        try:
            doc = await self.files.find_one({"file_id": str(file_id)})
        except PyMongoError as e:
            msg = f"Failed to read file record: {e!s}"
            raise InfrastructureError(msg) from e
        if not doc:
            return None
        return self._from_document(doc)

    async def list_files(self, skip: int = 0, limit: int = 100) -> list[FileResponse]:
        """List file records, oldest first, with pagination."""
        try:
            cursor = self.files.find().sort("created_at", 1).skip(skip).limit(limit)
            return [self._from_document(doc) async for doc in cursor]
        except PyMongoError as e:
            msg = f"Failed to list file records: {e!s}"
            raise InfrastructureError(msg) from e

    async def update(
        self,
        file_id: UUID,
        fields: dict[str, Any],
    ) -> tuple[FileResponse, FileResponse]:
        changes = {**fields, "updated_at": datetime.now(tz=UTC)}
        try:
            before = await self.files.find_one_and_update(
                {"file_id": str(file_id)},
                {"$set": changes},
                return_document=ReturnDocument.BEFORE,
            )
        except PyMongoError as e:
            msg = f"Failed to update file record: {e!s}"
            raise InfrastructureError(msg) from e
        if before is None:
            msg = f"File with id {file_id} not found"
            raise RecordNotFoundError(msg)

        previous = self._from_document(before)
        return previous, previous.model_copy(update=changes)

    async def delete(self, file_id: UUID) -> FileResponse | None:
        try:
            doc = await self.files.find_one_and_delete({"file_id": str(file_id)})
        except PyMongoError as e:
            msg = f"Failed to delete file record: {e!s}"
            raise InfrastructureError(msg) from e
        if not doc:
            return None
        return self._from_document(doc)

    async def ensure_indexes(self) -> None:
        await self.files.create_index("file_id", unique=True)
        await self.files.create_index("name")
