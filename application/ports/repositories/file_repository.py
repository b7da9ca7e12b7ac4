from abc import ABC, abstractmethod
from typing import Any
from uuid import UUID

from application.dtos.file_dtos import FileResponse
from domain.value_objects.blob_ref import BlobRef


class FileRepository(ABC):
    """Metadata records pointing at blobs. Implementations raise InfrastructureError."""

    @abstractmethod
    async def create(
        self,
        blob: BlobRef,
        *,
        category: str | None = None,
        description: str | None = None,
    ) -> FileResponse:
        pass

    @abstractmethod
    async def get_by_id(self, file_id: UUID) -> FileResponse | None:
        pass

    @abstractmethod
    async def list_files(self, skip: int = 0, limit: int = 100) -> list[FileResponse]:
        pass

    @abstractmethod
    async def update(
        self,
        file_id: UUID,
        fields: dict[str, Any],
    ) -> tuple[FileResponse, FileResponse]:
        """Apply ``fields`` and return the record as it was before and after.

        Raises RecordNotFoundError when no record has ``file_id``.
        """

    @abstractmethod
    async def delete(self, file_id: UUID) -> FileResponse | None:
        """Remove the record and return it, or ``None`` if it did not exist."""

    async def ensure_indexes(self) -> None:
        """Create backing indexes. Stores without indexes need not override this."""
        return
