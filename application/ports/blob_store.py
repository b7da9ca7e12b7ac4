from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, BinaryIO, Protocol

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(frozen=True)
class StoredBlob:
    name: str
    size_bytes: int


@dataclass(frozen=True)
class BlobStat:
    size_bytes: int
    modified_at: datetime


class BlobStore(Protocol):
    max_size_bytes: int

    def put_stream(self, stream: BinaryIO, *, size_hint: int | None = None) -> StoredBlob:
        """Store ``stream`` under a freshly generated name.

        Raises SizeExceededError as soon as more than ``max_size_bytes`` have been
        read, and StorageError on I/O failure. Neither leaves a blob behind.
        """
        ...

    def get_stream(self, name: str) -> BinaryIO: ...
    def stat(self, name: str) -> BlobStat: ...
    def exists(self, name: str) -> bool: ...
    def delete(self, name: str) -> None:
        """Remove a blob. Deleting an absent blob is not an error."""
        ...
