from __future__ import annotations

import secrets
from typing import BinaryIO

import fsspec
import structlog

from application.ports.blob_store import BlobStat, BlobStore, StoredBlob
from domain.exceptions import BlobNotFoundError, SizeExceededError, StorageError

logger = structlog.get_logger()

CHUNK_SIZE = 1024 * 1024
NAME_BYTES = 16


class FsspecBlobStore(BlobStore):
    """Blob store over one fsspec namespace, local disk in practice.

    Blobs are stored under random hex names that never derive from the
    uploaded filename. Content is streamed into a hidden part file and renamed
    into place, so a reader never sees a half-written blob.
    """

    def __init__(
        self,
        base_url: str,
        *,
        max_size_bytes: int,
        storage_options: dict | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.max_size_bytes = max_size_bytes
        self.storage_options = storage_options or {}
        self.fs, self.root = fsspec.core.url_to_fs(self.base_url, **self.storage_options)
        self.fs.makedirs(self.root, exist_ok=True)

    def _path(self, name: str) -> str:
        if not name or "/" in name or name.startswith("."):
            # Only names this store generated are valid; refuse anything path-like
            raise BlobNotFoundError(name)
        return f"{self.root}/{name}"

    def _new_name(self) -> str:
        while True:
            name = secrets.token_hex(NAME_BYTES)
            if not self.fs.exists(self._path(name)):
                return name

    def put_stream(self, stream: BinaryIO, *, size_hint: int | None = None) -> StoredBlob:
        if size_hint is not None and size_hint > self.max_size_bytes:
            raise SizeExceededError(self.max_size_bytes)

        name = self._new_name()
        part = f"{self.root}/.{name}.part"
        size = 0

        try:
            with self.fs.open(part, "wb") as out:
                while True:
                    # Never read more than one byte past the ceiling
                    chunk = stream.read(min(CHUNK_SIZE, self.max_size_bytes - size + 1))
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > self.max_size_bytes:
                        raise SizeExceededError(self.max_size_bytes)
                    out.write(chunk)
            self.fs.mv(part, self._path(name))
        except SizeExceededError:
            self._discard(part)
            raise
        except OSError as e:
            self._discard(part)
            msg = f"Failed to write blob {name}: {e!s}"
            raise StorageError(msg) from e

        logger.debug("blob_stored", name=name, size_bytes=size)
        return StoredBlob(name=name, size_bytes=size)

    def get_bytes(self, name: str) -> bytes:
        with self.get_stream(name) as f:
            return f.read()

    def get_stream(self, name: str) -> BinaryIO:
        """Get an open file-like object for the blob. The caller closes it."""
        try:
            return self.fs.open(self._path(name), "rb")
        except FileNotFoundError as e:
            raise BlobNotFoundError(name) from e
        except OSError as e:
            msg = f"Failed to open blob {name}: {e!s}"
            raise StorageError(msg) from e

    def stat(self, name: str) -> BlobStat:
        path = self._path(name)
        try:
            info = self.fs.info(path)
            modified_at = self.fs.modified(path)
        except FileNotFoundError as e:
            raise BlobNotFoundError(name) from e
        except OSError as e:
            msg = f"Failed to stat blob {name}: {e!s}"
            raise StorageError(msg) from e
        return BlobStat(size_bytes=info["size"], modified_at=modified_at)

    def exists(self, name: str) -> bool:
        try:
            return self.fs.exists(self._path(name))
        except BlobNotFoundError:
            return False

    def delete(self, name: str) -> None:
        try:
            self.fs.rm(self._path(name))
        except (FileNotFoundError, BlobNotFoundError):
            # doesn't matter if the blob has already been deleted
            logger.debug("blob_already_absent", name=name)
        except OSError as e:
            msg = f"Failed to delete blob {name}: {e!s}"
            raise StorageError(msg) from e

    def _discard(self, path: str) -> None:
        try:
            self.fs.rm(path)
        except FileNotFoundError:
            pass
        except OSError:
            logger.warning("blob_part_cleanup_failed", path=path)
