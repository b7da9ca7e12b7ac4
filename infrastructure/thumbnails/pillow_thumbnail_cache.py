from __future__ import annotations

import secrets
from datetime import datetime
from functools import partial
from io import BytesIO
from typing import TYPE_CHECKING, BinaryIO

import fsspec
import structlog
from PIL import Image

from application.ports.thumbnail_cache import ThumbnailCache
from domain.exceptions import (
    BlobNotFoundError,
    DerivationError,
    StorageError,
    UnsupportedMediaTypeError,
)
from domain.value_objects.mime_type import MimeType
from infrastructure.thumbnails.derivation_locks import DerivationLockTable

if TYPE_CHECKING:
    from application.ports.blob_store import BlobStore

logger = structlog.get_logger()

THUMBNAIL_FORMAT = "JPEG"
BACKGROUND = (255, 255, 255)


class PillowThumbnailCache(ThumbnailCache):
    """Fixed-width JPEG previews of image blobs, derived on demand with Pillow.

    A thumbnail lives in its own namespace under the same name as its source
    blob. It is fresh when its modification time is not older than the
    source's; anything else is re-derived on the next request. Timestamps
    rather than content hashes decide freshness, so clock skew or a
    timestamp-preserving copy of a source can leave a stale preview in place.
    """

    def __init__(
        self,
        blob_store: BlobStore,
        base_url: str,
        *,
        width: int = 720,
        quality: int = 80,
        locks: DerivationLockTable | None = None,
        storage_options: dict | None = None,
    ) -> None:
        self.blob_store = blob_store
        self.base_url = base_url.rstrip("/")
        self.width = width
        self.quality = quality
        self.locks = locks or DerivationLockTable()
        self.fs, self.root = fsspec.core.url_to_fs(self.base_url, **(storage_options or {}))
        self.fs.makedirs(self.root, exist_ok=True)

    def _path(self, name: str) -> str:
        return f"{self.root}/{name}"

    def get_or_derive(self, source_name: str, mime_type: str | None) -> BinaryIO:
        if not MimeType.is_image(mime_type):
            raise UnsupportedMediaTypeError(mime_type)
        return self.locks.with_lock(source_name, partial(self._get_or_derive_locked, source_name))

    def _get_or_derive_locked(self, source_name: str) -> BinaryIO:
        try:
            source = self.blob_store.stat(source_name)
        except StorageError as e:
            msg = f"Failed to read source of thumbnail {source_name}: {e!s}"
            raise DerivationError(msg) from e
        path = self._path(source_name)

        if self._is_fresh(path, source.modified_at):
            logger.debug("thumbnail_cache_hit", name=source_name)
        else:
            self._derive(source_name, path)

        try:
            return self.fs.open(path, "rb")
        except OSError as e:
            msg = f"Failed to open thumbnail {source_name}: {e!s}"
            raise DerivationError(msg) from e

    def _is_fresh(self, path: str, source_modified_at: datetime) -> bool:
        try:
            return self.fs.modified(path) >= source_modified_at
        except FileNotFoundError:
            return False

    def _derive(self, source_name: str, path: str) -> None:
        try:
            with self.blob_store.get_stream(source_name) as src:
                data = src.read()
            rendered = self.render(data)
            self._write_atomic(path, rendered)
        except BlobNotFoundError:
            raise
        except StorageError as e:
            msg = f"Failed to read source of thumbnail {source_name}: {e!s}"
            raise DerivationError(msg) from e
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            msg = f"Failed to derive thumbnail of {source_name}: {e!s}"
            raise DerivationError(msg) from e

        logger.info("thumbnail_derived", name=source_name, width=self.width, size_bytes=len(rendered))

    def render(self, data: bytes) -> bytes:
        """Resize image bytes to ``width`` keeping the aspect ratio and encode as JPEG.

        Narrower images are enlarged to the full width.
        """
        with Image.open(BytesIO(data)) as image:
            image.load()
            rgb = self._to_rgb(image)
            height = max(1, round(rgb.height * self.width / rgb.width))
            resized = rgb.resize((self.width, height), Image.Resampling.LANCZOS)

        out = BytesIO()
        resized.save(out, format=THUMBNAIL_FORMAT, quality=self.quality)
        return out.getvalue()

    @staticmethod
    def _to_rgb(image: Image.Image) -> Image.Image:
        if image.mode in ("RGB", "L"):
            return image
        if image.mode in ("RGBA", "LA", "PA") or "transparency" in image.info:
            rgba = image.convert("RGBA")
            background = Image.new("RGB", rgba.size, BACKGROUND)
            background.paste(rgba, mask=rgba.getchannel("A"))
            return background
        return image.convert("RGB")

    def _write_atomic(self, path: str, data: bytes) -> None:
        part = f"{self.root}/.{secrets.token_hex(8)}.part"
        try:
            with self.fs.open(part, "wb") as out:
                out.write(data)
            self.fs.mv(part, path)
        except OSError:
            if self.fs.exists(part):
                self.fs.rm(part)
            raise
