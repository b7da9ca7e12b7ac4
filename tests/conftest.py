"""Shared test fixtures and configuration."""

from __future__ import annotations

from io import BytesIO
from typing import TYPE_CHECKING

import pytest
from PIL import Image

from infrastructure.blob_stores.fsspec_blob_store import FsspecBlobStore
from infrastructure.thumbnails.derivation_locks import DerivationLockTable
from infrastructure.thumbnails.pillow_thumbnail_cache import PillowThumbnailCache
from tests.mocks import InMemoryFileRepository

if TYPE_CHECKING:
    from pathlib import Path

TEST_LIMIT_BYTES = 256 * 1024


def make_png(
    width: int = 64,
    height: int = 32,
    color: tuple[int, ...] = (200, 30, 30),
    mode: str = "RGB",
) -> bytes:
    """Encode a solid-colour PNG."""
    buf = BytesIO()
    Image.new(mode, (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def files_dir(tmp_path: Path) -> Path:
    return tmp_path / "files"


@pytest.fixture
def thumbnails_dir(tmp_path: Path) -> Path:
    return tmp_path / "files" / "thumbnails"


@pytest.fixture
def blob_store(files_dir: Path) -> FsspecBlobStore:
    """Blob store on a temporary directory with a small size ceiling."""
    return FsspecBlobStore(files_dir.as_uri(), max_size_bytes=TEST_LIMIT_BYTES)


@pytest.fixture
def derivation_locks() -> DerivationLockTable:
    return DerivationLockTable()


@pytest.fixture
def thumbnail_cache(
    blob_store: FsspecBlobStore,
    thumbnails_dir: Path,
    derivation_locks: DerivationLockTable,
) -> PillowThumbnailCache:
    return PillowThumbnailCache(
        blob_store,
        thumbnails_dir.as_uri(),
        width=720,
        quality=80,
        locks=derivation_locks,
    )


@pytest.fixture
def file_repository() -> InMemoryFileRepository:
    return InMemoryFileRepository()


@pytest.fixture
def sample_png() -> bytes:
    return make_png()
