"""Tests for the /files API routes."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from returns.result import Failure

from application.dtos.errors import AppError
from application.sagas.file_sagas import CreateFileSaga, DeleteFileSaga, UpdateFileSaga
from application.use_cases.asset_use_cases import (
    DeleteAssetUseCase,
    IngestAssetUseCase,
    ReplaceAssetUseCase,
)
from application.use_cases.file_use_cases import (
    GetFileContentUseCase,
    GetFileUseCase,
    ListFilesUseCase,
)
from interfaces.api.main import app
from interfaces.dependencies import get_container
from tests.conftest import TEST_LIMIT_BYTES

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from infrastructure.blob_stores.fsspec_blob_store import FsspecBlobStore
    from infrastructure.thumbnails.pillow_thumbnail_cache import PillowThumbnailCache
    from tests.mocks import InMemoryFileRepository


class FakeContainer:
    def __init__(self, mapping: dict[type, object]) -> None:
        self._mapping = mapping

    def __getitem__(self, key: type) -> object:
        return self._mapping[key]


class FakeUseCase:
    def __init__(self, result: object) -> None:
        self._result = result

    async def execute(self, *args, **kwargs):  # type: ignore[no-untyped-def]
        return self._result


@pytest.fixture
def make_client() -> Iterator[Callable[[dict[type, object]], TestClient]]:
    def _make_client(overrides: dict[type, object]) -> TestClient:
        container = FakeContainer(overrides)
        app.dependency_overrides[get_container] = lambda: container
        return TestClient(app)

    yield _make_client
    app.dependency_overrides.clear()


@pytest.fixture
def client(
    make_client: Callable[[dict[type, object]], TestClient],
    blob_store: FsspecBlobStore,
    thumbnail_cache: PillowThumbnailCache,
    file_repository: InMemoryFileRepository,
) -> TestClient:
    """Client wired to real use cases over a temporary blob store."""
    ingest = IngestAssetUseCase(blob_store)
    delete = DeleteAssetUseCase(blob_store)
    replace = ReplaceAssetUseCase(ingest, delete)
    return make_client(
        {
            ListFilesUseCase: ListFilesUseCase(file_repository),
            GetFileUseCase: GetFileUseCase(file_repository),
            GetFileContentUseCase: GetFileContentUseCase(
                file_repository,
                blob_store,
                thumbnail_cache,
            ),
            CreateFileSaga: CreateFileSaga(ingest, file_repository),
            UpdateFileSaga: UpdateFileSaga(replace, file_repository),
            DeleteFileSaga: DeleteFileSaga(delete, file_repository),
        },
    )


def _upload(client: TestClient, data: bytes, **form: str) -> dict:
    response = client.post(
        "/files",
        files={"file": ("photo.png", data, "image/png")},
        data=form,
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateFile:
    def test_create_returns_record_and_location(self, client: TestClient, sample_png: bytes) -> None:
        response = client.post(
            "/files",
            files={"file": ("photo.png", sample_png, "image/png")},
            data={"category": "poster", "description": "front"},
        )

        assert response.status_code == 201
        body = response.json()
        assert response.headers["location"] == f"/files/{body['file_id']}"
        assert body["original_name"] == "photo.png"
        assert body["mimetype"] == "image/png"
        assert body["size"] == len(sample_png)
        assert body["category"] == "poster"
        assert body["name"] != "photo.png"

    def test_create_at_collection_path_without_redirect(
        self,
        client: TestClient,
        sample_png: bytes,
    ) -> None:
        response = client.post(
            "/files",
            files={"file": ("photo.png", sample_png, "image/png")},
            follow_redirects=False,
        )

        assert response.status_code == 201

    def test_create_without_file_is_bad_request(self, client: TestClient) -> None:
        response = client.post("/files", data={"category": "poster"})

        assert response.status_code == 400

    def test_create_with_wrong_field_is_bad_request(self, client: TestClient) -> None:
        response = client.post(
            "/files",
            files={"upload": ("photo.png", b"x", "image/png")},
        )

        assert response.status_code == 400

    def test_create_with_skip_flag_is_bad_request(self, client: TestClient) -> None:
        response = client.post(
            "/files?skipFileUpload=true",
            files={"file": ("photo.png", b"x", "image/png")},
        )

        assert response.status_code == 400

    def test_create_over_limit_is_forbidden(
        self,
        client: TestClient,
        file_repository: InMemoryFileRepository,
    ) -> None:
        response = client.post(
            "/files",
            files={"file": ("big.bin", b"\0" * (TEST_LIMIT_BYTES + 1), "application/octet-stream")},
        )

        assert response.status_code == 403
        assert file_repository.records == {}

    def test_storage_failure_is_generic_server_error(self, make_client) -> None:
        saga = FakeUseCase(Failure(AppError("storage", "disk on fire at /srv/files")))
        client = make_client({CreateFileSaga: saga})

        response = client.post("/files", files={"file": ("a.txt", b"a", "text/plain")})

        assert response.status_code == 500
        assert "/srv/files" not in response.text


class TestReadFile:
    def test_list_files(self, client: TestClient) -> None:
        _upload(client, b"one")
        _upload(client, b"two")

        response = client.get("/files?skip=0&limit=1")

        assert response.status_code == 200
        assert len(response.json()) == 1

    def test_get_meta(self, client: TestClient) -> None:
        created = _upload(client, b"one")

        response = client.get(f"/files/{created['file_id']}/meta")

        assert response.status_code == 200
        assert response.json() == created

    def test_get_meta_not_found(self, client: TestClient) -> None:
        response = client.get(f"/files/{uuid4()}/meta")

        assert response.status_code == 404

    def test_get_content(self, client: TestClient, sample_png: bytes) -> None:
        created = _upload(client, sample_png)

        response = client.get(f"/files/{created['file_id']}")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.content == sample_png

    def test_get_thumbnail(self, client: TestClient, sample_png: bytes) -> None:
        created = _upload(client, sample_png)

        response = client.get(f"/files/{created['file_id']}?thumbnail=true")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/jpeg"
        assert response.content[:2] == b"\xff\xd8"

    def test_thumbnail_flag_must_be_true(self, client: TestClient, sample_png: bytes) -> None:
        created = _upload(client, sample_png)

        response = client.get(f"/files/{created['file_id']}?thumbnail=yes")

        assert response.content == sample_png

    def test_thumbnail_of_non_image_is_forbidden(self, client: TestClient) -> None:
        response = client.post(
            "/files",
            files={"file": ("doc.pdf", b"%PDF-1.4", "application/pdf")},
        )
        file_id = response.json()["file_id"]

        response = client.get(f"/files/{file_id}?thumbnail=true")

        assert response.status_code == 403

    def test_get_content_not_found(self, client: TestClient) -> None:
        response = client.get(f"/files/{uuid4()}")

        assert response.status_code == 404

    def test_get_content_with_missing_blob(
        self,
        client: TestClient,
        blob_store: FsspecBlobStore,
    ) -> None:
        created = _upload(client, b"one")
        blob_store.delete(created["name"])

        response = client.get(f"/files/{created['file_id']}")

        assert response.status_code == 404


class TestUpdateFile:
    def test_replace_content(
        self,
        client: TestClient,
        blob_store: FsspecBlobStore,
    ) -> None:
        created = _upload(client, b"one", category="poster")

        response = client.patch(
            f"/files/{created['file_id']}",
            files={"file": ("two.txt", b"two!", "text/plain")},
            data={"description": "updated"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["name"] != created["name"]
        assert body["original_name"] == "two.txt"
        assert body["size"] == 4
        assert body["category"] == "poster"
        assert body["description"] == "updated"
        assert blob_store.exists(created["name"]) is False

    def test_metadata_only(self, client: TestClient, blob_store: FsspecBlobStore) -> None:
        created = _upload(client, b"one")

        response = client.patch(f"/files/{created['file_id']}", data={"category": "flyer"})

        assert response.status_code == 200
        assert response.json()["name"] == created["name"]
        assert response.json()["category"] == "flyer"
        assert blob_store.exists(created["name"])

    def test_update_not_found(self, client: TestClient) -> None:
        response = client.patch(f"/files/{uuid4()}", data={"category": "flyer"})

        assert response.status_code == 404

    def test_replace_over_limit_keeps_previous(
        self,
        client: TestClient,
        blob_store: FsspecBlobStore,
    ) -> None:
        created = _upload(client, b"one")

        response = client.patch(
            f"/files/{created['file_id']}",
            files={"file": ("big.bin", b"\0" * (TEST_LIMIT_BYTES + 1), "application/octet-stream")},
        )

        assert response.status_code == 403
        assert blob_store.get_bytes(created["name"]) == b"one"


class TestDeleteFile:
    def test_delete_returns_record(self, client: TestClient, blob_store: FsspecBlobStore) -> None:
        created = _upload(client, b"one")

        response = client.delete(f"/files/{created['file_id']}")

        assert response.status_code == 200
        assert response.json()["file_id"] == created["file_id"]
        assert blob_store.exists(created["name"]) is False
        assert client.get(f"/files/{created['file_id']}/meta").status_code == 404

    def test_delete_not_found(self, client: TestClient) -> None:
        response = client.delete(f"/files/{uuid4()}")

        assert response.status_code == 404


def test_health(make_client) -> None:
    client = make_client({})

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}
