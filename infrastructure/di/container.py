from lagom import Container
from motor.motor_asyncio import AsyncIOMotorClient

from application.ports.blob_store import BlobStore
from application.ports.repositories.file_repository import FileRepository
from application.ports.thumbnail_cache import ThumbnailCache
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
from infrastructure.blob_stores.fsspec_blob_store import FsspecBlobStore
from infrastructure.config import Settings, settings
from infrastructure.read_repositories.mongo_file_repository import MongoFileRepository
from infrastructure.thumbnails.derivation_locks import DerivationLockTable
from infrastructure.thumbnails.pillow_thumbnail_cache import PillowThumbnailCache


def create_container(
    app_settings: Settings = settings,
    file_repository: FileRepository | None = None,
) -> Container:
    container = Container()

    # Blob storage (fsspec)
    blob_store_instance = FsspecBlobStore(
        base_url=app_settings.blob_base_url,
        max_size_bytes=app_settings.limit_filesize,
        storage_options=app_settings.blob_storage_options,
    )
    container[BlobStore] = blob_store_instance

    # Thumbnails share one lock table for the lifetime of the process
    container[DerivationLockTable] = DerivationLockTable()
    container[ThumbnailCache] = PillowThumbnailCache(
        blob_store=blob_store_instance,
        base_url=app_settings.thumbnail_base_url,
        width=app_settings.thumbnail_width,
        quality=app_settings.thumbnail_quality,
        locks=container[DerivationLockTable],
        storage_options=app_settings.blob_storage_options,
    )

    # Register MongoDB Client and File Repository
    if file_repository is None:
        mongo_client = AsyncIOMotorClient(app_settings.mongo_uri, tz_aware=True)
        container[AsyncIOMotorClient] = mongo_client
        file_repository = MongoFileRepository(client=mongo_client, settings=app_settings)
    container[FileRepository] = file_repository

    # Asset Use Cases
    container[IngestAssetUseCase] = lambda c: IngestAssetUseCase(blob_store=c[BlobStore])
    container[DeleteAssetUseCase] = lambda c: DeleteAssetUseCase(blob_store=c[BlobStore])
    container[ReplaceAssetUseCase] = lambda c: ReplaceAssetUseCase(
        ingest_asset_use_case=c[IngestAssetUseCase],
        delete_asset_use_case=c[DeleteAssetUseCase],
    )

    # File Use Cases
    container[ListFilesUseCase] = lambda c: ListFilesUseCase(file_repository=c[FileRepository])
    container[GetFileUseCase] = lambda c: GetFileUseCase(file_repository=c[FileRepository])
    container[GetFileContentUseCase] = lambda c: GetFileContentUseCase(
        file_repository=c[FileRepository],
        blob_store=c[BlobStore],
        thumbnail_cache=c[ThumbnailCache],
    )

    # Register Sagas
    container[CreateFileSaga] = lambda c: CreateFileSaga(
        ingest_asset_use_case=c[IngestAssetUseCase],
        file_repository=c[FileRepository],
    )
    container[UpdateFileSaga] = lambda c: UpdateFileSaga(
        replace_asset_use_case=c[ReplaceAssetUseCase],
        file_repository=c[FileRepository],
    )
    container[DeleteFileSaga] = lambda c: DeleteFileSaga(
        delete_asset_use_case=c[DeleteAssetUseCase],
        file_repository=c[FileRepository],
    )

    return container
