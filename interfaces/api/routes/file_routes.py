from collections.abc import Container, Iterator
from typing import Annotated, BinaryIO
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status
from fastapi.responses import StreamingResponse
from returns.result import Failure

from application.dtos.file_dtos import (
    FILE_FIELD_NAME,
    FileMetadataRequest,
    FileResponse,
    UploadFileRequest,
)
from application.sagas.file_sagas import CreateFileSaga, DeleteFileSaga, UpdateFileSaga
from application.use_cases.file_use_cases import (
    GetFileContentUseCase,
    GetFileUseCase,
    ListFilesUseCase,
)
from domain.value_objects.ingestion_mode import IngestionMode
from interfaces.api.middleware.error_handler import (
    app_error_to_http_exception,
    handle_use_case_errors,
)
from interfaces.dependencies import get_container

logger = structlog.get_logger()

router = APIRouter(prefix="/files", tags=["files"])

STREAM_CHUNK_SIZE = 64 * 1024


def _is_true(flag: str | None) -> bool:
    return bool(flag) and flag.lower() == "true"


def _upload_request(file: UploadFile | None) -> UploadFileRequest | None:
    if file is None:
        return None
    return UploadFileRequest(
        field_name=FILE_FIELD_NAME,
        filename=file.filename,
        mime_type=file.content_type,
        size=file.size,
    )


def _iter_stream(stream: BinaryIO) -> Iterator[bytes]:
    try:
        while chunk := stream.read(STREAM_CHUNK_SIZE):
            yield chunk
    finally:
        stream.close()


@router.get("", status_code=status.HTTP_200_OK)
@handle_use_case_errors
async def list_files(
    container: Annotated[Container, Depends(get_container)],
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=1000)] = 100,
) -> list[FileResponse]:
    """List file records with pagination."""
    use_case = container[ListFilesUseCase]
    return await use_case.execute(skip=skip, limit=limit)


@router.post("", status_code=status.HTTP_201_CREATED)
@handle_use_case_errors
async def create_file(
    container: Annotated[Container, Depends(get_container)],
    response: Response,
    file: Annotated[UploadFile | None, File()] = None,
    category: Annotated[str | None, Form()] = None,
    description: Annotated[str | None, Form()] = None,
    skip_file_upload: Annotated[str | None, Query(alias="skipFileUpload")] = None,
) -> FileResponse:
    """Upload a file and create its record.

    Returns:
        201 Created: File stored and record created, Location points at it
        400 Bad Request: No file under the expected field
        403 Forbidden: File exceeds the size limit
        500 Internal Server Error: Storage or database failure

    """
    saga = container[CreateFileSaga]
    result = await saga.execute(
        stream=file.file if file else None,
        upload_req=_upload_request(file),
        metadata=FileMetadataRequest(category=category, description=description),
        mode=IngestionMode.from_skip_flag(skip_file_upload),
    )
    if not isinstance(result, Failure):
        response.headers["Location"] = f"{router.prefix}/{result.unwrap().file_id}"
    return result


@router.get("/{file_id}/meta", status_code=status.HTTP_200_OK)
@handle_use_case_errors
async def get_file(
    file_id: UUID,
    container: Annotated[Container, Depends(get_container)],
) -> FileResponse:
    """Retrieve a file record by ID."""
    use_case = container[GetFileUseCase]
    return await use_case.execute(file_id)


@router.get("/{file_id}", status_code=status.HTTP_200_OK)
async def get_file_content(
    file_id: UUID,
    container: Annotated[Container, Depends(get_container)],
    thumbnail: Annotated[str | None, Query()] = None,
) -> StreamingResponse:
    """Stream the file content, or its JPEG thumbnail with ``?thumbnail=true``.

    Returns:
        200 OK: File bytes with the recorded Content-Type (image/jpeg for thumbnails)
        403 Forbidden: Thumbnail requested for a non-image file
        404 Not Found: No such record, or its blob is missing
        500 Internal Server Error: Storage failure or thumbnail derivation failure

    """
    use_case = container[GetFileContentUseCase]
    result = await use_case.execute(file_id, thumbnail=_is_true(thumbnail))
    if isinstance(result, Failure):
        raise app_error_to_http_exception(result.failure())

    content = result.unwrap()
    return StreamingResponse(_iter_stream(content.stream), media_type=content.media_type)


@router.patch("/{file_id}", status_code=status.HTTP_200_OK)
@handle_use_case_errors
async def update_file(
    file_id: UUID,
    container: Annotated[Container, Depends(get_container)],
    file: Annotated[UploadFile | None, File()] = None,
    category: Annotated[str | None, Form()] = None,
    description: Annotated[str | None, Form()] = None,
    skip_file_upload: Annotated[str | None, Query(alias="skipFileUpload")] = None,
) -> FileResponse:
    """Update file metadata and optionally replace its content.

    The previous blob is deleted only after the record points at the new one.
    """
    saga = container[UpdateFileSaga]
    return await saga.execute(
        file_id=file_id,
        stream=file.file if file else None,
        upload_req=_upload_request(file),
        metadata=FileMetadataRequest(category=category, description=description),
        mode=IngestionMode.from_skip_flag(skip_file_upload),
    )


@router.delete("/{file_id}", status_code=status.HTTP_200_OK)
@handle_use_case_errors
async def delete_file(
    file_id: UUID,
    container: Annotated[Container, Depends(get_container)],
) -> FileResponse:
    """Delete a file record and its blob. A blob that is already gone is ignored."""
    saga = container[DeleteFileSaga]
    return await saga.execute(file_id)
