from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO
from uuid import UUID

from pydantic import BaseModel, Field

FILE_FIELD_NAME = "file"
THUMBNAIL_MIME_TYPE = "image/jpeg"


class UploadFileRequest(BaseModel):
    """Describes one incoming upload; the content itself travels as a stream."""

    field_name: str = Field(FILE_FIELD_NAME, description="Multipart field the upload arrived under")
    filename: str | None = Field(None, description="Original filename declared by the client")
    mime_type: str | None = Field(None, description="MIME type declared by the client")
    size: int | None = Field(None, description="Size declared by the client, in bytes")


class FileMetadataRequest(BaseModel):
    """Editable metadata fields; ``None`` leaves a field unchanged."""

    category: str | None = Field(None, description="Free-form category of the file")
    description: str | None = Field(None, description="Human readable description")


class FileResponse(BaseModel):
    """Response DTO representing a file metadata record."""

    file_id: UUID = Field(..., description="Unique identifier of the file record")
    name: str = Field(..., description="Assigned name of the blob in the store")
    original_name: str | None = Field(None, description="Original filename of the upload")
    mimetype: str | None = Field(None, description="Declared MIME type of the upload")
    size: int = Field(..., description="Size of the blob in bytes")
    category: str | None = Field(None, description="Free-form category of the file")
    description: str | None = Field(None, description="Human readable description")
    created_at: datetime = Field(..., description="When the record was created")
    updated_at: datetime = Field(..., description="When the record was last modified")


@dataclass
class FileContent:
    """An open byte stream ready to be served, plus how to label it."""

    stream: BinaryIO
    media_type: str
    filename: str | None = None
