"""Domain layer exports."""

from domain.exceptions import (
    BlobNotFoundError,
    DerivationError,
    DomainError,
    InfrastructureError,
    MissingFieldError,
    RecordNotFoundError,
    SizeExceededError,
    StorageError,
    UnsupportedMediaTypeError,
    ValidationError,
)
from domain.value_objects import BlobRef, IngestionMode, MimeType

__all__ = [
    "BlobNotFoundError",
    "BlobRef",
    "DerivationError",
    "DomainError",
    "InfrastructureError",
    "IngestionMode",
    "MimeType",
    "MissingFieldError",
    "RecordNotFoundError",
    "SizeExceededError",
    "StorageError",
    "UnsupportedMediaTypeError",
    "ValidationError",
]
