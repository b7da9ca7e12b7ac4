"""Domain exceptions for business rule violations."""


class DomainError(Exception):
    """Base exception for domain layer."""


class ValidationError(DomainError):
    """Raised when input validation fails."""


class MissingFieldError(ValidationError):
    """Raised when an upload does not arrive under the expected form field."""


class SizeExceededError(ValidationError):
    """Raised when uploaded content crosses the configured size ceiling."""

    def __init__(self, limit_bytes: int) -> None:
        super().__init__(f"File exceeds the size limit of {limit_bytes} bytes")
        self.limit_bytes = limit_bytes


class UnsupportedMediaTypeError(ValidationError):
    """Raised when a thumbnail is requested for a non-image MIME type."""

    def __init__(self, mime_type: str | None) -> None:
        super().__init__(f"Cannot get thumbnail of {mime_type} mime type")
        self.mime_type = mime_type


class BlobNotFoundError(DomainError):
    """Raised when a blob is absent from the store."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Blob {name} does not exist")
        self.name = name


class RecordNotFoundError(DomainError):
    """Raised when a file metadata record is not found in the repository."""


class InfrastructureError(DomainError):
    """Raised when infrastructure operations fail (DB, filesystem, etc.)."""


class StorageError(InfrastructureError):
    """Raised when the blob store cannot read or write content."""


class DerivationError(InfrastructureError):
    """Raised when a thumbnail cannot be decoded, resized, encoded or written."""
