from .blob_ref import BlobRef
from .ingestion_mode import IngestionMode
from .mime_type import MimeType

__all__ = [
    "BlobRef",
    "IngestionMode",
    "MimeType",
]
