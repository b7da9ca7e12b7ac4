from enum import Enum

IMAGE_PREFIX = "image/"


class MimeType(str, Enum):
    """Represent MIME types the asset service names explicitly."""

    JPEG = "image/jpeg"
    PNG = "image/png"
    OCTET_STREAM = "application/octet-stream"

    @staticmethod
    def is_image(mime_type: str | None) -> bool:
        """Loose image check: only the primary type is inspected, never the subtype."""
        if not mime_type:
            return False
        return mime_type.lower().startswith(IMAGE_PREFIX)
