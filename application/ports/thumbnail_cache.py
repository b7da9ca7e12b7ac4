from typing import BinaryIO, Protocol


class ThumbnailCache(Protocol):
    def get_or_derive(self, source_name: str, mime_type: str | None) -> BinaryIO:
        """Return a fresh JPEG preview of the blob ``source_name``.

        Derives (or re-derives) the preview when none exists or when it is older
        than its source. Raises UnsupportedMediaTypeError for non-image types,
        BlobNotFoundError when the source is gone and DerivationError when the
        image cannot be decoded, resized, encoded or written.
        """
        ...
