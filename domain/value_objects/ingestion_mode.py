from enum import Enum


class IngestionMode(str, Enum):
    """Whether an upload request carries a blob or only metadata changes."""

    WITH_BLOB = "with_blob"
    METADATA_ONLY = "metadata_only"

    @classmethod
    def from_skip_flag(cls, skip_file_upload: str | bool | None) -> "IngestionMode":
        """Map the ``skipFileUpload`` query flag onto a mode.

        Only a case-insensitive ``"true"`` (or a real ``True``) skips blob handling.
        """
        if isinstance(skip_file_upload, bool):
            return cls.METADATA_ONLY if skip_file_upload else cls.WITH_BLOB
        if skip_file_upload and skip_file_upload.lower() == "true":
            return cls.METADATA_ONLY
        return cls.WITH_BLOB
