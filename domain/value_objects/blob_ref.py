from pydantic import BaseModel


class BlobRef(BaseModel):
    """Value object describing a stored blob as metadata should record it."""

    name: str
    original_name: str | None
    mime_type: str | None
    size: int
