from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ROOT = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # make it absolute so reload/CWD doesn't break it
        env_file=_ROOT / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="FileAssets", validation_alias="APP_NAME")
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        validation_alias="APP_ENV",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_dir: Path | None = Field(
        default=_ROOT / "logs",
        validation_alias="LOG_DIR",
        description="Directory for the rotating log file; None logs to stdout only.",
    )

    # API
    api_host: str = Field(default="127.0.0.1", validation_alias="API_HOST")
    api_port: int = Field(default=8000, validation_alias="API_PORT")
    cors_origins: list[str] = Field(default=["*"], validation_alias="CORS_ORIGINS")

    # MongoDB
    mongo_uri: str = Field(
        default="mongodb://localhost:27017",
        validation_alias="MONGO_URI",
    )
    mongo_db: str = Field(default="file_assets", validation_alias="MONGO_DB")
    mongo_files_collection: str = Field(
        default="files",
        validation_alias="MONGO_FILES_COLLECTION",
    )

    # Blob Storage
    files_path: Path = Field(default=_ROOT / "files", validation_alias="PATH_FILES")
    thumbnail_path: Path | None = Field(
        default=None,
        validation_alias="THUMBNAIL_PATH",
        description="Defaults to a 'thumbnails' directory inside PATH_FILES.",
    )
    blob_storage_options: dict = {}
    limit_filesize: int = Field(
        default=16 * 1024 * 1024,
        gt=0,
        validation_alias="LIMIT_FILESIZE",
        description="Maximum size of one uploaded file, in bytes.",
    )
    upload_overhead_bytes: int = Field(
        default=64 * 1024,
        ge=0,
        validation_alias="UPLOAD_OVERHEAD_BYTES",
        description="Allowance for multipart framing and form fields on top of LIMIT_FILESIZE.",
    )

    # Thumbnails
    thumbnail_width: int = Field(default=720, gt=0, validation_alias="THUMBNAIL_WIDTH")
    thumbnail_quality: int = Field(default=80, ge=1, le=95, validation_alias="THUMBNAIL_QUALITY")

    @model_validator(mode="after")
    def _default_thumbnail_path(self) -> "Settings":
        if self.thumbnail_path is None:
            self.thumbnail_path = self.files_path / "thumbnails"
        return self

    @property
    def blob_base_url(self) -> str:
        return self.files_path.resolve().as_uri()

    @property
    def thumbnail_base_url(self) -> str:
        return self.thumbnail_path.resolve().as_uri()


# Global settings instance
settings = Settings()
