"""Configuration models describing picture-db settings."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PictureDBBaseModel(BaseModel):
    """Shared configuration for picture-db Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class DatabaseSettings(PictureDBBaseModel):
    """Location and behavior of the local SQLite index.

    Attributes:
        path: Path to the SQLite database file.
        echo: Whether SQLAlchemy should echo every statement it emits.
    """

    path: str = "db.sqlite"
    echo: bool = False


class IndexSettings(PictureDBBaseModel):
    """Options governing filesystem indexing.

    Attributes:
        extensions: Lower-case file suffixes considered pictures.
        extractor: Metadata extraction backend.
        follow_symlinks: Whether the scanner descends into symlinked directories.
    """

    extensions: List[str] = Field(default_factory=lambda: [".heic", ".jpg"])
    extractor: Literal["exiftool", "pillow"] = "exiftool"
    follow_symlinks: bool = False

    @field_validator("extensions")
    @classmethod
    def _normalize_extensions(cls, value: List[str]) -> List[str]:
        normalized = []
        for suffix in value:
            suffix = suffix.strip().lower()
            if not suffix:
                continue
            normalized.append(suffix if suffix.startswith(".") else f".{suffix}")
        return normalized


class PhotoPrismSettings(PictureDBBaseModel):
    """Connection and reconciliation options for PhotoPrism.

    Attributes:
        url: Base URL of the PhotoPrism instance.
        user: Account name used to open a session.
        password: Account password.
        delete_from_album: Whether pictures not selected by the query are removed.
        member_limit: Maximum number of album members fetched per album.
        timeout_seconds: HTTP timeout applied to every request.
    """

    url: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None
    delete_from_album: bool = False
    member_limit: int = 1000
    timeout_seconds: float = 30.0


class LoggingSettings(PictureDBBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        verbose: Whether per-file skip notices are emitted.
    """

    level: str = "INFO"
    verbose: bool = False


class PictureDBConfig(PictureDBBaseModel):
    """Top-level configuration struct for picture-db.

    Attributes:
        database: SQLite index settings.
        index: Filesystem indexing settings.
        photoprism: PhotoPrism connection settings.
        logging: Logging configuration.
    """

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    index: IndexSettings = Field(default_factory=IndexSettings)
    photoprism: PhotoPrismSettings = Field(default_factory=PhotoPrismSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


__all__ = [
    "PictureDBBaseModel",
    "DatabaseSettings",
    "IndexSettings",
    "PhotoPrismSettings",
    "LoggingSettings",
    "PictureDBConfig",
]
