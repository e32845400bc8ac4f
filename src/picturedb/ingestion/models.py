"""Data models exchanged by the indexing pipeline."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field


def utc_timestamp(seconds: float) -> datetime:
    """Return a naive UTC datetime for POSIX ``seconds``, as stored in SQLite."""
    return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(tzinfo=None)


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ExtractedMetadata(BaseModel):
    """Fields read from a picture by a metadata extractor.

    Every scalar is ``None`` when the file does not carry it.
    """

    date_time_original: Optional[datetime] = None
    make: Optional[str] = None
    model: Optional[str] = None
    rating: Optional[int] = None
    keywords: List[str] = Field(default_factory=list)


class IndexResult(BaseModel):
    """Outcome of indexing one or more roots.

    Attributes:
        processed: Paths whose metadata was (re)extracted and stored.
        skipped: Paths left alone because their record is newer than the file.
        removed: Paths purged because the file is gone from disk.
        errors: ``"<path>: <reason>"`` messages for files that failed.
    """

    processed: List[str] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)
    removed: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)

    def merge(self, other: "IndexResult") -> None:
        self.processed.extend(other.processed)
        self.skipped.extend(other.skipped)
        self.removed.extend(other.removed)
        self.errors.extend(other.errors)

    def counts(self) -> dict[str, int]:
        return {
            "processed": len(self.processed),
            "skipped": len(self.skipped),
            "removed": len(self.removed),
            "errors": len(self.errors),
        }


__all__ = ["ExtractedMetadata", "IndexResult", "utc_now", "utc_timestamp"]
