"""ORM models for the picture index."""

from __future__ import annotations

import json
import os
from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Declarative base shared by the index tables."""


class Picture(Base):
    """Metadata snapshot of a single picture on disk."""

    __tablename__ = "pictures"

    path: Mapped[str] = mapped_column(Text, primary_key=True)
    dir: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    dir1: Mapped[Optional[str]] = mapped_column(Text)
    dir2: Mapped[Optional[str]] = mapped_column(Text)
    dir3: Mapped[Optional[str]] = mapped_column(Text)
    json_path: Mapped[str] = mapped_column(Text, nullable=False, default="[]")

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    modified_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    indexed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    make: Mapped[Optional[str]] = mapped_column(String(255))
    model: Mapped[Optional[str]] = mapped_column(String(255))
    date_time_original: Mapped[Optional[datetime]] = mapped_column(DateTime)
    rating: Mapped[Optional[int]] = mapped_column(Integer)

    tags: Mapped[List["PictureTag"]] = relationship(
        back_populates="picture",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="PictureTag.tag",
    )

    @property
    def tag_names(self) -> set[str]:
        return {tag.tag for tag in self.tags}

    def set_location(self, path: str) -> None:
        """Populate the directory columns derived from ``path``.

        ``dir1`` to ``dir3`` hold the first three segments of the parent
        directory and stay ``None`` when the directory is shallower.
        """
        self.path = path
        self.dir = os.path.dirname(path)
        segments = [segment for segment in path.split(os.sep) if segment]
        self.json_path = json.dumps(segments)
        directories = segments[:-1]
        self.dir1, self.dir2, self.dir3 = (directories + [None, None, None])[:3]

    def __repr__(self) -> str:
        return f"Picture(path={self.path!r}, indexed_at={self.indexed_at!r})"


class PictureTag(Base):
    """A keyword attached to a picture."""

    __tablename__ = "picture_tags"

    path: Mapped[str] = mapped_column(
        Text, ForeignKey("pictures.path", ondelete="CASCADE"), primary_key=True
    )
    tag: Mapped[str] = mapped_column(Text, primary_key=True)

    picture: Mapped[Picture] = relationship(back_populates="tags")


__all__ = ["Base", "Picture", "PictureTag"]
