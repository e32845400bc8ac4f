"""Album synchronization data models."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MembershipPair(BaseModel):
    """A picture that should belong to an album.

    Attributes:
        album: Album title.
        path: Picture path in the local index.
        photoprism_path: Path to search for in PhotoPrism when it differs from ``path``.
    """

    album: str
    path: str
    photoprism_path: Optional[str] = None

    @property
    def lookup_path(self) -> str:
        return self.photoprism_path or self.path


class Album(BaseModel):
    """Album as returned by the PhotoPrism API."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    uid: str = Field(alias="UID")
    title: str = Field(default="", alias="Title")


class Photo(BaseModel):
    """Photo as returned by the PhotoPrism API."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    uid: str = Field(alias="UID")
    path: str = Field(default="", alias="Path")
    name: str = Field(default="", alias="Name")

    @property
    def display_name(self) -> str:
        return f"{self.path}/{self.name}" if self.path else self.name


class AlbumOutcome(BaseModel):
    """What reconciliation did to a single album.

    Attributes:
        title: Album title.
        uid: PhotoPrism album UID.
        created: Whether the album was created during this run.
        added: Local paths added to the album.
        already_present: Local paths that were already members.
        missing: Lookup paths PhotoPrism does not know about.
        removed: Members deleted from the album because no pair selected them.
        extras: Members no pair selected that were left in place.
    """

    title: str
    uid: str
    created: bool = False
    added: List[str] = Field(default_factory=list)
    already_present: List[str] = Field(default_factory=list)
    missing: List[str] = Field(default_factory=list)
    removed: List[Photo] = Field(default_factory=list)
    extras: List[Photo] = Field(default_factory=list)


class SyncResult(BaseModel):
    """Aggregated outcome of a reconciliation run."""

    albums: List[AlbumOutcome] = Field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {
            "albums": len(self.albums),
            "created": sum(1 for album in self.albums if album.created),
            "added": sum(len(album.added) for album in self.albums),
            "already_present": sum(len(album.already_present) for album in self.albums),
            "missing": sum(len(album.missing) for album in self.albums),
            "removed": sum(len(album.removed) for album in self.albums),
            "extras": sum(len(album.extras) for album in self.albums),
        }


__all__ = ["MembershipPair", "Album", "Photo", "AlbumOutcome", "SyncResult"]
