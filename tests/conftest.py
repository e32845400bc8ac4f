"""Shared fixtures and fakes for picture-db tests."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import pytest

from picturedb.ingestion import ExtractedMetadata, ExtractionError, MetadataExtractor
from picturedb.store import IndexStore
from picturedb.sync import Album, Photo, PhotoPrismError


class FakeExtractor(MetadataExtractor):
    """Extractor returning canned metadata and recording every call."""

    def __init__(self) -> None:
        self.calls: List[str] = []
        self.results: Dict[str, Union[ExtractedMetadata, Exception]] = {}
        self.closed = False

    def set(self, path: Union[str, Path], **fields: object) -> None:
        self.results[str(path)] = ExtractedMetadata(**fields)

    def fail(self, path: Union[str, Path], message: str = "corrupt file") -> None:
        self.results[str(path)] = ExtractionError(message)

    def extract(self, path: str) -> ExtractedMetadata:
        self.calls.append(path)
        outcome = self.results.get(path, ExtractedMetadata())
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def close(self) -> None:
        self.closed = True


class FakePhotoPrism:
    """In-memory stand-in for ``PhotoPrismClient`` used by reconciler tests."""

    def __init__(self) -> None:
        self.albums: List[Album] = []
        self.members: Dict[str, List[Photo]] = {}
        self.library: Dict[str, Photo] = {}
        self.created: List[str] = []
        self.added: List[tuple[str, List[str]]] = []
        self.removed: List[tuple[str, List[str]]] = []
        self.listed: List[tuple[str, int]] = []
        self.lookups: List[str] = []
        self.album_listings = 0
        self.fail_on: Optional[str] = None

    def add_album(self, uid: str, title: str, members: Iterable[Photo] = ()) -> Album:
        album = Album(uid=uid, title=title)
        self.albums.append(album)
        self.members[uid] = list(members)
        return album

    def add_picture(self, path: str, uid: str) -> Photo:
        directory, _, name = path.rpartition("/")
        photo = Photo(uid=uid, path=directory.lstrip("/"), name=name)
        self.library[path] = photo
        return photo

    def _check(self, operation: str) -> None:
        if self.fail_on == operation:
            raise PhotoPrismError(f"{operation} failed: 500 Server Error")

    def list_albums(self) -> List[Album]:
        self._check("list_albums")
        self.album_listings += 1
        return list(self.albums)

    def create_album(self, title: str) -> Album:
        self._check("create_album")
        self.created.append(title)
        album = Album(uid=f"new{len(self.created)}", title=title)
        self.albums.append(album)
        self.members[album.uid] = []
        return album

    def list_photos(self, album_uid: str, count: int) -> List[Photo]:
        self._check("list_photos")
        self.listed.append((album_uid, count))
        return list(self.members.get(album_uid, []))[:count]

    def find_photos_by_filename(self, substring: str, count: int = 1) -> List[Photo]:
        self._check("find_photos_by_filename")
        self.lookups.append(substring)
        matches = [photo for path, photo in self.library.items() if substring in path]
        return matches[:count]

    def add_photos(self, album_uid: str, photo_uids: Iterable[str]) -> None:
        self._check("add_photos")
        uids = list(photo_uids)
        self.added.append((album_uid, uids))
        by_uid = {photo.uid: photo for photo in self.library.values()}
        self.members.setdefault(album_uid, []).extend(by_uid[uid] for uid in uids)

    def remove_photos(self, album_uid: str, photo_uids: Iterable[str]) -> None:
        self._check("remove_photos")
        uids = list(photo_uids)
        self.removed.append((album_uid, uids))
        self.members[album_uid] = [
            photo for photo in self.members.get(album_uid, []) if photo.uid not in uids
        ]


@pytest.fixture
def store(tmp_path: Path) -> Iterable[IndexStore]:
    with IndexStore(tmp_path / "index" / "db.sqlite") as opened:
        yield opened


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def photoprism() -> FakePhotoPrism:
    return FakePhotoPrism()
