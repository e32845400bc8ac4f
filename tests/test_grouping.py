"""Tests for SQL grouping queries."""

from __future__ import annotations

from datetime import datetime

import pytest

from picturedb.store import IndexStore, Picture, StoreError
from picturedb.sync import GroupingError, MembershipPair, SqlGroupingQuery, group_by_album


def _seed(store: IndexStore, path: str, rating: int | None = None, tags: tuple = ()) -> None:
    stamp = datetime(2024, 1, 1)
    picture = Picture(modified_at=stamp, indexed_at=stamp, rating=rating)
    picture.set_location(path)
    store.save(picture, tags)


def test_pairs_map_album_and_path_columns(store: IndexStore) -> None:
    _seed(store, "/photos/2024/summer/a.jpg", rating=5)
    _seed(store, "/photos/2024/winter/b.jpg", rating=4)
    _seed(store, "/photos/2023/spring/c.jpg", rating=1)

    pairs = SqlGroupingQuery(
        store,
        "SELECT dir3 AS Album, path AS PATH FROM pictures WHERE rating >= 4 ORDER BY path",
    ).pairs()

    assert pairs == [
        MembershipPair(album="summer", path="/photos/2024/summer/a.jpg"),
        MembershipPair(album="winter", path="/photos/2024/winter/b.jpg"),
    ]


def test_pairs_read_optional_photoprism_path(store: IndexStore) -> None:
    _seed(store, "/home/me/pics/a.jpg", tags=("best",))

    pairs = SqlGroupingQuery(
        store,
        "SELECT 'Best' AS album, p.path, substr(p.path, 10) AS photoprism_path "
        "FROM pictures p JOIN picture_tags t ON t.path = p.path WHERE t.tag = 'best'",
    ).pairs()

    assert pairs[0].photoprism_path == "pics/a.jpg"
    assert pairs[0].lookup_path == "pics/a.jpg"


def test_rows_without_album_are_skipped(store: IndexStore) -> None:
    _seed(store, "/a.jpg")
    _seed(store, "/x/b.jpg")

    pairs = SqlGroupingQuery(store, "SELECT dir1 AS album, path FROM pictures").pairs()

    assert pairs == [MembershipPair(album="x", path="/x/b.jpg")]


def test_missing_required_column_raises(store: IndexStore) -> None:
    with pytest.raises(GroupingError, match="album"):
        SqlGroupingQuery(store, "SELECT path FROM pictures").pairs()


def test_invalid_statement_raises_store_error(store: IndexStore) -> None:
    with pytest.raises(StoreError):
        SqlGroupingQuery(store, "SELECT album, path FROM albums").pairs()


def test_group_by_album_keeps_first_seen_order() -> None:
    pairs = [
        MembershipPair(album="B", path="/1.jpg"),
        MembershipPair(album="A", path="/2.jpg"),
        MembershipPair(album="B", path="/3.jpg"),
    ]

    grouped = group_by_album(pairs)

    assert list(grouped) == ["B", "A"]
    assert [pair.path for pair in grouped["B"]] == ["/1.jpg", "/3.jpg"]
