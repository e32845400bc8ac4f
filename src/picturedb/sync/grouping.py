"""Grouping queries that decide which pictures belong to which album."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Protocol, Sequence

from picturedb.store import IndexStore

from .errors import GroupingError
from .models import MembershipPair

LOGGER = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("album", "path")


class GroupingQuery(Protocol):
    """Source of the album/picture pairs a sync run should converge to."""

    def pairs(self) -> List[MembershipPair]:
        """Return the desired pairs in the order they should be processed."""
        ...


class SqlGroupingQuery:
    """Select album/picture pairs with a SQL statement over the index.

    The statement must return an ``album`` and a ``path`` column and may
    return ``photoprism_path`` to search PhotoPrism for a different path,
    for example::

        SELECT dir2 AS album, path FROM pictures WHERE rating >= 4
    """

    def __init__(self, store: IndexStore, statement: str) -> None:
        self.store = store
        self.statement = statement

    def pairs(self) -> List[MembershipPair]:
        """Run the statement and map its rows to membership pairs.

        Raises:
            GroupingError: If a required column is missing from the result.
            StoreError: If the statement fails.
        """
        result = self.store.execute(self.statement)
        positions = {column.lower(): index for index, column in enumerate(result.columns)}
        missing = [column for column in REQUIRED_COLUMNS if column not in positions]
        if missing:
            raise GroupingError(
                "Grouping query must select the column(s): "
                + ", ".join(missing)
                + f" (got: {', '.join(result.columns) or 'no columns'})"
            )

        pairs: List[MembershipPair] = []
        for row in result.rows:
            album = row[positions["album"]]
            path = row[positions["path"]]
            if not album or not path:
                LOGGER.warning("skipping row without album or path: %r", row)
                continue
            override = None
            if "photoprism_path" in positions:
                override = row[positions["photoprism_path"]] or None
            pairs.append(
                MembershipPair(
                    album=str(album),
                    path=str(path),
                    photoprism_path=str(override) if override is not None else None,
                )
            )
        return pairs


def group_by_album(pairs: Iterable[MembershipPair]) -> Dict[str, Sequence[MembershipPair]]:
    """Group pairs by album title, keeping first-seen album and pair order."""
    grouped: Dict[str, List[MembershipPair]] = {}
    for pair in pairs:
        grouped.setdefault(pair.album, []).append(pair)
    return dict(grouped)


__all__ = ["GroupingQuery", "SqlGroupingQuery", "group_by_album"]
