"""Converge PhotoPrism album membership to a desired set of pictures."""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from .client import PhotoPrismClient
from .models import Album, AlbumOutcome, MembershipPair, Photo, SyncResult

LOGGER = logging.getLogger(__name__)

DEFAULT_MEMBER_LIMIT = 1000


class AlbumReconciler:
    """Add missing members to albums and optionally drop unwanted ones.

    Membership is compared by PhotoPrism photo UID. Pictures are resolved to a
    UID with a file name search; pictures PhotoPrism does not know are reported
    and skipped. Remote failures propagate immediately and end the run.
    """

    def __init__(
        self,
        client: PhotoPrismClient,
        *,
        delete_extras: bool = False,
        member_limit: int = DEFAULT_MEMBER_LIMIT,
    ) -> None:
        """Initialize the reconciler.

        Args:
            client: Authenticated PhotoPrism client.
            delete_extras: Remove album members that no pair selects.
            member_limit: Maximum number of existing members read per album;
                larger albums are truncated to this many.
        """
        self.client = client
        self.delete_extras = delete_extras
        self.member_limit = member_limit

    def reconcile(self, grouped: Mapping[str, Sequence[MembershipPair]]) -> SyncResult:
        """Sync every album in ``grouped`` and return what changed.

        Args:
            grouped: Desired pairs keyed by album title.

        Returns:
            SyncResult: One outcome per album, in ``grouped`` order.

        Raises:
            PhotoPrismError: If any PhotoPrism request fails.
        """
        result = SyncResult()
        if not grouped:
            return result
        existing = self.client.list_albums()
        for title, pairs in grouped.items():
            result.albums.append(self.sync_album(title, pairs, existing))
        return result

    def sync_album(
        self,
        title: str,
        pairs: Sequence[MembershipPair],
        existing: Sequence[Album],
    ) -> AlbumOutcome:
        """Converge a single album to ``pairs``."""
        album = _find_album(existing, title)
        current: Dict[str, Photo] = {}
        if album is None:
            LOGGER.info("creating album %s", title)
            album = self.client.create_album(title)
            outcome = AlbumOutcome(title=title, uid=album.uid, created=True)
        else:
            LOGGER.debug("album %s exists already", title)
            outcome = AlbumOutcome(title=title, uid=album.uid)
            for photo in self.client.list_photos(album.uid, self.member_limit):
                current[photo.uid] = photo

        accounted: set[str] = set()
        pending: List[str] = []
        total = len(pairs)
        for position, pair in enumerate(pairs, start=1):
            LOGGER.debug(
                "searching file %s in PhotoPrism [%.0f%%]", pair.path, position / total * 100
            )
            matches = self.client.find_photos_by_filename(pair.lookup_path, count=1)
            if not matches:
                LOGGER.warning(
                    "%s not found in PhotoPrism, did you forget to index?", pair.lookup_path
                )
                outcome.missing.append(pair.lookup_path)
                continue

            uid = matches[0].uid
            if uid in current or uid in accounted:
                LOGGER.debug("skipping %s (already contained in %s)", pair.path, title)
                accounted.add(uid)
                outcome.already_present.append(pair.path)
                continue

            LOGGER.info("adding %s to %s", pair.path, title)
            accounted.add(uid)
            pending.append(uid)
            outcome.added.append(pair.path)

        if pending:
            self.client.add_photos(album.uid, pending)

        extras = [photo for uid, photo in current.items() if uid not in accounted]
        if self.delete_extras:
            for photo in extras:
                LOGGER.info("deleting %s from %s", photo.display_name, title)
            if extras:
                self.client.remove_photos(album.uid, [photo.uid for photo in extras])
            outcome.removed.extend(extras)
        else:
            for photo in extras:
                LOGGER.warning(
                    "%s is in PhotoPrism album %s but should not be there "
                    "(use --delete to delete extra pictures)",
                    photo.display_name,
                    title,
                )
            outcome.extras.extend(extras)

        return outcome


def _find_album(albums: Sequence[Album], title: str) -> Optional[Album]:
    """Return the first album titled exactly ``title``."""
    return next((album for album in albums if album.title == title), None)


__all__ = ["AlbumReconciler", "DEFAULT_MEMBER_LIMIT"]
