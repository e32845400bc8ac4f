"""PhotoPrism album synchronization for picture-db."""

from .client import PhotoPrismClient
from .errors import AuthenticationError, GroupingError, PhotoPrismError, SyncError
from .grouping import GroupingQuery, SqlGroupingQuery, group_by_album
from .models import Album, AlbumOutcome, MembershipPair, Photo, SyncResult
from .reconciler import DEFAULT_MEMBER_LIMIT, AlbumReconciler

__all__ = [
    "PhotoPrismClient",
    "AuthenticationError",
    "GroupingError",
    "PhotoPrismError",
    "SyncError",
    "GroupingQuery",
    "SqlGroupingQuery",
    "group_by_album",
    "Album",
    "AlbumOutcome",
    "MembershipPair",
    "Photo",
    "SyncResult",
    "DEFAULT_MEMBER_LIMIT",
    "AlbumReconciler",
]
