"""Errors raised while syncing albums."""


class SyncError(Exception):
    """Base exception for album synchronization."""


class GroupingError(SyncError):
    """Raised when a grouping query does not yield album/path pairs."""


class PhotoPrismError(SyncError):
    """Raised when a PhotoPrism request fails."""


class AuthenticationError(PhotoPrismError):
    """Raised when PhotoPrism rejects the supplied credentials."""
