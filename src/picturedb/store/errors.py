"""Index store errors."""


class StoreError(Exception):
    """Base exception for index store operations."""
