"""Errors raised while indexing pictures."""


class IngestionError(Exception):
    """Base exception for indexing failures."""


class ScanError(IngestionError):
    """Raised when a directory tree cannot be walked."""


class ExtractionError(IngestionError):
    """Raised when metadata cannot be read from a single file."""
