"""Filesystem indexing for picture-db."""

from .discovery import DEFAULT_EXTENSIONS, DirectoryScanner, normalize_path
from .errors import ExtractionError, IngestionError, ScanError
from .extractors import ExifToolExtractor, MetadataExtractor, PillowExtractor, build_extractor
from .models import ExtractedMetadata, IndexResult
from .pipeline import IncrementalIndexer

__all__ = [
    "DEFAULT_EXTENSIONS",
    "DirectoryScanner",
    "normalize_path",
    "ExtractionError",
    "IngestionError",
    "ScanError",
    "MetadataExtractor",
    "ExifToolExtractor",
    "PillowExtractor",
    "build_extractor",
    "ExtractedMetadata",
    "IndexResult",
    "IncrementalIndexer",
]
