"""Incremental indexing of pictures into the local store."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta
from typing import Callable, Iterable

from picturedb.store import IndexStore, Picture

from .discovery import DirectoryScanner, normalize_path
from .errors import ExtractionError
from .extractors import MetadataExtractor
from .models import ExtractedMetadata, IndexResult, utc_now, utc_timestamp

LOGGER = logging.getLogger(__name__)


class IncrementalIndexer:
    """Keep the index store consistent with the pictures found on disk.

    A file is re-extracted only when it changed since its record was written
    (or when a re-index is forced); records of files that disappeared from a
    root are purged after the root has been walked.
    """

    def __init__(
        self,
        store: IndexStore,
        scanner: DirectoryScanner,
        extractor: MetadataExtractor,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the indexer.

        Args:
            store: Destination for picture records.
            scanner: Enumerates candidate files below a root.
            extractor: Reads metadata from a single file.
            clock: Returns the naive UTC time recorded as ``indexed_at``.
        """
        self.store = store
        self.scanner = scanner
        self.extractor = extractor
        self._clock = clock

    def run(self, roots: Iterable[str], force_reindex: bool = False) -> IndexResult:
        """Index each root in turn and aggregate the outcome."""
        result = IndexResult()
        for root in roots:
            result.merge(self.reindex(root, force_reindex=force_reindex))
        return result

    def reindex(self, root: str, force_reindex: bool = False) -> IndexResult:
        """Bring the records under ``root`` in line with the files on disk.

        Args:
            root: Directory (or single picture) to index.
            force_reindex: Re-extract every file regardless of its timestamps.

        Returns:
            IndexResult: Processed, skipped and purged paths plus per-file errors.

        Raises:
            ScanError: If ``root`` cannot be walked.
            StoreError: If the store rejects a read or write.
        """
        root = normalize_path(root)
        candidates = self.scanner.scan(root)
        result = IndexResult()

        total = len(candidates)
        for position, path in enumerate(sorted(candidates), start=1):
            progress = position / total * 100
            try:
                modified_at = utc_timestamp(os.stat(path).st_mtime)
            except OSError as exc:
                LOGGER.error("error: %s", exc)
                result.errors.append(f"{path}: {exc}")
                continue

            existing = self.store.get(path)
            if existing is not None and not force_reindex and modified_at < existing.indexed_at:
                LOGGER.debug("skipping %s [%.0f%%]", path, progress)
                result.skipped.append(path)
                continue

            LOGGER.info("indexing %s [%.0f%%]", path, progress)
            try:
                metadata = self.extractor.extract(path)
            except ExtractionError as exc:
                LOGGER.error("error indexing %s: %s", path, exc)
                result.errors.append(f"{path}: {exc}")
                continue

            picture = self._build_record(path, modified_at, metadata, existing)
            self.store.save(picture, metadata.keywords)
            result.processed.append(path)

        for path in self.store.paths_under(root):
            if path in candidates:
                continue
            LOGGER.info("removing %s from index (file got moved or deleted on disk)", path)
            self.store.delete(path)
            result.removed.append(path)

        return result

    def _build_record(
        self,
        path: str,
        modified_at: datetime,
        metadata: ExtractedMetadata,
        existing: Picture | None,
    ) -> Picture:
        # Strictly after mtime so the next run skips files dated in the future.
        indexed_at = max(self._clock(), modified_at + timedelta(microseconds=1))
        picture = Picture(
            created_at=existing.created_at if existing is not None else indexed_at,
            modified_at=modified_at,
            indexed_at=indexed_at,
            make=metadata.make,
            model=metadata.model,
            date_time_original=metadata.date_time_original,
            rating=metadata.rating,
        )
        picture.set_location(path)
        return picture


__all__ = ["IncrementalIndexer"]
