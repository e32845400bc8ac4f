"""Picture metadata extraction backends.

Two backends read the same handful of fields: ``ExifToolExtractor`` drives a
long-running ``exiftool -stay_open`` process through PyExifTool and handles
every format exiftool knows (HEIC included), while ``PillowExtractor`` reads
the EXIF block of formats Pillow can open and needs no external binary.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from exiftool import ExifToolHelper
from exiftool.exceptions import ExifToolException
from PIL import ExifTags, Image, UnidentifiedImageError

from .errors import ExtractionError, IngestionError
from .models import ExtractedMetadata, utc_timestamp

LOGGER = logging.getLogger(__name__)

_EXIF_DATE_FORMAT = "%Y:%m:%d %H:%M:%S"


class MetadataExtractor:
    """Read picture metadata for one file at a time.

    Extractors are context managers so backends holding an external process
    can release it when an indexing run ends.
    """

    def extract(self, path: str) -> ExtractedMetadata:
        """Return the metadata stored in ``path``.

        Raises:
            ExtractionError: If the file cannot be read or parsed.
        """
        raise NotImplementedError

    def close(self) -> None:
        """Release resources held by the backend."""

    def __enter__(self) -> "MetadataExtractor":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()


class ExifToolExtractor(MetadataExtractor):
    """Extract metadata through a persistent exiftool process."""

    TAGS = ("DateTimeOriginal", "Make", "Model", "Rating", "Keywords", "Subject")

    def __init__(
        self,
        executable: Optional[str] = None,
        *,
        helper: Optional[ExifToolHelper] = None,
    ) -> None:
        """Initialize the extractor.

        The exiftool process is started on the first extraction, so runs that
        skip every file never need the binary.

        Args:
            executable: Path to the exiftool binary; looked up on PATH by default.
            helper: Pre-built PyExifTool helper to use instead of starting one.
        """
        self._executable = executable
        self._helper = helper

    def extract(self, path: str) -> ExtractedMetadata:
        helper = self._running_helper()
        try:
            blocks = helper.get_tags([path], tags=list(self.TAGS))
        except ExifToolException as exc:
            raise ExtractionError(str(exc)) from exc

        if not blocks:
            raise ExtractionError(f"cannot extract EXIF data from {path}")
        block = blocks[0]
        error = _grouped(block, "Error")
        if error:
            raise ExtractionError(str(error))

        return ExtractedMetadata(
            date_time_original=_epoch(_grouped(block, "DateTimeOriginal")),
            make=_text(_grouped(block, "Make")),
            model=_text(_grouped(block, "Model")),
            rating=_integer(_grouped(block, "Rating")),
            keywords=_keywords(_grouped(block, "Keywords"), _grouped(block, "Subject")),
        )

    def close(self) -> None:
        if self._helper is not None and self._helper.running:
            self._helper.terminate()

    def _running_helper(self) -> ExifToolHelper:
        try:
            if self._helper is None:
                # ``-d %s`` renders dates as epoch seconds in exiftool's local time.
                kwargs: dict[str, Any] = {"common_args": ["-G", "-d", "%s"]}
                if self._executable:
                    kwargs["executable"] = self._executable
                self._helper = ExifToolHelper(**kwargs)
            if not self._helper.running:
                self._helper.run()
        except (OSError, ExifToolException) as exc:
            raise IngestionError(f"Cannot start exiftool: {exc}") from exc
        return self._helper


class PillowExtractor(MetadataExtractor):
    """Extract metadata from the EXIF block using Pillow."""

    def extract(self, path: str) -> ExtractedMetadata:
        try:
            with Image.open(Path(path)) as img:
                exif = img.getexif()
                details = exif.get_ifd(ExifTags.IFD.Exif)
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            raise ExtractionError(str(exc)) from exc

        captured = details.get(ExifTags.Base.DateTimeOriginal)
        return ExtractedMetadata(
            date_time_original=_exif_date(captured),
            make=_text(exif.get(ExifTags.Base.Make)),
            model=_text(exif.get(ExifTags.Base.Model)),
            rating=_integer(exif.get(ExifTags.Base.Rating)),
            keywords=_keywords(_xp_text(exif.get(ExifTags.Base.XPKeywords))),
        )


def build_extractor(backend: str) -> MetadataExtractor:
    """Return the extractor configured by ``index.extractor``."""
    if backend == "exiftool":
        return ExifToolExtractor()
    if backend == "pillow":
        return PillowExtractor()
    raise ValueError(f"Unknown metadata extractor '{backend}'.")


def _grouped(block: Mapping[str, Any], name: str) -> Any:
    """Return the first ``Group:Name`` value in an exiftool ``-G`` result."""
    for key, value in block.items():
        if key.rsplit(":", 1)[-1] == name:
            return value
    return None


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip().strip("\x00")
    return text or None


def _integer(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        LOGGER.debug("Ignoring non-numeric rating %r", value)
        return None


def _epoch(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return utc_timestamp(int(value))
    except (TypeError, ValueError, OverflowError, OSError):
        LOGGER.debug("Ignoring unparsable capture time %r", value)
        return None


def _exif_date(value: Any) -> Optional[datetime]:
    text = _text(value)
    if text is None:
        return None
    try:
        local = datetime.strptime(text[:19], _EXIF_DATE_FORMAT)
    except ValueError:
        LOGGER.debug("Ignoring unparsable capture time %r", value)
        return None
    return utc_timestamp(time.mktime(local.timetuple()))


def _xp_text(value: Any) -> Optional[str]:
    """Decode the UTF-16LE payload Windows stores in ``XP*`` tags."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, tuple):
        value = bytes(value)
    return bytes(value).decode("utf-16-le", errors="ignore").rstrip("\x00")


def _keywords(*values: Any) -> list[str]:
    keywords: list[str] = []
    for value in values:
        if value is None:
            continue
        items: Iterable[Any]
        if isinstance(value, (list, tuple)):
            items = value
        else:
            items = str(value).split(";")
        keywords.extend(str(item).strip() for item in items if str(item).strip())
    return list(dict.fromkeys(keywords))


__all__ = [
    "MetadataExtractor",
    "ExifToolExtractor",
    "PillowExtractor",
    "build_extractor",
]
