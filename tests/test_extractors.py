"""Tests for metadata extraction backends."""

from __future__ import annotations

import time
from datetime import datetime
from pathlib import Path
from typing import Any

import pytest
from exiftool.exceptions import ExifToolException
from PIL import ExifTags, Image

from picturedb.ingestion import (
    ExifToolExtractor,
    ExtractionError,
    PillowExtractor,
    build_extractor,
)
from picturedb.ingestion.models import utc_timestamp


def _jpeg_with_exif(path: Path) -> Path:
    exif = Image.Exif()
    exif[ExifTags.Base.Make] = "Canon"
    exif[ExifTags.Base.Model] = "EOS R6"
    exif[ExifTags.Base.Rating] = 4
    exif[ExifTags.Base.XPKeywords] = "beach;sunset;beach".encode("utf-16-le") + b"\x00\x00"
    exif[ExifTags.IFD.Exif] = {ExifTags.Base.DateTimeOriginal: "2023:08:14 18:05:00"}
    Image.new("RGB", (8, 8), color="blue").save(path, "JPEG", exif=exif)
    return path


class _FakeHelper:
    def __init__(self, blocks: Any = None, error: Exception | None = None) -> None:
        self.running = True
        self.blocks = blocks if blocks is not None else []
        self.error = error
        self.requests: list[tuple[list[str], list[str]]] = []
        self.terminated = False

    def get_tags(self, files: list[str], tags: list[str]) -> Any:
        self.requests.append((files, tags))
        if self.error is not None:
            raise self.error
        return self.blocks

    def terminate(self) -> None:
        self.running = False
        self.terminated = True


def test_pillow_extractor_reads_exif_fields(tmp_path: Path) -> None:
    picture = _jpeg_with_exif(tmp_path / "shot.jpg")

    metadata = PillowExtractor().extract(str(picture))

    assert metadata.make == "Canon"
    assert metadata.model == "EOS R6"
    assert metadata.rating == 4
    assert metadata.keywords == ["beach", "sunset"]


def test_pillow_extractor_converts_capture_time_to_utc(tmp_path: Path) -> None:
    picture = _jpeg_with_exif(tmp_path / "shot.jpg")

    metadata = PillowExtractor().extract(str(picture))

    local = datetime(2023, 8, 14, 18, 5, 0)
    assert metadata.date_time_original == utc_timestamp(time.mktime(local.timetuple()))


def test_pillow_extractor_handles_missing_exif(tmp_path: Path) -> None:
    picture = tmp_path / "plain.jpg"
    Image.new("RGB", (4, 4)).save(picture, "JPEG")

    metadata = PillowExtractor().extract(str(picture))

    assert metadata.make is None
    assert metadata.date_time_original is None
    assert metadata.keywords == []


def test_pillow_extractor_rejects_non_images(tmp_path: Path) -> None:
    bogus = tmp_path / "bogus.jpg"
    bogus.write_text("not a picture", encoding="utf-8")

    with pytest.raises(ExtractionError):
        PillowExtractor().extract(str(bogus))


def test_exiftool_extractor_maps_grouped_tags() -> None:
    helper = _FakeHelper(
        blocks=[
            {
                "SourceFile": "/photos/a.heic",
                "EXIF:DateTimeOriginal": 1700000000,
                "EXIF:Make": "Apple",
                "EXIF:Model": "iPhone 15",
                "XMP:Rating": 3,
                "IPTC:Keywords": ["family", "holiday"],
                "XMP:Subject": ["holiday", "snow"],
            }
        ]
    )
    extractor = ExifToolExtractor(helper=helper)

    metadata = extractor.extract("/photos/a.heic")

    assert helper.requests[0][0] == ["/photos/a.heic"]
    assert metadata.make == "Apple"
    assert metadata.model == "iPhone 15"
    assert metadata.rating == 3
    assert metadata.date_time_original == utc_timestamp(1700000000)
    assert metadata.keywords == ["family", "holiday", "snow"]


def test_exiftool_extractor_accepts_single_keyword_string() -> None:
    helper = _FakeHelper(blocks=[{"SourceFile": "a.jpg", "IPTC:Keywords": "solo"}])

    metadata = ExifToolExtractor(helper=helper).extract("a.jpg")

    assert metadata.keywords == ["solo"]
    assert metadata.rating is None


def test_exiftool_extractor_reports_file_errors() -> None:
    helper = _FakeHelper(blocks=[{"SourceFile": "a.jpg", "ExifTool:Error": "File format error"}])

    with pytest.raises(ExtractionError, match="File format error"):
        ExifToolExtractor(helper=helper).extract("a.jpg")


def test_exiftool_extractor_wraps_execution_errors() -> None:
    helper = _FakeHelper(error=ExifToolException("boom"))

    with pytest.raises(ExtractionError):
        ExifToolExtractor(helper=helper).extract("a.jpg")


def test_exiftool_extractor_close_terminates_helper() -> None:
    helper = _FakeHelper()

    with ExifToolExtractor(helper=helper):
        pass

    assert helper.terminated is True


def test_build_extractor_selects_backend() -> None:
    assert isinstance(build_extractor("pillow"), PillowExtractor)
    assert isinstance(build_extractor("exiftool"), ExifToolExtractor)
    with pytest.raises(ValueError):
        build_extractor("magic")
