"""picture-db: index picture metadata into SQLite and sync PhotoPrism albums.

Sub-packages:

* ``picturedb.ingestion`` scans directory trees and extracts EXIF/XMP metadata.
* ``picturedb.store`` keeps the SQLite index of pictures and tags.
* ``picturedb.sync`` turns SQL query rows into PhotoPrism album membership.
* ``picturedb.config`` loads layered settings from ``~/.picture-db/config.yaml``.

The ``picture-db`` console script is ``picturedb.cli:main``.
"""

from importlib import metadata as _metadata

DISTRIBUTION = "picture-db"

__all__ = ["DISTRIBUTION", "__version__"]


def __getattr__(name: str) -> str:
    if name == "__version__":
        try:
            return _metadata.version(DISTRIBUTION)
        except _metadata.PackageNotFoundError:
            return "0+unknown"
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
