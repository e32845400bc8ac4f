"""Picture discovery utilities."""

from __future__ import annotations

import os
from typing import Iterable

from .errors import ScanError

DEFAULT_EXTENSIONS = (".heic", ".jpg")


def normalize_path(path: str | os.PathLike[str]) -> str:
    """Return the index key for ``path``: user-expanded and absolute, symlinks kept."""
    return os.path.abspath(os.path.expanduser(os.fspath(path)))


class DirectoryScanner:
    """Collect picture files beneath a root by extension allow-list."""

    def __init__(
        self,
        *,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
        follow_symlinks: bool = False,
    ) -> None:
        self.extensions = frozenset(ext.lower() for ext in extensions)
        self.follow_symlinks = follow_symlinks

    def matches(self, path: str) -> bool:
        return os.path.splitext(path)[1].lower() in self.extensions

    def scan(self, root: str) -> set[str]:
        """Return the normalized paths of every matching file under ``root``.

        Args:
            root: Directory (or single file) to enumerate.

        Returns:
            set[str]: Candidate picture paths.

        Raises:
            ScanError: If ``root`` is missing or part of the tree cannot be read.
        """
        root = normalize_path(root)
        if os.path.isfile(root):
            return {root} if self.matches(root) else set()
        if not os.path.isdir(root):
            raise ScanError(f"{root}: no such directory")

        def _fail(exc: OSError) -> None:
            raise ScanError(f"{exc.filename or root}: {exc.strerror or exc}") from exc

        found: set[str] = set()
        for directory, _subdirs, files in os.walk(
            root, onerror=_fail, followlinks=self.follow_symlinks
        ):
            for name in files:
                if self.matches(name):
                    found.add(os.path.join(directory, name))
        return found


__all__ = ["DEFAULT_EXTENSIONS", "DirectoryScanner", "normalize_path"]
