"""SQLite persistence for the picture index."""

from __future__ import annotations

import os
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Iterator

from sqlalchemy import create_engine, delete, event, func, insert, or_, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .errors import StoreError
from .models import Base, Picture, PictureTag

_PRESERVED_ON_UPDATE = {"path", "created_at"}


@dataclass(slots=True)
class QueryResult:
    """Rows produced by a raw SQL statement.

    Attributes:
        columns: Column labels in result order; empty for statements without rows.
        rows: Result rows as tuples.
    """

    columns: list[str] = field(default_factory=list)
    rows: list[tuple[Any, ...]] = field(default_factory=list)


def _configure_connection(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


class IndexStore:
    """Persist picture records and their tags in a SQLite database.

    The schema is created on open. Every write runs in its own transaction so
    a record and its tag set are always replaced together.
    """

    def __init__(self, path: Path | str, *, echo: bool = False) -> None:
        """Open (and create if needed) the database at ``path``.

        Args:
            path: SQLite database file.
            echo: Whether SQLAlchemy logs every emitted statement.

        Raises:
            StoreError: If the database cannot be opened or migrated.
        """
        self._path = Path(path).expanduser()
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._engine: Engine = create_engine(f"sqlite:///{self._path}", echo=echo)
            event.listen(self._engine, "connect", _configure_connection)
            Base.metadata.create_all(self._engine)
        except (OSError, SQLAlchemyError) as exc:
            raise StoreError(f"Cannot open index database {self._path}: {exc}") from exc
        self._sessions = sessionmaker(self._engine, expire_on_commit=False)

    @property
    def path(self) -> Path:
        """Return the database file location."""
        return self._path

    def close(self) -> None:
        """Release pooled connections."""
        self._engine.dispose()

    def __enter__(self) -> "IndexStore":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()

    def get(self, path: str) -> Picture | None:
        """Return the record stored for ``path`` with its tags loaded."""
        with self._transaction() as session:
            return session.get(Picture, path)

    def save(self, picture: Picture, tags: Iterable[str]) -> None:
        """Upsert ``picture`` and replace its tag set with ``tags``.

        Args:
            picture: Record to write; ``created_at`` is kept from an existing row.
            tags: Complete tag set; an empty iterable removes every stored tag.
        """
        values = {column.key: getattr(picture, column.key) for column in Picture.__table__.columns}
        if values.get("created_at") is None:
            values["created_at"] = values["indexed_at"]
        upsert = sqlite_insert(Picture.__table__).values(**values)
        upsert = upsert.on_conflict_do_update(
            index_elements=[Picture.__table__.c.path],
            set_={key: upsert.excluded[key] for key in values if key not in _PRESERVED_ON_UPDATE},
        )
        tag_rows = [{"path": picture.path, "tag": tag} for tag in sorted({t for t in tags if t})]

        with self._transaction() as session:
            session.execute(upsert)
            session.execute(delete(PictureTag).where(PictureTag.path == picture.path))
            if tag_rows:
                session.execute(insert(PictureTag.__table__), tag_rows)

    def delete(self, path: str) -> bool:
        """Delete the record for ``path`` together with its tags.

        Returns:
            bool: True when a record was removed.
        """
        with self._transaction() as session:
            session.execute(delete(PictureTag).where(PictureTag.path == path))
            result = session.execute(delete(Picture).where(Picture.path == path))
            return bool(result.rowcount)

    def paths_under(self, root: str) -> list[str]:
        """Return stored paths equal to ``root`` or located beneath it."""
        prefix = root.rstrip(os.sep) + os.sep
        statement = (
            select(Picture.path)
            .where(or_(Picture.path == root, Picture.path.startswith(prefix, autoescape=True)))
            .order_by(Picture.path)
        )
        with self._transaction() as session:
            candidates = session.scalars(statement)
            # SQLite LIKE ignores ASCII case.
            return [path for path in candidates if path == root or path.startswith(prefix)]

    def tags(self, path: str) -> set[str]:
        """Return the tag set stored for ``path``."""
        with self._transaction() as session:
            return set(session.scalars(select(PictureTag.tag).where(PictureTag.path == path)))

    def count(self) -> int:
        with self._transaction() as session:
            return session.scalar(select(func.count()).select_from(Picture)) or 0

    def execute(self, statement: str) -> QueryResult:
        """Run a raw SQL statement and return its rows.

        The statement is passed to the driver untouched and committed, so
        writes issued through it persist.

        Raises:
            StoreError: If SQLite rejects the statement.
        """
        try:
            with self._engine.begin() as connection:
                result = connection.exec_driver_sql(statement)
                if not result.returns_rows:
                    return QueryResult()
                return QueryResult(
                    columns=list(result.keys()),
                    rows=[tuple(row) for row in result],
                )
        except SQLAlchemyError as exc:
            raise StoreError(f"Query failed: {exc}") from exc

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        try:
            with self._sessions.begin() as session:
                yield session
        except SQLAlchemyError as exc:
            raise StoreError(f"Index database error: {exc}") from exc


__all__ = [
    "IndexStore",
    "QueryResult",
    "Picture",
    "PictureTag",
    "StoreError",
]
