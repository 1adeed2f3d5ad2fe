"""Thin adapter around a SQLAlchemy engine for the relational metadata store."""

from collections.abc import Iterator
from contextlib import contextmanager
import os
from typing import Any

from sqlalchemy import Connection, Engine, create_engine, event

from core.infrastructure.sql.schema import metadata_schema
from core.utils.constants import DEFAULT_DATABASE_URL, ENV_IMAGE_DATABASE_URL


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class SQLAdapter:
    """Low-level SQL operations (mechanical, no error handling).

    This adapter:
    - Owns the SQLAlchemy engine
    - Hands out connections and atomic transactions
    - Does NOT handle errors (lets them bubble up)
    - Domain implementations catch and translate errors
    """

    def __init__(self, url: str | None = None, *, engine: Engine | None = None) -> None:
        """Create the engine from ``url`` or the environment."""
        self.engine: Engine = engine or create_engine(
            url or os.getenv(ENV_IMAGE_DATABASE_URL) or DEFAULT_DATABASE_URL
        )

        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Yield a connection inside one transaction; commit on exit, roll back on error."""
        with self.engine.begin() as conn:
            yield conn

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        """Yield a connection for read-only work."""
        with self.engine.connect() as conn:
            yield conn

    def create_schema(self) -> None:
        """Create tables and indexes that do not exist yet."""
        metadata_schema.create_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()
