from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Sequence

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from dmops.core.errors import ConfigurationError, SqlExecutionError
from dmops.core.session import Params


class SqlAlchemySession:
    """Adapter exposing a SQLAlchemy Connection as a SqlSession."""

    def __init__(self, connection: Connection) -> None:
        self.connection = connection

    def _run(self, sql: str, params: Params):
        if not params:
            # Quoted identifiers and literals may contain ":name" sequences.
            sql = sql.replace(":", "\\:")
        try:
            return self.connection.execute(text(sql), dict(params or {}))
        except SQLAlchemyError as exc:
            raise SqlExecutionError(str(exc)) from exc

    def query_for_rows(self, sql: str, params: Params = None) -> list[Sequence[Any]]:
        """Run a query and return all rows (no cursor is left open)."""
        return [tuple(row) for row in self._run(sql, params).fetchall()]

    def query_for_string(self, sql: str, params: Params = None) -> str | None:
        """Return the first column of the first row as a string."""
        value = self._run(sql, params).scalar()
        return None if value is None else str(value)

    def query_for_string_list(self, sql: str, params: Params = None) -> list[str]:
        """Return the first column of every row as strings."""
        return [str(v) for v in self._run(sql, params).scalars().all() if v is not None]

    def query_for_boolean(self, sql: str, params: Params = None) -> bool:
        """Return the first column of the first row as a boolean (1/0 aware)."""
        value = self._run(sql, params).scalar()
        if isinstance(value, str):
            return value.strip() not in {"", "0"}
        return bool(value)

    def execute(self, sql: str, params: Params = None) -> None:
        """Execute a statement; DDL auto-commits on DM."""
        self._run(sql, params)

    def commit(self) -> None:
        """Commit the connection's current transaction."""
        try:
            self.connection.commit()
        except SQLAlchemyError as exc:
            raise SqlExecutionError(str(exc)) from exc


def build_engine(url: str | None) -> Engine:
    """Create a SQLAlchemy engine for the given database URL."""
    if not url:
        raise ConfigurationError(
            "No database URL configured. Pass --url or set DMOPS_URL."
        )
    try:
        return create_engine(url)
    except (SQLAlchemyError, ImportError) as exc:
        raise ConfigurationError(f"Cannot create engine for URL: {exc}") from exc


@contextmanager
def open_session(engine: Engine) -> Iterator[SqlAlchemySession]:
    """Open one connection and yield it wrapped as a SqlSession."""
    try:
        connection = engine.connect()
    except SQLAlchemyError as exc:
        raise SqlExecutionError(f"Cannot connect: {exc}") from exc
    try:
        yield SqlAlchemySession(connection)
        connection.commit()
    finally:
        connection.close()
