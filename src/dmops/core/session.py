"""Session interface consumed by the core, plus identifier quoting.

The core never opens connections itself. It talks to a SqlSession, a small
query/execute capability that adapters implement (see
dmops.core.adapters.sqlsession) and tests replace with stubs.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence

Params = Mapping[str, Any] | None


class SqlSession(Protocol):
    """Interface for executing SQL against a single database session."""

    def query_for_rows(self, sql: str, params: Params = None) -> list[Sequence[Any]]:
        """Run a query and return all rows, fully materialized."""
        ...

    def query_for_string(self, sql: str, params: Params = None) -> str | None:
        """Return the first column of the first row, or None."""
        ...

    def query_for_string_list(self, sql: str, params: Params = None) -> list[str]:
        """Return the first column of every row."""
        ...

    def query_for_boolean(self, sql: str, params: Params = None) -> bool:
        """Return the first column of the first row interpreted as a boolean."""
        ...

    def execute(self, sql: str, params: Params = None) -> None:
        """Execute a statement."""
        ...

    def commit(self) -> None:
        """Commit the current transaction."""
        ...


def quote(*identifiers: str) -> str:
    """Quote one or more identifiers and join them with dots."""
    return ".".join('"' + i.replace('"', '""') + '"' for i in identifiers)
