"""Clean orchestration: empty a schema by dropping every object in it.

The clean pass is linear:

  1. refuse system-owned schemas,
  2. return immediately if the inventory shows nothing to clean,
  3. run the optional, capability-gated pre-passes,
  4. drop each present object type in CLEAN_ORDER,
  5. optionally purge the recycle bin.

Any statement failure aborts the whole operation. Nothing is rolled back:
DDL on DM is not transactional. Pre-passes that cannot run with the current
privileges log an UnsupportedOperationWarning and the clean continues.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from dmops.core.capabilities import (
    SELECT_ANY_DICTIONARY,
    CapabilityProber,
    CatalogViews,
)
from dmops.core.config import Settings, get_settings
from dmops.core.convergence import wait_until_converged
from dmops.core.errors import (
    DropStatementError,
    ProtectedSchemaError,
    SqlExecutionError,
    UnsupportedOperationWarning,
)
from dmops.core.inventory import NON_CLEANABLE_TYPES, present_object_kinds
from dmops.core.object_types import CLEAN_ORDER, TABLE
from dmops.core.schema import Schema
from dmops.core.session import SqlSession, quote

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CleanResult:
    """Outcome of a clean operation."""

    schema: str
    dry_run: bool = False
    present_types: frozenset[str] = frozenset()
    drop_counts: tuple[tuple[str, int], ...] = ()
    statements: tuple[str, ...] = ()
    warnings: tuple[UnsupportedOperationWarning, ...] = ()

    @property
    def cleaned_types(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.drop_counts)

    @property
    def was_empty(self) -> bool:
        return not (self.present_types - NON_CLEANABLE_TYPES)


@dataclass
class _CleanRun:
    """Mutable state of one clean invocation."""

    session: SqlSession
    prober: CapabilityProber
    schema: Schema
    settings: Settings
    dry_run: bool
    cancel: threading.Event | None
    statements: list[str] = field(default_factory=list)
    warnings: list[UnsupportedOperationWarning] = field(default_factory=list)
    _user: str | None = None

    @property
    def user(self) -> str:
        if self._user is None:
            self._user = self.prober.current_user()
        return self._user

    def warn(self, message: str) -> None:
        logger.warning("%s", message)
        self.warnings.append(UnsupportedOperationWarning(message))

    def execute(self, statement: str) -> None:
        self.statements.append(statement)
        if self.dry_run:
            return
        logger.debug("Executing: %s", statement)
        try:
            self.session.execute(statement)
        except SqlExecutionError as exc:
            raise DropStatementError(statement, exc) from exc

    def wait_for(self, query: str, params: dict[str, str], description: str) -> None:
        if self.dry_run:
            return
        wait_until_converged(
            lambda: self.prober.query_returns_rows(query, params),
            description=description,
            interval=self.settings.poll_interval_seconds,
            max_attempts=self.settings.convergence_max_attempts,
            cancel=self.cancel,
        )


def _disable_flashback_archive(run: _CleanRun) -> None:
    """
    Detach every flashback-archived table of the schema.

    Detaching is asynchronous on the server: dropping a table whose archive
    is still being detached fails, so each table is polled until it leaves
    the archive catalog, then the DDL column maps are polled until they are
    gone.
    """
    schema = run.schema
    if not run.prober.is_flashback_archive_available():
        run.warn(
            f"Unable to disable Flashback Archive for tables in schema {schema}: "
            "option is not available"
        )
        return

    admin_view = run.prober.is_priv_or_role_granted(
        SELECT_ANY_DICTIONARY
    ) or run.prober.is_admin_view_accessible("DBA_FLASHBACK_ARCHIVE_TABLES")
    if not admin_view and not schema.is_default_for(run.user):
        run.warn(
            f"Unable to check and disable Flashback Archive for tables in schema {schema} "
            f'by user "{run.user}": DBA_FLASHBACK_ARCHIVE_TABLES is not accessible'
        )
        return

    tracked = (
        f"SELECT TABLE_NAME FROM {'DBA_' if admin_view else 'USER_'}FLASHBACK_ARCHIVE_TABLES"
        " WHERE OWNER_NAME = :owner"
    )
    for table_name in run.session.query_for_string_list(tracked, {"owner": schema.name}):
        run.execute(f"ALTER TABLE {quote(schema.name, table_name)} NO FLASHBACK ARCHIVE")
        run.wait_for(
            tracked + " AND TABLE_NAME = :table_name",
            {"owner": schema.name, "table_name": table_name},
            f"Flashback cleanup on table {quote(schema.name, table_name)}",
        )

    run.wait_for(
        "SELECT TABLE_NAME FROM ALL_TABLES WHERE OWNER = :owner"
        " AND TABLE_NAME LIKE 'SYS_FBA_DDL_COLMAP_%'",
        {"owner": schema.name},
        "Flashback colmap cleanup",
    )


def _clean_locator_metadata(run: _CleanRun) -> None:
    """Delete spatial locator metadata; only possible for the user's own schema."""
    schema = run.schema
    if not run.prober.is_locator_available():
        run.warn(f"Unable to clean locator metadata for schema {schema}: not available")
        return

    if not run.prober.query_returns_rows(
        "SELECT * FROM ALL_SDO_GEOM_METADATA WHERE OWNER = :owner", {"owner": schema.name}
    ):
        return

    if not schema.is_default_for(run.user):
        run.warn(
            f"Unable to clean locator metadata for schema {schema} "
            f'by user "{run.user}": unsupported operation'
        )
        return

    if not run.dry_run:
        run.session.commit()
    run.execute("DELETE FROM USER_SDO_GEOM_METADATA")
    if not run.dry_run:
        run.session.commit()


def _purge_recyclebin(run: _CleanRun) -> None:
    if not run.schema.is_default_for(run.user):
        run.warn(
            f"Unable to purge recycle bin for schema {run.schema} "
            f'by user "{run.user}": unsupported operation'
        )
        return
    run.execute("PURGE RECYCLEBIN")


def clean_schema(
    session: SqlSession,
    schema_name: str,
    *,
    settings: Settings | None = None,
    dry_run: bool = False,
    cancel: threading.Event | None = None,
) -> CleanResult:
    """
    Drop every object in `schema_name`, leaving the schema itself in place.

    Args:
        session: Session used for every query and statement.
        schema_name: Case-sensitive schema name.
        settings: Runtime settings; read from the environment if omitted.
        dry_run: List and render statements without executing them.
        cancel: Event that interrupts convergence waits when set.

    Returns:
        A CleanResult describing what was (or would be) dropped.

    Raises:
        ProtectedSchemaError: The schema is engine-maintained.
        CapabilityProbeError: An introspection query failed.
        DropStatementError: A teardown statement failed.
        ConvergenceWaitInterrupted: A convergence wait was cancelled.
        ConvergenceTimeoutError: A convergence wait exceeded its ceiling.
    """
    settings = settings or get_settings()
    schema = Schema(schema_name, settings.system_schema_names)
    if schema.is_system_owned:
        raise ProtectedSchemaError(schema.name)

    prober = CapabilityProber(session)
    views = CatalogViews.resolve(prober)
    present = present_object_kinds(session, views, schema.name)
    if not (present - NON_CLEANABLE_TYPES):
        logger.info("Schema %s is already empty", schema)
        return CleanResult(schema=schema.name, dry_run=dry_run, present_types=present)

    run = _CleanRun(
        session=session,
        prober=prober,
        schema=schema,
        settings=settings,
        dry_run=dry_run,
        cancel=cancel,
    )

    if settings.flashback_cleanup:
        _disable_flashback_archive(run)
    if settings.locator_cleanup:
        _clean_locator_metadata(run)

    drop_counts: list[tuple[str, int]] = []
    for object_type in CLEAN_ORDER:
        if object_type.name not in present:
            continue
        logger.debug("Cleaning objects of type %s ...", object_type)
        dropped = object_type.drop_all(session, views, schema.name, dry_run=dry_run)
        run.statements.extend(dropped)
        drop_counts.append((object_type.name, len(dropped)))

    if settings.purge_recyclebin:
        _purge_recyclebin(run)

    logger.info(
        "Cleaned schema %s: %d statement(s)%s",
        schema,
        len(run.statements),
        " (dry-run)" if dry_run else "",
    )
    return CleanResult(
        schema=schema.name,
        dry_run=dry_run,
        present_types=present,
        drop_counts=tuple(drop_counts),
        statements=tuple(run.statements),
        warnings=tuple(run.warnings),
    )


def list_tables(session: SqlSession, schema_name: str) -> list[str]:
    """Return the names of all tables in `schema_name`."""
    views = CatalogViews.resolve(CapabilityProber(session))
    return TABLE.list_names(session, views, schema_name)
