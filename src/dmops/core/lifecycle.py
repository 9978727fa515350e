"""Creating, dropping and checking whole schemas.

On DM a schema is owned by a user of the same name, so creating a schema
means creating that user. The user's password always comes from settings.
"""

from __future__ import annotations

import logging

from dmops.core.capabilities import CapabilityProber, CatalogViews
from dmops.core.config import Settings
from dmops.core.errors import (
    ConfigurationError,
    DropStatementError,
    ProtectedSchemaError,
    SqlExecutionError,
    UnsupportedEngineError,
)
from dmops.core.inventory import has_any_cleanable_objects
from dmops.core.schema import Schema
from dmops.core.session import SqlSession, quote

logger = logging.getLogger(__name__)


def ensure_supported(prober: CapabilityProber, minimum: str = "8.0") -> None:
    """Raise UnsupportedEngineError if the engine is older than `minimum`."""
    if not prober.engine_version_at_least(minimum):
        version = ".".join(str(p) for p in prober.engine_version())
        raise UnsupportedEngineError(
            f"DM {version} is not supported; {minimum} or newer is required."
        )


def schema_exists(session: SqlSession, schema_name: str) -> bool:
    """True if a user (and therefore schema) named `schema_name` exists."""
    return CapabilityProber(session).query_returns_rows(
        "SELECT * FROM ALL_USERS WHERE USERNAME = :name", {"name": schema_name}
    )


def schema_is_empty(session: SqlSession, schema_name: str) -> bool:
    """True if the schema holds nothing but (at most) database links."""
    views = CatalogViews.resolve(CapabilityProber(session))
    return not has_any_cleanable_objects(session, views, schema_name)


def create_schema(session: SqlSession, schema_name: str, settings: Settings) -> list[str]:
    """
    Create a schema owner with the configured password and basic grants.

    Returns the statements executed, with the password masked.
    """
    if settings.schema_password is None:
        raise ConfigurationError(
            "DMOPS_SCHEMA_PASSWORD must be set to create schemas."
        )
    password = settings.schema_password.get_secret_value()
    user = quote(schema_name)

    masked = f'CREATE USER {user} IDENTIFIED BY "********"'
    try:
        session.execute(f"CREATE USER {user} IDENTIFIED BY {quote(password)}")
    except SqlExecutionError:
        # The driver error echoes the statement, password included.
        raise SqlExecutionError(f"Failed to execute `{masked}`") from None

    executed = [masked]
    for statement in (
        f"GRANT RESOURCE TO {user}",
        f"GRANT UNLIMITED TABLESPACE TO {user}",
    ):
        session.execute(statement)
        executed.append(statement)
    logger.info("Created schema %s", user)
    return executed


def drop_schema(session: SqlSession, schema_name: str, settings: Settings) -> str:
    """Drop a schema together with everything it owns."""
    schema = Schema(schema_name, settings.system_schema_names)
    if schema.is_system_owned:
        raise ProtectedSchemaError(schema.name)
    statement = f"DROP USER {quote(schema.name)} CASCADE"
    try:
        session.execute(statement)
    except SqlExecutionError as exc:
        raise DropStatementError(statement, exc) from exc
    logger.info("Dropped schema %s", schema)
    return statement
