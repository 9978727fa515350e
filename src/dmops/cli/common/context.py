"""Application context management for the CLI."""

from dataclasses import dataclass

from pydantic import ValidationError
from sqlalchemy.engine import Engine

from dmops.cli.common.exits import die
from dmops.core.adapters.sqlsession import build_engine
from dmops.core.config import Settings, get_settings
from dmops.core.errors import ConfigurationError


@dataclass
class SchemaAppContext:
    """Application context holding settings and the database engine."""

    settings: Settings
    engine: Engine


def build_schema_context(url: str | None) -> SchemaAppContext:
    """Build the context for schema commands.

    Args:
        url: Optional database URL overriding DMOPS_URL.

    Returns:
        SchemaAppContext: Settings plus an engine for the target database.
    """
    overrides = {"url": url} if url else {}
    try:
        settings = get_settings(**overrides)
        engine = build_engine(settings.url)
    except (ConfigurationError, ValidationError) as exc:
        die(str(exc))
    return SchemaAppContext(settings=settings, engine=engine)
