"""Schema model for DM databases.

A schema is identified by its case-sensitive name. It is a plain value and
carries no connection state; ownership questions that need the server
(current user) are answered by passing the session user in.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# Schemas created and maintained by the engine itself.
DEFAULT_SYSTEM_SCHEMAS: frozenset[str] = frozenset(
    {"SYS", "SYSAUDITOR", "SYSDBA", "SYSSSO", "CTISYS"}
)


@dataclass(frozen=True)
class Schema:
    """A named schema together with the deny-list it is checked against."""

    name: str
    system_schemas: frozenset[str] = field(default=DEFAULT_SYSTEM_SCHEMAS)

    @property
    def is_system_owned(self) -> bool:
        """True if the schema is maintained by the engine."""
        return self.name in self.system_schemas

    def is_default_for(self, user: str) -> bool:
        """True if this is the default schema of the given session user."""
        return self.name == user

    def __str__(self) -> str:
        return f'"{self.name}"'
