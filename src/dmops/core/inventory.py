"""Inventory probe: which object types exist in a schema.

A single UNION query reports the distinct OBJECT_TYPE values of the unified
OBJECTS view plus one EXISTS check per dedicated catalog view. The result is
only a pre-filter for the clean pass, which re-lists names per type.
"""

from __future__ import annotations

from dmops.core.capabilities import CatalogViews
from dmops.core.object_types import DATABASE_LINK, OBJECT_TYPES
from dmops.core.session import SqlSession

# Routines are also checked through PROCEDURES, which reports them when
# OBJECTS lags behind.
_ROUTINE_CHECKS: tuple[tuple[str, str], ...] = (
    ("PROCEDURE", ""),
    ("FUNCTION", " AND OBJECT_TYPE = 'FUNCTION'"),
    ("PACKAGE", " AND OBJECT_TYPE = 'PACKAGE'"),
)

# Types never counted when deciding whether a schema has anything to clean.
NON_CLEANABLE_TYPES: frozenset[str] = frozenset({DATABASE_LINK.name})


def inventory_query(views: CatalogViews) -> str:
    """Build the combined existence query for the given view scope."""
    parts = [f"SELECT DISTINCT OBJECT_TYPE FROM {views['OBJECTS']} WHERE OWNER = :owner"]
    for object_type in OBJECT_TYPES.values():
        if object_type.is_generic:
            continue
        parts.append(
            f"SELECT '{object_type.name}' FROM DUAL WHERE EXISTS("
            f"SELECT * FROM {views[object_type.catalog_view]}"
            f" WHERE {object_type.owner_column} = :owner)"
        )
    for name, condition in _ROUTINE_CHECKS:
        parts.append(
            f"SELECT '{name}' FROM DUAL WHERE EXISTS("
            f"SELECT * FROM {views['PROCEDURES']} WHERE OWNER = :owner{condition})"
        )
    return " UNION ".join(parts)


def present_object_kinds(
    session: SqlSession, views: CatalogViews, schema_name: str
) -> frozenset[str]:
    """Return the set of object type names present in `schema_name`."""
    return frozenset(
        session.query_for_string_list(inventory_query(views), {"owner": schema_name})
    )


def has_any_cleanable_objects(
    session: SqlSession, views: CatalogViews, schema_name: str
) -> bool:
    """True if the schema holds any object type other than database links."""
    return bool(present_object_kinds(session, views, schema_name) - NON_CLEANABLE_TYPES)
