"""Registry of DM object types and how to list and drop them.

Each object type is a small record: the name it has in the catalog and in
DROP statements, the catalog view that lists it, and any extra drop options.
Most types are listed from the unified OBJECTS view filtered by OBJECT_TYPE,
but several have a dedicated view because OBJECTS does not reliably report
them on every engine variant. Those overrides must stay per type.

CLEAN_ORDER drops dependents before the objects they depend on: triggers and
views first, then storage-bearing objects, then routines, and synonyms and
database links last.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from dmops.core.capabilities import CatalogViews
from dmops.core.errors import DropStatementError, SqlExecutionError
from dmops.core.session import SqlSession, quote

logger = logging.getLogger(__name__)

GENERIC_VIEW = "OBJECTS"


@dataclass(frozen=True)
class ObjectType:
    """
    One kind of schema object.

    Attributes:
        name: Name used in the catalog (OBJECT_TYPE) and in DROP statements.
        catalog_view: Base name of the catalog view listing this type.
        name_column: Column holding the object name in `catalog_view`.
        owner_column: Column holding the owner in `catalog_view`.
        drop_options: Extra clause appended to the DROP statement.
        qualified_drop: Whether the DROP statement names the schema.
    """

    name: str
    catalog_view: str = GENERIC_VIEW
    name_column: str = "OBJECT_NAME"
    owner_column: str = "OWNER"
    drop_options: str = ""
    qualified_drop: bool = True

    @property
    def is_generic(self) -> bool:
        return self.catalog_view == GENERIC_VIEW

    def __str__(self) -> str:
        return self.name

    def list_query(self, views: CatalogViews) -> str:
        """Return the name-listing query for this type in the given scope."""
        if self.is_generic:
            return (
                f"SELECT DISTINCT {self.name_column} FROM {views[GENERIC_VIEW]}"
                f" WHERE {self.owner_column} = :owner AND OBJECT_TYPE = :object_type"
            )
        return (
            f"SELECT {self.name_column} FROM {views[self.catalog_view]}"
            f" WHERE {self.owner_column} = :owner"
        )

    def list_names(
        self, session: SqlSession, views: CatalogViews, schema_name: str
    ) -> list[str]:
        """Return the names of all objects of this type owned by `schema_name`."""
        params = {"owner": schema_name}
        if self.is_generic:
            params["object_type"] = self.name
        return list(session.query_for_string_list(self.list_query(views), params))

    def drop_statement(self, schema_name: str, object_name: str) -> str:
        """Render the DROP statement for one object of this type."""
        target = quote(schema_name, object_name) if self.qualified_drop else object_name
        statement = f"DROP {self.name} {target}"
        if self.drop_options:
            statement = f"{statement} {self.drop_options}"
        return statement

    def drop_all(
        self,
        session: SqlSession,
        views: CatalogViews,
        schema_name: str,
        *,
        dry_run: bool = False,
    ) -> list[str]:
        """
        Drop every object of this type owned by `schema_name`.

        Names are re-listed here rather than taken from the inventory so that
        objects removed as a side effect of earlier drops are not retried.
        The first failing statement raises DropStatementError.

        Returns:
            The statements executed (or, with dry_run, the ones that would be).
        """
        statements: list[str] = []
        for object_name in self.list_names(session, views, schema_name):
            statement = self.drop_statement(schema_name, object_name)
            statements.append(statement)
            if dry_run:
                continue
            logger.debug("Executing: %s", statement)
            try:
                session.execute(statement)
            except SqlExecutionError as exc:
                raise DropStatementError(statement, exc) from exc
        return statements


TABLE = ObjectType(
    "TABLE", catalog_view="TABLES", name_column="TABLE_NAME", drop_options="CASCADE CONSTRAINTS"
)
INDEX = ObjectType("INDEX", catalog_view="INDEXES", name_column="INDEX_NAME")
VIEW = ObjectType(
    "VIEW", catalog_view="VIEWS", name_column="VIEW_NAME", drop_options="CASCADE CONSTRAINTS"
)
SEQUENCE = ObjectType(
    "SEQUENCE",
    catalog_view="SEQUENCES",
    name_column="SEQUENCE_NAME",
    owner_column="SEQUENCE_OWNER",
)
PROCEDURE = ObjectType("PROCEDURE")
FUNCTION = ObjectType("FUNCTION")
PACKAGE = ObjectType("PACKAGE")
PACKAGE_BODY = ObjectType("PACKAGE BODY")
TRIGGER = ObjectType("TRIGGER", catalog_view="TRIGGERS", name_column="TRIGGER_NAME")
SYNONYM = ObjectType("SYNONYM", catalog_view="SYNONYMS", name_column="SYNONYM_NAME")
TYPE = ObjectType("TYPE")
# Links are dropped by bare name; DROP DATABASE LINK takes no schema qualifier.
DATABASE_LINK = ObjectType(
    "DATABASE LINK", catalog_view="DB_LINKS", name_column="DB_LINK", qualified_drop=False
)

OBJECT_TYPES: dict[str, ObjectType] = {
    t.name: t
    for t in (
        TABLE,
        INDEX,
        VIEW,
        SEQUENCE,
        PROCEDURE,
        FUNCTION,
        PACKAGE,
        PACKAGE_BODY,
        TRIGGER,
        SYNONYM,
        TYPE,
        DATABASE_LINK,
    )
}

CLEAN_ORDER: tuple[ObjectType, ...] = (
    TRIGGER,
    VIEW,
    TABLE,
    INDEX,
    SEQUENCE,
    PROCEDURE,
    FUNCTION,
    PACKAGE,
    PACKAGE_BODY,
    TYPE,
    SYNONYM,
    DATABASE_LINK,
)
