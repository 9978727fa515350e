import pytest

from dmops.core.capabilities import SELECT_ANY_DICTIONARY
from dmops.core.clean import clean_schema, list_tables
from dmops.core.config import Settings
from dmops.core.errors import DropStatementError, ProtectedSchemaError
from dmops.core.schema import DEFAULT_SYSTEM_SCHEMAS
from helpers.fakes import FakeCatalogSession


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, poll_interval_seconds=0.01, **overrides)


@pytest.mark.parametrize("schema", sorted(DEFAULT_SYSTEM_SCHEMAS))
def test_system_schemas_are_refused_without_any_statement(schema):
    session = FakeCatalogSession({"TABLE": ["T"]})

    with pytest.raises(ProtectedSchemaError, match=schema):
        clean_schema(session, schema, settings=_settings())

    assert session.executed == []
    assert session.queries == []


def test_extra_deny_list_entries_come_from_settings():
    session = FakeCatalogSession({"TABLE": ["T"]})

    with pytest.raises(ProtectedSchemaError):
        clean_schema(session, "AUDIT", settings=_settings(extra_system_schemas="AUDIT"))


@pytest.mark.parametrize("extra", ["AUDIT", "", " , "])
def test_extra_deny_list_never_unprotects_engine_schemas(extra):
    session = FakeCatalogSession({"TABLE": ["T"]})

    for schema in ("SYS", "SYSDBA"):
        with pytest.raises(ProtectedSchemaError, match=schema):
            clean_schema(session, schema, settings=_settings(extra_system_schemas=extra))

    assert session.executed == []
    assert session.queries == []


def test_schema_names_are_case_sensitive():
    session = FakeCatalogSession({"TABLE": ["T"]})

    result = clean_schema(session, "sys", settings=_settings())

    assert result.statements == ('DROP TABLE "sys"."T" CASCADE CONSTRAINTS',)


def test_empty_schema_issues_no_statements():
    session = FakeCatalogSession()

    result = clean_schema(session, "APP", settings=_settings())

    assert result.was_empty
    assert result.statements == ()
    assert session.executed == []


def test_schema_with_only_database_links_counts_as_empty():
    session = FakeCatalogSession({"DATABASE LINK": ["REMOTE"]})

    result = clean_schema(session, "APP", settings=_settings())

    assert result.was_empty
    assert session.executed == []
    assert session.objects["DATABASE LINK"] == ["REMOTE"]


def test_view_is_dropped_before_the_table_it_references():
    session = FakeCatalogSession({"TABLE": ["ORDERS"], "VIEW": ["ORDERS_V"]})

    clean_schema(session, "APP", settings=_settings())

    assert session.executed == [
        'DROP VIEW "APP"."ORDERS_V" CASCADE CONSTRAINTS',
        'DROP TABLE "APP"."ORDERS" CASCADE CONSTRAINTS',
    ]


def test_every_present_type_is_dropped_in_dependency_order():
    session = FakeCatalogSession(
        {
            "DATABASE LINK": ["REMOTE"],
            "SYNONYM": ["S"],
            "TYPE": ["TY"],
            "PACKAGE BODY": ["PKG"],
            "PACKAGE": ["PKG"],
            "FUNCTION": ["F"],
            "PROCEDURE": ["P"],
            "SEQUENCE": ["SEQ"],
            "INDEX": ["IDX"],
            "TABLE": ["T"],
            "VIEW": ["V"],
            "TRIGGER": ["TRG"],
        }
    )

    result = clean_schema(session, "APP", settings=_settings())

    assert session.executed == [
        'DROP TRIGGER "APP"."TRG"',
        'DROP VIEW "APP"."V" CASCADE CONSTRAINTS',
        'DROP TABLE "APP"."T" CASCADE CONSTRAINTS',
        'DROP INDEX "APP"."IDX"',
        'DROP SEQUENCE "APP"."SEQ"',
        'DROP PROCEDURE "APP"."P"',
        'DROP FUNCTION "APP"."F"',
        'DROP PACKAGE "APP"."PKG"',
        'DROP PACKAGE BODY "APP"."PKG"',
        'DROP TYPE "APP"."TY"',
        'DROP SYNONYM "APP"."S"',
        "DROP DATABASE LINK REMOTE",
    ]
    assert result.statements == tuple(session.executed)
    assert dict(result.drop_counts)["TABLE"] == 1
    assert all(not names for names in session.objects.values())


def test_drop_failure_aborts_remaining_types():
    session = FakeCatalogSession(
        {"VIEW": ["V"], "TABLE": ["T"], "SEQUENCE": ["SEQ"]}, fail_on='"APP"."T"'
    )

    with pytest.raises(DropStatementError):
        clean_schema(session, "APP", settings=_settings())

    assert session.executed == ['DROP VIEW "APP"."V" CASCADE CONSTRAINTS']
    assert session.objects["SEQUENCE"] == ["SEQ"]


def test_dry_run_renders_statements_without_executing():
    session = FakeCatalogSession({"TABLE": ["T"], "TRIGGER": ["TRG"]})

    result = clean_schema(session, "APP", settings=_settings(), dry_run=True)

    assert result.dry_run is True
    assert result.statements == (
        'DROP TRIGGER "APP"."TRG"',
        'DROP TABLE "APP"."T" CASCADE CONSTRAINTS',
    )
    assert result.cleaned_types == ("TRIGGER", "TABLE")
    assert session.executed == []


def test_flashback_cleanup_warns_when_option_is_missing():
    session = FakeCatalogSession({"TABLE": ["T"]})

    result = clean_schema(session, "APP", settings=_settings(flashback_cleanup=True))

    assert len(result.warnings) == 1
    assert "Flashback Archive" in str(result.warnings[0])
    assert session.executed == ['DROP TABLE "APP"."T" CASCADE CONSTRAINTS']


class _FlashbackSession(FakeCatalogSession):
    """Reports one archived table whose detach completes on the second check."""

    def __init__(self):
        super().__init__({"TABLE": ["T1"]}, privileges={SELECT_ANY_DICTIONARY})
        self.pending_checks = 1
        self.detach_checks = 0

    def query_for_string_list(self, sql, params=None):
        if "V$OPTION" in sql:
            return ["Flashback Data Archive"]
        if "FLASHBACK_ARCHIVE_TABLES" in sql:
            return ["T1"]
        return super().query_for_string_list(sql, params)

    def query_for_boolean(self, sql, params=None):
        if "FLASHBACK_ARCHIVE_TABLES" in sql:
            self.detach_checks += 1
            if self.pending_checks:
                self.pending_checks -= 1
                return True
            return False
        return super().query_for_boolean(sql, params)


def test_flashback_cleanup_waits_for_detach_before_dropping():
    session = _FlashbackSession()

    result = clean_schema(session, "APP", settings=_settings(flashback_cleanup=True))

    assert session.executed == [
        'ALTER TABLE "APP"."T1" NO FLASHBACK ARCHIVE',
        'DROP TABLE "APP"."T1" CASCADE CONSTRAINTS',
    ]
    assert session.detach_checks == 2
    assert result.warnings == ()


def test_locator_cleanup_is_skipped_for_foreign_schema():
    session = FakeCatalogSession(
        {"TABLE": ["T"]},
        user="ADMIN",
        accessible_views={"ALL_SDO_GEOM_METADATA"},
        exists_when=["ALL_SDO_GEOM_METADATA WHERE OWNER"],
    )

    result = clean_schema(session, "APP", settings=_settings(locator_cleanup=True))

    assert "unsupported operation" in str(result.warnings[0])
    assert "DELETE FROM USER_SDO_GEOM_METADATA" not in session.executed
    assert session.commits == 0


def test_locator_cleanup_commits_around_delete_for_own_schema():
    session = FakeCatalogSession(
        {"TABLE": ["T"]},
        user="APP",
        accessible_views={"ALL_SDO_GEOM_METADATA"},
        exists_when=["ALL_SDO_GEOM_METADATA WHERE OWNER"],
    )

    result = clean_schema(session, "APP", settings=_settings(locator_cleanup=True))

    assert session.executed[0] == "DELETE FROM USER_SDO_GEOM_METADATA"
    assert session.commits == 2
    assert result.warnings == ()


def test_recyclebin_is_purged_last_for_own_schema():
    session = FakeCatalogSession({"TABLE": ["T"]}, user="APP")

    clean_schema(session, "APP", settings=_settings(purge_recyclebin=True))

    assert session.executed[-1] == "PURGE RECYCLEBIN"


def test_recyclebin_purge_warns_for_foreign_schema():
    session = FakeCatalogSession({"TABLE": ["T"]}, user="ADMIN")

    result = clean_schema(session, "APP", settings=_settings(purge_recyclebin=True))

    assert "PURGE RECYCLEBIN" not in session.executed
    assert "recycle bin" in str(result.warnings[0])


def test_list_tables():
    session = FakeCatalogSession({"TABLE": ["A", "B"], "VIEW": ["V"]})

    assert list_tables(session, "APP") == ["A", "B"]
