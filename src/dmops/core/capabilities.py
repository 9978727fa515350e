"""Capability probing and catalog view resolution.

The prober answers privilege and feature questions about the current
session with read-only queries. Any failure of those queries propagates as
CapabilityProbeError: a probe never guesses "false" on error.

Catalog views come in an administrative variant (DBA_*) that covers every
schema and an owner-scope variant (ALL_*) restricted to objects the session
can see. Resolution picks one scope per operation so that a single inventory
or clean pass never mixes both.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import Iterable

from dmops.core.errors import CapabilityProbeError, SqlExecutionError
from dmops.core.session import Params, SqlSession

logger = logging.getLogger(__name__)

SELECT_ANY_DICTIONARY = "SELECT ANY DICTIONARY"

ADMIN_PREFIX = "DBA_"
OWNER_PREFIX = "ALL_"

# Base names of every catalog view the inventory and clean passes read.
CATALOG_BASE_VIEWS: tuple[str, ...] = (
    "OBJECTS",
    "TABLES",
    "VIEWS",
    "INDEXES",
    "SEQUENCES",
    "PROCEDURES",
    "TRIGGERS",
    "SYNONYMS",
    "DB_LINKS",
)

_BANNER_VERSION_RE = re.compile(r"V(\d+(?:\.\d+)*)")
_VERSION_RE = re.compile(r"(\d+(?:\.\d+)*)")


def parse_version(text: str) -> tuple[int, ...]:
    """
    Extract a numeric version tuple from a version banner.

    Accepts plain versions ("8.1.2") as well as server banners such as
    "DM Database Server 64 V8.1.2.128", in which case the `V`-prefixed
    number wins.
    """
    match = _BANNER_VERSION_RE.search(text) or _VERSION_RE.search(text)
    if not match:
        raise ValueError(f"Unable to parse version from {text!r}")
    return tuple(int(p) for p in match.group(1).split("."))


def _pad(version: tuple[int, ...], width: int) -> tuple[int, ...]:
    return version + (0,) * (width - len(version))


class CapabilityProber:
    """Read-only privilege and feature checks for one session."""

    def __init__(self, session: SqlSession):
        self.session = session

    def _probe(self, what: str, fn, *args):
        try:
            return fn(*args)
        except SqlExecutionError as exc:
            raise CapabilityProbeError(f"Unable to determine {what}: {exc}") from exc

    def query_returns_rows(self, query: str, params: Params = None) -> bool:
        """
        Check whether a query returns any rows.

        The query is wrapped in EXISTS() so the server stops at the first row
        and the client never fetches more than a single value.
        """
        wrapped = f"SELECT CASE WHEN EXISTS({query}) THEN 1 ELSE 0 END FROM DUAL"
        return self._probe(
            "whether query returns rows", self.session.query_for_boolean, wrapped, params
        )

    def is_priv_or_role_granted(self, name: str) -> bool:
        """True if the session holds the privilege or role, directly or via a role."""
        return self.query_returns_rows(
            "SELECT 1 FROM SESSION_PRIVS WHERE PRIVILEGE = :name UNION ALL "
            "SELECT 1 FROM SESSION_ROLES WHERE ROLE = :name",
            {"name": name},
        )

    def is_admin_view_accessible(self, view_name: str, owner: str = "SYS") -> bool:
        """True if the session may select from `owner.view_name`."""
        return self.query_returns_rows(
            "SELECT * FROM ALL_TAB_PRIVS WHERE OWNER = :owner AND TABLE_NAME = :name"
            " AND PRIVILEGE = 'SELECT'",
            {"owner": owner, "name": view_name},
        )

    def current_user(self) -> str:
        """Return the session user name."""
        user = self._probe(
            "current user", self.session.query_for_string, "SELECT USER FROM DUAL", None
        )
        if not user:
            raise CapabilityProbeError("Could not determine current user (USER is empty).")
        return user

    def engine_version(self) -> tuple[int, ...]:
        """Return the engine version as a tuple of integers."""
        banner = self._probe(
            "engine version",
            self.session.query_for_string,
            "SELECT SVR_VERSION FROM V$INSTANCE",
            None,
        )
        if not banner:
            raise CapabilityProbeError("Could not determine engine version.")
        try:
            return parse_version(banner)
        except ValueError as exc:
            raise CapabilityProbeError(str(exc)) from exc

    def engine_version_at_least(self, version: str) -> bool:
        """True if the engine version is greater than or equal to `version`."""
        wanted = parse_version(version)
        actual = self.engine_version()
        width = max(len(wanted), len(actual))
        return _pad(actual, width) >= _pad(wanted, width)

    def available_options(self) -> set[str]:
        """Return the titles of engine options enabled on the server."""
        return set(
            self._probe(
                "available options",
                self.session.query_for_string_list,
                "SELECT PARA_NAME FROM V$OPTION WHERE PARA_VALUE = 'TRUE'",
                None,
            )
        )

    def is_flashback_archive_available(self) -> bool:
        """True if the Flashback Data Archive option is enabled."""
        return "Flashback Data Archive" in self.available_options()

    def is_locator_available(self) -> bool:
        """True if the spatial locator metadata view is reachable."""
        return self.is_admin_view_accessible("ALL_SDO_GEOM_METADATA", owner="MDSYS")


def resolve_view(prober: CapabilityProber, base_name: str) -> str:
    """
    Return the catalog view name for `base_name` with the proper prefix.

    The administrative DBA_ view is used when the session holds
    SELECT ANY DICTIONARY or has been granted SELECT on that view, otherwise
    the owner-scope ALL_ view.
    """
    if prober.is_priv_or_role_granted(SELECT_ANY_DICTIONARY) or prober.is_admin_view_accessible(
        ADMIN_PREFIX + base_name
    ):
        return ADMIN_PREFIX + base_name
    return OWNER_PREFIX + base_name


@dataclass(frozen=True)
class CatalogViews:
    """A single resolved view scope applied to every catalog lookup."""

    prefix: str

    @property
    def is_admin(self) -> bool:
        return self.prefix == ADMIN_PREFIX

    def __getitem__(self, base_name: str) -> str:
        return self.prefix + base_name

    @classmethod
    def admin(cls) -> CatalogViews:
        return cls(ADMIN_PREFIX)

    @classmethod
    def owner(cls) -> CatalogViews:
        return cls(OWNER_PREFIX)

    @classmethod
    def resolve(
        cls,
        prober: CapabilityProber,
        base_names: Iterable[str] = CATALOG_BASE_VIEWS,
    ) -> CatalogViews:
        """
        Resolve one scope for all `base_names`.

        The administrative scope is chosen only if SELECT ANY DICTIONARY is
        held or every requested DBA_ view is individually accessible; a single
        inaccessible view drops the whole operation to owner scope.
        """
        if prober.is_priv_or_role_granted(SELECT_ANY_DICTIONARY):
            views = cls.admin()
        elif all(prober.is_admin_view_accessible(ADMIN_PREFIX + b) for b in base_names):
            views = cls.admin()
        else:
            views = cls.owner()
        logger.debug("Resolved catalog view scope: %s*", views.prefix)
        return views


@dataclass(frozen=True)
class CapabilityReport:
    """Summary of what the current session can do."""

    current_user: str
    engine_version: str
    select_any_dictionary: bool
    catalog_scope: str
    flashback_archive_available: bool | None = None
    locator_available: bool | None = None


def probe_capabilities(
    session: SqlSession,
    *,
    include_options: bool = False,
) -> CapabilityReport:
    """
    Probe the session's privileges and the engine's features.

    Optional engine features (flashback archive, locator) are only probed when
    `include_options` is set, since the option views are missing on some
    engine builds and a failed probe is fatal.
    """
    prober = CapabilityProber(session)
    views = CatalogViews.resolve(prober)
    report = CapabilityReport(
        current_user=prober.current_user(),
        engine_version=".".join(str(p) for p in prober.engine_version()),
        select_any_dictionary=prober.is_priv_or_role_granted(SELECT_ANY_DICTIONARY),
        catalog_scope=views.prefix + "*",
    )
    if not include_options:
        return report
    return replace(
        report,
        flashback_archive_available=prober.is_flashback_archive_available(),
        locator_available=prober.is_locator_available(),
    )
