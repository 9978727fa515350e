"""Commands for inspecting and cleaning DM schemas."""

from __future__ import annotations

import typer

from dmops.cli.common.context import SchemaAppContext, build_schema_context
from dmops.cli.common.exits import EXIT_INTERRUPTED, EXIT_USAGE, fail, ok_exit, warn_exit
from dmops.cli.common.logs import setup_logging
from dmops.cli.common.options import DryRunOpt, OptionsOpt, UrlOpt, VerboseOpt, YesOpt
from dmops.cli.common.output import out
from dmops.core.adapters.sqlsession import open_session
from dmops.core.capabilities import CapabilityProber, probe_capabilities
from dmops.core.clean import clean_schema, list_tables
from dmops.core.errors import (
    ConfigurationError,
    ConvergenceWaitInterrupted,
    DmopsError,
    ProtectedSchemaError,
)
from dmops.core.lifecycle import create_schema, drop_schema, ensure_supported, schema_exists

schema_app = typer.Typer(
    help="Inspect, clean, create and drop schemas.",
    no_args_is_help=False,
    invoke_without_command=True,
)


@schema_app.callback()
def _init(ctx: typer.Context, url: str | None = UrlOpt, verbose: bool = VerboseOpt):
    """Initialize schema context."""
    setup_logging(verbose)
    ctx.obj = build_schema_context(url)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)


@schema_app.command("probe")
def probe(ctx: typer.Context, options: bool = OptionsOpt):
    """Show the session user, engine version and catalog access."""
    appctx: SchemaAppContext = ctx.obj

    try:
        with out.status("Probing capabilities..."):
            with open_session(appctx.engine) as session:
                report = probe_capabilities(session, include_options=options)
    except DmopsError as exc:
        fail(exc)

    out.header("Capabilities")
    items = {
        "Current user": report.current_user,
        "Engine version": report.engine_version,
        "SELECT ANY DICTIONARY": "yes" if report.select_any_dictionary else "no",
        "Catalog views": report.catalog_scope,
    }
    if options:
        items["Flashback Data Archive"] = "yes" if report.flashback_archive_available else "no"
        items["Locator"] = "yes" if report.locator_available else "no"
    out.kv(items)


@schema_app.command("tables")
def tables(
    ctx: typer.Context,
    schema: str = typer.Argument(..., help="Schema name (case-sensitive)"),
):
    """List tables in a schema."""
    appctx: SchemaAppContext = ctx.obj

    try:
        with out.status("Loading tables..."):
            with open_session(appctx.engine) as session:
                names = list_tables(session, schema)
    except DmopsError as exc:
        fail(exc)

    if not names:
        warn_exit("No tables found.")

    out.header("Tables")
    out.info(f"Schema: {schema} | Tables: {len(names)}")
    out.names_table(names, title="Tables", column="Table")


@schema_app.command("clean")
def clean(
    ctx: typer.Context,
    schema: str = typer.Argument(..., help="Schema name (case-sensitive)"),
    dry_run: bool = DryRunOpt,
    yes: bool = YesOpt,
):
    """Drop every object in a schema, keeping the schema itself."""
    appctx: SchemaAppContext = ctx.obj
    settings = appctx.settings

    try:
        with open_session(appctx.engine) as session:
            with out.status("Building clean plan..."):
                ensure_supported(CapabilityProber(session), settings.min_engine_version)
                plan = clean_schema(session, schema, settings=settings, dry_run=True)

            if plan.was_empty:
                ok_exit(f"Schema '{schema}' is already empty.")

            out.header("Clean plan")
            out.kv(
                {
                    "Schema": plan.schema,
                    "Object types": ", ".join(plan.cleaned_types),
                    "Statements": len(plan.statements),
                }
            )
            out.statements_table(plan.statements, title="Statements to run")
            for warning in plan.warnings:
                out.warn(str(warning))

            if dry_run:
                warn_exit("DRY RUN: no changes will be made.")

            if not yes and not out.confirm(f"Proceed with dropping all objects in '{schema}'?"):
                warn_exit("Cancelled.")

            with out.status("Cleaning schema..."):
                result = clean_schema(session, schema, settings=settings)
    except ProtectedSchemaError as exc:
        fail(exc, code=EXIT_USAGE)
    except ConvergenceWaitInterrupted as exc:
        fail(exc, code=EXIT_INTERRUPTED, note="Schema may be partially cleaned.")
    except DmopsError as exc:
        fail(exc)

    out.clean_summary_table(result)
    out.success(f"Cleaned schema '{schema}' ({len(result.statements)} statement(s)).")


@schema_app.command("create")
def create(
    ctx: typer.Context,
    schema: str = typer.Argument(..., help="Schema name (case-sensitive)"),
):
    """Create a schema owner using DMOPS_SCHEMA_PASSWORD."""
    appctx: SchemaAppContext = ctx.obj

    try:
        with open_session(appctx.engine) as session:
            if schema_exists(session, schema):
                warn_exit(f"Schema '{schema}' already exists.")
            with out.status("Creating schema..."):
                create_schema(session, schema, appctx.settings)
    except ConfigurationError as exc:
        fail(exc, code=EXIT_USAGE)
    except DmopsError as exc:
        fail(exc)

    out.success(f"Created schema '{schema}'.")


@schema_app.command("drop")
def drop(
    ctx: typer.Context,
    schema: str = typer.Argument(..., help="Schema name (case-sensitive)"),
    yes: bool = YesOpt,
):
    """Drop a schema and everything it owns."""
    appctx: SchemaAppContext = ctx.obj

    try:
        with open_session(appctx.engine) as session:
            if not schema_exists(session, schema):
                warn_exit(f"Schema '{schema}' does not exist.")
            if not yes and not out.confirm(f"Proceed with dropping schema '{schema}'?"):
                warn_exit("Cancelled.")
            with out.status("Dropping schema..."):
                drop_schema(session, schema, appctx.settings)
    except ProtectedSchemaError as exc:
        fail(exc, code=EXIT_USAGE)
    except DmopsError as exc:
        fail(exc)

    out.success(f"Dropped schema '{schema}'.")
