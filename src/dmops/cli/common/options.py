"""Common CLI options for the CLI."""

import typer

UrlOpt = typer.Option(
    None,
    "--url",
    "-u",
    help="SQLAlchemy database URL (defaults to $DMOPS_URL)",
    show_default=False,
)

VerboseOpt = typer.Option(
    False,
    "--verbose",
    "-v",
    help="Log every statement and catalog lookup",
)

YesOpt = typer.Option(
    False,
    "--yes",
    help="Skip confirmation prompt",
)

DryRunOpt = typer.Option(
    False,
    "--dry-run",
    help="Show which statements would run, but don't execute anything",
)

OptionsOpt = typer.Option(
    False,
    "--options",
    help="Also probe optional engine features (flashback archive, locator)",
)
