"""CLI application for DM schema operations."""

import typer

from dmops.cli.commands.schema import schema_app

app = typer.Typer(
    help="dmops - DM schema inventory and clean tooling",
    no_args_is_help=True,
)

app.add_typer(schema_app, name="schema")


if __name__ == "__main__":
    app()
