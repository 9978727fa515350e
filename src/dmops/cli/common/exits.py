"""
Process exits for dmops commands.

Exit codes:
    0    success, or nothing to do (schema already empty, user cancelled)
    1    the database rejected a statement or a catalog query failed
    2    bad configuration, or the target is a protected system schema
    130  a convergence wait was interrupted mid-clean
"""

from typing import NoReturn

import typer

from dmops.cli.common.output import out

EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def ok_exit(msg: str | None = None) -> NoReturn:
    if msg:
        out.info(msg)
    raise typer.Exit(0)


def warn_exit(msg: str) -> NoReturn:
    """Stop early without touching the schema."""
    out.warn(msg)
    raise typer.Exit(0)


def die(msg: str, code: int = EXIT_USAGE) -> NoReturn:
    out.error(msg)
    raise typer.Exit(code)


def fail(exc: Exception, *, code: int = EXIT_FAILURE, note: str | None = None) -> NoReturn:
    """Report a dmops error, optionally followed by `note`, and exit chained to it."""
    out.error(f"{exc}. {note}" if note else str(exc))
    raise typer.Exit(code) from exc
