"""Logging setup for the CLI: route the core's log records through rich."""

from __future__ import annotations

import logging

from rich.logging import RichHandler

from dmops.cli.common.output import console


def setup_logging(verbose: bool = False) -> None:
    """Install a single RichHandler on the root logger."""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = RichHandler(
        console=console,
        show_path=verbose,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    root.addHandler(handler)
    root.setLevel(logging.WARNING)
    logging.getLogger("dmops").setLevel(logging.DEBUG if verbose else logging.INFO)
