"""Output formatting utilities for the CLI."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import questionary
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

from dmops.cli.common.tui_style import QUESTIONARY_STYLE_CONFIRM

_THEME = Theme(
    {
        "ok": "bold green",
        "warn": "yellow",
        "err": "bold red",
        "title": "bold cyan",
        "meta": "dim",
    }
)

console = Console(theme=_THEME)


@dataclass(frozen=True)
class Out:
    """Output formatter for CLI messages and tables."""

    def _q_try(self, fn, *args, **kwargs):
        """Call questionary prompts and drop unsupported kwargs on older versions."""
        try:
            return fn(*args, **kwargs)
        except TypeError:
            for k in ("pointer", "auto_enter"):
                kwargs.pop(k, None)
            return fn(*args, **kwargs)

    def _q(self, message: str) -> str:
        """Prefix Questionary prompts to be DMOPS consistent."""
        return f"[DMOPS] {message}"

    def info(self, msg: str) -> None:
        """Print an info message."""
        console.print(f"[title]›[/] {msg}")

    @contextmanager
    def status(self, msg: str):
        """Show a transient status spinner while work is in progress."""
        with console.status(msg, spinner="dots"):
            yield

    def success(self, msg: str) -> None:
        """Print a success message."""
        console.print(f"[ok]✓[/] {msg}")

    def warn(self, msg: str) -> None:
        """Print a warning message."""
        console.print(f"[warn]⚠[/] {msg}")

    def error(self, msg: str) -> None:
        """Print an error message."""
        console.print(f"[err]✗[/] {escape(msg)}")

    def header(self, title: str) -> None:
        """Print a header message."""
        console.print(f"[title]{title}[/]")

    def kv(self, items: Mapping[str, Any]) -> None:
        """Print key-value pairs."""
        for k, v in items.items():
            console.print(f"[meta]{k}[/]: {escape(str(v))}")

    def confirm(self, message: str, *, default: bool = False) -> bool:
        """
        Ask the user for confirmation using a standardized Questionary prompt.

        Args:
            message: Confirmation question shown to the user.
            default: Default answer if the user just presses enter.

        Returns:
            True if the user confirms, False otherwise.
        """
        # Questionary renders `instruction=...` inline next to the echoed answer.
        console.print("[meta]Use y/n then Enter[/]")

        prompt = self._q_try(
            questionary.confirm,
            self._q(message),
            default=default,
            style=QUESTIONARY_STYLE_CONFIRM,
            qmark="✦",
            auto_enter=False,
            pointer="❯",
        )
        return bool(prompt.ask())

    def names_table(self, names: Iterable[str], title: str, column: str = "Name") -> None:
        """Render a single-column table of object names."""
        t = Table(title=title, show_lines=False)
        t.add_column(column, style="ok")

        for name in names:
            t.add_row(escape(str(name)))

        console.print(t)

    def statements_table(self, statements: Iterable[str], title: str = "Statements") -> None:
        """Render the DDL statements of a clean, numbered in execution order."""
        t = Table(title=title, show_lines=False)
        t.add_column("#", style="meta", no_wrap=True, justify="right")
        t.add_column("Statement")

        for i, statement in enumerate(statements, start=1):
            t.add_row(str(i), escape(statement))

        console.print(t)

    def clean_summary_table(self, result: Any, title: str = "Clean summary") -> None:
        """
        Render per-type statement counts of a clean.

        Expects an object with `.drop_counts`
        (e.g. dmops.core.clean.CleanResult).
        """
        t = Table(title=title, show_lines=False)
        t.add_column("Object type", style="ok")
        t.add_column("Statements", justify="right")

        for type_name, count in result.drop_counts:
            t.add_row(type_name, str(count))

        console.print(t)


out = Out()
