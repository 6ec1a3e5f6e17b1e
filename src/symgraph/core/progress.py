"""User-facing feedback for CLI operations.

Status lines and spinners go to stderr so stdout stays clean for records.

Usage::

    from symgraph.core.progress import status, spinner

    status("Ready", style="success")  # ✓ Ready

    with spinner("Extracting 40 files"):
        do_work()
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from symgraph.index.records import FileRecord

# Console for status output
_console = Console(stderr=True)

# Style prefixes
_STYLES = {
    "success": "[green]✓[/green] ",
    "error": "[red]✗[/red] ",
    "warning": "[yellow]![/yellow] ",
    "info": "  ",
    "none": "",
}


def _is_tty() -> bool:
    """Check if stderr is a TTY."""
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


def get_console() -> Console:
    """Get the shared stderr console."""
    return _console


def status(message: str, *, style: str = "info", indent: int = 0) -> None:
    """Print a styled status message to stderr."""
    prefix = _STYLES.get(style, "")
    _console.print(f"{' ' * indent}{prefix}{message}", highlight=False)


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """Return "1 file" / "3 files"."""
    if plural is None:
        plural = singular + "s"
    word = singular if count == 1 else plural
    return f"{count} {word}"


@contextmanager
def spinner(message: str) -> Iterator[None]:
    """Spinner on a TTY, a plain line otherwise."""
    if _is_tty():
        with _console.status(f"[cyan]{message}[/cyan]", spinner="dots"):
            yield
    else:
        yield


def make_records_table(records: list[FileRecord]) -> Table:
    """One row per file: counts and outcome."""
    table = Table(box=None, padding=(0, 1), pad_edge=False)
    table.add_column("file", style="cyan", overflow="fold")
    table.add_column("symbols", justify="right")
    table.add_column("refs", justify="right")
    table.add_column("diags", justify="right")
    table.add_column("status")

    for record in records:
        if record.aborted:
            outcome = "[red]aborted[/red]"
        elif any(d.severity == "error" for d in record.diagnostics):
            outcome = "[yellow]partial[/yellow]"
        else:
            outcome = "[green]ok[/green]"
        table.add_row(
            record.file_path,
            str(len(record.symbols)),
            str(len(record.references)),
            str(len(record.diagnostics)),
            outcome,
        )
    return table
