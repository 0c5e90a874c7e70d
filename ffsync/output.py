"""Output formatting for the ffsync CLI."""

import json
import sys
from typing import Any, Optional

from rich.console import Console
from rich.table import Table


class OutputFormatter:
    """Writes human readable or JSON output for CLI commands.

    Messages go to stderr so that JSON written by :meth:`output_json`
    stays machine readable on stdout.
    """

    def __init__(self, json_output: bool = False, quiet: bool = False):
        """Initialize output formatter.

        Args:
            json_output: Emit JSON instead of rich text
            quiet: Suppress informational messages
        """
        self.json_output = json_output
        self.quiet = quiet
        self.console = Console()
        self.err_console = Console(stderr=True)

    def info(self, message: str) -> None:
        """Print an informational message."""
        if not self.quiet and not self.json_output:
            self.err_console.print(message, style="cyan", highlight=False)

    def success(self, message: str) -> None:
        """Print a success message."""
        if not self.quiet and not self.json_output:
            self.err_console.print(message, style="green", highlight=False)

    def warning(self, message: str) -> None:
        """Print a warning. Shown even in quiet mode."""
        self.err_console.print(f"Warning: {message}", style="yellow", highlight=False)

    def error(self, message: str) -> None:
        """Print an error. Shown even in quiet mode."""
        self.err_console.print(f"Error: {message}", style="bold red", highlight=False)

    def print(self, message: str) -> None:
        """Print plain text to stdout."""
        if not self.json_output:
            self.console.print(message, highlight=False)

    def output_json(self, data: Any) -> None:
        """Write data as JSON to stdout."""
        sys.stdout.write(json.dumps(data, indent=2, default=str) + "\n")
        sys.stdout.flush()

    def output_table(
        self,
        rows: list[dict[str, Any]],
        columns: list[str],
        headers: Optional[dict[str, str]] = None,
        title: Optional[str] = None,
    ) -> None:
        """Render rows as a table.

        Args:
            rows: One dict per row
            columns: Keys to show, in order
            headers: Optional column titles keyed by column
            title: Optional table title
        """
        if self.json_output:
            self.output_json([{c: row.get(c) for c in columns} for row in rows])
            return
        headers = headers or {}
        table = Table(title=title, show_lines=False)
        for column in columns:
            table.add_column(headers.get(column, column))
        for row in rows:
            table.add_row(*("" if row.get(c) is None else str(row.get(c)) for c in columns))
        self.console.print(table)

    def print_summary(self, title: str, items: list[tuple[str, str]]) -> None:
        """Print a titled list of label/value pairs."""
        if self.quiet or self.json_output:
            return
        self.console.print(f"\n[bold]{title}[/bold]")
        for label, value in items:
            self.console.print(f"  {label}: {value}", highlight=False, markup=False)
