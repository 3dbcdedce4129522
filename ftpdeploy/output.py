"""Console output formatting for the ftpdeploy CLI."""

import json
from typing import Any

from rich.console import Console
from rich.table import Table


class OutputFormatter:
    """Formats user-facing messages, summaries and JSON output.

    Progress messages are suppressed in quiet mode and in JSON mode so that
    ``--json`` output stays machine readable. Errors are always written to
    stderr.
    """

    def __init__(self, json_output: bool = False, quiet: bool = False):
        """Initialize output formatter.

        Args:
            json_output: Emit results as JSON instead of formatted text
            quiet: Suppress non-essential output
        """
        self.json_output = json_output
        self.quiet = quiet
        self.console = Console(highlight=False)
        self.error_console = Console(stderr=True, highlight=False)

    @property
    def _silent(self) -> bool:
        return self.quiet or self.json_output

    def print(self, message: str = "") -> None:
        """Print a plain line."""
        if not self._silent:
            self.console.print(message, markup=False)

    def info(self, message: str) -> None:
        """Print an informational message."""
        if not self._silent:
            self.console.print(message, markup=False)

    def progress_message(self, message: str) -> None:
        """Print a per-action progress message."""
        if not self._silent:
            self.console.print(message, style="dim", markup=False)

    def success(self, message: str) -> None:
        """Print a success message."""
        if not self._silent:
            self.console.print(message, style="green", markup=False)

    def warning(self, message: str) -> None:
        """Print a warning message."""
        if not self._silent:
            self.console.print(message, style="yellow", markup=False)

    def error(self, message: str) -> None:
        """Print an error message to stderr."""
        self.error_console.print(message, style="red", markup=False)

    def output_json(self, data: Any) -> None:
        """Print data as JSON."""
        print(json.dumps(data, indent=2, default=str))

    def print_summary(self, title: str, items: list[tuple[str, str]]) -> None:
        """Print a two column summary table.

        Args:
            title: Table title
            items: (label, value) rows
        """
        if self._silent:
            return

        table = Table(title=title, show_header=False)
        table.add_column("Field", style="bold")
        table.add_column("Value")
        for label, value in items:
            table.add_row(label, value)
        self.console.print(table)
