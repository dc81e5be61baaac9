"""Output formatting for the command line interface."""

import json
from typing import Any, Optional

from rich.columns import Columns
from rich.console import Console
from rich.table import Table
from rich.text import Text

from .models import FileItem
from .utils import format_modified


class OutputFormatter:
    """Formats user-facing output with rich.

    Status messages go to stdout, or to stderr in JSON mode so that stdout
    only carries the JSON document. Errors and warnings are always shown;
    info, success and plain prints are suppressed in quiet mode.
    """

    def __init__(
        self,
        json_output: bool = False,
        quiet: bool = False,
        console: Optional[Console] = None,
    ):
        """Initialize output formatter.

        Args:
            json_output: Emit machine-readable JSON for command results
            quiet: Suppress non-essential output
            console: Console for results (defaults to stdout)
        """
        self.json_output = json_output
        self.quiet = quiet
        self.console = console or Console(highlight=False)
        self.status_console = Console(stderr=json_output, highlight=False)
        self.error_console = Console(stderr=True, highlight=False)

    def _message(self, symbol: str, style: str, message: str) -> Text:
        text = Text()
        if symbol:
            text.append(f"{symbol} ", style=style)
        text.append(message)
        return text

    def print(self, message: str = "") -> None:
        """Print a plain line."""
        if not self.quiet:
            self.status_console.print(Text(message), soft_wrap=True)

    def info(self, message: str) -> None:
        if not self.quiet:
            self.status_console.print(Text(message), soft_wrap=True)

    def success(self, message: str) -> None:
        if not self.quiet:
            self.status_console.print(
                self._message("✓", "green", message), soft_wrap=True
            )

    def warning(self, message: str) -> None:
        self.status_console.print(
            self._message("⚠", "yellow", message), soft_wrap=True
        )

    def error(self, message: str) -> None:
        self.error_console.print(self._message("✗", "red", message), soft_wrap=True)

    def output_json(self, data: Any) -> None:
        """Print data as a JSON document on stdout."""
        self.console.print(
            json.dumps(data, indent=2, default=str),
            markup=False,
            highlight=False,
            soft_wrap=True,
        )

    def print_summary(self, title: str, items: list[tuple[str, str]]) -> None:
        """Print a titled list of label/value pairs."""
        if self.quiet:
            return
        self.status_console.print(Text(title, style="bold"))
        for label, value in items:
            self.status_console.print(Text(f"  {label}: {value}"), soft_wrap=True)

    def output_table(
        self,
        rows: list[dict[str, Any]],
        columns: list[str],
        headers: Optional[dict[str, str]] = None,
        styles: Optional[list[Optional[str]]] = None,
    ) -> None:
        """Print rows as a table.

        Args:
            rows: Row dictionaries
            columns: Keys to show, in order
            headers: Optional display names per key
            styles: Optional rich style per row
        """
        headers = headers or {}
        table = Table(box=None, show_edge=False, pad_edge=False)
        for column in columns:
            table.add_column(headers.get(column, column.title()), no_wrap=True)
        for index, row in enumerate(rows):
            style = styles[index] if styles else None
            table.add_row(*(Text(str(row.get(c, ""))) for c in columns), style=style)
        self.console.print(table)

    # =========================
    # Directory listings
    # =========================

    def output_names(self, items: list[FileItem], script: bool = False) -> None:
        """Print entry names, multi-column or one per line.

        Args:
            items: Entries in display order
            script: One plain name per line without colors
        """
        if self.json_output:
            self.output_json([item.to_dict() for item in items])
            return

        if script:
            for item in items:
                self.console.print(
                    item.display_name, markup=False, highlight=False, soft_wrap=True
                )
            return

        names = [
            Text(item.display_name, style="bold blue" if item.is_dir else "")
            for item in items
        ]
        if names:
            self.console.print(Columns(names, column_first=True, padding=(0, 2)))

    def output_listing(self, items: list[FileItem]) -> None:
        """Print a detailed listing with modification time and size."""
        if self.json_output:
            self.output_json([item.to_dict() for item in items])
            return

        rows = [
            {
                "name": item.display_name,
                "modified": format_modified(item.modified),
                "size": item.size,
            }
            for item in items
        ]
        self.output_table(
            rows,
            ["name", "modified", "size"],
            headers={"name": "Name", "modified": "Modified", "size": "Size"},
            styles=["bold blue" if item.is_dir else None for item in items],
        )
