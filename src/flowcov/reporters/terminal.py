"""Terminal reporter with rich output formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from flowcov.models.coverage import CoverageReport

console = Console()


def _delta_style(delta_text: str) -> str:
    """Return a Rich style for a rendered delta cell."""
    if delta_text.startswith("-"):
        return "red"
    if delta_text.startswith("+") and delta_text != "+0%":
        return "green"
    if delta_text.startswith("+"):
        return "dim"
    return "yellow"


class CLIReporter:
    """Rich terminal output for coverage runs."""

    def __init__(self, output: Console | None = None) -> None:
        self.console = output or console

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def print_info(self, message: str) -> None:
        """Print an info message."""
        self.console.print(f"[dim]{message}[/dim]")

    def print_coverage_report(self, report: CoverageReport) -> None:
        """Print the coverage table with colored deltas."""
        table = Table(title="Flow Coverage", show_lines=False)
        table.add_column("File", style="cyan", no_wrap=True)
        table.add_column("Delta", justify="right")
        table.add_column("Total", justify="right")

        for row in report.rows:
            style = _delta_style(row.delta_text)
            table.add_row(
                escape(row.filename),
                f"[{style}]{escape(row.delta_text)}[/{style}]",
                f"{escape(row.total_text)}%",
            )

        self.console.print(table)


reporter = CLIReporter()
