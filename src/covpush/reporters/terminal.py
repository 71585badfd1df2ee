"""Terminal reporter with rich output formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from covpush.adapters.coverage.base import FLAVORS

if TYPE_CHECKING:
    from covpush.adapters.coverage.base import CoverageSummary
    from covpush.utils.publish_client import PublishRecord

console = Console()

_HIGH_COVERAGE = 80.0
_MEDIUM_COVERAGE = 50.0


class CLIReporter:
    """Rich terminal output reporter for coverage summaries and publishing."""

    def __init__(self, target: Console | None = None) -> None:
        """Initialize the CLI reporter."""
        self.console = target or console

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

    def print_coverage_summary(self, summary: CoverageSummary, *, title: str = "") -> None:
        """Print a table with one row per coverage flavor."""
        table = Table(title=title or "Coverage Summary", title_style="bold cyan")
        table.add_column("Metric", style="bold")
        table.add_column("Covered", justify="right")
        table.add_column("Total", justify="right")
        table.add_column("Coverage", justify="right")

        for flavor in FLAVORS:
            metric = summary.metric(flavor)
            if metric.is_reported and metric.pct is not None:
                color = self._get_coverage_color(metric.pct)
                pct_cell = f"[{color}]{metric.pct:.2f}%[/{color}]"
            else:
                pct_cell = "[dim]n/a[/dim]"
            table.add_row(flavor.capitalize(), str(metric.covered), str(metric.total), pct_cell)

        self.console.print(table)

    def print_publish_record(self, record: PublishRecord) -> None:
        """Print a record that would have been published (dry run)."""
        self.console.print_json(data=record.to_payload())

    def _get_coverage_color(self, percentage: float) -> str:
        """Get a color based on coverage percentage."""
        if percentage >= _HIGH_COVERAGE:
            return "green"
        if percentage >= _MEDIUM_COVERAGE:
            return "yellow"
        return "red"


reporter = CLIReporter()
