"""Terminal reporter with rich output formatting."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from lcovcheck.analyzers.thresholds import format_number
from lcovcheck.models.coverage import METRICS
from lcovcheck.reporters.github_comment import format_line_ranges

if TYPE_CHECKING:
    from collections.abc import Mapping

    from lcovcheck.models.coverage import CoverageSummary, Verdict

console = Console()

# Display limits for truncation
_MAX_FILE_PATH_LENGTH = 50
_MAX_FILES_DISPLAY = 50


class CLIReporter:
    """Rich terminal output reporter for coverage summaries and verdicts."""

    def __init__(self) -> None:
        """Initialize the CLI reporter."""
        self.console = console

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def print_coverage_summary(
        self, summary: CoverageSummary, thresholds: Mapping[str, float] | None = None
    ) -> None:
        """Print the aggregate coverage table."""
        thresholds = thresholds or {}
        table = Table(title="Coverage Summary", title_style="bold cyan")
        table.add_column("Metric", style="bold")
        table.add_column("Coverage", justify="right")
        table.add_column("Covered / Total", justify="right")
        table.add_column("Threshold", justify="right")

        for metric in METRICS:
            record = getattr(summary.total, metric)
            threshold = thresholds.get(metric)
            if threshold is None:
                color = self._get_coverage_color(record.pct)
                threshold_cell = "-"
            else:
                color = "green" if record.pct >= threshold else "red"
                threshold_cell = f"{format_number(threshold)}%"

            table.add_row(
                metric.capitalize(),
                f"[{color}]{format_number(record.pct)}%[/{color}]",
                f"{record.covered} / {record.total}",
                threshold_cell,
            )

        self.console.print(table)

    def print_file_coverage(self, summary: CoverageSummary) -> None:
        """Print per-file line, function and branch coverage."""
        if not summary.files:
            return

        table = Table(title="File Coverage", title_style="bold cyan")
        table.add_column("File", style="bold")
        table.add_column("Lines", justify="right")
        table.add_column("Functions", justify="right")
        table.add_column("Branches", justify="right")
        table.add_column("Uncovered Lines")

        for path, file_cov in list(summary.files.items())[:_MAX_FILES_DISPLAY]:
            display_path = self._strip_workdir(path)
            if len(display_path) > _MAX_FILE_PATH_LENGTH:
                display_path = "..." + display_path[-(_MAX_FILE_PATH_LENGTH - 3) :]

            cells = []
            for record in (file_cov.lines, file_cov.functions, file_cov.branches):
                color = self._get_coverage_color(record.pct)
                cells.append(f"[{color}]{format_number(record.pct)}%[/{color}]")

            table.add_row(display_path, *cells, format_line_ranges(file_cov.uncovered_lines))

        self.console.print(table)

        hidden = len(summary.files) - _MAX_FILES_DISPLAY
        if hidden > 0:
            self.console.print(f"[dim]... and {hidden} more file(s)[/dim]")

    def print_verdict(self, verdict: Verdict) -> None:
        """Print the threshold verdict, one line per failing metric."""
        if verdict.passed:
            self.print_success(verdict.summary)
            return

        self.print_error(verdict.summary)
        for failure in verdict.failures:
            self.console.print(f"  [red]•[/red] {failure}")

    def _get_coverage_color(self, percentage: float) -> str:
        """Get a color based on coverage percentage."""
        high_threshold = 80.0
        medium_threshold = 50.0

        if percentage >= high_threshold:
            return "green"
        if percentage >= medium_threshold:
            return "yellow"
        return "red"

    def _strip_workdir(self, file_path: str) -> str:
        """Strip the current working directory from file path for cleaner display."""
        try:
            return str(Path(file_path).relative_to(Path.cwd()))
        except ValueError:
            return file_path


# Singleton instance for easy import
reporter = CLIReporter()
