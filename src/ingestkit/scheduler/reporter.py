"""
Console reporter for import results.

Formats registry state and imported tables using Rich.
"""

from rich.console import Console
from rich.table import Table

from ingestkit.registry import DatasetRegistry, DatasetStatus
from ingestkit.registry.models import DataSource, Dataset
from ingestkit.table import UniformTable

_STATUS_STYLES = {
    DatasetStatus.PENDING: "yellow",
    DatasetStatus.PROCESSING: "blue",
    DatasetStatus.IMPORTED: "green",
    DatasetStatus.FAILED: "red",
}


class ConsoleReporter:
    """Formats and displays import results to the console."""

    def __init__(self, console: Console) -> None:
        """
        Initialize console reporter.

        Args:
            console: Rich Console instance for output.
        """
        self.console = console

    def print_results(self, registry: DatasetRegistry, report: str | None = None) -> None:
        """
        Print every registered dataset as a formatted table.

        Args:
            registry: Registry to report on.
            report: Failure report of the last import run.
        """
        table = Table(title="Import Results", show_header=True)
        table.add_column("Source", style="cyan", no_wrap=True)
        table.add_column("Dataset", style="cyan")
        table.add_column("Type", style="blue")
        table.add_column("Status", justify="center")
        table.add_column("Rows", justify="right")
        table.add_column("Columns", justify="right")
        table.add_column("Details", style="dim")

        pairs = registry.datasets()
        for source, dataset in pairs:
            imported = dataset.status is DatasetStatus.IMPORTED
            table.add_row(
                source.name,
                dataset.display_name,
                source.variant.display_name,
                self._format_status(dataset),
                str(dataset.row_count) if imported else "-",
                str(dataset.column_count) if imported else "-",
                self._format_details(dataset),
            )

        self.console.print(table)
        self._print_summary(registry.sources)

        if report:
            self.console.print()
            self.console.print("[bold red]Import Errors:[/bold red]")
            for line in report.split("\n"):
                self.console.print(f"  {line}", markup=False)

    def print_schema(self, name: str, table: UniformTable) -> None:
        """
        Print the columns of an imported table with their types.

        Args:
            name: Dataset name shown as the title.
            table: Imported table.
        """
        schema = Table(title=f"{name} ({table.row_count} rows)", show_header=True)
        schema.add_column("#", justify="right", style="dim")
        schema.add_column("Column", style="cyan")
        schema.add_column("Type", style="blue")
        schema.add_column("Nulls", justify="right")

        for position, column in enumerate(table.column_names, start=1):
            nulls = int(table.frame[column].isna().sum())
            marker = " (coerced)" if column in table.coerced_columns else ""
            schema.add_row(
                str(position),
                column,
                table.column_type(column).value + marker,
                str(nulls),
            )

        self.console.print(schema)
        for warning in table.warnings:
            self.console.print(f"[yellow]Warning:[/yellow] {warning}")

    def _format_status(self, dataset: Dataset) -> str:
        style = _STATUS_STYLES[dataset.status]
        return f"[{style}]{dataset.status.display_name}[/{style}]"

    def _format_details(self, dataset: Dataset) -> str:
        """
        Short details string; full errors are printed separately.
        """
        if dataset.status is DatasetStatus.FAILED:
            return "See errors below"
        if dataset.warning:
            return dataset.warning
        if dataset.status is DatasetStatus.IMPORTED:
            return "OK"
        return ""

    def _print_summary(self, sources: tuple[DataSource, ...]) -> None:
        total = sum(s.total for s in sources)
        imported = sum(s.imported_count for s in sources)
        failed = sum(s.failed_count for s in sources)

        self.console.print()
        self.console.print("[bold]Summary:[/bold]")
        self.console.print(f"  Total datasets: {total}")
        self.console.print(f"  [green]Imported: {imported}[/green]")
        self.console.print(f"  [red]Failed: {failed}[/red]")
        self.console.print(f"  [yellow]Pending: {total - imported - failed}[/yellow]")
