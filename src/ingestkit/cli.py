"""Command-line interface for the ingestkit engine."""

from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

import typer
from rich.console import Console

if TYPE_CHECKING:
    from ingestkit.engine import IngestionEngine
    from ingestkit.scheduler import SchedulerProgress

app = typer.Typer(
    name="ingestkit",
    help="Import delimited text, Excel, SQLite, JSON and Parquet files into uniform tables.",
    no_args_is_help=True,
)

console = Console()

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to configuration YAML file.",
        exists=True,
        dir_okay=False,
    ),
]


def _build_engine(config: Path | None) -> "IngestionEngine":
    """Load configuration, set up logging and create an engine."""
    from ingestkit.config.loader import load_config
    from ingestkit.engine import IngestionEngine
    from ingestkit.utils.logging import configure_logging

    engine_config = load_config(config)
    configure_logging(engine_config.logging)
    return IngestionEngine(engine_config)


def _register_paths(engine: "IngestionEngine", paths: list[Path], options: dict[str, Any]) -> int:
    """
    Register every path with the engine.

    Returns:
        Number of paths that could not be registered.
    """
    from pydantic import ValidationError

    from ingestkit.errors import IngestError

    failures = 0
    for path in paths:
        try:
            dataset_ids = engine.register_path(path, **options)
        except (IngestError, ValidationError) as e:
            console.print(f"[red]Error: could not register {path}: {e}[/red]")
            failures += 1
            continue
        console.print(f"[blue]Registered {path} ({len(dataset_ids)} dataset(s))[/blue]")
    return failures


def _drive(engine: "IngestionEngine") -> "SchedulerProgress":
    """Run the scheduler tick by tick behind a status line."""
    progress = engine.scheduler.progress()
    if not engine.enqueue_pending():
        return progress

    with console.status("Importing...") as status:
        while True:
            progress = engine.tick()
            if progress.current_label:
                status.update(progress.current_label)
            if not progress.active:
                return progress


@app.command("import")
def import_sources(
    paths: Annotated[
        list[Path],
        typer.Argument(help="Files to import; the format follows the file extension."),
    ],
    delimiter: Annotated[
        str | None,
        typer.Option("--delimiter", "-d", help="Field delimiter for delimited text."),
    ] = None,
    no_header: Annotated[
        bool,
        typer.Option("--no-header", help="Delimited text has no header row."),
    ] = False,
    quote: Annotated[
        str | None,
        typer.Option("--quote", help="Quote character for delimited text."),
    ] = None,
    escape: Annotated[
        str | None,
        typer.Option("--escape", help="Escape character for delimited text."),
    ] = None,
    text_column: Annotated[
        list[str] | None,
        typer.Option("--text-column", help="Column read as text without type inference."),
    ] = None,
    sheet: Annotated[
        list[str] | None,
        typer.Option("--sheet", "-s", help="Worksheet to import (default: all)."),
    ] = None,
    table: Annotated[
        list[str] | None,
        typer.Option("--table", "-t", help="Database table to import."),
    ] = None,
    all_tables: Annotated[
        bool,
        typer.Option("--all-tables", help="Import every database table."),
    ] = False,
    ndjson: Annotated[
        bool | None,
        typer.Option(
            "--ndjson/--json",
            help="Read JSON as one object per line (default: from the extension).",
        ),
    ] = None,
    record_path: Annotated[
        str | None,
        typer.Option("--record-path", help="Dotted path to the records in a JSON document."),
    ] = None,
    config: ConfigOption = None,
) -> None:
    """Import files and report the resulting tables."""
    from ingestkit.scheduler import ConsoleReporter

    engine = _build_engine(config)
    options: dict[str, Any] = {
        "delimiter": delimiter,
        "has_header": False if no_header else None,
        "quote_char": quote,
        "escape_char": escape,
        "text_columns": frozenset(text_column) if text_column else None,
        "sheets": tuple(sheet) if sheet else None,
        "tables": tuple(table) if table else None,
        "all_tables": True if all_tables else None,
        "ndjson": ndjson,
        "record_path": record_path,
    }

    register_failures = _register_paths(engine, paths, options)
    progress = _drive(engine)

    console.print()
    ConsoleReporter(console).print_results(engine.registry, progress.report)

    if register_failures or progress.report:
        raise typer.Exit(code=1)


@app.command()
def schema(
    path: Annotated[Path, typer.Argument(help="File to inspect.")],
    config: ConfigOption = None,
) -> None:
    """Import one file and show the resolved column types of each dataset."""
    from ingestkit.registry import DatasetStatus
    from ingestkit.scheduler import ConsoleReporter

    engine = _build_engine(config)
    if _register_paths(engine, [path], {}):
        raise typer.Exit(code=1)

    progress = _drive(engine)
    reporter = ConsoleReporter(console)

    for _, dataset in engine.registry.datasets():
        imported = engine.table(dataset.id)
        if dataset.status is DatasetStatus.IMPORTED and imported is not None:
            console.print()
            reporter.print_schema(dataset.display_name, imported)

    if progress.report:
        console.print()
        console.print("[bold red]Import Errors:[/bold red]")
        for line in progress.report.split("\n"):
            console.print(f"  {line}", markup=False)
        raise typer.Exit(code=1)


@app.command()
def version() -> None:
    """Show version information."""
    from ingestkit import __version__

    console.print(f"ingestkit version {__version__}")


if __name__ == "__main__":
    app()
