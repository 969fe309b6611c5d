"""CLI for normalization exercises.

Previews the rows a learner's tables produce and checks them against the
dataset's reference solution.

Usage:
    normform datasets ./datasets
    normform preview ./datasets/flights.json ./work.json --form 2NF
    normform check ./datasets/flights.json ./work.json --form 2NF
    normform stats ./datasets/flights.json ./work.json
    normform qualify ./datasets/flights.json --write
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any, TypeVar

import typer
import yaml
from rich.console import Console
from rich.table import Table as RichTable

from normform.core.config import get_settings
from normform.core.logging import configure_logging, log_context
from normform.core.models import Result
from normform.schema.models import ColumnRole, NormalForm, TableDefinition

app = typer.Typer(
    name="normform",
    help="Normalization exercises - preview and check 1NF, 2NF and 3NF schemas.",
    no_args_is_help=True,
)
console = Console()

_ROLE_MARKERS = {ColumnRole.PK: " (PK)", ColumnRole.FK: " (FK)"}

DatasetArgument = Annotated[
    Path,
    typer.Argument(
        help="Path to a dataset document (JSON or YAML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    ),
]
WorkArgument = Annotated[
    Path,
    typer.Argument(
        help="Path to a work file mapping stage names to table definitions",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    ),
]
FormOption = Annotated[
    NormalForm,
    typer.Option("--form", "-f", help="Normalization stage"),
]


@app.callback()
def callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Configure logging from settings."""
    settings = get_settings()
    configure_logging(
        log_level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
    )


T = TypeVar("T")


def _unwrap(result: Result[T]) -> T:
    """Return a result's value or exit with its error."""
    if not result.success:
        console.print(f"[red]{result.error}[/red]")
        raise typer.Exit(1)
    return result.unwrap()


def _header(column_name: str, role: ColumnRole) -> str:
    return column_name + _ROLE_MARKERS.get(role, "")


def _cell(value: Any) -> str:
    return "" if value is None else str(value)


@app.command()
def datasets(
    directory: Annotated[
        Path | None,
        typer.Argument(
            help="Directory containing dataset documents (default: settings)",
            file_okay=False,
            dir_okay=True,
            resolve_path=True,
        ),
    ] = None,
) -> None:
    """List available datasets, easiest first."""
    from normform.sources.loader import load_datasets

    directory = directory or get_settings().datasets_path
    found = load_datasets(directory)

    if not found:
        console.print(f"[yellow]No datasets found in {directory}[/yellow]")
        return

    table = RichTable(show_header=True, header_style="bold")
    table.add_column("ID")
    table.add_column("Title")
    table.add_column("Difficulty")
    table.add_column("Raw Columns", justify="right")
    table.add_column("Stages")

    for dataset in found:
        stages = ", ".join(form.value for form in dataset.solutions)
        table.add_row(
            dataset.id,
            dataset.title,
            dataset.difficulty or "-",
            str(len(dataset.raw_data.columns)),
            stages or "-",
        )

    console.print(table)


@app.command()
def preview(
    dataset_path: DatasetArgument,
    work_path: WorkArgument,
    form: FormOption = NormalForm.FIRST,
    table_name: Annotated[
        str | None,
        typer.Option("--table", "-t", help="Only preview this table"),
    ] = None,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-l", min=1, help="Maximum rows shown per table"),
    ] = None,
) -> None:
    """Show the rows each table of a stage would contain."""
    from normform.generation.generator import generate_table_data
    from normform.naming.resolver import normalize_name
    from normform.sources.loader import load_dataset, load_work
    from normform.stages import stage_sources

    dataset = _unwrap(load_dataset(dataset_path))
    work = _unwrap(load_work(work_path))
    limit = limit or get_settings().preview_row_limit

    tables: list[TableDefinition] = list(work.get(form) or [])
    if table_name:
        tables = [t for t in tables if normalize_name(t.name) == normalize_name(table_name)]

    if not tables:
        console.print(f"[yellow]No {form.value} tables to preview[/yellow]")
        return

    sources = stage_sources(form, work)

    with log_context(dataset=dataset.id, form=form.value):
        for table in tables:
            console.print(f"\n[bold]{table.name}[/bold]")
            if not table.is_previewable:
                console.print(
                    "[yellow]Incomplete mapping - every column needs a mapping type "
                    "and at least one source column[/yellow]"
                )
                continue

            rows = generate_table_data(
                table, dataset.raw_data, sources.previous, sources.previous_previous
            )

            rich_table = RichTable(show_header=True, header_style="bold")
            for column in table.columns:
                rich_table.add_column(_header(column.name, column.type))
            for row in rows[:limit]:
                rich_table.add_row(*(_cell(value) for value in row))

            console.print(rich_table)
            shown = min(len(rows), limit)
            console.print(f"{shown} of {len(rows)} rows")


@app.command()
def check(
    dataset_path: DatasetArgument,
    work_path: WorkArgument,
    form: FormOption = NormalForm.FIRST,
) -> None:
    """Check a stage's tables against the reference solution.

    Exits with status 1 when the schema is not valid.
    """
    from normform.sources.loader import load_dataset, load_work
    from normform.stages import check_answer

    dataset = _unwrap(load_dataset(dataset_path))
    work = _unwrap(load_work(work_path))

    solution = dataset.solution_for(form)
    if solution is None:
        console.print(f"[red]Dataset {dataset.id} has no {form.value} solution[/red]")
        raise typer.Exit(1)

    with log_context(dataset=dataset.id, form=form.value):
        report = check_answer(
            list(work.get(form) or []),
            solution,
            missing_table_tolerance=get_settings().missing_table_tolerance,
        )

    if report.table_details:
        details = RichTable(show_header=True, header_style="bold")
        details.add_column("Table")
        details.add_column("Matched")
        details.add_column("Status")
        details.add_column("Errors", justify="right")
        details.add_column("Warnings", justify="right")
        for detail in report.table_details:
            status = "[green]ok[/green]" if detail.is_valid else "[red]failed[/red]"
            details.add_row(
                detail.table_name,
                detail.matched_solution_table or "-",
                status,
                str(len(detail.errors)),
                str(len(detail.warnings)),
            )
        console.print(details)

    for error in report.errors:
        console.print(f"[red]✗ {error}[/red]")
    for warning in report.warnings:
        console.print(f"[yellow]! {warning}[/yellow]")

    if report.is_valid:
        console.print(f"[green]{form.value} solution is correct[/green]")
        raise typer.Exit(0)

    console.print(f"[red]{form.value} solution has {len(report.errors)} error(s)[/red]")
    raise typer.Exit(1)


@app.command()
def stats(
    dataset_path: DatasetArgument,
    work_path: WorkArgument,
    form: FormOption = NormalForm.FIRST,
) -> None:
    """Show which source columns a stage's tables already use."""
    from normform.generation.stats import (
        get_available_source_columns,
        get_mapped_columns,
        get_mapping_stats,
        is_column_mapped,
    )
    from normform.sources.loader import load_dataset, load_work
    from normform.stages import stage_sources

    dataset = _unwrap(load_dataset(dataset_path))
    work = _unwrap(load_work(work_path))
    tables = list(work.get(form) or [])

    if form is NormalForm.FIRST:
        summary = get_mapping_stats(tables, dataset.raw_data.columns)
        console.print(
            f"{summary.mapped} of {summary.total} columns mapped ({summary.percentage}%)"
        )
        if summary.unmapped_columns:
            console.print(f"[yellow]Unmapped: {', '.join(summary.unmapped_columns)}[/yellow]")
        return

    sources = stage_sources(form, work)
    available = get_available_source_columns(dataset.raw_data, sources.previous)
    if not available:
        console.print(f"[yellow]No saved tables from the stage before {form.value}[/yellow]")
        return

    mapped = get_mapped_columns(tables)
    table = RichTable(show_header=True, header_style="bold")
    table.add_column("Source")
    table.add_column("Used")
    for reference in available:
        used = is_column_mapped(reference, mapped)
        table.add_row(reference, "[green]yes[/green]" if used else "-")
    console.print(table)


@app.command()
def qualify(
    dataset_path: DatasetArgument,
    write: Annotated[
        bool,
        typer.Option("--write", "-w", help="Write the rewritten dataset back to its file"),
    ] = False,
) -> None:
    """Rewrite 2NF/3NF solution sources as qualified upstream references."""
    from normform.authoring import qualify_solution_sources
    from normform.sources.loader import load_dataset

    dataset = _unwrap(load_dataset(dataset_path))
    updated, changed = qualify_solution_sources(dataset)

    if not changed:
        console.print(f"{dataset_path.name}: already qualified")
        return

    if not write:
        console.print(f"{dataset_path.name}: would be updated (use --write to save)")
        return

    # Only keys present in the authored file are written back
    document = updated.model_dump(mode="json", by_alias=True, exclude_unset=True)
    if dataset_path.suffix.lower() == ".json":
        dataset_path.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")
    else:
        dataset_path.write_text(
            yaml.safe_dump(document, sort_keys=False, allow_unicode=True), encoding="utf-8"
        )
    console.print(f"[green]Updated {dataset_path.name}[/green]")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
