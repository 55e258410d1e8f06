from __future__ import annotations

import sys
from typing import TYPE_CHECKING

import polars as pl
import rich.console as console_
import rich.table as table_
from loguru import logger

if TYPE_CHECKING:
    from retailnorm.manifest import TableMetadata


console = console_.Console()


def setup_logging(verbose: bool = False) -> None:
    """
    Configure loguru logging for CLI.

    Sets up colored stderr output with configurable verbosity.
    Should be called once at CLI entry point.

    Args:
        verbose: Enable DEBUG level logging. Defaults to False (INFO level).
    """
    logger.remove()  # remove default handler

    level = "DEBUG" if verbose else "INFO"

    logger.add(
        sys.stderr,
        format="<level>{level: <8}</level> | {message}",
        level=level,
        colorize=True,
    )


def print_write_results(results: dict[str, TableMetadata]) -> None:
    """
    Display written tables in a formatted table.

    Args:
        results: Mapping of table names to the metadata of what was written
    """
    table = table_.Table(title="Normalized Tables")
    table.add_column("Table", style="cyan")
    table.add_column("Rows", justify="right")
    table.add_column("Path", style="green")

    for name, meta in results.items():
        table.add_row(name, f"{meta.row_count:,}", meta.path)

    console.print(table)


def print_success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    console.print(f"[red]✗[/red] {message}")


def print_warning(message: str) -> None:
    console.print(f"[yellow]![/yellow] {message}")


def print_table_preview(table_name: str, df: pl.DataFrame, max_rows: int = 5) -> None:
    """
    Display a preview of a normalized table.

    Shows first N rows in a formatted table along with total row count.

    Args:
        table_name: Name of the table being previewed
        df: Table data
        max_rows: Number of rows to display. Defaults to 5.
    """
    table = table_.Table(title=f"Preview: {table_name}", title_style="cyan")

    for col_name in df.columns:
        table.add_column(col_name, style="dim")

    for row in df.head(max_rows).iter_rows():
        table.add_row(*[str(v) for v in row])

    console.print(table)
    console.print(f"[dim]{len(df):,} rows total[/dim]\n")


def print_store_summary(metadata_list: list[TableMetadata]) -> None:
    """
    Display a summary of all stored tables.

    Args:
        metadata_list: List of TableMetadata objects
    """
    table = table_.Table(title="Normalized Store")
    table.add_column("Table", style="cyan")
    table.add_column("Primary Key", style="green")
    table.add_column("Rows", justify="right")
    table.add_column("Columns", justify="right")
    table.add_column("Last Updated", style="dim")

    for meta in sorted(metadata_list, key=lambda m: m.name):
        table.add_row(
            meta.name,
            meta.primary_key,
            f"{meta.row_count:,}",
            str(len(meta.columns)),
            meta.last_updated[:19] if meta.last_updated else "-",
        )

    console.print(table)
    console.print(f"\n[dim]{len(metadata_list)} tables total[/dim]")
