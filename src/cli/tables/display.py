"""Display functions for table commands."""

from typing import List

from rich import box
from rich.table import Table as RichTable

from cli.core.context import Context
from schema_analyzer.tables import Table, format_bytes


def display_tables(ctx: Context, tables: List[Table], include_size: bool = False,
                   include_fks: bool = False):
    """Display the table view, optionally with size and FK columns."""
    grid = RichTable(box=box.SIMPLE)
    grid.add_column("Database")
    grid.add_column("Table", style="green")
    grid.add_column("Locality")
    grid.add_column("Owner")
    grid.add_column("Rows", justify="right")
    if include_size:
        grid.add_column("Logical Size", justify="right")
        grid.add_column("Avg Row", justify="right")
    if include_fks:
        grid.add_column("FKs", justify="right")
        grid.add_column("Referenced By", justify="right")

    for table in tables:
        row = [
            table.database,
            table.name,
            table.locality,
            table.owner,
            f"{table.estimated_row_count:,}",
        ]
        if include_size:
            row += [format_bytes(table.logical_size_bytes), format_bytes(table.bytes_per_row)]
        if include_fks:
            row += [str(len(table.fks)), str(len(table.referenced_fks))]
        grid.add_row(*row)

    ctx.console.print(grid)

    summary = f"{len(tables)} table(s)"
    if include_size:
        total = sum(t.logical_size_bytes for t in tables)
        summary += f", {format_bytes(total)} total"
    ctx.console.print(summary, style="dim")
