"""Display functions for foreign key commands."""

from typing import List, Tuple

from rich import box
from rich.table import Table

from cli.core.context import Context
from schema_analyzer.models import FKConstraint


def display_constraints(ctx: Context, constraints: List[FKConstraint]):
    """Display FK constraints as a table."""
    table = Table(box=box.SIMPLE)
    table.add_column("Table", style="green")
    table.add_column("Constraint")
    table.add_column("Columns")
    table.add_column("References")
    table.add_column("On Update")
    table.add_column("On Delete")
    table.add_column("Region", justify="center")

    for fk in constraints:
        table.add_row(
            fk.table,
            fk.name,
            ", ".join(fk.columns),
            f"{fk.referenced_table} ({', '.join(fk.referenced_columns)})",
            str(fk.update_rule),
            str(fk.delete_rule),
            "✓" if fk.region_restricted else "",
        )

    ctx.console.print(table)
    ctx.console.print(f"{len(constraints)} foreign key constraint(s)", style="dim")


def display_orphan_counts(ctx: Context, counts: List[Tuple[FKConstraint, int]]):
    """Display orphaned row counts per constraint."""
    table = Table(box=box.SIMPLE)
    table.add_column("Table", style="green")
    table.add_column("Constraint")
    table.add_column("References")
    table.add_column("Orphaned Rows", justify="right")

    for fk, count in counts:
        style = "bold red" if count else "dim"
        table.add_row(
            fk.table,
            fk.name,
            fk.referenced_table,
            f"[{style}]{count:,}[/]" if count else "[dim]-- NONE --[/]",
        )

    ctx.console.print(table)


def display_redundant_pairs(ctx: Context, pairs: List[Tuple[FKConstraint, FKConstraint]]):
    """Display redundant constraints next to the sibling that makes them redundant."""
    if not pairs:
        ctx.console.print("No redundant foreign key constraints found", style="green")
        return

    table = Table(box=box.SIMPLE)
    table.add_column("Table", style="green")
    table.add_column("Redundant Constraint", style="yellow")
    table.add_column("Redundant With")
    table.add_column("Columns")
    table.add_column("On Update")

    for fk, sibling in pairs:
        table.add_row(
            fk.table,
            fk.name,
            sibling.name,
            ", ".join(fk.columns),
            str(fk.update_rule),
        )

    ctx.console.print(table)
    ctx.console.print(f"{len(pairs)} redundant occurrence(s)", style="bold yellow")
