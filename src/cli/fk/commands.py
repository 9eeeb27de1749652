"""Foreign key command classes."""

import click
from rich.progress import track

from cli.core.base import BaseAnalyzerCommand
from cli.core.utils import EXIT_SUCCESS
from cli.fk.display import display_constraints, display_orphan_counts, display_redundant_pairs
from schema_analyzer.converter import file_section
from schema_analyzer.models import FKFilter
from schema_analyzer.output import render_script, write_script_files


class FKListCommand(BaseAnalyzerCommand):
    """List FK constraints matching a filter."""

    def execute(self, fk_filter: FKFilter = None) -> int:
        try:
            constraints = self.analyzer.list_constraints(fk_filter)
            display_constraints(self.ctx, constraints)
            return EXIT_SUCCESS
        except Exception as e:
            return self.handle_exception(e)


class FKOrphanCommand(BaseAnalyzerCommand):
    """Count orphaned rows, or emit guarded DELETE statements for them."""

    def execute(self, fk_filter: FKFilter = None, sql: bool = False,
                write_to_file: bool = False, output_dir: str = None) -> int:
        try:
            constraints = self.analyzer.list_constraints(fk_filter)
            self.ctx.stderr_console.print(f"Checking {len(constraints):,} constraint(s) for orphaned rows")

            if not sql:
                counts = [
                    (fk, self.analyzer.orphaned_row_count(fk))
                    for fk in track(constraints, description=" --> counting orphans...",
                                    console=self.ctx.stderr_console)
                ]
                display_orphan_counts(self.ctx, counts)
                total = sum(count for _, count in counts)
                style = "bold red" if total else "green"
                self.console.print(f"{total:,} orphaned row(s) found", style=style)
                return EXIT_SUCCESS

            lines = []
            total = 0
            for fk in track(constraints, description=" --> collecting orphans...",
                            console=self.ctx.stderr_console):
                orphans = self.analyzer.orphaned_rows(fk)
                if not orphans:
                    continue
                total += len(orphans)
                self.ctx.stderr_console.print(f"  {fk.name}: {len(orphans):,} orphaned row(s)", style="yellow")
                lines.extend(file_section(f"orphans_{fk.name}.sql", [o.sql() for o in orphans]))

            self.ctx.stderr_console.print(f"{total:,} orphaned row(s) found",
                                          style="bold red" if total else "green")

            if write_to_file:
                for path in write_script_files(lines, output_dir):
                    self.ctx.stderr_console.print(f"Wrote {path}")
            elif lines:
                click.echo(render_script(lines), nl=False)

            return EXIT_SUCCESS
        except Exception as e:
            return self.handle_exception(e)


class FKRedundantCommand(BaseAnalyzerCommand):
    """List region restricted constraints made redundant by a sibling constraint."""

    def execute(self) -> int:
        try:
            pairs = self.analyzer.redundant_pairs()
            display_redundant_pairs(self.ctx, pairs)
            return EXIT_SUCCESS
        except Exception as e:
            return self.handle_exception(e)
