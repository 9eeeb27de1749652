"""Parallel execution command classes."""

from rich import box
from rich.markup import escape
from rich.table import Table

from cli.core.base import BaseCommand
from cli.core.utils import EXIT_SUCCESS
from schema_analyzer.config import ExecutorConfig


class ExecuteParallelCommand(BaseCommand):
    """Run a batched SQL script across a pool of workers."""

    def execute(self, file: str, concurrency: int, pre_sql: str = '',
                until_zero_rows: bool = False, max_iterations: int = None) -> int:
        try:
            config = ExecutorConfig(
                db_url=self.ctx.url or '',
                database=self.ctx.database or '',
                concurrency=concurrency,
                pre_sql=pre_sql or '',
                until_zero_rows=until_zero_rows,
                max_iterations=max_iterations,
            )
            executor = self.ctx.get_executor(config)
            report = executor.execute_file(file)
        except Exception as e:
            return self.handle_exception(e)

        # Failed batches are reported, not turned into a failing exit code
        if report.failed:
            table = Table(title="Failed Batches", box=box.SIMPLE)
            table.add_column("Batch", justify="right")
            table.add_column("Worker", justify="right")
            table.add_column("Error", style="red")
            for result in report.failed:
                table.add_row(str(result.index + 1), str(result.worker_id), escape(result.error or ""))
            self.ctx.stderr_console.print(table)

        style = "green" if report.ok else "bold yellow"
        self.ctx.stderr_console.print(report.summary(), style=style)
        return EXIT_SUCCESS
