"""Table command classes."""

from cli.core.base import BaseAnalyzerCommand
from cli.core.utils import EXIT_SUCCESS
from cli.tables.display import display_tables


class TablesCommand(BaseAnalyzerCommand):
    """List tables of the selected database."""

    def execute(self, include_size: bool = False, include_fks: bool = False) -> int:
        try:
            tables = self.analyzer.tables(include_size=include_size, include_fks=include_fks)
            display_tables(self.ctx, tables, include_size=include_size, include_fks=include_fks)
            return EXIT_SUCCESS
        except Exception as e:
            return self.handle_exception(e)
