"""Base command classes for the schema analyzer CLI."""

from abc import ABC, abstractmethod

from rich.markup import escape

from cli.core.context import Context
from cli.core.utils import EXIT_ERROR


class BaseCommand(ABC):
    """Base class for all commands."""

    def __init__(self, ctx: Context):
        self.ctx = ctx
        self.console = ctx.console

    @abstractmethod
    def execute(self, **kwargs) -> int:
        """Execute command. Returns exit code."""
        pass

    def handle_exception(self, e: Exception) -> int:
        """Common error handling."""
        self.ctx.stderr_console.print(f"❌ Error: {escape(str(e))}", style="bold red")
        if self.ctx.verbose:
            import traceback
            self.ctx.stderr_console.print(traceback.format_exc(), style="dim")
        return EXIT_ERROR


class BaseAnalyzerCommand(BaseCommand):
    """Base for commands that read the schema."""

    @property
    def analyzer(self):
        return self.ctx.get_analyzer()
