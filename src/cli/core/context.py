"""Context class for the schema analyzer CLI."""

import sys
from typing import Optional

from rich.console import Console

from schema_analyzer.analyzer import FKAnalyzer
from schema_analyzer.config import AnalyzerConfig, ConverterConfig, ExecutorConfig, Settings
from schema_analyzer.converter import RegionConverter
from schema_analyzer.executor import BatchExecutor


class Context:
    """Shared context for CLI commands."""

    def __init__(self):
        self.settings: Settings = Settings()
        self.url: Optional[str] = None
        self.database: Optional[str] = None
        self.verbose: bool = False
        self.console = Console()
        self.stderr_console = Console(file=sys.stderr)
        self._analyzer: Optional[FKAnalyzer] = None

    def get_analyzer(self) -> FKAnalyzer:
        """Analyzer for the selected database, created on first use."""
        if self._analyzer is None:
            self._analyzer = FKAnalyzer.from_config(AnalyzerConfig(
                db_url=self.url,
                database=self.database or '',
                region_column=self.settings.region_column,
            ))
        return self._analyzer

    def get_converter(self) -> RegionConverter:
        return RegionConverter.from_config(ConverterConfig(
            db_url=self.url,
            database=self.database or '',
            region_column=self.settings.region_column,
        ))

    def get_executor(self, config: ExecutorConfig) -> BatchExecutor:
        return BatchExecutor.from_config(config)
