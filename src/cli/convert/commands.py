"""Conversion command classes."""

import click

from cli.core.base import BaseCommand
from cli.core.utils import EXIT_SUCCESS
from schema_analyzer.output import render_script, write_script_files


class Rbr2RbtCommand(BaseCommand):
    """Generate the REGIONAL BY ROW to REGIONAL BY TABLE conversion script."""

    def execute(self, primary_region: str, write_to_file: bool = False,
                output_dir: str = None) -> int:
        try:
            converter = self.ctx.get_converter()
            lines = converter.rbr2rbt_statements(primary_region)

            if write_to_file:
                for path in write_script_files(lines, output_dir):
                    self.ctx.stderr_console.print(f"Wrote {path}")
            else:
                click.echo(render_script(lines), nl=False)
            return EXIT_SUCCESS
        except Exception as e:
            return self.handle_exception(e)
