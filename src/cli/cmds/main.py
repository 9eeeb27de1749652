#!/usr/bin/env python3
"""
Schema Analyzer CLI - foreign key analysis, region conversion and parallel execution.

A command-line tool for inspecting and remediating CockroachDB schemas.
"""

import sys
from functools import wraps

import click
from rich.markup import escape

from cli.convert.commands import Rbr2RbtCommand
from cli.core.context import Context
from cli.core.utils import EXIT_ERROR
from cli.execute.commands import ExecuteParallelCommand
from cli.fk.commands import FKListCommand, FKOrphanCommand, FKRedundantCommand
from cli.tables.commands import TablesCommand
from schema_analyzer.config import load_settings
from schema_analyzer.exceptions import ConfigError, FilterError
from schema_analyzer.logging_utils import setup_logging
from schema_analyzer.models import FKFilter


pass_context = click.make_pass_decorator(Context, ensure=True)
CONTEXT_SETTINGS = dict(help_option_names=['-h', '--help'])


def fk_filter_options(f):
    """Add --table/--constraint/--rule options and pass a parsed FKFilter as fk_filter."""
    @click.option('--table', '-t', 'tables', multiple=True, help='Only constraints on this table (repeatable)')
    @click.option('--constraint', '-c', 'constraints', multiple=True, help='Only this constraint name (repeatable)')
    @click.option('--rule', '-r', 'rules', multiple=True,
                  help="Only constraints with this rule, e.g. 'ON DELETE CASCADE' (repeatable)")
    @pass_context
    @wraps(f)
    def wrapper(ctx: Context, tables, constraints, rules, **kwargs):
        try:
            fk_filter = FKFilter.from_strings(tables, constraints, rules)
        except FilterError as e:
            ctx.stderr_console.print(f"❌ Error: {escape(str(e))}", style="bold red")
            sys.exit(EXIT_ERROR)
        return f(ctx, fk_filter=fk_filter, **kwargs)
    return wrapper


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option('--url', help='Connection URL (default: CRDB_URL from environment or .env)')
@click.option('--database', '-d', help='Database to analyze (default: CRDB_DATABASE)')
@click.option('--config', 'config_file', type=click.Path(dir_okay=False), help='YAML config file')
@click.option('--verbose', '-v', is_flag=True, help='Show detailed information and debug logging')
@click.option('--log-file', type=click.Path(dir_okay=False), help='Also write logs to this file')
@click.option('--echo-sql', is_flag=True, help='Log every SQL statement sent to the cluster')
@pass_context
def cli(ctx: Context, url, database, config_file, verbose, log_file, echo_sql):
    """Analyze and remediate CockroachDB schemas"""
    setup_logging(log_file=log_file, verbose=verbose, echo_sql=echo_sql)
    ctx.verbose = verbose

    try:
        ctx.settings = load_settings(config_file)
    except ConfigError as e:
        ctx.stderr_console.print(f"❌ Error: {escape(str(e))}", style="bold red")
        sys.exit(EXIT_ERROR)

    ctx.url = url or ctx.settings.url
    ctx.database = database or ctx.settings.database


# ========================================================================
# Analyze Commands
# ========================================================================

@cli.group()
def analyze():
    """Read-only schema analysis."""


@analyze.group()
def fk():
    """Foreign key constraint analysis."""


@fk.command('list')
@fk_filter_options
def fk_list(ctx: Context, fk_filter: FKFilter):
    """List foreign key constraints."""
    command = FKListCommand(ctx)
    exit_code = command.execute(fk_filter)
    sys.exit(exit_code)


@fk.command('orphan')
@click.option('--sql', '-s', is_flag=True, help='Emit DELETE statements for orphaned rows instead of counts')
@click.option('--write-to-file', '-f', is_flag=True, help='Write the statements to files instead of stdout')
@click.option('--output-dir', type=click.Path(file_okay=False), default=None,
              help='Directory for --write-to-file (default: output_dir setting, "tmp")')
@fk_filter_options
def fk_orphan(ctx: Context, fk_filter: FKFilter, sql, write_to_file, output_dir):
    """
    Find rows whose foreign key points at a missing parent row.

    Rows with a NULL in any FK column are never orphans.
    """
    command = FKOrphanCommand(ctx)
    exit_code = command.execute(
        fk_filter,
        sql=sql,
        write_to_file=write_to_file,
        output_dir=output_dir or ctx.settings.output_dir,
    )
    sys.exit(exit_code)


@fk.command('redundant')
@pass_context
def fk_redundant(ctx: Context):
    """List region restricted FKs duplicated by a plain FK on the same columns."""
    command = FKRedundantCommand(ctx)
    exit_code = command.execute()
    sys.exit(exit_code)


@analyze.command('tables')
@click.option('--include-size', '-s', is_flag=True, help='Include logical size (slower)')
@click.option('--include-foreign-keys', '-f', 'include_fks', is_flag=True, help='Include FK counts')
@pass_context
def tables(ctx: Context, include_size, include_fks):
    """List tables of the database."""
    command = TablesCommand(ctx)
    exit_code = command.execute(include_size=include_size, include_fks=include_fks)
    sys.exit(exit_code)


# ========================================================================
# Convert Commands
# ========================================================================

@cli.group()
def convert():
    """Generate schema conversion scripts (nothing is executed)."""


@convert.command('rbr2rbt')
@click.option('--primary-region', '-p', required=True, help='Region to home all tables in, e.g. us-east1')
@click.option('--write-to-file', '-f', is_flag=True, help='Write one file per step instead of stdout')
@click.option('--output-dir', type=click.Path(file_okay=False), default=None,
              help='Directory for --write-to-file (default: output_dir setting, "tmp")')
@pass_context
def rbr2rbt(ctx: Context, primary_region, write_to_file, output_dir):
    """Convert REGIONAL BY ROW tables to REGIONAL BY TABLE."""
    command = Rbr2RbtCommand(ctx)
    exit_code = command.execute(
        primary_region,
        write_to_file=write_to_file,
        output_dir=output_dir or ctx.settings.output_dir,
    )
    sys.exit(exit_code)


# ========================================================================
# Execute Commands
# ========================================================================

@cli.group()
def execute():
    """Run SQL scripts."""


@execute.command('parallel')
@click.option('--file', '-f', 'file', required=True, type=click.Path(exists=True, dir_okay=False),
              help='SQL script; "-- BEGIN BLOCK" / "-- END BLOCK" group statements into one batch')
@click.option('--concurrency', '-c', type=int, default=None, help='Number of workers (default: 5)')
@click.option('--pre-sql', '-p', default='', help='Statement to run on the connection before each batch')
@click.option('--until-zero-rows', '-u', is_flag=True, help='Repeat each statement until it affects no rows')
@click.option('--max-iterations', type=click.IntRange(min=1), default=None,
              help='Fail a statement still affecting rows after this many runs (with --until-zero-rows)')
@pass_context
def parallel(ctx: Context, file, concurrency, pre_sql, until_zero_rows, max_iterations):
    """
    Execute a script's batches concurrently.

    Failed batches are reported but do not change the exit code.
    """
    command = ExecuteParallelCommand(ctx)
    exit_code = command.execute(
        file,
        concurrency=concurrency or ctx.settings.concurrency,
        pre_sql=pre_sql,
        until_zero_rows=until_zero_rows,
        max_iterations=max_iterations,
    )
    sys.exit(exit_code)


if __name__ == '__main__':
    cli()
