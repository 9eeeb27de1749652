"""
REGIONAL BY ROW to REGIONAL BY TABLE conversion.

Generates (but never runs) a script that moves a multi-region database's
REGIONAL BY ROW tables into the primary region. The output is a list of lines:
statements, "-- BEGIN BLOCK" / "-- END BLOCK" batch markers for the parallel
executor and "-- FILE START name" / "-- FILE END" markers used to split the
script into per-topic files.
"""

import logging
from typing import List

from schema_analyzer.analyzer import FKAnalyzer
from schema_analyzer.config import AnalyzerConfig, ConverterConfig
from schema_analyzer.models import FKConstraint
from schema_analyzer.remediation import (
    quote_and_join,
    quote_identifier,
    quote_identifier_with_database,
)
from schema_analyzer.script_parser import BLOCK_BEGIN, BLOCK_END
from schema_analyzer.tables import Table

FILE_START = '-- FILE START'
FILE_END = '-- FILE END'


def wrap_in_block(statements: List[str]) -> List[str]:
    """Wrap statements in block markers so they run as one batch."""
    return [BLOCK_BEGIN, *statements, BLOCK_END]


def file_section(name: str, lines: List[str]) -> List[str]:
    return [f"{FILE_START} {name}", *lines, FILE_END]


class RegionConverter:
    """Build RBR to RBT conversion scripts from the live schema."""

    def __init__(self, analyzer: FKAnalyzer, database: str = ''):
        self.analyzer = analyzer
        self.database = database or analyzer.database
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config: ConverterConfig) -> 'RegionConverter':
        analyzer = FKAnalyzer.from_config(AnalyzerConfig(
            db_url=config.db_url,
            database=config.database,
            region_column=config.region_column,
        ))
        return cls(analyzer, database=config.database)

    @property
    def region_column(self) -> str:
        return self.analyzer.region_column

    def rbr2rbt_statements(self, primary_region: str) -> List[str]:
        """
        Generate the full conversion script.

        Sections, in order: zoneconfig.sql, fk.sql, table_locality.sql,
        change_crdb_region_type.sql, zone_config_discard.sql.

        Args:
            primary_region: Region all data should be homed in, e.g. 'us-east1'
        """
        lines = []
        lines.extend(file_section('zoneconfig.sql', self.zone_config_statements(primary_region)))

        tables = self.analyzer.tables(include_size=False, include_fks=True)
        self.logger.info(f"Converting {len(tables)} table(s) to REGIONAL BY TABLE in {primary_region}")

        fk_lines = []
        for table in tables:
            fk_lines.extend(self.fk_statements(table))
        lines.extend(file_section('fk.sql', fk_lines))

        lines.extend(file_section('table_locality.sql', [
            line for table in tables for line in wrap_in_block([self.locality_sql(table)])
        ]))
        lines.extend(file_section('change_crdb_region_type.sql', [
            line for table in tables for line in wrap_in_block(self.region_type_statements(table))
        ]))
        lines.extend(file_section('zone_config_discard.sql', [
            line for table in tables for line in wrap_in_block([
                f"ALTER TABLE {self._table_name(table)} CONFIGURE ZONE DISCARD"
            ])
        ]))
        return lines

    def zone_config_statements(self, primary_region: str) -> List[str]:
        """
        Pin every zone whose first lease preference is elsewhere to the primary region.

        Moving all replicas to one region makes FK checks during the
        conversion local.
        """
        lines = []
        target_pref = f"region={primary_region}"
        for zc in self.analyzer.zone_configurations():
            if zc.lease_preferences and zc.lease_preferences[0].value != target_pref:
                lines.extend(wrap_in_block([
                    f"ALTER {zc.target} CONFIGURE ZONE USING "
                    f"num_replicas={zc.num_voters}, num_voters={zc.num_voters}, "
                    f"constraints = '[+region={primary_region}]', "
                    f"voter_constraints = '[+region={primary_region}]', "
                    f"lease_preferences = '[[+region={primary_region}]]'"
                ]))
        return lines

    def fk_statements(self, table: Table) -> List[str]:
        """
        Replace each region restricted FK on a table.

        A redundant region restricted FK is dropped only; otherwise an
        equivalent FK without the region column is added first and the
        original dropped after it, in one block.
        """
        lines = []
        for i, fk in enumerate(table.fks):
            if not fk.region_restricted:
                continue

            statements = []
            redundant = any(
                fk.is_redundant_with(other)
                for j, other in enumerate(table.fks) if i != j
            )
            if redundant:
                statements.append("-- not replacing since this is a redundant FK")
            else:
                statements.append(self.add_fk_without_region_sql(fk))

            statements.append(
                f"ALTER TABLE {quote_identifier_with_database(self.database, fk.table)} "
                f"DROP CONSTRAINT IF EXISTS {quote_identifier(fk.name)}"
            )
            lines.extend(wrap_in_block(statements))
        return lines

    def add_fk_without_region_sql(self, fk: FKConstraint) -> str:
        return (
            f"ALTER TABLE {quote_identifier_with_database(self.database, fk.table)} "
            f"ADD CONSTRAINT IF NOT EXISTS {quote_identifier(fk.name_without_region())} "
            f"FOREIGN KEY ({quote_and_join(fk.columns_no_region)}) "
            f"REFERENCES {quote_identifier(fk.referenced_table)} ({quote_and_join(fk.referenced_columns_no_region)}) "
            f"ON UPDATE {fk.update_rule} ON DELETE {fk.delete_rule}"
        )

    def locality_sql(self, table: Table) -> str:
        return f"ALTER TABLE {self._table_name(table)} SET LOCALITY REGIONAL BY TABLE IN PRIMARY REGION"

    def region_type_statements(self, table: Table) -> List[str]:
        """Turn the region column into a plain string so regions can be dropped later."""
        name = self._table_name(table)
        column = quote_identifier(self.region_column)
        return [
            f"ALTER TABLE {name} ALTER COLUMN {column} SET DATA TYPE STRING",
            f"ALTER TABLE {name} ALTER COLUMN {column} "
            f"SET DEFAULT default_to_database_primary_region(gateway_region())::STRING",
        ]

    def _table_name(self, table: Table) -> str:
        return quote_identifier_with_database(table.database or self.database, table.name)
