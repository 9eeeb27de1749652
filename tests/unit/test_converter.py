"""
REGIONAL BY ROW to REGIONAL BY TABLE Converter Tests
"""

import pytest

from fixtures.introspection import FakeIntrospector
from schema_analyzer.analyzer import FKAnalyzer
from schema_analyzer.converter import FILE_END, FILE_START, RegionConverter, file_section, wrap_in_block
from schema_analyzer.script_parser import BLOCK_BEGIN, BLOCK_END, ScriptParser
from schema_analyzer.output import render_script

ZONES = [
    {'target': 'DATABASE shop',
     'raw_config_sql': "ALTER DATABASE shop CONFIGURE ZONE USING num_replicas = 5, num_voters = 3, "
                       "lease_preferences = '[[+region=us-west1]]'"},
    {'target': 'TABLE shop.public.orders',
     'raw_config_sql': "ALTER TABLE shop.public.orders CONFIGURE ZONE USING num_voters = 3, "
                       "lease_preferences = '[[+region=us-east1]]'"},
]


@pytest.fixture
def converter(fk_rows):
    introspector = FakeIntrospector(
        fk_rows=fk_rows,
        zones=ZONES,
        show_tables=[
            {'schema': 'public', 'name': 'orders', 'type': 'table', 'owner': 'root',
             'estimated_row_count': 10, 'locality': 'REGIONAL BY ROW'},
        ],
    )
    return RegionConverter(FKAnalyzer(introspector, database='shop'))


def section(lines, name):
    start = lines.index(f"{FILE_START} {name}")
    end = lines.index(FILE_END, start)
    return lines[start + 1:end]


class TestHelpers:

    def test_wrap_in_block(self):
        assert wrap_in_block(['A', 'B']) == [BLOCK_BEGIN, 'A', 'B', BLOCK_END]

    def test_file_section(self):
        assert file_section('x.sql', ['A']) == ['-- FILE START x.sql', 'A', '-- FILE END']


class TestRbr2Rbt:

    def test_section_order(self, converter):
        lines = converter.rbr2rbt_statements('us-east1')
        starts = [line for line in lines if line.startswith(FILE_START)]
        assert starts == [
            f"{FILE_START} zoneconfig.sql",
            f"{FILE_START} fk.sql",
            f"{FILE_START} table_locality.sql",
            f"{FILE_START} change_crdb_region_type.sql",
            f"{FILE_START} zone_config_discard.sql",
        ]

    def test_zone_configs_only_for_other_regions(self, converter):
        zone_lines = section(converter.rbr2rbt_statements('us-east1'), 'zoneconfig.sql')
        statements = [line for line in zone_lines if not line.startswith('--')]
        assert statements == [
            "ALTER DATABASE shop CONFIGURE ZONE USING num_replicas=3, num_voters=3, "
            "constraints = '[+region=us-east1]', voter_constraints = '[+region=us-east1]', "
            "lease_preferences = '[[+region=us-east1]]'"
        ]

    def test_redundant_fk_is_only_dropped(self, converter):
        fk_lines = section(converter.rbr2rbt_statements('us-east1'), 'fk.sql')
        assert fk_lines[:4] == [
            BLOCK_BEGIN,
            '-- not replacing since this is a redundant FK',
            'ALTER TABLE "shop"."orders" DROP CONSTRAINT IF EXISTS "orders_crdb_region_customer_id_fkey"',
            BLOCK_END,
        ]

    def test_non_redundant_fk_is_replaced_then_dropped(self, converter):
        fk_lines = section(converter.rbr2rbt_statements('us-east1'), 'fk.sql')
        # orders_crdb_region_store_id_fkey deletes with CASCADE, so it is replaced
        assert fk_lines[4:] == [
            BLOCK_BEGIN,
            'ALTER TABLE "shop"."orders" ADD CONSTRAINT IF NOT EXISTS "orders_store_id_fkey" '
            'FOREIGN KEY ("store_id") REFERENCES "stores" ("id") ON UPDATE NO ACTION ON DELETE CASCADE',
            'ALTER TABLE "shop"."orders" DROP CONSTRAINT IF EXISTS "orders_crdb_region_store_id_fkey"',
            BLOCK_END,
        ]

    def test_per_table_statements(self, converter):
        lines = converter.rbr2rbt_statements('us-east1')
        assert 'ALTER TABLE "shop"."orders" SET LOCALITY REGIONAL BY TABLE IN PRIMARY REGION' \
            in section(lines, 'table_locality.sql')
        assert 'ALTER TABLE "shop"."orders" ALTER COLUMN "crdb_region" SET DATA TYPE STRING' \
            in section(lines, 'change_crdb_region_type.sql')
        assert 'ALTER TABLE "shop"."orders" CONFIGURE ZONE DISCARD' \
            in section(lines, 'zone_config_discard.sql')

    def test_script_parses_into_batches(self, converter):
        batches = ScriptParser().parse(render_script(converter.rbr2rbt_statements('us-east1')))
        assert batches
        assert all(batch for batch in batches)
        assert ['ALTER TABLE "shop"."orders" DROP CONSTRAINT IF EXISTS '
                '"orders_crdb_region_customer_id_fkey";'] in batches
