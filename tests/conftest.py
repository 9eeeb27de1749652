#-------------------------------------------------------------------------bh-
# pytest configuration and fixtures for schema analyzer tests
#-------------------------------------------------------------------------eh-

import pytest
import sys
from pathlib import Path

# Add project root and src to path for imports
PROJ_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJ_ROOT / 'src'))
sys.path.insert(0, str(PROJ_ROOT / 'tests'))

from fixtures.introspection import FakeIntrospector, fk_row
from fixtures.test_config import create_test_engine, run_script

from schema_analyzer.analyzer import FKAnalyzer
from schema_analyzer.models import FKConstraint


FIXTURES_DIR = Path(__file__).parent / 'fixtures'


@pytest.fixture
def sql_fixtures_dir():
    return FIXTURES_DIR / 'sql'


# Common constraint fixtures
@pytest.fixture
def region_fk():
    """Region restricted FK on orders(crdb_region, customer_id)."""
    return FKConstraint(
        name='orders_crdb_region_customer_id_fkey',
        table='orders',
        columns=('crdb_region', 'customer_id'),
        referenced_table='customers',
        referenced_columns=('crdb_region', 'id'),
    )


@pytest.fixture
def plain_fk():
    """Plain FK on orders(customer_id), same columns as region_fk without the region."""
    return FKConstraint(
        name='orders_customer_id_fkey',
        table='orders',
        columns=('customer_id',),
        referenced_table='customers',
        referenced_columns=('id',),
    )


@pytest.fixture
def fk_rows():
    """Introspection rows for a small multi-region schema."""
    return [
        fk_row('line_items_order_id_fkey', 'line_items', ['order_id'], 'orders', ['id'],
               delete_rule='CASCADE'),
        fk_row('orders_crdb_region_customer_id_fkey', 'orders', ['crdb_region', 'customer_id'],
               'customers', ['crdb_region', 'id']),
        fk_row('orders_customer_id_fkey', 'orders', ['customer_id'], 'customers', ['id']),
        fk_row('orders_crdb_region_store_id_fkey', 'orders', ['crdb_region', 'store_id'],
               'stores', ['crdb_region', 'id'], delete_rule='CASCADE'),
        fk_row('orders_store_id_fkey', 'orders', ['store_id'], 'stores', ['id'],
               delete_rule='CASCADE'),
    ]


@pytest.fixture
def fake_introspector(fk_rows):
    return FakeIntrospector(fk_rows=fk_rows)


@pytest.fixture
def analyzer(fake_introspector):
    return FKAnalyzer(fake_introspector, database='shop')


# SQLite database fixtures
@pytest.fixture
def engine(tmp_path):
    """File-backed SQLite engine, disposed after the test."""
    engine = create_test_engine(tmp_path / 'test.db')
    yield engine
    engine.dispose()


@pytest.fixture
def orphan_db(engine):
    """
    parent/child tables with a mix of valid, NULL and orphaned references.

    child rows:
        1 -> parent 1 (valid)
        2 -> NULL (not an orphan)
        3 -> parent 99 (orphan)
        4 -> parent 98 (orphan)
    """
    run_script(
        engine,
        'CREATE TABLE parent (id INTEGER PRIMARY KEY, name TEXT)',
        'CREATE TABLE child (id INTEGER PRIMARY KEY, parent_id INTEGER)',
        "INSERT INTO parent (id, name) VALUES (1, 'one'), (2, 'two')",
        'INSERT INTO child (id, parent_id) VALUES (1, 1), (2, NULL), (3, 99), (4, 98)',
    )
    return engine
