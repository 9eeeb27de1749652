"""
Engine Setup Tests
"""

import pytest

from schema_analyzer.session import READ_ONLY_SETTINGS, create_db_engine, normalize_url


@pytest.mark.parametrize('url,expected', [
    ('postgresql://root@localhost:26257/shop?sslmode=disable',
     'cockroachdb+psycopg://root@localhost:26257/shop?sslmode=disable'),
    ('postgres://u:p@h/db', 'cockroachdb+psycopg://u:p@h/db'),
    ('postgresql+psycopg2://u@h/db', 'cockroachdb+psycopg://u@h/db'),
    ('cockroachdb://u@h/db', 'cockroachdb+psycopg://u@h/db'),
    ('sqlite:///tmp/x.db', 'sqlite:///tmp/x.db'),
])
def test_normalize_url(url, expected):
    assert normalize_url(url) == expected


def test_read_only_settings():
    assert any('application_name' in s for s in READ_ONLY_SETTINGS)
    assert any('follower_reads' in s for s in READ_ONLY_SETTINGS)


def test_create_engine_pool_size(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'x.db'}", pool_size=7, max_overflow=0)
    try:
        assert engine.pool.size() == 7
        with engine.connect() as conn:
            assert conn.exec_driver_sql('SELECT 1').scalar() == 1
    finally:
        engine.dispose()
