"""
Database engine setup.

Engines are created explicitly from a connection URL; nothing is configured
at import time.
"""

import logging
import re

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

APPLICATION_NAME = '$ schema-analyzer'

# Session settings for analysis connections: low priority, follower reads
READ_ONLY_SETTINGS = (
    f"SET application_name = '{APPLICATION_NAME}'",
    "SET default_transaction_quality_of_service = background",
    "SET default_transaction_use_follower_reads = on",
)

_PG_SCHEME_RE = re.compile(r'^(postgres|postgresql|cockroachdb)(\+\w+)?://')


def normalize_url(url: str) -> str:
    """
    Map libpq-style URLs onto the CockroachDB dialect with the psycopg driver.

    Example:
        >>> normalize_url('postgresql://root@localhost:26257/defaultdb?sslmode=disable')
        'cockroachdb+psycopg://root@localhost:26257/defaultdb?sslmode=disable'

    Any other SQLAlchemy URL (e.g. sqlite) is returned unchanged.
    """
    match = _PG_SCHEME_RE.match(url)
    if not match:
        return url
    return 'cockroachdb+psycopg://' + url[match.end():]


def _apply_read_only_settings(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    try:
        for statement in READ_ONLY_SETTINGS:
            cursor.execute(statement)
    finally:
        cursor.close()
    # SET inside an open transaction is undone by the pool's rollback-on-return
    dbapi_connection.commit()


def create_db_engine(url: str, read_only: bool = False, pool_size: int = 5,
                     max_overflow: int = 10, pool_timeout: float = 30,
                     echo: bool = False) -> Engine:
    """
    Create a SQLAlchemy engine for the target cluster.

    Args:
        url: Connection URL (postgres:// style URLs are normalized)
        read_only: Apply low-priority follower-read session settings on every
                   new pooled connection (analysis and conversion)
        pool_size: Number of pooled connections
        max_overflow: Connections allowed beyond pool_size
        pool_timeout: Seconds to wait for a pooled connection
        echo: If True, log all SQL statements

    Returns:
        SQLAlchemy Engine instance
    """
    url = normalize_url(url)
    engine = create_engine(
        url,
        echo=echo,
        pool_pre_ping=True,  # Verify connections before using
        pool_recycle=3600,   # Recycle connections after 1 hour
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=pool_timeout,
    )
    if read_only:
        event.listen(engine, 'connect', _apply_read_only_settings)
    logger.debug(f"Created engine for {engine.url.render_as_string(hide_password=True)}")
    return engine
