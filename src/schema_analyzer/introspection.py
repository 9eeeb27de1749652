"""
Schema introspection queries.

SchemaIntrospector runs the raw catalog queries and returns plain row dicts.
The analyzer treats it as an opaque data source; any query failure is raised
as IntrospectionError naming the query that failed.
"""

import logging
from typing import List, Sequence

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from schema_analyzer.exceptions import IntrospectionError
from schema_analyzer.remediation import quote_and_join, quote_identifier

# Column lists are aggregated in constraint order and referenced columns are
# matched by position_in_unique_constraint, so both lists stay positionally paired.
FOREIGN_KEYS_SQL = """
WITH fk_columns AS (
  SELECT rc.constraint_name,
    kcu.table_name,
    kcu.column_name,
    kcu.ordinal_position,
    ref.table_name AS referenced_table,
    ref.column_name AS referenced_column,
    rc.update_rule,
    rc.delete_rule
  FROM information_schema.referential_constraints rc
    INNER JOIN information_schema.key_column_usage kcu
      ON kcu.constraint_schema = rc.constraint_schema
      AND kcu.constraint_name = rc.constraint_name
    INNER JOIN information_schema.key_column_usage ref
      ON ref.constraint_schema = rc.unique_constraint_schema
      AND ref.constraint_name = rc.unique_constraint_name
      AND ref.ordinal_position = kcu.position_in_unique_constraint
)
SELECT constraint_name,
  table_name,
  array_agg(column_name ORDER BY ordinal_position) AS columns,
  referenced_table,
  array_agg(referenced_column ORDER BY ordinal_position) AS referenced_columns,
  update_rule,
  delete_rule
FROM fk_columns
GROUP BY constraint_name, table_name, referenced_table, update_rule, delete_rule
ORDER BY table_name, constraint_name
"""

ORPHAN_SQL = """
-- Rows of the owning table with every FK column set, joined with the referenced table
SELECT {select}
FROM (
  SELECT {columns} FROM {table}
  WHERE {columns_not_null}
) AS src
LEFT JOIN {referenced_table} AS ref
  ON {joins}
WHERE {referenced_columns_null}
"""

TABLE_SIZE_SQL = """
SELECT t.database_name,
  t.name AS table_name,
  sum((crdb_internal.range_stats(r.start_key) ->> 'key_bytes')::INT
    + (crdb_internal.range_stats(r.start_key) ->> 'val_bytes')::INT
    + coalesce((crdb_internal.range_stats(r.start_key) ->> 'range_key_bytes')::INT, 0)
    + coalesce((crdb_internal.range_stats(r.start_key) ->> 'range_val_bytes')::INT, 0)) AS logical_size_bytes
FROM crdb_internal.ranges_no_leases r
  LEFT OUTER JOIN "".crdb_internal.index_spans s ON s.start_key < r.end_key AND s.end_key > r.start_key
  LEFT OUTER JOIN "".crdb_internal.tables t ON s.descriptor_id = t.table_id
WHERE t.database_name = :database
GROUP BY t.database_name, t.name
"""

SHOW_TABLES_SQL = "SHOW TABLES FROM {database}"

ZONE_CONFIGS_SQL = """
WITH x AS (SHOW ALL ZONE CONFIGURATIONS)
SELECT target, raw_config_sql FROM x WHERE raw_config_sql IS NOT NULL
"""


def orphan_sql(table: str, columns: Sequence[str], referenced_table: str,
               referenced_columns: Sequence[str], count_only: bool = False) -> str:
    """
    Build the orphan detection query for one constraint.

    Rows with any NULL FK column are excluded (a NULL reference is unset, not
    dangling). The count and the row listing share the same predicate; only
    the select list differs.

    Args:
        table: Owning table
        columns: Local FK columns
        referenced_table: Referenced table
        referenced_columns: Referenced columns, paired with columns by position
        count_only: Select COUNT(*) instead of the local column values

    Returns:
        SQL text
    """
    if len(columns) == 0 or len(columns) != len(referenced_columns):
        raise ValueError("columns and referenced_columns must be non-empty and of equal length")

    if count_only:
        select = 'COUNT(*)'
    else:
        select = ', '.join(f"src.{quote_identifier(col)}" for col in columns)

    return ORPHAN_SQL.format(
        columns=quote_and_join(columns),
        table=quote_identifier(table),
        columns_not_null=' AND '.join(f"{quote_identifier(col)} IS NOT NULL" for col in columns),
        select=select,
        referenced_table=quote_identifier(referenced_table),
        joins=' AND '.join(
            f"src.{quote_identifier(col)} = ref.{quote_identifier(ref_col)}"
            for col, ref_col in zip(columns, referenced_columns)
        ),
        referenced_columns_null=' AND '.join(
            f"ref.{quote_identifier(ref_col)} IS NULL" for ref_col in referenced_columns
        ),
    )


class SchemaIntrospector:
    """Run catalog and orphan queries against a SQLAlchemy engine."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self.logger = logging.getLogger(__name__)

    def _fetch(self, query_name: str, sql, params: dict = None) -> list:
        self.logger.debug(f"{query_name}:\n{sql}")
        try:
            with self.engine.connect() as conn:
                if isinstance(sql, str):
                    result = conn.exec_driver_sql(sql)
                else:
                    result = conn.execute(sql, params or {})
                return result.fetchall()
        except SQLAlchemyError as e:
            raise IntrospectionError(query_name, e) from e

    def list_foreign_keys(self) -> List[dict]:
        """
        List every foreign key constraint, ordered by table then constraint name.

        Returns:
            List of dicts with keys constraint_name, table, columns,
            referenced_table, referenced_columns, update_rule, delete_rule
        """
        rows = self._fetch('foreign keys', FOREIGN_KEYS_SQL)
        return [
            {
                'constraint_name': row[0],
                'table': row[1],
                'columns': list(row[2] or []),
                'referenced_table': row[3],
                'referenced_columns': list(row[4] or []),
                'update_rule': row[5],
                'delete_rule': row[6],
            }
            for row in rows
        ]

    def count_orphans(self, table: str, columns: Sequence[str], referenced_table: str,
                      referenced_columns: Sequence[str]) -> int:
        sql = orphan_sql(table, columns, referenced_table, referenced_columns, count_only=True)
        rows = self._fetch(f"orphan count for {table}", sql)
        return int(rows[0][0]) if rows else 0

    def list_orphans(self, table: str, columns: Sequence[str], referenced_table: str,
                     referenced_columns: Sequence[str]) -> List[dict]:
        """
        List the FK column values of every orphaned row.

        Returns:
            List of dicts: {'columns': [...], 'values': [...]}
        """
        sql = orphan_sql(table, columns, referenced_table, referenced_columns)
        rows = self._fetch(f"orphan rows for {table}", sql)
        return [{'columns': list(columns), 'values': list(row)} for row in rows]

    def show_tables(self, database: str) -> List[dict]:
        """Rows of SHOW TABLES FROM <database>."""
        sql = SHOW_TABLES_SQL.format(database=quote_identifier(database))
        rows = self._fetch('show tables', sql)
        return [
            {
                'schema': row[0],
                'name': row[1],
                'type': row[2],
                'owner': row[3],
                'estimated_row_count': int(row[4] or 0),
                'locality': row[5],
            }
            for row in rows
        ]

    def table_sizes(self, database: str) -> List[dict]:
        """Logical size in bytes for every table in the database (slow)."""
        rows = self._fetch('table sizes', text(TABLE_SIZE_SQL), {'database': database})
        return [
            {'database': row[0], 'name': row[1], 'logical_size_bytes': int(row[2] or 0)}
            for row in rows
        ]

    def zone_configs(self) -> List[dict]:
        rows = self._fetch('zone configurations', ZONE_CONFIGS_SQL)
        return [{'target': row[0], 'raw_config_sql': row[1]} for row in rows]
