"""
Remediation SQL generation.

Statements produced here are written into flat scripts that are executed
later by the batch executor, so values are rendered as SQL literals rather
than bound as parameters. Identifiers are always double-quoted.
"""

import datetime
import math
import uuid
from decimal import Decimal
from typing import Any, Sequence

from schema_analyzer.exceptions import RemediationError


def quote_identifier(name: str) -> str:
    """Quote an identifier, doubling embedded double quotes."""
    return '"' + str(name).replace('"', '""') + '"'


def quote_identifier_with_database(database: str, name: str) -> str:
    """Quote a database-qualified table name, e.g. "shop"."orders"."""
    if not database:
        return quote_identifier(name)
    return f"{quote_identifier(database)}.{quote_identifier(name)}"


def quote_and_join(names: Sequence[str], separator: str = ', ') -> str:
    return separator.join(quote_identifier(n) for n in names)


def quote_literal(value: Any) -> str:
    """
    Render a Python value as a SQL literal.

    Numbers and booleans are rendered bare, bytes as a hex bytea literal,
    temporal values in ISO format, everything else as a quoted string.
    NaN and infinities become typed string literals such as 'NaN'::FLOAT.
    """
    if value is None:
        return 'NULL'
    if isinstance(value, bool):
        return 'TRUE' if value else 'FALSE'
    if isinstance(value, float) and not math.isfinite(value):
        return _non_finite_literal(math.isnan(value), value < 0, 'FLOAT')
    if isinstance(value, Decimal) and not value.is_finite():
        return _non_finite_literal(value.is_nan(), value.is_signed(), 'DECIMAL')
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "'\\x" + bytes(value).hex() + "'"
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        value = value.isoformat()
    elif isinstance(value, uuid.UUID):
        value = str(value)
    return "'" + str(value).replace("'", "''") + "'"


def _non_finite_literal(nan: bool, negative: bool, sql_type: str) -> str:
    if nan:
        text = 'NaN'
    else:
        text = '-Infinity' if negative else 'Infinity'
    return f"'{text}'::{sql_type}"


def equality_conditions(columns: Sequence[str], values: Sequence[Any]) -> str:
    """Build '"a" = 1 AND "b" = 'x'' from positionally paired columns and values."""
    if len(columns) == 0 or len(columns) != len(values):
        raise RemediationError("columns and values must be non-empty and of equal length")
    return ' AND '.join(
        f"{quote_identifier(col)} = {quote_literal(val)}"
        for col, val in zip(columns, values)
    )


def delete_by_values_sql(table: str, columns: Sequence[str], values: Sequence[Any]) -> str:
    return f"DELETE FROM {quote_identifier(table)} WHERE {equality_conditions(columns, values)}"


def select_by_values_sql(table: str, columns: Sequence[str], values: Sequence[Any]) -> str:
    return (
        f"SELECT {quote_and_join(columns)} FROM {quote_identifier(table)} "
        f"WHERE {equality_conditions(columns, values)}"
    )


def delete_orphan_sql(orphan) -> str:
    """
    Build a guarded DELETE for an orphaned row.

    The NOT EXISTS clause re-checks the referenced table when the statement
    runs, so a row whose parent was (re)created after detection is left alone.

    Args:
        orphan: FKOrphan with the constraint and the row's local column values

    Returns:
        DELETE FROM "t" WHERE ... AND NOT EXISTS (SELECT ... FROM "ref" WHERE ...)

    Raises:
        RemediationError: if the orphan has no columns or a value count mismatch
    """
    delete = delete_by_values_sql(orphan.table, orphan.columns, orphan.values)
    guard = select_by_values_sql(orphan.referenced_table, orphan.referenced_columns, orphan.values)
    return f"{delete} AND NOT EXISTS ({guard})"
