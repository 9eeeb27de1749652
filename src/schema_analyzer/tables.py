"""
Table aggregate view.

A Table is assembled from three independent row sources keyed by table name:
SHOW TABLES output, logical size rows and FK membership. Sizes and row counts
stay zero when their source was not requested.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from schema_analyzer.models import FKConstraint


def format_bytes(num_bytes: int) -> str:
    """
    Human readable byte size using 1024 multiples.

    Example:
        >>> format_bytes(1536)
        '1.5 KB'
    """
    unit = 1024
    if num_bytes < unit:
        return f"{num_bytes} B"
    div, exp = unit, 0
    n = num_bytes // unit
    while n >= unit:
        div *= unit
        exp += 1
        n //= unit
    return f"{num_bytes / div:.1f} {'KMGTPE'[exp]}B"


@dataclass(frozen=True)
class Table:
    database: str
    name: str
    logical_size_bytes: int = 0
    owner: str = ''
    estimated_row_count: int = 0
    locality: str = ''
    fks: Tuple[FKConstraint, ...] = ()
    referenced_fks: Tuple[FKConstraint, ...] = ()

    @property
    def bytes_per_row(self) -> int:
        if self.estimated_row_count > 0:
            return self.logical_size_bytes // self.estimated_row_count
        return 0

    def __str__(self):
        return (
            f"Database: {self.database}, Name: {self.name}, Locality: {self.locality}, "
            f"Logical Size: {format_bytes(self.logical_size_bytes)}, "
            f"Row Count: {self.estimated_row_count}, "
            f"Avg Row Size: {format_bytes(self.bytes_per_row)}, "
            f"FKs: {len(self.fks)}, Referenced FKs: {len(self.referenced_fks)}"
        )


class TableBuilder:
    """
    Merge partial table sources into Table records.

    Sources are applied in a fixed order (show tables, sizes, FKs); a table
    seen by only one source is still emitted with the fields that source knows.
    build() sorts by size desc, row count desc, then name.
    """

    def __init__(self, database: str):
        self.database = database
        self._records: Dict[str, dict] = {}

    def _record(self, name: str) -> dict:
        if name not in self._records:
            self._records[name] = {
                'database': self.database,
                'name': name,
                'logical_size_bytes': 0,
                'owner': '',
                'estimated_row_count': 0,
                'locality': '',
                'fks': [],
                'referenced_fks': [],
            }
        return self._records[name]

    def add_show_tables(self, rows: Iterable[dict]) -> 'TableBuilder':
        for row in rows:
            record = self._record(row['name'])
            record['owner'] = row.get('owner') or ''
            record['estimated_row_count'] = int(row.get('estimated_row_count') or 0)
            record['locality'] = row.get('locality') or ''
        return self

    def add_sizes(self, rows: Iterable[dict]) -> 'TableBuilder':
        for row in rows:
            record = self._record(row['name'])
            record['logical_size_bytes'] = int(row.get('logical_size_bytes') or 0)
        return self

    def add_foreign_keys(self, constraints: Iterable[FKConstraint]) -> 'TableBuilder':
        for fk in constraints:
            self._record(fk.table)['fks'].append(fk)
            self._record(fk.referenced_table)['referenced_fks'].append(fk)
        return self

    def build(self) -> List[Table]:
        tables = [
            Table(
                database=r['database'],
                name=r['name'],
                logical_size_bytes=r['logical_size_bytes'],
                owner=r['owner'],
                estimated_row_count=r['estimated_row_count'],
                locality=r['locality'],
                fks=tuple(r['fks']),
                referenced_fks=tuple(r['referenced_fks']),
            )
            for r in self._records.values()
        ]
        tables.sort(key=lambda t: (-t.logical_size_bytes, -t.estimated_row_count, t.name))
        return tables


def build_tables(database: str, show_rows: Iterable[dict],
                 size_rows: Optional[Iterable[dict]] = None,
                 constraints: Optional[Iterable[FKConstraint]] = None) -> List[Table]:
    """Convenience wrapper around TableBuilder for the three sources."""
    builder = TableBuilder(database).add_show_tables(show_rows)
    if size_rows is not None:
        builder.add_sizes(size_rows)
    if constraints is not None:
        builder.add_foreign_keys(constraints)
    return builder.build()
