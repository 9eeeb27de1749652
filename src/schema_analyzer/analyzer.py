"""
Foreign key analysis.

FKAnalyzer builds the constraint set from an introspection source and
derives redundancy relationships, orphaned rows and table summaries from it.
Introspection errors always propagate; no partial results are returned.
"""

import logging
from typing import List, Optional, Tuple

from schema_analyzer.config import AnalyzerConfig
from schema_analyzer.introspection import SchemaIntrospector
from schema_analyzer.models import REGION_COLUMN, FKConstraint, FKFilter, FKOrphan, group_by_table
from schema_analyzer.session import create_db_engine
from schema_analyzer.tables import Table, TableBuilder
from schema_analyzer.zoneconfig import ZoneConfig, parse_zone_config


class FKAnalyzer:
    """
    Analyze foreign key constraints of one database.

    The introspector is any object providing list_foreign_keys, count_orphans,
    list_orphans, show_tables, table_sizes and zone_configs (see
    SchemaIntrospector).

    Example:
        >>> analyzer = FKAnalyzer.from_config(AnalyzerConfig(db_url=url, database='shop'))
        >>> for fk in analyzer.redundants():
        ...     print(fk)
    """

    def __init__(self, introspector, database: str = '', region_column: str = REGION_COLUMN):
        self.introspector = introspector
        self.database = database
        self.region_column = region_column
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config: AnalyzerConfig) -> 'FKAnalyzer':
        engine = create_db_engine(config.db_url, read_only=True)
        return cls(SchemaIntrospector(engine), database=config.database,
                   region_column=config.region_column)

    def list_constraints(self, fk_filter: Optional[FKFilter] = None) -> List[FKConstraint]:
        """
        List FK constraints in introspection order (table, then constraint name).

        Args:
            fk_filter: Optional filter; None keeps every constraint

        Returns:
            List of FKConstraint
        """
        rows = self.introspector.list_foreign_keys()
        constraints = [FKConstraint.from_row(row, self.region_column) for row in rows]
        if fk_filter is None:
            return constraints
        return [fk for fk in constraints if fk_filter.matches(fk)]

    def orphaned_row_count(self, constraint: FKConstraint) -> int:
        """Number of rows whose non-NULL FK values have no referenced row."""
        return self.introspector.count_orphans(
            constraint.table, constraint.columns,
            constraint.referenced_table, constraint.referenced_columns)

    def orphaned_rows(self, constraint: FKConstraint) -> List[FKOrphan]:
        """Orphaned rows, using the same predicate as orphaned_row_count."""
        rows = self.introspector.list_orphans(
            constraint.table, constraint.columns,
            constraint.referenced_table, constraint.referenced_columns)
        return [FKOrphan(constraint=constraint, values=tuple(row['values'])) for row in rows]

    def redundant_pairs(self, constraints: Optional[List[FKConstraint]] = None
                        ) -> List[Tuple[FKConstraint, FKConstraint]]:
        """
        Every ordered (redundant, sibling) pair of constraints on the same table.

        Args:
            constraints: Constraint set to evaluate; fetched when omitted
        """
        if constraints is None:
            constraints = self.list_constraints()

        pairs = []
        for table, fks in group_by_table(constraints).items():
            for i, fk in enumerate(fks):
                for j, sibling in enumerate(fks):
                    if i != j and fk.is_redundant_with(sibling):
                        self.logger.debug(f"{table}: {fk.name} is redundant with {sibling.name}")
                        pairs.append((fk, sibling))
        return pairs

    def redundants(self, constraints: Optional[List[FKConstraint]] = None) -> List[FKConstraint]:
        """
        Constraints redundant with at least one sibling on the same table.

        A constraint redundant with several siblings is listed once per sibling;
        callers report occurrences, not distinct constraints.
        """
        return [fk for fk, _ in self.redundant_pairs(constraints)]

    def tables(self, include_size: bool = False, include_fks: bool = False) -> List[Table]:
        """
        Summaries of every table in the database.

        Args:
            include_size: Query logical table sizes (slow on large clusters)
            include_fks: Attach originating and referencing FK constraints

        Returns:
            Tables sorted by size desc, row count desc, name asc. Sizes are
            zero when include_size is False.
        """
        builder = TableBuilder(self.database)
        builder.add_show_tables(self.introspector.show_tables(self.database))
        if include_size:
            builder.add_sizes(self.introspector.table_sizes(self.database))
        if include_fks:
            builder.add_foreign_keys(self.list_constraints())
        return builder.build()

    def zone_configurations(self) -> List[ZoneConfig]:
        """Parsed zone configurations whose target belongs to this database."""
        zones = []
        for row in self.introspector.zone_configs():
            if f" {self.database}" not in row['target']:
                continue
            config = parse_zone_config(row['raw_config_sql'])
            config.target = row['target']
            zones.append(config)
        return zones
