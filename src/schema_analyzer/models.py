"""
Foreign key constraint model.

Value types for FK constraints, constraint filters and orphan candidates.
Everything here is pure data plus predicate logic; no database access.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional, Tuple

from schema_analyzer.exceptions import ConstraintError, FilterError
from schema_analyzer.remediation import delete_orphan_sql

# Hidden partition column added to REGIONAL BY ROW tables
REGION_COLUMN = 'crdb_region'


class Rule(Enum):
    """Referential action for ON UPDATE / ON DELETE."""

    NO_ACTION = 'NO ACTION'
    CASCADE = 'CASCADE'
    SET_NULL = 'SET NULL'
    SET_DEFAULT = 'SET DEFAULT'
    RESTRICT = 'RESTRICT'

    def __str__(self):
        return self.value

    @classmethod
    def parse(cls, text: str) -> 'Rule':
        """
        Parse rule text as reported by information_schema.

        Whitespace and case are normalized, so ' no  action ' parses as NO ACTION.

        Raises:
            ValueError: if the text names no known rule
        """
        normalized = ' '.join(str(text or '').upper().split())
        for rule in cls:
            if rule.value == normalized:
                return rule
        raise ValueError(f"invalid rule: {text!r}")


class RuleDirection(Enum):
    """Which referential action a filter rule applies to."""

    UPDATE = 'UPDATE'
    DELETE = 'DELETE'

    def __str__(self):
        return self.value


def strip_region(columns: Iterable[str], referenced_columns: Iterable[str],
                 region_column: str = REGION_COLUMN) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    """
    Remove the region column from a pair of FK column lists.

    Columns are removed pairwise (position i of the local list together with
    position i of the referenced list) so the remaining lists stay aligned.
    """
    pairs = [
        (col, ref) for col, ref in zip(columns, referenced_columns)
        if col != region_column
    ]
    return tuple(col for col, _ in pairs), tuple(ref for _, ref in pairs)


@dataclass(frozen=True)
class FKConstraint:
    """
    A single foreign key constraint.

    Columns and referenced_columns are positionally paired: columns[i]
    references referenced_columns[i]. Order is never changed after construction.
    """

    name: str
    table: str
    columns: Tuple[str, ...]
    referenced_table: str
    referenced_columns: Tuple[str, ...]
    update_rule: Rule = Rule.NO_ACTION
    delete_rule: Rule = Rule.NO_ACTION
    region_column: str = REGION_COLUMN

    region_restricted: bool = field(init=False)
    columns_no_region: Tuple[str, ...] = field(init=False)
    referenced_columns_no_region: Tuple[str, ...] = field(init=False)

    def __post_init__(self):
        columns = tuple(self.columns)
        referenced_columns = tuple(self.referenced_columns)
        if len(columns) != len(referenced_columns):
            raise ConstraintError(
                f"constraint {self.name} on {self.table} has {len(columns)} column(s) "
                f"but {len(referenced_columns)} referenced column(s)"
            )

        # frozen dataclass: derived attributes have to go through object.__setattr__
        object.__setattr__(self, 'columns', columns)
        object.__setattr__(self, 'referenced_columns', referenced_columns)
        object.__setattr__(self, 'update_rule', _coerce_rule(self.update_rule, self.name))
        object.__setattr__(self, 'delete_rule', _coerce_rule(self.delete_rule, self.name))

        no_region, referenced_no_region = strip_region(columns, referenced_columns, self.region_column)
        object.__setattr__(self, 'region_restricted', self.region_column in columns)
        object.__setattr__(self, 'columns_no_region', no_region)
        object.__setattr__(self, 'referenced_columns_no_region', referenced_no_region)

    @classmethod
    def from_row(cls, row: dict, region_column: str = REGION_COLUMN) -> 'FKConstraint':
        """
        Build a constraint from an introspection row.

        Args:
            row: Dict with keys constraint_name, table, columns, referenced_table,
                 referenced_columns, update_rule, delete_rule

        Raises:
            ConstraintError: on mismatched column lists or unknown rule text
        """
        return cls(
            name=row['constraint_name'],
            table=row['table'],
            columns=tuple(row['columns'] or ()),
            referenced_table=row['referenced_table'],
            referenced_columns=tuple(row['referenced_columns'] or ()),
            update_rule=row['update_rule'],
            delete_rule=row['delete_rule'],
            region_column=region_column,
        )

    def __str__(self):
        return (
            f"{self.table}: CONSTRAINT {self.name} FOREIGN KEY ({', '.join(self.columns)}) "
            f"REFERENCES {self.referenced_table} ({', '.join(self.referenced_columns)}) "
            f"ON UPDATE {self.update_rule} ON DELETE {self.delete_rule}"
        )

    def name_without_region(self) -> str:
        """Name for the replacement constraint that no longer includes the region column."""
        return f"{self.table}_{'_'.join(self.columns_no_region)}_fkey"

    def is_redundant_with(self, other: 'FKConstraint') -> bool:
        """
        Determine whether this constraint is redundant with another constraint.

        This is a deliberately narrow case: a region restricted constraint with a
        NO ACTION delete rule is redundant when a constraint on the same table
        enforces the same (non-region) columns without the region column and with
        the same update rule. The relation is not symmetric and never reflexive.
        """
        # Same table, same columns once the region column is ignored
        if self.table != other.table or self.columns_no_region != other.columns_no_region:
            return False

        # Only a region restricted constraint can be made redundant by a non-restricted one
        if not self.region_restricted or other.region_restricted:
            return False

        if self.update_rule != other.update_rule:
            return False

        return self.delete_rule == Rule.NO_ACTION


def _coerce_rule(value: Any, constraint_name: str) -> Rule:
    if isinstance(value, Rule):
        return value
    try:
        return Rule.parse(value)
    except ValueError as e:
        raise ConstraintError(f"constraint {constraint_name}: {e}") from e


# "[ON] UPDATE|DELETE <rule>", e.g. "ON DELETE CASCADE" or "update no action"
_FILTER_RULE_RE = re.compile(r'^\s*(?:ON\s+)?(UPDATE|DELETE)\s+(.+?)\s*$', re.IGNORECASE)


@dataclass(frozen=True)
class FKFilterRule:
    """A (direction, rule) pair, e.g. DELETE CASCADE."""

    direction: RuleDirection
    rule: Rule

    @classmethod
    def parse(cls, text: str) -> 'FKFilterRule':
        """
        Parse a filter rule token such as 'ON DELETE CASCADE'.

        Raises:
            FilterError: if the direction or rule cannot be recognized
        """
        match = _FILTER_RULE_RE.match(text or '')
        if not match:
            raise FilterError(f"invalid filter rule {text!r}: expected '[ON] UPDATE|DELETE <rule>'")
        try:
            rule = Rule.parse(match.group(2))
        except ValueError as e:
            raise FilterError(f"invalid filter rule {text!r}: {e}") from e
        return cls(direction=RuleDirection(match.group(1).upper()), rule=rule)

    def matches(self, fk: FKConstraint) -> bool:
        if self.direction == RuleDirection.UPDATE:
            return fk.update_rule == self.rule
        return fk.delete_rule == self.rule

    def __str__(self):
        return f"ON {self.direction} {self.rule}"


@dataclass(frozen=True)
class FKFilter:
    """
    Optional predicate over constraints.

    Each non-empty dimension must match (AND across dimensions); within a
    dimension any entry may match (OR). An all-empty filter matches everything.
    """

    tables: Tuple[str, ...] = ()
    constraints: Tuple[str, ...] = ()
    rules: Tuple[FKFilterRule, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'tables', tuple(self.tables or ()))
        object.__setattr__(self, 'constraints', tuple(self.constraints or ()))
        object.__setattr__(self, 'rules', tuple(self.rules or ()))

    @classmethod
    def from_strings(cls, tables: Optional[Iterable[str]] = None,
                     constraints: Optional[Iterable[str]] = None,
                     rules: Optional[Iterable[str]] = None) -> 'FKFilter':
        """
        Build a filter from raw option values.

        Rule tokens are parsed here, so malformed input fails before any query runs.

        Raises:
            FilterError: on an unparseable rule token
        """
        return cls(
            tables=tuple(tables or ()),
            constraints=tuple(constraints or ()),
            rules=tuple(FKFilterRule.parse(r) for r in (rules or ())),
        )

    @property
    def is_empty(self) -> bool:
        return not (self.tables or self.constraints or self.rules)

    def matches(self, fk: FKConstraint) -> bool:
        if self.constraints and fk.name not in self.constraints:
            return False
        if self.tables and fk.table not in self.tables:
            return False
        if self.rules and not any(rule.matches(fk) for rule in self.rules):
            return False
        return True


@dataclass(frozen=True)
class FKOrphan:
    """
    One row whose FK values reference a row that does not exist.

    values holds the literal values of the local columns of the offending row,
    positionally paired with columns (and so with referenced_columns).
    """

    constraint: FKConstraint
    values: Tuple[Any, ...]

    def __post_init__(self):
        object.__setattr__(self, 'values', tuple(self.values))

    @property
    def name(self) -> str:
        return self.constraint.name

    @property
    def table(self) -> str:
        return self.constraint.table

    @property
    def columns(self) -> Tuple[str, ...]:
        return self.constraint.columns

    @property
    def referenced_table(self) -> str:
        return self.constraint.referenced_table

    @property
    def referenced_columns(self) -> Tuple[str, ...]:
        return self.constraint.referenced_columns

    def sql(self) -> str:
        """Guarded DELETE statement that removes this row if it is still orphaned."""
        return delete_orphan_sql(self)


def group_by_table(constraints: Iterable[FKConstraint]) -> dict:
    """Group constraints by owning table, keeping input order within each table."""
    grouped = {}
    for fk in constraints:
        grouped.setdefault(fk.table, []).append(fk)
    return grouped
