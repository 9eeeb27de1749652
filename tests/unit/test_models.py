"""
Foreign Key Model Tests

Tests for FKConstraint construction, region stripping, redundancy and
constraint filters.
"""

import pytest

from schema_analyzer.exceptions import ConstraintError, FilterError
from schema_analyzer.models import (
    FKConstraint,
    FKFilter,
    FKFilterRule,
    FKOrphan,
    Rule,
    RuleDirection,
    group_by_table,
    strip_region,
)


def make_fk(name='fk', table='orders', columns=('customer_id',), referenced_table='customers',
            referenced_columns=('id',), update_rule=Rule.NO_ACTION, delete_rule=Rule.NO_ACTION):
    return FKConstraint(name=name, table=table, columns=columns, referenced_table=referenced_table,
                        referenced_columns=referenced_columns, update_rule=update_rule,
                        delete_rule=delete_rule)


# ============================================================================
# Rule parsing
# ============================================================================

class TestRule:

    @pytest.mark.parametrize('text,expected', [
        ('NO ACTION', Rule.NO_ACTION),
        ('no action', Rule.NO_ACTION),
        ('  No   Action ', Rule.NO_ACTION),
        ('CASCADE', Rule.CASCADE),
        ('SET NULL', Rule.SET_NULL),
        ('set default', Rule.SET_DEFAULT),
        ('RESTRICT', Rule.RESTRICT),
    ])
    def test_parse(self, text, expected):
        assert Rule.parse(text) == expected

    @pytest.mark.parametrize('text', ['', 'DROP', 'NOACTION', None])
    def test_parse_invalid(self, text):
        with pytest.raises(ValueError):
            Rule.parse(text)

    def test_str_is_sql_text(self):
        assert str(Rule.SET_NULL) == 'SET NULL'


# ============================================================================
# FKConstraint
# ============================================================================

class TestFKConstraint:

    def test_region_restricted_derivation(self, region_fk, plain_fk):
        assert region_fk.region_restricted is True
        assert region_fk.columns_no_region == ('customer_id',)
        assert region_fk.referenced_columns_no_region == ('id',)

        assert plain_fk.region_restricted is False
        assert plain_fk.columns_no_region == plain_fk.columns

    def test_region_column_only(self):
        fk = make_fk(columns=('crdb_region',), referenced_columns=('crdb_region',))
        assert fk.region_restricted is True
        assert fk.columns_no_region == ()

    def test_strip_region_is_pairwise(self):
        # the referenced side keeps its alignment even with differently named columns
        cols, refs = strip_region(('a', 'crdb_region', 'b'), ('x', 'region', 'y'))
        assert cols == ('a', 'b')
        assert refs == ('x', 'y')

    def test_column_order_preserved(self):
        fk = make_fk(columns=['b', 'a'], referenced_columns=['y', 'x'])
        assert fk.columns == ('b', 'a')
        assert fk.referenced_columns == ('y', 'x')

    def test_mismatched_columns_rejected(self):
        with pytest.raises(ConstraintError):
            make_fk(columns=('a', 'b'), referenced_columns=('x',))

    def test_from_row_parses_rules(self):
        fk = FKConstraint.from_row({
            'constraint_name': 'c', 'table': 't', 'columns': ['a'],
            'referenced_table': 'r', 'referenced_columns': ['id'],
            'update_rule': 'CASCADE', 'delete_rule': 'set null',
        })
        assert fk.update_rule == Rule.CASCADE
        assert fk.delete_rule == Rule.SET_NULL

    def test_from_row_invalid_rule(self):
        with pytest.raises(ConstraintError, match='constraint c'):
            FKConstraint.from_row({
                'constraint_name': 'c', 'table': 't', 'columns': ['a'],
                'referenced_table': 'r', 'referenced_columns': ['id'],
                'update_rule': 'EXPLODE', 'delete_rule': 'NO ACTION',
            })

    def test_custom_region_column(self):
        fk = FKConstraint(name='c', table='t', columns=('region', 'a'), referenced_table='r',
                          referenced_columns=('region', 'id'), region_column='region')
        assert fk.region_restricted is True
        assert fk.columns_no_region == ('a',)

    def test_str(self, region_fk):
        assert str(region_fk) == (
            'orders: CONSTRAINT orders_crdb_region_customer_id_fkey FOREIGN KEY (crdb_region, customer_id) '
            'REFERENCES customers (crdb_region, id) ON UPDATE NO ACTION ON DELETE NO ACTION'
        )

    def test_name_without_region(self, region_fk):
        assert region_fk.name_without_region() == 'orders_customer_id_fkey'

    def test_is_hashable_value(self, plain_fk):
        assert plain_fk == make_fk(name='orders_customer_id_fkey')
        assert len({plain_fk, make_fk(name='orders_customer_id_fkey')}) == 1


# ============================================================================
# Redundancy
# ============================================================================

class TestRedundancy:

    def test_redundant_with_plain_sibling(self, region_fk, plain_fk):
        assert region_fk.is_redundant_with(plain_fk) is True

    def test_not_symmetric(self, region_fk, plain_fk):
        assert plain_fk.is_redundant_with(region_fk) is False

    def test_not_symmetric_with_cascading_updates(self):
        a = make_fk(name='a', columns=('crdb_region', 'customer_id'),
                    referenced_columns=('crdb_region', 'id'), update_rule=Rule.CASCADE)
        b = make_fk(name='b', update_rule=Rule.CASCADE)
        assert a.is_redundant_with(b) is True
        assert b.is_redundant_with(a) is False

    def test_not_reflexive(self, region_fk, plain_fk):
        assert region_fk.is_redundant_with(region_fk) is False
        assert plain_fk.is_redundant_with(plain_fk) is False

    def test_both_region_restricted(self, region_fk):
        other = make_fk(name='other', columns=('crdb_region', 'customer_id'),
                        referenced_columns=('crdb_region', 'id'))
        assert region_fk.is_redundant_with(other) is False

    def test_different_update_rule(self, region_fk):
        sibling = make_fk(name='sibling', update_rule=Rule.CASCADE)
        assert region_fk.is_redundant_with(sibling) is False

    @pytest.mark.parametrize('delete_rule', [Rule.CASCADE, Rule.SET_NULL, Rule.RESTRICT])
    def test_delete_rule_must_be_no_action(self, plain_fk, delete_rule):
        fk = make_fk(name='r', columns=('crdb_region', 'customer_id'),
                     referenced_columns=('crdb_region', 'id'), delete_rule=delete_rule)
        assert fk.is_redundant_with(plain_fk) is False

    def test_sibling_delete_rule_is_ignored(self, region_fk):
        sibling = make_fk(name='sibling', delete_rule=Rule.CASCADE)
        assert region_fk.is_redundant_with(sibling) is True

    def test_different_table(self, region_fk):
        sibling = make_fk(name='sibling', table='invoices')
        assert region_fk.is_redundant_with(sibling) is False

    def test_column_order_matters(self):
        fk = make_fk(name='r', columns=('crdb_region', 'a', 'b'),
                     referenced_columns=('crdb_region', 'x', 'y'))
        same_order = make_fk(name='s1', columns=('a', 'b'), referenced_columns=('x', 'y'))
        swapped = make_fk(name='s2', columns=('b', 'a'), referenced_columns=('y', 'x'))
        assert fk.is_redundant_with(same_order) is True
        assert fk.is_redundant_with(swapped) is False


# ============================================================================
# Filters
# ============================================================================

class TestFKFilterRule:

    @pytest.mark.parametrize('text,direction,rule', [
        ('ON DELETE CASCADE', RuleDirection.DELETE, Rule.CASCADE),
        ('on update no action', RuleDirection.UPDATE, Rule.NO_ACTION),
        ('DELETE SET NULL', RuleDirection.DELETE, Rule.SET_NULL),
        ('  UPDATE  CASCADE  ', RuleDirection.UPDATE, Rule.CASCADE),
    ])
    def test_parse(self, text, direction, rule):
        parsed = FKFilterRule.parse(text)
        assert parsed.direction == direction
        assert parsed.rule == rule

    @pytest.mark.parametrize('text', ['', 'CASCADE', 'ON INSERT CASCADE', 'ON DELETE EXPLODE'])
    def test_parse_invalid(self, text):
        with pytest.raises(FilterError):
            FKFilterRule.parse(text)

    def test_direction_selects_rule(self):
        fk = make_fk(update_rule=Rule.CASCADE, delete_rule=Rule.NO_ACTION)
        assert FKFilterRule.parse('ON UPDATE CASCADE').matches(fk) is True
        assert FKFilterRule.parse('ON DELETE CASCADE').matches(fk) is False

    def test_str(self):
        assert str(FKFilterRule.parse('delete cascade')) == 'ON DELETE CASCADE'


class TestFKFilter:

    def test_empty_matches_everything(self, region_fk, plain_fk):
        fk_filter = FKFilter()
        assert fk_filter.is_empty is True
        assert fk_filter.matches(region_fk) and fk_filter.matches(plain_fk)

    def test_tables_or_within_dimension(self):
        fk_filter = FKFilter.from_strings(tables=['orders', 'invoices'])
        assert fk_filter.matches(make_fk(table='orders'))
        assert fk_filter.matches(make_fk(table='invoices'))
        assert not fk_filter.matches(make_fk(table='stores'))

    def test_and_across_dimensions(self):
        fk_filter = FKFilter.from_strings(tables=['orders'], rules=['ON DELETE CASCADE'])
        assert fk_filter.matches(make_fk(table='orders', delete_rule=Rule.CASCADE))
        assert not fk_filter.matches(make_fk(table='orders'))
        assert not fk_filter.matches(make_fk(table='stores', delete_rule=Rule.CASCADE))

    def test_constraint_names(self, region_fk, plain_fk):
        fk_filter = FKFilter.from_strings(constraints=[plain_fk.name])
        assert fk_filter.matches(plain_fk)
        assert not fk_filter.matches(region_fk)

    def test_rules_or_within_dimension(self):
        fk_filter = FKFilter.from_strings(rules=['ON DELETE CASCADE', 'ON UPDATE SET NULL'])
        assert fk_filter.matches(make_fk(delete_rule=Rule.CASCADE))
        assert fk_filter.matches(make_fk(update_rule=Rule.SET_NULL))
        assert not fk_filter.matches(make_fk())

    def test_bad_rule_fails_at_construction(self):
        with pytest.raises(FilterError):
            FKFilter.from_strings(rules=['ON DELETE NOPE'])


# ============================================================================
# Orphans and grouping
# ============================================================================

class TestFKOrphan:

    def test_delegates_to_constraint(self, region_fk):
        orphan = FKOrphan(constraint=region_fk, values=['us-east1', 7])
        assert orphan.values == ('us-east1', 7)
        assert orphan.table == 'orders'
        assert orphan.columns == ('crdb_region', 'customer_id')
        assert orphan.referenced_table == 'customers'
        assert orphan.referenced_columns == ('crdb_region', 'id')

    def test_sql(self, plain_fk):
        orphan = FKOrphan(constraint=plain_fk, values=[7])
        assert orphan.sql() == (
            'DELETE FROM "orders" WHERE "customer_id" = 7 '
            'AND NOT EXISTS (SELECT "id" FROM "customers" WHERE "id" = 7)'
        )


def test_group_by_table_keeps_order():
    a1, b1, a2 = make_fk(name='a1', table='a'), make_fk(name='b1', table='b'), make_fk(name='a2', table='a')
    grouped = group_by_table([a1, b1, a2])
    assert list(grouped) == ['a', 'b']
    assert grouped['a'] == [a1, a2]
