#!/usr/bin/env python3
"""
Tests for value semantics and the catalog, below the SQL layer

Run: python -m pytest minisql/tests/test_core.py -v
"""

import os
import sys
import unittest

# Add parent directories to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from minisql.core import Catalog, Column, ColumnType, TableSchema, TypeValidator
from minisql.core.types import INT_MAX, parse_int
from minisql.errors import (
    DuplicateColumnError, NoSuchTableError, RowWidthError, TableExistsError,
    TypeMismatchError, UnknownColumnError,
)


class TestTypeValidator(unittest.TestCase):
    """Test literal coercion and comparison rules"""

    def test_coerce_literal(self):
        self.assertEqual(TypeValidator.coerce_literal('42', ColumnType.INT), 42)
        self.assertEqual(TypeValidator.coerce_literal('42', ColumnType.TEXT), '42')
        self.assertEqual(TypeValidator.coerce_literal('', ColumnType.TEXT), '')

    def test_coerce_rejects_non_digits(self):
        for raw in ('abc', '-1', '', '4 2', '²'):
            with self.assertRaises(TypeMismatchError):
                TypeValidator.coerce_literal(raw, ColumnType.INT, 'age')

    def test_parse_int_range(self):
        """Integers are limited to signed 64-bit"""
        self.assertEqual(parse_int(str(INT_MAX)), INT_MAX)
        self.assertEqual(parse_int('000' + str(INT_MAX)), INT_MAX)
        self.assertEqual(parse_int('0'), 0)
        self.assertIsNone(parse_int(str(INT_MAX + 1)))
        self.assertIsNone(parse_int('99999999999999999999999'))
        self.assertIsNone(parse_int('9' * 5000))
        self.assertIsNone(parse_int('٣'))

    def test_coerce_rejects_out_of_range(self):
        for raw in (str(INT_MAX + 1), '9' * 5000):
            with self.assertRaises(TypeMismatchError):
                TypeValidator.coerce_literal(raw, ColumnType.INT, 'n')
        self.assertEqual(TypeValidator.coerce_literal('9' * 5000, ColumnType.TEXT), '9' * 5000)

    def test_convert_out_of_range_to_null(self):
        self.assertIsNone(TypeValidator.convert('9' * 5000, ColumnType.INT))
        self.assertIsNone(TypeValidator.convert(str(INT_MAX + 1), ColumnType.INT))

    def test_resolve_out_of_range_literal_stays_text(self):
        big = '9' * 5000
        self.assertEqual(TypeValidator.resolve_literal(big, 3), big)
        self.assertTrue(TypeValidator.compare(3, '!=', TypeValidator.resolve_literal(big, 3)))

    def test_convert(self):
        self.assertEqual(TypeValidator.convert(7, ColumnType.TEXT), '7')
        self.assertEqual(TypeValidator.convert('12', ColumnType.INT), 12)
        self.assertIsNone(TypeValidator.convert('x', ColumnType.INT))
        self.assertIsNone(TypeValidator.convert(None, ColumnType.TEXT))

    def test_resolve_literal(self):
        self.assertEqual(TypeValidator.resolve_literal('5', 3), 5)
        self.assertEqual(TypeValidator.resolve_literal('5', 'abc'), '5')
        self.assertEqual(TypeValidator.resolve_literal('x', 3), 'x')

    def test_compare_null(self):
        for op in ('=', '!=', '<', '>', '<=', '>='):
            self.assertFalse(TypeValidator.compare(None, op, 1))
            self.assertFalse(TypeValidator.compare('a', op, None))

    def test_compare_mismatched_types(self):
        self.assertFalse(TypeValidator.compare(1, '=', '1'))
        self.assertTrue(TypeValidator.compare(1, '!=', '1'))
        self.assertFalse(TypeValidator.compare(1, '<', 'a'))

    def test_compare_same_type(self):
        self.assertTrue(TypeValidator.compare(2, '>', 1))
        self.assertTrue(TypeValidator.compare('a', '<', 'b'))
        self.assertTrue(TypeValidator.compare(3, '<=', 3))

    def test_sort_key_puts_null_first(self):
        values = ['b', 2, None, 'a', 1]
        self.assertEqual(sorted(values, key=TypeValidator.sort_key), [None, 1, 2, 'a', 'b'])

    def test_is_compatible(self):
        self.assertTrue(TypeValidator.is_compatible(None, ColumnType.INT))
        self.assertTrue(TypeValidator.is_compatible(1, ColumnType.INT))
        self.assertFalse(TypeValidator.is_compatible('1', ColumnType.INT))
        self.assertFalse(TypeValidator.is_compatible(True, ColumnType.INT))
        self.assertFalse(TypeValidator.is_compatible(INT_MAX + 1, ColumnType.INT))

    def test_format(self):
        self.assertEqual(TypeValidator.format(None), 'NULL')
        self.assertEqual(TypeValidator.format(5), '5')


class TestCatalog(unittest.TestCase):
    """Test the table registry and row storage"""

    def setUp(self):
        self.catalog = Catalog()
        self.table = self.catalog.create_table(TableSchema('t', [
            Column('id', ColumnType.INT),
            Column('name', ColumnType.TEXT),
        ]))

    def test_create_and_lookup(self):
        self.assertTrue(self.catalog.table_exists('t'))
        self.assertIs(self.catalog.get_table('t'), self.table)
        self.assertEqual(self.catalog.list_tables(), ['t'])

    def test_create_twice(self):
        with self.assertRaises(TableExistsError):
            self.catalog.create_table(TableSchema('t', [Column('x', ColumnType.INT)]))

    def test_drop(self):
        self.catalog.drop_table('t')
        self.assertFalse(self.catalog.table_exists('t'))
        with self.assertRaises(NoSuchTableError):
            self.catalog.get_table('t')
        with self.assertRaises(NoSuchTableError):
            self.catalog.drop_table('t')

    def test_scan_returns_copies(self):
        self.table.append([1, 'a'])
        rows = self.table.scan()
        rows[0][1] = 'changed'
        self.assertEqual(self.table.rows, [[1, 'a']])

    def test_schema_changes_keep_rows_aligned(self):
        self.table.append([1, 'a'])
        self.table.add_column(Column('extra', ColumnType.TEXT))
        self.assertEqual(self.table.rows, [[1, 'a', None]])

        with self.assertRaises(DuplicateColumnError):
            self.table.add_column(Column('id', ColumnType.INT))

        self.table.drop_column('id')
        self.assertEqual(self.table.rows, [['a', None]])
        self.assertEqual(self.table.schema.get_column_names(), ['name', 'extra'])

        with self.assertRaises(UnknownColumnError):
            self.table.drop_column('id')

    def test_modify_counts_lost_values(self):
        self.table.append([1, '10'])
        self.table.append([2, 'ten'])
        self.table.append([3, None])
        lost = self.table.modify_column('name', ColumnType.INT)
        self.assertEqual(lost, 1)
        self.assertEqual([row[1] for row in self.table.rows], [10, None, None])

    def test_modify_drops_out_of_range_values(self):
        """Values too large for an Integer become Null and every row matches the new type"""
        self.table.append([1, '12'])
        self.table.append([2, '9' * 5000])
        lost = self.table.modify_column('name', ColumnType.INT)
        self.assertEqual(lost, 1)
        self.assertEqual(self.table.schema.columns[1].col_type, ColumnType.INT)
        self.assertEqual([row[1] for row in self.table.rows], [12, None])

    def test_append_rejects_wrong_width(self):
        with self.assertRaises(RowWidthError):
            self.table.append([1])
        self.assertEqual(self.table.rows, [])

    def test_append_rejects_wrong_type(self):
        with self.assertRaises(TypeMismatchError):
            self.table.append(['1', 'a'])
        self.assertEqual(self.table.rows, [])

    def test_delete_rows_keeps_order(self):
        for i in range(5):
            self.table.append([i, str(i)])
        self.table.delete_rows([1, 3])
        self.assertEqual([row[0] for row in self.table.rows], [0, 2, 4])


if __name__ == '__main__':
    unittest.main()
