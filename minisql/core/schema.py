"""
Schema Module - Defines table structure, row storage and the catalog

A Table owns its rows as plain lists positionally aligned with its schema.
Every schema change rewrites the rows so each row always has exactly one
value per column. Names are case-sensitive.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .types import ColumnType, TypeValidator
from ..errors import (
    DuplicateColumnError, NoSuchTableError, RowWidthError, TableExistsError,
    TypeMismatchError, UnknownColumnError,
)


Row = List[Any]


@dataclass
class Column:
    """Represents a column in a table"""
    name: str
    col_type: ColumnType


@dataclass
class TableSchema:
    """Ordered column definitions of a table"""
    name: str
    columns: List[Column] = field(default_factory=list)

    def __post_init__(self):
        seen = set()
        for col in self.columns:
            if col.name in seen:
                raise DuplicateColumnError(
                    f"Column '{col.name}' specified more than once in table '{self.name}'")
            seen.add(col.name)

    def __len__(self) -> int:
        return len(self.columns)

    def get_column_index(self, name: str) -> Optional[int]:
        """Get column position by name"""
        for idx, col in enumerate(self.columns):
            if col.name == name:
                return idx
        return None

    def require_index(self, name: str) -> int:
        """Get column position, failing for unknown columns"""
        index = self.get_column_index(name)
        if index is None:
            raise UnknownColumnError(f"Column '{name}' does not exist in table '{self.name}'")
        return index

    def get_column_names(self) -> List[str]:
        """Get list of column names"""
        return [col.name for col in self.columns]

    def to_dict(self) -> dict:
        """Serialize schema to dictionary"""
        return {
            'name': self.name,
            'columns': [
                {'name': col.name, 'type': str(col.col_type)}
                for col in self.columns
            ],
        }


@dataclass
class Table:
    """Schema plus rows, in insertion order"""
    schema: TableSchema
    rows: List[Row] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.schema.name

    def count(self) -> int:
        return len(self.rows)

    def scan(self) -> List[Row]:
        """Copies of all rows, so callers never alias stored rows"""
        return [list(row) for row in self.rows]

    def append(self, row: Row) -> None:
        """Store a row already coerced to the column types"""
        if len(row) != len(self.schema):
            raise RowWidthError(
                f"Row has {len(row)} value(s) but table '{self.name}' has {len(self.schema)} column(s)")
        for value, col in zip(row, self.schema.columns):
            if not TypeValidator.is_compatible(value, col.col_type):
                raise TypeMismatchError(
                    f"Value {value!r} does not fit column '{col.name}' of type {col.col_type}")
        self.rows.append(row)

    def add_column(self, column: Column) -> None:
        """Append a column; existing rows get Null in it"""
        if self.schema.get_column_index(column.name) is not None:
            raise DuplicateColumnError(
                f"Column '{column.name}' already exists in table '{self.name}'")
        self.schema.columns.append(column)
        for row in self.rows:
            row.append(None)

    def drop_column(self, name: str) -> None:
        """Remove a column and its value from every row"""
        index = self.schema.require_index(name)
        del self.schema.columns[index]
        for row in self.rows:
            del row[index]

    def modify_column(self, name: str, new_type: ColumnType) -> int:
        """
        Change a column's type, converting stored values.

        Returns:
            Number of non-Null values that could not be converted and became Null
        """
        index = self.schema.require_index(name)

        # Convert everything before touching the schema or any row
        converted = [TypeValidator.convert(row[index], new_type) for row in self.rows]
        lost = sum(1 for row, new in zip(self.rows, converted)
                   if row[index] is not None and new is None)

        self.schema.columns[index].col_type = new_type
        for row, new in zip(self.rows, converted):
            row[index] = new
        return lost

    def delete_rows(self, indexes: List[int]) -> None:
        """Remove rows by position, keeping the others in order"""
        doomed = set(indexes)
        self.rows = [row for idx, row in enumerate(self.rows) if idx not in doomed]


class Catalog:
    """
    System catalog that owns every table of the session.
    """

    def __init__(self):
        self.tables: Dict[str, Table] = {}

    def create_table(self, schema: TableSchema) -> Table:
        """Register a new, empty table"""
        if schema.name in self.tables:
            raise TableExistsError(f"Table '{schema.name}' already exists")
        table = Table(schema=schema)
        self.tables[schema.name] = table
        return table

    def drop_table(self, name: str) -> None:
        """Remove a table and all its rows"""
        if name not in self.tables:
            raise NoSuchTableError(f"Table '{name}' does not exist")
        del self.tables[name]

    def get_table(self, name: str) -> Table:
        """Get table by name"""
        table = self.tables.get(name)
        if table is None:
            raise NoSuchTableError(f"Table '{name}' does not exist")
        return table

    def table_exists(self, name: str) -> bool:
        """Check if table exists"""
        return name in self.tables

    def list_tables(self) -> List[str]:
        """List all table names"""
        return list(self.tables.keys())
