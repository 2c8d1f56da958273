"""Core module - Database, Schema, Types, Executor"""

from .database import Database
from .schema import TableSchema, Table, Column, Catalog
from .types import ColumnType, TypeValidator
from .executor import QueryExecutor, QueryResult

__all__ = [
    'Database',
    'TableSchema', 'Table', 'Column', 'Catalog',
    'ColumnType', 'TypeValidator',
    'QueryExecutor', 'QueryResult',
]
