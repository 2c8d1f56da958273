"""
MiniSQL - A miniature in-memory relational database

Parses a small SQL dialect (CREATE/ALTER/DROP TABLE, INSERT, UPDATE,
DELETE, SELECT with joins, grouping and aggregates) and executes it
against schema-typed tables held in memory.
"""

__version__ = "1.0.0"

from .core.database import Database
from .core.executor import QueryResult
from .errors import (
    MiniSQLError, LexError, ParseError, EngineError,
)

__all__ = ["Database", "QueryResult", "MiniSQLError", "LexError", "ParseError", "EngineError"]
