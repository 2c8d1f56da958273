"""
Database - Main entry point for MiniSQL

This is the primary interface for interacting with MiniSQL.
It owns the catalog for the session and runs each statement through
lexer, parser and executor.
"""

from typing import Any, Dict, List, Optional, Union

from ..parser.parser import parse_script, parse_sql
from ..utils.logging import get_logger, set_level
from .executor import QueryExecutor, QueryResult
from .schema import Catalog

logger = get_logger(__name__)


class Database:
    """
    MiniSQL Database instance. All data lives in memory for the lifetime
    of the object.

    Usage:
        db = Database()
        db.execute("CREATE TABLE users (id INT, name TEXT)")
        db.execute("INSERT INTO users (id, name) VALUES ('1', 'Alice')")
        result = db.execute("SELECT * FROM users")
        for row in result.rows:
            print(row)
    """

    def __init__(self, log_level: Optional[Union[int, str]] = None):
        """
        Initialize an empty database.

        Args:
            log_level: Level for the ``minisql`` loggers; defaults to the
                MINISQL_LOG_LEVEL environment variable, else WARNING
        """
        if log_level is not None:
            set_level(log_level)

        self.catalog = Catalog()
        self.executor = QueryExecutor(self.catalog)

    def execute(self, sql: str) -> QueryResult:
        """
        Execute a SQL statement.

        Args:
            sql: SQL statement to execute

        Returns:
            QueryResult containing columns, rows, and metadata

        Raises:
            MiniSQLError: If SQL is invalid or execution fails
        """
        logger.debug("Executing: %s", sql.strip())

        # Parse SQL
        ast = parse_sql(sql)

        # Execute
        return self.executor.execute(ast)

    def execute_many(self, sql: str) -> List[QueryResult]:
        """
        Execute multiple SQL statements separated by semicolons.

        The whole script is parsed before anything runs, so a syntax error
        anywhere executes nothing. Execution stops at the first failing
        statement.

        Args:
            sql: Multiple SQL statements

        Returns:
            List of QueryResult objects
        """
        statements = parse_script(sql)
        logger.debug("Executing script of %d statement(s)", len(statements))

        return [self.executor.execute(stmt) for stmt in statements]

    def tables(self) -> List[str]:
        """List all tables in the database."""
        return self.catalog.list_tables()

    def describe(self, table_name: str) -> Dict[str, Any]:
        """
        Get table schema information.

        Args:
            table_name: Name of table to describe

        Returns:
            Dictionary with table schema
        """
        return self.catalog.get_table(table_name).schema.to_dict()

    def count(self, table_name: str) -> int:
        """
        Get row count for a table.

        Args:
            table_name: Name of table

        Returns:
            Number of rows in table
        """
        return self.catalog.get_table(table_name).count()

    def close(self) -> None:
        """Discard every table."""
        self.catalog.tables.clear()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
