"""
Query Executor - Executes parsed SQL statements

Takes AST nodes from the parser and executes them against the catalog,
returning results. SELECT runs as a materialized pipeline:
scan/join -> WHERE -> GROUP BY -> HAVING -> ORDER BY -> projection.
"""

from typing import Any, Dict, List, Optional, Set, Tuple
from dataclasses import dataclass, field

from ..parser.parser import (
    SelectStatement, InsertStatement, UpdateStatement, DeleteStatement,
    CreateTableStatement, DropTableStatement, AlterTableStatement,
    AddColumn, DropColumn, ModifyColumn,
    ColumnRef, Literal, BinaryOp, AggregateCall, JoinClause,
    JoinType, OrderDirection, WILDCARD,
)
from ..errors import (
    AmbiguousColumnError, DuplicateColumnError, InvalidProjectionError,
    MisplacedAggregateError, UnknownColumnError,
)
from ..utils.logging import get_logger
from .schema import Catalog, Column, Row, Table, TableSchema
from .types import TypeValidator

logger = get_logger(__name__)


@dataclass
class QueryResult:
    """Result of a query execution"""
    columns: List[str]
    rows: List[List[Any]]
    affected_rows: int = 0
    message: str = ""

    def to_dicts(self) -> List[Dict[str, Any]]:
        """Rows as dicts keyed by output column name"""
        return [dict(zip(self.columns, row)) for row in self.rows]

    def render(self, max_width: int = 40) -> str:
        """Render the result as a text table (or the status message)"""
        if not self.columns:
            return self.message

        cells = [[TypeValidator.format(v) for v in row] for row in self.rows]
        widths = [len(col) for col in self.columns]
        for row in cells:
            for i, val in enumerate(row):
                widths[i] = max(widths[i], len(val))

        # Limit column width for readability
        widths = [min(w, max_width) for w in widths]

        lines = [
            " | ".join(col.ljust(w)[:w] for col, w in zip(self.columns, widths)),
            "-+-".join("-" * w for w in widths),
        ]
        for row in cells:
            lines.append(" | ".join(val.ljust(w)[:w] for val, w in zip(row, widths)))
        lines.append(f"({len(self.rows)} row(s))")

        return "\n".join(lines)


@dataclass
class Scope:
    """
    Column layout of the rows flowing through a query.

    Position i of every row holds column ``bindings[i]`` = (table, column).
    """
    bindings: List[Tuple[str, str]] = field(default_factory=list)
    sources: List[str] = field(default_factory=list)

    @classmethod
    def for_table(cls, table: Table) -> 'Scope':
        return cls(
            bindings=[(table.name, name) for name in table.schema.get_column_names()],
            sources=[table.name],
        )

    def extend(self, table: Table) -> 'Scope':
        """Scope of rows produced by joining ``table`` on the right"""
        right = Scope.for_table(table)
        return Scope(bindings=self.bindings + right.bindings,
                     sources=self.sources + right.sources)

    @property
    def width(self) -> int:
        return len(self.bindings)

    def resolve(self, ref: ColumnRef) -> int:
        """Position of a column; unqualified names must be unambiguous"""
        matches = [
            idx for idx, (table, column) in enumerate(self.bindings)
            if column == ref.column and (ref.table is None or table == ref.table)
        ]
        if not matches:
            raise UnknownColumnError(f"Unknown column '{ref}'")
        if len(matches) > 1:
            raise AmbiguousColumnError(
                f"Column '{ref}' is ambiguous; qualify it with its table name")
        return matches[0]

    def display_names(self) -> List[str]:
        """Output names for SELECT *: qualified once more than one table is joined"""
        if len(self.sources) > 1:
            return [f"{table}.{column}" for table, column in self.bindings]
        return [column for _, column in self.bindings]


class ExpressionEvaluator:
    """Evaluates expressions against rows laid out by a Scope"""

    def __init__(self, scope: Scope):
        self.scope = scope

    def predicate(self, expr: Any, row: Optional[Row], group: List[Row] = None) -> bool:
        """Evaluate a predicate; anything but True counts as False"""
        return self.evaluate(expr, row, group) is True

    def evaluate(self, expr: Any, row: Optional[Row], group: List[Row] = None) -> Any:
        """
        Evaluate an expression.

        ``group`` holds the rows of the current group when aggregates are
        being evaluated (HAVING, ORDER BY of a grouped query).
        """
        if isinstance(expr, Literal):
            return expr.value

        elif isinstance(expr, ColumnRef):
            return row[self.scope.resolve(expr)]

        elif isinstance(expr, BinaryOp):
            return self._eval_binary_op(expr, row, group)

        elif isinstance(expr, AggregateCall):
            if group is None:
                raise MisplacedAggregateError(f"Aggregate {expr} used outside a grouped query")
            return compute_aggregate(expr, group, self.scope)

        raise ValueError(f"Cannot evaluate expression: {expr!r}")

    def _eval_binary_op(self, op: BinaryOp, row: Optional[Row], group: List[Row]) -> bool:
        """Evaluate binary operation"""
        # Logical operators
        if op.operator == 'AND':
            return self.predicate(op.left, row, group) and self.predicate(op.right, row, group)
        if op.operator == 'OR':
            return self.predicate(op.left, row, group) or self.predicate(op.right, row, group)

        # Literals take their type from the other side of the comparison
        left_literal = isinstance(op.left, Literal)
        right_literal = isinstance(op.right, Literal)
        left = op.left.value if left_literal else self.evaluate(op.left, row, group)
        right = op.right.value if right_literal else self.evaluate(op.right, row, group)
        if left_literal and not right_literal:
            left = TypeValidator.resolve_literal(left, right)
        elif right_literal and not left_literal:
            right = TypeValidator.resolve_literal(right, left)

        return TypeValidator.compare(left, op.operator, right)


def compute_aggregate(func: AggregateCall, rows: List[Row], scope: Scope) -> Any:
    """
    Compute aggregate function value over a group.

    COUNT(*) counts rows, COUNT(col) counts non-Null values. SUM, AVG, MIN
    and MAX only see non-Null Integer values and give Null when there are
    none. AVG truncates toward zero.
    """
    if func.arg == WILDCARD:
        return len(rows)

    idx = scope.resolve(func.arg)
    values = [row[idx] for row in rows if row[idx] is not None]

    if func.func == 'COUNT':
        return len(values)

    numbers = [v for v in values if isinstance(v, int)]
    if not numbers:
        return None

    if func.func == 'SUM':
        return sum(numbers)
    elif func.func == 'AVG':
        total = sum(numbers)
        quotient = abs(total) // len(numbers)
        return quotient if total >= 0 else -quotient
    elif func.func == 'MIN':
        return min(numbers)
    elif func.func == 'MAX':
        return max(numbers)

    raise ValueError(f"Unknown aggregate function: {func.func}")


class QueryExecutor:
    """
    Executes SQL statements against the catalog.

    Handles DDL (CREATE/ALTER/DROP TABLE), DML (INSERT/UPDATE/DELETE)
    and SELECT queries. DML statements resolve and validate everything
    before the first row is touched, so a failing statement changes nothing.
    """

    def __init__(self, catalog: Catalog):
        self.catalog = catalog

    def execute(self, ast: Any) -> QueryResult:
        """Execute a parsed statement"""
        if isinstance(ast, SelectStatement):
            return self._execute_select(ast)
        elif isinstance(ast, InsertStatement):
            return self._execute_insert(ast)
        elif isinstance(ast, UpdateStatement):
            return self._execute_update(ast)
        elif isinstance(ast, DeleteStatement):
            return self._execute_delete(ast)
        elif isinstance(ast, CreateTableStatement):
            return self._execute_create_table(ast)
        elif isinstance(ast, DropTableStatement):
            return self._execute_drop_table(ast)
        elif isinstance(ast, AlterTableStatement):
            return self._execute_alter_table(ast)
        else:
            raise ValueError(f"Unknown statement type: {type(ast)}")

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _validate(self, expr: Any, scope: Scope, clause: str,
                  group_keys: Optional[Set[int]] = None) -> None:
        """
        Resolve every column an expression names before any row is read.

        ``group_keys`` is given for grouped queries: aggregates are then
        allowed and plain columns must be GROUP BY keys.
        """
        if isinstance(expr, BinaryOp):
            self._validate(expr.left, scope, clause, group_keys)
            self._validate(expr.right, scope, clause, group_keys)
        elif isinstance(expr, ColumnRef):
            idx = scope.resolve(expr)
            if group_keys is not None and idx not in group_keys:
                raise InvalidProjectionError(
                    f"Column '{expr}' in {clause} must appear in GROUP BY "
                    f"or be used in an aggregate")
        elif isinstance(expr, AggregateCall):
            if group_keys is None:
                raise MisplacedAggregateError(f"Aggregate {expr} is not allowed in {clause}")
            if expr.arg != WILDCARD:
                scope.resolve(expr.arg)

    # ------------------------------------------------------------------
    # SELECT
    # ------------------------------------------------------------------

    def _execute_select(self, stmt: SelectStatement) -> QueryResult:
        """Execute SELECT statement"""
        base = self.catalog.get_table(stmt.from_table)
        scope = Scope.for_table(base)
        rows = base.scan()

        # Process JOINs
        for join in stmt.joins:
            rows, scope = self._process_join(rows, scope, join)

        evaluator = ExpressionEvaluator(scope)

        # Apply WHERE filter
        if stmt.where is not None:
            self._validate(stmt.where, scope, 'WHERE')
            rows = [row for row in rows if evaluator.predicate(stmt.where, row)]

        logger.debug("SELECT from %s: %d row(s) after join/filter", stmt.from_table, len(rows))

        if stmt.group_by or self._has_aggregates(stmt.columns):
            columns, result_rows = self._select_grouped(stmt, scope, rows, evaluator)
        else:
            columns, result_rows = self._select_rows(stmt, scope, rows, evaluator)

        return QueryResult(columns=columns, rows=result_rows)

    def _process_join(self, left_rows: List[Row], scope: Scope,
                      join: JoinClause) -> Tuple[List[Row], Scope]:
        """Combine the current rows with a joined table"""
        right_table = self.catalog.get_table(join.table)
        right_rows = right_table.scan()
        joined_scope = scope.extend(right_table)

        evaluator = ExpressionEvaluator(joined_scope)
        if join.condition is not None:
            self._validate(join.condition, joined_scope, 'ON')

        def matches(left: Row, right: Row) -> bool:
            return join.condition is None or evaluator.predicate(join.condition, left + right)

        left_nulls = [None] * scope.width
        right_nulls = [None] * len(right_table.schema)
        result = []

        if join.join_type in (JoinType.CROSS, JoinType.INNER):
            result = [left + right for left in left_rows for right in right_rows
                      if matches(left, right)]

        elif join.join_type in (JoinType.LEFT, JoinType.FULL):
            matched_right = set()
            for left in left_rows:
                found = False
                for idx, right in enumerate(right_rows):
                    if matches(left, right):
                        result.append(left + right)
                        matched_right.add(idx)
                        found = True
                if not found:
                    result.append(left + right_nulls)

            # FULL adds the right rows no left row matched
            if join.join_type == JoinType.FULL:
                for idx, right in enumerate(right_rows):
                    if idx not in matched_right:
                        result.append(left_nulls + right)

        elif join.join_type == JoinType.RIGHT:
            for right in right_rows:
                pairs = [left + right for left in left_rows if matches(left, right)]
                result.extend(pairs or [left_nulls + right])

        logger.debug("%s JOIN %s: %d row(s)", join.join_type.name, join.table, len(result))
        return result, joined_scope

    def _has_aggregates(self, columns: List[Any]) -> bool:
        """Check if column list has aggregate functions"""
        return any(isinstance(col, AggregateCall) for col in columns)

    def _select_rows(self, stmt: SelectStatement, scope: Scope, rows: List[Row],
                     evaluator: ExpressionEvaluator) -> Tuple[List[str], List[Row]]:
        """ORDER BY and projection for a query without grouping"""
        if stmt.columns == [WILDCARD]:
            names = scope.display_names()
            positions = list(range(scope.width))
        else:
            names = [str(col) for col in stmt.columns]
            positions = [scope.resolve(col) for col in stmt.columns]

        if stmt.order_by is not None:
            self._validate(stmt.order_by.expr, scope, 'ORDER BY')
            rows = self._sort(rows, lambda row: evaluator.evaluate(stmt.order_by.expr, row),
                              stmt.order_by.direction)

        return names, [[row[pos] for pos in positions] for row in rows]

    def _select_grouped(self, stmt: SelectStatement, scope: Scope, rows: List[Row],
                        evaluator: ExpressionEvaluator) -> Tuple[List[str], List[Row]]:
        """GROUP BY, HAVING, ORDER BY and projection for an aggregate query"""
        if WILDCARD in stmt.columns:
            raise InvalidProjectionError("SELECT * cannot be combined with GROUP BY or aggregates")

        key_positions = [scope.resolve(key) for key in stmt.group_by]
        group_keys = set(key_positions)
        for col in stmt.columns:
            self._validate(col, scope, 'SELECT', group_keys)

        # Group rows, in order of first appearance
        if stmt.group_by:
            groups: Dict[Tuple, List[Row]] = {}
            for row in rows:
                key = tuple(row[pos] for pos in key_positions)
                groups.setdefault(key, []).append(row)
            group_list = list(groups.values())
        else:
            # Single implicit group, even when no rows survived
            group_list = [rows]

        logger.debug("GROUP BY: %d group(s)", len(group_list))

        # Apply HAVING filter
        if stmt.having is not None:
            self._validate(stmt.having, scope, 'HAVING', group_keys)
            group_list = [
                group for group in group_list
                if evaluator.predicate(stmt.having, group[0] if group else None, group)
            ]

        # Apply ORDER BY
        if stmt.order_by is not None:
            self._validate(stmt.order_by.expr, scope, 'ORDER BY', group_keys)
            group_list = self._sort(
                group_list,
                lambda group: evaluator.evaluate(stmt.order_by.expr,
                                                 group[0] if group else None, group),
                stmt.order_by.direction)

        # Project columns
        result_rows = []
        for group in group_list:
            result_row = []
            for col in stmt.columns:
                if isinstance(col, AggregateCall):
                    result_row.append(compute_aggregate(col, group, scope))
                else:
                    result_row.append(group[0][scope.resolve(col)])
            result_rows.append(result_row)

        return [str(col) for col in stmt.columns], result_rows

    def _sort(self, items: List[Any], value_of, direction: OrderDirection) -> List[Any]:
        """Stable sort; Null first ascending, last descending"""
        return sorted(items,
                      key=lambda item: TypeValidator.sort_key(value_of(item)),
                      reverse=direction == OrderDirection.DESC)

    # ------------------------------------------------------------------
    # DML
    # ------------------------------------------------------------------

    def _matching_rows(self, table: Table, where: Any) -> List[int]:
        """Positions of the rows a WHERE clause selects (all rows without one)"""
        if where is None:
            return list(range(table.count()))

        scope = Scope.for_table(table)
        self._validate(where, scope, 'WHERE')
        evaluator = ExpressionEvaluator(scope)
        return [idx for idx, row in enumerate(table.rows) if evaluator.predicate(where, row)]

    def _execute_insert(self, stmt: InsertStatement) -> QueryResult:
        """Execute INSERT statement"""
        table = self.catalog.get_table(stmt.table)
        schema = table.schema

        if len(set(stmt.columns)) != len(stmt.columns):
            raise DuplicateColumnError("Column specified more than once in INSERT")
        positions = [schema.require_index(name) for name in stmt.columns]

        # Build every row before storing any
        new_rows = []
        for value_row in stmt.values:
            row = [None] * len(schema)
            for pos, literal in zip(positions, value_row):
                col = schema.columns[pos]
                row[pos] = TypeValidator.coerce_literal(literal.value, col.col_type, col.name)
            new_rows.append(row)

        for row in new_rows:
            table.append(row)

        inserted = len(new_rows)
        logger.debug("Inserted %d row(s) into %s", inserted, stmt.table)
        return QueryResult(
            columns=[],
            rows=[],
            affected_rows=inserted,
            message=f"Inserted {inserted} row(s)"
        )

    def _execute_update(self, stmt: UpdateStatement) -> QueryResult:
        """Execute UPDATE statement"""
        table = self.catalog.get_table(stmt.table)
        schema = table.schema

        updates = []
        for name, literal in stmt.assignments:
            pos = schema.require_index(name)
            col = schema.columns[pos]
            updates.append((pos, TypeValidator.coerce_literal(literal.value, col.col_type, col.name)))

        targets = self._matching_rows(table, stmt.where)
        for idx in targets:
            row = table.rows[idx]
            for pos, value in updates:
                row[pos] = value

        updated = len(targets)
        logger.debug("Updated %d row(s) in %s", updated, stmt.table)
        return QueryResult(
            columns=[],
            rows=[],
            affected_rows=updated,
            message=f"Updated {updated} row(s)"
        )

    def _execute_delete(self, stmt: DeleteStatement) -> QueryResult:
        """Execute DELETE statement"""
        table = self.catalog.get_table(stmt.table)

        targets = self._matching_rows(table, stmt.where)
        table.delete_rows(targets)

        deleted = len(targets)
        logger.debug("Deleted %d row(s) from %s", deleted, stmt.table)
        return QueryResult(
            columns=[],
            rows=[],
            affected_rows=deleted,
            message=f"Deleted {deleted} row(s)"
        )

    # ------------------------------------------------------------------
    # DDL
    # ------------------------------------------------------------------

    def _execute_create_table(self, stmt: CreateTableStatement) -> QueryResult:
        """Execute CREATE TABLE statement"""
        schema = TableSchema(
            name=stmt.table,
            columns=[Column(name=col.name, col_type=col.col_type) for col in stmt.columns],
        )
        self.catalog.create_table(schema)

        logger.info("Created table %s (%s)", stmt.table,
                    ", ".join(f"{c.name} {c.col_type}" for c in schema.columns))
        return QueryResult(columns=[], rows=[], message=f"Table '{stmt.table}' created")

    def _execute_drop_table(self, stmt: DropTableStatement) -> QueryResult:
        """Execute DROP TABLE statement"""
        self.catalog.drop_table(stmt.table)

        logger.info("Dropped table %s", stmt.table)
        return QueryResult(columns=[], rows=[], message=f"Table '{stmt.table}' dropped")

    def _execute_alter_table(self, stmt: AlterTableStatement) -> QueryResult:
        """Execute ALTER TABLE statement"""
        table = self.catalog.get_table(stmt.table)
        action = stmt.action

        if isinstance(action, AddColumn):
            table.add_column(Column(name=action.column.name, col_type=action.column.col_type))
            message = f"Added column '{action.column.name}' to '{stmt.table}'"
        elif isinstance(action, DropColumn):
            table.drop_column(action.name)
            message = f"Dropped column '{action.name}' from '{stmt.table}'"
        elif isinstance(action, ModifyColumn):
            lost = table.modify_column(action.name, action.new_type)
            if lost:
                logger.warning("MODIFY %s.%s to %s turned %d value(s) into NULL",
                               stmt.table, action.name, action.new_type, lost)
            message = f"Modified column '{action.name}' to {action.new_type} in '{stmt.table}'"
        else:
            raise ValueError(f"Unknown ALTER TABLE action: {type(action)}")

        logger.info(message)
        return QueryResult(columns=[], rows=[], message=message)
