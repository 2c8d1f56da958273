"""
SQL Parser - Converts tokens into an Abstract Syntax Tree (AST)

Uses recursive descent parsing with one token of lookahead. The leading
keyword selects the statement grammar.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Any, Tuple, Union
from enum import Enum, auto

from .lexer import Lexer, Token, TokenType, AGGREGATE_TOKENS, COMPARISON_TOKENS
from ..core.types import ColumnType
from ..errors import (
    ArityError, MissingClauseError, UnexpectedTokenError, UnknownStatementError,
)


# ============================================================================
# AST Node Types
# ============================================================================

class JoinType(Enum):
    INNER = auto()
    LEFT = auto()
    RIGHT = auto()
    FULL = auto()
    CROSS = auto()


class OrderDirection(Enum):
    ASC = auto()
    DESC = auto()


WILDCARD = '*'


@dataclass
class ColumnDef:
    """Column definition for CREATE TABLE and ALTER TABLE ... ADD"""
    name: str
    col_type: ColumnType


@dataclass
class ColumnRef:
    """Reference to a column, optionally qualified with its table"""
    column: str
    table: Optional[str] = None

    def __str__(self) -> str:
        if self.table:
            return f"{self.table}.{self.column}"
        return self.column


@dataclass
class Literal:
    """A literal value, kept as its raw text until the engine coerces it"""
    value: str


@dataclass
class BinaryOp:
    """Binary operation (e.g., a = b, a AND b)"""
    left: Any
    operator: str
    right: Any


@dataclass
class AggregateCall:
    """SUM/COUNT/AVG/MIN/MAX over a column, or COUNT(*)"""
    func: str
    arg: Union[ColumnRef, str]

    def __str__(self) -> str:
        return f"{self.func}({self.arg})"


@dataclass
class JoinClause:
    """JOIN clause"""
    table: str
    join_type: JoinType
    condition: Optional[Any] = None


@dataclass
class OrderByItem:
    """ORDER BY item"""
    expr: Union[ColumnRef, AggregateCall]
    direction: OrderDirection = OrderDirection.ASC


@dataclass
class SelectStatement:
    """SELECT statement"""
    columns: List[Any]  # ColumnRef / AggregateCall items, or [WILDCARD]
    from_table: str
    joins: List[JoinClause] = field(default_factory=list)
    where: Optional[Any] = None
    group_by: List[ColumnRef] = field(default_factory=list)
    having: Optional[Any] = None
    order_by: Optional[OrderByItem] = None


@dataclass
class InsertStatement:
    """INSERT statement"""
    table: str
    columns: List[str]
    values: List[List[Literal]] = field(default_factory=list)


@dataclass
class UpdateStatement:
    """UPDATE statement"""
    table: str
    assignments: List[Tuple[str, Literal]] = field(default_factory=list)
    where: Optional[Any] = None


@dataclass
class DeleteStatement:
    """DELETE statement"""
    table: str
    where: Optional[Any] = None


@dataclass
class CreateTableStatement:
    """CREATE TABLE statement"""
    table: str
    columns: List[ColumnDef] = field(default_factory=list)


@dataclass
class DropTableStatement:
    """DROP TABLE statement"""
    table: str


@dataclass
class AddColumn:
    column: ColumnDef


@dataclass
class DropColumn:
    name: str


@dataclass
class ModifyColumn:
    name: str
    new_type: ColumnType


@dataclass
class AlterTableStatement:
    """ALTER TABLE statement"""
    table: str
    action: Union[AddColumn, DropColumn, ModifyColumn]


Statement = Union[
    SelectStatement, InsertStatement, UpdateStatement, DeleteStatement,
    CreateTableStatement, DropTableStatement, AlterTableStatement,
]


# ============================================================================
# Parser
# ============================================================================

class Parser:
    """
    Recursive descent SQL parser.

    Parses one SQL statement into AST nodes.
    """

    TYPE_TOKENS = {
        TokenType.INT: ColumnType.INT,
        TokenType.TEXT: ColumnType.TEXT,
    }

    JOIN_START_TOKENS = (
        TokenType.JOIN, TokenType.INNER, TokenType.LEFT,
        TokenType.RIGHT, TokenType.FULL, TokenType.CROSS,
    )

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0

    def _current(self) -> Token:
        """Get current token"""
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[self.pos]

    def _advance(self) -> Token:
        """Advance and return current token"""
        token = self._current()
        self.pos += 1
        return token

    def _match(self, *types: TokenType) -> bool:
        """Check if current token matches any of the types"""
        return self._current().type in types

    def _expect(self, token_type: TokenType, message: str = None) -> Token:
        """Expect a specific token type"""
        if not self._match(token_type):
            msg = message or f"Expected {token_type.name}, got {self._describe()}"
            raise UnexpectedTokenError(msg, self._current())
        return self._advance()

    def _consume_if(self, token_type: TokenType) -> bool:
        """Consume token if it matches"""
        if self._match(token_type):
            self._advance()
            return True
        return False

    def _describe(self, token: Token = None) -> str:
        token = token or self._current()
        if token.type == TokenType.EOF:
            return "end of input"
        return repr(token.value)

    def _expect_identifier(self, what: str) -> str:
        if not self._match(TokenType.IDENTIFIER):
            raise UnexpectedTokenError(f"Expected {what}, got {self._describe()}", self._current())
        return self._advance().value

    def _expect_end(self) -> None:
        """Allow one trailing semicolon, then require the end of input"""
        self._consume_if(TokenType.SEMICOLON)
        if not self._match(TokenType.EOF):
            raise UnexpectedTokenError(f"Unexpected {self._describe()} after end of statement",
                                       self._current())

    def parse(self) -> Statement:
        """Parse a single statement"""
        if self._match(TokenType.SELECT):
            stmt = self._parse_select()
        elif self._match(TokenType.INSERT):
            stmt = self._parse_insert()
        elif self._match(TokenType.UPDATE):
            stmt = self._parse_update()
        elif self._match(TokenType.DELETE):
            stmt = self._parse_delete()
        elif self._match(TokenType.CREATE):
            stmt = self._parse_create()
        elif self._match(TokenType.ALTER):
            stmt = self._parse_alter()
        elif self._match(TokenType.DROP):
            stmt = self._parse_drop()
        else:
            raise UnknownStatementError(f"Unknown statement starting with {self._describe()}",
                                        self._current())
        self._expect_end()
        return stmt

    # ------------------------------------------------------------------
    # SELECT
    # ------------------------------------------------------------------

    def _parse_select(self) -> SelectStatement:
        """Parse SELECT statement"""
        self._expect(TokenType.SELECT)

        columns = self._parse_select_columns()

        if not self._consume_if(TokenType.FROM):
            raise MissingClauseError("SELECT requires a FROM clause", self._current())
        stmt = SelectStatement(columns=columns, from_table=self._expect_identifier("table name"))

        while self._match(*self.JOIN_START_TOKENS):
            stmt.joins.append(self._parse_join())

        if self._consume_if(TokenType.WHERE):
            stmt.where = self._parse_predicate()

        if self._consume_if(TokenType.GROUP):
            self._expect(TokenType.BY)
            stmt.group_by = self._parse_group_by()

            if self._consume_if(TokenType.HAVING):
                stmt.having = self._parse_predicate()
        elif self._match(TokenType.HAVING):
            raise UnexpectedTokenError("HAVING requires GROUP BY", self._current())

        if self._consume_if(TokenType.ORDER):
            self._expect(TokenType.BY)
            stmt.order_by = self._parse_order_by()

        return stmt

    def _parse_select_columns(self) -> List[Any]:
        """Parse SELECT column list: * or column references / aggregates"""
        if self._consume_if(TokenType.STAR):
            return [WILDCARD]

        columns = []
        while True:
            if self._match(*AGGREGATE_TOKENS):
                columns.append(self._parse_aggregate())
            elif self._match(TokenType.IDENTIFIER):
                columns.append(self._parse_column_ref())
            else:
                raise UnexpectedTokenError(f"Expected column or aggregate, got {self._describe()}",
                                           self._current())
            if not self._consume_if(TokenType.COMMA):
                break

        return columns

    def _parse_column_ref(self) -> ColumnRef:
        """Parse column or table.column"""
        name = self._expect_identifier("column name")
        if self._consume_if(TokenType.DOT):
            column = self._expect_identifier("column name after '.'")
            return ColumnRef(column=column, table=name)
        return ColumnRef(column=name)

    def _parse_aggregate(self) -> AggregateCall:
        """Parse FUNC(column) or COUNT(*)"""
        func_token = self._advance()
        self._expect(TokenType.LPAREN)

        if self._match(TokenType.STAR):
            if func_token.type != TokenType.COUNT:
                raise UnexpectedTokenError(f"{func_token.value}(*) is not allowed, only COUNT(*)",
                                           self._current())
            self._advance()
            arg = WILDCARD
        else:
            arg = self._parse_column_ref()

        self._expect(TokenType.RPAREN)
        return AggregateCall(func=func_token.value, arg=arg)

    def _parse_join(self) -> JoinClause:
        """Parse JOIN clause"""
        join_token = self._current()
        join_type = JoinType.INNER

        if self._consume_if(TokenType.INNER):
            join_type = JoinType.INNER
        elif self._consume_if(TokenType.LEFT):
            self._consume_if(TokenType.OUTER)
            join_type = JoinType.LEFT
        elif self._consume_if(TokenType.RIGHT):
            self._consume_if(TokenType.OUTER)
            join_type = JoinType.RIGHT
        elif self._consume_if(TokenType.FULL):
            self._consume_if(TokenType.OUTER)
            join_type = JoinType.FULL
        elif self._consume_if(TokenType.CROSS):
            join_type = JoinType.CROSS

        self._expect(TokenType.JOIN)
        table = self._expect_identifier("table name after JOIN")

        condition = None
        if join_type == JoinType.CROSS:
            if self._match(TokenType.ON):
                raise UnexpectedTokenError("CROSS JOIN does not take an ON condition",
                                           self._current())
        elif self._consume_if(TokenType.ON):
            condition = self._parse_predicate()
        else:
            raise MissingClauseError(f"{join_type.name} JOIN requires an ON condition", join_token)

        return JoinClause(table=table, join_type=join_type, condition=condition)

    def _parse_group_by(self) -> List[ColumnRef]:
        keys = []
        while True:
            keys.append(self._parse_column_ref())
            if not self._consume_if(TokenType.COMMA):
                break
        return keys

    def _parse_order_by(self) -> OrderByItem:
        """Parse ORDER BY clause"""
        if self._match(*AGGREGATE_TOKENS):
            expr = self._parse_aggregate()
        else:
            expr = self._parse_column_ref()

        direction = OrderDirection.ASC
        if self._consume_if(TokenType.DESC):
            direction = OrderDirection.DESC
        else:
            self._consume_if(TokenType.ASC)

        return OrderByItem(expr=expr, direction=direction)

    # ------------------------------------------------------------------
    # DML
    # ------------------------------------------------------------------

    def _parse_insert(self) -> InsertStatement:
        """Parse INSERT statement"""
        self._expect(TokenType.INSERT)
        self._expect(TokenType.INTO)

        table = self._expect_identifier("table name")

        self._expect(TokenType.LPAREN)
        columns = []
        while True:
            columns.append(self._expect_identifier("column name"))
            if not self._consume_if(TokenType.COMMA):
                break
        self._expect(TokenType.RPAREN)

        if not self._match(TokenType.VALUES):
            raise MissingClauseError("INSERT requires a VALUES clause", self._current())
        self._advance()

        values = []
        while True:
            start = self._expect(TokenType.LPAREN)
            row = []
            while True:
                row.append(self._parse_value())
                if not self._consume_if(TokenType.COMMA):
                    break
            self._expect(TokenType.RPAREN)
            if len(row) != len(columns):
                raise ArityError(
                    f"{len(columns)} column(s) named but {len(row)} value(s) given", start)
            values.append(row)

            if not self._consume_if(TokenType.COMMA):
                break

        return InsertStatement(table=table, columns=columns, values=values)

    def _parse_value(self) -> Literal:
        """Parse a literal value"""
        if self._match(TokenType.STRING, TokenType.INTEGER):
            return Literal(self._advance().value)
        raise UnexpectedTokenError(f"Expected value, got {self._describe()}", self._current())

    def _parse_update(self) -> UpdateStatement:
        """Parse UPDATE statement"""
        self._expect(TokenType.UPDATE)

        table = self._expect_identifier("table name")

        if not self._match(TokenType.SET):
            raise MissingClauseError("UPDATE requires a SET clause", self._current())
        self._advance()

        assignments = []
        while True:
            col = self._expect_identifier("column name")
            self._expect(TokenType.EQUALS)
            assignments.append((col, self._parse_value()))

            if not self._consume_if(TokenType.COMMA):
                break

        where = None
        if self._consume_if(TokenType.WHERE):
            where = self._parse_predicate()

        return UpdateStatement(table=table, assignments=assignments, where=where)

    def _parse_delete(self) -> DeleteStatement:
        """Parse DELETE statement"""
        self._expect(TokenType.DELETE)
        self._expect(TokenType.FROM)

        table = self._expect_identifier("table name")

        where = None
        if self._consume_if(TokenType.WHERE):
            where = self._parse_predicate()

        return DeleteStatement(table=table, where=where)

    # ------------------------------------------------------------------
    # DDL
    # ------------------------------------------------------------------

    def _parse_type(self) -> ColumnType:
        token = self._current()
        if token.type not in self.TYPE_TOKENS:
            raise UnexpectedTokenError(f"Expected column type INT or TEXT, got {self._describe()}",
                                       token)
        self._advance()
        return self.TYPE_TOKENS[token.type]

    def _parse_create(self) -> CreateTableStatement:
        """Parse CREATE TABLE statement"""
        self._expect(TokenType.CREATE)
        self._expect(TokenType.TABLE, f"Expected TABLE after CREATE, got {self._describe()}")

        table = self._expect_identifier("table name")

        self._expect(TokenType.LPAREN)
        columns = []
        while True:
            name = self._expect_identifier("column name")
            columns.append(ColumnDef(name=name, col_type=self._parse_type()))
            if not self._consume_if(TokenType.COMMA):
                break
        self._expect(TokenType.RPAREN)

        return CreateTableStatement(table=table, columns=columns)

    def _parse_alter(self) -> AlterTableStatement:
        """Parse ALTER TABLE ... ADD / DROP / MODIFY"""
        self._expect(TokenType.ALTER)
        self._expect(TokenType.TABLE)

        table = self._expect_identifier("table name")

        if self._consume_if(TokenType.ADD):
            name = self._expect_identifier("column name after ADD")
            col_type = ColumnType.TEXT
            if self._match(*self.TYPE_TOKENS):
                col_type = self._parse_type()
            action = AddColumn(ColumnDef(name=name, col_type=col_type))
        elif self._consume_if(TokenType.DROP):
            action = DropColumn(self._expect_identifier("column name after DROP"))
        elif self._consume_if(TokenType.MODIFY):
            name = self._expect_identifier("column name after MODIFY")
            action = ModifyColumn(name=name, new_type=self._parse_type())
        else:
            raise UnexpectedTokenError(f"Expected ADD, DROP or MODIFY, got {self._describe()}",
                                       self._current())

        return AlterTableStatement(table=table, action=action)

    def _parse_drop(self) -> DropTableStatement:
        """Parse DROP TABLE statement"""
        self._expect(TokenType.DROP)
        self._expect(TokenType.TABLE)
        return DropTableStatement(table=self._expect_identifier("table name"))

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    def _parse_predicate(self) -> Any:
        """Parse predicate (entry point); AND binds tighter than OR"""
        return self._parse_or_expression()

    def _parse_or_expression(self) -> Any:
        left = self._parse_and_expression()

        while self._consume_if(TokenType.OR):
            right = self._parse_and_expression()
            left = BinaryOp(left=left, operator='OR', right=right)

        return left

    def _parse_and_expression(self) -> Any:
        left = self._parse_comparison()

        while self._consume_if(TokenType.AND):
            right = self._parse_comparison()
            left = BinaryOp(left=left, operator='AND', right=right)

        return left

    def _parse_comparison(self) -> Any:
        """Parse operand op operand, or a parenthesised predicate"""
        if self._consume_if(TokenType.LPAREN):
            expr = self._parse_predicate()
            self._expect(TokenType.RPAREN)
            return expr

        left = self._parse_operand()

        operator = COMPARISON_TOKENS.get(self._current().type)
        if operator is None:
            raise UnexpectedTokenError(f"Expected comparison operator, got {self._describe()}",
                                       self._current())
        self._advance()

        return BinaryOp(left=left, operator=operator, right=self._parse_operand())

    def _parse_operand(self) -> Any:
        if self._match(TokenType.STRING, TokenType.INTEGER):
            return Literal(self._advance().value)
        if self._match(*AGGREGATE_TOKENS):
            return self._parse_aggregate()
        if self._match(TokenType.IDENTIFIER):
            return self._parse_column_ref()
        raise UnexpectedTokenError(f"Expected column, value or aggregate, got {self._describe()}",
                                   self._current())


def parse_sql(sql: str) -> Statement:
    """Parse a SQL string into an AST"""
    lexer = Lexer(sql)
    tokens = lexer.tokenize()
    parser = Parser(tokens)
    return parser.parse()


def parse_script(sql: str) -> List[Statement]:
    """Parse several ;-separated statements, skipping empty ones"""
    tokens = Lexer(sql).tokenize()
    eof = tokens[-1]

    statements = []
    current = []
    for token in tokens[:-1]:
        if token.type == TokenType.SEMICOLON:
            if current:
                statements.append(Parser(current + [eof]).parse())
            current = []
        else:
            current.append(token)
    if current:
        statements.append(Parser(current + [eof]).parse())

    return statements
