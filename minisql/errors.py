"""
Errors - Exception taxonomy for MiniSQL

Every failure is raised close to its cause and propagates unchanged to the
caller. All errors derive from ValueError so callers that already guard
statements with ``except ValueError`` keep working.
"""


class MiniSQLError(ValueError):
    """Root of all MiniSQL errors"""


# ============================================================================
# Lexer errors
# ============================================================================

class LexError(MiniSQLError):
    """Statement rejected while tokenizing"""
    def __init__(self, message: str, line: int, column: int):
        self.line = line
        self.column = column
        super().__init__(f"{message} at line {line}, column {column}")


class UnterminatedStringError(LexError):
    pass


class UnexpectedCharError(LexError):
    pass


# ============================================================================
# Parser errors
# ============================================================================

class ParseError(MiniSQLError):
    """Parser error with position information"""
    def __init__(self, message: str, token):
        self.token = token
        super().__init__(f"{message} at line {token.line}, column {token.column}")


class UnknownStatementError(ParseError):
    pass


class UnexpectedTokenError(ParseError):
    pass


class ArityError(ParseError):
    """INSERT column list and value list differ in length"""


class MissingClauseError(ParseError):
    pass


# ============================================================================
# Engine errors
# ============================================================================

class EngineError(MiniSQLError):
    """Statement rejected during execution"""


class TableExistsError(EngineError):
    pass


class NoSuchTableError(EngineError):
    pass


class UnknownColumnError(EngineError):
    pass


class AmbiguousColumnError(EngineError):
    pass


class DuplicateColumnError(EngineError):
    pass


class InvalidProjectionError(EngineError):
    """Non-aggregated column used outside the GROUP BY keys"""


class MisplacedAggregateError(EngineError):
    """Aggregate call used where only row-level expressions are allowed"""


class TypeMismatchError(EngineError):
    pass


class RowWidthError(EngineError):
    """Row value count differs from the table's column count"""
