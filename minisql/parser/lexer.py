"""
SQL Lexer - Tokenizes SQL statements

Converts raw SQL strings into a stream of tokens for the parser.
A single forward pass over the text; whitespace and ``--`` comments
separate tokens and are never emitted.
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import List, Optional

from ..errors import UnexpectedCharError, UnterminatedStringError


class TokenType(Enum):
    """Types of tokens in SQL"""
    # Keywords
    SELECT = auto()
    FROM = auto()
    WHERE = auto()
    INSERT = auto()
    INTO = auto()
    VALUES = auto()
    UPDATE = auto()
    SET = auto()
    DELETE = auto()
    CREATE = auto()
    TABLE = auto()
    ALTER = auto()
    ADD = auto()
    DROP = auto()
    MODIFY = auto()
    ORDER = auto()
    BY = auto()
    ASC = auto()
    DESC = auto()
    GROUP = auto()
    HAVING = auto()
    JOIN = auto()
    INNER = auto()
    LEFT = auto()
    RIGHT = auto()
    FULL = auto()
    OUTER = auto()
    CROSS = auto()
    ON = auto()
    AND = auto()
    OR = auto()
    COUNT = auto()
    SUM = auto()
    AVG = auto()
    MIN = auto()
    MAX = auto()
    INT = auto()
    TEXT = auto()

    # Operators
    EQUALS = auto()
    NOT_EQUALS = auto()
    LESS_THAN = auto()
    GREATER_THAN = auto()
    LESS_EQUALS = auto()
    GREATER_EQUALS = auto()

    # Punctuation
    LPAREN = auto()
    RPAREN = auto()
    COMMA = auto()
    SEMICOLON = auto()
    DOT = auto()
    STAR = auto()

    # Literals
    INTEGER = auto()
    STRING = auto()
    IDENTIFIER = auto()

    # Special
    EOF = auto()


AGGREGATE_TOKENS = (
    TokenType.COUNT, TokenType.SUM, TokenType.AVG, TokenType.MIN, TokenType.MAX,
)

COMPARISON_TOKENS = {
    TokenType.EQUALS: '=',
    TokenType.NOT_EQUALS: '!=',
    TokenType.LESS_THAN: '<',
    TokenType.GREATER_THAN: '>',
    TokenType.LESS_EQUALS: '<=',
    TokenType.GREATER_EQUALS: '>=',
}


# Input is ASCII; str.isdigit/isalpha would also accept other scripts
def _is_digit(char: str) -> bool:
    return '0' <= char <= '9'


def _is_word_start(char: str) -> bool:
    return char.isascii() and (char.isalpha() or char == '_')


def _is_word_char(char: str) -> bool:
    return _is_word_start(char) or _is_digit(char)


@dataclass
class Token:
    """A single token"""
    type: TokenType
    value: Optional[str]
    line: int
    column: int

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r})"


class Lexer:
    """SQL Lexer - converts SQL text to tokens"""

    # Keywords mapping (matched case-insensitively)
    KEYWORDS = {
        'SELECT': TokenType.SELECT,
        'FROM': TokenType.FROM,
        'WHERE': TokenType.WHERE,
        'INSERT': TokenType.INSERT,
        'INTO': TokenType.INTO,
        'VALUES': TokenType.VALUES,
        'UPDATE': TokenType.UPDATE,
        'SET': TokenType.SET,
        'DELETE': TokenType.DELETE,
        'CREATE': TokenType.CREATE,
        'TABLE': TokenType.TABLE,
        'ALTER': TokenType.ALTER,
        'ADD': TokenType.ADD,
        'DROP': TokenType.DROP,
        'MODIFY': TokenType.MODIFY,
        'ORDER': TokenType.ORDER,
        'BY': TokenType.BY,
        'ASC': TokenType.ASC,
        'DESC': TokenType.DESC,
        'GROUP': TokenType.GROUP,
        'HAVING': TokenType.HAVING,
        'JOIN': TokenType.JOIN,
        'INNER': TokenType.INNER,
        'LEFT': TokenType.LEFT,
        'RIGHT': TokenType.RIGHT,
        'FULL': TokenType.FULL,
        'OUTER': TokenType.OUTER,
        'CROSS': TokenType.CROSS,
        'ON': TokenType.ON,
        'AND': TokenType.AND,
        'OR': TokenType.OR,
        'COUNT': TokenType.COUNT,
        'SUM': TokenType.SUM,
        'AVG': TokenType.AVG,
        'MIN': TokenType.MIN,
        'MAX': TokenType.MAX,
        'INT': TokenType.INT,
        'INTEGER': TokenType.INT,
        'TEXT': TokenType.TEXT,
    }

    SINGLE_CHAR_TOKENS = {
        '=': TokenType.EQUALS,
        '<': TokenType.LESS_THAN,
        '>': TokenType.GREATER_THAN,
        '*': TokenType.STAR,
        '(': TokenType.LPAREN,
        ')': TokenType.RPAREN,
        ',': TokenType.COMMA,
        ';': TokenType.SEMICOLON,
        '.': TokenType.DOT,
    }

    TWO_CHAR_TOKENS = {
        '!=': TokenType.NOT_EQUALS,
        '<>': TokenType.NOT_EQUALS,
        '<=': TokenType.LESS_EQUALS,
        '>=': TokenType.GREATER_EQUALS,
    }

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.line = 1
        self.column = 1

    def _current_char(self) -> Optional[str]:
        """Get current character or None if at end"""
        if self.pos >= len(self.text):
            return None
        return self.text[self.pos]

    def _peek(self, offset: int = 1) -> Optional[str]:
        """Peek at character ahead"""
        pos = self.pos + offset
        if pos >= len(self.text):
            return None
        return self.text[pos]

    def _advance(self) -> str:
        """Advance position and return current char"""
        char = self._current_char()
        self.pos += 1
        if char == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return char

    def _skip_whitespace(self) -> None:
        while self._current_char() is not None and self._current_char().isspace():
            self._advance()

    def _skip_comment(self) -> None:
        """Skip a -- comment up to the end of the line"""
        while self._current_char() is not None and self._current_char() != '\n':
            self._advance()

    def _read_string(self) -> Token:
        """Read a single-quoted string literal, taken verbatim"""
        start_line = self.line
        start_col = self.column
        self._advance()  # Opening quote

        value = []
        while self._current_char() is not None and self._current_char() != "'":
            value.append(self._advance())

        if self._current_char() is None:
            raise UnterminatedStringError("Unterminated string literal", start_line, start_col)
        self._advance()  # Closing quote

        return Token(TokenType.STRING, ''.join(value), start_line, start_col)

    def _read_number(self) -> Token:
        """Read an integer literal, kept as its digit text"""
        start_line = self.line
        start_col = self.column

        value = []
        while self._current_char() is not None and _is_digit(self._current_char()):
            value.append(self._advance())

        return Token(TokenType.INTEGER, ''.join(value), start_line, start_col)

    def _read_identifier(self) -> Token:
        """Read an identifier or keyword"""
        start_line = self.line
        start_col = self.column

        value = []
        while self._current_char() is not None and _is_word_char(self._current_char()):
            value.append(self._advance())

        identifier = ''.join(value)
        upper_id = identifier.upper()

        if upper_id in self.KEYWORDS:
            return Token(self.KEYWORDS[upper_id], upper_id, start_line, start_col)

        return Token(TokenType.IDENTIFIER, identifier, start_line, start_col)

    def tokenize(self) -> List[Token]:
        """Tokenize the entire input"""
        tokens = []

        while True:
            self._skip_whitespace()
            char = self._current_char()
            if char is None:
                break

            if char == '-' and self._peek() == '-':
                self._skip_comment()
                continue

            start_line = self.line
            start_col = self.column

            if char == "'":
                tokens.append(self._read_string())
                continue

            if _is_digit(char):
                tokens.append(self._read_number())
                continue

            if _is_word_start(char):
                tokens.append(self._read_identifier())
                continue

            pair = char + (self._peek() or '')
            if pair in self.TWO_CHAR_TOKENS:
                self._advance()
                self._advance()
                tokens.append(Token(self.TWO_CHAR_TOKENS[pair], pair, start_line, start_col))
                continue

            if char in self.SINGLE_CHAR_TOKENS:
                self._advance()
                tokens.append(Token(self.SINGLE_CHAR_TOKENS[char], char, start_line, start_col))
                continue

            raise UnexpectedCharError(f"Unexpected character {char!r}", start_line, start_col)

        tokens.append(Token(TokenType.EOF, None, self.line, self.column))

        return tokens


def tokenize(text: str) -> List[Token]:
    """Tokenize a SQL string"""
    return Lexer(text).tokenize()
