"""
Data Types Module - Column types and value semantics for MiniSQL

Values are plain Python objects: ``int`` (Integer), ``str`` (Text) and
``None`` (Null). Literals arrive from the parser as raw text and are
converted against a destination column type here, never implicitly.
"""

from enum import Enum
from typing import Any, Optional, Tuple

from ..errors import TypeMismatchError


class ColumnType(Enum):
    """Supported column types"""
    INT = 'INT'
    TEXT = 'TEXT'

    def __str__(self) -> str:
        return self.value


# Integers are signed 64-bit
INT_MAX = 2 ** 63 - 1
INT_MIN = -2 ** 63


def is_digits(text: str) -> bool:
    """True for a non-empty run of ASCII digits"""
    return text.isascii() and text.isdigit()


def parse_int(text: str) -> Optional[int]:
    """Integer value of digit-only text, or None when not digits or out of range"""
    if not is_digits(text):
        return None
    # int() rejects very long strings, so bound the length first
    if len(text.lstrip('0')) > len(str(INT_MAX)):
        return None
    value = int(text)
    return value if value <= INT_MAX else None


class TypeValidator:
    """Converts and compares values according to column types"""

    @staticmethod
    def is_compatible(value: Any, col_type: ColumnType) -> bool:
        """Null fits every column; otherwise the Python type must match"""
        if value is None:
            return True
        if col_type == ColumnType.INT:
            return (isinstance(value, int) and not isinstance(value, bool)
                    and INT_MIN <= value <= INT_MAX)
        return isinstance(value, str)

    @staticmethod
    def coerce_literal(raw: str, col_type: ColumnType, column: str = None) -> Any:
        """
        Convert literal text for a write into a column.

        Unlike MODIFY, which turns unconvertible values into Null, a write
        with a bad value fails so that no data is silently lost.

        Raises:
            TypeMismatchError: text that is not an in-range Integer written to an INT column
        """
        if col_type == ColumnType.TEXT:
            return raw
        value = parse_int(raw)
        if value is not None:
            return value
        target = f"column '{column}'" if column else "INT column"
        shown = raw if len(raw) <= 40 else raw[:40] + '...'
        raise TypeMismatchError(f"Cannot store '{shown}' in {target} of type INT")

    @staticmethod
    def convert(value: Any, col_type: ColumnType) -> Any:
        """Best-effort conversion of a stored value to a new column type"""
        if value is None:
            return None
        if col_type == ColumnType.TEXT:
            return str(value)
        if isinstance(value, int):
            return value
        return parse_int(value)

    @staticmethod
    def resolve_literal(raw: str, other: Any) -> Any:
        """Interpret literal text against the value it is compared with"""
        if isinstance(other, int):
            value = parse_int(raw)
            if value is not None:
                return value
        return raw

    @staticmethod
    def compare(left: Any, operator: str, right: Any) -> bool:
        """
        Compare two values.

        Null never compares true. Values of different types are simply
        not equal, so ``!=`` holds and ordering comparisons do not.
        """
        if left is None or right is None:
            return False
        if type(left) is not type(right):
            return operator == '!='

        if operator == '=':
            return left == right
        if operator == '!=':
            return left != right
        if operator == '<':
            return left < right
        if operator == '>':
            return left > right
        if operator == '<=':
            return left <= right
        if operator == '>=':
            return left >= right
        raise ValueError(f"Unknown comparison operator: {operator}")

    @staticmethod
    def sort_key(value: Any) -> Tuple:
        """Ascending sort key; Null sorts before everything else"""
        if value is None:
            return (0,)
        if isinstance(value, int):
            return (1, 0, value)
        return (1, 1, value)

    @staticmethod
    def format(value: Optional[Any]) -> str:
        """Render a value as text"""
        if value is None:
            return 'NULL'
        return str(value)
