"""Parser module - Lexer and Parser"""

from .lexer import Lexer, Token, TokenType, tokenize
from .parser import Parser, parse_sql, parse_script

__all__ = ['Lexer', 'Token', 'TokenType', 'tokenize', 'Parser', 'parse_sql', 'parse_script']
