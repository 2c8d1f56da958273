#!/usr/bin/env python3
"""
Lexer tests

Run: python -m pytest minisql/tests/test_lexer.py -v
"""

import os
import sys
import unittest

# Add parent directories to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from minisql.parser import TokenType, tokenize
from minisql.errors import LexError, UnexpectedCharError, UnterminatedStringError


def types(sql):
    return [token.type for token in tokenize(sql)]


class TestLexer(unittest.TestCase):
    """Test tokenization of SQL text"""

    def test_keywords_case_insensitive(self):
        """Keywords match in any case and carry their upper-case text"""
        tokens = tokenize("select FROM WhErE")
        self.assertEqual([t.type for t in tokens],
                         [TokenType.SELECT, TokenType.FROM, TokenType.WHERE, TokenType.EOF])
        self.assertEqual(tokens[0].value, 'SELECT')

    def test_identifiers_keep_case(self):
        tokens = tokenize("Users user_id2")
        self.assertEqual(tokens[0].type, TokenType.IDENTIFIER)
        self.assertEqual(tokens[0].value, 'Users')
        self.assertEqual(tokens[1].value, 'user_id2')

    def test_integer_alias(self):
        self.assertEqual(types("INT integer TEXT"),
                         [TokenType.INT, TokenType.INT, TokenType.TEXT, TokenType.EOF])

    def test_dotted_identifier(self):
        """table.column splits into identifier, dot, identifier"""
        tokens = tokenize("users.name")
        self.assertEqual([t.type for t in tokens], [
            TokenType.IDENTIFIER, TokenType.DOT, TokenType.IDENTIFIER, TokenType.EOF,
        ])
        self.assertEqual([tokens[0].value, tokens[2].value], ['users', 'name'])

    def test_string_verbatim(self):
        """String content is taken as-is, keywords and digits included"""
        tokens = tokenize("'Select 42 -- not a comment'")
        self.assertEqual(tokens[0].type, TokenType.STRING)
        self.assertEqual(tokens[0].value, 'Select 42 -- not a comment')

    def test_empty_string(self):
        tokens = tokenize("''")
        self.assertEqual(tokens[0].type, TokenType.STRING)
        self.assertEqual(tokens[0].value, '')

    def test_integer_literal(self):
        tokens = tokenize("007")
        self.assertEqual(tokens[0].type, TokenType.INTEGER)
        self.assertEqual(tokens[0].value, '007')

    def test_operators(self):
        self.assertEqual(types("= != <> < > <= >="), [
            TokenType.EQUALS, TokenType.NOT_EQUALS, TokenType.NOT_EQUALS,
            TokenType.LESS_THAN, TokenType.GREATER_THAN,
            TokenType.LESS_EQUALS, TokenType.GREATER_EQUALS, TokenType.EOF,
        ])

    def test_operators_without_spaces(self):
        self.assertEqual(types("age>=30"), [
            TokenType.IDENTIFIER, TokenType.GREATER_EQUALS, TokenType.INTEGER, TokenType.EOF,
        ])

    def test_punctuation(self):
        self.assertEqual(types("(*,);"), [
            TokenType.LPAREN, TokenType.STAR, TokenType.COMMA,
            TokenType.RPAREN, TokenType.SEMICOLON, TokenType.EOF,
        ])

    def test_comments_skipped(self):
        sql = "SELECT * -- everything\nFROM users"
        self.assertEqual(types(sql), [
            TokenType.SELECT, TokenType.STAR, TokenType.FROM, TokenType.IDENTIFIER, TokenType.EOF,
        ])

    def test_positions(self):
        tokens = tokenize("SELECT *\n  FROM t")
        self.assertEqual((tokens[0].line, tokens[0].column), (1, 1))
        self.assertEqual((tokens[2].line, tokens[2].column), (2, 3))

    def test_empty_input(self):
        self.assertEqual(types("   "), [TokenType.EOF])

    def test_unterminated_string(self):
        with self.assertRaises(UnterminatedStringError) as ctx:
            tokenize("SELECT * FROM t WHERE name = 'abc")
        self.assertEqual(ctx.exception.column, 30)
        self.assertIsInstance(ctx.exception, LexError)

    def test_unexpected_character(self):
        with self.assertRaises(UnexpectedCharError) as ctx:
            tokenize("SELECT @ FROM t")
        self.assertEqual((ctx.exception.line, ctx.exception.column), (1, 8))

    def test_non_ascii_digit(self):
        with self.assertRaises(UnexpectedCharError) as ctx:
            tokenize("SELECT * FROM t WHERE n = ٣")
        self.assertEqual(ctx.exception.column, 27)

    def test_non_ascii_letter(self):
        with self.assertRaises(UnexpectedCharError) as ctx:
            tokenize("SELECT café FROM t")
        self.assertEqual(ctx.exception.column, 11)

    def test_non_ascii_inside_string(self):
        tokens = tokenize("'café ٣'")
        self.assertEqual(tokens[0].value, 'café ٣')

    def test_lone_bang(self):
        with self.assertRaises(UnexpectedCharError):
            tokenize("a ! b")

    def test_errors_are_value_errors(self):
        with self.assertRaises(ValueError):
            tokenize("#")


if __name__ == '__main__':
    unittest.main()
