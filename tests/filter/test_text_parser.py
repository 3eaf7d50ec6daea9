#!/usr/bin/env python3
"""
Tests for the text filter parser.
"""

import pytest

from vectorstore.exceptions import InvalidFilterError
from vectorstore.filter import Expression, ExpressionType, Group, Key, Value


class TestFilterExpressionTextParser:
    """Test parsing of text filters."""

    def test_empty_filter(self, text_parser):
        """Test empty text means no filter."""
        assert text_parser.parse("") is None
        assert text_parser.parse("   ") is None
        assert text_parser.parse(None) is None

    def test_simple_equality(self, text_parser):
        """Test a single comparison."""
        expr = text_parser.parse("country == 'BG'")
        assert expr == Expression(ExpressionType.EQ, Key("country"), Value("BG"))

    def test_comparison_operators(self, text_parser):
        """Test every comparison token."""
        cases = {
            "year == 2020": ExpressionType.EQ,
            "year != 2020": ExpressionType.NE,
            "year < 2020": ExpressionType.LT,
            "year <= 2020": ExpressionType.LTE,
            "year > 2020": ExpressionType.GT,
            "year >= 2020": ExpressionType.GTE,
        }
        for text, op in cases.items():
            expr = text_parser.parse(text)
            assert expr.type == op, text
            assert expr.right == Value(2020)

    def test_literals(self, text_parser):
        """Test number, boolean, null and string literals."""
        assert text_parser.parse("a == 1.5").right == Value(1.5)
        assert text_parser.parse("a == -3").right == Value(-3)
        assert text_parser.parse("a == true").right == Value(True)
        assert text_parser.parse("a == FALSE").right == Value(False)
        assert text_parser.parse("a == null").right == Value(None)
        assert text_parser.parse('a == "x y"').right == Value("x y")
        assert text_parser.parse(r"a == 'it\'s'").right == Value("it's")

    def test_integer_stays_integer(self, text_parser):
        """Test integral literals are not parsed as floats."""
        value = text_parser.parse("year >= 2020").right.value
        assert isinstance(value, int)

    def test_membership(self, text_parser):
        """Test IN, NIN and NOT IN."""
        expr = text_parser.parse("genre in ['comedy', 'drama']")
        assert expr == Expression(ExpressionType.IN, Key("genre"), Value(["comedy", "drama"]))

        assert text_parser.parse("genre NIN ['comedy']").type == ExpressionType.NIN
        assert text_parser.parse("genre not in [1, 2]").type == ExpressionType.NIN
        assert text_parser.parse("genre in []").right == Value([])

    def test_and_binds_tighter_than_or(self, text_parser):
        """Test precedence: a || b && c == a || (b && c)."""
        expr = text_parser.parse("a == 1 || b == 2 && c == 3")

        assert expr.type == ExpressionType.OR
        assert expr.left == Expression(ExpressionType.EQ, Key("a"), Value(1))
        assert expr.right.type == ExpressionType.AND

    def test_keyword_operators(self, text_parser):
        """Test AND/OR/NOT keywords match their symbols."""
        symbols = text_parser.parse("a == 1 && !(b == 2) || c == 3")
        keywords = text_parser.parse("a == 1 AND NOT (b == 2) OR c == 3")
        assert symbols == keywords

    def test_parentheses_become_groups(self, text_parser):
        """Test parentheses keep precedence as Group nodes."""
        expr = text_parser.parse("(a == 1 || b == 2) && c == 3")

        assert expr.type == ExpressionType.AND
        assert isinstance(expr.left, Group)
        assert expr.left.content.type == ExpressionType.OR

    def test_outer_group_is_dropped(self, text_parser):
        """Test a fully parenthesised filter returns a plain expression."""
        expr = text_parser.parse("((a == 1 && b == 2))")
        assert isinstance(expr, Expression)
        assert expr.type == ExpressionType.AND

    def test_not(self, text_parser):
        """Test NOT over a group."""
        expr = text_parser.parse("NOT (isOpen == true)")

        assert expr.type == ExpressionType.NOT
        assert expr.left == Group(Expression(ExpressionType.EQ, Key("isOpen"), Value(True)))

    def test_quoted_key_keeps_quotes(self, text_parser):
        """Test quoted identifiers reach converters with their quotes."""
        expr = text_parser.parse("'author name' == 'Kate'")
        assert expr.left == Key("'author name'")

        expr = text_parser.parse('"a.b" == 1')
        assert expr.left == Key('"a.b"')

    def test_dotted_key(self, text_parser):
        """Test nested field paths."""
        expr = text_parser.parse("info.lang == 'bg'")
        assert expr.left == Key("info.lang")

    def test_matches_builder(self, text_parser, b):
        """Test parsed and built trees are identical."""
        expr = text_parser.parse("country == 'BG' && year >= 2020 && genre nin ['a']")
        assert expr == b.and_(b.eq("country", "BG"), b.gte("year", 2020), b.nin("genre", ["a"]))

    @pytest.mark.parametrize("text, message", [
        ("country = 'BG'", "'=='"),
        ("country == ", "literal"),
        ("== 'BG'", "field name"),
        ("(a == 1", "Unbalanced"),
        ("a == 1)", "Unexpected token"),
        ("a == 'open", "Unterminated"),
        ("a in 1", "'\\['"),
        ("a in [1, 2", "'\\]'"),
        ("a not b", "IN after NOT"),
        ("a 1", "operator"),
        ("a == 1 &&", "end of filter"),
        ("a == #", "Unexpected character"),
    ])
    def test_syntax_errors(self, text_parser, text, message):
        """Test invalid text raises InvalidFilterError."""
        with pytest.raises(InvalidFilterError, match=message):
            text_parser.parse(text)
