#!/usr/bin/env python3
"""
Tests for the filter expression model and builder.
"""

from datetime import datetime

import pytest

from vectorstore.exceptions import MalformedExpressionError
from vectorstore.filter import Expression, ExpressionType, Group, Key, Value


class TestExpressionModel:
    """Test node construction and well-typedness."""

    def test_comparison_node(self):
        """Test a simple comparison node."""
        expr = Expression(ExpressionType.EQ, Key("country"), Value("BG"))

        assert expr.type == ExpressionType.EQ
        assert expr.left == Key("country")
        assert expr.right == Value("BG")

    def test_list_values_are_frozen(self):
        """Test list values become tuples and keep their order."""
        value = Value([3, 1, 2])

        assert value.value == (3, 1, 2)
        assert value.is_list

    def test_nodes_are_immutable(self):
        """Test nodes cannot be mutated after construction."""
        expr = Expression(ExpressionType.EQ, Key("a"), Value(1))

        with pytest.raises(AttributeError):
            expr.type = ExpressionType.NE

    def test_nodes_are_hashable(self):
        """Test equal trees hash equally."""
        first = Expression(ExpressionType.IN, Key("a"), Value([1, 2]))
        second = Expression(ExpressionType.IN, Key("a"), Value([1, 2]))

        assert first == second
        assert len({first, second}) == 1

    def test_datetime_value(self):
        """Test datetimes are accepted as literals."""
        value = Value(datetime(2020, 1, 1))
        assert not value.is_list

    def test_comparison_requires_key(self):
        """Test comparison nodes reject a non-key left operand."""
        with pytest.raises(MalformedExpressionError, match="Key"):
            Expression(ExpressionType.EQ, Value("a"), Value(1))

    def test_comparison_requires_value(self):
        """Test comparison nodes reject a non-value right operand."""
        with pytest.raises(MalformedExpressionError, match="Value"):
            Expression(ExpressionType.EQ, Key("a"), Key("b"))

    def test_in_requires_list(self):
        """Test IN and NIN need list values."""
        with pytest.raises(MalformedExpressionError, match="list"):
            Expression(ExpressionType.IN, Key("a"), Value(1))

        with pytest.raises(MalformedExpressionError, match="list"):
            Expression(ExpressionType.NIN, Key("a"), Value("x"))

    @pytest.mark.parametrize("op", [
        ExpressionType.EQ, ExpressionType.NE,
        ExpressionType.LT, ExpressionType.LTE,
        ExpressionType.GT, ExpressionType.GTE,
    ])
    def test_scalar_comparison_rejects_list(self, op):
        """Test only IN and NIN take list values."""
        with pytest.raises(MalformedExpressionError, match="single value"):
            Expression(op, Key("tags"), Value(["a", "b"]))

    def test_compound_requires_expressions(self):
        """Test AND/OR reject non-expression children."""
        eq = Expression(ExpressionType.EQ, Key("a"), Value(1))

        with pytest.raises(MalformedExpressionError, match="two sub-expressions"):
            Expression(ExpressionType.AND, eq, Key("b"))

        with pytest.raises(MalformedExpressionError, match="two sub-expressions"):
            Expression(ExpressionType.OR, eq)

    def test_not_takes_one_child(self):
        """Test NOT holds exactly one sub-expression."""
        eq = Expression(ExpressionType.EQ, Key("a"), Value(1))

        Expression(ExpressionType.NOT, Group(eq))

        with pytest.raises(MalformedExpressionError, match="NOT"):
            Expression(ExpressionType.NOT, eq, eq)

    def test_unsupported_literals(self):
        """Test dicts and nested lists are rejected."""
        with pytest.raises(MalformedExpressionError):
            Value({"a": 1})

        with pytest.raises(MalformedExpressionError):
            Value([[1, 2]])

    def test_empty_key(self):
        """Test keys must be non-empty strings."""
        with pytest.raises(MalformedExpressionError):
            Key("")

    def test_group_requires_expression(self):
        """Test groups wrap expressions only."""
        with pytest.raises(MalformedExpressionError):
            Group(Key("a"))

    def test_operator_categories(self):
        """Test logical and comparison helpers."""
        assert ExpressionType.AND.is_logical
        assert ExpressionType.NOT.is_logical
        assert not ExpressionType.EQ.is_logical
        assert ExpressionType.NIN.is_comparison


class TestFilterExpressionBuilder:
    """Test the fluent builder."""

    def test_comparisons(self, b):
        """Test each comparison helper builds the right node."""
        assert b.eq("a", 1) == Expression(ExpressionType.EQ, Key("a"), Value(1))
        assert b.ne("a", 1).type == ExpressionType.NE
        assert b.gt("a", 1).type == ExpressionType.GT
        assert b.gte("a", 1).type == ExpressionType.GTE
        assert b.lt("a", 1).type == ExpressionType.LT
        assert b.lte("a", 1).type == ExpressionType.LTE
        assert b.in_("a", [1, 2]).right == Value((1, 2))
        assert b.nin("a", [1, 2]).type == ExpressionType.NIN

    def test_and_folds_left(self, b):
        """Test and_ with three operands nests to the left."""
        expr = b.and_(b.eq("a", 1), b.eq("b", 2), b.eq("c", 3))

        assert expr.type == ExpressionType.AND
        assert expr.left.type == ExpressionType.AND
        assert expr.left.left == b.eq("a", 1)
        assert expr.right == b.eq("c", 3)

    def test_or_requires_two_operands(self, b):
        """Test or_ rejects a single operand."""
        with pytest.raises(MalformedExpressionError, match="at least two"):
            b.or_(b.eq("a", 1))

    def test_not_and_group(self, b):
        """Test not_ and group helpers."""
        expr = b.not_(b.group(b.or_(b.eq("a", 1), b.eq("b", 2))))

        assert expr.type == ExpressionType.NOT
        assert isinstance(expr.left, Group)
        assert expr.left.content.type == ExpressionType.OR
