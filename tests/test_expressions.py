"""
Tests for the Expression System

These tests verify:
    - Expression objects can be created
    - Expression immutability and value equality
    - Tree helpers (conjunctions, iteration, referenced paths)
"""

import pytest
from odkform.expressions import (
    BooleanGroup,
    BoundCondition,
    Comparison,
    Conditional,
    Expression,
    FunctionCall,
    MatchOperator,
    SelectOrRegex,
    Unparsed,
    iter_expressions,
    referenced_paths,
)


class TestNodes:
    """Creating individual nodes."""

    def test_comparison_fields(self):
        expr = Comparison(">=", "/data/age", "18")
        assert expr.op == ">="
        assert expr.path == "/data/age"
        assert expr.value == "18"
        assert expr.wrapper_function is None

    def test_select_or_regex_operators(self):
        """Operator values mirror the source notation."""
        assert MatchOperator.SELECTED.value == "="
        assert MatchOperator.REGEX.value == "~"
        expr = SelectOrRegex(MatchOperator.REGEX, "/data/code", "[A-Z]+")
        assert expr.op is MatchOperator.REGEX

    def test_all_nodes_are_expressions(self):
        group = BooleanGroup(terms=(Unparsed("x"),))
        nodes = [
            FunctionCall("uuid"),
            Conditional(group, Unparsed("a"), Unparsed("b")),
            SelectOrRegex(MatchOperator.SELECTED, "/d/x", "y"),
            Comparison("=", "/d/x", "1"),
            group,
            Unparsed("x"),
        ]
        for node in nodes:
            assert isinstance(node, Expression)

    def test_bound_condition_message_optional(self):
        group = BooleanGroup(terms=(Comparison("=", "/d/x", "1"),))
        assert BoundCondition(group).message is None
        assert BoundCondition(group, "Bad value").message == "Bad value"


class TestImmutability:
    """Nodes are frozen and compare by value."""

    def test_comparison_immutable(self):
        expr = Comparison("=", "/d/x", "1")
        with pytest.raises(AttributeError):
            expr.value = "2"

    def test_value_equality(self):
        assert Comparison("=", "/d/x", "1") == Comparison("=", "/d/x", "1")
        assert FunctionCall("concat", (Unparsed("a"),)) == FunctionCall("concat", (Unparsed("a"),))

    def test_nodes_are_hashable(self):
        group = BooleanGroup(terms=((Comparison("=", "/d/x", "1"), Unparsed("y")),))
        assert len({group, group}) == 1


class TestBooleanGroup:
    """OR-of-AND structure."""

    def test_conjunctions_normalizes_single_terms(self):
        a = Comparison("=", "/d/a", "1")
        b = Comparison("=", "/d/b", "2")
        c = Comparison("=", "/d/c", "3")
        group = BooleanGroup(terms=(a, (b, c)))
        assert list(group.conjunctions()) == [(a,), (b, c)]

    def test_empty_group(self):
        assert list(BooleanGroup().conjunctions()) == []


class TestTreeHelpers:
    """Walking expression trees."""

    def test_iter_expressions_visits_nested_nodes(self):
        test = BooleanGroup(terms=(Comparison("=", "/d/x", "1"),))
        expr = Conditional(test, FunctionCall("concat", (Unparsed("a"),)), Unparsed("b"))
        kinds = [type(node).__name__ for node in iter_expressions(expr)]
        assert kinds == [
            "Conditional", "BooleanGroup", "Comparison", "FunctionCall", "Unparsed", "Unparsed",
        ]

    def test_iter_expressions_none(self):
        assert list(iter_expressions(None)) == []

    def test_referenced_paths_in_order_without_duplicates(self):
        group = BooleanGroup(terms=(
            SelectOrRegex(MatchOperator.SELECTED, "/d/b", "yes"),
            (Comparison(">", "/d/a", "1"), Comparison("<", "/d/b", "9")),
        ))
        assert referenced_paths(group) == ("/d/b", "/d/a")
