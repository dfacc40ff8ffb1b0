"""
Expression System for XForm logic attributes

The relevant, constraint and calculate attributes of a bind declaration
are parsed into small Abstract Syntax Trees (ASTs). These trees describe
structure only: nothing here evaluates a condition against field values.

Node kinds:
    FunctionCall   concat(...) / uuid(...)
    Conditional    if(test, when_true, when_false)
    SelectOrRegex  selected(path, value) / regex(path, value)
    Comparison     path OP value, optionally wrapped: fn(path) OP value
    BooleanGroup   OR of AND-groups
    Unparsed       text that matched none of the forms above

All nodes are immutable (frozen=True) and compare by value.
"""

from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Tuple, Union


class Expression(ABC):
    """
    Base class for all AST expressions.

    This class is structure only.
    """
    pass


class MatchOperator(Enum):
    """Operators produced by the selected() and regex() functions."""

    SELECTED = "="
    REGEX = "~"


@dataclass(frozen=True)
class FunctionCall(Expression):
    """
    A value-producing function call.

    Example:
        concat(/data/first, ' ', /data/last)

    Becomes:
        FunctionCall(
            name="concat",
            args=(Unparsed("/data/first"), Unparsed(" "), Unparsed("/data/last")),
        )

    Arguments are parsed recursively, so a plain path or literal argument
    ends up as Unparsed text.
    """

    name: str
    args: Tuple[Expression, ...] = ()


@dataclass(frozen=True)
class BooleanGroup(Expression):
    """
    A disjunction of conjunctions.

    Each item of terms is either a single expression (a disjunct with
    one conjunct) or a tuple of expressions that must all hold.

    Example:
        a = 1 or b = 2 and c = 3

    Becomes:
        BooleanGroup(terms=(
            Comparison("=", "/x/a", "1"),
            (Comparison("=", "/x/b", "2"), Comparison("=", "/x/c", "3")),
        ))
    """

    terms: Tuple[Union[Expression, Tuple[Expression, ...]], ...] = ()

    def conjunctions(self) -> Iterator[Tuple[Expression, ...]]:
        """Yield every disjunct as a tuple of conjuncts."""
        for term in self.terms:
            if isinstance(term, tuple):
                yield term
            else:
                yield (term,)


@dataclass(frozen=True)
class Conditional(Expression):
    """
    if(test, when_true, when_false)

    test is always a BooleanGroup; the branches are single expressions.
    """

    test: BooleanGroup
    when_true: Expression
    when_false: Expression


@dataclass(frozen=True)
class SelectOrRegex(Expression):
    """
    selected(path, value) or regex(path, value).

    Properties:
        op: MatchOperator.SELECTED ("=") or MatchOperator.REGEX ("~")
        path: Resolved field path
        value: Choice value or regular expression, quotes stripped
    """

    op: MatchOperator
    path: str
    value: str


@dataclass(frozen=True)
class Comparison(Expression):
    """
    A generic comparison of a field against a value.

    Examples:
        ../age >= 18                -> Comparison(">=", "/data/age", "18")
        string-length(.) > 3        -> Comparison(">", "/data/name", "3",
                                                  wrapper_function="string-length")

    op is kept verbatim: any run of <, > and = characters, or "!=".
    """

    op: str
    path: str
    value: str
    wrapper_function: Optional[str] = None


@dataclass(frozen=True)
class Unparsed(Expression):
    """
    Text that matched none of the known grammar forms.

    Kept as-is so no information is lost. Plain literals and bare paths
    inside concat() arguments or if() branches also end up here.
    """

    text: str


@dataclass(frozen=True)
class BoundCondition:
    """
    A relevant or constraint condition as declared on a bind.

    Properties:
        condition: The parsed OR-of-AND group
        message: The bind's jr:constraintMsg, if any
    """

    condition: BooleanGroup
    message: Optional[str] = None


def iter_expressions(expr: Optional[Expression]) -> Iterator[Expression]:
    """Walk an expression tree depth-first, yielding every node."""
    if expr is None:
        return
    yield expr
    if isinstance(expr, FunctionCall):
        for arg in expr.args:
            yield from iter_expressions(arg)
    elif isinstance(expr, Conditional):
        yield from iter_expressions(expr.test)
        yield from iter_expressions(expr.when_true)
        yield from iter_expressions(expr.when_false)
    elif isinstance(expr, BooleanGroup):
        for conjunction in expr.conjunctions():
            for item in conjunction:
                yield from iter_expressions(item)


def referenced_paths(expr: Optional[Expression]) -> Tuple[str, ...]:
    """Return every field path an expression refers to, in order, without duplicates."""
    seen = []
    for node in iter_expressions(expr):
        if isinstance(node, (SelectOrRegex, Comparison)) and node.path not in seen:
            seen.append(node.path)
    return tuple(seen)
