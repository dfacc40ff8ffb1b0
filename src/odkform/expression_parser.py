"""
Parser for XForm logic attributes (Raw attribute text → Expression AST).

The grammar is small and informal. An expression is tried against the
following forms in order, and the first one that matches wins:

    1. concat(...) / uuid(...)      FunctionCall
    2. if(test, a, b)               Conditional
    3. selected(p, v) / regex(p, v) SelectOrRegex
    4. lhs OP rhs                   Comparison
    otherwise                       Unparsed

relevant and constraint attributes are boolean groups: the text is split
on the word "or", each part on the word "and", and each resulting term is
parsed with the rules above.

Syntax Notes:
    - HTML entities are unescaped first (&lt; → <, &gt; → >)
    - Quoted strings are single tokens, so a quoted "and"/"or" never splits
    - Words are only split at the top level, never inside parentheses
    - Unquoted values that contain the words "and"/"or" still mis-split
    - Only the left operand of a comparison is resolved as a path
"""

import html
import re
from typing import List, NamedTuple, Optional, Tuple

from odkform.config import DEFAULT_OPTIONS
from odkform.expressions import (
    BooleanGroup,
    Comparison,
    Conditional,
    Expression,
    FunctionCall,
    MatchOperator,
    SelectOrRegex,
    Unparsed,
)
from odkform.paths import resolve_path


_VALUE_FUNCTIONS = {'concat', 'uuid'}
_MATCH_FUNCTIONS = {
    'selected': MatchOperator.SELECTED,
    'regex': MatchOperator.REGEX,
}

_TOKEN_RE = re.compile(r"""
      (?P<string>'[^']*'|"[^"]*")
    | (?P<lparen>\()
    | (?P<rparen>\))
    | (?P<comma>,)
    | (?P<op>!=|[<>=]+)
    | (?P<space>\s+)
    | (?P<text>[^\s'"(),<>=!]+|.)
""", re.VERBOSE | re.DOTALL)

_QUOTES_RE = re.compile(r"^['\"]|['\"]$")


class Token(NamedTuple):
    kind: str
    value: str
    start: int
    end: int


def _tokenize(text: str) -> List[Token]:
    """Split text into tokens. Every character ends up in exactly one token."""
    return [
        Token(m.lastgroup, m.group(), m.start(), m.end())
        for m in _TOKEN_RE.finditer(text)
    ]


def _strip_quotes(text: str) -> str:
    """Remove one leading and one trailing quote character, if present."""
    return _QUOTES_RE.sub('', text)


def _trim(tokens: List[Token]) -> List[Token]:
    start, end = 0, len(tokens)
    while start < end and tokens[start].kind == 'space':
        start += 1
    while end > start and tokens[end - 1].kind == 'space':
        end -= 1
    return tokens[start:end]


def _source(text: str, tokens: List[Token]) -> str:
    """Source text covered by tokens, without surrounding whitespace."""
    tokens = _trim(tokens)
    if not tokens:
        return ''
    return text[tokens[0].start:tokens[-1].end]


def _split(tokens: List[Token], is_separator, maxsplit: int = -1) -> List[List[Token]]:
    """Split tokens at top-level separators (outside any parentheses)."""
    parts: List[List[Token]] = [[]]
    depth = 0
    for token in tokens:
        if token.kind == 'lparen':
            depth += 1
        elif token.kind == 'rparen':
            depth -= 1
        elif depth == 0 and maxsplit != 0 and is_separator(token):
            parts.append([])
            maxsplit -= 1
            continue
        parts[-1].append(token)
    return parts


def _is_comma(token: Token) -> bool:
    return token.kind == 'comma'


def _word(word: str):
    return lambda token: token.kind == 'text' and token.value == word


def _match_call(tokens: List[Token]) -> Optional[Tuple[str, List[Token]]]:
    """
    Match name(...) spanning all of tokens.

    Returns (name, argument tokens) or None if tokens are anything else,
    including a call followed by more text such as f(x) = 1.
    """
    tokens = _trim(tokens)
    if len(tokens) < 3 or tokens[0].kind != 'text' or tokens[1].kind != 'lparen':
        return None

    depth = 0
    for index in range(1, len(tokens)):
        kind = tokens[index].kind
        if kind == 'lparen':
            depth += 1
        elif kind == 'rparen':
            depth -= 1
            if depth == 0:
                if index != len(tokens) - 1:
                    return None
                return tokens[0].value, tokens[2:index]
    return None


def _unwrap_parens(tokens: List[Token]) -> List[Token]:
    """Drop parentheses that enclose all of tokens, as in (a = 1 or b = 2)."""
    tokens = _trim(tokens)
    while len(tokens) >= 2 and tokens[0].kind == 'lparen' and tokens[-1].kind == 'rparen':
        depth = 0
        for index, token in enumerate(tokens):
            if token.kind == 'lparen':
                depth += 1
            elif token.kind == 'rparen':
                depth -= 1
                if depth == 0:
                    break
        if index != len(tokens) - 1:
            break
        tokens = _trim(tokens[1:-1])
    return tokens


class _Scope(NamedTuple):
    """Where an expression is being parsed: owning field path and call depth."""

    current_path: str
    depth: int
    max_depth: int

    def deeper(self) -> "_Scope":
        return self._replace(depth=self.depth + 1)


def _parse_function(text, tokens, scope):
    call = _match_call(tokens)
    if call is None or call[0] not in _VALUE_FUNCTIONS:
        return None

    name, inner = call
    args = []
    if _trim(inner):
        for part in _split(inner, _is_comma):
            arg = _strip_quotes(_source(text, part))
            args.append(_parse_one(arg, scope.deeper()))
    return FunctionCall(name=name, args=tuple(args))


def _parse_if(text, tokens, scope):
    call = _match_call(tokens)
    if call is None or call[0] != 'if':
        return None

    parts = _split(call[1], _is_comma, maxsplit=2)
    if len(parts) != 3:
        return None
    test, when_true, when_false = (_source(text, part) for part in parts)
    if not (test and when_true and when_false):
        return None

    return Conditional(
        test=_parse_group(test, scope.deeper()),
        when_true=_parse_one(_strip_quotes(when_true), scope.deeper()),
        when_false=_parse_one(_strip_quotes(when_false), scope.deeper()),
    )


def _parse_match(text, tokens, scope):
    call = _match_call(tokens)
    if call is None or call[0] not in _MATCH_FUNCTIONS:
        return None

    parts = _split(call[1], _is_comma, maxsplit=1)
    if len(parts) != 2:
        return None
    path, value = (_source(text, part) for part in parts)
    if not (path and value):
        return None

    return SelectOrRegex(
        op=_MATCH_FUNCTIONS[call[0]],
        path=resolve_path(path, scope.current_path),
        value=_strip_quotes(value),
    )


def _parse_comparison(text, tokens, scope):
    nesting = 0
    for index, token in enumerate(tokens):
        if token.kind == 'lparen':
            nesting += 1
        elif token.kind == 'rparen':
            nesting -= 1
        elif token.kind == 'op' and nesting == 0:
            break
    else:
        return None

    lhs_tokens, rhs_tokens = tokens[:index], tokens[index + 1:]
    lhs, rhs = _source(text, lhs_tokens), _source(text, rhs_tokens)
    if not (lhs and rhs):
        return None

    wrapper = None
    call = _match_call(lhs_tokens)
    if call is not None and _trim(call[1]):
        wrapper = call[0]
        lhs = _source(text, call[1])

    return Comparison(
        op=tokens[index].value,
        path=resolve_path(lhs, scope.current_path),
        value=_strip_quotes(rhs),
        wrapper_function=wrapper,
    )


# Highest precedence first
_RULES = (
    _parse_function,
    _parse_if,
    _parse_match,
    _parse_comparison,
)


def _parse_one(text: str, scope: _Scope) -> Expression:
    if scope.depth > scope.max_depth:
        return Unparsed(text)

    tokens = _tokenize(text)
    for rule in _RULES:
        result = rule(text, tokens, scope)
        if result is not None:
            return result
    return Unparsed(text)


def _parse_group(text: str, scope: _Scope) -> BooleanGroup:
    terms = []
    for disjunct in _split(_unwrap_parens(_tokenize(text)), _word('or')):
        conjuncts = tuple(
            _parse_one(_strip_quotes(_source(text, part)), scope)
            for part in _split(disjunct, _word('and'))
        )
        terms.append(conjuncts[0] if len(conjuncts) == 1 else conjuncts)
    return BooleanGroup(terms=tuple(terms))


def parse_condition(raw: str, current_path: str,
                    max_depth: int = DEFAULT_OPTIONS.max_expression_depth) -> Expression:
    """
    Parse a single condition (e.g. a calculate attribute).

    Args:
        raw: Attribute text, possibly HTML-escaped
        current_path: Path of the field the attribute belongs to;
            relative paths in the expression are resolved against it
        max_depth: Deepest nested call parsed; anything deeper stays Unparsed

    Returns:
        Expression AST. Text matching no known form is returned as Unparsed.
    """
    scope = _Scope(current_path=current_path, depth=0, max_depth=max_depth)
    return _parse_one(html.unescape(raw).strip(), scope)


def parse_boolean_group(raw: str, current_path: str,
                        max_depth: int = DEFAULT_OPTIONS.max_expression_depth) -> BooleanGroup:
    """
    Parse an OR-of-AND condition (e.g. a relevant or constraint attribute).

    Args:
        raw: Attribute text, possibly HTML-escaped
        current_path: Path of the field the attribute belongs to
        max_depth: Deepest nested call parsed; anything deeper stays Unparsed

    Returns:
        BooleanGroup whose terms are single expressions or AND-tuples
    """
    scope = _Scope(current_path=current_path, depth=0, max_depth=max_depth)
    return _parse_group(html.unescape(raw).strip(), scope)


__all__ = [
    "parse_condition",
    "parse_boolean_group",
]
