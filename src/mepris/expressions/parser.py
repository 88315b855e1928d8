"""Parser for condition expressions.

Conditions select steps by operating system (the step ``os`` field) or by
tag (the ``--tags`` CLI filter). Both use the same grammar (grammar.lark)::

    expr     = or_expr
    or_expr  = and_expr ( "||" and_expr )*
    and_expr = not_expr ( "&&" not_expr )*
    not_expr = "!"* atom
    atom     = ident | "(" expr ")"
    ident    = "%" word | word

The parser is purely syntactic: it turns text into an immutable tree of
:class:`Or`, :class:`And`, :class:`Not` and :class:`Ident` nodes and knows
nothing about operating systems or tags. See
:mod:`mepris.expressions.evaluator` for the two evaluation contexts.

Examples:
    >>> parse_expression("a && b || c")  # doctest: +ELLIPSIS
    Or(children=(And(children=(Ident(...), Ident(...))), Ident(...)))
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path

from lark import Lark, Token, Transformer
from lark.exceptions import UnexpectedCharacters, UnexpectedInput, UnexpectedToken

from mepris.expressions.errors import ExpressionParseError

__all__ = [
    "And",
    "Condition",
    "Ident",
    "IdentKind",
    "Node",
    "Not",
    "Or",
    "iter_idents",
    "parse_expression",
]


class IdentKind(str, Enum):
    """How an identifier was written."""

    PLAIN = "plain"  # word
    PREFIXED = "prefixed"  # %word


@dataclass(frozen=True, slots=True)
class Ident:
    """A leaf identifier.

    Attributes:
        kind: PREFIXED when written with a leading ``%``, PLAIN otherwise.
        word: The identifier text without the ``%`` prefix.
    """

    kind: IdentKind
    word: str


@dataclass(frozen=True, slots=True)
class Not:
    """Negation of a single child node."""

    child: Node


@dataclass(frozen=True, slots=True)
class And:
    """Conjunction of two or more child nodes."""

    children: tuple[Node, ...]


@dataclass(frozen=True, slots=True)
class Or:
    """Disjunction of two or more child nodes."""

    children: tuple[Node, ...]


Node = Or | And | Not | Ident


@dataclass(frozen=True, slots=True)
class Condition:
    """A parsed expression together with the text it was parsed from.

    Steps keep the source text so the condition can be written back to the
    resume state and shown to the user unchanged.

    Attributes:
        raw: The expression text as written.
        node: Root node of the parsed tree.
    """

    raw: str
    node: Node

    @classmethod
    def parse(cls, raw: str) -> Condition:
        """Parse ``raw`` into a Condition.

        Raises:
            ExpressionParseError: If ``raw`` is not a valid expression.
        """
        return cls(raw=raw, node=parse_expression(raw))

    def __str__(self) -> str:
        return self.raw


_GRAMMAR_PATH = Path(__file__).parent / "grammar.lark"
_GRAMMAR = _GRAMMAR_PATH.read_text()

_parser = Lark(
    _GRAMMAR,
    parser="lalr",
    start="start",
)

# Terminal names from grammar.lark mapped to what a user would type.
_TERMINAL_DESCRIPTIONS = {
    "WORD": "a word",
    "PREFIXED_WORD": "'%word'",
    "_NOT": "'!'",
    "_LPAR": "'('",
    "_RPAR": "')'",
    "_AND": "'&&'",
    "_OR": "'||'",
    "$END": "end of input",
}

# Stable ordering for the "expected ..." part of error messages.
_TERMINAL_ORDER = list(_TERMINAL_DESCRIPTIONS)


class _TreeToNode(Transformer[Token, Node]):
    """Transform the lark parse tree into Node objects."""

    def or_expr(self, items: list[Node]) -> Or:
        return Or(tuple(items))

    def and_expr(self, items: list[Node]) -> And:
        return And(tuple(items))

    def negation(self, items: list[Node]) -> Not:
        return Not(items[0])

    def prefixed(self, items: list[Token]) -> Ident:
        return Ident(IdentKind.PREFIXED, str(items[0])[1:])

    def plain(self, items: list[Token]) -> Ident:
        return Ident(IdentKind.PLAIN, str(items[0]))


def _describe_expected(names: set[str] | frozenset[str] | None) -> tuple[str, ...]:
    if not names:
        return ()
    known = [name for name in _TERMINAL_ORDER if name in names]
    return tuple(_TERMINAL_DESCRIPTIONS[name] for name in known)


def _parse_error(text: str, error: UnexpectedInput) -> ExpressionParseError:
    if isinstance(error, UnexpectedCharacters):
        offset = error.pos_in_stream
        return ExpressionParseError(
            f"Unexpected character {text[offset]!r}",
            expression=text,
            offset=offset,
            expected=_describe_expected(error.allowed),
        )
    if isinstance(error, UnexpectedToken):
        token = error.token
        expected = _describe_expected(error.expected)
        if token.type == "$END":
            return ExpressionParseError(
                "Unexpected end of input",
                expression=text,
                offset=len(text),
                expected=expected,
            )
        offset = token.start_pos if token.start_pos is not None else 0
        return ExpressionParseError(
            f"Unexpected {str(token)!r}",
            expression=text,
            offset=offset,
            expected=expected,
        )
    return ExpressionParseError(str(error), expression=text)


@lru_cache(maxsize=256)
def parse_expression(text: str) -> Node:
    """Parse an expression into its syntax tree.

    Consecutive ``!`` each add one :class:`Not` layer. Chains of the same
    binary operator are flattened into a single :class:`Or` or
    :class:`And` node.

    Args:
        text: Expression source, e.g. ``"%arch && !manjaro"``.

    Returns:
        Root node of the parsed tree.

    Raises:
        ExpressionParseError: For empty input, unbalanced parentheses,
            dangling operators or characters outside the word alphabet.
    """
    try:
        tree = _parser.parse(text)
    except UnexpectedInput as e:
        raise _parse_error(text, e) from e
    return _TreeToNode().transform(tree)


def iter_idents(node: Node) -> Iterator[Ident]:
    """Yield every identifier in ``node``, left to right."""
    if isinstance(node, Ident):
        yield node
    elif isinstance(node, Not):
        yield from iter_idents(node.child)
    else:
        for child in node.children:
            yield from iter_idents(child)
