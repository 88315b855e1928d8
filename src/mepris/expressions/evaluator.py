"""Evaluation of parsed condition expressions.

A single tree walker is shared by two contexts that differ only in how an
:class:`~mepris.expressions.parser.Ident` resolves to a boolean:

- :class:`OsEvaluator` matches against the running operating system. A plain
  word matches the platform name (``linux``, ``macos``, ``windows``) or the
  distribution ``ID``; ``%word`` matches the distribution ``ID`` or any
  ``ID_LIKE`` entry. Words are compared lower-cased.
- :class:`TagEvaluator` matches plain words against a set of tags. ``%word``
  has no meaning there and is rejected by :func:`validate_tag_expression`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from mepris.expressions.errors import ExpressionValidationError
from mepris.expressions.parser import (
    And,
    Condition,
    Ident,
    IdentKind,
    Node,
    Not,
    Or,
    iter_idents,
)
from mepris.system.os_info import OsInfo

__all__ = [
    "ConditionEvaluator",
    "OsEvaluator",
    "TagEvaluator",
    "matches_os",
    "matches_tags",
    "validate_tag_expression",
]


class ConditionEvaluator(ABC):
    """Walks an expression tree, delegating identifiers to :meth:`resolve`."""

    def evaluate(self, node: Node) -> bool:
        """Evaluate ``node`` to a boolean.

        Args:
            node: Root of a parsed expression.

        Returns:
            The value of the expression under standard precedence.
        """
        if isinstance(node, Ident):
            return self.resolve(node)
        if isinstance(node, Not):
            return not self.evaluate(node.child)
        if isinstance(node, And):
            return all(self.evaluate(child) for child in node.children)
        if isinstance(node, Or):
            return any(self.evaluate(child) for child in node.children)
        raise TypeError(f"Unknown expression node: {node!r}")

    @abstractmethod
    def resolve(self, ident: Ident) -> bool:
        """Return the truth value of a single identifier."""


class OsEvaluator(ConditionEvaluator):
    """Evaluates ``os`` conditions against the running system.

    Example:
        ```python
        info = OsInfo(platform="linux", id="manjaro", id_like=("arch",))
        evaluator = OsEvaluator(info)
        evaluator.evaluate(parse_expression("%arch || manjaro"))  # True
        ```
    """

    def __init__(self, os_info: OsInfo) -> None:
        self._platform = os_info.platform.lower()
        self._id = os_info.id.lower() if os_info.id else None
        self._id_like = frozenset(item.lower() for item in os_info.id_like)

    def resolve(self, ident: Ident) -> bool:
        word = ident.word.lower()
        if ident.kind is IdentKind.PREFIXED:
            if self._id is None:
                return False
            return word == self._id or word in self._id_like
        return word == self._platform or word == self._id


class TagEvaluator(ConditionEvaluator):
    """Evaluates tag filters against the tags of one step."""

    def __init__(self, tags: Iterable[str]) -> None:
        self._tags = frozenset(tags)

    def resolve(self, ident: Ident) -> bool:
        if ident.kind is IdentKind.PREFIXED:
            raise ExpressionValidationError(
                f"'%{ident.word}' is not allowed in a tag filter"
            )
        return ident.word in self._tags


def validate_tag_expression(
    condition: Condition,
    known_tags: Iterable[str] | None = None,
) -> None:
    """Check that a tag filter can be evaluated.

    Args:
        condition: Parsed tag filter.
        known_tags: If given, every word in the filter must be one of these.

    Raises:
        ExpressionValidationError: If the filter uses ``%word`` idents or
            names tags outside ``known_tags``.
    """
    idents = list(iter_idents(condition.node))
    prefixed = [ident.word for ident in idents if ident.kind is IdentKind.PREFIXED]
    if prefixed:
        words = ", ".join(f"%{word}" for word in prefixed)
        raise ExpressionValidationError(
            f"Tag filters only accept plain tag names, got: {words}",
            expression=condition.raw,
        )
    if known_tags is None:
        return
    known = set(known_tags)
    unknown: list[str] = []
    for ident in idents:
        if ident.word not in known and ident.word not in unknown:
            unknown.append(ident.word)
    if unknown:
        raise ExpressionValidationError(
            f"Unknown tags: {', '.join(unknown)}",
            expression=condition.raw,
        )


def matches_os(condition: Condition | None, os_info: OsInfo) -> bool:
    """Return True if ``condition`` holds on ``os_info``; no condition always holds."""
    if condition is None:
        return True
    return OsEvaluator(os_info).evaluate(condition.node)


def matches_tags(condition: Condition | None, tags: Iterable[str]) -> bool:
    """Return True if the tag filter ``condition`` holds for ``tags``.

    A missing filter always holds.

    Raises:
        ExpressionValidationError: If the filter uses ``%word`` idents.
    """
    if condition is None:
        return True
    return TagEvaluator(tags).evaluate(condition.node)
