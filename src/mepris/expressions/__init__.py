"""Condition expressions used by ``os`` fields and ``--tags`` filters."""

from __future__ import annotations

from mepris.expressions.errors import (
    ExpressionError,
    ExpressionParseError,
    ExpressionValidationError,
)
from mepris.expressions.evaluator import (
    ConditionEvaluator,
    OsEvaluator,
    TagEvaluator,
    matches_os,
    matches_tags,
    validate_tag_expression,
)
from mepris.expressions.parser import (
    And,
    Condition,
    Ident,
    IdentKind,
    Node,
    Not,
    Or,
    iter_idents,
    parse_expression,
)

__all__ = [
    # Parser
    "And",
    "Condition",
    "Ident",
    "IdentKind",
    "Node",
    "Not",
    "Or",
    "iter_idents",
    "parse_expression",
    # Evaluator
    "ConditionEvaluator",
    "OsEvaluator",
    "TagEvaluator",
    "matches_os",
    "matches_tags",
    "validate_tag_expression",
    # Errors
    "ExpressionError",
    "ExpressionParseError",
    "ExpressionValidationError",
]
