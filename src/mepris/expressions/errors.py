"""Errors raised while parsing or validating condition expressions."""

from __future__ import annotations

from mepris.exceptions import MeprisError

__all__ = [
    "ExpressionError",
    "ExpressionParseError",
    "ExpressionValidationError",
]


class ExpressionError(MeprisError):
    """Base exception for all expression-related errors.

    Attributes:
        message: Human-readable error message.
        expression: The expression that caused the error (if known).
    """

    def __init__(self, message: str, expression: str | None = None) -> None:
        """Initialize the ExpressionError.

        Args:
            message: Human-readable error message.
            expression: The expression that caused the error.
        """
        self.expression = expression
        super().__init__(message)


class ExpressionParseError(ExpressionError):
    """Raised when an expression is not valid according to the grammar.

    The message contains the offending expression with a caret under the
    failing offset, e.g.::

        Unexpected end of input at offset 6, expected a word, '%word', '!' or '(':
        linux &&
              ^

    Attributes:
        message: Human-readable error message.
        expression: The expression that failed to parse.
        offset: Character offset of the error in ``expression``.
        expected: Human-readable descriptions of the tokens accepted at ``offset``.
    """

    def __init__(
        self,
        message: str,
        expression: str,
        offset: int = 0,
        expected: tuple[str, ...] = (),
    ) -> None:
        """Initialize the ExpressionParseError.

        Args:
            message: Short description of the problem.
            expression: The expression that failed to parse.
            offset: Character offset where the error occurred.
            expected: Descriptions of the tokens accepted at ``offset``.
        """
        self.offset = offset
        self.expected = expected
        full_message = f"{message} at offset {offset}"
        if expected:
            full_message += f", expected {_join_alternatives(expected)}"
        full_message += f":\n{expression}\n{' ' * offset}^"
        super().__init__(full_message, expression=expression)


class ExpressionValidationError(ExpressionError):
    """Raised when a well-formed expression is not usable in its context.

    Examples are ``%word`` idents inside a tag filter, or a ``--tags`` filter
    naming tags that no step declares.

    Attributes:
        message: Human-readable error message.
        expression: The offending expression.
    """


def _join_alternatives(items: tuple[str, ...]) -> str:
    if len(items) == 1:
        return items[0]
    return ", ".join(items[:-1]) + f" or {items[-1]}"
