"""Tests for mepris.expressions.parser."""

from __future__ import annotations

import pytest

from mepris.expressions import (
    And,
    Condition,
    ExpressionParseError,
    Ident,
    IdentKind,
    Not,
    Or,
    iter_idents,
    parse_expression,
)


def plain(word: str) -> Ident:
    return Ident(IdentKind.PLAIN, word)


def prefixed(word: str) -> Ident:
    return Ident(IdentKind.PREFIXED, word)


class TestParseExpression:
    """Tests for parse_expression."""

    def test_single_word(self) -> None:
        """A bare word parses to a plain identifier."""
        assert parse_expression("linux") == plain("linux")

    def test_prefixed_word(self) -> None:
        """A leading % marks a prefixed identifier."""
        assert parse_expression("%arch") == prefixed("arch")

    def test_word_alphabet(self) -> None:
        """Words may contain letters, digits, underscores and dashes."""
        assert parse_expression("opensuse-tumbleweed_2") == plain("opensuse-tumbleweed_2")

    def test_and_binds_tighter_than_or(self) -> None:
        """a && b || c parses as (a && b) || c."""
        assert parse_expression("a && b || c") == Or(
            (And((plain("a"), plain("b"))), plain("c"))
        )

    def test_or_on_the_left(self) -> None:
        """a || b && c parses as a || (b && c)."""
        assert parse_expression("a || b && c") == Or(
            (plain("a"), And((plain("b"), plain("c"))))
        )

    def test_chains_are_flattened(self) -> None:
        """Repeated operators produce a single node with every operand."""
        assert parse_expression("a || b || c") == Or((plain("a"), plain("b"), plain("c")))
        assert parse_expression("a && b && c") == And((plain("a"), plain("b"), plain("c")))

    def test_parentheses_override_precedence(self) -> None:
        """Parenthesized groups are parsed first."""
        assert parse_expression("a && (b || c)") == And(
            (plain("a"), Or((plain("b"), plain("c"))))
        )

    def test_each_bang_adds_a_negation(self) -> None:
        """!!x is a double negation, not a single one."""
        assert parse_expression("!x") == Not(plain("x"))
        assert parse_expression("!!x") == Not(Not(plain("x")))
        assert parse_expression("!!!%x") == Not(Not(Not(prefixed("x"))))

    def test_negation_binds_tighter_than_and(self) -> None:
        """!a && b negates only a."""
        assert parse_expression("!a && b") == And((Not(plain("a")), plain("b")))

    def test_whitespace_is_insignificant(self) -> None:
        """Spaces and tabs between tokens do not change the result."""
        assert parse_expression(" a\t&&  ( b||c ) ") == parse_expression("a&&(b||c)")

    @pytest.mark.parametrize(
        "text",
        ["", "   ", "a &&", "|| a", "(a", "a)", "a b", "a & b", "a | b", "%", "a && !", "ubuntu.22"],
    )
    def test_malformed_input_raises(self, text: str) -> None:
        """Malformed expressions raise ExpressionParseError."""
        with pytest.raises(ExpressionParseError):
            parse_expression(text)

    def test_error_reports_offset_of_dangling_operator(self) -> None:
        """A dangling operator is reported at the end of input."""
        with pytest.raises(ExpressionParseError) as exc_info:
            parse_expression("linux &&")

        error = exc_info.value
        assert error.offset == len("linux &&")
        assert error.expression == "linux &&"
        assert "a word" in error.expected
        assert "linux &&\n        ^" in error.message

    def test_error_reports_unexpected_character(self) -> None:
        """A character outside the alphabet is reported at its offset."""
        with pytest.raises(ExpressionParseError) as exc_info:
            parse_expression("linux && mac$os")

        assert exc_info.value.offset == len("linux && mac")
        assert "'$'" in exc_info.value.message

    def test_error_reports_unexpected_token(self) -> None:
        """Two adjacent words are reported at the second one."""
        with pytest.raises(ExpressionParseError) as exc_info:
            parse_expression("a b")

        assert exc_info.value.offset == 2


class TestCondition:
    """Tests for Condition."""

    def test_parse_keeps_raw_text(self) -> None:
        """Condition remembers the text it was parsed from."""
        condition = Condition.parse("linux && !%arch")

        assert condition.raw == "linux && !%arch"
        assert str(condition) == "linux && !%arch"
        assert condition.node == And((plain("linux"), Not(prefixed("arch"))))

    def test_conditions_compare_by_value(self) -> None:
        """Two parses of the same text are equal."""
        assert Condition.parse("a || b") == Condition.parse("a || b")


class TestIterIdents:
    """Tests for iter_idents."""

    def test_yields_left_to_right(self) -> None:
        """Identifiers are yielded in source order, through every node kind."""
        node = parse_expression("a && !(%b || c)")

        assert list(iter_idents(node)) == [plain("a"), prefixed("b"), plain("c")]
