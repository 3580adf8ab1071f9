"""Tests for ranlog.numeric module."""
from __future__ import annotations

import math

from ranlog.numeric import (
    NOT_A_NUMBER,
    is_number,
    parse_decimal,
    parse_first_decimal,
    parse_leading_decimal,
)


class TestParseDecimal:
    def test_comma_separator(self) -> None:
        assert parse_decimal("-3,50") == -3.50

    def test_dot_separator(self) -> None:
        assert parse_decimal("-3.50") == -3.50

    def test_surrounding_whitespace(self) -> None:
        assert parse_decimal("  12.5 ") == 12.5

    def test_trailing_unit_ignored(self) -> None:
        assert parse_decimal("-4.0 dB") == -4.0

    def test_leading_dot(self) -> None:
        assert parse_decimal(".5") == 0.5

    def test_exponent(self) -> None:
        assert parse_decimal("1e-3") == 0.001

    def test_only_first_comma_is_decimal(self) -> None:
        assert parse_decimal("1,5,7") == 1.5

    def test_empty_is_sentinel(self) -> None:
        assert math.isnan(parse_decimal(""))

    def test_none_is_sentinel(self) -> None:
        assert math.isnan(parse_decimal(None))

    def test_garbage_is_sentinel(self) -> None:
        assert math.isnan(parse_decimal("N/A"))
        assert math.isnan(parse_decimal("-"))
        assert math.isnan(parse_decimal("abc1.0"))


class TestSentinel:
    def test_fails_every_comparison(self) -> None:
        v = parse_decimal("")
        assert not v < 0
        assert not v > 0
        assert not v == 0
        assert not v < -1e308
        assert not v > 1e308

    def test_not_equal_to_itself(self) -> None:
        assert not NOT_A_NUMBER == NOT_A_NUMBER

    def test_is_number(self) -> None:
        assert is_number(1.0)
        assert not is_number(NOT_A_NUMBER)


class TestParseLeadingDecimal:
    def test_vswr_with_return_loss(self) -> None:
        assert parse_leading_decimal("1.8(12.3)") == 1.8

    def test_comma(self) -> None:
        assert parse_leading_decimal("1,6(13,1)") == 1.6

    def test_integer(self) -> None:
        assert parse_leading_decimal("2 (9.5)") == 2.0

    def test_no_number(self) -> None:
        assert math.isnan(parse_leading_decimal("(12.3)"))
        assert math.isnan(parse_leading_decimal(""))


class TestParseFirstDecimal:
    def test_label_before_number(self) -> None:
        assert parse_first_decimal("RL 12.3") == 12.3

    def test_comma_and_unit(self) -> None:
        assert parse_first_decimal("RL: 14,2 dB") == 14.2

    def test_signed(self) -> None:
        assert parse_first_decimal("loss -3,5") == -3.5

    def test_no_number(self) -> None:
        assert math.isnan(parse_first_decimal("n/a"))
        assert math.isnan(parse_first_decimal(None))
