"""Tests for IfThen condition evaluation."""

from datetime import date

import pytest

from mapwright.core.sentinels import MISSING
from mapwright.engine.conditions import evaluate_condition, parse_date, to_number

TODAY = date(2025, 1, 15)


def check(value: object, operator: str, compare: object = "") -> bool:
    return evaluate_condition(value, operator, compare, today=TODAY)


class TestStringComparison:
    def test_equals_trims(self) -> None:
        assert check(" A ", "=", "A")

    def test_not_equals(self) -> None:
        assert check("A", "!=", "B")
        assert not check("A", "!=", " A")

    def test_number_input_compared_as_text(self) -> None:
        assert check(15, "=", "15")
        assert check(15.0, "=", "15")

    def test_null_equals_empty(self) -> None:
        assert check(None, "=", "")


class TestNumericComparison:
    def test_greater_than(self) -> None:
        assert check("15", ">", "10")

    def test_non_numeric_is_false_not_error(self) -> None:
        assert not check("abc", ">", "10")
        assert not check("15", ">", "ten")

    @pytest.mark.parametrize(
        ("value", "operator", "expected"),
        [
            ("10", ">=", True),
            ("10", "<=", True),
            ("9.5", "<", True),
            ("9.5", ">", False),
            ("", ">", False),
        ],
    )
    def test_operators(self, value: str, operator: str, expected: bool) -> None:
        assert check(value, operator, "10") is expected


class TestDateComparison:
    def test_before_and_after_today(self) -> None:
        assert check("2024-12-01", "date_before_today")
        assert not check("2024-12-01", "date_after_today")
        assert check("2025-02-01", "date_after_today")

    def test_today_is_neither_before_nor_after(self) -> None:
        assert not check("2025-01-15", "date_before_today")
        assert not check("2025-01-15T23:00:00", "date_after_today")

    def test_against_compare_value(self) -> None:
        assert check("2024-12-01", "date_before", "2025-01-01")
        assert check("2025-01-01T10:00:00Z", "date_after", "2025-01-01")

    def test_unparseable_is_false(self) -> None:
        assert not check("yesterday", "date_before_today")
        assert not check("2024-12-01", "date_before", "soon")


class TestEdgeCases:
    def test_missing_input_is_false(self) -> None:
        assert not check(MISSING, "=", "")

    def test_unknown_operator_is_false(self) -> None:
        assert not check("a", "~=", "a")

    def test_helpers(self) -> None:
        assert to_number("1e3") == 1000.0
        assert to_number("x") is None
        assert parse_date("2025-01-01T12:00:00+02:00").hour == 10  # type: ignore[union-attr]
        assert parse_date("31/01/2025") is None
