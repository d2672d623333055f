"""Tests for field path parsing and lookup."""

import pytest

from mapwright.core.paths import format_path, get_path_value, parse_path
from mapwright.core.sentinels import MISSING


class TestParsePath:
    @pytest.mark.parametrize(
        ("path", "tokens"),
        [
            ("a", ["a"]),
            ("a.b.c", ["a", "b", "c"]),
            ("a.b[0].c", ["a", "b", 0, "c"]),
            ("m[1][2]", ["m", 1, 2]),
            ("", []),
        ],
    )
    def test_tokens(self, path: str, tokens: list) -> None:
        assert parse_path(path) == tokens

    def test_format_is_inverse(self) -> None:
        assert format_path(parse_path("order.lines[0].sku")) == "order.lines[0].sku"


class TestGetPathValue:
    @pytest.fixture
    def row(self) -> dict:
        return {
            "a": {"b": [{"c": 1}, {"c": 2}]},
            "zero": 0,
            "empty": "",
            "no": False,
            "nothing": None,
        }

    def test_nested_lookup(self, row: dict) -> None:
        assert get_path_value(row, "a.b[1].c") == 2

    def test_dotted_index_on_list(self, row: dict) -> None:
        assert get_path_value(row, "a.b.0.c") == 1

    @pytest.mark.parametrize("key", ["zero", "empty", "no", "nothing"])
    def test_falsy_values_returned_as_is(self, row: dict, key: str) -> None:
        assert get_path_value(row, key, default="fallback") == row[key]

    def test_unreachable_path_gives_default(self, row: dict) -> None:
        assert get_path_value(row, "a.x") is MISSING
        assert get_path_value(row, "a.b[5].c", default=None) is None
        assert get_path_value(row, "zero.deeper", default=None) is None

    def test_empty_path_gives_default(self, row: dict) -> None:
        assert get_path_value(row, "") is MISSING


class TestMissingSentinel:
    def test_falsy_and_distinct_from_none(self) -> None:
        assert not MISSING
        assert MISSING is not None
        assert repr(MISSING) == "<MISSING>"
