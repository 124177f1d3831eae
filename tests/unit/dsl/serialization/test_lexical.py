"""Unit tests for scalar and duration literals."""

from __future__ import annotations

import pytest

from stepflow.dsl.serialization.lexical import (
    format_duration,
    format_scalar,
    parse_duration,
    parse_scalar,
)

# =============================================================================
# parse_scalar
# =============================================================================


class TestParseScalar:
    """Test suite for parse_scalar()."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("true", True),
            ("false", False),
            ("42", 42),
            ("-7", -7),
            ("0.5", 0.5),
            ("1e3", 1000.0),
            ("fast-lane", "fast-lane"),
            ('"hello world"', "hello world"),
            ("'single'", "single"),
            ('"tab\\there"', "tab\there"),
        ],
    )
    def test_literals(self, raw: str, expected: object) -> None:
        assert parse_scalar(raw) == expected

    def test_types_are_exact(self) -> None:
        assert type(parse_scalar("42")) is int
        assert type(parse_scalar("4.2")) is float
        assert type(parse_scalar("true")) is bool

    def test_booleans_are_case_sensitive(self) -> None:
        assert parse_scalar("True") == "True"

    def test_quoted_keyword_stays_string(self) -> None:
        assert parse_scalar('"true"') == "true"
        assert parse_scalar('"42"') == "42"

    def test_out_of_range_float_stays_text(self) -> None:
        assert parse_scalar("1e999") == "1e999"

    def test_surrounding_whitespace_ignored(self) -> None:
        assert parse_scalar("  12  ") == 12


# =============================================================================
# format_scalar
# =============================================================================


class TestFormatScalar:
    """Test suite for format_scalar()."""

    def test_bare_strings(self) -> None:
        assert format_scalar("eu-west-1") == "eu-west-1"
        assert format_scalar("v1.2") == "v1.2"

    def test_strings_that_look_like_other_types_are_quoted(self) -> None:
        assert format_scalar("true") == '"true"'
        assert format_scalar("42") == '"42"'
        assert format_scalar("0.5") == '"0.5"'

    def test_strings_with_spaces_are_quoted(self) -> None:
        assert format_scalar("Card payment") == '"Card payment"'

    def test_empty_string_is_quoted(self) -> None:
        assert format_scalar("") == '""'

    def test_numbers_and_booleans(self) -> None:
        assert format_scalar(True) == "true"
        assert format_scalar(False) == "false"
        assert format_scalar(3) == "3"
        assert format_scalar(2.5) == "2.5"

    @pytest.mark.parametrize(
        "value",
        ["a # b", 'say "hi"', "ünïcode text", "", "true", "-3", "x=y"],
    )
    def test_strings_survive_a_round_trip(self, value: str) -> None:
        assert parse_scalar(format_scalar(value)) == value

    @pytest.mark.parametrize("value", [None, [1, 2], {"a": 1}, float("inf")])
    def test_unwritable_values(self, value: object) -> None:
        with pytest.raises(ValueError):
            format_scalar(value)


# =============================================================================
# Durations
# =============================================================================


class TestDurations:
    """Test suite for parse_duration() and format_duration()."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("500ms", 500), ("2s", 2000), ("1m", 60000), ("0ms", 0), ("3S", 3000)],
    )
    def test_parse(self, raw: str, expected: int) -> None:
        assert parse_duration(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "soon", "5h", "1.5s", "-1s"])
    def test_parse_invalid(self, raw: str | None) -> None:
        assert parse_duration(raw) is None

    @pytest.mark.parametrize(
        ("ms", "expected"),
        [(0, "0ms"), (500, "500ms"), (1500, "1500ms"), (2000, "2s"), (120000, "2m"),
         (90000, "90s")],
    )
    def test_format_uses_largest_even_unit(self, ms: int, expected: str) -> None:
        assert format_duration(ms) == expected

    @pytest.mark.parametrize("ms", [0, 1, 999, 1000, 59999, 60000, 61000, 3_600_000])
    def test_duration_fidelity(self, ms: int) -> None:
        assert parse_duration(format_duration(ms)) == ms

    def test_negative_duration_rejected(self) -> None:
        with pytest.raises(ValueError):
            format_duration(-1)
