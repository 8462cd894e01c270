"""Tests for primitive parsing helpers.

Invariants:
1. Absent or non-numeric text yields None, never 0
2. Trailing units are ignored
3. Non-finite values yield None
"""

import pytest

from evaldash.parsers.primitives import (
    bracketed_list,
    cell,
    float_or_null,
    generation_id,
    generation_number,
    int_or_null,
    is_separator_row,
    number_or_null,
    split_row,
    strip_emphasis,
)


class TestFloatOrNull:
    """Tests for float_or_null."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("5.12$", 5.12),
            ("66.67%", 66.67),
            ("  0.7500 ", 0.75),
            ("-1.5", -1.5),
            ("1e-3", 0.001),
            (".5", 0.5),
        ],
    )
    def test_leading_number(self, text, expected):
        """The leading literal is parsed, trailing text ignored."""
        assert float_or_null(text) == pytest.approx(expected)

    @pytest.mark.parametrize("text", [None, "", "   ", "n/a", "$5", "Infinity", "NaN"])
    def test_absent_is_none(self, text):
        """Empty, non-numeric and non-finite text yields None."""
        assert float_or_null(text) is None

    def test_zero_is_kept(self):
        """A literal zero is a value, not an absence."""
        assert float_or_null("0.0000") == 0.0


class TestIntOrNull:
    """Tests for int_or_null and number_or_null."""

    def test_truncates_decimal(self):
        assert int_or_null("12.9") == 12

    def test_non_numeric(self):
        assert int_or_null("abc") is None
        assert int_or_null(None) is None

    def test_number_keeps_integral_type(self):
        """Integral literals stay int, decimal literals become float."""
        assert number_or_null("42") == 42
        assert isinstance(number_or_null("42"), int)
        assert isinstance(number_or_null("4.0"), float)
        assert number_or_null("n/a") is None

    def test_huge_integral_literal_is_not_a_float(self):
        assert float_or_null("9" * 400) is None


class TestTableHelpers:
    """Tests for row splitting and separator detection."""

    def test_split_row_drops_empty(self):
        assert split_row("| a | b |  |") == ["a", "b"]

    def test_split_row_keeps_inner_blanks(self):
        """Inner blank cells keep their position when requested."""
        assert split_row("| **gen2** |      | 1.0 |", drop_empty=False) == ["**gen2**", "", "1.0"]

    @pytest.mark.parametrize("line", ["|---|---|", "| :--- | ---: |", "|----------|------|"])
    def test_separator_rows(self, line):
        assert is_separator_row(line)

    def test_data_row_is_not_separator(self):
        assert not is_separator_row("| gen1 | 1.0 |")

    def test_cell_out_of_range(self):
        assert cell(["a"], 3) is None
        assert cell(["a"], -1) is None

    def test_strip_emphasis(self):
        assert strip_emphasis(" **Bank** ") == "Bank"


class TestIdentifiers:
    """Tests for generation identifiers and bracketed lists."""

    def test_generation_number(self):
        assert generation_number("gen12") == 12
        assert generation_number("**GEN3**") == 3
        assert generation_number("output") is None

    def test_generation_id(self):
        assert generation_id(7) == "gen7"

    def test_bracketed_list(self):
        assert bracketed_list("Uncovered: [Branch, Loan ]", "Uncovered") == ["Branch", "Loan"]

    def test_bracketed_list_empty(self):
        assert bracketed_list("Hallucinations: []", "Hallucinations") == []

    def test_bracketed_list_wrong_label(self):
        assert bracketed_list("Uncovered: [A]", "Hallucinations") is None
