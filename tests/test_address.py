"""Tests for A1 address parsing, column labels and range expansion."""

from __future__ import annotations

import pytest

from gridcalc.address import (
    cell_label,
    column_index,
    column_label,
    grid_shape,
    is_cell_ref,
    parse_address,
    parse_range,
)


class TestColumnLabel:
    @pytest.mark.parametrize(
        "index,expected",
        [(0, "A"), (25, "Z"), (26, "AA"), (51, "AZ"), (52, "BA"), (701, "ZZ"), (702, "AAA")],
    )
    def test_known_labels(self, index: int, expected: str) -> None:
        assert column_label(index) == expected

    def test_negative_index_rejected(self) -> None:
        with pytest.raises(ValueError):
            column_label(-1)

    def test_column_index_inverse(self) -> None:
        assert column_index("A") == 0
        assert column_index("zz") == 701
        assert column_index("AAA") == 702

    def test_parse_address_inverts_column_label(self) -> None:
        for i in range(676):
            assert parse_address(column_label(i) + "1", 1, 676) == (0, i)


class TestParseAddress:
    def test_basic(self) -> None:
        assert parse_address("A1", 10, 10) == (0, 0)
        assert parse_address("B3", 10, 10) == (2, 1)

    def test_case_and_whitespace_insensitive(self) -> None:
        assert parse_address("b3", 10, 10) == (2, 1)
        assert parse_address("  c10 ", 10, 10) == (9, 2)

    @pytest.mark.parametrize("label", ["A0", "A01", "1A", "A", "12", "A1B", "A-1", ""])
    def test_malformed(self, label: str) -> None:
        assert parse_address(label, 10, 10) is None

    def test_out_of_bounds(self) -> None:
        assert parse_address("K1", 10, 10) is None
        assert parse_address("A11", 10, 10) is None
        assert parse_address("Z99", 10, 10) is None

    def test_multi_letter_column(self) -> None:
        assert parse_address("AA1", 1, 27) == (0, 26)
        assert parse_address("AA1", 1, 26) is None

    def test_cell_label(self) -> None:
        assert cell_label(0, 0) == "A1"
        assert cell_label(2, 27) == "AB3"

    def test_is_cell_ref_ignores_bounds(self) -> None:
        assert is_cell_ref("Z99")
        assert is_cell_ref("aa10")
        assert not is_cell_ref("A0")
        assert not is_cell_ref("SUM")


class TestParseRange:
    def test_row_major_expansion(self) -> None:
        assert parse_range("A1:B2", 10, 10) == [(0, 0), (0, 1), (1, 0), (1, 1)]

    def test_endpoints_normalized(self) -> None:
        assert parse_range("B2:A1", 10, 10) == parse_range("A1:B2", 10, 10)
        assert parse_range("A2:B1", 10, 10) == parse_range("A1:B2", 10, 10)

    def test_single_cell_range(self) -> None:
        assert parse_range("C3:C3", 10, 10) == [(2, 2)]

    @pytest.mark.parametrize("text", ["A1", "A1:", ":B2", "A1:B2:C3", "A1:Z99", "A0:B2", "X:Y"])
    def test_invalid_ranges_are_empty(self, text: str) -> None:
        assert parse_range(text, 10, 10) == []

    def test_column_range(self) -> None:
        assert parse_range("A1:A4", 10, 10) == [(0, 0), (1, 0), (2, 0), (3, 0)]


def test_grid_shape() -> None:
    assert grid_shape([]) == (0, 0)
    assert grid_shape([["", ""], ["", ""], ["", ""]]) == (3, 2)
