"""
Unit tests for the RowNormalizer.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from trial_balance.config import IngestionConfig
from trial_balance.normalizer import CANONICAL_HEADER, RowNormalizer
from trial_balance.schema import IngestionError, MissingColumnError, Severity

HEADER = ["Particulars", "Debit", "Credit"]


@pytest.fixture
def normalizer() -> RowNormalizer:
    return RowNormalizer()


# ======================================================================
# Value normalisation
# ======================================================================

class TestNormalizeValue:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("1,23,456", 123456.0),
            ("12,500.50", 12500.5),
            ("₹12000", 12000.0),
            ("$ 1,000", 1000.0),
            ("USD 50", 50.0),
            ("Rs. 1,000", 1000.0),
            ("(5000)", -5000.0),
            ("  750  ", 750.0),
            ("-42", -42.0),
            ("1e5", 100000.0),
            ("1.35E+05", 135000.0),
        ],
    )
    def test_text_amounts(self, normalizer: RowNormalizer, raw: str, expected: float) -> None:
        value, warnings = normalizer.normalize_value(raw)
        assert value == expected
        assert warnings == []

    @pytest.mark.parametrize("raw", ["inf", "NaN", "-Infinity"])
    def test_non_finite_text_rejected(self, normalizer: RowNormalizer, raw: str) -> None:
        value, warnings = normalizer.normalize_value(raw)
        assert value is None
        assert warnings

    def test_numeric_passthrough(self, normalizer: RowNormalizer) -> None:
        assert normalizer.normalize_value(1500)[0] == 1500.0
        assert normalizer.normalize_value(12.25)[0] == 12.25
        assert normalizer.normalize_value(Decimal("10.5"))[0] == 10.5

    @pytest.mark.parametrize("raw", [None, "", "   ", float("nan")])
    def test_blank_is_zero(self, normalizer: RowNormalizer, raw: object) -> None:
        assert normalizer.normalize_value(raw) == (0.0, [])

    @pytest.mark.parametrize("raw", ["abc", "N/A", "-", "1.2.3", "12-5"])
    def test_unparseable_text(self, normalizer: RowNormalizer, raw: str) -> None:
        value, warnings = normalizer.normalize_value(raw)
        assert value is None
        assert len(warnings) == 1

    def test_boolean_rejected(self, normalizer: RowNormalizer) -> None:
        value, warnings = normalizer.normalize_value(True)
        assert value is None
        assert "Boolean" in warnings[0]

    def test_infinity_rejected(self, normalizer: RowNormalizer) -> None:
        assert normalizer.normalize_value(float("inf"))[0] is None

    def test_unexpected_type(self, normalizer: RowNormalizer) -> None:
        value, warnings = normalizer.normalize_value(["100"])
        assert value is None
        assert "list" in warnings[0]


class TestCellText:
    def test_trims(self) -> None:
        assert RowNormalizer.cell_text("  Cash  ") == "Cash"

    def test_none(self) -> None:
        assert RowNormalizer.cell_text(None) == ""

    def test_integral_float(self) -> None:
        assert RowNormalizer.cell_text(101.0) == "101"


# ======================================================================
# Header matching
# ======================================================================

class TestHeaderMatching:
    def test_canonical_header(self, normalizer: RowNormalizer) -> None:
        result = normalizer.normalize([HEADER])
        assert result.column_index == {"Particulars": 0, "Debit": 1, "Credit": 2}
        assert result.warnings == []

    def test_case_and_whitespace_insensitive(self, normalizer: RowNormalizer) -> None:
        result = normalizer.normalize([[" particulars ", "DEBIT", "credit"]])
        assert result.column_index == {"Particulars": 0, "Debit": 1, "Credit": 2}
        assert any("trimmed whitespace" in w for w in result.warnings)

    def test_reordered_columns(self, normalizer: RowNormalizer) -> None:
        table = [["Credit", "Particulars", "Debit"], ["100", "Sales", ""]]
        result = normalizer.normalize(table)
        row = result.rows[0]
        assert row.particulars == "Sales"
        assert row.credit == 100.0
        assert row.debit == 0.0

    def test_extra_columns_ignored(self, normalizer: RowNormalizer) -> None:
        table = [HEADER + ["Notes"], ["Sales", "", "100", "cash sale"]]
        result = normalizer.normalize(table)
        assert len(result.rows) == 1
        assert "ignored extra column: 'Notes'" in result.warnings

    def test_extra_column_warning_can_be_disabled(self) -> None:
        normalizer = RowNormalizer(IngestionConfig(warn_on_extra_columns=False))
        result = normalizer.normalize([HEADER + ["Notes"]])
        assert result.warnings == []

    def test_duplicate_column_ignored(self, normalizer: RowNormalizer) -> None:
        table = [HEADER + ["debit"], ["Rent", "500", "", "999"]]
        result = normalizer.normalize(table)
        assert result.column_index["Debit"] == 1
        assert result.rows[0].debit == 500.0
        assert any("duplicate column" in w for w in result.warnings)

    def test_missing_column_raises(self, normalizer: RowNormalizer) -> None:
        with pytest.raises(MissingColumnError) as exc_info:
            normalizer.normalize([["Particulars", "Debit"], ["Sales", "100"]])
        issues = exc_info.value.issues
        assert len(issues) == 1
        assert issues[0].issue == "missing required column: Credit"
        assert issues[0].row is None
        assert issues[0].severity is Severity.ERROR
        assert issues[0].suggestion == "add a 'Credit' column to the header row"

    def test_missing_column_suggests_close_header(self, normalizer: RowNormalizer) -> None:
        with pytest.raises(MissingColumnError) as exc_info:
            normalizer.normalize([["Particulars", "Debit", "Credits"]])
        assert exc_info.value.issues[0].suggestion == "rename column 'Credits' to 'Credit'"

    def test_all_columns_missing(self, normalizer: RowNormalizer) -> None:
        with pytest.raises(MissingColumnError) as exc_info:
            normalizer.normalize([])
        names = [i.issue for i in exc_info.value.issues]
        assert names == [
            "missing required column: Particulars",
            "missing required column: Debit",
            "missing required column: Credit",
        ]
        assert exc_info.value.message == "; ".join(names)


# ======================================================================
# Row conversion
# ======================================================================

class TestRows:
    def test_row_numbers_count_header_as_line_one(self, normalizer: RowNormalizer) -> None:
        table = [HEADER, ["Sales", "", "100"], ["", "", ""], ["Rent", "50", ""]]
        result = normalizer.normalize(table)
        assert [r.row_number for r in result.rows] == [2, 4]

    def test_blank_rows_skipped(self, normalizer: RowNormalizer) -> None:
        table = [HEADER, [], [None, None, None], ["  ", "", ""], ["Sales", "", "1"]]
        result = normalizer.normalize(table)
        assert len(result.rows) == 1

    def test_short_row_padded(self, normalizer: RowNormalizer) -> None:
        result = normalizer.normalize([HEADER, ["Rent", "500"]])
        row = result.rows[0]
        assert row.debit == 500.0
        assert row.credit == 0.0

    def test_unparseable_flagged(self, normalizer: RowNormalizer) -> None:
        result = normalizer.normalize([HEADER, ["Furniture", "abc", ""]])
        row = result.rows[0]
        assert row.debit == 0.0
        assert row.debit_unparseable
        assert not row.credit_unparseable
        assert row.debit_raw == "abc"

    def test_normalize_rows_with_separate_header(self, normalizer: RowNormalizer) -> None:
        result = normalizer.normalize_rows(HEADER, [["Sales", "", "₹1,35,000"]])
        assert result.rows[0].credit == 135000.0
        assert result.rows[0].row_number == 2


# ======================================================================
# Positional reshaping
# ======================================================================

class TestReshapeThreeColumn:
    def test_maps_by_position(self, normalizer: RowNormalizer) -> None:
        table = [["Account", "Dr", "Cr"], ["Sales", "", "100"], ["Rent", "50", ""]]
        assert normalizer.reshape_three_column(table) == [
            CANONICAL_HEADER,
            ["Sales", "", "100"],
            ["Rent", "50", ""],
        ]

    def test_skips_malformed_and_blank_rows(self, normalizer: RowNormalizer) -> None:
        table = [
            ["A", "B", "C"],
            ["Sales", "", "100"],
            ["Wide", "1", "2", "3"],
            ["Short", "1"],
            ["", "", ""],
            ["Rent", "50", "", ""],
        ]
        assert normalizer.reshape_three_column(table) == [
            CANONICAL_HEADER,
            ["Sales", "", "100"],
            ["Rent", "50", ""],
        ]

    def test_trailing_empty_header_cells_allowed(self, normalizer: RowNormalizer) -> None:
        table = [["A", "B", "C", ""], ["Sales", "", "100", ""]]
        assert len(normalizer.reshape_three_column(table)) == 2

    def test_wrong_column_count(self, normalizer: RowNormalizer) -> None:
        with pytest.raises(IngestionError, match="exactly 3 columns"):
            normalizer.reshape_three_column([["A", "B"], ["x", "1"]])

    def test_empty_table(self, normalizer: RowNormalizer) -> None:
        with pytest.raises(IngestionError, match="exactly 3 columns"):
            normalizer.reshape_three_column([])

    def test_no_data_rows(self, normalizer: RowNormalizer) -> None:
        with pytest.raises(IngestionError) as exc_info:
            normalizer.reshape_three_column([["A", "B", "C"], ["", "", ""]])
        assert exc_info.value.message == (
            "No valid data found in the file. Please check the format."
        )
