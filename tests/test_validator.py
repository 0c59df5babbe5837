"""
Unit tests for the IngestionAuditor.
"""

from __future__ import annotations

from typing import Any, List

import pytest

from trial_balance.config import IngestionConfig
from trial_balance.normalizer import RowNormalizer
from trial_balance.schema import AuditResult, IngestionIssue, LedgerRow, Severity
from trial_balance.validator import IngestionAuditor

HEADER = ["Particulars", "Debit", "Credit"]


@pytest.fixture
def auditor() -> IngestionAuditor:
    return IngestionAuditor()


def run_audit(
    auditor: IngestionAuditor, *rows: List[Any], header: List[str] = HEADER
) -> tuple[AuditResult, list[LedgerRow]]:
    normalized = RowNormalizer().normalize([header, *rows])
    return auditor.audit(normalized.rows, normalized.warnings)


# ======================================================================
# Accepted rows
# ======================================================================

class TestAcceptedRows:
    def test_clean_rows(self, auditor: IngestionAuditor) -> None:
        result, rows = run_audit(
            auditor, ["Sales", "", "135000"], ["Purchases", "50000", ""]
        )
        assert result.total_rows == 2
        assert result.valid_rows == 2
        assert result.invalid_rows == 0
        assert result.issues == []
        assert rows == [
            LedgerRow("Sales", 0.0, 135000.0),
            LedgerRow("Purchases", 50000.0, 0.0),
        ]

    def test_zero_value_line_is_warning(self, auditor: IngestionAuditor) -> None:
        result, rows = run_audit(auditor, ["Suspense", "0", "0"])
        assert result.valid_rows == 1
        assert len(rows) == 1
        assert result.issues[0].severity is Severity.WARNING
        assert result.issues[0].issue == "zero-value line"
        assert result.warnings == ["Row 2: zero-value line"]

    def test_single_unreadable_side_is_warning(self, auditor: IngestionAuditor) -> None:
        result, rows = run_audit(auditor, ["Furniture", "abc", "1200"])
        assert result.valid_rows == 1
        assert rows[0].debit == 0.0
        assert rows[0].credit == 1200.0
        warning = result.issues[0]
        assert warning.severity is Severity.WARNING
        assert warning.issue == "unreadable Debit value treated as 0"
        assert warning.suggestion == "check the Debit cell (found 'abc')"

    def test_cell_text_kept_out_of_issue(self, auditor: IngestionAuditor) -> None:
        result, _ = run_audit(auditor, ["Furniture", "error", "1200"])
        warning = result.issues[0]
        assert "error" not in warning.issue
        assert Severity.infer(warning.issue) is Severity.WARNING
        assert IngestionIssue.from_dict(
            {"row": warning.row, "issue": warning.issue, "suggestion": warning.suggestion}
        ).severity is Severity.WARNING

    def test_large_amount_flagged(self) -> None:
        auditor = IngestionAuditor(IngestionConfig(max_absolute_value=1000))
        result, rows = run_audit(auditor, ["Cash", "5000", ""])
        assert len(rows) == 1
        assert result.issues[0].severity is Severity.WARNING
        assert "exceeds max_absolute_value" in result.issues[0].issue

    def test_header_notes_become_file_warnings(self, auditor: IngestionAuditor) -> None:
        result, _ = run_audit(
            auditor, ["Sales", "", "10", "x"], header=HEADER + ["Notes"]
        )
        assert result.warnings == ["ignored extra column: 'Notes'"]
        assert result.issues == []


# ======================================================================
# Rejected rows
# ======================================================================

class TestRejectedRows:
    def test_missing_particulars(self, auditor: IngestionAuditor) -> None:
        result, rows = run_audit(auditor, ["", "100", ""])
        assert rows == []
        issue = result.issues[0]
        assert issue.row == 2
        assert issue.issue == "missing required value: Particulars"
        assert issue.is_error
        assert issue.suggestion

    def test_both_sides_unparseable(self, auditor: IngestionAuditor) -> None:
        result, rows = run_audit(auditor, ["Cash", "abc", "xyz"])
        assert rows == []
        assert result.issues[0].issue == (
            "amount parsing failed: Debit and Credit are not numeric"
        )

    def test_ambiguous_polarity(self, auditor: IngestionAuditor) -> None:
        result, rows = run_audit(auditor, ["Sales", "", "10"], ["Cash", "100", "50"])
        assert rows == [LedgerRow("Sales", 0.0, 10.0)]
        assert result.invalid_rows == 1
        issue = result.issues[0]
        assert issue.row == 3
        assert "both Debit and Credit" in issue.issue
        assert issue.suggestion == "ensure only one of Debit or Credit is populated"

    @pytest.mark.parametrize(
        "row, side",
        [(["Rent", "(500)", ""], "Debit"), (["Sales", "", "-20"], "Credit")],
    )
    def test_negative_amount(
        self, auditor: IngestionAuditor, row: List[str], side: str
    ) -> None:
        result, rows = run_audit(auditor, row)
        assert rows == []
        assert result.issues[0].issue == f"negative amount error in {side}"

    def test_every_problem_reported_once_per_row(self, auditor: IngestionAuditor) -> None:
        result, rows = run_audit(auditor, ["", "100", "50"])
        assert rows == []
        assert result.invalid_rows == 1
        assert len(result.errors) == 2
        assert {i.row for i in result.issues} == {2}


# ======================================================================
# Invariants
# ======================================================================

class TestInvariants:
    def test_counts_add_up(self, auditor: IngestionAuditor) -> None:
        result, _ = run_audit(
            auditor,
            ["Sales", "", "100"],
            ["", "5", ""],
            [],
            ["Cash", "1", "1"],
            ["Suspense", "", ""],
        )
        assert result.total_rows == 4
        assert result.valid_rows == 2
        assert result.invalid_rows == 2
        assert result.valid_rows + result.invalid_rows == result.total_rows

    def test_severity_agrees_with_issue_wording(self, auditor: IngestionAuditor) -> None:
        result, _ = run_audit(
            auditor,
            ["", "5", ""],
            ["Cash", "abc", "xyz"],
            ["Cash", "1", "1"],
            ["Rent", "-5", ""],
            ["Furniture", "abc", ""],
            ["Suspense", "0", ""],
        )
        assert result.issues
        for issue in result.issues:
            assert Severity.infer(issue.issue) is issue.severity

    def test_rows_keep_source_order(self, auditor: IngestionAuditor) -> None:
        _, rows = run_audit(
            auditor, ["B", "1", ""], ["A", "2", ""], ["C", "", "3"]
        )
        assert [r.particulars for r in rows] == ["B", "A", "C"]
