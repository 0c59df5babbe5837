"""
Ingestion Audit Layer.

Partitions normalised rows into accepted and rejected lines *before* they
reach the classifier, recording a diagnostic for every problem found.

Checks performed
----------------
1. **Particulars**: an empty account name rejects the row.
2. **Parseability**: a row whose Debit and Credit both hold non-numeric
   text is rejected; a single unreadable side is a warning (read as 0).
3. **Polarity**: Debit and Credit both non-zero is ambiguous and rejected.
4. **Sign**: negative amounts are rejected.
5. **Value warnings**: zero-value lines and implausibly large amounts are
   accepted but flagged.

Row-level problems never raise; the batch always completes.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from trial_balance.config import IngestionConfig
from trial_balance.logging_setup import get_logger
from trial_balance.normalizer import NormalizedRow
from trial_balance.schema import AuditResult, IngestionIssue, LedgerRow, Severity

logger = get_logger("validator")


class AuditReport:
    """Accumulates issues and warnings during an audit pass."""

    def __init__(self) -> None:
        self.issues: list[IngestionIssue] = []
        self.warnings: list[str] = []

    def add_error(
        self, row: Optional[int], issue: str, suggestion: Optional[str] = None
    ) -> None:
        self.issues.append(IngestionIssue(row, issue, suggestion, Severity.ERROR))
        logger.error("Row %s ERROR: %s", row, issue)

    def add_warning(
        self, row: Optional[int], issue: str, suggestion: Optional[str] = None
    ) -> None:
        self.issues.append(IngestionIssue(row, issue, suggestion, Severity.WARNING))
        self.warnings.append(issue if row is None else f"Row {row}: {issue}")
        logger.warning("Row %s WARNING: %s", row, issue)

    def add_note(self, message: str) -> None:
        """File-level warning with no row attached (e.g. header clean-up)."""
        self.warnings.append(message)
        logger.warning("File WARNING: %s", message)


class IngestionAuditor:
    """Validates ``NormalizedRow`` records and yields ``LedgerRow`` objects.

    Parameters
    ----------
    config:
        Audit thresholds and behaviour flags.
    """

    def __init__(self, config: Optional[IngestionConfig] = None) -> None:
        self._config = config or IngestionConfig()

    def audit(
        self,
        rows: List[NormalizedRow],
        file_warnings: Iterable[str] = (),
    ) -> Tuple[AuditResult, List[LedgerRow]]:
        """Run all checks.

        Returns
        -------
        tuple[AuditResult, list[LedgerRow]]
            The diagnostics and the accepted rows in source order.
        """
        report = AuditReport()
        for message in file_warnings:
            report.add_note(message)

        accepted: list[LedgerRow] = []
        for row in rows:
            if self._check_row(row, report):
                accepted.append(
                    LedgerRow(
                        particulars=row.particulars,
                        debit=row.debit,
                        credit=row.credit,
                    )
                )

        result = AuditResult(
            total_rows=len(rows),
            valid_rows=len(accepted),
            invalid_rows=len(rows) - len(accepted),
            issues=report.issues,
            warnings=report.warnings,
        )
        logger.info(
            "Audit complete: total=%d, valid=%d, invalid=%d, warnings=%d",
            result.total_rows,
            result.valid_rows,
            result.invalid_rows,
            len(result.warnings),
        )
        return result, accepted

    # ------------------------------------------------------------------ #
    # Individual checks
    # ------------------------------------------------------------------ #

    def _check_row(self, row: NormalizedRow, report: AuditReport) -> bool:
        """Record every problem with *row*; return True if it is accepted."""
        n = row.row_number
        valid = True

        if not row.particulars:
            report.add_error(
                n,
                "missing required value: Particulars",
                "enter an account name in the Particulars column",
            )
            valid = False

        if row.debit_unparseable and row.credit_unparseable:
            report.add_error(
                n,
                "amount parsing failed: Debit and Credit are not numeric",
                "enter numeric amounts such as 12500 or 12,500.00",
            )
            valid = False
        elif row.debit_unparseable or row.credit_unparseable:
            side, raw = (
                ("Debit", row.debit_raw)
                if row.debit_unparseable
                else ("Credit", row.credit_raw)
            )
            report.add_warning(
                n,
                f"unreadable {side} value treated as 0",
                f"check the {side} cell (found {raw!r})",
            )

        if row.debit != 0 and row.credit != 0:
            report.add_error(
                n,
                "ambiguous polarity error: both Debit and Credit are populated",
                "ensure only one of Debit or Credit is populated",
            )
            valid = False

        for side, value, other in (
            ("Debit", row.debit, "Credit"),
            ("Credit", row.credit, "Debit"),
        ):
            if value < 0:
                report.add_error(
                    n,
                    f"negative amount error in {side}",
                    f"enter the amount as a positive value in the {other} column",
                )
                valid = False

        if not valid:
            return False

        if row.debit == 0 and row.credit == 0:
            report.add_warning(
                n,
                "zero-value line",
                "remove the line or enter its balance",
            )

        largest = max(abs(row.debit), abs(row.credit))
        if largest > self._config.max_absolute_value:
            report.add_warning(
                n,
                f"amount {largest} exceeds max_absolute_value "
                f"({self._config.max_absolute_value}); check units",
                "confirm the amount is entered in whole currency units",
            )

        return True
