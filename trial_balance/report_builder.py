"""
Report Builder.

Serialises engine output for downstream consumers: JSON for APIs, CSV for
statements and ledger rows, and ``.xlsx`` workbooks for formatted data and
generated samples.
"""

from __future__ import annotations

import csv
import json
from io import StringIO
from pathlib import Path
from typing import Any, List, Sequence, Union

import openpyxl

from trial_balance.logging_setup import get_logger
from trial_balance.normalizer import CANONICAL_HEADER
from trial_balance.schema import (
    BalanceSheet,
    LedgerRow,
    PipelineOutput,
    ProfitLossStatement,
)

logger = get_logger("report_builder")


class ReportBuilder:
    """Builds and serialises reports from pipeline structures."""

    @staticmethod
    def to_json(output: PipelineOutput, indent: int = 2) -> str:
        """Serialise ``PipelineOutput`` to a JSON string."""
        return json.dumps(output.to_dict(), indent=indent, ensure_ascii=False)

    @staticmethod
    def statement_to_csv(
        statement: Union[ProfitLossStatement, BalanceSheet],
    ) -> str:
        """Serialise a statement as ``section,name,amount`` CSV text.

        Each section is followed by its total row; the P&L ends with the
        net profit.
        """
        buf = StringIO()
        writer = csv.writer(buf)
        writer.writerow(["section", "name", "amount"])

        if isinstance(statement, ProfitLossStatement):
            sections = [
                ("Income", statement.incomes, "Total Income", statement.total_income),
                (
                    "Expenses",
                    statement.expenses,
                    "Total Expenses",
                    statement.total_expenses,
                ),
            ]
        else:
            sections = [
                ("Assets", statement.assets, "Total Assets", statement.total_assets),
                (
                    "Liabilities",
                    statement.liabilities,
                    "Total Liabilities",
                    statement.total_liabilities,
                ),
            ]

        for section, lines, total_label, total in sections:
            for line in lines:
                writer.writerow([section, line.name, f"{line.amount:.2f}"])
            writer.writerow([section, total_label, f"{total:.2f}"])

        if isinstance(statement, ProfitLossStatement):
            writer.writerow(["Result", "Net Profit", f"{statement.net_profit:.2f}"])
        return buf.getvalue()

    @staticmethod
    def rows_to_table(rows: Sequence[LedgerRow]) -> List[List[Any]]:
        """Convert ledger rows back to a table; zero sides become blank."""
        table: List[List[Any]] = [list(CANONICAL_HEADER)]
        for r in rows:
            table.append([r.particulars, r.debit or "", r.credit or ""])
        return table

    @staticmethod
    def table_to_csv(table: Sequence[Sequence[Any]]) -> str:
        buf = StringIO()
        csv.writer(buf).writerows(table)
        return buf.getvalue()

    @classmethod
    def rows_to_csv(cls, rows: Sequence[LedgerRow]) -> str:
        return cls.table_to_csv(cls.rows_to_table(rows))

    @staticmethod
    def write_csv(table: Sequence[Sequence[Any]], path: Union[str, Path]) -> Path:
        path = Path(path)
        with open(path, "w", encoding="utf-8", newline="") as fh:
            csv.writer(fh).writerows(table)
        logger.info("Wrote %d rows to %s", len(table), path)
        return path

    @staticmethod
    def write_xlsx(
        table: Sequence[Sequence[Any]],
        path: Union[str, Path],
        sheet_title: str = "Trial Balance",
    ) -> Path:
        """Write *table* to a single-sheet workbook."""
        path = Path(path)
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = sheet_title
        for row in table:
            ws.append(list(row))
        wb.save(path)
        logger.info("Wrote %d rows to %s (sheet %r)", len(table), path, sheet_title)
        return path
