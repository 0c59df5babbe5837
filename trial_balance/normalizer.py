"""
Row Normalization Layer.

Turns a raw table (header row followed by data rows, cells of any type)
into uniform ``NormalizedRow`` records so the auditor works on clean,
comparable values.

Transformations applied (in order):
1. Locate the Particulars / Debit / Credit columns (case-insensitive,
   surrounding whitespace ignored); extra columns are ignored
2. Skip rows whose cells are all blank
3. Stringify and trim the particulars cell
4. Parse amounts: strip currency symbols, thousands separators and any
   other non-numeric characters; parenthetical negatives become ``-``
5. Blank amount cells become 0; unparseable ones become 0 and are flagged
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional, Sequence, Tuple

from rapidfuzz import fuzz, process

from trial_balance.config import IngestionConfig
from trial_balance.logging_setup import get_logger
from trial_balance.schema import (
    IngestionError,
    IngestionIssue,
    MissingColumnError,
    Severity,
)

logger = get_logger("normalizer")

Table = Sequence[Sequence[Any]]

CANONICAL_HEADER: list[str] = ["Particulars", "Debit", "Credit"]


@dataclass(frozen=True)
class NormalizedRow:
    """A data row after normalisation but before the audit.

    ``debit_unparseable`` / ``credit_unparseable`` record cells that held
    something but could not be read as a number (their value is 0).
    """

    row_number: int
    particulars: str
    debit: float
    credit: float
    debit_raw: Any = None
    credit_raw: Any = None
    debit_unparseable: bool = False
    credit_unparseable: bool = False


@dataclass
class NormalizationResult:
    rows: list[NormalizedRow] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    column_index: dict[str, int] = field(default_factory=dict)


class RowNormalizer:
    """Stateless table normaliser.

    Parameters
    ----------
    config:
        Column names and header-matching behaviour.
    """

    # Parenthetical negative: ``(1234)`` → ``-1234``
    _PAREN_NEG_RE = re.compile(r"^\((.+)\)$")

    # Dotted currency abbreviations ("Rs.") are not decimal points
    _ABBREV_RE = re.compile(r"[^\W\d_]+\.")

    # Everything that cannot be part of a plain decimal number
    _NON_NUMERIC_RE = re.compile(r"[^0-9.\-]")

    def __init__(self, config: Optional[IngestionConfig] = None) -> None:
        self._config = config or IngestionConfig()

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def normalize(self, table: Table) -> NormalizationResult:
        """Normalise a table whose first row is the header.

        Raises
        ------
        MissingColumnError
            If any required column is absent; no rows are produced.
        """
        if not table:
            return self.normalize_rows([], [])
        return self.normalize_rows(table[0], table[1:])

    def normalize_rows(
        self, header: Sequence[Any], rows: Sequence[Sequence[Any]]
    ) -> NormalizationResult:
        """Normalise *rows* against an explicit *header*.

        Row numbers are 1-based source lines with the header on line 1.
        """
        result = NormalizationResult()
        result.column_index = self._match_header(header, result.warnings)

        p_idx = result.column_index[self._config.required_columns[0]]
        d_idx = result.column_index[self._config.required_columns[1]]
        c_idx = result.column_index[self._config.required_columns[2]]

        for offset, raw_row in enumerate(rows):
            row_number = offset + 2
            if self._is_blank_row(raw_row):
                logger.debug("Skipping blank row %d", row_number)
                continue

            debit_raw = self._cell(raw_row, d_idx)
            credit_raw = self._cell(raw_row, c_idx)
            debit, debit_warnings = self.normalize_value(debit_raw)
            credit, credit_warnings = self.normalize_value(credit_raw)
            for w in debit_warnings + credit_warnings:
                logger.debug("Row %d: %s", row_number, w)

            result.rows.append(
                NormalizedRow(
                    row_number=row_number,
                    particulars=self.cell_text(self._cell(raw_row, p_idx)),
                    debit=debit if debit is not None else 0.0,
                    credit=credit if credit is not None else 0.0,
                    debit_raw=debit_raw,
                    credit_raw=credit_raw,
                    debit_unparseable=debit is None,
                    credit_unparseable=credit is None,
                )
            )

        logger.info(
            "Normalised %d data rows (%d blank skipped)",
            len(result.rows),
            len(rows) - len(result.rows),
        )
        return result

    def normalize_value(self, raw: Any) -> Tuple[Optional[float], list[str]]:
        """Attempt to parse a numeric amount.

        Handles:
        * Thousands separators: ``"1,23,456"``
        * Currency symbols and codes: ``"₹12000"``, ``"USD 50"``, ``"Rs. 500"``
        * Parenthetical negatives: ``"(5000)"``
        * Already-numeric inputs (int / float / Decimal)

        Returns
        -------
        tuple[float | None, list[str]]
            ``(0.0, [])`` for blank cells, ``(None, warnings)`` when the
            cell holds something that is not a number.
        """
        warnings: list[str] = []

        if raw is None:
            return 0.0, warnings

        if isinstance(raw, bool):
            warnings.append(f"Boolean is not an amount: {raw!r}")
            return None, warnings

        if isinstance(raw, (int, float, Decimal)):
            value = float(raw)
            if math.isnan(value):
                # pandas / spreadsheet readers use NaN for empty cells
                return 0.0, warnings
            if math.isinf(value):
                warnings.append(f"Non-finite amount: {raw!r}")
                return None, warnings
            return value, warnings

        if not isinstance(raw, str):
            warnings.append(f"Unexpected value type: {type(raw).__name__}")
            return None, warnings

        text = raw.strip()
        if not text:
            return 0.0, warnings

        # Plain and scientific notation ("1.35E+05") parse as-is
        try:
            value = float(text)
        except ValueError:
            pass
        else:
            if math.isfinite(value):
                return value, warnings

        m = self._PAREN_NEG_RE.match(text)
        if m:
            text = "-" + m.group(1)

        cleaned = self._NON_NUMERIC_RE.sub("", self._ABBREV_RE.sub("", text))
        if "-" in cleaned[1:]:
            warnings.append(f"Misplaced minus sign in {raw!r}")
            return None, warnings

        try:
            value = float(cleaned)
        except ValueError:
            warnings.append(f"Cannot parse numeric value from: {raw!r}")
            return None, warnings

        if cleaned != text:
            logger.debug("normalize_value: %r → %s", raw, value)
        return value, warnings

    @staticmethod
    def cell_text(raw: Any) -> str:
        """Stringify and trim a text cell; ``None`` becomes ``""``."""
        if raw is None:
            return ""
        if isinstance(raw, float):
            if math.isnan(raw):
                return ""
            if raw.is_integer():
                return str(int(raw))
        return str(raw).strip()

    # ------------------------------------------------------------------ #
    # Positional reshaping
    # ------------------------------------------------------------------ #

    def reshape_three_column(self, table: Table) -> list[list[Any]]:
        """Map any 3-column table onto the canonical header by position.

        Column names are ignored: the first column becomes Particulars, the
        second Debit and the third Credit.  Blank rows and rows that do not
        hold exactly three cells (trailing empty cells aside) are skipped.

        Raises
        ------
        IngestionError
            If the header does not have exactly three columns or no data
            row survives.
        """
        if not table or len(self._trim_trailing(table[0])) != 3:
            raise IngestionError(
                "The file must contain exactly 3 columns. "
                "Please check your file format."
            )

        reshaped: list[list[Any]] = [list(self._config.required_columns)]
        for offset, raw_row in enumerate(table[1:]):
            if self._is_blank_row(raw_row):
                continue
            cells = list(raw_row)
            if len(cells) < 3 or len(self._trim_trailing(cells)) > 3:
                logger.warning(
                    "Skipping malformed row %d with %d cells", offset + 2, len(cells)
                )
                continue
            reshaped.append(cells[:3])

        if len(reshaped) == 1:
            raise IngestionError(
                "No valid data found in the file. Please check the format."
            )

        logger.info("Reshaped %d rows onto the canonical header", len(reshaped) - 1)
        return reshaped

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _match_header(
        self, header: Sequence[Any], warnings: list[str]
    ) -> dict[str, int]:
        """Return ``{required column: index}`` or raise ``MissingColumnError``."""
        required = {name.lower(): name for name in self._config.required_columns}
        index: dict[str, int] = {}
        present: list[str] = []

        for i, cell in enumerate(header):
            original = "" if cell is None else str(cell)
            key = original.strip().lower()
            if not key:
                continue
            present.append(original.strip())

            name = required.get(key)
            if name is None:
                if self._config.warn_on_extra_columns:
                    warnings.append(f"ignored extra column: {original.strip()!r}")
                continue
            if name in index:
                warnings.append(f"duplicate column {original.strip()!r} ignored")
                continue
            if original != original.strip():
                warnings.append(
                    f"trimmed whitespace from header {original!r} ({name})"
                )
            index[name] = i

        missing = [n for n in self._config.required_columns if n not in index]
        if missing:
            issues = [self._missing_column_issue(n, present) for n in missing]
            for issue in issues:
                logger.error("File-level issue: %s", issue.issue)
            raise MissingColumnError(issues)

        return index

    def _missing_column_issue(self, name: str, present: list[str]) -> IngestionIssue:
        suggestion = f"add a {name!r} column to the header row"
        if present:
            best = process.extractOne(
                name.lower(),
                [p.lower() for p in present],
                scorer=fuzz.ratio,
            )
            if best is not None and best[1] >= self._config.header_suggestion_threshold:
                suggestion = f"rename column {present[best[2]]!r} to {name!r}"
        return IngestionIssue(
            row=None,
            issue=f"missing required column: {name}",
            suggestion=suggestion,
            severity=Severity.ERROR,
        )

    @staticmethod
    def _cell(row: Sequence[Any], idx: int) -> Any:
        return row[idx] if idx < len(row) else None

    @classmethod
    def _is_blank_row(cls, row: Optional[Sequence[Any]]) -> bool:
        if not row:
            return True
        return all(cls.cell_text(c) == "" for c in row)

    @classmethod
    def _trim_trailing(cls, row: Sequence[Any]) -> list[Any]:
        cells = list(row)
        while cells and cls.cell_text(cells[-1]) == "":
            cells.pop()
        return cells
