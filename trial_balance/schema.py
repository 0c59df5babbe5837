"""
Trial balance data model.

Defines the accounting categories rows are classified into and the typed
data structures carried through the pipeline:

    table  →  LedgerRow  →  ClassifiedAccount  →  statements  →  RatioSet

Every structure here is derived and recomputed on each ingestion.  The
``to_dict`` / ``from_dict`` pairs are the serialised records callers persist
between pipeline stages.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Optional


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Category(str, Enum):
    """The five accounting categories every valid row is assigned to."""

    ASSET = "Asset"
    LIABILITY = "Liability"
    EQUITY = "Equity"
    INCOME = "Income"
    EXPENSE = "Expense"

    @property
    def is_debit_natured(self) -> bool:
        """Assets and expenses carry debit balances; the rest carry credits."""
        return self in (Category.ASSET, Category.EXPENSE)

    @classmethod
    def lookup(cls, name: str) -> Optional["Category"]:
        """Case-insensitive lookup accepting singular or plural names."""
        text = name.strip().lower()
        aliases = {
            "assets": "asset",
            "liabilities": "liability",
            "incomes": "income",
            "expenses": "expense",
        }
        text = aliases.get(text, text)
        for c in cls:
            if c.value.lower() == text:
                return c
        return None


class Severity(str, Enum):
    """Explicit severity carried by every ``IngestionIssue``."""

    ERROR = "error"
    WARNING = "warning"

    @classmethod
    def infer(cls, text: str) -> "Severity":
        """Derive a severity from issue text.

        Only used for records persisted without a severity tag.  The keyword
        list mirrors the one historically used by the diagnostics panel.
        """
        lowered = text.lower()
        if any(k in lowered for k in ("error", "failed", "missing required")):
            return cls.ERROR
        return cls.WARNING


class RatioBand(str, Enum):
    """Qualitative health band for a single ratio."""

    GOOD = "good"
    CAUTION = "caution"
    RISK = "risk"


class Verdict(str, Enum):
    """Overall narrative verdict."""

    STRONG = "strong"
    MIXED = "mixed"
    NEEDS_IMPROVEMENT = "needs-improvement"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class IngestionError(RuntimeError):
    """A run-level failure: wrong file shape or no usable rows.

    Carries the partial ``AuditResult`` (when one exists) so callers can
    still render diagnostics.
    """

    def __init__(self, message: str, audit: Optional["AuditResult"] = None) -> None:
        super().__init__(message)
        self.message = message
        self.audit = audit


class MissingColumnError(IngestionError):
    """Raised when one or more required columns are absent from the header."""

    def __init__(self, issues: list["IngestionIssue"]) -> None:
        super().__init__("; ".join(i.issue for i in issues))
        self.issues = issues


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LedgerRow:
    """A single validated trial balance line."""

    particulars: str
    debit: float = 0.0
    credit: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "particulars": self.particulars,
            "debit": self.debit,
            "credit": self.credit,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LedgerRow":
        """Rebuild a row from a persisted record.

        Keys are matched case-insensitively so both ``{"particulars": ...}``
        and the spreadsheet-style ``{"Particulars": ...}`` shapes load.
        """
        lowered = {str(k).strip().lower(): v for k, v in data.items()}
        if "particulars" not in lowered:
            raise ValueError(f"Ledger record has no particulars: {data!r}")
        return cls(
            particulars=str(lowered["particulars"]).strip(),
            debit=float(lowered.get("debit") or 0.0),
            credit=float(lowered.get("credit") or 0.0),
        )


@dataclass(frozen=True)
class IngestionIssue:
    """A diagnostic produced while normalising or auditing the input.

    ``row`` is the 1-based source line (the header is line 1) or ``None``
    for file-level problems.
    """

    row: Optional[int]
    issue: str
    suggestion: Optional[str] = None
    severity: Severity = Severity.ERROR

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def to_dict(self) -> dict[str, Any]:
        return {
            "row": self.row,
            "issue": self.issue,
            "suggestion": self.suggestion,
            "severity": self.severity.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IngestionIssue":
        severity = data.get("severity")
        return cls(
            row=data.get("row"),
            issue=data["issue"],
            suggestion=data.get("suggestion"),
            severity=Severity(severity) if severity else Severity.infer(data["issue"]),
        )


@dataclass
class AuditResult:
    """Outcome of the ingestion audit.

    ``valid_rows + invalid_rows == total_rows``; blank rows are not counted.
    """

    total_rows: int = 0
    valid_rows: int = 0
    invalid_rows: int = 0
    issues: list[IngestionIssue] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def errors(self) -> list[IngestionIssue]:
        return [i for i in self.issues if i.is_error]

    @property
    def has_file_level_issue(self) -> bool:
        return any(i.row is None and i.is_error for i in self.issues)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_rows": self.total_rows,
            "valid_rows": self.valid_rows,
            "invalid_rows": self.invalid_rows,
            "issues": [i.to_dict() for i in self.issues],
            "warnings": list(self.warnings),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AuditResult":
        return cls(
            total_rows=data.get("total_rows", 0),
            valid_rows=data.get("valid_rows", 0),
            invalid_rows=data.get("invalid_rows", 0),
            issues=[IngestionIssue.from_dict(i) for i in data.get("issues", [])],
            warnings=list(data.get("warnings", [])),
        )


# ---------------------------------------------------------------------------
# Classification & statements
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ClassifiedAccount:
    """A ledger row with its assigned category.

    ``amount`` is the column on the category's natural side: Debit for
    assets and expenses, Credit otherwise.  It is never negative; a value in
    the opposite column is logged and left out of the statements.
    """

    name: str
    amount: float
    category: Category
    match_method: str = "keyword"  # "keyword" | "polarity"
    matched_keyword: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "amount": self.amount,
            "category": self.category.value,
            "match_method": self.match_method,
            "matched_keyword": self.matched_keyword,
        }


@dataclass(frozen=True)
class LineItem:
    """One statement line; one per source row, never merged."""

    name: str
    amount: float

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "amount": self.amount}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LineItem":
        return cls(name=data["name"], amount=float(data["amount"]))


@dataclass
class ProfitLossStatement:
    incomes: list[LineItem] = field(default_factory=list)
    expenses: list[LineItem] = field(default_factory=list)
    total_income: float = 0.0
    total_expenses: float = 0.0
    net_profit: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "incomes": [i.to_dict() for i in self.incomes],
            "expenses": [e.to_dict() for e in self.expenses],
            "total_income": self.total_income,
            "total_expenses": self.total_expenses,
            "net_profit": self.net_profit,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProfitLossStatement":
        return cls(
            incomes=[LineItem.from_dict(i) for i in data.get("incomes", [])],
            expenses=[LineItem.from_dict(e) for e in data.get("expenses", [])],
            total_income=float(data.get("total_income", 0.0)),
            total_expenses=float(data.get("total_expenses", 0.0)),
            net_profit=float(data.get("net_profit", 0.0)),
        )


@dataclass
class BalanceSheet:
    """Assets against liabilities.

    ``liabilities`` holds both liability and equity lines.  The sheet is
    not forced to balance; ``difference`` surfaces any gap.
    """

    assets: list[LineItem] = field(default_factory=list)
    liabilities: list[LineItem] = field(default_factory=list)
    total_assets: float = 0.0
    total_liabilities: float = 0.0

    @property
    def difference(self) -> float:
        return self.total_assets - self.total_liabilities

    def is_balanced(self, tolerance: float = 1e-9) -> bool:
        return abs(self.difference) <= tolerance

    def to_dict(self) -> dict[str, Any]:
        return {
            "assets": [a.to_dict() for a in self.assets],
            "liabilities": [lb.to_dict() for lb in self.liabilities],
            "total_assets": self.total_assets,
            "total_liabilities": self.total_liabilities,
            "difference": self.difference,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BalanceSheet":
        return cls(
            assets=[LineItem.from_dict(a) for a in data.get("assets", [])],
            liabilities=[LineItem.from_dict(lb) for lb in data.get("liabilities", [])],
            total_assets=float(data.get("total_assets", 0.0)),
            total_liabilities=float(data.get("total_liabilities", 0.0)),
        )


# ---------------------------------------------------------------------------
# Ratios
# ---------------------------------------------------------------------------

# camelCase spellings accepted when loading ratio inputs persisted by
# older front-ends.
_RATIO_INPUT_ALIASES: dict[str, str] = {
    "netProfit": "net_profit",
    "totalAssets": "total_assets",
    "currentAssets": "current_assets",
    "currentLiabilities": "current_liabilities",
    "totalLiabilities": "total_liabilities",
}


@dataclass(frozen=True)
class RatioInputs:
    """Aggregated totals the ratio engine works from."""

    sales: float = 0.0
    net_profit: float = 0.0
    total_assets: float = 0.0
    current_assets: float = 0.0
    current_liabilities: float = 0.0
    total_liabilities: float = 0.0
    equity: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RatioInputs":
        known = {f.name for f in fields(cls)}
        values: dict[str, float] = {}
        for key, value in data.items():
            name = _RATIO_INPUT_ALIASES.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown ratio input {key!r}")
            values[name] = float(value or 0.0)
        return cls(**values)


RATIO_NAMES: tuple[str, ...] = (
    "profit_margin",
    "return_on_assets",
    "current_ratio",
    "debt_to_equity",
    "asset_turnover",
    "return_on_equity",
)


@dataclass(frozen=True)
class RatioSet:
    """The six ratios.  Percentages are already multiplied by 100."""

    profit_margin: float = 0.0
    return_on_assets: float = 0.0
    current_ratio: float = 0.0
    debt_to_equity: float = 0.0
    asset_turnover: float = 0.0
    return_on_equity: float = 0.0

    def items(self) -> list[tuple[str, float]]:
        return [(name, getattr(self, name)) for name in RATIO_NAMES]

    def to_dict(self) -> dict[str, float]:
        return dict(self.items())


@dataclass(frozen=True)
class Assessment:
    """Canned narrative text selected from ratio thresholds."""

    profitability: str
    liquidity: str
    leverage: str
    overall: str
    verdict: Verdict

    def to_dict(self) -> dict[str, str]:
        return {
            "profitability": self.profitability,
            "liquidity": self.liquidity,
            "leverage": self.leverage,
            "overall": self.overall,
            "verdict": self.verdict.value,
        }


# ---------------------------------------------------------------------------
# Pipeline output
# ---------------------------------------------------------------------------

@dataclass
class PipelineOutput:
    """Aggregate result of a full pipeline run.

    On failure only ``audit`` (possibly partial) and ``error`` are set.
    """

    audit: AuditResult = field(default_factory=AuditResult)
    rows: list[LedgerRow] = field(default_factory=list)
    accounts: list[ClassifiedAccount] = field(default_factory=list)
    profit_loss: Optional[ProfitLossStatement] = None
    balance_sheet: Optional[BalanceSheet] = None
    ratio_inputs: Optional[RatioInputs] = None
    ratios: Optional[RatioSet] = None
    ratio_details: dict[str, dict[str, Any]] = field(default_factory=dict)
    assessment: Optional[Assessment] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "error": self.error,
            "audit": self.audit.to_dict(),
            "rows": [r.to_dict() for r in self.rows],
            "accounts": [a.to_dict() for a in self.accounts],
            "profit_loss": self.profit_loss.to_dict() if self.profit_loss else None,
            "balance_sheet": (
                self.balance_sheet.to_dict() if self.balance_sheet else None
            ),
            "ratio_inputs": self.ratio_inputs.to_dict() if self.ratio_inputs else None,
            "ratios": self.ratios.to_dict() if self.ratios else None,
            "ratio_details": self.ratio_details,
            "assessment": self.assessment.to_dict() if self.assessment else None,
        }
