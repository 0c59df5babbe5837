"""
Session state.

Holds the results of the latest successful ingestion for one user session,
so pages that show statements or ratios work from an explicit object rather
than ad hoc storage.  Created from a successful run; cleared on logout or a
new upload.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from trial_balance.schema import (
    AuditResult,
    BalanceSheet,
    IngestionError,
    LedgerRow,
    PipelineOutput,
    ProfitLossStatement,
    RatioInputs,
    RatioSet,
)


@dataclass
class SessionState:
    rows: List[LedgerRow] = field(default_factory=list)
    audit: Optional[AuditResult] = None
    profit_loss: Optional[ProfitLossStatement] = None
    balance_sheet: Optional[BalanceSheet] = None
    ratio_inputs: Optional[RatioInputs] = None
    ratios: Optional[RatioSet] = None

    @classmethod
    def from_output(cls, output: PipelineOutput) -> "SessionState":
        """Capture a pipeline run.

        Raises
        ------
        IngestionError
            If the run failed; a session only ever holds usable data.
        """
        if not output.success:
            raise IngestionError(
                f"Cannot start a session from a failed run: {output.error}",
                audit=output.audit,
            )
        return cls(
            rows=list(output.rows),
            audit=output.audit,
            profit_loss=output.profit_loss,
            balance_sheet=output.balance_sheet,
            ratio_inputs=output.ratio_inputs,
            ratios=output.ratios,
        )

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def clear(self) -> None:
        self.rows = []
        self.audit = None
        self.profit_loss = None
        self.balance_sheet = None
        self.ratio_inputs = None
        self.ratios = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rows": [r.to_dict() for r in self.rows],
            "audit": self.audit.to_dict() if self.audit else None,
            "profit_loss": self.profit_loss.to_dict() if self.profit_loss else None,
            "balance_sheet": (
                self.balance_sheet.to_dict() if self.balance_sheet else None
            ),
            "ratio_inputs": self.ratio_inputs.to_dict() if self.ratio_inputs else None,
            "ratios": self.ratios.to_dict() if self.ratios else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionState":
        """Rebuild a session from the record produced by ``to_dict``."""
        return cls(
            rows=[LedgerRow.from_dict(r) for r in data.get("rows", [])],
            audit=AuditResult.from_dict(data["audit"]) if data.get("audit") else None,
            profit_loss=(
                ProfitLossStatement.from_dict(data["profit_loss"])
                if data.get("profit_loss")
                else None
            ),
            balance_sheet=(
                BalanceSheet.from_dict(data["balance_sheet"])
                if data.get("balance_sheet")
                else None
            ),
            ratio_inputs=(
                RatioInputs.from_dict(data["ratio_inputs"])
                if data.get("ratio_inputs")
                else None
            ),
            ratios=RatioSet(**data["ratios"]) if data.get("ratios") else None,
        )
