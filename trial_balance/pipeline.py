"""
Pipeline Orchestrator.

The central entry point that wires together every layer:

    Table  →  Normalizer  →  Auditor  →  Classifier  →  Aggregator
           →  Ratio Engine  →  Output

Usage
-----
>>> from trial_balance.pipeline import TrialBalancePipeline
>>> from trial_balance.config import PipelineConfig
>>>
>>> pipe = TrialBalancePipeline(PipelineConfig())
>>> result = pipe.ingest_table([
...     ["Particulars", "Debit", "Credit"],
...     ["Sales", "", "135000"],
...     ["Purchases", "50000", ""],
... ])
>>> result.profit_loss.net_profit
85000.0
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from trial_balance.classifier import AccountClassifier
from trial_balance.config import PipelineConfig
from trial_balance.logging_setup import configure_logging, get_logger
from trial_balance.normalizer import RowNormalizer, Table
from trial_balance.ratios import RatioEngine
from trial_balance.readers import TableReader
from trial_balance.schema import (
    Assessment,
    AuditResult,
    IngestionError,
    LedgerRow,
    MissingColumnError,
    PipelineOutput,
    RatioInputs,
    RatioSet,
)
from trial_balance.statements import StatementAggregator
from trial_balance.validator import IngestionAuditor

logger = get_logger("pipeline")

NO_VALID_DATA_MESSAGE = (
    "The file does not contain any valid financial data. Please check the format."
)


class TrialBalancePipeline:
    """Orchestrates the full trial balance pipeline.

    Each run is independent: no state is carried from one ingestion to the
    next, so identical tables always give identical output.

    Parameters
    ----------
    config:
        All tuneable knobs.  Defaults suit the standard 3-column layout.
    extra_keywords:
        Additional ``{category: [keywords]}`` merged into the lexicon.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        extra_keywords: Optional[Dict[str, List[str]]] = None,
    ) -> None:
        self._config = config or PipelineConfig()

        # Bootstrap logging before anything else
        configure_logging(level=self._config.log_level)

        # Construct layers
        self._normalizer = RowNormalizer(config=self._config.ingestion)
        self._auditor = IngestionAuditor(config=self._config.ingestion)
        self._classifier = AccountClassifier(extra_keywords=extra_keywords)
        self._aggregator = StatementAggregator()
        self._ratio_engine = RatioEngine()

        if self._config.custom_lexicon_path:
            self._classifier.load_custom_lexicon(self._config.custom_lexicon_path)

        logger.info(
            "Pipeline initialised: keywords=%d, columns=%s, strict=%s",
            self._classifier.size,
            ", ".join(self._config.ingestion.required_columns),
            self._config.strict_mode,
        )

    # ------------------------------------------------------------------ #
    # Convenience entry points (one per input format)
    # ------------------------------------------------------------------ #

    def ingest_table(self, table: Table) -> PipelineOutput:
        """Run on an in-memory table whose first row is the header."""
        return self._run(table)

    def ingest_rows(
        self, header: Sequence[Any], rows: Sequence[Sequence[Any]]
    ) -> PipelineOutput:
        """Run on a header plus data rows supplied separately."""
        return self._run([list(header)] + [list(r) for r in rows])

    def ingest_csv(self, source: Union[str, Path]) -> PipelineOutput:
        """Run on a CSV file or CSV string."""
        return self._run(TableReader.read_csv(source))

    def ingest_excel(
        self, source: Union[str, Path], sheet_name: Optional[str] = None
    ) -> PipelineOutput:
        """Run on one sheet of an ``.xlsx`` workbook (the first by default)."""
        return self._run(TableReader.read_excel(source, sheet_name=sheet_name))

    def ingest_json(self, source: Union[str, Path, list, dict]) -> PipelineOutput:
        """Run on persisted ledger records or a JSON array of arrays."""
        return self._run(TableReader.read_json(source))

    def ingest_dataframe(self, df: Any) -> PipelineOutput:
        """Run on a pandas DataFrame."""
        return self._run(TableReader.read_dataframe(df))

    def ingest_file(self, path: Union[str, Path]) -> PipelineOutput:
        """Run on a file, choosing the reader from its extension."""
        return self._run(TableReader.read_file(path))

    def derive(self, rows: List[LedgerRow]) -> PipelineOutput:
        """Rebuild statements and ratios from previously accepted rows.

        The rows skip normalisation and the audit; the returned audit simply
        counts them as valid.
        """
        audit = AuditResult(
            total_rows=len(rows), valid_rows=len(rows), invalid_rows=0
        )
        if not rows:
            return self._fail(NO_VALID_DATA_MESSAGE, audit)
        return self._derive(list(rows), audit)

    def compute_ratios(
        self, inputs: RatioInputs
    ) -> Tuple[RatioSet, Dict[str, Dict[str, Any]], Assessment]:
        """Ratios, their described form, and the narrative for *inputs*."""
        ratios = self._ratio_engine.calculate(inputs)
        return (
            ratios,
            self._ratio_engine.describe(ratios),
            self._ratio_engine.assess(ratios),
        )

    def reshape_three_column(self, table: Table) -> List[List[Any]]:
        """Map any 3-column table onto the canonical header by position."""
        return self._normalizer.reshape_three_column(table)

    # ------------------------------------------------------------------ #
    # Core pipeline logic
    # ------------------------------------------------------------------ #

    def _run(self, table: Table) -> PipelineOutput:
        """Execute the full pipeline on a raw table."""
        try:
            normalized = self._normalizer.normalize(table)
        except MissingColumnError as exc:
            exc.audit = AuditResult(issues=list(exc.issues))
            return self._fail(exc.message, exc.audit, exc)

        audit, rows = self._auditor.audit(normalized.rows, normalized.warnings)
        if not rows:
            return self._fail(NO_VALID_DATA_MESSAGE, audit)

        return self._derive(rows, audit)

    def _derive(self, rows: List[LedgerRow], audit: AuditResult) -> PipelineOutput:
        accounts = self._classifier.classify_rows(rows)
        profit_loss, balance_sheet = self._aggregator.aggregate(accounts)
        inputs = self._aggregator.ratio_inputs(accounts, profit_loss, balance_sheet)
        ratios, details, assessment = self.compute_ratios(inputs)

        output = PipelineOutput(
            audit=audit,
            rows=rows,
            accounts=accounts,
            profit_loss=profit_loss,
            balance_sheet=balance_sheet,
            ratio_inputs=inputs,
            ratios=ratios,
            ratio_details=details,
            assessment=assessment,
        )

        logger.info(
            "Pipeline complete: rows=%d, invalid=%d, issues=%d, net_profit=%.2f",
            len(rows),
            audit.invalid_rows,
            len(audit.issues),
            profit_loss.net_profit,
        )
        return output

    def _fail(
        self,
        message: str,
        audit: AuditResult,
        exc: Optional[IngestionError] = None,
    ) -> PipelineOutput:
        logger.error("Pipeline failed: %s", message)
        if self._config.strict_mode:
            if exc is not None:
                raise exc
            raise IngestionError(message, audit=audit)
        return PipelineOutput(audit=audit, error=message)

    # ------------------------------------------------------------------ #
    # Utility
    # ------------------------------------------------------------------ #

    def add_keywords(self, mapping: Dict[str, List[str]]) -> None:
        """Hot-add lexicon keywords after pipeline construction."""
        self._classifier.add_keywords(mapping)

    @property
    def keyword_count(self) -> int:
        return self._classifier.size
