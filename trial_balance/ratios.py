"""
Financial Ratio Engine.

Computes the six headline ratios from aggregated trial balance totals,
bands each one as good / caution / risk, scales it for progress displays,
and selects the canned narrative assessment.
"""

from __future__ import annotations

import math
from typing import Any, Dict, NamedTuple, Optional

from trial_balance.logging_setup import get_logger
from trial_balance.schema import (
    Assessment,
    RatioBand,
    RatioInputs,
    RatioSet,
    Verdict,
)

logger = get_logger("ratios")


class BandThresholds(NamedTuple):
    """Cut-offs for one ratio.

    With ``higher_is_better`` a value strictly above ``good`` is good and
    strictly above ``caution`` is caution; otherwise the comparisons are
    "strictly below".
    """

    good: float
    caution: float
    higher_is_better: bool = True


BAND_THRESHOLDS: Dict[str, BandThresholds] = {
    "profit_margin": BandThresholds(15, 5),
    "return_on_assets": BandThresholds(10, 5),
    "current_ratio": BandThresholds(2, 1),
    "debt_to_equity": BandThresholds(1, 2, higher_is_better=False),
    "asset_turnover": BandThresholds(1, 0.5),
    "return_on_equity": BandThresholds(15, 8),
}

# Value × multiplier = percentage of a full progress bar
# (profit margin 25% fills the bar, current ratio 3 fills it, ...).
PROGRESS_MULTIPLIERS: Dict[str, float] = {
    "profit_margin": 4,
    "return_on_assets": 5,
    "current_ratio": 33,
    "debt_to_equity": 33,
    "asset_turnover": 50,
    "return_on_equity": 4,
}

# Percentage ratios scale by magnitude
MAGNITUDE_PROGRESS = frozenset({"profit_margin", "return_on_assets", "return_on_equity"})

RATIO_META: Dict[str, Dict[str, str]] = {
    "profit_margin": {
        "label": "Profit Margin",
        "group": "Profitability",
        "unit": "percent",
        "formula": "Net Profit / Sales × 100",
        "interpretation": "Profit earned per unit of sales",
    },
    "return_on_assets": {
        "label": "Return on Assets",
        "group": "Profitability",
        "unit": "percent",
        "formula": "Net Profit / Total Assets × 100",
        "interpretation": "How efficiently assets generate profit",
    },
    "return_on_equity": {
        "label": "Return on Equity",
        "group": "Profitability",
        "unit": "percent",
        "formula": "Net Profit / Equity × 100",
        "interpretation": "Return generated on the owners' investment",
    },
    "current_ratio": {
        "label": "Current Ratio",
        "group": "Liquidity",
        "unit": "ratio",
        "formula": "Current Assets / Current Liabilities",
        "interpretation": "Ability to pay short-term obligations. "
                          "Above 1 is good, above 2 is very good.",
    },
    "debt_to_equity": {
        "label": "Debt to Equity",
        "group": "Leverage",
        "unit": "ratio",
        "formula": "Total Liabilities / Equity",
        "interpretation": "Financial leverage. Lower values indicate less risk.",
    },
    "asset_turnover": {
        "label": "Asset Turnover",
        "group": "Efficiency",
        "unit": "ratio",
        "formula": "Sales / Total Assets",
        "interpretation": "Sales generated per unit of assets",
    },
}


# ---------------------------------------------------------------------------
# Narrative templates
# ---------------------------------------------------------------------------

_PROFITABILITY_TEXT = {
    RatioBand.GOOD: (
        "The company shows excellent profit margins, indicating strong "
        "pricing power and cost control."
    ),
    RatioBand.CAUTION: (
        "The company has acceptable profit margins, but there may be room for "
        "improvement in pricing strategy or cost reduction."
    ),
    RatioBand.RISK: (
        "The company's profit margins are concerning and suggest potential "
        "issues with pricing, cost structure, or competitiveness."
    ),
}

_LIQUIDITY_TEXT = {
    RatioBand.GOOD: (
        "The company maintains a strong liquidity position and should be able "
        "to meet short-term obligations with ease."
    ),
    RatioBand.CAUTION: (
        "The company has adequate liquidity but should monitor cash flow "
        "closely."
    ),
    RatioBand.RISK: (
        "The company may face challenges meeting short-term obligations and "
        "should focus on improving liquidity."
    ),
}

_LEVERAGE_LOW = (
    "The company has low financial leverage, indicating a conservative "
    "financial strategy and lower risk."
)
_LEVERAGE_MODERATE = (
    "The company has a moderate level of debt which appears manageable."
)
_LEVERAGE_HIGH = (
    "The high debt-to-equity ratio suggests significant financial leverage, "
    "which may increase financial risk."
)

_OVERALL_TEXT = {
    Verdict.STRONG: (
        "The company appears to be in a strong financial position with good "
        "profitability, adequate liquidity, and manageable debt levels."
    ),
    Verdict.NEEDS_IMPROVEMENT: (
        "The company should focus on improving its financial health, "
        "particularly in areas of concern like profitability, liquidity, or "
        "debt management."
    ),
    Verdict.MIXED: (
        "The company shows mixed financial performance. Management should "
        "consider strategic improvements in weaker areas while maintaining "
        "strengths."
    ),
}


class RatioEngine:
    """Calculate, band and describe financial ratios."""

    @staticmethod
    def safe_divide(
        numerator: Optional[float],
        denominator: Optional[float],
        default: float = 0.0,
    ) -> float:
        """Divide, returning *default* for a zero or missing denominator."""
        if numerator is None or denominator is None:
            return default
        if denominator == 0:
            return default
        result = numerator / denominator
        if math.isnan(result) or math.isinf(result):
            return default
        return result

    def calculate(self, inputs: RatioInputs) -> RatioSet:
        """Compute all six ratios.  A zero denominator yields 0."""
        ratios = RatioSet(
            profit_margin=self.safe_divide(inputs.net_profit, inputs.sales) * 100,
            return_on_assets=(
                self.safe_divide(inputs.net_profit, inputs.total_assets) * 100
            ),
            current_ratio=self.safe_divide(
                inputs.current_assets, inputs.current_liabilities
            ),
            debt_to_equity=self.safe_divide(inputs.total_liabilities, inputs.equity),
            asset_turnover=self.safe_divide(inputs.sales, inputs.total_assets),
            return_on_equity=self.safe_divide(inputs.net_profit, inputs.equity) * 100,
        )
        logger.info("Ratios: %s", ratios.to_dict())
        return ratios

    # ------------------------------------------------------------------ #
    # Presentation helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def band(name: str, value: float) -> RatioBand:
        """Map *value* of ratio *name* to its qualitative band.

        Raises
        ------
        KeyError
            If *name* is not one of the six ratios.
        """
        t = BAND_THRESHOLDS[name]
        if t.higher_is_better:
            if value > t.good:
                return RatioBand.GOOD
            if value > t.caution:
                return RatioBand.CAUTION
            return RatioBand.RISK
        if value < t.good:
            return RatioBand.GOOD
        if value < t.caution:
            return RatioBand.CAUTION
        return RatioBand.RISK

    @staticmethod
    def progress(name: str, value: float) -> float:
        """Scale *value* to 0–100 for progress indicators."""
        if name in MAGNITUDE_PROGRESS:
            value = abs(value)
        scaled = value * PROGRESS_MULTIPLIERS[name]
        return max(0.0, min(scaled, 100.0))

    def describe(self, ratios: RatioSet) -> Dict[str, Dict[str, Any]]:
        """Return every ratio with metadata, grouped by category.

        {
            "Profitability": {"profit_margin": {...}, ...},
            "Liquidity": {...},
            ...
        }
        """
        grouped: Dict[str, Dict[str, Any]] = {}
        for name, value in ratios.items():
            meta = RATIO_META[name]
            grouped.setdefault(meta["group"], {})[name] = {
                "label": meta["label"],
                "value": value,
                "unit": meta["unit"],
                "band": self.band(name, value).value,
                "progress": self.progress(name, value),
                "formula": meta["formula"],
                "interpretation": meta["interpretation"],
            }
        return grouped

    def assess(self, ratios: RatioSet) -> Assessment:
        """Pick the narrative texts for profitability, liquidity, leverage
        and the overall verdict."""
        if ratios.debt_to_equity < 0.5:
            leverage = _LEVERAGE_LOW
        elif ratios.debt_to_equity < 1.5:
            leverage = _LEVERAGE_MODERATE
        else:
            leverage = _LEVERAGE_HIGH

        if (
            ratios.profit_margin > 10
            and ratios.current_ratio > 1.5
            and ratios.debt_to_equity < 1
        ):
            verdict = Verdict.STRONG
        elif (
            ratios.profit_margin < 3
            or ratios.current_ratio < 0.8
            or ratios.debt_to_equity > 2
        ):
            verdict = Verdict.NEEDS_IMPROVEMENT
        else:
            verdict = Verdict.MIXED

        logger.info("Assessment verdict: %s", verdict.value)
        return Assessment(
            profitability=_PROFITABILITY_TEXT[
                self.band("profit_margin", ratios.profit_margin)
            ],
            liquidity=_LIQUIDITY_TEXT[self.band("current_ratio", ratios.current_ratio)],
            leverage=leverage,
            overall=_OVERALL_TEXT[verdict],
            verdict=verdict,
        )
