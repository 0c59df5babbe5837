"""
Statement Aggregator.

Groups classified accounts into a Profit & Loss statement and a Balance
Sheet, and derives the totals the ratio engine consumes.

Each source row becomes its own line item: accounts sharing a name are
*not* merged, and line order follows the input.  Totals are computed once,
here, from the grouped lists.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence, Tuple

from trial_balance.classifier import normalize_name
from trial_balance.logging_setup import get_logger
from trial_balance.schema import (
    BalanceSheet,
    Category,
    ClassifiedAccount,
    LineItem,
    ProfitLossStatement,
    RatioInputs,
)

logger = get_logger("statements")


SALES_KEYWORDS: Tuple[str, ...] = ("sales", "revenue", "turnover")

CURRENT_ASSET_KEYWORDS: Tuple[str, ...] = (
    "cash", "bank", "debtor", "receivable", "stock", "inventor", "prepaid",
    "accrued income", "short term investment", "marketable", "advance to",
    "advance paid", "supplies",
)

CURRENT_LIABILITY_KEYWORDS: Tuple[str, ...] = (
    "creditor", "payable", "overdraft", "outstanding", "accrued",
    "short term", "advance received", "received in advance", "unearned",
    "provision for tax", "output tax", "duties and taxes",
)


def _compile(keywords: Iterable[str]) -> List[re.Pattern]:
    return [
        re.compile(r"(?<![a-z0-9])" + re.escape(normalize_name(kw)))
        for kw in keywords
    ]


class StatementAggregator:
    """Builds statements from ``ClassifiedAccount`` lists.

    Parameters
    ----------
    sales_keywords / current_asset_keywords / current_liability_keywords:
        Lexicons used to pick sales lines and current items when deriving
        ratio inputs.  Matching follows the classifier's word-start rule.
    """

    def __init__(
        self,
        sales_keywords: Sequence[str] = SALES_KEYWORDS,
        current_asset_keywords: Sequence[str] = CURRENT_ASSET_KEYWORDS,
        current_liability_keywords: Sequence[str] = CURRENT_LIABILITY_KEYWORDS,
    ) -> None:
        self._sales = _compile(sales_keywords)
        self._current_assets = _compile(current_asset_keywords)
        self._current_liabilities = _compile(current_liability_keywords)

    # ------------------------------------------------------------------ #
    # Statements
    # ------------------------------------------------------------------ #

    def profit_and_loss(self, accounts: List[ClassifiedAccount]) -> ProfitLossStatement:
        incomes = self._lines(accounts, Category.INCOME)
        expenses = self._lines(accounts, Category.EXPENSE)
        total_income = sum(i.amount for i in incomes)
        total_expenses = sum(e.amount for e in expenses)

        statement = ProfitLossStatement(
            incomes=incomes,
            expenses=expenses,
            total_income=total_income,
            total_expenses=total_expenses,
            net_profit=total_income - total_expenses,
        )
        logger.info(
            "P&L: income=%.2f expenses=%.2f net=%.2f",
            statement.total_income,
            statement.total_expenses,
            statement.net_profit,
        )
        return statement

    def balance_sheet(self, accounts: List[ClassifiedAccount]) -> BalanceSheet:
        assets = self._lines(accounts, Category.ASSET)
        liabilities = self._lines(accounts, Category.LIABILITY, Category.EQUITY)

        sheet = BalanceSheet(
            assets=assets,
            liabilities=liabilities,
            total_assets=sum(a.amount for a in assets),
            total_liabilities=sum(lb.amount for lb in liabilities),
        )
        if sheet.is_balanced():
            logger.info("Balance sheet balances at %.2f", sheet.total_assets)
        else:
            logger.warning(
                "Balance sheet out of balance: assets=%.2f liabilities=%.2f "
                "difference=%.2f",
                sheet.total_assets,
                sheet.total_liabilities,
                sheet.difference,
            )
        return sheet

    def aggregate(
        self, accounts: List[ClassifiedAccount]
    ) -> Tuple[ProfitLossStatement, BalanceSheet]:
        return self.profit_and_loss(accounts), self.balance_sheet(accounts)

    # ------------------------------------------------------------------ #
    # Ratio inputs
    # ------------------------------------------------------------------ #

    def ratio_inputs(
        self,
        accounts: List[ClassifiedAccount],
        profit_loss: Optional[ProfitLossStatement] = None,
        balance_sheet: Optional[BalanceSheet] = None,
    ) -> RatioInputs:
        """Derive the ratio engine's inputs.

        * sales: income lines named like sales, else total income
        * current assets / liabilities: lines named like current items
        * total liabilities: liability lines only (equity excluded)
        * equity: equity lines plus the period's net profit
        """
        if profit_loss is None:
            profit_loss = self.profit_and_loss(accounts)
        if balance_sheet is None:
            balance_sheet = self.balance_sheet(accounts)

        sales_lines = [
            a.amount
            for a in accounts
            if a.category is Category.INCOME and self._hits(a.name, self._sales)
        ]
        sales = sum(sales_lines) if sales_lines else profit_loss.total_income

        inputs = RatioInputs(
            sales=sales,
            net_profit=profit_loss.net_profit,
            total_assets=balance_sheet.total_assets,
            current_assets=sum(
                a.amount
                for a in accounts
                if a.category is Category.ASSET
                and self._hits(a.name, self._current_assets)
            ),
            current_liabilities=sum(
                a.amount
                for a in accounts
                if a.category is Category.LIABILITY
                and self._hits(a.name, self._current_liabilities)
            ),
            total_liabilities=sum(
                a.amount for a in accounts if a.category is Category.LIABILITY
            ),
            equity=sum(a.amount for a in accounts if a.category is Category.EQUITY)
            + profit_loss.net_profit,
        )
        logger.debug("Ratio inputs: %s", inputs.to_dict())
        return inputs

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    @staticmethod
    def _lines(
        accounts: List[ClassifiedAccount], *categories: Category
    ) -> List[LineItem]:
        return [
            LineItem(name=a.name, amount=a.amount)
            for a in accounts
            if a.category in categories
        ]

    @staticmethod
    def _hits(name: str, patterns: List[re.Pattern]) -> bool:
        text = normalize_name(name)
        return any(p.search(text) for p in patterns)
