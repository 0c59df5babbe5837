"""
Account Classification Engine.

Assigns each ledger account to one of the five accounting categories using
an ordered, data-driven keyword lexicon.  The lexicon is a table of rules
``(priority, category, keywords)``; lower priorities are tried first and
the first keyword hit wins.

Design decisions
----------------
* Names and keywords are normalised the same way (lowercase, punctuation
  dropped, whitespace collapsed) and a keyword must start at a word
  boundary, so ``"rent"`` hits "Rent Expense" but not "Current Assets".
* Priority 0 holds qualified phrases that override the generic terms
  ("Salary Payable", "Prepaid Rent", "Sales Returns").  Income and expense
  terms come next, before equity, liability and asset terms, so that
  "Discount Received" and "Discount Allowed" never collide with each other
  or with a generic balance-sheet word.
* When no keyword matches, the debit/credit polarity decides, so every row
  is classified.
* Users can extend the lexicon at runtime via ``add_keyword`` /
  ``add_keywords`` or ``load_custom_lexicon`` (JSON file).
"""

from __future__ import annotations

import json
import re
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from trial_balance.logging_setup import get_logger
from trial_balance.schema import Category, ClassifiedAccount, LedgerRow

logger = get_logger("classifier")


# ---------------------------------------------------------------------------
# Built-in lexicon
# ---------------------------------------------------------------------------
# Convention: keywords are written already normalised (lowercase, no
# punctuation).  Word-stems such as "salar" or "inventor" match every
# inflection that starts with them.

OVERRIDE_PRIORITY = 0

MAIN_PRIORITY: Dict[Category, int] = {
    Category.INCOME: 10,
    Category.EXPENSE: 20,
    Category.EQUITY: 30,
    Category.LIABILITY: 40,
    Category.ASSET: 50,
}

_BUILTIN_RULES: List[Tuple[int, Category, Tuple[str, ...]]] = [
    # --- Qualified phrases -------------------------------------------------
    (OVERRIDE_PRIORITY, Category.ASSET, (
        "accrued income", "income accrued", "prepaid", "advance to",
        "advance paid", "receivable", "closing stock", "closing inventory",
        "input tax",
    )),
    (OVERRIDE_PRIORITY, Category.LIABILITY, (
        "payable", "outstanding", "accrued", "unearned", "received in advance",
        "advance received", "overdraft", "accumulated depreciation",
        "provision for", "output tax",
    )),
    (OVERRIDE_PRIORITY, Category.EQUITY, (
        "profit and loss", "retained earnings",
    )),
    (OVERRIDE_PRIORITY, Category.EXPENSE, (
        "sales return", "return inward", "returns inward", "income tax",
        "opening stock", "opening inventory",
    )),
    (OVERRIDE_PRIORITY, Category.INCOME, (
        "purchase return", "return outward", "returns outward",
    )),
    # --- Income ------------------------------------------------------------
    (MAIN_PRIORITY[Category.INCOME], Category.INCOME, (
        "sales", "revenue", "turnover", "income", "commission received",
        "discount received", "interest received", "rent received",
        "dividend received", "received", "gain", "royalt",
    )),
    # --- Expenses ----------------------------------------------------------
    (MAIN_PRIORITY[Category.EXPENSE], Category.EXPENSE, (
        "purchase", "discount allowed", "commission paid", "salar", "wage",
        "rent", "expense", "expenditure", "cost of", "depreciation",
        "amortisation", "amortization", "interest", "insurance", "utilit",
        "electricity", "power", "telephone", "internet", "advertis",
        "marketing", "repair", "maintenance", "fuel", "travel", "conveyance",
        "entertainment", "printing", "stationery", "postage", "fee",
        "charges", "bad debt", "freight", "carriage", "training", "loss",
    )),
    # --- Equity ------------------------------------------------------------
    (MAIN_PRIORITY[Category.EQUITY], Category.EQUITY, (
        "capital", "drawing", "reserve", "share premium", "common stock",
        "capital stock", "equity", "surplus",
    )),
    # --- Liabilities -------------------------------------------------------
    (MAIN_PRIORITY[Category.LIABILITY], Category.LIABILITY, (
        "creditor", "loan", "borrowing", "debenture", "mortgage", "bond",
        "provision", "liabilit", "duties and taxes",
    )),
    # --- Assets ------------------------------------------------------------
    (MAIN_PRIORITY[Category.ASSET], Category.ASSET, (
        "cash", "bank", "debtor", "stock", "inventor", "equipment",
        "machinery", "plant", "furniture", "fixture", "building", "land",
        "vehicle", "motor", "computer", "investment", "goodwill", "patent",
        "trademark", "copyright", "asset", "deposit", "premises", "supplies",
        "tools",
    )),
]


_PUNCT_RE = re.compile(r"[^a-z0-9\s]")
_MULTI_SPACE_RE = re.compile(r"\s+")


def normalize_name(raw: str) -> str:
    """Return the comparable form of an account name or keyword."""
    text = raw.strip().lower()
    text = text.replace("&", " and ").replace("'", "").replace("’", "")
    text = _PUNCT_RE.sub(" ", text)
    return _MULTI_SPACE_RE.sub(" ", text).strip()


@dataclass
class LexiconRule:
    """One row of the lexicon table."""

    priority: int
    category: Category
    keywords: List[str] = field(default_factory=list)


class AccountClassifier:
    """Keyword-lexicon account classifier.

    Classification is a pure function of the account name, its balances and
    the lexicon; nothing is learned between calls.

    Parameters
    ----------
    rules:
        Replacement lexicon table.  Defaults to the built-in rules.
    extra_keywords:
        Optional ``{category: [keywords]}`` merged in at construction time.
    """

    def __init__(
        self,
        rules: Optional[Iterable[Tuple[int, Category, Iterable[str]]]] = None,
        extra_keywords: Optional[Dict[Union[str, Category], List[str]]] = None,
    ) -> None:
        self._rules: List[LexiconRule] = []
        self._patterns: Dict[str, re.Pattern] = {}
        for priority, category, keywords in rules or _BUILTIN_RULES:
            for kw in keywords:
                self.add_keyword(category, kw, priority=priority)

        if extra_keywords:
            self.add_keywords(extra_keywords)

    # ------------------------------------------------------------------ #
    # Classification
    # ------------------------------------------------------------------ #

    def match(self, name: str) -> Optional[Tuple[Category, str]]:
        """Return ``(category, keyword)`` for the first lexicon hit, if any."""
        text = normalize_name(name)
        if not text:
            return None
        for rule in self._rules:
            for kw in rule.keywords:
                if self._patterns[kw].search(text):
                    return rule.category, kw
        return None

    def classify(
        self,
        name: str,
        debit: float,
        credit: float,
        *,
        has_counterpart: bool = False,
    ) -> ClassifiedAccount:
        """Classify one account.

        Parameters
        ----------
        has_counterpart:
            True when the same account also appears on the opposite side
            elsewhere in the trial balance.  Only consulted by the polarity
            fallback: a debit balance with a credit counterpart is an asset,
            otherwise an expense; a credit balance with a debit counterpart
            is a liability, otherwise income.
        """
        hit = self.match(name)
        if hit is not None:
            category, keyword = hit
            method = "keyword"
        else:
            keyword = None
            method = "polarity"
            if debit >= credit:
                category = Category.ASSET if has_counterpart else Category.EXPENSE
            else:
                category = Category.LIABILITY if has_counterpart else Category.INCOME
            logger.info(
                "No keyword for %r; polarity fallback → %s", name, category.value
            )

        natural, contra = (debit, credit) if category.is_debit_natured else (credit, debit)
        if contra:
            logger.warning(
                "%r is %s but carries %.2f on its contra side; only the %s column is reported",
                name,
                category.value,
                contra,
                "Debit" if category.is_debit_natured else "Credit",
            )
        amount = max(natural, 0.0)
        logger.debug(
            "CLASSIFIED: %r → %s [%s%s] amount=%.2f",
            name,
            category.value,
            method,
            f":{keyword}" if keyword else "",
            amount,
        )
        return ClassifiedAccount(
            name=name,
            amount=amount,
            category=category,
            match_method=method,
            matched_keyword=keyword,
        )

    def classify_rows(self, rows: List[LedgerRow]) -> List[ClassifiedAccount]:
        """Classify every row, preserving input order."""
        sides: Dict[str, set] = defaultdict(set)
        for row in rows:
            key = normalize_name(row.particulars)
            if row.debit > 0:
                sides[key].add("debit")
            if row.credit > 0:
                sides[key].add("credit")

        accounts: List[ClassifiedAccount] = []
        for row in rows:
            seen = sides[normalize_name(row.particulars)]
            opposite = "credit" if row.debit >= row.credit else "debit"
            accounts.append(
                self.classify(
                    row.particulars,
                    row.debit,
                    row.credit,
                    has_counterpart=opposite in seen,
                )
            )

        by_method = defaultdict(int)
        for a in accounts:
            by_method[a.match_method] += 1
        logger.info(
            "Classified %d accounts (keyword=%d, polarity=%d)",
            len(accounts),
            by_method["keyword"],
            by_method["polarity"],
        )
        return accounts

    # ------------------------------------------------------------------ #
    # Extension API
    # ------------------------------------------------------------------ #

    def add_keyword(
        self,
        category: Union[str, Category],
        keyword: str,
        priority: Optional[int] = None,
    ) -> None:
        """Register a keyword for *category*.

        Without an explicit *priority* the keyword joins the category's
        main rule.  A keyword already present elsewhere is moved.

        Raises
        ------
        ValueError
            If *category* is not a recognised category or *keyword* is blank.
        """
        cat = self._resolve_category(category)
        kw = normalize_name(keyword)
        if not kw:
            raise ValueError(f"Blank keyword {keyword!r}")
        if priority is None:
            priority = MAIN_PRIORITY[cat]

        if kw in self._patterns:
            logger.debug("Re-registering keyword %r under %s", kw, cat.value)
            self.remove_keyword(kw)

        rule = next(
            (r for r in self._rules if r.priority == priority and r.category is cat),
            None,
        )
        if rule is None:
            rule = LexiconRule(priority=priority, category=cat)
            self._rules.append(rule)
            self._rules.sort(key=lambda r: r.priority)
        rule.keywords.append(kw)
        self._patterns[kw] = re.compile(r"(?<![a-z0-9])" + re.escape(kw))

    def add_keywords(self, mapping: Dict[Union[str, Category], List[str]]) -> None:
        """Bulk-add keywords from a ``{category: [keywords]}`` dict."""
        for category, keywords in mapping.items():
            for kw in keywords:
                self.add_keyword(category, kw)

    def remove_keyword(self, keyword: str) -> bool:
        """Drop *keyword* from the lexicon.  Returns False if it was absent."""
        kw = normalize_name(keyword)
        if kw not in self._patterns:
            return False
        del self._patterns[kw]
        for rule in self._rules:
            if kw in rule.keywords:
                rule.keywords.remove(kw)
        self._rules = [r for r in self._rules if r.keywords]
        return True

    def load_custom_lexicon(self, path: Path) -> int:
        """Load keywords from a JSON file (``{category: [keywords]}``).

        Returns the number of keywords added.
        """
        with open(path, encoding="utf-8") as fh:
            data: Dict[str, List[str]] = json.load(fh)
        self.add_keywords(data)
        count = sum(len(v) for v in data.values())
        logger.info("Loaded %d custom keywords from %s", count, path)
        return count

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    @property
    def size(self) -> int:
        return len(self._patterns)

    def rules(self) -> List[LexiconRule]:
        """Return a *copy* of the lexicon table in priority order."""
        return [
            LexiconRule(r.priority, r.category, list(r.keywords)) for r in self._rules
        ]

    @staticmethod
    def _resolve_category(category: Union[str, Category]) -> Category:
        if isinstance(category, Category):
            return category
        cat = Category.lookup(category)
        if cat is None:
            raise ValueError(
                f"Unknown category {category!r}. "
                f"Must be one of {[c.value for c in Category]}."
            )
        return cat
