"""
Sample trial balance generator.

Produces realistic-looking trial balances for demos and manual testing.
Account names come from fixed per-category lists; asset and expense
accounts carry their amount in Debit, everything else in Credit.
"""

from __future__ import annotations

import random
from typing import Any, Dict, Iterable, List, Optional, Tuple

from trial_balance.logging_setup import get_logger
from trial_balance.normalizer import CANONICAL_HEADER

logger = get_logger("sample_data")

ACCOUNT_CATEGORIES: Dict[str, Tuple[str, ...]] = {
    "assets": (
        "Cash in Hand", "Cash at Bank", "Accounts Receivable", "Inventory",
        "Equipment", "Furniture and Fixtures", "Computer Equipment",
        "Prepaid Rent", "Prepaid Insurance", "Investments", "Land",
        "Buildings", "Vehicles", "Office Supplies",
    ),
    "liabilities": (
        "Accounts Payable", "Bank Loan", "Bank Overdraft", "Credit Card Payable",
        "Sundry Creditors", "Notes Payable", "Interest Payable",
        "Salary Payable", "Taxes Payable", "Unearned Revenue",
        "Mortgage Payable",
    ),
    "equity": (
        "Common Stock", "Retained Earnings", "Owner's Drawing",
        "Additional Paid-in Capital",
    ),
    "income": (
        "Sales Revenue", "Service Revenue", "Interest Income", "Rental Income",
        "Commission Income", "Discount Received", "Miscellaneous Income",
        "Royalty Income",
    ),
    "expenses": (
        "Purchases", "Salaries Expense", "Rent Expense", "Utilities Expense",
        "Insurance Expense", "Depreciation Expense", "Advertising Expense",
        "Office Supplies Expense", "Telephone Expense", "Internet Expense",
        "Repair and Maintenance", "Fuel Expense", "Legal Fees",
        "Accounting Fees", "Bank Charges", "Interest Expense", "Bad Debts",
        "Staff Training", "Travel Expense", "Entertainment Expense",
        "Printing and Stationery",
    ),
}

DEBIT_CATEGORIES = ("assets", "expenses")

FALLBACK_ACCOUNT = "Cash in Hand"

# Redraws allowed per row before a repeated account is accepted.
MAX_REDRAWS = 10


def generate_sample_table(
    row_count: int = 50,
    categories: Optional[Iterable[str]] = None,
    seed: Optional[int] = None,
    min_amount: int = 1000,
    max_amount: int = 50000,
) -> List[List[Any]]:
    """Return ``[header, row, ...]`` with *row_count* generated rows.

    Parameters
    ----------
    categories:
        Keys of ``ACCOUNT_CATEGORIES`` to draw from (all by default).  An
        empty selection yields only ``FALLBACK_ACCOUNT`` rows.
    seed:
        Makes the output reproducible.

    Raises
    ------
    ValueError
        For an unknown category, a negative row count or an empty amount
        range.
    """
    if row_count < 0:
        raise ValueError(f"row_count must be non-negative, got {row_count}")
    if min_amount > max_amount:
        raise ValueError(f"min_amount {min_amount} exceeds max_amount {max_amount}")

    selected = list(ACCOUNT_CATEGORIES) if categories is None else list(categories)
    unknown = [c for c in selected if c not in ACCOUNT_CATEGORIES]
    if unknown:
        raise ValueError(
            f"Unknown categories {unknown}; choose from {list(ACCOUNT_CATEGORIES)}"
        )

    pool: List[str] = [a for c in selected for a in ACCOUNT_CATEGORIES[c]]
    debit_accounts = {a for c in DEBIT_CATEGORIES for a in ACCOUNT_CATEGORIES[c]}
    rng = random.Random(seed)

    def draw() -> str:
        return rng.choice(pool) if pool else FALLBACK_ACCOUNT

    table: List[List[Any]] = [list(CANONICAL_HEADER)]
    used: set = set()
    for _ in range(row_count):
        account = draw()
        attempts = 0
        while account in used and attempts < MAX_REDRAWS:
            account = draw()
            attempts += 1
        used.add(account)

        amount = str(rng.randint(min_amount, max_amount))
        if account in debit_accounts:
            table.append([account, amount, ""])
        else:
            table.append([account, "", amount])

    logger.info(
        "Generated %d sample rows from %d categories", row_count, len(selected)
    )
    return table
