"""
Trial Balance: Ledger Ingestion and Financial Statement Engine.

Turns a raw 3-column trial balance (Particulars, Debit, Credit) into an
audited set of ledger rows, a Profit & Loss statement, a Balance Sheet and
a small set of financial ratios with a plain-language assessment.

Every rejected row is reported with its source line and a suggested fix;
nothing is dropped silently.
"""

__version__ = "1.0.0"
__author__ = "Trial Balance Team"

from trial_balance.pipeline import TrialBalancePipeline  # noqa: F401
