"""
Unit tests for the sample trial balance generator.
"""

from __future__ import annotations

import logging

import pytest

from trial_balance.classifier import AccountClassifier
from trial_balance.config import PipelineConfig
from trial_balance.pipeline import TrialBalancePipeline
from trial_balance.sample_data import (
    ACCOUNT_CATEGORIES,
    FALLBACK_ACCOUNT,
    generate_sample_table,
)
from trial_balance.schema import Category

EXPECTED_CATEGORY = {
    "assets": Category.ASSET,
    "liabilities": Category.LIABILITY,
    "equity": Category.EQUITY,
    "income": Category.INCOME,
    "expenses": Category.EXPENSE,
}


class TestGenerateSampleTable:
    def test_shape(self) -> None:
        table = generate_sample_table(row_count=12, seed=3)
        assert table[0] == ["Particulars", "Debit", "Credit"]
        assert len(table) == 13
        assert all(len(row) == 3 for row in table)

    def test_seed_is_reproducible(self) -> None:
        assert generate_sample_table(20, seed=42) == generate_sample_table(20, seed=42)

    def test_amount_on_natural_side(self) -> None:
        debit_accounts = set(ACCOUNT_CATEGORIES["assets"] + ACCOUNT_CATEGORIES["expenses"])
        for name, debit, credit in generate_sample_table(40, seed=1)[1:]:
            if name in debit_accounts:
                assert debit and credit == ""
            else:
                assert credit and debit == ""

    def test_amount_range(self) -> None:
        table = generate_sample_table(30, seed=9, min_amount=10, max_amount=20)
        for _, debit, credit in table[1:]:
            assert 10 <= int(debit or credit) <= 20

    def test_category_selection(self) -> None:
        table = generate_sample_table(5, categories=["income"], seed=2)
        assert all(row[0] in ACCOUNT_CATEGORIES["income"] for row in table[1:])

    def test_empty_selection_uses_fallback(self) -> None:
        table = generate_sample_table(3, categories=[], seed=0)
        assert [row[0] for row in table[1:]] == [FALLBACK_ACCOUNT] * 3

    def test_zero_rows(self) -> None:
        assert generate_sample_table(0) == [["Particulars", "Debit", "Credit"]]

    def test_unknown_category(self) -> None:
        with pytest.raises(ValueError, match="Unknown categories"):
            generate_sample_table(5, categories=["stock"])

    def test_negative_row_count(self) -> None:
        with pytest.raises(ValueError):
            generate_sample_table(-1)

    def test_inverted_amount_range(self) -> None:
        with pytest.raises(ValueError):
            generate_sample_table(5, min_amount=10, max_amount=1)

    def test_sample_passes_audit(self) -> None:
        pipeline = TrialBalancePipeline(PipelineConfig(log_level=logging.WARNING))
        result = pipeline.ingest_table(generate_sample_table(50, seed=11))
        assert result.success
        assert result.audit.invalid_rows == 0
        assert result.audit.valid_rows == 50


class TestSampleAccountsClassify:
    @pytest.mark.parametrize(
        "group, name",
        [(g, n) for g, names in ACCOUNT_CATEGORIES.items() for n in names],
    )
    def test_lexicon_agrees(self, group: str, name: str) -> None:
        account = AccountClassifier().classify(name, 1.0, 0.0)
        assert account.match_method == "keyword"
        assert account.category is EXPECTED_CATEGORY[group]
