#!/usr/bin/env python3
"""
Example: Trial Balance Pipeline Demo.

Runs a clean trial balance, a messy one and a generated sample through the
pipeline and prints the statements, ratios and audit findings.

Run from the project root:
    python -m trial_balance.examples.run_example
"""

from __future__ import annotations

import logging

from trial_balance.config import PipelineConfig
from trial_balance.pipeline import TrialBalancePipeline
from trial_balance.ratios import RatioEngine
from trial_balance.report_builder import ReportBuilder
from trial_balance.sample_data import generate_sample_table
from trial_balance.schema import PipelineOutput


# ======================================================================
# Helper
# ======================================================================

def print_section(title: str) -> None:
    width = 72
    print("\n" + "=" * width)
    print(f"  {title}")
    print("=" * width)


def print_output(output: PipelineOutput) -> None:
    """Pretty-print the interesting parts of a PipelineOutput."""
    audit = output.audit
    print(f"  Rows            : {audit.total_rows} read, {audit.valid_rows} valid")
    print(f"  Issues          : {len(audit.issues)} ({len(audit.errors)} errors)")
    for issue in audit.issues:
        tag = issue.severity.value.upper()
        hint = f"  -> {issue.suggestion}" if issue.suggestion else ""
        print(f"    [{tag:7s}] row {issue.row}: {issue.issue}{hint}")

    if not output.success:
        print(f"\n  ✖ Failed: {output.error}")
        return

    print("\n  Profit & Loss")
    print(ReportBuilder.statement_to_csv(output.profit_loss))
    print("  Balance Sheet")
    print(ReportBuilder.statement_to_csv(output.balance_sheet))

    print("  Ratios")
    for name, value in output.ratios.items():
        band = RatioEngine.band(name, value)
        print(f"    {name:20s} = {value:>10.2f}  [{band.value}]")

    print(f"\n  Overall: {output.assessment.overall}")


# ======================================================================
# Demo 1: Clean trial balance
# ======================================================================

def demo_clean(pipeline: TrialBalancePipeline) -> None:
    print_section("DEMO 1: Clean Trial Balance")

    table = [
        ["Particulars", "Debit", "Credit"],
        ["Sales", "", "135000"],
        ["Purchases", "50000", ""],
        ["Salaries", "20000", ""],
        ["Cash at Bank", "90000", ""],
        ["Sundry Debtors", "25000", ""],
        ["Sundry Creditors", "", "15000"],
        ["Capital", "", "35000"],
    ]
    print_output(pipeline.ingest_table(table))


# ======================================================================
# Demo 2: Messy trial balance
# ======================================================================

def demo_messy(pipeline: TrialBalancePipeline) -> None:
    print_section("DEMO 2: Messy Input (currency symbols, bad rows)")

    csv_text = (
        " particulars ,DEBIT,Credit,Notes\n"
        "Sales,,\"₹1,35,000\",\n"
        "Rent Expense,(500),,\n"
        "Office Equipment,12000,3000,\n"
        ",4000,,\n"
        "Furniture,abc,,\n"
    )
    print_output(pipeline.ingest_csv(csv_text))


# ======================================================================
# Demo 3: Generated sample
# ======================================================================

def demo_sample(pipeline: TrialBalancePipeline) -> None:
    print_section("DEMO 3: Generated Sample (seed=7)")

    table = generate_sample_table(row_count=20, seed=7)
    print_output(pipeline.ingest_table(table))


# ======================================================================
# Main
# ======================================================================

def main() -> None:
    config = PipelineConfig(log_level=logging.WARNING)  # Quieter for demo output
    pipeline = TrialBalancePipeline(config)

    demo_clean(pipeline)
    demo_messy(pipeline)
    demo_sample(pipeline)

    print("\n" + "=" * 72)
    print("  All demos complete.")
    print("=" * 72)


if __name__ == "__main__":
    main()
