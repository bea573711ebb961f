#!/usr/bin/env python3
"""Print a year's savings gap and expense reduction plan for a transactions CSV."""

from __future__ import annotations

import argparse
import sys
from datetime import date
from pathlib import Path
from typing import Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pandas as pd

from budget_planner.config import DEFAULT_CATEGORIES, DEFAULT_SAVINGS_PERCENTAGE, configure_logging
from budget_planner.csv_import import categories_from_records, load_categories_csv, load_transactions_csv
from budget_planner.formatting import format_currency, format_percent
from budget_planner.planner import plan_budget


def main(
    transactions_path: str,
    year: int,
    target: float,
    categories_path: Optional[str] = None,
    income_basis: Optional[float] = None,
) -> None:
    transactions = load_transactions_csv(transactions_path)
    categories = (
        load_categories_csv(categories_path)
        if categories_path
        else categories_from_records(DEFAULT_CATEGORIES)
    )
    report = plan_budget(transactions, categories, year, target, income_basis=income_basis)
    summary, gap = report.summary, report.gap

    print(f"Budget report for {year}")
    print(f"  Income:   {format_currency(summary.total_income)}")
    print(f"  Expenses: {format_currency(summary.total_expenses)}")
    print(f"  Saved:    {format_currency(gap.savings_total)} ({format_percent(gap.savings_percentage)})")
    print(f"  Target:   {format_currency(gap.target_savings_amount)} ({format_percent(gap.target_percentage)})")

    if not gap.is_behind_target:
        print("\nAt or above the savings target. No reductions needed. 🎉")
        return

    print(f"\nReduce expenses by {format_currency(gap.expense_reduction_needed)} "
          f"({format_percent(gap.target_extra_savings_pct)} of income).")
    if not report.reduction_plan:
        print("No categorized expenses to cut.")
        return

    rows = pd.DataFrame([
        {
            'Category': row.label,
            'Spend': format_currency(row.current_amount),
            'Share': format_percent(row.share_of_expenses * 100),
            'Cut': format_currency(row.reduction_amount),
            'Cut % of category': format_percent(row.reduction_pct_of_category),
        }
        for row in report.reduction_plan
    ])
    print()
    print(rows.to_string(index=False))


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Show the savings gap and reduction plan for a year.')
    parser.add_argument('transactions', help='Transactions CSV (date, amount, type, category, ...)')
    parser.add_argument('--year', type=int, default=date.today().year, help='Calendar year to report on')
    parser.add_argument('--target', type=float, default=DEFAULT_SAVINGS_PERCENTAGE,
                        help='Target savings percentage of income')
    parser.add_argument('--categories', help='Categories CSV (label, value, icon)')
    parser.add_argument('--income', type=float, help='Income basis to apply the target to')
    parser.add_argument('--log-level', default=None, help='Logging level, e.g. INFO')
    args = parser.parse_args()
    configure_logging(args.log_level)
    main(args.transactions, args.year, args.target, args.categories, args.income)
