from __future__ import annotations

from datetime import date

import pandas as pd
import pytest

from budget_planner.aggregation import (
    MONTH_LABELS,
    aggregate_year,
    available_years,
    monthly_breakdown,
    transactions_frame,
)
from budget_planner.classification import classify_categories
from budget_planner.models import Category, Transaction, TransactionType as T


def _classification():
    return classify_categories([
        Category('Salary', 'salary'),
        Category('Rent', 'rent'),
        Category('Food', 'food'),
        Category('Savings', 'savings'),
    ])


def _tx(id, amount, type, when, category=None):
    return Transaction(id=id, amount=amount, type=type, date=when, category=category)


def _sample():
    return [
        _tx('1', 5000, T.INCOME, date(2024, 1, 31), 'salary'),
        _tx('2', 250, T.INCOME, date(2024, 2, 3)),
        _tx('3', -1200, T.EXPENSE, date(2024, 1, 1), 'rent'),
        _tx('4', -80.5, T.EXPENSE, date(2024, 2, 14), 'food'),
        _tx('5', -19.5, T.EXPENSE, date(2024, 2, 20)),
        _tx('6', -300, T.EXPENSE, date(2024, 3, 1), 'savings'),
        _tx('7', -500, T.SAVINGS, date(2024, 3, 2), 'savings'),
        _tx('8', -400, T.SAVINGS, date(2024, 4, 2)),
        _tx('9', -999, T.EXPENSE, date(2023, 12, 31), 'rent'),
        _tx('10', -75, T.TRANSFER, date(2024, 5, 5)),
    ]


def test_aggregate_year_routes_amounts_by_role():
    summary = aggregate_year(_sample(), _classification(), 2024)

    assert summary.income_by_category == {'salary': 5000.0}
    assert summary.expense_by_category == {'rent': 1200.0, 'food': 80.5}
    assert summary.uncategorized_income == 250.0
    assert summary.uncategorized_expense == 19.5
    assert summary.total_income == 5250.0
    assert summary.total_expenses == 1300.0


def test_savings_total_counts_savings_type_regardless_of_category():
    summary = aggregate_year(_sample(), _classification(), 2024)

    # the savings-category expense (id 6) is excluded from both totals and from savings_total
    assert summary.savings_total == 900.0


def test_totals_are_additive():
    summary = aggregate_year(_sample(), _classification(), 2024)

    assert summary.total_income == summary.uncategorized_income + sum(summary.income_by_category.values())
    assert summary.total_expenses == summary.uncategorized_expense + sum(summary.expense_by_category.values())
    assert summary.total_income >= 0
    assert summary.total_expenses >= 0


def test_deleted_category_is_excluded_everywhere():
    transactions = [
        _tx('1', -300, T.EXPENSE, date(2024, 6, 1), 'rent'),
        _tx('2', -45, T.EXPENSE, date(2024, 6, 2), 'gym'),
    ]

    summary = aggregate_year(transactions, _classification(), 2024)

    assert 'gym' not in summary.expense_by_category
    assert summary.uncategorized_expense == 0.0
    assert summary.total_expenses == 300.0


def test_income_tagged_with_expense_category_is_not_counted():
    transactions = [_tx('1', 100, T.INCOME, date(2024, 6, 1), 'food')]

    summary = aggregate_year(transactions, _classification(), 2024)

    assert summary.total_income == 0.0
    assert summary.expense_by_category['food'] == 0.0


def test_unused_categories_are_present_with_zero():
    summary = aggregate_year([], _classification(), 2024)

    assert summary.income_by_category == {'salary': 0.0}
    assert summary.expense_by_category == {'rent': 0.0, 'food': 0.0}
    assert summary.savings_total == 0.0
    assert summary.savings_rate == 0.0


def test_aggregate_year_accepts_dataframe_input():
    df = pd.DataFrame([
        {'amount': '-40', 'type': 'expense', 'category': 'food', 'date': '2024-07-01'},
        {'amount': 1000, 'type': 'Income', 'category': '', 'date': '2024-07-02'},
        {'amount': -10, 'type': 'expense', 'category': 'food', 'date': 'not a date'},
    ])

    summary = aggregate_year(df, _classification(), 2024)

    assert summary.expense_by_category['food'] == 40.0
    assert summary.uncategorized_income == 1000.0
    assert summary.net_savings == 960.0
    assert summary.savings_rate == pytest.approx(96.0)


def test_transactions_frame_normalizes_columns():
    frame = transactions_frame([_tx('1', -5, T.EXPENSE, date(2024, 1, 1), '  ')])

    assert frame.loc[0, 'type'] == 'expense'
    assert pd.isna(frame.loc[0, 'category'])
    assert pd.api.types.is_datetime64_any_dtype(frame['date'])


def test_monthly_breakdown_matches_yearly_totals():
    classification = _classification()
    breakdown = monthly_breakdown(_sample(), classification, 2024)
    summary = aggregate_year(_sample(), classification, 2024)

    assert list(breakdown['Label']) == [
        'Uncategorized (Income)', 'Salary', 'Uncategorized (Expense)', 'Rent', 'Food',
    ]
    rent = breakdown[breakdown['Category'] == 'rent'].iloc[0]
    assert rent['Jan'] == 1200.0
    assert rent['Total'] == summary.expense_by_category['rent']

    uncategorized_expense = breakdown.iloc[2]
    assert uncategorized_expense['Feb'] == 19.5
    assert breakdown.groupby('Kind')['Total'].sum()['expense'] == summary.total_expenses
    assert set(MONTH_LABELS).issubset(breakdown.columns)


def test_available_years_includes_current_year_newest_first():
    assert available_years(_sample(), current_year=2026) == [2026, 2024, 2023]
    assert available_years([], current_year=2025) == [2025]
