"""Yearly and monthly aggregation of transactions by category role.

The aggregator routes each income/expense transaction of a calendar year
into one of three places: the bucket of its category, the uncategorized
total, or nowhere. A transaction lands nowhere when its category is a
savings category, or when the category is unknown to the classification
for the transaction's direction (for example a category deleted after the
transaction was recorded). Amounts are always taken as absolute values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Union

import numpy as np
import pandas as pd

from .classification import CategoryClassification, CategoryRole
from .models import Transaction, TransactionType

MONTH_LABELS = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
                'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']
FRAME_COLUMNS = ['id', 'description', 'amount', 'type', 'category', 'account_id', 'date']
FLOW_TYPES = (TransactionType.INCOME.value, TransactionType.EXPENSE.value)
UNCATEGORIZED = '__uncategorized__'

TransactionsInput = Union[Iterable[Transaction], pd.DataFrame]


@dataclass
class PeriodSummary:
    """Aggregates for one calendar year."""

    year: int
    income_by_category: Dict[str, float] = field(default_factory=dict)
    expense_by_category: Dict[str, float] = field(default_factory=dict)
    uncategorized_income: float = 0.0
    uncategorized_expense: float = 0.0
    savings_total: float = 0.0

    @property
    def total_income(self) -> float:
        return self.uncategorized_income + sum(self.income_by_category.values())

    @property
    def total_expenses(self) -> float:
        return self.uncategorized_expense + sum(self.expense_by_category.values())

    @property
    def net_savings(self) -> float:
        return self.total_income - self.total_expenses

    @property
    def savings_rate(self) -> float:
        """Net savings as a percentage of income (0 without income)."""
        income = self.total_income
        return (self.net_savings / income * 100.0) if income > 0 else 0.0


def _normalize_type(value) -> str:
    raw = getattr(value, 'value', value)
    return str(raw or '').strip().lower()


def _normalize_category(value) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str) and pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def transactions_frame(transactions: TransactionsInput) -> pd.DataFrame:
    """Normalize transactions into a DataFrame the aggregator can work on.

    Accepts either ``Transaction`` records or a DataFrame that already has
    ``amount``, ``type`` and ``date`` columns. Dates are parsed (unparseable
    dates become NaT), amounts coerced to floats, types lower-cased and empty
    categories turned into ``None``.
    """
    if isinstance(transactions, pd.DataFrame):
        df = transactions.copy()
    else:
        df = pd.DataFrame([
            {
                'id': t.id,
                'description': t.description,
                'amount': t.amount,
                'type': t.type,
                'category': t.category,
                'account_id': t.account_id,
                'date': t.date,
            }
            for t in transactions
        ], columns=FRAME_COLUMNS)

    for column in FRAME_COLUMNS:
        if column not in df.columns:
            df[column] = None

    df['amount'] = pd.to_numeric(df['amount'], errors='coerce').fillna(0.0).astype(float)
    df['type'] = df['type'].map(_normalize_type)
    df['category'] = df['category'].map(_normalize_category).astype(object)
    df['date'] = pd.to_datetime(df['date'], errors='coerce')
    return df


def _year_rows(frame: pd.DataFrame, year: int) -> pd.DataFrame:
    return frame[frame['date'].dt.year == year]


def _routed_flows(
    frame: pd.DataFrame,
    classification: CategoryClassification,
    year: int,
) -> pd.DataFrame:
    """Income/expense rows of ``year`` with a ``bucket`` column.

    ``bucket`` is the category value, ``UNCATEGORIZED``, or None when the
    amount is not counted anywhere.
    """
    flows = _year_rows(frame, year)
    flows = flows[flows['type'].isin(FLOW_TYPES)].copy()
    if flows.empty:
        flows['bucket'] = pd.Series(dtype=object)
        flows['abs_amount'] = pd.Series(dtype=float)
        flows['month'] = pd.Series(dtype=int)
        return flows

    roles = flows['category'].map(classification.role_of)
    uncategorized = flows['category'].isna()
    matches_role = (
        ((flows['type'] == TransactionType.INCOME.value) & (roles == CategoryRole.INCOME))
        | ((flows['type'] == TransactionType.EXPENSE.value) & (roles == CategoryRole.EXPENSE))
    )

    bucket = pd.Series(None, index=flows.index, dtype=object)
    bucket.loc[matches_role] = flows.loc[matches_role, 'category']
    bucket.loc[uncategorized] = UNCATEGORIZED

    flows['bucket'] = bucket
    flows['abs_amount'] = np.abs(flows['amount'].to_numpy())
    flows['month'] = flows['date'].dt.month
    return flows


def aggregate_year(
    transactions: TransactionsInput,
    classification: CategoryClassification,
    year: int,
) -> PeriodSummary:
    """Sum a year of transactions into per-category and total figures.

    Args:
        transactions: Transaction records or a frame from ``transactions_frame``
        classification: Category roles for the user's categories
        year: Calendar year to aggregate

    Returns:
        PeriodSummary. Every income and expense category appears in its
        mapping, with 0.0 when it had no transactions.
    """
    frame = transactions_frame(transactions)
    summary = PeriodSummary(
        year=year,
        income_by_category={value: 0.0 for value in classification.values(CategoryRole.INCOME)},
        expense_by_category={value: 0.0 for value in classification.values(CategoryRole.EXPENSE)},
    )

    flows = _routed_flows(frame, classification, year)
    counted = flows[flows['bucket'].notna()]
    if not counted.empty:
        sums = counted.groupby(['type', 'bucket'])['abs_amount'].sum().to_dict()
        for (kind, bucket), amount in sums.items():
            amount = float(amount)
            if kind == TransactionType.INCOME.value:
                if bucket == UNCATEGORIZED:
                    summary.uncategorized_income = amount
                else:
                    summary.income_by_category[bucket] = amount
            elif bucket == UNCATEGORIZED:
                summary.uncategorized_expense = amount
            else:
                summary.expense_by_category[bucket] = amount

    year_rows = _year_rows(frame, year)
    savings_rows = year_rows[year_rows['type'] == TransactionType.SAVINGS.value]
    summary.savings_total = float(savings_rows['amount'].abs().sum()) if not savings_rows.empty else 0.0
    return summary


def monthly_breakdown(
    transactions: TransactionsInput,
    classification: CategoryClassification,
    year: int,
) -> pd.DataFrame:
    """Month-by-month income and expense table for one year.

    One row per income category and per expense category, each group led by
    its uncategorized row.

    Returns:
        DataFrame with columns: Kind, Category, Label, Jan..Dec, Total.
        ``Category`` is None on the uncategorized rows.
    """
    flows = _routed_flows(transactions_frame(transactions), classification, year)
    counted = flows[flows['bucket'].notna()]
    totals = (
        counted.groupby(['type', 'bucket', 'month'])['abs_amount'].sum().to_dict()
        if not counted.empty
        else {}
    )

    rows: List[dict] = []
    sections = (
        (TransactionType.INCOME.value, classification.income),
        (TransactionType.EXPENSE.value, classification.expense),
    )
    for kind, categories in sections:
        entries = [(UNCATEGORIZED, f"Uncategorized ({kind.title()})")]
        entries += [(cat.value, cat.label) for cat in categories]
        for value, label in entries:
            months = [float(totals.get((kind, value, month), 0.0)) for month in range(1, 13)]
            row = {
                'Kind': kind,
                'Category': None if value == UNCATEGORIZED else value,
                'Label': label,
            }
            row.update(zip(MONTH_LABELS, months))
            row['Total'] = sum(months)
            rows.append(row)

    return pd.DataFrame(rows, columns=['Kind', 'Category', 'Label', *MONTH_LABELS, 'Total'])


def available_years(transactions: TransactionsInput, current_year: Optional[int] = None) -> List[int]:
    """Years that have transactions, plus the current year, newest first."""
    frame = transactions_frame(transactions)
    years = {int(y) for y in frame['date'].dropna().dt.year.unique()}
    years.add(current_year if current_year is not None else date.today().year)
    return sorted(years, reverse=True)
