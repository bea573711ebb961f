"""Savings gap and expense reduction planning.

This module turns a year's aggregates into a savings gap against a target
percentage and, when the user is behind, a per-category plan of how much
spend to cut. Every ratio is guarded so a zero denominator yields 0 rather
than NaN or an exception.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Union

import pandas as pd

from .aggregation import PeriodSummary, TransactionsInput, aggregate_year
from .classification import CategoryClassification, classify_categories
from .models import BudgetPlan, Category, CustomCut

CutsInput = Union[Mapping[str, float], Iterable[CustomCut], None]


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator > 0 else 0.0


def clamp_percentage(value) -> float:
    """Clamp user input to [0, 100]; junk and NaN become 0.

    Example:
        >>> clamp_percentage(-5)
        0.0
        >>> clamp_percentage('150')
        100.0
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number):
        return 0.0
    return max(0.0, min(100.0, number))


@dataclass(frozen=True)
class SavingsGap:
    income_basis: float
    savings_total: float
    target_percentage: float
    target_savings_amount: float
    savings_difference: float
    is_behind_target: bool
    expense_reduction_needed: float
    savings_percentage: float
    expense_reduction_percentage: float

    @property
    def percentage_difference(self) -> float:
        """Actual minus target savings rate, in percentage points."""
        return self.savings_percentage - self.target_percentage

    @property
    def target_extra_savings_pct(self) -> float:
        """Extra share of income that has to be saved to hit the target."""
        return self.target_percentage - self.savings_percentage if self.is_behind_target else 0.0


def compute_savings_gap(
    income_basis: float,
    savings_total: float,
    target_percentage: float,
) -> SavingsGap:
    """Compare actual savings with the target share of income.

    Args:
        income_basis: Income the target applies to (yearly total income or a
                      separately supplied baseline)
        savings_total: Amount actually saved in the period
        target_percentage: Target savings rate, clamped to [0, 100]

    Returns:
        SavingsGap with the target amount, the difference and the expense
        reduction needed to close it

    Example:
        >>> gap = compute_savings_gap(5000, 0, 20)
        >>> gap.target_savings_amount, gap.expense_reduction_needed
        (1000.0, 1000.0)
    """
    income_basis = float(income_basis or 0.0)
    savings_total = float(savings_total or 0.0)
    target = clamp_percentage(target_percentage)

    target_amount = income_basis * target / 100.0
    difference = savings_total - target_amount
    reduction = max(0.0, -difference)

    return SavingsGap(
        income_basis=income_basis,
        savings_total=savings_total,
        target_percentage=target,
        target_savings_amount=target_amount,
        savings_difference=difference,
        is_behind_target=difference < 0,
        expense_reduction_needed=reduction,
        savings_percentage=_ratio(savings_total, income_basis) * 100.0,
        expense_reduction_percentage=_ratio(reduction, income_basis) * 100.0,
    )


@dataclass(frozen=True)
class ReductionRow:
    value: str
    label: str
    current_amount: float
    share_of_expenses: float
    reduction_amount: float
    reduction_pct_of_category: float
    savings_pct_of_income: float


def build_reduction_plan(
    gap: SavingsGap,
    expense_by_category: Mapping[str, float],
    total_expenses: float,
    labels: Optional[Mapping[str, str]] = None,
) -> List[ReductionRow]:
    """Spread the required expense reduction across categories by spend share.

    Args:
        gap: Savings gap for the period
        expense_by_category: Category value -> yearly spend, in category order
        total_expenses: Total expenses including uncategorized spend
        labels: Optional category value -> display label

    Returns:
        Rows for categories with spend, largest spend first (ties keep
        category order). Empty when on target or without expenses.

    Example:
        >>> gap = compute_savings_gap(1000, 160, 20)
        >>> rows = build_reduction_plan(gap, {'food': 100, 'rent': 300}, 400)
        >>> [(r.value, r.reduction_amount) for r in rows]
        [('rent', 30.0), ('food', 10.0)]
    """
    if not gap.is_behind_target or total_expenses <= 0 or gap.expense_reduction_needed <= 0:
        return []

    labels = labels or {}
    rows: List[ReductionRow] = []
    for value, amount in expense_by_category.items():
        amount = float(amount or 0.0)
        if amount <= 0:
            continue
        share = _ratio(amount, total_expenses)
        reduction = gap.expense_reduction_needed * share
        rows.append(ReductionRow(
            value=value,
            label=labels.get(value, value),
            current_amount=amount,
            share_of_expenses=share,
            reduction_amount=reduction,
            reduction_pct_of_category=_ratio(reduction, amount) * 100.0,
            savings_pct_of_income=gap.expense_reduction_percentage * share,
        ))

    return sorted(rows, key=lambda row: -row.current_amount)


@dataclass(frozen=True)
class PlanRow:
    value: str
    label: str
    current_amount: float
    share_of_expenses: float
    default_cut_pct: float
    cut_pct: float
    is_locked: bool
    reduction_amount: float
    savings_pct_of_income: float


@dataclass
class UserPlan:
    rows: List[PlanRow] = field(default_factory=list)
    total_savings: float = 0.0
    total_savings_pct: float = 0.0

    @property
    def cuts(self) -> List[CustomCut]:
        return [CustomCut(value=row.value, cut_pct=row.cut_pct) for row in self.rows]


def _cuts_mapping(custom_cuts: CutsInput) -> Dict[str, float]:
    if not custom_cuts:
        return {}
    if isinstance(custom_cuts, Mapping):
        return dict(custom_cuts)
    return {cut.value: cut.cut_pct for cut in custom_cuts}


def apply_user_plan(
    rows: Iterable[ReductionRow],
    custom_cuts: CutsInput = None,
    locked_categories: Iterable[str] = (),
    income_basis: float = 0.0,
) -> UserPlan:
    """Apply the user's overrides and locks to the computed reduction plan.

    A locked category always cuts 0%; other categories use the clamped
    custom value when one exists and the computed default otherwise. The
    share of a locked category is not moved onto the others.

    Args:
        rows: Output of ``build_reduction_plan``
        custom_cuts: Category value -> cut percentage, or CustomCut records
        locked_categories: Category values whose cut is forced to 0
        income_basis: Income used to express savings as a percentage

    Returns:
        UserPlan with effective rows and the savings the plan achieves
    """
    cuts = _cuts_mapping(custom_cuts)
    locked = set(locked_categories or ())

    plan_rows: List[PlanRow] = []
    for row in rows:
        is_locked = row.value in locked
        default_cut = clamp_percentage(row.reduction_pct_of_category)
        base_cut = clamp_percentage(cuts[row.value]) if row.value in cuts else default_cut
        cut_pct = 0.0 if is_locked else base_cut
        reduction = row.current_amount * cut_pct / 100.0
        plan_rows.append(PlanRow(
            value=row.value,
            label=row.label,
            current_amount=row.current_amount,
            share_of_expenses=row.share_of_expenses,
            default_cut_pct=default_cut,
            cut_pct=cut_pct,
            is_locked=is_locked,
            reduction_amount=reduction,
            savings_pct_of_income=_ratio(reduction, income_basis) * 100.0,
        ))

    total = sum(row.reduction_amount for row in plan_rows)
    return UserPlan(
        rows=plan_rows,
        total_savings=total,
        total_savings_pct=_ratio(total, income_basis) * 100.0,
    )


@dataclass(frozen=True)
class SavingsProjection:
    monthly_goal: float
    annual_goal: float
    target_monthly_amount: float
    projected_savings: float
    shortfall: float

    @property
    def on_track(self) -> bool:
        return self.shortfall <= 0


def project_savings(
    gap: SavingsGap,
    user_plan: UserPlan,
    base_monthly_savings_goal: float = 0.0,
) -> SavingsProjection:
    """Project the year's savings if the plan's cuts are applied.

    The goal is the user's monthly savings goal times twelve when one is
    set, otherwise the target savings amount.
    """
    monthly_goal = max(0.0, float(base_monthly_savings_goal or 0.0))
    annual_goal = monthly_goal * 12
    goal_amount = annual_goal if annual_goal > 0 else gap.target_savings_amount
    projected = gap.savings_total + user_plan.total_savings
    return SavingsProjection(
        monthly_goal=monthly_goal,
        annual_goal=annual_goal,
        target_monthly_amount=gap.target_savings_amount / 12,
        projected_savings=projected,
        shortfall=max(0.0, goal_amount - projected),
    )


def budget_vs_actual(
    category_budgets: Mapping[str, float],
    expense_by_category: Mapping[str, float],
    labels: Optional[Mapping[str, str]] = None,
    months: int = 12,
) -> pd.DataFrame:
    """Compare monthly category budgets with the period's actual spend.

    Args:
        category_budgets: Category value -> monthly budget amount
        expense_by_category: Category value -> spend over the period
        labels: Optional category value -> display label
        months: Number of months the spend covers

    Returns:
        DataFrame with columns: Category, Label, Budget/mo, Target Total,
        Actual Total, Variance Total, Percent Used, Status
    """
    columns = ['Category', 'Label', 'Budget/mo', 'Target Total', 'Actual Total',
               'Variance Total', 'Percent Used', 'Status']
    if not category_budgets:
        return pd.DataFrame(columns=columns)

    labels = labels or {}
    rows = []
    for category, budget in category_budgets.items():
        budget = max(0.0, float(budget or 0.0))
        target_total = budget * max(0, months)
        actual_total = float(expense_by_category.get(category, 0.0))
        variance = target_total - actual_total
        rows.append({
            'Category': category,
            'Label': labels.get(category, category),
            'Budget/mo': budget,
            'Target Total': target_total,
            'Actual Total': actual_total,
            'Variance Total': variance,
            'Percent Used': _ratio(actual_total, target_total) * 100.0,
            'Status': 'Over' if variance < 0 else 'Under',
        })
    return pd.DataFrame(rows, columns=columns)


@dataclass
class BudgetReport:
    """Everything the budget page shows for one year."""

    year: int
    classification: CategoryClassification
    summary: PeriodSummary
    gap: SavingsGap
    reduction_plan: List[ReductionRow]
    user_plan: UserPlan
    projection: SavingsProjection


def plan_budget(
    transactions: TransactionsInput,
    categories: Iterable[Category],
    year: Optional[int] = None,
    target_percentage: float = 20.0,
    plan: Optional[BudgetPlan] = None,
    income_basis: Optional[float] = None,
) -> BudgetReport:
    """Run classification, aggregation and planning for one year.

    Args:
        transactions: User transactions
        categories: User categories
        year: Calendar year (defaults to the current year)
        target_percentage: Target savings rate
        plan: Stored plan supplying custom cuts, locks and the monthly goal
        income_basis: Income to apply the target to; defaults to the year's
                      total income
    """
    year = year if year is not None else date.today().year
    classification = classify_categories(categories)
    summary = aggregate_year(transactions, classification, year)
    basis = summary.total_income if income_basis is None else float(income_basis)

    gap = compute_savings_gap(basis, summary.savings_total, target_percentage)
    rows = build_reduction_plan(
        gap,
        summary.expense_by_category,
        summary.total_expenses,
        classification.labels,
    )
    user_plan = apply_user_plan(
        rows,
        plan.custom_cuts if plan else None,
        plan.locked_categories if plan else (),
        basis,
    )
    projection = project_savings(gap, user_plan, plan.base_monthly_savings_goal if plan else 0.0)
    return BudgetReport(
        year=year,
        classification=classification,
        summary=summary,
        gap=gap,
        reduction_plan=rows,
        user_plan=user_plan,
        projection=projection,
    )
