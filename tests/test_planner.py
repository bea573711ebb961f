from datetime import date

import math

import pytest

from budget_planner.models import BudgetPlan, Category, CustomCut, Transaction, TransactionType as T
from budget_planner.planner import (
    apply_user_plan,
    budget_vs_actual,
    build_reduction_plan,
    clamp_percentage,
    compute_savings_gap,
    plan_budget,
    project_savings,
)


def _behind_gap():
    # target 200, saved 160: 40 to find
    return compute_savings_gap(1000, 160, 20)


def test_gap_for_income_only_year():
    gap = compute_savings_gap(5000, 0, 20)

    assert gap.target_savings_amount == 1000.0
    assert gap.savings_difference == -1000.0
    assert gap.is_behind_target
    assert gap.expense_reduction_needed == 1000.0
    assert gap.expense_reduction_percentage == pytest.approx(20.0)
    assert gap.savings_percentage == 0.0


def test_income_only_year_end_to_end():
    categories = [Category('Salary', 'salary'), Category('Food', 'food')]
    transactions = [Transaction('1', 5000, T.INCOME, date(2024, 5, 31), 'salary')]

    report = plan_budget(transactions, categories, 2024, 20)

    assert report.summary.income_by_category == {'salary': 5000.0}
    assert report.summary.total_income == 5000.0
    assert report.summary.total_expenses == 0.0
    assert report.gap.income_basis == 5000.0
    assert report.gap.target_savings_amount == 1000.0
    assert report.gap.is_behind_target
    assert report.gap.expense_reduction_needed == 1000.0
    assert report.reduction_plan == []
    assert report.user_plan.rows == []


def test_gap_when_ahead_of_target():
    gap = compute_savings_gap(1000, 300, 20)

    assert not gap.is_behind_target
    assert gap.expense_reduction_needed == 0.0
    assert gap.savings_difference == pytest.approx(100.0)
    assert gap.percentage_difference == pytest.approx(10.0)
    assert gap.target_extra_savings_pct == 0.0


def test_zero_target_is_never_behind():
    gap = compute_savings_gap(1000, 0, 0)

    assert not gap.is_behind_target
    assert gap.expense_reduction_needed == 0.0


def test_zero_income_produces_no_nan():
    gap = compute_savings_gap(0, 50, 20)

    for value in (gap.savings_percentage, gap.expense_reduction_percentage, gap.target_savings_amount):
        assert not math.isnan(value)
    assert gap.savings_percentage == 0.0
    assert not gap.is_behind_target


def test_target_percentage_is_clamped():
    assert compute_savings_gap(1000, 0, 150).target_percentage == 100.0
    assert compute_savings_gap(1000, 0, -10).target_percentage == 0.0
    assert clamp_percentage('abc') == 0.0
    assert clamp_percentage(float('nan')) == 0.0
    assert clamp_percentage('42.5') == 42.5


def test_reduction_spread_by_share_largest_first():
    rows = build_reduction_plan(
        _behind_gap(),
        {'food': 100.0, 'rent': 300.0},
        400.0,
        {'food': 'Food', 'rent': 'Rent'},
    )

    assert [row.value for row in rows] == ['rent', 'food']
    assert [row.share_of_expenses for row in rows] == [0.75, 0.25]
    assert rows[0].reduction_amount == pytest.approx(30.0)
    assert rows[1].reduction_amount == pytest.approx(10.0)
    assert rows[0].reduction_pct_of_category == pytest.approx(10.0)
    assert rows[0].label == 'Rent'
    assert sum(row.savings_pct_of_income for row in rows) == pytest.approx(4.0)


def test_reduction_plan_ties_keep_category_order():
    rows = build_reduction_plan(_behind_gap(), {'b': 50.0, 'a': 50.0, 'c': 0.0}, 100.0)

    assert [row.value for row in rows] == ['b', 'a']


def test_reduction_plan_uses_total_including_uncategorized():
    rows = build_reduction_plan(_behind_gap(), {'rent': 300.0}, 400.0)

    assert rows[0].share_of_expenses == 0.75
    assert rows[0].reduction_amount == pytest.approx(30.0)


def test_no_reduction_plan_when_on_target_or_no_expenses():
    assert build_reduction_plan(compute_savings_gap(1000, 500, 20), {'rent': 300.0}, 300.0) == []
    assert build_reduction_plan(_behind_gap(), {}, 0.0) == []


def test_user_plan_defaults_and_overrides():
    rows = build_reduction_plan(_behind_gap(), {'food': 100.0, 'rent': 300.0}, 400.0)

    plan = apply_user_plan(rows, {'food': 50}, locked_categories=['rent'], income_basis=1000)

    rent, food = plan.rows
    assert rent.is_locked and rent.cut_pct == 0.0 and rent.reduction_amount == 0.0
    assert rent.default_cut_pct == pytest.approx(10.0)
    assert food.cut_pct == 50.0
    assert food.reduction_amount == 50.0
    assert plan.total_savings == 50.0
    assert plan.total_savings_pct == pytest.approx(5.0)
    assert plan.cuts == [CustomCut('rent', 0.0), CustomCut('food', 50.0)]


def test_user_plan_clamps_custom_cuts_and_accepts_records():
    rows = build_reduction_plan(_behind_gap(), {'food': 100.0}, 100.0)

    plan = apply_user_plan(rows, [CustomCut('food', 250)], income_basis=1000)

    assert plan.rows[0].cut_pct == 100.0
    assert plan.total_savings == 100.0


def test_user_plan_without_overrides_meets_requirement():
    gap = _behind_gap()
    rows = build_reduction_plan(gap, {'food': 100.0, 'rent': 300.0}, 400.0)

    plan = apply_user_plan(rows, income_basis=gap.income_basis)

    assert plan.total_savings == pytest.approx(gap.expense_reduction_needed)


def test_project_savings_against_monthly_goal():
    gap = _behind_gap()
    rows = build_reduction_plan(gap, {'rent': 400.0}, 400.0)
    plan = apply_user_plan(rows, income_basis=1000)

    without_goal = project_savings(gap, plan)
    assert without_goal.projected_savings == pytest.approx(200.0)
    assert without_goal.on_track

    with_goal = project_savings(gap, plan, base_monthly_savings_goal=25)
    assert with_goal.annual_goal == 300.0
    assert with_goal.shortfall == pytest.approx(100.0)
    assert not with_goal.on_track


def test_budget_vs_actual_statuses():
    table = budget_vs_actual({'food': 10.0, 'rent': 100.0}, {'food': 150.0, 'rent': 600.0}, {'rent': 'Rent'})

    food = table[table['Category'] == 'food'].iloc[0]
    rent = table[table['Category'] == 'rent'].iloc[0]
    assert food['Target Total'] == 120.0
    assert food['Status'] == 'Over'
    assert food['Label'] == 'food'
    assert rent['Variance Total'] == 600.0
    assert rent['Percent Used'] == 50.0
    assert rent['Status'] == 'Under'


def test_budget_vs_actual_empty():
    table = budget_vs_actual({}, {'food': 1.0})

    assert table.empty
    assert 'Status' in table.columns


def test_plan_budget_end_to_end():
    categories = [Category('Salary', 'salary'), Category('Rent', 'rent'), Category('Food', 'food')]
    transactions = [
        Transaction('1', 1000, T.INCOME, date(2024, 1, 1), 'salary'),
        Transaction('2', -300, T.EXPENSE, date(2024, 1, 2), 'rent'),
        Transaction('3', -100, T.EXPENSE, date(2024, 1, 3), 'food'),
        Transaction('4', -160, T.SAVINGS, date(2024, 1, 4)),
    ]
    plan = BudgetPlan(user_id='u', year=2024, custom_cuts=[CustomCut('food', 20)], locked_categories=['rent'])

    report = plan_budget(transactions, categories, 2024, 20, plan=plan)

    assert report.gap.expense_reduction_needed == pytest.approx(40.0)
    assert [row.value for row in report.reduction_plan] == ['rent', 'food']
    assert report.user_plan.total_savings == pytest.approx(20.0)
    assert report.projection.projected_savings == pytest.approx(180.0)


def test_plan_budget_with_income_basis():
    categories = [Category('Rent', 'rent')]
    transactions = [Transaction('1', -500, T.EXPENSE, date(2024, 3, 1), 'rent')]

    report = plan_budget(transactions, categories, 2024, 10, income_basis=2000)

    assert report.gap.income_basis == 2000.0
    assert report.gap.target_savings_amount == 200.0
    assert report.reduction_plan[0].reduction_amount == pytest.approx(200.0)
