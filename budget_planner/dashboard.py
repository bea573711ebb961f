"""Streamlit budget planning page.

Shows a year's savings against the user's target and, when behind, an
editable expense reduction plan. Plan edits go through a
:class:`plan_session.BudgetPlanSession` held in ``st.session_state``;
widgets call its methods through their ``on_change`` callbacks and the
session writes the plan back after a short debounce.

To run the page from the command line::

    streamlit run budget_planner/dashboard.py
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import date
from typing import List, Optional

import pandas as pd
import streamlit as st

if __package__:
    from . import visualization as viz
    from .aggregation import available_years, monthly_breakdown
    from .config import DEFAULT_CATEGORIES, DEFAULT_USER_ID, configure_logging, ensure_data_directories
    from .csv_import import categories_from_records, load_categories_csv, load_transactions_csv
    from .formatting import escape_dollar_for_markdown, format_currency, format_percent
    from .models import Category, Transaction
    from .plan_session import BudgetPlanSession
    from .planner import budget_vs_actual, plan_budget
    from .storage import BudgetPlanStore, SavingsGoalStore, StorageError
else:
    CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
    PARENT_DIR = os.path.dirname(CURRENT_DIR)
    if PARENT_DIR not in sys.path:
        sys.path.insert(0, PARENT_DIR)
    from budget_planner import visualization as viz  # type: ignore
    from budget_planner.aggregation import available_years, monthly_breakdown  # type: ignore
    from budget_planner.config import (  # type: ignore
        DEFAULT_CATEGORIES,
        DEFAULT_USER_ID,
        configure_logging,
        ensure_data_directories,
    )
    from budget_planner.csv_import import (  # type: ignore
        categories_from_records,
        load_categories_csv,
        load_transactions_csv,
    )
    from budget_planner.formatting import escape_dollar_for_markdown, format_currency, format_percent  # type: ignore
    from budget_planner.models import Category, Transaction  # type: ignore
    from budget_planner.plan_session import BudgetPlanSession  # type: ignore
    from budget_planner.planner import budget_vs_actual, plan_budget  # type: ignore
    from budget_planner.storage import BudgetPlanStore, SavingsGoalStore, StorageError  # type: ignore

logger = logging.getLogger(__name__)

SESSION_KEY = 'budget_plan_session'
ERRORS_KEY = 'budget_plan_errors'


def load_transactions(file) -> List[Transaction]:
    """Parse the uploaded transactions file, reporting failures in the page."""
    try:
        return load_transactions_csv(file)
    except (KeyError, ValueError, pd.errors.ParserError) as exc:
        logger.warning("Failed to read transactions upload: %s", exc)
        st.error(f"Failed to read transactions: {exc}")
        return []


def load_categories(file) -> List[Category]:
    if file is None:
        return categories_from_records(DEFAULT_CATEGORIES)
    try:
        return load_categories_csv(file)
    except (KeyError, ValueError, pd.errors.ParserError) as exc:
        logger.warning("Failed to read categories upload: %s", exc)
        st.error(f"Failed to read categories: {exc}")
        return categories_from_records(DEFAULT_CATEGORIES)


def get_plan_session(store: BudgetPlanStore, user_id: str, year: int) -> BudgetPlanSession:
    """Return the session for (user, year), replacing one for another plan."""
    session: Optional[BudgetPlanSession] = st.session_state.get(SESSION_KEY)
    if session is not None and (session.user_id, session.year) == (user_id, year):
        return session

    if session is not None:
        session.flush()
        session.close()

    errors = st.session_state.setdefault(ERRORS_KEY, [])
    session = BudgetPlanSession.open(
        store,
        user_id,
        year,
        on_error=lambda exc: errors.append(f"Failed to save budget plan: {exc}"),
    )
    st.session_state[SESSION_KEY] = session
    return session


def render_target(goal_store: SavingsGoalStore, user_id: str, year: int) -> float:
    """Savings target input; returns the target percentage in effect."""
    try:
        goal = goal_store.get(user_id, year)
    except StorageError as exc:
        st.error(str(exc))
        return 20.0

    target = st.sidebar.number_input(
        "Savings target (% of income)",
        min_value=0.0,
        max_value=100.0,
        step=0.5,
        value=float(goal.savings_percentage),
        key=f"target_{user_id}_{year}",
    )
    if target != goal.savings_percentage:
        try:
            goal_store.upsert(user_id, year, target)
        except StorageError as exc:
            st.error(str(exc))
    return float(target)


def render_summary(report) -> None:
    summary, gap = report.summary, report.gap
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Income", format_currency(summary.total_income, decimals=0))
    col2.metric("Expenses", format_currency(summary.total_expenses, decimals=0))
    col3.metric("Saved", format_currency(gap.savings_total, decimals=0), format_percent(gap.savings_percentage))
    col4.metric("Target", format_currency(gap.target_savings_amount, decimals=0), format_percent(gap.target_percentage))

    if gap.is_behind_target:
        st.error(
            f"Behind target by {format_percent(abs(gap.percentage_difference))}. "
            f"Reduce expenses by {escape_dollar_for_markdown(gap.expense_reduction_needed)} "
            f"({format_percent(gap.target_extra_savings_pct)} of income) to meet your "
            f"{format_percent(gap.target_percentage)} savings target."
        )
    elif gap.savings_difference > 0:
        st.success(
            f"Exceeding target by {format_percent(gap.percentage_difference)} "
            f"({escape_dollar_for_markdown(gap.savings_difference)})."
        )


def render_reduction_plan(report, session: BudgetPlanSession) -> None:
    st.subheader("Expense Reduction Plan")
    user_plan = report.user_plan
    if not user_plan.rows:
        st.info("You're at or above your savings target. No reductions needed for this year.")
        return

    gap = report.gap
    st.caption(
        f"Cutting {format_percent(gap.target_extra_savings_pct)} of income closes the gap. "
        f"This plan saves {format_percent(user_plan.total_savings_pct)} of income "
        f"({format_percent(user_plan.total_savings_pct - gap.target_extra_savings_pct)} vs target)."
    )

    header = st.columns([3, 2, 1, 2, 2])
    for column, title in zip(header, ["Category", "Spend", "Lock", "Cut %", "Saves (% of income)"]):
        column.markdown(f"**{title}**")

    for row in user_plan.rows:
        cols = st.columns([3, 2, 1, 2, 2])
        cols[0].write(row.label)
        cols[1].write(format_currency(row.current_amount, decimals=0))
        cols[2].checkbox(
            "Lock",
            value=row.is_locked,
            key=f"lock_{session.year}_{row.value}",
            label_visibility="collapsed",
            on_change=session.toggle_lock,
            args=(row.value,),
        )
        cut_key = f"cut_{session.year}_{row.value}"
        cols[3].number_input(
            "Cut %",
            min_value=0.0,
            max_value=100.0,
            step=0.5,
            value=round(row.cut_pct, 1),
            key=cut_key,
            disabled=row.is_locked,
            label_visibility="collapsed",
            on_change=lambda value=row.value, key=cut_key: session.set_cut(value, st.session_state[key]),
        )
        cols[4].write(f"{format_currency(row.reduction_amount, decimals=0)} · {format_percent(row.savings_pct_of_income, 2)}")

    st.markdown(f"**Total ≈ {format_percent(user_plan.total_savings_pct, 2)} of income**")
    if st.button("Reset to suggested cuts"):
        session.reset_cuts()
        st.rerun()

    st.plotly_chart(viz.create_reduction_plan_chart(user_plan), use_container_width=True)


def render_goals(report, session: BudgetPlanSession) -> None:
    st.subheader("Monthly savings goal")
    monthly_goal = st.number_input(
        "Base monthly savings goal",
        min_value=0.0,
        step=50.0,
        value=float(session.base_monthly_savings_goal),
        key=f"monthly_goal_{session.year}",
    )
    session.set_base_monthly_savings_goal(monthly_goal)

    projection = report.projection
    st.write(
        f"Projected savings with plan: {escape_dollar_for_markdown(projection.projected_savings)}"
        + (" (on track)" if projection.on_track else f" (short by {escape_dollar_for_markdown(projection.shortfall)})")
    )
    st.plotly_chart(
        viz.create_savings_progress_chart(report.gap, report.user_plan.total_savings),
        use_container_width=True,
    )


def render_category_budgets(report, session: BudgetPlanSession) -> None:
    st.subheader("Category budgets")
    labels = report.classification.labels
    expense_values = list(report.summary.expense_by_category)
    if not expense_values:
        st.info("No expense categories.")
        return

    with st.expander("Edit monthly budgets"):
        for value in expense_values:
            current = session.category_budgets.get(value, 0.0)
            amount = st.number_input(
                labels.get(value, value),
                min_value=0.0,
                step=10.0,
                value=float(current),
                key=f"budget_{session.year}_{value}",
            )
            session.set_category_budget(value, amount if amount > 0 else None)

    table = budget_vs_actual(session.category_budgets, report.summary.expense_by_category, labels)
    if not table.empty:
        st.dataframe(table, use_container_width=True, hide_index=True)


def main() -> None:
    """Entry point for the Streamlit app."""
    configure_logging()
    ensure_data_directories()
    st.set_page_config(page_title="Budget", page_icon="🎯", layout="wide")
    st.title("🎯 Budget")

    user_id = st.sidebar.text_input("User", value=DEFAULT_USER_ID).strip() or DEFAULT_USER_ID
    transactions_file = st.sidebar.file_uploader("Transactions CSV", type=["csv"])
    categories_file = st.sidebar.file_uploader("Categories CSV (optional)", type=["csv"])

    transactions = load_transactions(transactions_file) if transactions_file is not None else []
    categories = load_categories(categories_file)

    years = available_years(transactions, date.today().year)
    year = st.sidebar.selectbox("Year", years, index=0)

    goal_store = SavingsGoalStore()
    plan_store = BudgetPlanStore()
    target = render_target(goal_store, user_id, year)
    session = get_plan_session(plan_store, user_id, year)

    errors = st.session_state.setdefault(ERRORS_KEY, [])
    for message in errors:
        st.error(message)
    errors.clear()

    if not transactions:
        st.info("Upload a transactions CSV to see your budget.")
        return

    report = plan_budget(transactions, categories, year, target, plan=session.snapshot())
    render_summary(report)

    plan_tab, goals_tab, budgets_tab, breakdown_tab = st.tabs([
        "✂️ Reduction plan",
        "💰 Savings goal",
        "📋 Category budgets",
        "📅 Monthly breakdown",
    ])
    with plan_tab:
        render_reduction_plan(report, session)
    with goals_tab:
        render_goals(report, session)
    with budgets_tab:
        render_category_budgets(report, session)
    with breakdown_tab:
        breakdown = monthly_breakdown(transactions, report.classification, year)
        st.plotly_chart(viz.create_monthly_income_expense_chart(breakdown), use_container_width=True)
        st.dataframe(breakdown.drop(columns=['Category']), use_container_width=True, hide_index=True)


if __name__ == '__main__':
    main()
