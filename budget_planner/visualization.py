"""Plotly figures for the budget page.

Each function takes the output of :mod:`aggregation` or :mod:`planner` and
returns a ``plotly.graph_objects.Figure`` that Streamlit renders via
``st.plotly_chart``. Empty inputs produce an empty figure titled
"No data to display" rather than raising.
"""

from __future__ import annotations

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .aggregation import MONTH_LABELS
from .planner import SavingsGap, UserPlan


def _empty_figure() -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title="No data to display")
    return fig


def create_monthly_income_expense_chart(breakdown: pd.DataFrame, title: str | None = None) -> go.Figure:
    """Grouped bars of monthly income and expenses.

    Parameters
    ----------
    breakdown : pandas.DataFrame
        Output of :func:`aggregation.monthly_breakdown`.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        One bar trace for income and one for expenses, plus a net line.
    """
    if breakdown.empty:
        return _empty_figure()

    totals = breakdown.groupby('Kind')[MONTH_LABELS].sum()
    income = totals.loc['income'] if 'income' in totals.index else pd.Series(0.0, index=MONTH_LABELS)
    expense = totals.loc['expense'] if 'expense' in totals.index else pd.Series(0.0, index=MONTH_LABELS)

    fig = go.Figure()
    fig.add_trace(go.Bar(x=MONTH_LABELS, y=income.tolist(), name="Income", marker_color="#2ca02c"))
    fig.add_trace(go.Bar(x=MONTH_LABELS, y=expense.tolist(), name="Expenses", marker_color="#d62728"))
    fig.add_trace(go.Scatter(
        x=MONTH_LABELS,
        y=(income - expense).tolist(),
        name="Net",
        mode="lines+markers",
        line=dict(color="#1f77b4"),
    ))
    fig.update_layout(
        title=title or "Income vs expenses by month",
        barmode="group",
        xaxis_title="Month",
        yaxis_title="Amount",
    )
    return fig


def create_reduction_plan_chart(user_plan: UserPlan, title: str | None = None) -> go.Figure:
    """Horizontal bars of each category's spend split into kept and cut."""
    if not user_plan.rows:
        return _empty_figure()

    records = []
    for row in user_plan.rows:
        records.append({'Category': row.label, 'Portion': 'Kept', 'Amount': row.current_amount - row.reduction_amount})
        records.append({'Category': row.label, 'Portion': 'Cut', 'Amount': row.reduction_amount})
    df = pd.DataFrame(records)

    fig = px.bar(
        df,
        x='Amount',
        y='Category',
        color='Portion',
        orientation='h',
        color_discrete_map={'Kept': '#9ecae1', 'Cut': '#e6550d'},
        category_orders={'Category': [row.label for row in user_plan.rows]},
    )
    fig.update_layout(
        title=title or "Expense reduction plan",
        barmode="stack",
        xaxis_title="Yearly spend",
        yaxis_title="",
    )
    return fig


def create_savings_progress_chart(gap: SavingsGap, planned_savings: float = 0.0) -> go.Figure:
    """Actual savings, savings with the plan applied, and the target."""
    if gap.income_basis <= 0 and gap.savings_total <= 0:
        return _empty_figure()

    labels = ["Saved", "With plan", "Target"]
    values = [gap.savings_total, gap.savings_total + planned_savings, gap.target_savings_amount]
    colors = ["#d62728" if gap.is_behind_target else "#2ca02c", "#ff7f0e", "#1f77b4"]
    fig = go.Figure(go.Bar(x=labels, y=values, marker_color=colors, text=[f"${v:,.0f}" for v in values]))
    fig.update_layout(title=f"Savings vs {gap.target_percentage:.1f}% target", yaxis_title="Amount")
    return fig
