"""Top-level package for the budget planner.

The primary modules are:

* ``classification`` – sorts categories into income, savings and expense
* ``aggregation`` – yearly and monthly sums by category
* ``planner`` – savings gap and the expense reduction plan
* ``storage`` – JSON stores for savings goals and budget plans
* ``plan_session`` – debounced editing of a budget plan
* ``dashboard`` – a Streamlit page that ties everything together

To run the dashboard from the command line you can execute:

```bash
streamlit run budget_planner/dashboard.py
```
"""

from .classification import CategoryRole, classify_categories, classify_category
from .aggregation import PeriodSummary, aggregate_year, monthly_breakdown
from .models import BudgetPlan, Category, CustomCut, Transaction, TransactionType, YearlySavingsGoal
from .planner import (
    BudgetReport,
    apply_user_plan,
    build_reduction_plan,
    compute_savings_gap,
    plan_budget,
)

__all__ = [
    "BudgetPlan",
    "BudgetReport",
    "Category",
    "CategoryRole",
    "CustomCut",
    "PeriodSummary",
    "Transaction",
    "TransactionType",
    "YearlySavingsGoal",
    "aggregate_year",
    "apply_user_plan",
    "build_reduction_plan",
    "classify_categories",
    "classify_category",
    "compute_savings_gap",
    "monthly_breakdown",
    "plan_budget",
]
