"""Domain records shared by the engine, the stores and the UI."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"
    SAVINGS = "savings"


@dataclass(frozen=True)
class Category:
    """User-defined category. ``value`` is the unique key."""

    label: str
    value: str
    icon: str = "Circle"


@dataclass(frozen=True)
class Transaction:
    id: str
    amount: float
    type: TransactionType
    date: date
    category: Optional[str] = None
    description: str = ""
    account_id: str = ""


@dataclass
class YearlySavingsGoal:
    user_id: str
    year: int
    savings_percentage: float
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "year": self.year,
            "savings_percentage": self.savings_percentage,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "YearlySavingsGoal":
        return cls(
            user_id=str(data.get("user_id", "")),
            year=int(data["year"]),
            savings_percentage=_as_float(data.get("savings_percentage")),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


@dataclass(frozen=True)
class CustomCut:
    """User override of the cut percentage for one expense category."""

    value: str
    cut_pct: float


@dataclass
class BudgetPlan:
    """Per-(user, year) plan edited on the budget page."""

    user_id: str
    year: int
    custom_cuts: List[CustomCut] = field(default_factory=list)
    locked_categories: List[str] = field(default_factory=list)
    category_budgets: Dict[str, float] = field(default_factory=dict)
    base_monthly_savings_goal: float = 0.0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def cuts_by_value(self) -> Dict[str, float]:
        return {cut.value: cut.cut_pct for cut in self.custom_cuts}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "year": self.year,
            "custom_cuts": [{"value": c.value, "cut_pct": c.cut_pct} for c in self.custom_cuts],
            "locked_categories": list(self.locked_categories),
            "category_budgets": dict(self.category_budgets),
            "base_monthly_savings_goal": self.base_monthly_savings_goal,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BudgetPlan":
        cuts = []
        for entry in data.get("custom_cuts") or []:
            if not isinstance(entry, dict) or not entry.get("value"):
                continue
            cuts.append(CustomCut(value=str(entry["value"]), cut_pct=_as_float(entry.get("cut_pct"))))

        budgets = data.get("category_budgets") or {}
        if not isinstance(budgets, dict):
            budgets = {}

        locked = data.get("locked_categories") or []
        if not isinstance(locked, list):
            locked = []

        return cls(
            user_id=str(data.get("user_id", "")),
            year=int(data["year"]),
            custom_cuts=cuts,
            locked_categories=[str(v) for v in locked],
            category_budgets={str(k): _as_float(v) for k, v in budgets.items() if v is not None},
            base_monthly_savings_goal=_as_float(data.get("base_monthly_savings_goal")),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


def _as_float(value: Any) -> float:
    """Coerce stored numbers to float, treating junk and NaN as 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()
