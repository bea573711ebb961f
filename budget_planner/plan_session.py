"""Editing state for one (user, year) budget plan.

A session owns the user's custom cuts, locks, category budgets and monthly
savings goal while the budget page is open. Every edit is clamped, handed
to the registered listeners, and queued for a debounced write through the
``save`` callable it was given. Closing the session drops any write that
has not gone out yet.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Dict, List, Optional

from .config import SAVE_DEBOUNCE_SECONDS
from .debounce import Debouncer, ErrorHandler
from .models import BudgetPlan, CustomCut
from .planner import clamp_percentage

logger = logging.getLogger(__name__)

PlanListener = Callable[[BudgetPlan], None]


class BudgetPlanSession:
    def __init__(
        self,
        plan: BudgetPlan,
        save: Callable[[BudgetPlan], Any],
        wait_seconds: float = SAVE_DEBOUNCE_SECONDS,
        on_change: Optional[PlanListener] = None,
        on_error: Optional[ErrorHandler] = None,
    ) -> None:
        self.user_id = plan.user_id
        self.year = plan.year
        self._cuts: Dict[str, float] = {
            cut.value: clamp_percentage(cut.cut_pct) for cut in plan.custom_cuts
        }
        self._locked: List[str] = list(dict.fromkeys(plan.locked_categories))
        self._budgets: Dict[str, float] = dict(plan.category_budgets)
        self._monthly_goal = max(0.0, float(plan.base_monthly_savings_goal or 0.0))
        self._created_at = plan.created_at
        self._listeners: List[PlanListener] = []
        if on_change is not None:
            self._listeners.append(on_change)
        self._debouncer = Debouncer(save, wait_seconds=wait_seconds, on_error=on_error)

    @classmethod
    def open(cls, store, user_id: str, year: int, **kwargs: Any) -> "BudgetPlanSession":
        """Start a session from the stored plan, or an empty one."""
        plan = store.get(user_id, year) or BudgetPlan(user_id=user_id, year=year)
        return cls(plan, store.save, **kwargs)

    @property
    def custom_cuts(self) -> Dict[str, float]:
        return dict(self._cuts)

    @property
    def locked_categories(self) -> List[str]:
        return list(self._locked)

    @property
    def category_budgets(self) -> Dict[str, float]:
        return dict(self._budgets)

    @property
    def base_monthly_savings_goal(self) -> float:
        return self._monthly_goal

    @property
    def has_pending_save(self) -> bool:
        return self._debouncer.pending

    def snapshot(self) -> BudgetPlan:
        """Current state as a detached BudgetPlan."""
        return BudgetPlan(
            user_id=self.user_id,
            year=self.year,
            custom_cuts=[CustomCut(value=v, cut_pct=pct) for v, pct in self._cuts.items()],
            locked_categories=list(self._locked),
            category_budgets=copy.deepcopy(self._budgets),
            base_monthly_savings_goal=self._monthly_goal,
            created_at=self._created_at,
        )

    def subscribe(self, listener: PlanListener) -> Callable[[], None]:
        """Register a change listener. Returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_cut(self, value: str, cut_pct) -> float:
        """Override the cut for a category. Returns the clamped percentage."""
        clamped = clamp_percentage(cut_pct)
        if self._cuts.get(value) == clamped:
            return clamped
        self._cuts[value] = clamped
        self._changed()
        return clamped

    def reset_cuts(self) -> None:
        """Forget all overrides so the computed cuts apply again."""
        if not self._cuts:
            return
        self._cuts.clear()
        self._changed()

    def set_locked(self, value: str, locked: bool) -> None:
        if locked == (value in self._locked):
            return
        if locked:
            self._locked.append(value)
        else:
            self._locked.remove(value)
        self._changed()

    def toggle_lock(self, value: str) -> bool:
        """Flip a category's lock. Returns the new locked state."""
        locked = value not in self._locked
        self.set_locked(value, locked)
        return locked

    def set_category_budget(self, value: str, amount: Optional[float]) -> None:
        """Set a monthly budget for a category; None removes it."""
        if amount is None:
            if value not in self._budgets:
                return
            del self._budgets[value]
        else:
            amount = max(0.0, float(amount))
            if self._budgets.get(value) == amount:
                return
            self._budgets[value] = amount
        self._changed()

    def set_base_monthly_savings_goal(self, amount: float) -> None:
        amount = max(0.0, float(amount or 0.0))
        if amount == self._monthly_goal:
            return
        self._monthly_goal = amount
        self._changed()

    def flush(self) -> bool:
        """Write the pending change now. Returns True if there was one."""
        return self._debouncer.flush()

    def close(self) -> None:
        """Tear down: drop the unsent write and stop accepting saves."""
        if self._debouncer.pending:
            logger.debug("Discarding unsaved plan edits for %s/%s", self.user_id, self.year)
        self._debouncer.close()
        self._listeners.clear()

    def _changed(self) -> None:
        plan = self.snapshot()
        for listener in list(self._listeners):
            listener(plan)
        self._debouncer.call(plan)
