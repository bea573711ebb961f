"""Persistence for yearly savings goals and budget plans.

Both stores keep one JSON document per user under their directory, mapping
year -> record. Writes are upserts keyed by (user, year) and go through an
atomic temp-file swap. Unreadable files are logged and treated as empty;
write failures raise ``StorageError`` for the caller to surface.
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .config import DEFAULT_SAVINGS_PERCENTAGE, GOALS_DIR, PLANS_DIR
from .file_operations import safe_filename, write_json_atomic
from .models import BudgetPlan, CustomCut, YearlySavingsGoal, utc_timestamp
from .planner import clamp_percentage

logger = logging.getLogger(__name__)


class StorageError(OSError):
    """A goal or plan could not be written."""


class _YearRecordStore:
    """Shared file handling for stores keyed by (user, year)."""

    kind = 'record'

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def get_path(self, user_id: str) -> Path:
        """Get the file path holding all of a user's records.

        The readable part of the name is lossy, so a digest of the exact id
        keeps ids such as ``jane.doe`` and ``janedoe`` in separate files.
        """
        _require_user(user_id)
        user_id = user_id.strip()
        digest = hashlib.sha256(user_id.encode('utf-8')).hexdigest()[:12]
        return self.directory / f"{safe_filename(user_id, default='user', max_length=64)}-{digest}.json"

    def _read(self, user_id: str) -> Dict[str, Dict[str, Any]]:
        path = self.get_path(user_id)
        if not path.exists():
            return {}
        try:
            with path.open('r', encoding='utf-8') as handle:
                raw_text = handle.read().strip()
            if not raw_text:
                return {}
            data = json.loads(raw_text)
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Could not read %s file %s: %s", self.kind, path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed %s file %s", self.kind, path)
            return {}
        return {str(year): record for year, record in data.items() if isinstance(record, dict)}

    def _write(self, user_id: str, records: Dict[str, Dict[str, Any]]) -> None:
        path = self.get_path(user_id)
        try:
            write_json_atomic(path, records)
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Failed to save %s to %s: %s", self.kind, path, exc)
            raise StorageError(f"Failed to save {self.kind} to {path}: {exc}") from exc


def _require_user(user_id: str) -> None:
    if not user_id or not str(user_id).strip():
        raise ValueError("User id cannot be empty")


class SavingsGoalStore(_YearRecordStore):
    """Target savings percentage per (user, year)."""

    kind = 'savings goal'

    def __init__(self, directory: Optional[Path] = None):
        super().__init__(directory or GOALS_DIR)

    def get(self, user_id: str, year: int) -> YearlySavingsGoal:
        """Get the goal for a year, creating the default one if missing.

        Raises:
            StorageError: If the default goal cannot be written
        """
        record = self._read(user_id).get(str(year))
        if record is not None:
            try:
                return YearlySavingsGoal.from_dict({**record, 'year': year})
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Replacing malformed savings goal for %s/%s: %s", user_id, year, exc)
        return self.upsert(user_id, year, DEFAULT_SAVINGS_PERCENTAGE)

    def get_all(self, user_id: str) -> List[YearlySavingsGoal]:
        """All stored goals for a user, newest year first."""
        goals = []
        for year, record in self._read(user_id).items():
            try:
                goals.append(YearlySavingsGoal.from_dict({**record, 'year': int(year)}))
            except (KeyError, TypeError, ValueError):
                continue
        return sorted(goals, key=lambda goal: goal.year, reverse=True)

    def upsert(self, user_id: str, year: int, savings_percentage: float) -> YearlySavingsGoal:
        """Create or update the goal for a year.

        The percentage is clamped to [0, 100].

        Raises:
            ValueError: If the user id is empty
            StorageError: If the file cannot be written
        """
        records = self._read(user_id)
        existing = records.get(str(year)) or {}
        now = utc_timestamp()
        goal = YearlySavingsGoal(
            user_id=user_id,
            year=int(year),
            savings_percentage=clamp_percentage(savings_percentage),
            created_at=existing.get('created_at') or now,
            updated_at=now,
        )
        records[str(year)] = goal.to_dict()
        self._write(user_id, records)
        logger.info("Saved savings goal for %s/%s: %.1f%%", user_id, year, goal.savings_percentage)
        return goal


class BudgetPlanStore(_YearRecordStore):
    """Custom cuts, locks, category budgets and monthly goal per (user, year)."""

    kind = 'budget plan'

    def __init__(self, directory: Optional[Path] = None):
        super().__init__(directory or PLANS_DIR)

    def get(self, user_id: str, year: int) -> Optional[BudgetPlan]:
        """Get the plan for a year, or None if it was never saved."""
        record = self._read(user_id).get(str(year))
        if record is None:
            return None
        try:
            return BudgetPlan.from_dict({**record, 'year': year})
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Ignoring malformed budget plan for %s/%s: %s", user_id, year, exc)
            return None

    def get_all(self, user_id: str) -> List[BudgetPlan]:
        """All stored plans for a user, newest year first."""
        plans = []
        for year, record in self._read(user_id).items():
            try:
                plans.append(BudgetPlan.from_dict({**record, 'year': int(year)}))
            except (KeyError, TypeError, ValueError):
                continue
        return sorted(plans, key=lambda plan: plan.year, reverse=True)

    def upsert(
        self,
        user_id: str,
        year: int,
        custom_cuts: Iterable[CustomCut],
        locked_categories: Iterable[str],
        category_budgets: Optional[Mapping[str, float]] = None,
        base_monthly_savings_goal: Optional[float] = None,
    ) -> BudgetPlan:
        """Create or update the plan for a year.

        ``category_budgets`` and ``base_monthly_savings_goal`` are only
        replaced when given; None keeps the stored values.

        Raises:
            ValueError: If the user id is empty
            StorageError: If the file cannot be written
        """
        records = self._read(user_id)
        existing = records.get(str(year)) or {}
        previous = BudgetPlan.from_dict({**existing, 'year': year}) if existing else None
        now = utc_timestamp()

        plan = BudgetPlan(
            user_id=user_id,
            year=int(year),
            custom_cuts=[CustomCut(value=c.value, cut_pct=clamp_percentage(c.cut_pct)) for c in custom_cuts],
            locked_categories=list(dict.fromkeys(locked_categories)),
            category_budgets=(
                {k: float(v) for k, v in category_budgets.items()}
                if category_budgets is not None
                else (previous.category_budgets if previous else {})
            ),
            base_monthly_savings_goal=(
                float(base_monthly_savings_goal)
                if base_monthly_savings_goal is not None
                else (previous.base_monthly_savings_goal if previous else 0.0)
            ),
            created_at=(previous.created_at if previous else None) or now,
            updated_at=now,
        )
        records[str(year)] = plan.to_dict()
        self._write(user_id, records)
        logger.info("Saved budget plan for %s/%s (%d cuts, %d locked)",
                    user_id, year, len(plan.custom_cuts), len(plan.locked_categories))
        return plan

    def save(self, plan: BudgetPlan) -> BudgetPlan:
        """Upsert every field of an in-memory plan."""
        return self.upsert(
            plan.user_id,
            plan.year,
            plan.custom_cuts,
            plan.locked_categories,
            category_budgets=plan.category_budgets,
            base_monthly_savings_goal=plan.base_monthly_savings_goal,
        )

    def delete(self, user_id: str, year: int) -> None:
        """Delete the plan for a year. Missing plans are ignored.

        Raises:
            StorageError: If the file cannot be rewritten
        """
        records = self._read(user_id)
        if str(year) not in records:
            return
        del records[str(year)]
        self._write(user_id, records)
        logger.info("Deleted budget plan for %s/%s", user_id, year)
