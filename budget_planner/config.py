"""Configuration management for the budget planner.

This module centralizes all configuration values including paths,
defaults, and environment variable overrides.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Union

# Base project root - assumes this file is in budget_planner/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("BUDGET_PLANNER_DATA_DIR", _PROJECT_ROOT / "data"))
GOALS_DIR = DATA_DIR / "goals"
PLANS_DIR = DATA_DIR / "plans"

# Seconds to wait after the last plan edit before writing it back
SAVE_DEBOUNCE_SECONDS = float(os.getenv("BUDGET_PLANNER_SAVE_DEBOUNCE", "1.0"))

DEFAULT_SAVINGS_PERCENTAGE = 20.0
DEFAULT_USER_ID = os.getenv("BUDGET_PLANNER_USER", "local")

LOG_LEVEL = os.getenv("BUDGET_PLANNER_LOG_LEVEL", "WARNING")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Seed categories for a fresh user (label, value, icon)
DEFAULT_CATEGORIES: List[Dict[str, str]] = [
    {"label": "Food", "value": "food", "icon": "Utensils"},
    {"label": "Transportation", "value": "transportation", "icon": "Car"},
    {"label": "Shopping", "value": "shopping", "icon": "ShoppingBag"},
    {"label": "Bills", "value": "bills", "icon": "Receipt"},
    {"label": "Entertainment", "value": "entertainment", "icon": "Film"},
    {"label": "Healthcare", "value": "healthcare", "icon": "Heart"},
    {"label": "Education", "value": "education", "icon": "GraduationCap"},
    {"label": "Salary", "value": "salary", "icon": "DollarSign"},
    {"label": "Investment", "value": "investment", "icon": "TrendingUp"},
    {"label": "Other", "value": "other", "icon": "Circle"},
]


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, GOALS_DIR, PLANS_DIR]:
        directory.mkdir(parents=True, exist_ok=True)


def configure_logging(level: Optional[Union[int, str]] = None) -> None:
    """Install a basic log handler for scripts and the Streamlit app.

    Args:
        level: Logging level name or number. Defaults to
               ``BUDGET_PLANNER_LOG_LEVEL`` (``WARNING``).
    """
    resolved = level if level is not None else LOG_LEVEL
    if isinstance(resolved, str):
        resolved = logging.getLevelName(resolved.upper())
        if not isinstance(resolved, int):
            resolved = logging.WARNING
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
