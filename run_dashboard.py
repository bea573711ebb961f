#!/usr/bin/env python3
"""Direct launcher for the budget planner Streamlit page."""

import subprocess
import sys
from pathlib import Path

project_root = Path(__file__).parent.resolve()
dashboard_path = project_root / "budget_planner" / "dashboard.py"

if __name__ == "__main__":
    sys.path.insert(0, str(project_root))
    subprocess.run([
        sys.executable, "-m", "streamlit", "run",
        str(dashboard_path),
    ])
