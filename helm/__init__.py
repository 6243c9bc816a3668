"""Helm - productivity intelligence for tasks and journaling

Philosophy:
    Patterns come from what already happened, not from forms to fill in.
    Every task change is an event; every journal entry carries mood and energy.
    The system reads that history back and offers short, situational nudges.

Packages:
    tasks/: Task CRUD that feeds the event log, plus reporting tools
    journal/: Journal entries, entity extraction, streaks
    learning/: Event log, pattern store, pattern analyzer, nudges

Database: data/helm.db (override with HELM_DB_PATH)
Configuration: args/intelligence.yaml
"""

import os
from pathlib import Path

# Path constants
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"
ARGS_DIR = PROJECT_ROOT / "args"
DB_PATH = Path(os.environ.get("HELM_DB_PATH", DATA_DIR / "helm.db"))

__version__ = "0.3.0"

__all__ = [
    "ARGS_DIR",
    "DATA_DIR",
    "DB_PATH",
    "PROJECT_ROOT",
    "__version__",
]
