"""Snapshot history and change-rate computation."""

from poolwatch.history.alerts import evaluate_alerts
from poolwatch.history.changes import (
    DEFAULT_WINDOWS,
    ChangeEngine,
    LookbackWindow,
    calculate_change,
    compute_changes,
    find_baseline,
)
from poolwatch.history.store import HistoryStore

__all__ = [
    "DEFAULT_WINDOWS",
    "ChangeEngine",
    "HistoryStore",
    "LookbackWindow",
    "calculate_change",
    "compute_changes",
    "evaluate_alerts",
    "find_baseline",
]
