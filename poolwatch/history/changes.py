"""Rate-of-change computation over lookback windows of snapshot history."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta
from typing import NamedTuple

import structlog

from poolwatch.core.types import ChangeMetrics, Snapshot
from poolwatch.history.store import HistoryStore

logger = structlog.stdlib.get_logger()


class LookbackWindow(NamedTuple):
    """A named duration used to pick a comparison point in history."""

    label: str
    duration: timedelta


WINDOW_5M = LookbackWindow("5m", timedelta(minutes=5))
WINDOW_15M = LookbackWindow("15m", timedelta(minutes=15))
WINDOW_1H = LookbackWindow("1h", timedelta(hours=1))
WINDOW_24H = LookbackWindow("24h", timedelta(hours=24))

DEFAULT_WINDOWS: tuple[LookbackWindow, ...] = (WINDOW_5M, WINDOW_15M, WINDOW_1H, WINDOW_24H)


def calculate_change(old_value: float, new_value: float) -> float:
    """Percentage change from *old_value* to *new_value*.

    A zero or non-finite baseline has no meaningful percentage; it yields
    0.0 so NaN/inf never reach threshold comparisons.
    """
    if old_value == 0.0 or not (math.isfinite(old_value) and math.isfinite(new_value)):
        return 0.0
    return ((new_value - old_value) / old_value) * 100.0


def find_baseline(series: Sequence[Snapshot], target: datetime) -> Snapshot | None:
    """Freshest snapshot with ``timestamp <= target``, scanning newest first."""
    for snap in reversed(series):
        if snap.timestamp <= target:
            return snap
    return None


def compute_changes(
    entity_id: str,
    series: Sequence[Snapshot],
    windows: Iterable[LookbackWindow] = DEFAULT_WINDOWS,
    fields: Iterable[str] | None = None,
) -> ChangeMetrics | None:
    """Change metrics relative to the last snapshot of *series*.

    Windows with no snapshot old enough report 0.0 for every field and a
    ``None`` baseline.
    """
    if not series:
        return None

    latest = series[-1]
    tracked = list(fields) if fields is not None else list(latest.values)
    changes: dict[str, dict[str, float]] = {f: {} for f in tracked}
    baselines: dict[str, datetime | None] = {}

    for window in windows:
        baseline = find_baseline(series, latest.timestamp - window.duration)
        baselines[window.label] = baseline.timestamp if baseline is not None else None
        for field in tracked:
            if baseline is None:
                changes[field][window.label] = 0.0
                continue
            old = baseline.get(field)
            if old == 0.0:
                logger.debug(
                    "zero_baseline",
                    entity_id=entity_id,
                    field=field,
                    window=window.label,
                )
            changes[field][window.label] = calculate_change(old, latest.get(field))

    return ChangeMetrics(
        entity_id=entity_id,
        latest=latest,
        changes=changes,
        baselines=baselines,
    )


class ChangeEngine:
    """Computes ChangeMetrics on demand from a HistoryStore."""

    def __init__(
        self,
        history: HistoryStore,
        windows: Sequence[LookbackWindow] = DEFAULT_WINDOWS,
        fields: Sequence[str] | None = None,
    ) -> None:
        self._history = history
        self._windows = tuple(windows)
        self._fields = tuple(fields) if fields is not None else None

    @property
    def windows(self) -> tuple[LookbackWindow, ...]:
        return self._windows

    def compute(
        self,
        entity_id: str,
        windows: Sequence[LookbackWindow] | None = None,
    ) -> ChangeMetrics | None:
        """Return change metrics for *entity_id*, or None without history."""
        series = self._history.series(entity_id)
        return compute_changes(
            entity_id,
            series,
            windows=windows if windows is not None else self._windows,
            fields=self._fields,
        )
