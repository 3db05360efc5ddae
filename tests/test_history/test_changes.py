"""Tests for change computation — baseline lookup, guarded arithmetic, windows."""

from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta

import pytest

from poolwatch.core.types import Snapshot
from poolwatch.history.changes import (
    DEFAULT_WINDOWS,
    WINDOW_5M,
    ChangeEngine,
    LookbackWindow,
    calculate_change,
    compute_changes,
    find_baseline,
)
from poolwatch.history.store import HistoryStore

T0 = datetime(2024, 11, 1, tzinfo=UTC)


def _snap(offset: timedelta, **values: float) -> Snapshot:
    return Snapshot(timestamp=T0 + offset, values=values)


# ── calculate_change ───────────────────────────────────────────


class TestCalculateChange:
    def test_increase(self) -> None:
        assert calculate_change(100.0, 150.0) == pytest.approx(50.0)

    def test_decrease(self) -> None:
        assert calculate_change(200.0, 50.0) == pytest.approx(-75.0)

    def test_no_change(self) -> None:
        assert calculate_change(42.0, 42.0) == 0.0

    def test_zero_baseline_is_guarded(self) -> None:
        assert calculate_change(0.0, 50.0) == 0.0

    def test_zero_to_zero(self) -> None:
        assert calculate_change(0.0, 0.0) == 0.0

    def test_non_finite_inputs_guarded(self) -> None:
        assert calculate_change(math.nan, 1.0) == 0.0
        assert calculate_change(1.0, math.inf) == 0.0


# ── find_baseline ──────────────────────────────────────────────


class TestFindBaseline:
    def test_freshest_at_or_before_target(self) -> None:
        series = [_snap(timedelta(minutes=m), v=m) for m in (0, 3, 6, 9)]
        baseline = find_baseline(series, T0 + timedelta(minutes=7))
        assert baseline is not None
        assert baseline.get("v") == 6

    def test_exact_match(self) -> None:
        series = [_snap(timedelta(minutes=m), v=m) for m in (0, 5, 10)]
        baseline = find_baseline(series, T0 + timedelta(minutes=5))
        assert baseline is not None
        assert baseline.get("v") == 5

    def test_nothing_old_enough(self) -> None:
        series = [_snap(timedelta(minutes=m)) for m in (10, 11)]
        assert find_baseline(series, T0 + timedelta(minutes=5)) is None


# ── compute_changes / ChangeEngine ─────────────────────────────


class TestComputeChanges:
    def test_empty_series_returns_none(self) -> None:
        assert compute_changes("pool", []) is None

    def test_nearest_at_or_before_match(self) -> None:
        series = [
            _snap(timedelta(0), volume=100.0),
            _snap(timedelta(minutes=5), volume=150.0),
            _snap(timedelta(hours=24, seconds=1), volume=300.0),
        ]
        metrics = compute_changes("pool", series)
        assert metrics is not None
        assert metrics.change("volume", "5m") == pytest.approx(100.0)
        assert metrics.change("volume", "24h") == pytest.approx(200.0)
        assert metrics.latest.get("volume") == 300.0

    def test_insufficient_history_reports_zero_without_baseline(self) -> None:
        series = [
            _snap(timedelta(0), price=1.0),
            _snap(timedelta(minutes=2), price=2.0),
        ]
        metrics = compute_changes("pool", series)
        assert metrics is not None
        for window in DEFAULT_WINDOWS:
            assert metrics.change("price", window.label) == 0.0
            assert not metrics.has_baseline(window.label)

    def test_single_snapshot(self) -> None:
        metrics = compute_changes("pool", [_snap(timedelta(0), price=5.0)])
        assert metrics is not None
        assert metrics.change("price", "1h") == 0.0
        assert metrics.baselines["1h"] is None

    def test_baseline_timestamps_recorded(self) -> None:
        series = [
            _snap(timedelta(0), price=10.0),
            _snap(timedelta(minutes=20), price=11.0),
        ]
        metrics = compute_changes("pool", series)
        assert metrics is not None
        assert metrics.baselines["5m"] == T0
        assert metrics.baselines["15m"] == T0
        assert metrics.baselines["1h"] is None
        assert metrics.change("price", "15m") == pytest.approx(10.0)

    def test_fields_computed_independently(self) -> None:
        series = [
            _snap(timedelta(0), price=2.0, volume=1000.0, tvl=50.0),
            _snap(timedelta(minutes=5), price=3.0, volume=500.0, tvl=50.0),
        ]
        metrics = compute_changes("pool", series)
        assert metrics is not None
        assert metrics.change("price", "5m") == pytest.approx(50.0)
        assert metrics.change("volume", "5m") == pytest.approx(-50.0)
        assert metrics.change("tvl", "5m") == 0.0

    def test_zero_baseline_field_is_finite(self) -> None:
        series = [
            _snap(timedelta(0), volume=0.0),
            _snap(timedelta(minutes=5), volume=10.0),
        ]
        metrics = compute_changes("pool", series)
        assert metrics is not None
        assert metrics.change("volume", "5m") == 0.0
        assert metrics.has_baseline("5m")

    def test_custom_windows_and_fields(self) -> None:
        series = [
            _snap(timedelta(0), price=1.0, volume=1.0),
            _snap(timedelta(minutes=1), price=2.0, volume=4.0),
        ]
        window = LookbackWindow("1m", timedelta(minutes=1))
        metrics = compute_changes("pool", series, windows=[window], fields=["price"])
        assert metrics is not None
        assert metrics.changes == {"price": {"1m": pytest.approx(100.0)}}

    def test_unknown_field_change_is_zero(self) -> None:
        metrics = compute_changes("pool", [_snap(timedelta(0), price=1.0)])
        assert metrics is not None
        assert metrics.change("missing", "5m") == 0.0


class TestChangeEngine:
    async def test_unknown_entity_returns_none(self) -> None:
        engine = ChangeEngine(HistoryStore())
        assert engine.compute("nope") is None

    async def test_compute_from_store(self) -> None:
        store = HistoryStore()
        await store.record("pool", _snap(timedelta(0), volume=100.0))
        await store.record("pool", _snap(timedelta(minutes=5), volume=150.0))
        await store.record("pool", _snap(timedelta(hours=24, seconds=1), volume=300.0))
        metrics = ChangeEngine(store).compute("pool")
        assert metrics is not None
        assert metrics.entity_id == "pool"
        assert metrics.change("volume", "5m") == pytest.approx(100.0)
        assert metrics.change("volume", "24h") == pytest.approx(200.0)

    async def test_window_override(self) -> None:
        store = HistoryStore()
        await store.record("pool", _snap(timedelta(0), price=1.0))
        await store.record("pool", _snap(timedelta(minutes=5), price=1.1))
        metrics = ChangeEngine(store).compute("pool", windows=[WINDOW_5M])
        assert metrics is not None
        assert list(metrics.baselines) == ["5m"]
        assert metrics.change("price", "5m") == pytest.approx(10.0)
