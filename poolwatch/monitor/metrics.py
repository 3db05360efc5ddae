"""MetricsStore — per-item running counters for monitored checks."""

from __future__ import annotations

import asyncio
from dataclasses import asdict, dataclass, replace

from poolwatch.core.types import MonitorEvent, MonitorStatus


@dataclass
class MonitorMetrics:
    """Aggregate counters for a single monitored item."""

    item_name: str
    last_check_time: float | None = None
    last_status: MonitorStatus | None = None
    last_message: str = ""
    last_duration_secs: float = 0.0
    check_count: int = 0
    error_count: int = 0
    warning_count: int = 0

    @property
    def error_rate(self) -> float:
        if self.check_count == 0:
            return 0.0
        return self.error_count / self.check_count


class MetricsStore:
    """Per-item metrics keyed by item name.

    Each item has its own lock so concurrent updates for unrelated items
    never contend. Readers get copies, never the live record.

    Usage::

        store = MetricsStore()
        await store.record(event)
        metrics = store.get("raydium_pools")
    """

    def __init__(self) -> None:
        self._metrics: dict[str, MonitorMetrics] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._global_lock = asyncio.Lock()

    async def _get_lock(self, item_name: str) -> asyncio.Lock:
        """Get or create the per-item lock."""
        async with self._global_lock:
            if item_name not in self._locks:
                self._locks[item_name] = asyncio.Lock()
                self._metrics[item_name] = MonitorMetrics(item_name=item_name)
            return self._locks[item_name]

    async def record(self, event: MonitorEvent) -> MonitorMetrics:
        """Fold one check result into that item's counters."""
        lock = await self._get_lock(event.item_name)
        async with lock:
            metric = self._metrics[event.item_name]
            metric.last_check_time = event.timestamp
            metric.last_status = event.status
            metric.last_message = event.message
            metric.last_duration_secs = event.duration_secs
            metric.check_count += 1
            if event.status == MonitorStatus.ERROR:
                metric.error_count += 1
            elif event.status == MonitorStatus.WARNING:
                metric.warning_count += 1
            return replace(metric)

    def get(self, item_name: str) -> MonitorMetrics | None:
        """Return a copy of an item's metrics, or None if it never ran."""
        metric = self._metrics.get(item_name)
        return replace(metric) if metric is not None else None

    def all(self) -> dict[str, MonitorMetrics]:
        return {name: replace(m) for name, m in self._metrics.items()}

    def snapshot(self) -> dict[str, dict[str, object]]:
        """Plain-dict view of every item, for logging."""
        return {name: asdict(m) for name, m in self._metrics.items()}

    def __contains__(self, item_name: str) -> bool:
        return item_name in self._metrics

    def __len__(self) -> int:
        return len(self._metrics)
