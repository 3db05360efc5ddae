"""HistoryStore — bounded, time-ordered snapshot history per entity."""

from __future__ import annotations

import asyncio
import bisect
from datetime import timedelta

import structlog

from poolwatch.core.types import Snapshot

logger = structlog.stdlib.get_logger()

DEFAULT_RETENTION = timedelta(days=7)


class HistoryStore:
    """Append-mostly snapshot series keyed by entity id.

    Series are created lazily on first record and live for the life of the
    store. After every record, entries at or beyond the retention horizon
    (measured back from the newest snapshot in that series, not from the
    wall clock) are pruned, so replaying recorded data prunes the same way.

    Records for the same entity are serialized by a per-entity lock;
    different entities never wait on each other.
    """

    def __init__(self, retention: timedelta = DEFAULT_RETENTION) -> None:
        if retention <= timedelta(0):
            raise ValueError(f"retention must be positive, got {retention}")
        self._retention = retention
        self._series: dict[str, list[Snapshot]] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._global_lock = asyncio.Lock()

    @property
    def retention(self) -> timedelta:
        return self._retention

    async def _get_lock(self, entity_id: str) -> asyncio.Lock:
        """Get or create the per-entity lock (and its empty series)."""
        async with self._global_lock:
            if entity_id not in self._locks:
                self._locks[entity_id] = asyncio.Lock()
                self._series[entity_id] = []
            return self._locks[entity_id]

    async def record(self, entity_id: str, snapshot: Snapshot) -> int:
        """Add *snapshot* to the entity's series and prune old entries.

        A snapshot older than the current tail is inserted at its sorted
        position (after any equal timestamps). Returns the series length.
        """
        lock = await self._get_lock(entity_id)
        async with lock:
            series = self._series[entity_id]
            if series and snapshot.timestamp < series[-1].timestamp:
                idx = bisect.bisect_right(
                    series, snapshot.timestamp, key=lambda s: s.timestamp
                )
                series.insert(idx, snapshot)
            else:
                series.append(snapshot)

            horizon = series[-1].timestamp - self._retention
            cut = bisect.bisect_right(series, horizon, key=lambda s: s.timestamp)
            if cut:
                del series[:cut]

            logger.debug(
                "history_recorded",
                entity_id=entity_id,
                records=len(series),
                pruned=cut,
            )
            return len(series)

    async def record_many(self, snapshots: dict[str, Snapshot]) -> None:
        """Record one snapshot per entity concurrently."""
        await asyncio.gather(
            *(self.record(entity_id, snap) for entity_id, snap in snapshots.items())
        )

    def series(self, entity_id: str) -> tuple[Snapshot, ...]:
        """Copy of the entity's series, oldest first (empty if unknown)."""
        return tuple(self._series.get(entity_id, ()))

    def latest(self, entity_id: str) -> Snapshot | None:
        series = self._series.get(entity_id)
        return series[-1] if series else None

    def entity_ids(self) -> list[str]:
        return list(self._series)

    def __contains__(self, entity_id: str) -> bool:
        return entity_id in self._series

    def __len__(self) -> int:
        return len(self._series)
