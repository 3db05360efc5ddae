"""Domain types for pool monitoring — events, snapshots, change metrics."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

# ── Monitoring Types ─────────────────────────────────────────────


class MonitorStatus(StrEnum):
    """Outcome of a single check."""

    OK = "OK"
    WARNING = "WARNING"
    ERROR = "ERROR"


class ServiceState(StrEnum):
    """Lifecycle state of a MonitorService."""

    IDLE = "IDLE"
    RUNNING = "RUNNING"
    STOPPED = "STOPPED"


class MonitorEvent(BaseModel):
    """Result of one tick of one monitored item — broadcast on the event bus."""

    model_config = {"frozen": True}

    item_name: str
    status: MonitorStatus
    message: str = ""
    timestamp: float = 0.0  # wall clock when the check started
    sequence: int = 0  # 1-based tick number for this item
    duration_secs: float = 0.0

    @property
    def is_error(self) -> bool:
        return self.status == MonitorStatus.ERROR


# ── History Types ────────────────────────────────────────────────


class Snapshot(BaseModel):
    """One timestamped observation of an entity's numeric fields."""

    model_config = {"frozen": True}

    timestamp: datetime
    values: dict[str, float] = Field(default_factory=dict)

    def get(self, field: str, default: float = 0.0) -> float:
        return self.values.get(field, default)


class ChangeMetrics(BaseModel):
    """Percentage change per field per lookback window, derived from history.

    ``baselines`` maps each window label to the timestamp of the snapshot
    used as the comparison point, or ``None`` when no snapshot was old
    enough (the change for that window is then reported as 0.0).
    """

    entity_id: str
    latest: Snapshot
    changes: dict[str, dict[str, float]] = Field(default_factory=dict)
    baselines: dict[str, datetime | None] = Field(default_factory=dict)

    def change(self, field: str, window: str) -> float:
        """Percentage change of *field* over *window*; 0.0 if not tracked."""
        return self.changes.get(field, {}).get(window, 0.0)

    def has_baseline(self, window: str) -> bool:
        """Whether history reached back far enough for *window*."""
        return self.baselines.get(window) is not None


class ChangeAlert(BaseModel):
    """A change that crossed its alert threshold."""

    field: str
    window: str
    change_pct: float
    threshold_pct: float


# ── Pool Types ───────────────────────────────────────────────────

# Snapshot field names recorded for every pool.
VOLUME = "volume"
PRICE = "price"
TVL = "tvl"


class PoolInfo(BaseModel):
    """Parsed market data for one liquidity pool."""

    id: str
    symbol_a: str
    symbol_a_address: str
    symbol_b: str
    symbol_b_address: str
    symbol_b_decimals: int
    volume_24h: float = 0.0
    tvl: float = 0.0
    price: float = 0.0
    timestamp: datetime

    @property
    def pair(self) -> str:
        return f"{self.symbol_a}/{self.symbol_b}"

    def to_snapshot(self) -> Snapshot:
        return Snapshot(
            timestamp=self.timestamp,
            values={VOLUME: self.volume_24h, PRICE: self.price, TVL: self.tvl},
        )


class PoolDataResult(BaseModel):
    """All pools from one fetch, sorted by 24h volume descending."""

    pools: list[PoolInfo] = Field(default_factory=list)
    timestamp: datetime


class PoolReport(BaseModel):
    """Per-pool line item for a rendered monitoring report."""

    pool: PoolInfo
    changes: ChangeMetrics
    alerts: list[ChangeAlert] = Field(default_factory=list)
    market_cap_usd: float | None = None
