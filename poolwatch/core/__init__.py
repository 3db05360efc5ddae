"""Core module — config, types, logging."""

from poolwatch.core.config import Settings, get_settings, load_settings, reset_settings
from poolwatch.core.logging import setup_logging
from poolwatch.core.types import (
    ChangeAlert,
    ChangeMetrics,
    MonitorEvent,
    MonitorStatus,
    PoolDataResult,
    PoolInfo,
    PoolReport,
    ServiceState,
    Snapshot,
)

__all__ = [
    "ChangeAlert",
    "ChangeMetrics",
    "MonitorEvent",
    "MonitorStatus",
    "PoolDataResult",
    "PoolInfo",
    "PoolReport",
    "ServiceState",
    "Settings",
    "Snapshot",
    "get_settings",
    "load_settings",
    "reset_settings",
    "setup_logging",
]
