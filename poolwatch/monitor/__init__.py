"""Scheduled monitoring engine — probes, scheduling, metrics, event bus."""

from poolwatch.monitor.bus import EventBus, Subscription
from poolwatch.monitor.dispatcher import EventDispatcher
from poolwatch.monitor.exceptions import DuplicateItemError, MonitorError, MonitorStateError
from poolwatch.monitor.formatters import format_event, format_pool_report
from poolwatch.monitor.metrics import MetricsStore, MonitorMetrics
from poolwatch.monitor.runner import (
    CheckRunner,
    FunctionProbe,
    MonitoredItem,
    Probe,
    ProbeOutcome,
)
from poolwatch.monitor.scheduler import FixedRateTimer, Scheduler
from poolwatch.monitor.service import MonitorService

__all__ = [
    "CheckRunner",
    "DuplicateItemError",
    "EventBus",
    "EventDispatcher",
    "FixedRateTimer",
    "FunctionProbe",
    "MetricsStore",
    "MonitorError",
    "MonitorMetrics",
    "MonitorService",
    "MonitorStateError",
    "MonitoredItem",
    "Probe",
    "ProbeOutcome",
    "Scheduler",
    "Subscription",
    "format_event",
    "format_pool_report",
]
