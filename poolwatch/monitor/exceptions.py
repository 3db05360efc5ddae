"""Exception hierarchy for the monitoring engine."""

from __future__ import annotations


class MonitorError(Exception):
    """Base exception for all monitoring engine errors."""


class MonitorStateError(MonitorError):
    """Operation not allowed in the service's current lifecycle state."""


class DuplicateItemError(MonitorError):
    """A monitored item with the same name is already registered."""
