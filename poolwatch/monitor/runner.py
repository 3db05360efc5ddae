"""Probe capability and the CheckRunner that executes one tick of an item."""

from __future__ import annotations

import abc
import asyncio
import inspect
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import structlog

from poolwatch.core.types import MonitorEvent, MonitorStatus

logger = structlog.stdlib.get_logger()


@dataclass(frozen=True)
class ProbeOutcome:
    """Explicit probe result, for probes that need to report a warning."""

    status: MonitorStatus
    message: str = ""


# A probe returns either a plain summary string (reported as OK) or a
# ProbeOutcome. Raising any exception reports an ERROR.
ProbeResult = str | ProbeOutcome
ProbeFn = Callable[[], Awaitable[ProbeResult] | ProbeResult]


class Probe(abc.ABC):
    """Check capability invoked once per tick.

    Implementations hold whatever context they need (HTTP clients, stores).
    The engine only calls :meth:`check`.
    """

    @abc.abstractmethod
    async def check(self) -> ProbeResult:
        """Run the check and return a summary, or raise on failure."""


class FunctionProbe(Probe):
    """Adapts a plain callable to the Probe interface.

    Coroutine functions are awaited directly; regular callables run in a
    worker thread so a blocking check cannot stall other items.
    """

    def __init__(self, fn: ProbeFn) -> None:
        self._fn = fn

    async def check(self) -> ProbeResult:
        if inspect.iscoroutinefunction(self._fn):
            return await self._fn()
        result = await asyncio.to_thread(self._fn)
        if inspect.isawaitable(result):
            return await result
        return result


def as_probe(probe: Probe | ProbeFn) -> Probe:
    """Wrap callables in a FunctionProbe; pass Probe instances through."""
    if isinstance(probe, Probe):
        return probe
    if not callable(probe):
        raise TypeError(f"probe must be a Probe or callable, got {type(probe).__name__}")
    return FunctionProbe(probe)


@dataclass(frozen=True)
class MonitoredItem:
    """A named probe with its check interval. Immutable once registered."""

    name: str
    interval_secs: float
    probe: Probe

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("monitored item name must not be empty")
        if self.interval_secs <= 0:
            raise ValueError(
                f"check interval must be positive, got {self.interval_secs} for {self.name!r}"
            )


class CheckRunner:
    """Executes a single probe invocation and captures its outcome.

    Probe failures never escape: they become ERROR events. Cancellation
    propagates so the scheduler can still abort a stuck probe.
    """

    def __init__(self, timeout_secs: float | None = None) -> None:
        self._timeout_secs = timeout_secs

    async def run(self, item: MonitoredItem, sequence: int) -> MonitorEvent:
        started_at = time.time()
        t0 = time.perf_counter()
        deadline: asyncio.Timeout | None = None
        try:
            if self._timeout_secs is not None:
                async with asyncio.timeout(self._timeout_secs) as deadline:
                    result = await item.probe.check()
            else:
                result = await item.probe.check()
            status, message = _normalize(result)
        except TimeoutError as exc:
            status = MonitorStatus.ERROR
            if deadline is not None and deadline.expired():
                message = f"probe timed out after {self._timeout_secs}s"
                logger.warning("probe_timeout", item=item.name, sequence=sequence)
            else:
                # Raised by the probe itself, not our deadline.
                message = str(exc) or type(exc).__name__
                logger.warning(
                    "probe_failed",
                    item=item.name,
                    sequence=sequence,
                    error=message,
                    error_type=type(exc).__name__,
                )
        except Exception as exc:
            status = MonitorStatus.ERROR
            message = str(exc) or type(exc).__name__
            logger.warning(
                "probe_failed",
                item=item.name,
                sequence=sequence,
                error=message,
                error_type=type(exc).__name__,
            )
        duration = time.perf_counter() - t0

        return MonitorEvent(
            item_name=item.name,
            status=status,
            message=message,
            timestamp=started_at,
            sequence=sequence,
            duration_secs=duration,
        )


def _normalize(result: ProbeResult) -> tuple[MonitorStatus, str]:
    if isinstance(result, ProbeOutcome):
        return result.status, result.message
    if result is None:
        return MonitorStatus.OK, ""
    return MonitorStatus.OK, str(result)
