"""Event dispatcher — drains a bus subscription into logs and an output sink."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import structlog

from poolwatch.core.types import MonitorEvent, MonitorStatus
from poolwatch.monitor.bus import Subscription
from poolwatch.monitor.formatters import format_event

logger = structlog.get_logger(__name__)

OutputFn = Callable[[str], None]


class EventDispatcher:
    """Logs every MonitorEvent at a level matching its status.

    - OK → info, WARNING → warning, ERROR → error.
    - If *output* is given, the rendered event text is also written there
      (e.g. ``print`` for a human-readable console report).
    - Events lost to a lagging subscription are reported, never hidden.
    """

    def __init__(self, subscription: Subscription, output: OutputFn | None = None) -> None:
        self._subscription = subscription
        self._output = output
        self._task: asyncio.Task[None] | None = None
        self._handled = 0
        self._reported_drops = 0

    @property
    def handled(self) -> int:
        return self._handled

    async def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        """Close the subscription and wait for buffered events to be handled."""
        self._subscription.close()
        if self._task is not None:
            await self._task
            self._task = None

    async def _loop(self) -> None:
        async for event in self._subscription:
            self.handle(event)

    def handle(self, event: MonitorEvent) -> None:
        self._handled += 1
        self._report_drops()

        fields = {
            "item": event.item_name,
            "status": event.status.value,
            "sequence": event.sequence,
            "duration_secs": round(event.duration_secs, 4),
        }
        if event.status == MonitorStatus.ERROR:
            logger.error("monitor_event", error=event.message, **fields)
        elif event.status == MonitorStatus.WARNING:
            logger.warning("monitor_event", **fields)
        else:
            logger.info("monitor_event", **fields)

        if self._output is not None:
            try:
                self._output(format_event(event))
            except Exception:
                logger.exception("event_output_error", item=event.item_name)

    def _report_drops(self) -> None:
        dropped = self._subscription.dropped
        if dropped > self._reported_drops:
            logger.warning(
                "monitor_events_dropped",
                dropped=dropped - self._reported_drops,
                dropped_total=dropped,
            )
            self._reported_drops = dropped
