"""MonitorService — owns monitored items, scheduler, metrics, and event bus."""

from __future__ import annotations

from types import TracebackType

import structlog

from poolwatch.core.config import MonitorConfig, get_settings
from poolwatch.core.types import MonitorEvent, ServiceState
from poolwatch.monitor.bus import EventBus, Subscription
from poolwatch.monitor.exceptions import DuplicateItemError, MonitorStateError
from poolwatch.monitor.metrics import MetricsStore, MonitorMetrics
from poolwatch.monitor.runner import CheckRunner, MonitoredItem, Probe, ProbeFn, as_probe
from poolwatch.monitor.scheduler import Scheduler

logger = structlog.stdlib.get_logger()


class MonitorService:
    """Runs a fixed set of probes on independent schedules.

    Lifecycle is IDLE → RUNNING → STOPPED. Items can only be added while
    IDLE. ``run()`` on a running service is a no-op; a stopped service
    cannot be restarted. ``stop()`` on an idle or stopped service is a
    no-op.

    Usage::

        service = MonitorService(config)
        service.add_item("pools", 30.0, probe)
        sub = service.subscribe()
        async with service:
            async for event in sub:
                ...
    """

    def __init__(self, config: MonitorConfig | None = None) -> None:
        self._config = config or get_settings().monitor
        self._items: dict[str, MonitoredItem] = {}
        self._metrics = MetricsStore()
        self._bus = EventBus(capacity=self._config.event_buffer_size)
        self._scheduler: Scheduler | None = None
        self._state = ServiceState.IDLE

    @property
    def state(self) -> ServiceState:
        return self._state

    @property
    def items(self) -> list[MonitoredItem]:
        return list(self._items.values())

    @property
    def metrics(self) -> MetricsStore:
        return self._metrics

    @property
    def bus(self) -> EventBus:
        return self._bus

    def add_item(
        self,
        name: str,
        interval_secs: float,
        probe: Probe | ProbeFn,
    ) -> MonitoredItem:
        """Register a probe to run every *interval_secs* once the service runs."""
        if self._state != ServiceState.IDLE:
            raise MonitorStateError(
                f"cannot add item {name!r}: service is {self._state.value}"
            )
        if name in self._items:
            raise DuplicateItemError(f"monitored item {name!r} already registered")

        item = MonitoredItem(name=name, interval_secs=interval_secs, probe=as_probe(probe))
        self._items[name] = item
        logger.info("monitor_item_added", item=name, interval_secs=interval_secs)
        return item

    def subscribe(self, capacity: int | None = None) -> Subscription:
        """Receive every event published from now on."""
        return self._bus.subscribe(capacity)

    def get_metrics(self, name: str) -> MonitorMetrics | None:
        return self._metrics.get(name)

    async def run(self) -> None:
        """Start one scheduled task per registered item."""
        if self._state == ServiceState.RUNNING:
            logger.warning("monitor_already_running")
            return
        if self._state == ServiceState.STOPPED:
            raise MonitorStateError("a stopped monitor service cannot be restarted")

        self._scheduler = Scheduler(
            runner=CheckRunner(timeout_secs=self._config.probe_timeout_secs),
            on_result=self._on_result,
        )
        self._state = ServiceState.RUNNING
        self._scheduler.start(self.items)
        logger.info("monitor_service_started", items=len(self._items))

    async def stop(self) -> None:
        """Stop all schedules. No events are published after this returns."""
        if self._state != ServiceState.RUNNING:
            logger.debug("monitor_stop_ignored", state=self._state.value)
            return

        self._state = ServiceState.STOPPED
        if self._scheduler is not None:
            await self._scheduler.stop(grace_secs=self._config.stop_grace_secs)
            self._scheduler = None
        self._bus.close()
        logger.info("monitor_service_stopped", metrics=self._metrics.snapshot())

    async def _on_result(self, event: MonitorEvent) -> None:
        await self._metrics.record(event)
        self._bus.publish(event)
        logger.debug(
            "check_completed",
            item=event.item_name,
            status=event.status.value,
            sequence=event.sequence,
            duration_secs=round(event.duration_secs, 4),
        )

    async def __aenter__(self) -> MonitorService:
        await self.run()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.stop()
