"""Fixed-rate scheduling of monitored items — one supervised task per item."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import structlog

from poolwatch.core.types import MonitorEvent
from poolwatch.monitor.runner import CheckRunner, MonitoredItem

logger = structlog.stdlib.get_logger()

ResultCallback = Callable[[MonitorEvent], Awaitable[None]]


class FixedRateTimer:
    """Ticks on the grid ``start + k * interval`` of the loop's monotonic clock.

    The first tick fires immediately. The wait before each later tick is
    whatever remains of the interval after the previous probe, so probe
    duration does not accumulate as drift. If a probe overruns whole
    intervals, those grid points are skipped rather than fired in a burst.
    """

    def __init__(self, interval_secs: float, stop_event: asyncio.Event) -> None:
        self._interval = interval_secs
        self._stop = stop_event
        self._deadline: float | None = None
        self._missed = 0

    @property
    def missed_ticks(self) -> int:
        return self._missed

    async def tick(self) -> bool:
        """Wait for the next tick. Returns False once the stop signal is set."""
        if self._stop.is_set():
            return False

        now = asyncio.get_running_loop().time()
        if self._deadline is None:
            self._deadline = now
        elif now - self._deadline >= self._interval:
            skipped = int((now - self._deadline) // self._interval)
            self._deadline += skipped * self._interval
            self._missed += skipped
            logger.debug("ticks_skipped", skipped=skipped, interval_secs=self._interval)

        delay = self._deadline - now
        if delay > 0:
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass
        if self._stop.is_set():
            return False

        self._deadline += self._interval
        return True


class Scheduler:
    """Runs every item on its own independent fixed-rate schedule.

    Each item gets a dedicated task; a slow or failing probe only delays
    its own item. Stopping is cooperative: tasks observe the stop signal
    at tick boundaries, and only tasks still busy after the grace period
    are cancelled.
    """

    def __init__(self, runner: CheckRunner, on_result: ResultCallback) -> None:
        self._runner = runner
        self._on_result = on_result
        self._stop_event = asyncio.Event()
        self._tasks: dict[str, asyncio.Task[None]] = {}

    @property
    def task_count(self) -> int:
        return len(self._tasks)

    def start(self, items: list[MonitoredItem]) -> None:
        """Spawn one task per item. Must be called from a running loop."""
        for item in items:
            if item.name in self._tasks:
                continue
            self._tasks[item.name] = asyncio.create_task(
                self._item_loop(item),
                name=f"monitor-{item.name}",
            )
        logger.info("scheduler_started", items=len(self._tasks))

    async def stop(self, grace_secs: float = 5.0) -> None:
        """Signal every task and wait for them to finish.

        In-flight probes may complete within *grace_secs*; tasks still
        running after that are cancelled.
        """
        self._stop_event.set()
        tasks = list(self._tasks.values())
        if not tasks:
            return

        _, pending = await asyncio.wait(tasks, timeout=grace_secs)
        for task in pending:
            task.cancel()
        if pending:
            logger.warning(
                "scheduler_tasks_cancelled",
                tasks=[t.get_name() for t in pending],
                grace_secs=grace_secs,
            )
        await asyncio.gather(*tasks, return_exceptions=True)

        for name, task in self._tasks.items():
            if not task.cancelled() and task.exception() is not None:
                logger.error(
                    "scheduler_task_crashed",
                    item=name,
                    error=str(task.exception()),
                )
        self._tasks.clear()
        logger.info("scheduler_stopped")

    async def _item_loop(self, item: MonitoredItem) -> None:
        timer = FixedRateTimer(item.interval_secs, self._stop_event)
        sequence = 0
        while await timer.tick():
            sequence += 1
            event = await self._runner.run(item, sequence)
            try:
                await self._on_result(event)
            except Exception:
                logger.exception("monitor_result_handler_error", item=item.name)
        logger.debug(
            "item_loop_exited",
            item=item.name,
            ticks=sequence,
            missed_ticks=timer.missed_ticks,
        )
