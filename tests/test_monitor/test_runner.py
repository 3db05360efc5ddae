"""Tests for CheckRunner, probes, and MonitoredItem validation."""

from __future__ import annotations

import asyncio
import time

import pytest

from poolwatch.core.types import MonitorStatus
from poolwatch.monitor.runner import (
    CheckRunner,
    FunctionProbe,
    MonitoredItem,
    Probe,
    ProbeOutcome,
    as_probe,
)


class CountingProbe(Probe):
    def __init__(self) -> None:
        self.calls = 0

    async def check(self) -> str:
        self.calls += 1
        return f"call {self.calls}"


def _item(probe: Probe, name: str = "pools") -> MonitoredItem:
    return MonitoredItem(name=name, interval_secs=1.0, probe=probe)


class TestMonitoredItem:
    def test_rejects_non_positive_interval(self) -> None:
        with pytest.raises(ValueError):
            MonitoredItem(name="x", interval_secs=0, probe=CountingProbe())

    def test_rejects_empty_name(self) -> None:
        with pytest.raises(ValueError):
            MonitoredItem(name="", interval_secs=1.0, probe=CountingProbe())


class TestAsProbe:
    def test_probe_passthrough(self) -> None:
        probe = CountingProbe()
        assert as_probe(probe) is probe

    def test_callable_wrapped(self) -> None:
        assert isinstance(as_probe(lambda: "ok"), FunctionProbe)

    def test_non_callable_rejected(self) -> None:
        with pytest.raises(TypeError):
            as_probe("not a probe")  # type: ignore[arg-type]


class TestCheckRunner:
    async def test_success_produces_ok_event(self) -> None:
        runner = CheckRunner()
        before = time.time()
        event = await runner.run(_item(CountingProbe()), sequence=3)
        assert event.status == MonitorStatus.OK
        assert event.message == "call 1"
        assert event.item_name == "pools"
        assert event.sequence == 3
        assert event.timestamp >= before
        assert event.duration_secs >= 0.0

    async def test_exception_produces_error_event(self) -> None:
        async def failing() -> str:
            raise ConnectionError("upstream down")

        event = await CheckRunner().run(_item(FunctionProbe(failing)), sequence=1)
        assert event.status == MonitorStatus.ERROR
        assert event.message == "upstream down"
        assert event.is_error

    async def test_exception_without_message_uses_type_name(self) -> None:
        async def failing() -> str:
            raise KeyError

        event = await CheckRunner().run(_item(FunctionProbe(failing)), sequence=1)
        assert event.message == "KeyError"

    async def test_probe_outcome_warning(self) -> None:
        async def warn() -> ProbeOutcome:
            return ProbeOutcome(MonitorStatus.WARNING, "price moved")

        event = await CheckRunner().run(_item(FunctionProbe(warn)), sequence=1)
        assert event.status == MonitorStatus.WARNING
        assert event.message == "price moved"

    async def test_sync_callable_runs_in_thread(self) -> None:
        def blocking() -> str:
            time.sleep(0.01)
            return "done"

        event = await CheckRunner().run(_item(FunctionProbe(blocking)), sequence=1)
        assert event.status == MonitorStatus.OK
        assert event.message == "done"
        assert event.duration_secs >= 0.01

    async def test_timeout_produces_error_event(self) -> None:
        async def slow() -> str:
            await asyncio.sleep(1.0)
            return "late"

        event = await CheckRunner(timeout_secs=0.02).run(_item(FunctionProbe(slow)), sequence=1)
        assert event.status == MonitorStatus.ERROR
        assert "timed out" in event.message

    async def test_probe_timeout_error_keeps_its_message(self) -> None:
        async def upstream() -> str:
            raise TimeoutError("upstream read timed out")

        event = await CheckRunner().run(_item(FunctionProbe(upstream)), sequence=1)
        assert event.status == MonitorStatus.ERROR
        assert event.message == "upstream read timed out"

    async def test_probe_timeout_error_within_deadline_keeps_its_message(self) -> None:
        async def upstream() -> str:
            raise TimeoutError("upstream read timed out")

        event = await CheckRunner(timeout_secs=5.0).run(_item(FunctionProbe(upstream)), sequence=1)
        assert event.status == MonitorStatus.ERROR
        assert event.message == "upstream read timed out"

    async def test_cancellation_propagates(self) -> None:
        started = asyncio.Event()

        async def hang() -> str:
            started.set()
            await asyncio.sleep(10)
            return "never"

        task = asyncio.create_task(CheckRunner().run(_item(FunctionProbe(hang)), sequence=1))
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
