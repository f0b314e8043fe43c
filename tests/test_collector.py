from __future__ import annotations

import asyncio
import socket
import threading
import time

import httpx
import pytest

from conftest import ScriptedSensor, make_reading
from urad_ingester.core.config import Settings
from urad_ingester.core.errors import FetchError, StartupError
from urad_ingester.domain.stop_signal import StopSignal
from urad_ingester.services.collector import Collector
from urad_ingester.storage.history import HistoryStore


class GatedHistory(HistoryStore):
    """History whose snapshot() parks until the test releases it."""

    def __init__(self) -> None:
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()

    def snapshot(self):
        self.entered.set()
        self.release.wait(timeout=5)
        return super().snapshot()


async def _wait_for_entries(collector: Collector, count: int, timeout: float = 5.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while len(collector.history) < count:
        if loop.time() > deadline:
            pytest.fail(f"history never reached {count} entries")
        await asyncio.sleep(0.01)


@pytest.mark.asyncio
async def test_reading_is_served_then_stop_closes_listener(test_settings: Settings) -> None:
    stop = StopSignal()
    sensor = ScriptedSensor([make_reading(temperature=21.5)] + [FetchError("refused")] * 1000)
    collector = Collector(test_settings, sensor=sensor)
    before_ms = time.time_ns() // 1_000_000
    task = asyncio.create_task(collector.run(stop))
    await asyncio.wait_for(collector.ready.wait(), timeout=5)
    await _wait_for_entries(collector, 1)

    url = f"http://127.0.0.1:{collector.port}/"
    async with httpx.AsyncClient() as client:
        r = await client.get(url)

    assert r.status_code == 200
    body = r.json()
    assert len(body) == 1
    assert body[0]["temperature"] == 21.5
    assert before_ms <= body[0]["timestamp"] <= time.time_ns() // 1_000_000

    stop.fire()
    await asyncio.wait_for(task, timeout=2)

    assert collector.poller is not None and collector.poller.stopped
    with pytest.raises(httpx.ConnectError):
        async with httpx.AsyncClient() as client:
            await client.get(url)


@pytest.mark.asyncio
async def test_all_fetches_failing_serves_empty_array(test_settings: Settings) -> None:
    stop = StopSignal()
    sensor = ScriptedSensor([FetchError("refused")] * 1000)
    collector = Collector(test_settings, sensor=sensor)

    task = asyncio.create_task(collector.run(stop))
    await asyncio.wait_for(collector.ready.wait(), timeout=5)
    while sensor.calls < 5:
        await asyncio.sleep(0.01)

    async with httpx.AsyncClient() as client:
        r = await client.get(f"http://127.0.0.1:{collector.port}/")

    stop.fire()
    await asyncio.wait_for(task, timeout=2)

    assert r.status_code == 200
    assert r.json() == []


@pytest.mark.asyncio
async def test_injected_sensor_is_left_open(test_settings: Settings) -> None:
    stop = StopSignal()
    stop.fire()
    sensor = ScriptedSensor([make_reading()])
    collector = Collector(test_settings, sensor=sensor)

    await asyncio.wait_for(collector.run(stop), timeout=5)

    assert sensor.calls == 1
    assert sensor.closed is False


@pytest.mark.asyncio
async def test_unreachable_device_with_real_client(test_settings: Settings) -> None:
    # nothing listens on the discard port; every poll is refused
    cfg = test_settings.model_copy(update={"device_url": "http://127.0.0.1:9/j"})
    stop = StopSignal()
    collector = Collector(cfg)

    task = asyncio.create_task(collector.run(stop))
    await asyncio.wait_for(collector.ready.wait(), timeout=5)
    while collector.poller is None or collector.poller.stats.failures < 3:
        await asyncio.sleep(0.01)
    stop.fire()
    await asyncio.wait_for(task, timeout=5)

    assert collector.poller.stats.successes == 0
    assert len(collector.history) == 0


@pytest.mark.asyncio
async def test_port_in_use_is_a_startup_error(test_settings: Settings) -> None:
    with socket.create_server(("127.0.0.1", 0)) as taken:
        port = taken.getsockname()[1]
        cfg = test_settings.model_copy(update={"bind_port": port})
        sensor = ScriptedSensor([make_reading()])
        collector = Collector(cfg, sensor=sensor)

        with pytest.raises(StartupError):
            await collector.run(StopSignal())

    assert sensor.calls == 0


@pytest.mark.asyncio
async def test_in_flight_request_completes_during_shutdown(test_settings: Settings) -> None:
    stop = StopSignal()
    history = GatedHistory()
    sensor = ScriptedSensor([make_reading()] + [FetchError("refused")] * 1000)
    collector = Collector(test_settings, sensor=sensor, history=history)

    task = asyncio.create_task(collector.run(stop))
    await asyncio.wait_for(collector.ready.wait(), timeout=5)
    await _wait_for_entries(collector, 1)
    url = f"http://127.0.0.1:{collector.port}/"

    async with httpx.AsyncClient() as client:
        pending = asyncio.create_task(client.get(url))
        assert await asyncio.to_thread(history.entered.wait, 5)

        stop.fire()
        while not collector.poller.stopped:
            await asyncio.sleep(0.01)
        await asyncio.sleep(0.3)

        # listener is closed but the run waits on the parked request
        assert not task.done()
        with pytest.raises(httpx.ConnectError):
            async with httpx.AsyncClient() as late:
                await late.get(url)

        history.release.set()
        r = await asyncio.wait_for(pending, timeout=5)

    assert r.status_code == 200
    assert len(r.json()) == 1
    await asyncio.wait_for(task, timeout=2)


@pytest.mark.asyncio
async def test_server_exiting_on_its_own_is_an_error(test_settings: Settings) -> None:
    stop = StopSignal()
    sensor = ScriptedSensor([FetchError("refused")] * 1000)
    collector = Collector(test_settings, sensor=sensor)

    task = asyncio.create_task(collector.run(stop))
    await asyncio.wait_for(collector.ready.wait(), timeout=5)
    collector.server.should_exit = True

    with pytest.raises(RuntimeError, match="exited unexpectedly"):
        await asyncio.wait_for(task, timeout=5)

    assert stop.is_set()
    assert collector.poller.stopped
