from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ..core.errors import FetchError
from ..core.timeutil import now_ms
from ..domain.models import HistoryEntry
from ..domain.stop_signal import StopSignal
from ..sensors.base import Sensor
from ..storage.history import HistoryStore


logger = logging.getLogger(__name__)


@dataclass
class PollerStats:
    cycles: int = 0
    successes: int = 0
    failures: int = 0


class Poller:
    def __init__(
        self,
        sensor: Sensor,
        history: HistoryStore,
        stop: StopSignal,
        interval_s: float = 1.0,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._sensor = sensor
        self._history = history
        self._stop = stop
        self._interval_s = interval_s
        self._clock = clock

        self._last_ts: Optional[int] = None
        self._stopped = False
        self.stats = PollerStats()

    @property
    def stopped(self) -> bool:
        return self._stopped

    async def poll_once(self) -> Optional[HistoryEntry]:
        """Fetch one reading and append it. Returns None if the fetch failed."""
        self.stats.cycles += 1
        try:
            reading = await self._sensor.fetch()
        except FetchError as e:
            # best-effort sampling: the cycle is lost, the loop carries on
            self.stats.failures += 1
            logger.debug("Fetch failed, skipping cycle: %s", e)
            return None

        ts = self._clock()
        if self._last_ts is not None and ts < self._last_ts:
            ts = self._last_ts
        self._last_ts = ts

        entry = HistoryEntry(timestamp=ts, reading=reading)
        self._history.append(entry)
        self.stats.successes += 1
        return entry

    async def run(self) -> None:
        logger.info(
            "Poller started (sensor=%s interval_s=%s)",
            self._sensor.sensor_id,
            self._interval_s,
        )

        try:
            while True:
                await self.poll_once()

                # sleep with stop awareness; a stop request lands within one interval
                if await self._stop.wait(timeout=self._interval_s):
                    break
        finally:
            self._stopped = True
            logger.info(
                "Poller stopped (cycles=%d successes=%d failures=%d)",
                self.stats.cycles,
                self.stats.successes,
                self.stats.failures,
            )


def run_in_background(poller: Poller) -> asyncio.Task:
    return asyncio.create_task(poller.run(), name="poller_loop")
