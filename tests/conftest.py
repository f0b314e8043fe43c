from __future__ import annotations

import asyncio
from typing import Iterable, Optional, Union

import pytest

from urad_ingester.core.config import Settings
from urad_ingester.core.errors import FetchError
from urad_ingester.domain.models import Reading
from urad_ingester.domain.stop_signal import StopSignal
from urad_ingester.sensors.base import Sensor


DEVICE_DATA = {
    "temperature": 21.5,
    "humidity": 40.0,
    "voc": 120,
    "co2": 415,
    "ch2o": 8,
    "o3": 0.02,
    "pm1": 3.0,
    "pm25": 5.5,
    "pm10": 9.25,
    "noise": 38.4,
}


def make_reading(**overrides) -> Reading:
    return Reading(**{**DEVICE_DATA, **overrides})


Outcome = Union[Reading, Exception]


class ScriptedSensor(Sensor):
    """Plays back a fixed list of fetch outcomes, then fires ``stop``."""

    def __init__(
        self,
        outcomes: Iterable[Outcome],
        stop: Optional[StopSignal] = None,
        delay_s: float = 0.0,
    ) -> None:
        self._outcomes = list(outcomes)
        self._stop = stop
        self._delay_s = delay_s
        self.calls = 0
        self.closed = False

    @property
    def sensor_id(self) -> str:
        return "scripted"

    async def fetch(self) -> Reading:
        self.calls += 1
        if self._delay_s:
            await asyncio.sleep(self._delay_s)
        if not self._outcomes:
            raise FetchError("script exhausted")
        outcome = self._outcomes.pop(0)
        if not self._outcomes and self._stop is not None:
            self._stop.fire()
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def device_data() -> dict:
    return dict(DEVICE_DATA)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        bind_host="127.0.0.1",
        bind_port=0,
        poll_interval_seconds=0.01,
        fetch_timeout_seconds=0.5,
        log_file="",
    )
