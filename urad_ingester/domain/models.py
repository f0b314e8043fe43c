from __future__ import annotations
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict


class Reading(BaseModel):
    """One uRad sample, exactly as decoded from the device."""

    # strict: no "21.5" strings and no 400.5 for integer channels; NaN/Infinity rejected
    model_config = ConfigDict(frozen=True, strict=True, extra="ignore", allow_inf_nan=False)

    temperature: float
    humidity: float
    voc: int
    co2: int
    ch2o: int
    o3: float
    pm1: float
    pm25: float
    pm10: float
    noise: float


class DevicePayload(BaseModel):
    """Top-level body of GET /j: {"data": {...}}."""

    model_config = ConfigDict(frozen=True, strict=True, extra="ignore", allow_inf_nan=False)

    data: Reading


@dataclass(frozen=True)
class HistoryEntry:
    timestamp: int  # ms since Unix epoch
    reading: Reading

    def to_dict(self) -> dict[str, Any]:
        # flat wire form: timestamp sits beside the reading fields
        return {"timestamp": self.timestamp, **self.reading.model_dump()}
