from __future__ import annotations
from pydantic import BaseModel


class HistoryEntryOut(BaseModel):
    """One history entry on the wire: the reading flattened beside its timestamp."""

    timestamp: int
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
