from __future__ import annotations

from abc import ABC, abstractmethod

from ..domain.models import Reading


class Sensor(ABC):
    """Domain-facing sensor abstraction."""

    @property
    @abstractmethod
    def sensor_id(self) -> str:
        ...

    @abstractmethod
    async def fetch(self) -> Reading:
        """Return one decoded reading. Raise FetchError on any failure."""
        ...

    async def aclose(self) -> None:
        """Release transport resources. Default: nothing to release."""
