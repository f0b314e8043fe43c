from __future__ import annotations

import asyncio
import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from .base import Sensor
from ..core.errors import FetchError
from ..domain.models import DevicePayload, Reading

logger = logging.getLogger(__name__)


class URadClient(Sensor):
    """HTTP client for a uRad monitor's local JSON endpoint (GET /j).

    One call to ``fetch()`` is one GET with a bounded total timeout; there are
    no retries here, the poller simply tries again on its next cycle.
    """

    def __init__(
        self,
        url: str = "http://192.168.2.106/j",
        timeout: float = 3.0,
        client: Optional[httpx.AsyncClient] = None,
        sensor_id: str = "urad",
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._sensor_id = sensor_id
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def sensor_id(self) -> str:
        return self._sensor_id

    @property
    def url(self) -> str:
        return self._url

    async def fetch(self) -> Reading:
        try:
            # httpx timeouts are per phase; wait_for bounds the whole exchange
            resp = await asyncio.wait_for(self._client.get(self._url), timeout=self._timeout)
            resp.raise_for_status()
        except asyncio.TimeoutError as e:
            raise FetchError(f"GET {self._url} timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise FetchError(f"GET {self._url} failed: {e}") from e

        try:
            payload = DevicePayload.model_validate_json(resp.content)
        except ValidationError as e:
            raise FetchError(
                f"Unexpected body from {self._url}: {e.error_count()} error(s)"
            ) from e

        logger.debug("uRad read OK (sensor=%s temperature=%s)", self._sensor_id, payload.data.temperature)
        return payload.data

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "URadClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
