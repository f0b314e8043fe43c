from __future__ import annotations
import asyncio
import logging
import socket
from contextlib import contextmanager
from typing import Iterator, Optional

import uvicorn

from ..core.config import Settings, settings as default_settings
from ..core.errors import StartupError
from ..domain.stop_signal import StopSignal
from ..main import create_app
from ..sensors.base import Sensor
from ..sensors.urad_client import URadClient
from ..storage.history import HistoryStore
from .poller import Poller, run_in_background


logger = logging.getLogger(__name__)


class _Server(uvicorn.Server):
    """uvicorn server that leaves OS signals to whoever owns the StopSignal."""

    def install_signal_handlers(self) -> None:  # uvicorn < 0.29
        pass

    @contextmanager
    def capture_signals(self) -> Iterator[None]:  # uvicorn >= 0.29
        yield


class Collector:
    """Runs the poller and the HTTP listener over one shared history.

    Shutdown order: stop signal -> poller leaves its loop -> listener stops
    accepting and drains in-flight requests -> ``run()`` returns.
    """

    def __init__(
        self,
        cfg: Optional[Settings] = None,
        sensor: Optional[Sensor] = None,
        history: Optional[HistoryStore] = None,
    ) -> None:
        self._cfg = cfg or default_settings
        self._sensor = sensor
        self.history = history if history is not None else HistoryStore()

        self.poller: Optional[Poller] = None
        self.port: Optional[int] = None
        self.server: Optional[uvicorn.Server] = None
        self.ready = asyncio.Event()

    def bind(self) -> socket.socket:
        host, port = self._cfg.bind_host, self._cfg.bind_port
        try:
            return socket.create_server((host, port))
        except OSError as e:
            raise StartupError(f"Cannot listen on {host}:{port}: {e}") from e

    async def run(self, stop: Optional[StopSignal] = None) -> None:
        # no stop source: nothing ever fires this one, we run until killed
        stop = stop if stop is not None else StopSignal()

        sock = self.bind()
        self.port = sock.getsockname()[1]

        owns_sensor = self._sensor is None
        sensor = self._sensor or URadClient(
            url=self._cfg.device_url,
            timeout=self._cfg.fetch_timeout_seconds,
        )

        config = uvicorn.Config(
            create_app(self.history),
            log_config=None,
            lifespan="off",
        )
        server = self.server = _Server(config)
        server_task = asyncio.create_task(server.serve(sockets=[sock]), name="http_server")

        try:
            await self._wait_started(server, server_task)
            logger.info("Serving history on http://%s:%d/", self._cfg.bind_host, self.port)
            self.ready.set()

            self.poller = Poller(
                sensor=sensor,
                history=self.history,
                stop=stop,
                interval_s=self._cfg.poll_interval_seconds,
            )
            poller_task = run_in_background(self.poller)

            await asyncio.wait({poller_task, server_task}, return_when=asyncio.FIRST_COMPLETED)
            server_died = not poller_task.done()
            if server_died:
                logger.error("HTTP server exited before stop was requested")
                stop.fire()
            await poller_task
            if server_died:
                server_task.result()
                raise RuntimeError("HTTP server exited unexpectedly")
        finally:
            server.should_exit = True
            try:
                await server_task
            finally:
                if owns_sensor:
                    await sensor.aclose()
                sock.close()
                logger.info("HTTP server stopped")

    @staticmethod
    async def _wait_started(server: uvicorn.Server, server_task: asyncio.Task) -> None:
        while not server.started:
            if server_task.done():
                server_task.result()
                raise StartupError("HTTP server exited during startup")
            await asyncio.sleep(0.01)
