from __future__ import annotations
import asyncio
import logging
import threading
from typing import Optional

logger = logging.getLogger(__name__)


class StopSignal:
    """One-shot stop notification shared by the poller and the service adapter.

    ``fire()`` may be called from any thread (an OS control callback, a timer,
    a signal handler) and wakes every coroutine currently blocked in
    ``wait()``, whatever event loop it runs on. Once fired it stays fired.
    """

    def __init__(self) -> None:
        self._fired = threading.Event()
        self._lock = threading.Lock()
        self._waiters: list[tuple[asyncio.AbstractEventLoop, asyncio.Event]] = []

    def is_set(self) -> bool:
        return self._fired.is_set()

    def fire(self) -> bool:
        """Signal stop. Returns True only for the call that made the transition."""
        with self._lock:
            if self._fired.is_set():
                return False
            self._fired.set()
            waiters = list(self._waiters)

        logger.info("Stop signal fired")
        for loop, event in waiters:
            if loop.is_closed():
                continue
            loop.call_soon_threadsafe(event.set)
        return True

    async def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait until fired or until ``timeout`` seconds pass.

        Returns True if the signal is (or already was) fired, False on timeout.
        """
        loop = asyncio.get_running_loop()
        event = asyncio.Event()
        waiter = (loop, event)
        with self._lock:
            if self._fired.is_set():
                return True
            self._waiters.append(waiter)

        try:
            await asyncio.wait_for(event.wait(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            return False
        finally:
            with self._lock:
                self._waiters.remove(waiter)
