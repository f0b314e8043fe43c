from __future__ import annotations
import asyncio
import logging
import signal
from typing import Callable, Dict, List, Optional

from ..core.config import Settings, settings as default_settings
from ..core.errors import StartupError
from ..domain.stop_signal import StopSignal
from ..services.collector import Collector
from .control import (
    RUNNING,
    STOPPED,
    ControlHandler,
    LoggingStatusReporter,
    ServiceControl,
    ServiceState,
    ServiceStatus,
    StatusReporter,
)

logger = logging.getLogger(__name__)


def _signal_controls() -> Dict[int, ServiceControl]:
    # SIGTERM is what service managers send on stop
    controls = {signal.SIGTERM: ServiceControl.STOP, signal.SIGINT: ServiceControl.STOP}
    sighup = getattr(signal, "SIGHUP", None)
    if sighup is not None:
        controls[sighup] = ServiceControl.INTERROGATE
    return controls


def register_controls(
    loop: asyncio.AbstractEventLoop,
    handler: Callable[[ServiceControl], object],
) -> Callable[[], None]:
    """Route OS signals to ``handler``. Returns a function that undoes it."""
    on_loop: List[int] = []
    previous: Dict[int, object] = {}

    try:
        for signum, control in _signal_controls().items():
            old = signal.getsignal(signum)
            try:
                loop.add_signal_handler(signum, handler, control)
                on_loop.append(signum)
            except NotImplementedError:
                # Windows event loops: fall back to the plain signal module and
                # hand off to the loop; handler must not run in the interrupted frame
                signal.signal(
                    signum, lambda _s, _f, c=control: loop.call_soon_threadsafe(handler, c)
                )
            previous[signum] = old
    except (OSError, RuntimeError, ValueError) as e:
        _unregister(loop, on_loop, previous)
        raise StartupError(f"Cannot register service controls: {e}") from e

    return lambda: _unregister(loop, on_loop, previous)


def _unregister(loop: asyncio.AbstractEventLoop, on_loop: List[int], previous: Dict[int, object]) -> None:
    for signum in on_loop:
        loop.remove_signal_handler(signum)
    # remove_signal_handler resets to the default; put back what was there before
    for signum, old in previous.items():
        if old is not None:
            signal.signal(signum, old)


def run_service(
    cfg: Optional[Settings] = None,
    reporter: Optional[StatusReporter] = None,
    collector: Optional[Collector] = None,
    stop: Optional[StopSignal] = None,
) -> None:
    """Run the collector as a managed service until a stop control arrives."""
    cfg = cfg or default_settings
    reporter = reporter or LoggingStatusReporter(cfg.service_name)
    collector = collector or Collector(cfg)
    stop = stop or StopSignal()
    handler = ControlHandler(stop)
    logger.info("Starting service %s", cfg.service_name)

    async def _main() -> None:
        unregister = register_controls(asyncio.get_running_loop(), handler)
        try:
            # Tell the supervisor the service is running now
            reporter.set_status(RUNNING)
            await collector.run(stop)
        finally:
            unregister()

    try:
        asyncio.run(_main())
    except Exception:
        reporter.set_status(ServiceStatus(ServiceState.STOPPED, exit_code=1))
        raise

    reporter.set_status(STOPPED)
