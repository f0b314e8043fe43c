from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Protocol, runtime_checkable

from ..domain.stop_signal import StopSignal

logger = logging.getLogger(__name__)


class ServiceControl(str, Enum):
    """Control codes a supervisor can send to the service."""

    STOP = "stop"
    INTERROGATE = "interrogate"
    PAUSE = "pause"
    CONTINUE = "continue"
    SHUTDOWN = "shutdown"
    PARAM_CHANGE = "param_change"


class ControlResult(str, Enum):
    NO_ERROR = "no_error"
    NOT_IMPLEMENTED = "not_implemented"


class ServiceState(str, Enum):
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass(frozen=True)
class ServiceStatus:
    state: ServiceState
    # Accept stop events only while running
    controls_accepted: FrozenSet[ServiceControl] = frozenset()
    # Non-zero only to report a failure while starting or stopping
    exit_code: int = 0


RUNNING = ServiceStatus(ServiceState.RUNNING, frozenset({ServiceControl.STOP}))
STOPPED = ServiceStatus(ServiceState.STOPPED)


@runtime_checkable
class StatusReporter(Protocol):
    def set_status(self, status: ServiceStatus) -> None:
        ...


class LoggingStatusReporter:
    """Reports status transitions to the log; the supervisor reads exit codes."""

    def __init__(self, service_name: str) -> None:
        self.service_name = service_name
        self.current: ServiceStatus | None = None

    def set_status(self, status: ServiceStatus) -> None:
        self.current = status
        logger.info(
            "Service %s -> %s (accepts=%s exit_code=%d)",
            self.service_name,
            status.state.value,
            sorted(c.value for c in status.controls_accepted),
            status.exit_code,
        )


class ControlHandler:
    """Turns supervisor control codes into the internal stop signal."""

    def __init__(self, stop: StopSignal) -> None:
        self._stop = stop

    def __call__(self, control: ServiceControl) -> ControlResult:
        if control is ServiceControl.STOP:
            logger.info("Stop control received")
            self._stop.fire()
            return ControlResult.NO_ERROR
        # All services must accept Interrogate even if it's a no-op.
        if control is ServiceControl.INTERROGATE:
            return ControlResult.NO_ERROR
        logger.debug("Control %s not implemented", control.value)
        return ControlResult.NOT_IMPLEMENTED
