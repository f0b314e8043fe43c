"""
uRad ingester.

Polls a uRad monitor once per second and serves everything collected so far
as JSON on http://127.0.0.1:8753/.

Usage:
    python -m urad_ingester                  # foreground, runs until killed
    python -m urad_ingester --service        # managed service (SIGTERM = stop)
    python -m urad_ingester --stop-after 3   # shut down cleanly after 3 seconds

Settings come from URAD_* environment variables or a .env file.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import threading
from typing import List, Optional

from .core.config import settings
from .core.errors import StartupError
from .core.log import configure_logging
from .domain.stop_signal import StopSignal
from .service.host import run_service
from .services.collector import Collector

logger = logging.getLogger("urad_ingester")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="urad_ingester", description="uRad monitor history collector")
    p.add_argument("--service", action="store_true",
                   help="Run under a service manager: report status, stop on SIGTERM")
    p.add_argument("--stop-after", type=float, default=None, metavar="SECONDS",
                   help="Fire the stop signal after this many seconds")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(settings)
    logger.info("Starting %s (device=%s)", settings.app_name, settings.device_url)

    stop: Optional[StopSignal] = None
    if args.stop_after is not None:
        stop = StopSignal()
        timer = threading.Timer(args.stop_after, stop.fire)
        timer.daemon = True
        timer.start()

    try:
        if args.service:
            run_service(settings, stop=stop)
        else:
            asyncio.run(Collector(settings).run(stop))
    except StartupError as e:
        logger.error("Startup failed: %s", e)
        return 1
    except KeyboardInterrupt:
        pass

    logger.info("Shutdown complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
