from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from .config import Settings, settings as default_settings

_configured = False


def configure_logging(cfg: Settings | None = None) -> None:
    global _configured
    if _configured:
        return
    cfg = cfg or default_settings

    logger = logging.getLogger()
    logger.setLevel(cfg.log_level.upper())

    fmt = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s - %(message)s"
    )

    # Console
    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    # Rotating file (history is in memory, the log should not grow forever either)
    if cfg.log_file:
        fh = RotatingFileHandler(
            cfg.log_file, maxBytes=2_000_000, backupCount=5
        )
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    # Silence noisy httpx request logging (one line per poll otherwise)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    _configured = True
