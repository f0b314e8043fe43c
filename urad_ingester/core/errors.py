from __future__ import annotations


class IngesterError(Exception):
    """Base class for errors raised by the ingester."""


class FetchError(IngesterError):
    """A single device poll failed. Transient; the poller skips the cycle."""


class StartupError(IngesterError):
    """Listener bind or service registration failed. Fatal."""
