"""Logging for the collector process.

Everything logs under the ``homelogger`` namespace to stderr, where the
service manager picks it up. ``main()`` calls configure() with DEBUG when
``DEBUG_LOG`` is set, which adds per-cycle detail (cycle numbers, raw
samples, row counts). aiosqlite is held at WARNING either way.
"""

import logging
import sys

_configured = False

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s - %(message)s"


def configure(level: int = logging.INFO) -> None:
    """Attach the stderr handler to the ``homelogger`` logger.

    Only the first call has any effect.
    """
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    app_logger = logging.getLogger("homelogger")
    app_logger.setLevel(level)
    app_logger.addHandler(handler)

    # aiosqlite logs every queued call at debug level
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return the ``homelogger.<name>`` logger, e.g. ``sensor.polling``."""
    return logging.getLogger(f"homelogger.{name}")
