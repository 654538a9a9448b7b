"""
Logging setup.

Everything goes to stdout; gunicorn / the container runtime captures it.
Modules get their logger with ``logging.getLogger(__name__)``.
"""
import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure the ``kdle`` logger tree once. Safe to call repeatedly."""
    logger = logging.getLogger("kdle")
    logger.setLevel(level.upper())

    # Prevent duplicate handlers on reload
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
