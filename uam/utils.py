"""
Logging helpers shared by every module.

Usage:
    from uam.utils import get_logger

    log = get_logger(__name__)
"""
import logging
import sys

from uam.core import config

ROOT_LOGGER = "uam"
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

_configured = False


def configure_logging(level: str | None = None) -> None:
    """Attach a console handler to the application logger (once)."""
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger(ROOT_LOGGER)
    root.addHandler(handler)
    root.setLevel(getattr(logging, (level or config.LOG_LEVEL).upper(), logging.INFO))
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the application hierarchy.

    Names outside the ``uam`` package (``__main__``, scripts) are nested
    under it so a single handler covers them.
    """
    configure_logging()
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
