import logging
import os
from functools import wraps

LOGGER_ROOT = "netroute"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_SPY_LOGGER = logging.getLogger(f"{LOGGER_ROOT}.spy")


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``netroute`` namespace, e.g. get_logger("routing") -> netroute.routing."""
    return logging.getLogger(f"{LOGGER_ROOT}.{name}")


def configure_logger(level: int | str = logging.WARNING) -> logging.Logger:
    """
    Ensure the netroute logger has a handler in case the app didn't configure logging.
    Safe to call multiple times.
    """
    logger = logging.getLogger(LOGGER_ROOT)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logger.setLevel(level)
    return logger


def spy_enabled() -> bool:
    val = os.getenv("NETROUTE_SPY", "0")
    return str(val).lower() not in {"", "0", "false", "no"}


def spy_trace(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        if spy_enabled():
            _SPY_LOGGER.debug("Entering %s", func.__qualname__)
        result = func(*args, **kwargs)
        if spy_enabled():
            _SPY_LOGGER.debug("Exiting %s", func.__qualname__)
        return result

    return wrapper
