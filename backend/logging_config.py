"""Logger factory for the route-weather engine.

The engine is embedded in a host application, so console output stays quiet
(warnings and up) and nothing is written to disk unless the host asks for a
log file:

- ``ROUTEWEATHER_LOG_LEVEL`` overrides the level a module asks for
- ``ROUTEWEATHER_LOG_DIR`` turns on a rotating log file in that directory
- ``ROUTEWEATHER_LOG_FILE=0`` keeps the file off even when a directory is set
"""
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 3


def _resolve_level(level: str) -> int:
    name = os.environ.get("ROUTEWEATHER_LOG_LEVEL") or level
    return getattr(logging, name.upper(), logging.INFO)


def _log_dir() -> Optional[str]:
    """Directory for the log file, or None when file logging is off."""
    if os.environ.get("ROUTEWEATHER_LOG_FILE", "1").lower() in ("0", "false", "no"):
        return None
    return os.environ.get("ROUTEWEATHER_LOG_DIR") or None


def setup_logging(name: str, level: str = "INFO", log_name: str = "routeweather") -> logging.Logger:
    """Return the named logger, attaching handlers on first use only.

    Args:
        name: Logger name (usually __name__)
        level: Default level for this module; the environment may override it
        log_name: Base name of the rotating log file
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    log_level = _resolve_level(level)
    logger.setLevel(log_level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(max(log_level, logging.WARNING))
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    log_dir = _log_dir()
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, f"{log_name}.log"),
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUPS,
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # handlers live here; stop records reaching a host's root handlers twice
    logger.propagate = False
    return logger
