"""Logging setup shared by the API server, the CLI and the library modules.

Library modules log through ``logging.getLogger(__name__)``; everything under
the ``tracklane`` logger ends up in one rotating file. Moves log at INFO,
configuration problems at WARNING and failed writes at ERROR.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

ROOT_LOGGER = "tracklane"
LOG_FILE = "tracklane.log"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Library loggers that flood the file at INFO (one line per SQL statement or request)
CHATTY_LIBRARIES = ("sqlalchemy.engine", "httpx", "httpcore")


def _resolve_level(level: str | None) -> int:
    name = (level or os.environ.get("TRACKLANE_LOG_LEVEL") or "INFO").upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(
    log_dir: str | Path | None = None,
    log_file: str = LOG_FILE,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    level: str | None = None,
    console: bool = True,
) -> logging.Logger:
    """Send ``tracklane.*`` records to a rotating file and, optionally, stderr.

    ``log_dir`` and ``level`` fall back to ``TRACKLANE_LOG_DIR`` and
    ``TRACKLANE_LOG_LEVEL``, then to ``logs/`` and INFO. Calling it again
    replaces the handlers of the previous call.

    Returns:
        The ``tracklane`` logger.
    """
    directory = Path(log_dir or os.environ.get("TRACKLANE_LOG_DIR") or "logs")
    directory.mkdir(parents=True, exist_ok=True)
    log_level = _resolve_level(level)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(log_level)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [
        RotatingFileHandler(
            directory / log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if log_level > logging.DEBUG:
        for name in CHATTY_LIBRARIES:
            logging.getLogger(name).setLevel(logging.WARNING)

    logger.info(
        "Logging to %s at %s", directory / log_file, logging.getLevelName(log_level)
    )
    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger for a component, e.g. ``get_logger("remote")`` -> ``tracklane.remote``."""
    if name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def truncate_output(output: str, max_length: int = 500) -> str:
    """Shorten backend error bodies and other free text before logging it."""
    if len(output) <= max_length:
        return output
    return output[:max_length] + f"... [truncated, {len(output) - max_length} more chars]"
