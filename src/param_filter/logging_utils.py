"""Opt-in log output for the ``param_filter`` logger.

Library modules only call ``logging.getLogger(__name__)``. Nothing here runs
on import or from the filtering code; a host that has no logging of its own
can call ``configure_logging`` once at startup.
"""

from __future__ import annotations

import logging
import sys
import threading
from pathlib import Path

from param_filter.config import load_logging_settings

PACKAGE_LOGGER = "param_filter"

_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

_handlers_lock = threading.Lock()
_installed_handlers: list[logging.Handler] = []

_logger = logging.getLogger(__name__)


def configure_logging(
    level: str | None = None,
    log_file: str | None = None,
    *,
    propagate: bool = True,
) -> logging.Logger:
    """Attach stderr (and optional file) handlers to the package logger.

    ``level`` and ``log_file`` default to ``LOG_LEVEL`` / ``LOG_FILE``. Calling
    again replaces the handlers installed by the previous call; handlers owned
    by the host, on the root logger or elsewhere, are never touched.
    """
    if level is None or log_file is None:
        settings = load_logging_settings()
        level = level if level is not None else settings.level
        log_file = log_file if log_file is not None else settings.file

    formatter = logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT)
    handlers: list[logging.Handler] = []

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    handlers.append(stream_handler)

    if log_file:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            handlers.append(file_handler)
        except OSError as exc:
            _logger.warning("Failed to open log file %s: %s", log_file, exc)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    with _handlers_lock:
        for handler in _installed_handlers:
            package_logger.removeHandler(handler)
            handler.close()
        _installed_handlers[:] = handlers
        for handler in handlers:
            package_logger.addHandler(handler)
        package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        package_logger.propagate = propagate

    return package_logger
