"""Logging setup for applications embedding ldapmgr.

The library itself only emits records on loggers below ``ldapmgr``. This
helper attaches handlers to that logger:

- Console handler, always.
- Optional file handler with daily rotation (midnight, UTC).
- Level is configurable (default INFO); unknown names fall back to INFO.
"""
from __future__ import annotations

import logging
import os
from logging.handlers import TimedRotatingFileHandler

LOGGER_NAME = "ldapmgr"
_LOG_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s"
_LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Track installed handlers so reconfiguration replaces instead of stacking.
_file_handler: logging.Handler | None = None
_console_handler: logging.Handler | None = None


def _parse_level(level: str) -> tuple[str, int]:
    level_str = (level or "INFO").strip().upper()
    if level_str not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        level_str = "INFO"
    return level_str, getattr(logging, level_str, logging.INFO)


def setup_logging(level: str = "INFO", log_file: str = "", retention_days: int = 30) -> logging.Logger:
    """Configure the ``ldapmgr`` logger and return it."""
    global _file_handler, _console_handler

    level_str, log_level = _parse_level(level)
    retention_days = max(1, min(365, int(retention_days or 30)))

    logger = logging.getLogger(LOGGER_NAME)

    if _file_handler and _file_handler in logger.handlers:
        logger.removeHandler(_file_handler)
        _file_handler.close()
    _file_handler = None
    if _console_handler and _console_handler in logger.handlers:
        logger.removeHandler(_console_handler)

    formatter = logging.Formatter(_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT)

    ch = logging.StreamHandler()
    ch.setLevel(log_level)
    ch.setFormatter(formatter)
    _console_handler = ch
    logger.addHandler(ch)

    if log_file:
        log_dir = os.path.dirname(os.path.abspath(log_file))
        os.makedirs(log_dir, exist_ok=True)
        fh = TimedRotatingFileHandler(
            log_file,
            when="midnight",
            interval=1,
            backupCount=retention_days,
            encoding="utf-8",
            utc=True,
        )
        fh.suffix = "%Y-%m-%d"
        fh.setLevel(log_level)
        fh.setFormatter(formatter)
        _file_handler = fh
        logger.addHandler(fh)

    logger.setLevel(log_level)

    # ldap3 has its own logging, keep it quiet unless debugging.
    logging.getLogger("ldap3").setLevel(max(log_level, logging.WARNING))

    logger.debug("Logging configured: level=%s, file=%s, retention=%d days", level_str, log_file or "-", retention_days)
    return logger
