from __future__ import annotations

import logging
import os
import time
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)sZ | %(name)s | %(levelname)s | %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def _utc_formatter() -> logging.Formatter:
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    formatter.converter = time.gmtime
    return formatter


def _midnight_file_handler(file_path: str, level: int) -> TimedRotatingFileHandler:
    Path(file_path).parent.mkdir(parents=True, exist_ok=True)
    retention = int(os.getenv("LOG_RETENTION_DAYS", "7"))
    handler = TimedRotatingFileHandler(file_path, when="midnight", utc=True, backupCount=retention, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(_utc_formatter())
    return handler


def setup_session_logging(
    name: str = "fxsessions",
    *,
    file_path: str,
    alert_file_path: str | None = None,
    level: str = "INFO",
) -> logging.Logger:
    """
    Configure the runtime logger tree with UTC timestamps.

    Children such as ``<name>.alerts`` and ``<name>.api`` propagate into the
    console and the main file. Fired alerts also go to ``alert_file_path``
    when one is given. Calling this twice leaves the handlers unchanged.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level!r}")

    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)
    logger.propagate = False
    if logger.handlers:
        return logger

    console = logging.StreamHandler()
    console.setLevel(numeric_level)
    console.setFormatter(_utc_formatter())
    logger.addHandler(console)
    logger.addHandler(_midnight_file_handler(file_path, numeric_level))

    if alert_file_path:
        alerts_logger = logging.getLogger(f"{name}.alerts")
        alerts_logger.addHandler(_midnight_file_handler(alert_file_path, logging.INFO))

    return logger
