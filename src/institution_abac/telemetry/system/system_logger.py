"""System logger for operational events.

Configuration errors, store outages and timeouts are logged here as
structured dicts (see telemetry/models/system.py for the field set).
Until configure_system_logger() is called, records go through the standard
logging hierarchy like any library logger.
"""

from __future__ import annotations

import logging
from pathlib import Path

from institution_abac.utils.logging import setup_jsonl_logger

__all__ = [
    "SYSTEM_LOGGER_NAME",
    "configure_system_logger",
    "get_system_logger",
]

SYSTEM_LOGGER_NAME = "institution-abac.system"


def get_system_logger() -> logging.Logger:
    """Get the shared system logger."""
    return logging.getLogger(SYSTEM_LOGGER_NAME)


def configure_system_logger(log_path: Path, level: str = "INFO") -> logging.Logger:
    """Route system log records to a JSONL file.

    Args:
        log_path: Path to system.jsonl.
        level: Logging level name.

    Returns:
        The configured system logger.
    """
    return setup_jsonl_logger(SYSTEM_LOGGER_NAME, log_path, logging.getLevelNamesMapping()[level])
