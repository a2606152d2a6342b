"""JSONL logger setup.

Log calls pass a dict as the message:

    logger.warning({"event": "store_unavailable", "message": "...", "error_type": "..."})

ISO8601JsonFormatter renders it as one JSON object per line with a "time"
field added at serialization time. Plain string messages become
{"message": ...}.

Audit loggers use FailClosedFileHandler: a failed write raises out of the
logging call instead of being printed to stderr, so the caller can report it.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

__all__ = [
    "FailClosedFileHandler",
    "ISO8601JsonFormatter",
    "setup_failclosed_audit_logger",
    "setup_jsonl_logger",
]


class ISO8601JsonFormatter(logging.Formatter):
    """Format dict log messages as JSON lines with an ISO 8601 UTC time."""

    def format(self, record: logging.LogRecord) -> str:
        if isinstance(record.msg, dict):
            payload: dict[str, Any] = dict(record.msg)
        else:
            payload = {"message": record.getMessage()}

        entry: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
        }
        entry.update(payload)

        if record.exc_info and "stacktrace" not in entry:
            entry["stacktrace"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class FailClosedFileHandler(logging.FileHandler):
    """JSONL file handler that re-raises OSError from emit().

    logging.Handler.handleError swallows write errors; here an OSError
    (disk full, permission denied, closed mount) propagates to the code
    that issued the log call. Other errors keep the default handling.
    """

    def handleError(self, record: logging.LogRecord) -> None:
        error = sys.exc_info()[1]
        if isinstance(error, OSError):
            raise error
        super().handleError(record)


def _prepare_logger(name: str, log_path: Path, level: int) -> logging.Logger:
    log_path.parent.mkdir(parents=True, exist_ok=True)
    log_path.parent.chmod(0o700)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False
    return logger


def setup_failclosed_audit_logger(name: str, log_path: Path, log_level: int = logging.INFO) -> logging.Logger:
    """Attach a fail-closed JSONL handler to a named audit logger.

    An audit logger writes to exactly one file: handlers left over from a
    previous path are closed and removed. Calling twice with the same path
    keeps the existing handler.

    Args:
        name: Logger name.
        log_path: JSONL file to append to (parent dirs created 0o700).
        log_level: Logger level.

    Returns:
        Configured logger whose write failures raise OSError.
    """
    logger = _prepare_logger(name, log_path, log_level)

    target = str(log_path.resolve())
    for handler in list(logger.handlers):
        if isinstance(handler, FailClosedFileHandler) and handler.baseFilename == target:
            return logger
        logger.removeHandler(handler)
        handler.close()

    handler = FailClosedFileHandler(log_path, encoding="utf-8")
    handler.setFormatter(ISO8601JsonFormatter())
    logger.addHandler(handler)
    return logger


def setup_jsonl_logger(name: str, log_path: Path, level: int = logging.INFO) -> logging.Logger:
    """Attach a JSONL file handler to a named logger.

    Idempotent per path: calling twice with the same path does not add a
    second handler. Propagation is disabled so JSONL records don't also
    reach the root logger.

    Args:
        name: Logger name.
        log_path: JSONL file to append to (parent dirs created 0o700).
        level: Logger level.

    Returns:
        Configured logger.
    """
    logger = _prepare_logger(name, log_path, level)

    target = str(log_path.resolve())
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == target:
            return logger

    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setFormatter(ISO8601JsonFormatter())
    logger.addHandler(handler)
    return logger
