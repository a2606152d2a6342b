"""Logging setup helpers."""

from institution_abac.utils.logging.logger_setup import (
    FailClosedFileHandler,
    ISO8601JsonFormatter,
    setup_failclosed_audit_logger,
    setup_jsonl_logger,
)

__all__ = [
    "FailClosedFileHandler",
    "ISO8601JsonFormatter",
    "setup_failclosed_audit_logger",
    "setup_jsonl_logger",
]
