"""System (operational) logging."""

from institution_abac.telemetry.system.system_logger import configure_system_logger, get_system_logger

__all__ = [
    "configure_system_logger",
    "get_system_logger",
]
