"""Application configuration for institution-abac.

Defines configuration models for the engine, the rule store and logging.
User creates config via `institution-abac init`. Config is stored at the
OS-appropriate location (via platformdirs); log_dir is user-specified.

Example usage:
    # Load from config file
    config = AppConfig.load_from_files(config_path)

    # Save new configuration
    config.save_to_file(config_path)
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator

from institution_abac.constants import (
    CONFIG_FILENAME,
    DEFAULT_EVALUATION_DEADLINE_SECONDS,
    DEFAULT_PERIOD_CACHE_TTL_SECONDS,
    DEFAULT_RULE_CACHE_TTL_SECONDS,
    DEFAULT_TIMEZONE,
    LOGS_SUBDIR,
    MAX_CACHE_TTL_SECONDS,
    MAX_EVALUATION_DEADLINE_SECONDS,
    MIN_CACHE_TTL_SECONDS,
    MIN_EVALUATION_DEADLINE_SECONDS,
)
from institution_abac.utils.file_helpers import get_app_dir, load_validated_json, require_file_exists


def _check_timezone(name: str) -> str:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {name!r}") from e
    return name


# =============================================================================
# Engine Configuration
# =============================================================================


class EngineConfig(BaseModel):
    """Policy engine settings.

    Attributes:
        timezone: IANA timezone for calendar-day arithmetic.
        institution_timezones: Per-institution timezone overrides.
        deadline_seconds: Budget for one evaluation (all store/resolver calls).
        rule_cache_ttl_seconds: Rule lookup cache lifetime (0 disables).
        period_cache_ttl_seconds: Period instance cache lifetime (0 disables).
        bypass_roles: Roles allowed without any lookup (e.g., "super_admin").
            Empty by default, so every role goes through the base grant.
        error_mode: "deny" returns a DENY decision carrying the error type
            when evaluation cannot complete; "raise" re-raises it.
    """

    timezone: str = DEFAULT_TIMEZONE
    institution_timezones: dict[str, str] = Field(default_factory=dict)
    deadline_seconds: float = Field(
        default=DEFAULT_EVALUATION_DEADLINE_SECONDS,
        ge=MIN_EVALUATION_DEADLINE_SECONDS,
        le=MAX_EVALUATION_DEADLINE_SECONDS,
    )
    rule_cache_ttl_seconds: float = Field(
        default=DEFAULT_RULE_CACHE_TTL_SECONDS,
        ge=MIN_CACHE_TTL_SECONDS,
        le=MAX_CACHE_TTL_SECONDS,
    )
    period_cache_ttl_seconds: float = Field(
        default=DEFAULT_PERIOD_CACHE_TTL_SECONDS,
        ge=MIN_CACHE_TTL_SECONDS,
        le=MAX_CACHE_TTL_SECONDS,
    )
    bypass_roles: list[str] = Field(default_factory=list)
    error_mode: Literal["deny", "raise"] = "deny"

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        return _check_timezone(value)

    @field_validator("institution_timezones")
    @classmethod
    def validate_institution_timezones(cls, value: dict[str, str]) -> dict[str, str]:
        for name in value.values():
            _check_timezone(name)
        return value

    def timezone_for(self, institution_id: str | None) -> ZoneInfo:
        """Timezone used for an institution (falls back to the default)."""
        if institution_id is not None and institution_id in self.institution_timezones:
            return ZoneInfo(self.institution_timezones[institution_id])
        return ZoneInfo(self.timezone)


# =============================================================================
# Store Configuration
# =============================================================================


class StoreConfig(BaseModel):
    """Rule store settings.

    Attributes:
        rules_path: Path to rules.json (grants, rules and period instances).
    """

    rules_path: str


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging configuration settings.

    Within log_dir, logs are stored in an institution_abac_logs/ subdirectory:
        <log_dir>/
        └── institution_abac_logs/
            ├── system/
            │   └── system.jsonl
            └── audit/
                └── decisions.jsonl

    Attributes:
        log_dir: Base directory for logs.
        log_level: System log level.
        audit_decisions: Whether every decision is written to decisions.jsonl.
    """

    log_dir: str
    log_level: Literal["DEBUG", "INFO", "WARNING"] = "INFO"
    audit_decisions: bool = True

    @property
    def system_log_path(self) -> Path:
        return Path(self.log_dir) / LOGS_SUBDIR / "system" / "system.jsonl"

    @property
    def decisions_log_path(self) -> Path:
        return Path(self.log_dir) / LOGS_SUBDIR / "audit" / "decisions.jsonl"


class AppConfig(BaseModel):
    """Main application configuration for institution-abac.

    Attributes:
        engine: Policy engine settings (timezone, deadline, caches).
        store: Rule store settings (rule file location).
        logging: Logging configuration (log dir, level, audit).
    """

    engine: EngineConfig = Field(default_factory=EngineConfig)
    store: StoreConfig
    logging: LoggingConfig

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to JSON file.

        Creates parent directories if they don't exist.
        Sets secure permissions (0o700) on the config directory.

        Args:
            config_path: Path where config.json should be saved.
        """
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.parent.chmod(0o700)

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(self.model_dump(), f, indent=2)

        config_path.chmod(0o600)

    @classmethod
    def load_from_files(cls, config_path: Path) -> "AppConfig":
        """Load configuration from JSON file.

        Args:
            config_path: Path to the config file (config.json).

        Returns:
            AppConfig instance with loaded configuration.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            ValueError: If config file is invalid or missing required fields.
        """
        require_file_exists(config_path, file_type="configuration")
        return load_validated_json(
            config_path,
            cls,
            file_type="config",
            recovery_hint="Run 'institution-abac init' to reconfigure.",
            encoding="utf-8",
        )


def get_config_path() -> Path:
    """Default config.json location in the OS config directory."""
    return get_app_dir() / CONFIG_FILENAME
