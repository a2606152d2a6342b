"""Rule file loader - load and save rules.json.

The rule file holds grants, contextual rules and period instances. It is
written by administrative tooling and read by FileStore.

Features:
- Secure file permissions (0o700 for directory, 0o600 for file)
- Detailed validation error messages
- Atomic writes (temp file + rename)
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from institution_abac.constants import RULES_FILENAME
from institution_abac.exceptions import ConfigurationError
from institution_abac.pdp.policy import RuleSet, create_empty_rule_set
from institution_abac.utils.file_helpers import (
    format_validation_error,
    get_app_dir,
    set_secure_permissions,
)

__all__ = [
    "create_default_rules_file",
    "get_rules_path",
    "load_rule_set",
    "rules_exist",
    "save_rule_set",
]


def get_rules_path() -> Path:
    """Get the default rules.json path in the config directory."""
    return get_app_dir() / RULES_FILENAME


def load_rule_set(path: Path | None = None) -> RuleSet:
    """Load and validate the rule file.

    Args:
        path: Path to rules.json. If None, uses default location.

    Returns:
        RuleSet loaded from file.

    Raises:
        FileNotFoundError: If the rule file does not exist.
        OSError: If the rule file cannot be read.
        ConfigurationError: If the file contains invalid JSON or schema,
            or two rules share an id.
    """
    rules_path = path or get_rules_path()

    with rules_path.open(encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in rule file {rules_path}: {e}") from e

    try:
        rule_set = RuleSet.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid rule configuration in {rules_path}:\n" + format_validation_error(e)
        ) from e

    _check_unique_ids(rule_set, rules_path)
    return rule_set


def _check_unique_ids(rule_set: RuleSet, rules_path: Path) -> None:
    seen: set[str] = set()
    for rule in rule_set.all_rules():
        if rule.id in seen:
            raise ConfigurationError(f"Duplicate rule id {rule.id!r} in {rules_path}")
        seen.add(rule.id)


def save_rule_set(rule_set: RuleSet, path: Path | None = None) -> None:
    """Save the rule file atomically.

    Write to a temp file in the same directory, then rename, so readers
    never see a half-written file.

    Args:
        rule_set: RuleSet to save.
        path: Path to save to. If None, uses default location.
    """
    rules_path = path or get_rules_path()

    rules_path.parent.mkdir(parents=True, exist_ok=True)
    set_secure_permissions(rules_path.parent, is_directory=True)

    content = json.dumps(rule_set.model_dump(mode="json"), indent=2) + "\n"

    fd, temp_path = tempfile.mkstemp(
        dir=rules_path.parent,
        prefix=".rules_",
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

        os.chmod(temp_path, 0o600)
        os.replace(temp_path, rules_path)

    except Exception:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise


def rules_exist(path: Path | None = None) -> bool:
    """Check if the rule file exists."""
    return (path or get_rules_path()).exists()


def create_default_rules_file(path: Path | None = None) -> RuleSet:
    """Create an empty rule file.

    Raises:
        FileExistsError: If the rule file already exists.
    """
    rules_path = path or get_rules_path()

    if rules_path.exists():
        raise FileExistsError(f"Rule file already exists: {rules_path}")

    rule_set = create_empty_rule_set()
    save_rule_set(rule_set, rules_path)
    return rule_set
