"""File helpers shared by config and rule file handling."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from institution_abac.constants import CONFIG_DIR

__all__ = [
    "format_validation_error",
    "get_app_dir",
    "load_validated_json",
    "require_file_exists",
    "set_secure_permissions",
]

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_app_dir() -> Path:
    """Get the OS-appropriate config directory.

    - macOS: ~/Library/Application Support/institution-abac
    - Linux: ~/.config/institution-abac (XDG compliant)
    - Windows: C:\\Users\\<user>\\AppData\\Roaming\\institution-abac
    """
    return Path(CONFIG_DIR)


def set_secure_permissions(path: Path, *, is_directory: bool = False) -> None:
    """Restrict access to owner (0o700 for directories, 0o600 for files)."""
    os.chmod(path, 0o700 if is_directory else 0o600)


def require_file_exists(path: Path, *, file_type: str) -> None:
    """Raise FileNotFoundError with a readable message if path is missing."""
    if not path.exists():
        raise FileNotFoundError(
            f"{file_type.capitalize()} file not found at {path}.\n"
            "Run 'institution-abac init' to create it."
        )


def format_validation_error(error: ValidationError) -> str:
    """Render a pydantic ValidationError as indented "loc: msg" lines."""
    lines = []
    for item in error.errors():
        loc = ".".join(str(x) for x in item["loc"])
        lines.append(f"  - {loc}: {item['msg']}")
    return "\n".join(lines)


def load_validated_json(
    path: Path,
    model: type[ModelT],
    *,
    file_type: str,
    recovery_hint: str,
    encoding: str = "utf-8",
) -> ModelT:
    """Load a JSON file and validate it against a pydantic model.

    Raises:
        ValueError: If the file contains invalid JSON or fails validation.
        OSError: If the file cannot be read.
    """
    try:
        with path.open(encoding=encoding) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {file_type} file {path}: {e}\n{recovery_hint}") from e

    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ValueError(
            f"Invalid {file_type} in {path}:\n" + format_validation_error(e) + f"\n\n{recovery_hint}"
        ) from e
