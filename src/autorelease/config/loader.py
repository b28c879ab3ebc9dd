"""Locate and load ``[tool.autorelease]`` from pyproject.toml."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from autorelease.config.models import AutoReleaseConfig
from autorelease.exceptions import ConfigNotFoundError, ConfigValidationError

logger = logging.getLogger(__name__)

TOOL_SECTION = "autorelease"


def find_pyproject_toml(start: Path | None = None) -> Path:
    """Walk up from ``start`` (default: cwd) to the nearest pyproject.toml.

    Raises:
        ConfigNotFoundError: If no pyproject.toml exists up to the filesystem root
    """
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / "pyproject.toml"
        if candidate.is_file():
            return candidate
    raise ConfigNotFoundError(f"No pyproject.toml found in {current} or its parents")


def load_pyproject_toml(path: Path) -> dict[str, Any]:
    """Parse a pyproject.toml file.

    Raises:
        ConfigNotFoundError: If the file does not exist
        ConfigValidationError: If the file is not valid TOML
    """
    if not path.is_file():
        raise ConfigNotFoundError(f"Config file not found: {path}")
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigValidationError(f"Invalid TOML in {path}: {e}") from e


def extract_autorelease_config(pyproject: dict[str, Any]) -> dict[str, Any]:
    """Return the ``[tool.autorelease]`` table, or an empty dict."""
    return dict(pyproject.get("tool", {}).get(TOOL_SECTION, {}))


def load_config(path: Path | None = None) -> AutoReleaseConfig:
    """Load configuration for the project at ``path``.

    A pyproject.toml without an ``[tool.autorelease]`` table yields the
    defaults; a missing pyproject.toml is an error.

    Args:
        path: Project directory or pyproject.toml path (default: cwd)

    Raises:
        ConfigNotFoundError: If pyproject.toml cannot be found
        ConfigValidationError: If the configuration is invalid
    """
    if path is not None and path.is_file():
        pyproject_path = path
    else:
        pyproject_path = find_pyproject_toml(path)

    raw = extract_autorelease_config(load_pyproject_toml(pyproject_path))
    try:
        config = AutoReleaseConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigValidationError(
            f"Invalid [tool.{TOOL_SECTION}] configuration in {pyproject_path}",
            hint=_summarize_validation_error(e),
        ) from e

    logger.debug("Loaded configuration from %s", pyproject_path)
    return config


def _summarize_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item["loc"]) or "<root>"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)
