"""Engine settings schema and loader.

Settings are read from ``{project_root}/form_engine.yaml`` when present and
can be overridden by environment variables (``.env`` is loaded at startup):

- ``FORM_ENGINE_SCHEMAS_DIR``: directory of block schema files that override
  or extend the bundled blocks
- ``FORM_ENGINE_BUNDLED_BLOCKS``: ``false`` to skip the bundled blocks
- ``FORM_ENGINE_LOG_LEVEL``: default log level for entry points
"""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

SETTINGS_FILENAME = "form_engine.yaml"

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class SettingsError(Exception):
    """Raised when the settings file or environment overrides are invalid."""
    pass


class EngineSettings(BaseModel):
    """Engine-wide configuration.

    Attributes:
        schemas_dir: Directory with block schema files (YAML/JSON).
        include_bundled_blocks: Whether the bundled block schemas are loaded.
        log_level: Default log level for CLI and service entry points.
    """

    schemas_dir: Optional[Path] = Field(
        default=None,
        description="Directory with block schema files overriding the bundled ones",
    )
    include_bundled_blocks: bool = Field(
        default=True,
        description="Load the block schemas shipped with the package",
    )
    log_level: str = Field(
        default="INFO",
        description="Default log level for entry points",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize the log level name."""
        level = v.strip().upper()
        if level not in _VALID_LOG_LEVELS:
            raise ValueError(f"Unknown log level '{v}'. Valid levels: {sorted(_VALID_LOG_LEVELS)}")
        return level


def _read_settings_file(path: Path) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise SettingsError(f"Invalid YAML in {path}: {e}")
    if not isinstance(data, dict):
        raise SettingsError(f"{path} must contain a mapping")
    return data


def _env_overrides() -> dict:
    overrides = {}
    schemas_dir = os.getenv("FORM_ENGINE_SCHEMAS_DIR")
    if schemas_dir:
        overrides["schemas_dir"] = schemas_dir
    bundled = os.getenv("FORM_ENGINE_BUNDLED_BLOCKS")
    if bundled:
        overrides["include_bundled_blocks"] = bundled.strip().lower() not in ("0", "false", "no")
    log_level = os.getenv("FORM_ENGINE_LOG_LEVEL")
    if log_level:
        overrides["log_level"] = log_level
    return overrides


def load_settings(project_root: Optional[Path] = None) -> EngineSettings:
    """Load settings from the project's settings file and the environment.

    Args:
        project_root: Directory holding form_engine.yaml (defaults to cwd)

    Returns:
        EngineSettings; a relative schemas_dir is resolved against project_root

    Raises:
        SettingsError: If the file or overrides are invalid
    """
    root = Path(project_root) if project_root else Path.cwd()
    data = {}

    settings_path = root / SETTINGS_FILENAME
    if settings_path.exists():
        logger.debug(f"Using settings file: {settings_path}")
        data.update(_read_settings_file(settings_path))

    data.update(_env_overrides())

    try:
        settings = EngineSettings(**data)
    except ValidationError as e:
        raise SettingsError(f"Invalid engine settings: {e}")

    if settings.schemas_dir is not None and not settings.schemas_dir.is_absolute():
        settings = settings.model_copy(update={"schemas_dir": root / settings.schemas_dir})
    return settings


_settings: Optional[EngineSettings] = None


def get_settings() -> EngineSettings:
    """Get cached settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def set_settings(settings: Optional[EngineSettings]) -> None:
    """Replace the cached settings (None clears the cache)."""
    global _settings
    _settings = settings
