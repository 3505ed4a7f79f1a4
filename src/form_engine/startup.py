"""Centralized initialization for all form_engine entry points.

This module provides a single point of initialization for:
- Environment variables (.env loading)
- Engine settings (form_engine.yaml + environment overrides)
- The process-wide schema registry (block schemas loaded once)

Entry points (CLI, services embedding the engine) call ensure_initialized()
so schema defects surface at startup, never at request time.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from form_engine.config import EngineSettings, load_settings, set_settings
from form_engine.runtime.registry import get_registry, reset_registry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineState:
    """Engine state after initialization."""

    project_root: Path
    settings: EngineSettings
    block_types: List[str]
    env_loaded: bool = False


# Module-level state
_state: Optional[EngineState] = None


def _find_project_root(start_path: Optional[Path] = None) -> Path:
    """Find project root by looking for form_engine.yaml or pyproject.toml.

    Args:
        start_path: Starting path for search. Defaults to the working directory.

    Returns:
        Project root directory.
    """
    current = start_path or Path.cwd()
    for parent in [current] + list(current.parents):
        if (parent / "form_engine.yaml").exists():
            return parent
        if (parent / "pyproject.toml").exists():
            return parent
    return current


def _load_env(project_root: Path) -> bool:
    """Load .env file from project root.

    Returns:
        True if .env was loaded, False otherwise.
    """
    env_path = project_root / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        logger.debug(f"Loaded .env from {env_path}")
        return True
    logger.debug(f".env not found at {env_path}")
    return False


def ensure_initialized(start_path: Optional[Path] = None) -> EngineState:
    """Ensure the engine is initialized (idempotent).

    Loads .env, settings and every block schema on first call. Subsequent
    calls return cached state.

    Raises:
        SchemaError: If any block schema is invalid (fatal at startup)
        SettingsError: If the settings are invalid
    """
    global _state

    if _state is not None:
        return _state

    project_root = _find_project_root(start_path)
    env_loaded = _load_env(project_root)
    settings = load_settings(project_root)
    set_settings(settings)
    reset_registry()
    registry = get_registry()

    _state = EngineState(
        project_root=project_root,
        settings=settings,
        block_types=registry.block_types(),
        env_loaded=env_loaded,
    )
    return _state


def reset_for_testing() -> None:
    """Reset initialization state for test isolation.

    Should only be used in tests.
    """
    global _state
    _state = None
    set_settings(None)
    reset_registry()
