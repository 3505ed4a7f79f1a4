"""Engine configuration management."""

from form_engine.config.settings import (
    EngineSettings,
    SettingsError,
    get_settings,
    load_settings,
    set_settings,
)

__all__ = [
    "EngineSettings",
    "SettingsError",
    "get_settings",
    "load_settings",
    "set_settings",
]
