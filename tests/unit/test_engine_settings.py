"""Tests for engine settings and startup initialization."""

import pytest
import yaml

from form_engine.config import EngineSettings, SettingsError, get_settings, load_settings, set_settings
from form_engine.errors import SchemaError
from form_engine.startup import ensure_initialized, reset_for_testing


ENV_VARS = ("FORM_ENGINE_SCHEMAS_DIR", "FORM_ENGINE_BUNDLED_BLOCKS", "FORM_ENGINE_LOG_LEVEL")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Isolate tests from engine variables in the environment (and .env loads)."""
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def _write_settings(root, data):
    (root / "form_engine.yaml").write_text(yaml.safe_dump(data), encoding="utf-8")


def _write_notes_block(directory):
    directory.mkdir(parents=True, exist_ok=True)
    doc = {"blockType": "notes", "fields": [{"id": "text"}]}
    (directory / "notes.yaml").write_text(yaml.safe_dump(doc), encoding="utf-8")


class TestEngineSettings:
    """Tests for the settings model."""

    def test_defaults(self):
        settings = EngineSettings()
        assert settings.schemas_dir is None
        assert settings.include_bundled_blocks is True
        assert settings.log_level == "INFO"

    def test_log_level_normalized(self):
        assert EngineSettings(log_level=" debug ").log_level == "DEBUG"

    def test_unknown_log_level(self):
        with pytest.raises(ValueError):
            EngineSettings(log_level="chatty")


class TestLoadSettings:
    """Tests for file and environment loading."""

    def test_no_file_gives_defaults(self, tmp_path):
        assert load_settings(tmp_path) == EngineSettings()

    def test_reads_file(self, tmp_path):
        _write_settings(tmp_path, {"include_bundled_blocks": False, "log_level": "warning"})
        settings = load_settings(tmp_path)
        assert settings.include_bundled_blocks is False
        assert settings.log_level == "WARNING"

    def test_relative_schemas_dir_resolved(self, tmp_path):
        _write_settings(tmp_path, {"schemas_dir": "config/blocks"})
        assert load_settings(tmp_path).schemas_dir == tmp_path / "config" / "blocks"

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        _write_settings(tmp_path, {"log_level": "INFO", "include_bundled_blocks": True})
        monkeypatch.setenv("FORM_ENGINE_LOG_LEVEL", "ERROR")
        monkeypatch.setenv("FORM_ENGINE_BUNDLED_BLOCKS", "false")
        monkeypatch.setenv("FORM_ENGINE_SCHEMAS_DIR", str(tmp_path / "blocks"))

        settings = load_settings(tmp_path)
        assert settings.log_level == "ERROR"
        assert settings.include_bundled_blocks is False
        assert settings.schemas_dir == tmp_path / "blocks"

    def test_invalid_yaml(self, tmp_path):
        (tmp_path / "form_engine.yaml").write_text("log_level: [", encoding="utf-8")
        with pytest.raises(SettingsError, match="Invalid YAML"):
            load_settings(tmp_path)

    def test_non_mapping_file(self, tmp_path):
        (tmp_path / "form_engine.yaml").write_text("- INFO\n", encoding="utf-8")
        with pytest.raises(SettingsError, match="mapping"):
            load_settings(tmp_path)

    def test_invalid_value(self, tmp_path):
        _write_settings(tmp_path, {"log_level": "chatty"})
        with pytest.raises(SettingsError, match="Invalid engine settings"):
            load_settings(tmp_path)

    def test_unknown_environment_level(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FORM_ENGINE_LOG_LEVEL", "loud")
        with pytest.raises(SettingsError):
            load_settings(tmp_path)


class TestCachedSettings:
    def test_set_and_get(self):
        custom = EngineSettings(log_level="DEBUG")
        set_settings(custom)
        assert get_settings() is custom

    def test_cleared_cache_reloads(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        _write_settings(tmp_path, {"log_level": "ERROR"})
        set_settings(None)
        assert get_settings().log_level == "ERROR"


class TestStartup:
    """Tests for ensure_initialized."""

    def test_initializes_from_project_root(self, tmp_path):
        _write_notes_block(tmp_path / "blocks")
        _write_settings(tmp_path, {"schemas_dir": "blocks"})
        nested = tmp_path / "sub" / "dir"
        nested.mkdir(parents=True)

        state = ensure_initialized(nested)
        assert state.project_root == tmp_path
        assert state.env_loaded is False
        assert "notes" in state.block_types
        assert "gmail" in state.block_types

    def test_idempotent(self, tmp_path):
        _write_settings(tmp_path, {})
        first = ensure_initialized(tmp_path)
        assert ensure_initialized(tmp_path) is first

    def test_env_file_loaded(self, tmp_path):
        _write_notes_block(tmp_path / "blocks")
        _write_settings(tmp_path, {"schemas_dir": "blocks"})
        (tmp_path / ".env").write_text("FORM_ENGINE_BUNDLED_BLOCKS=false\n", encoding="utf-8")

        state = ensure_initialized(tmp_path)
        assert state.env_loaded is True
        assert state.settings.include_bundled_blocks is False
        assert state.block_types == ["notes"]

    def test_invalid_block_is_fatal(self, tmp_path):
        blocks = tmp_path / "blocks"
        blocks.mkdir()
        (blocks / "bad.yaml").write_text("blockType: bad\nfields: []\n", encoding="utf-8")
        _write_settings(tmp_path, {"schemas_dir": "blocks"})

        with pytest.raises(SchemaError):
            ensure_initialized(tmp_path)

    def test_reset_for_testing(self, tmp_path):
        _write_settings(tmp_path, {})
        first = ensure_initialized(tmp_path)
        reset_for_testing()
        assert ensure_initialized(tmp_path) is not first
