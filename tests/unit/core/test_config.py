"""Tests for configuration management."""

from __future__ import annotations

from pathlib import Path

import pytest

from tankgame.core.config import (
    EngineSettings,
    GameSettings,
    Settings,
    StorageSettings,
    clear_settings_cache,
    get_settings,
)
from tankgame.core.exceptions import ConfigurationError


class TestEngineSettings:
    """Tests for EngineSettings configuration."""

    def test_default_values(self) -> None:
        """Test default engine settings."""
        settings = EngineSettings()

        assert settings.command is None
        assert settings.search_dir == Path("engine")
        assert settings.timeout_seconds == 3.0
        assert settings.start_retries == 3

    def test_command_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the engine command is read as a JSON list."""
        monkeypatch.setenv("TANKGAME_ENGINE_COMMAND", '["java", "-jar", "engine/TankGame.jar"]')

        settings = EngineSettings()

        assert settings.command == ["java", "-jar", "engine/TankGame.jar"]

    def test_timeout_must_be_positive(self) -> None:
        """Test that a zero timeout is rejected."""
        with pytest.raises(ValueError):
            EngineSettings(timeout_seconds=0)


class TestGameSettings:
    """Tests for GameSettings configuration."""

    def test_default_version(self) -> None:
        """Test the default ruleset."""
        assert GameSettings().default_version == "default-v3"

    def test_unknown_version_rejected(self) -> None:
        """Test that only known rulesets are accepted."""
        with pytest.raises(ValueError):
            GameSettings(default_version="default-v9")


class TestStorageSettings:
    """Tests for StorageSettings configuration."""

    def test_default_path_created(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test default save directory is created."""
        monkeypatch.chdir(tmp_path)

        settings = StorageSettings()

        assert settings.save_dir == Path("games")
        assert (tmp_path / "games").is_dir()

    def test_custom_path(self, tmp_path: Path) -> None:
        """Test custom save directory."""
        custom = tmp_path / "saves" / "nested"

        settings = StorageSettings(save_dir=custom)

        assert settings.save_dir == custom
        assert custom.exists()


class TestSettings:
    """Tests for main Settings configuration."""

    def test_default_settings(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test default settings initialization."""
        monkeypatch.chdir(tmp_path)

        settings = Settings()

        assert settings.log_json is False
        assert settings.engine.read_limit == 16 * 1024 * 1024
        assert settings.log_level == "INFO"
        assert settings.engine.timeout_seconds == 3.0
        assert settings.game.default_version == "default-v3"

    def test_env_overrides(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        mock_env_vars: dict[str, str],
    ) -> None:
        """Test environment variables reach every section."""
        monkeypatch.chdir(tmp_path)

        settings = Settings()

        assert settings.log_json is True
        assert settings.engine.read_limit == 1048576
        assert settings.log_level == "DEBUG"
        assert settings.engine.timeout_seconds == 5.5
        assert settings.game.default_version == "default-v4"


class TestGetSettings:
    """Tests for get_settings singleton function."""

    def test_caching(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that settings are cached."""
        monkeypatch.chdir(tmp_path)

        assert get_settings() is get_settings()

    def test_cache_clear(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that cache can be cleared."""
        monkeypatch.chdir(tmp_path)

        settings1 = get_settings()
        clear_settings_cache()
        settings2 = get_settings()

        assert settings1 is not settings2

    def test_invalid_settings_raise_configuration_error(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test that load failures are wrapped."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("TANKGAME_LOG_LEVEL", "VERBOSE")

        with pytest.raises(ConfigurationError) as exc_info:
            get_settings()

        assert "original_error" in exc_info.value.details
