"""Configuration management for the tank game core.

This module provides centralized configuration using pydantic-settings,
supporting environment variables, .env files, and runtime overrides.

Example:
    >>> from tankgame.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.engine.timeout_seconds
    3.0

Environment Variables:
    TANKGAME_ENGINE_COMMAND: Command used to start the rules engine
    TANKGAME_ENGINE_SEARCH_DIR: Directory searched for engine jars
    TANKGAME_ENGINE_TIMEOUT_SECONDS: Per-request engine timeout
    TANKGAME_ENGINE_READ_LIMIT: Largest engine response in bytes
    TANKGAME_GAME_DEFAULT_VERSION: Ruleset used for new games
    TANKGAME_SAVE_DIR: Directory holding game files
    TANKGAME_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tankgame.core.constants import ENGINE_READ_LIMIT
from tankgame.core.exceptions import ConfigurationError


class EngineSettings(BaseSettings):
    """Configuration for the external rules engine process.

    Attributes:
        command: Explicit command line used to start the engine.
        search_dir: Directory searched for engine jars when no command is set.
        timeout_seconds: Timeout applied to every engine request.
        start_retries: Attempts made when spawning the engine process.
        read_limit: Largest response line accepted from the engine, in bytes.
    """

    model_config = SettingsConfigDict(
        env_prefix="TANKGAME_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    command: list[str] | None = Field(
        default=None,
        description="Command line used to start the engine",
    )
    search_dir: Path = Field(
        default=Path("engine"),
        description="Directory searched for engine jars",
    )
    timeout_seconds: float = Field(
        default=3.0,
        gt=0,
        le=120,
        description="Per-request engine timeout",
    )
    start_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts made when spawning the engine",
    )
    read_limit: int = Field(
        default=ENGINE_READ_LIMIT,
        ge=64 * 1024,
        description="Largest engine response line in bytes",
    )


class GameSettings(BaseSettings):
    """Configuration for game version handling.

    Attributes:
        default_version: Ruleset used when a game does not name one.
        test_mode_timestamps: Use deterministic log entry timestamps.
    """

    model_config = SettingsConfigDict(
        env_prefix="TANKGAME_GAME_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_version: Literal["default-v3", "default-v4", "default-v5"] = Field(
        default="default-v3",
        description="Ruleset used for new games",
    )
    test_mode_timestamps: bool = Field(
        default=False,
        description="Advance log entry timestamps by 20 minutes per entry",
    )


class StorageSettings(BaseSettings):
    """Configuration for game file storage.

    Attributes:
        save_dir: Directory holding game files.
    """

    model_config = SettingsConfigDict(
        env_prefix="TANKGAME_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    save_dir: Path = Field(
        default=Path("games"),
        description="Directory holding game files",
    )

    @field_validator("save_dir", mode="after")
    @classmethod
    def ensure_directory_exists(cls, value: Path) -> Path:
        """Create the save directory if necessary.

        Args:
            value: The path to validate and potentially create.

        Returns:
            The validated path.
        """
        value.mkdir(parents=True, exist_ok=True)
        return value


class Settings(BaseSettings):
    """Main application settings aggregating all configuration domains.

    Attributes:
        log_level: Application logging level.
        log_json: Emit JSON logs instead of console output.
        engine: Engine process settings.
        game: Game version settings.
        storage: Game file settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="TANKGAME_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Emit JSON logs",
    )

    engine: EngineSettings = Field(default_factory=EngineSettings)
    game: GameSettings = Field(default_factory=GameSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The application Settings instance.

    Raises:
        ConfigurationError: If configuration is missing or invalid.
    """
    try:
        return Settings()
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load application settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access."""
    get_settings.cache_clear()


__all__ = [
    "EngineSettings",
    "GameSettings",
    "StorageSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
