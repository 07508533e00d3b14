"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        TankGameError: Base exception for all application errors.
        GameEngineError: Errors raised while driving the rules engine.
        LogBookError: Log book access errors.

    Configuration:
        Settings: Main application settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up application logging.
        get_logger: Get a configured logger instance.
        bind_game_context: Tag the current task's events with a game.
        operation_context: Tag events with the running interactor operation.
"""

from __future__ import annotations

from tankgame.core.config import (
    EngineSettings,
    GameSettings,
    Settings,
    StorageSettings,
    clear_settings_cache,
    get_settings,
)
from tankgame.core.exceptions import (
    ConfigurationError,
    DiceRollError,
    EngineRejectedActionError,
    EngineUnavailableError,
    FieldSpecError,
    GameEngineError,
    InvalidPositionError,
    LogBookError,
    OutOfRangeError,
    PersistenceError,
    RangeInconsistencyError,
    StateDesyncError,
    TankGameError,
    ValidationError,
)
from tankgame.core.logging import (
    bind_game_context,
    configure_logging,
    get_logger,
    operation_context,
)


__all__ = [
    # Base exception
    "TankGameError",
    # Engine exceptions
    "GameEngineError",
    "RangeInconsistencyError",
    "StateDesyncError",
    "EngineRejectedActionError",
    "EngineUnavailableError",
    "DiceRollError",
    # Log book exceptions
    "LogBookError",
    "OutOfRangeError",
    # Configuration, validation & persistence
    "ConfigurationError",
    "ValidationError",
    "InvalidPositionError",
    "FieldSpecError",
    "PersistenceError",
    # Configuration
    "Settings",
    "EngineSettings",
    "GameSettings",
    "StorageSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "get_logger",
    "bind_game_context",
    "operation_context",
]
