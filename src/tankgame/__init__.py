"""tankgame - turn processing core for Tank Game.

Keeps a game's append-only log book, replays it against an external
rules engine to derive game states, accepts new entries in strict FIFO
order, and computes the actions each player may take next.

ARCHITECTURE:
- The rules engine owns the RULES (it is stateful and reached over JSON lines)
- The log book owns the HISTORY (states are always re-derivable from it)
- Dice are rolled here, at submission time, never by the engine

Example:
    >>> from tankgame import GameInteractor, GameState, LogBook, get_game_version
    >>>
    >>> version = get_game_version("default-v3")
    >>> interactor = await GameInteractor.create(
    ...     engine,
    ...     initial_state=GameState(),
    ...     log_book=LogBook(version.name),
    ...     version=version,
    ... )
    >>> await interactor.add_log_book_entry({"action": "start_of_day", "day": 1})
    >>> actions = await interactor.get_possible_actions("Ted")

Modules:
    core: Configuration, logging, and base exceptions.
    models: Positions, log entries, the log book, and game states.
    actions: Possible actions, field specs, dice, and action sources.
    engine: The GameInteractor and the engine transport.
    versions: Per-ruleset configuration and log entry formatting.
    storage: JSON game files.
"""

from __future__ import annotations

# Core
from tankgame.core.config import Settings, get_settings
from tankgame.core.exceptions import TankGameError
from tankgame.core.logging import configure_logging, get_logger

# Models
from tankgame.models import GameState, LogBook, LogEntry, Position

# Actions
from tankgame.actions import (
    ActionError,
    Dice,
    GenericPossibleAction,
    PossibleActionSourceSet,
)

# Engine
from tankgame.engine import GameInteractor, GameManager, InteractorStatus, RulesEngine

# Versions & storage
from tankgame.versions import GameVersion, get_game_version
from tankgame.storage import GameFile, make_save_handler


__version__ = "0.1.0"
__author__ = "Tank Game Team"
__all__ = [
    # Version info
    "__version__",
    "__author__",
    # Core
    "TankGameError",
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    # Models
    "Position",
    "LogEntry",
    "LogBook",
    "GameState",
    # Actions
    "ActionError",
    "Dice",
    "GenericPossibleAction",
    "PossibleActionSourceSet",
    # Engine
    "GameInteractor",
    "InteractorStatus",
    "GameManager",
    "RulesEngine",
    # Versions & storage
    "GameVersion",
    "get_game_version",
    "GameFile",
    "make_save_handler",
]
