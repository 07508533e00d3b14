"""Data models for board positions, log entries, and game states.

Modules:
    position: Board coordinates and spreadsheet-style labels.
    log_entry: A single recorded action or day boundary.
    log_book: The append-only history of a game.
    game_state: Engine-produced states (pydantic).
"""

from __future__ import annotations

from tankgame.models.game_state import Board, GameState, PlayerInfo, Unit
from tankgame.models.log_book import LogBook
from tankgame.models.log_entry import (
    LogEntry,
    disable_test_mode_timestamps,
    enable_test_mode_timestamps,
    is_die_roll,
    make_timestamp,
)
from tankgame.models.position import Position


__all__ = [
    "Position",
    "LogEntry",
    "LogBook",
    "GameState",
    "PlayerInfo",
    "Unit",
    "Board",
    "make_timestamp",
    "enable_test_mode_timestamps",
    "disable_test_mode_timestamps",
    "is_die_roll",
]
