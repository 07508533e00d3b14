"""Storage module for tankgame persistence.

Provides JSON game files holding the initial state and the log book.
"""

from tankgame.storage.game_file import GameFile, game_file_path, make_save_handler, save_game

__all__ = [
    "GameFile",
    "save_game",
    "make_save_handler",
    "game_file_path",
]
