"""JSON game files.

A game file holds everything needed to rebuild a game: the ruleset
name, the initial state, and the log book. Derived states are never
stored; they are replayed from the log book on load.

File layout::

    {
        "fileFormatVersion": 7,
        "gameVersion": "default-v3",
        "initialGameState": {...},
        "logBook": {"gameVersion": "default-v3", "rawEntries": [...]}
    }
"""

from __future__ import annotations

import asyncio
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError

from tankgame.core.config import get_settings
from tankgame.core.constants import FILE_FORMAT_VERSION, MINIMUM_SUPPORTED_FILE_FORMAT_VERSION
from tankgame.core.exceptions import PersistenceError, TankGameError
from tankgame.core.logging import get_logger
from tankgame.models.game_state import GameState
from tankgame.models.log_book import LogBook
from tankgame.versions import get_game_version


if TYPE_CHECKING:
    from tankgame.engine.protocol import SaveHandler

logger = get_logger(__name__)


# =============================================================================
# Game File
# =============================================================================


@dataclass
class GameFile:
    """The persisted form of a game.

    Attributes:
        game_version: Ruleset name.
        initial_state: State before the first log entry.
        log_book: The game's log book.
    """

    game_version: str
    initial_state: GameState
    log_book: LogBook

    @classmethod
    def from_raw(cls, content: Any, *, path: str | None = None) -> GameFile:
        """Build a game file from decoded JSON.

        Raises:
            PersistenceError: If the format version is missing, unsupported, or the content is invalid.
        """
        if not isinstance(content, dict) or content.get("fileFormatVersion") is None:
            raise PersistenceError("File format version missing, not a valid game file", path=path)

        file_version = content["fileFormatVersion"]
        if file_version > FILE_FORMAT_VERSION:
            raise PersistenceError(
                f"File version {file_version} is not supported. Try a newer version of tankgame.",
                path=path,
                details={"file_format_version": file_version},
            )
        if file_version < MINIMUM_SUPPORTED_FILE_FORMAT_VERSION:
            raise PersistenceError(
                f"File version {file_version} is no longer supported. Try an older version of tankgame.",
                path=path,
                details={"file_format_version": file_version},
            )

        try:
            game_version = content["gameVersion"]
            # Fails for rulesets this package has no configuration for
            get_game_version(game_version)

            raw_log_book = content.get("logBook") or {}
            log_book = LogBook.deserialize(
                {
                    "gameVersion": raw_log_book.get("gameVersion", game_version),
                    "rawEntries": raw_log_book.get("rawEntries", []),
                }
            )
            initial_state = GameState.from_dict(content["initialGameState"])
        except KeyError as exc:
            raise PersistenceError(f"Game file is missing {exc.args[0]}", path=path) from exc
        except PydanticValidationError as exc:
            raise PersistenceError(f"Game file has an invalid initial state: {exc}", path=path) from exc
        except TankGameError as exc:
            raise PersistenceError(f"Game file is invalid: {exc.message}", path=path, details=exc.details) from exc

        return cls(game_version=game_version, initial_state=initial_state, log_book=log_book)

    def to_raw(self) -> dict[str, Any]:
        return {
            "fileFormatVersion": FILE_FORMAT_VERSION,
            "gameVersion": self.game_version,
            "initialGameState": self.initial_state.to_dict(),
            "logBook": self.log_book.serialize(),
        }

    @classmethod
    def load(cls, path: Path | str) -> GameFile:
        """Read a game file.

        Raises:
            PersistenceError: If the file cannot be read or is not a valid game file.
        """
        path = Path(path)
        try:
            content = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise PersistenceError(f"Failed to read game file: {exc}", path=str(path)) from exc

        game_file = cls.from_raw(content, path=str(path))
        logger.info("Game file loaded", path=str(path), entries=len(game_file.log_book))
        return game_file

    def save(self, path: Path | str) -> None:
        save_game(path, self.initial_state, self.log_book)


# =============================================================================
# Saving
# =============================================================================


def save_game(path: Path | str, initial_state: GameState, log_book: LogBook) -> None:
    """Write a game file, replacing any existing one atomically.

    Raises:
        PersistenceError: If the file cannot be written.
    """
    path = Path(path)
    game_file = GameFile(game_version=log_book.game_version, initial_state=initial_state, log_book=log_book)
    tmp_path = path.with_name(f".{path.name}.tmp")

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path.write_text(json.dumps(game_file.to_raw(), indent=4), encoding="utf-8")
        os.replace(tmp_path, path)
    except OSError as exc:
        raise PersistenceError(f"Failed to save game file: {exc}", path=str(path)) from exc

    logger.debug("Game file saved", path=str(path), entries=len(log_book))


def make_save_handler(path: Path | str) -> SaveHandler:
    """Return a save handler writing to ``path`` off the event loop."""
    path = Path(path)

    async def save_handler(initial_state: GameState, log_book: LogBook) -> None:
        await asyncio.to_thread(save_game, path, initial_state, log_book)

    return save_handler


def game_file_path(name: str) -> Path:
    """Path of the game file called ``name`` in the configured save directory."""
    return get_settings().storage.save_dir / f"{name}.json"


__all__ = [
    "GameFile",
    "save_game",
    "make_save_handler",
    "game_file_path",
]
