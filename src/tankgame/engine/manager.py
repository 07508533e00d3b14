"""Games and the engines that run them.

The EngineManager picks, for every registered game version, the first
engine program that supports it. The GameManager owns the games in a
save directory: it opens each one as a GameInteractor on demand, with
autosave to its game file.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from tankgame.core.config import Settings, get_settings
from tankgame.core.exceptions import ConfigurationError, PersistenceError
from tankgame.core.logging import configure_logging, get_logger
from tankgame.engine.interactor import GameInteractor
from tankgame.engine.subprocess_engine import discover_engine_factories, find_factory_for_version
from tankgame.models.log_book import LogBook
from tankgame.models.log_entry import enable_test_mode_timestamps
from tankgame.storage.game_file import GameFile, make_save_handler, save_game
from tankgame.versions import get_all_versions, get_game_version


if TYPE_CHECKING:
    from tankgame.actions.dice import RandomSource
    from tankgame.engine.protocol import RulesEngine
    from tankgame.engine.subprocess_engine import EngineFactory
    from tankgame.models.game_state import GameState

logger = get_logger(__name__)


class EngineManager:
    """Maps game versions to the engine factories that run them."""

    def __init__(self, factories: Sequence[EngineFactory]) -> None:
        self._factory_for_version: dict[str, EngineFactory] = {}
        for version in get_all_versions():
            try:
                self._factory_for_version[version] = find_factory_for_version(factories, version)
            except ConfigurationError:
                logger.warning("No engine supports game version", version=version)

        logger.info(
            "Engines assigned",
            engines={version: factory.pretty_version for version, factory in self._factory_for_version.items()},
        )

    @property
    def supported_versions(self) -> list[str]:
        return list(self._factory_for_version)

    def get_engine_factory(self, version: str) -> EngineFactory:
        """Return the factory for ``version``.

        Raises:
            ConfigurationError: If no engine supports that version.
        """
        factory = self._factory_for_version.get(version)
        if factory is None:
            raise ConfigurationError(
                f"No engine supports game version {version}",
                config_key="engine.command",
                details={"supported": self.supported_versions},
            )
        return factory

    async def create_engine(self, version: str) -> RulesEngine:
        return await self.get_engine_factory(version).create_engine(version)


class GameManager:
    """Opens and creates the games stored in one directory.

    Example:
        >>> manager = await GameManager.from_settings()
        >>> interactor = await manager.open_game("season-3")
    """

    def __init__(
        self,
        engine_manager: EngineManager,
        save_dir: Path | str,
        *,
        default_version: str = "default-v3",
        rng: RandomSource | None = None,
    ) -> None:
        self.engine_manager = engine_manager
        self.save_dir = Path(save_dir)
        self.default_version = default_version
        self._rng = rng
        self._games: dict[str, asyncio.Task[GameInteractor]] = {}

    @classmethod
    async def from_settings(cls, settings: Settings | None = None) -> GameManager:
        """Configure logging, discover engines, and use the configured save directory."""
        settings = settings or get_settings()
        configure_logging(level=settings.log_level, json_format=settings.log_json)
        if settings.game.test_mode_timestamps:
            enable_test_mode_timestamps()

        factories = await discover_engine_factories(settings.engine)
        return cls(
            EngineManager(factories),
            settings.storage.save_dir,
            default_version=settings.game.default_version,
        )

    def _path_for(self, name: str) -> Path:
        return self.save_dir / f"{name}.json"

    def get_game_names(self) -> list[str]:
        """Names of every game file in the save directory."""
        if not self.save_dir.is_dir():
            return []
        return sorted(path.stem for path in self.save_dir.glob("*.json"))

    async def open_game(self, name: str) -> GameInteractor:
        """Return the interactor for ``name``, loading and replaying it on first use.

        Raises:
            PersistenceError: If the game file cannot be loaded.
            ConfigurationError: If no engine supports the game's version.
        """
        if name not in self._games:
            self._games[name] = asyncio.create_task(self._open(name))
        return await self._await_game(name)

    async def _open(self, name: str) -> GameInteractor:
        path = self._path_for(name)
        game_file = GameFile.load(path)
        logger.info("Opening game", game=name, version=game_file.game_version, entries=len(game_file.log_book))
        return await self._start(name, path, game_file.game_version, game_file.initial_state, game_file.log_book)

    async def _await_game(self, name: str) -> GameInteractor:
        # Concurrent callers share one task, so a game has a single interactor
        task = self._games[name]
        try:
            return await asyncio.shield(task)
        except Exception:
            if task.done() and self._games.get(name) is task:
                del self._games[name]
            raise

    async def create_game(
        self,
        name: str,
        initial_state: GameState,
        *,
        version: str | None = None,
    ) -> GameInteractor:
        """Create a new game file and open it.

        Raises:
            PersistenceError: If a game with that name already exists.
            ConfigurationError: If the version is unknown or unsupported.
        """
        path = self._path_for(name)
        if name in self._games or path.exists():
            raise PersistenceError(f"Game {name} already exists", path=str(path))

        version = version or self.default_version
        get_game_version(version)

        log_book = LogBook(version)
        save_game(path, initial_state, log_book)
        logger.info("Game created", game=name, version=version)

        self._games[name] = asyncio.create_task(self._start(name, path, version, initial_state, log_book))
        return await self._await_game(name)

    async def _start(
        self,
        name: str,
        path: Path,
        version: str,
        initial_state: GameState,
        log_book: LogBook,
    ) -> GameInteractor:
        engine = await self.engine_manager.create_engine(version)
        return await GameInteractor.create(
            engine,
            initial_state=initial_state,
            log_book=log_book,
            version=get_game_version(version),
            save_handler=make_save_handler(path),
            rng=self._rng,
            name=name,
        )

    async def shutdown(self) -> None:
        """Shut down every open game."""
        games, self._games = self._games, {}
        for name, task in games.items():
            try:
                interactor = await task
            except Exception as exc:
                logger.warning("Game never opened", game=name, error=str(exc))
                continue
            await interactor.shutdown()
            logger.info("Game closed", game=name)


__all__ = ["EngineManager", "GameManager"]
