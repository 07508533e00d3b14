"""Turn processing for one game.

The GameInteractor owns a game's log book, the states derived from it,
and the engine instance that derives them. Every operation touching the
engine goes through a FIFO queue consumed by a single worker task, so
engine calls for one game never overlap and a failed operation never
blocks the ones behind it.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from tankgame.actions.sources import ActionContext
from tankgame.core.exceptions import (
    ConfigurationError,
    EngineRejectedActionError,
    GameEngineError,
    OutOfRangeError,
    PersistenceError,
    RangeInconsistencyError,
    StateDesyncError,
    TankGameError,
)
from tankgame.core.logging import bind_game_context, get_logger, operation_context


if TYPE_CHECKING:
    from tankgame.actions.dice import RandomSource
    from tankgame.actions.possible_action import GenericPossibleAction
    from tankgame.engine.protocol import RulesEngine, SaveHandler
    from tankgame.models.game_state import GameState
    from tankgame.models.log_book import LogBook
    from tankgame.models.log_entry import LogEntry
    from tankgame.versions.base import GameVersion

logger = get_logger(__name__)


class InteractorStatus(StrEnum):
    """What the interactor's worker is doing."""

    IDLE = "idle"
    REPLAYING = "replaying"
    SUBMITTING = "submitting"


@dataclass
class _Operation:
    name: str
    run: Callable[[], Awaitable[Any]]
    future: asyncio.Future[Any] = field(repr=False)


class GameInteractor:
    """Replays and extends one game's log book against an engine.

    Must be constructed inside a running event loop; prefer :meth:`create`,
    which also waits for the initial replay.

    Example:
        >>> interactor = await GameInteractor.create(engine, initial_state=state, log_book=book)
        >>> entry = await interactor.add_log_book_entry({"action": "start_of_day", "day": 1})
        >>> interactor.get_game_state_by_id(entry.id).day
        1
    """

    def __init__(
        self,
        engine: RulesEngine,
        *,
        initial_state: GameState,
        log_book: LogBook,
        version: GameVersion | None = None,
        save_handler: SaveHandler | None = None,
        rng: RandomSource | None = None,
        name: str | None = None,
    ) -> None:
        """Initialize the interactor and queue catch-up replay.

        Args:
            engine: Engine instance used exclusively by this interactor.
            initial_state: State before the first log entry.
            log_book: The game's log book.
            version: Game version used for finalization and possible actions.
            save_handler: Called with ``(initial_state, log_book)`` after each accepted entry.
            rng: Random source for automatic dice rolls.
            name: Label bound to this interactor's log events.
        """
        self._engine = engine
        self._initial_state = initial_state
        self._log_book = log_book
        self._version = version
        self._save_handler = save_handler
        self._rng = rng
        self._states: list[GameState] = []
        self._status = InteractorStatus.IDLE
        self._closed = False
        self._name = name or log_book.game_version
        self._log = logger.bind(game=self._name)

        self._queue: asyncio.Queue[_Operation | None] = asyncio.Queue()
        self._worker = asyncio.create_task(self._run_worker())

        self.loaded: asyncio.Future[None] = self._enqueue("replay", self._replay)

    @classmethod
    async def create(
        cls,
        engine: RulesEngine,
        *,
        initial_state: GameState,
        log_book: LogBook,
        version: GameVersion | None = None,
        save_handler: SaveHandler | None = None,
        rng: RandomSource | None = None,
        name: str | None = None,
    ) -> GameInteractor:
        """Build an interactor and wait until the log book is replayed."""
        interactor = cls(
            engine,
            initial_state=initial_state,
            log_book=log_book,
            version=version,
            save_handler=save_handler,
            rng=rng,
            name=name,
        )
        await interactor.loaded
        return interactor

    # -------------------------------------------------------------------------
    # Queue
    # -------------------------------------------------------------------------

    def _enqueue(self, name: str, run: Callable[[], Awaitable[Any]]) -> asyncio.Future[Any]:
        if self._closed:
            raise GameEngineError("Interactor has been shut down", details={"operation": name})

        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._queue.put_nowait(_Operation(name=name, run=run, future=future))
        return future

    async def _run_worker(self) -> None:
        # The worker task has its own context, so this tags engine and storage events too
        bind_game_context(self._name, version=self._log_book.game_version)
        while True:
            operation = await self._queue.get()
            try:
                if operation is None:
                    return
                if operation.future.cancelled():
                    continue

                try:
                    with operation_context(operation.name):
                        result = await operation.run()
                except Exception as exc:
                    if not operation.future.done():
                        operation.future.set_exception(exc)
                else:
                    if not operation.future.done():
                        operation.future.set_result(result)
            finally:
                self._status = InteractorStatus.IDLE
                self._queue.task_done()

    # -------------------------------------------------------------------------
    # Replay
    # -------------------------------------------------------------------------

    async def _send_previous_state(self, index: int) -> GameState:
        previous = self._initial_state if index == 0 else self._states[index - 1]
        await self._engine.set_board_state(previous)
        return previous

    async def _replay(self) -> None:
        start = len(self._states)
        end = self._log_book.get_last_entry_id()

        if start == end + 1:
            return

        if start > end + 1:
            self._log.error("Replay range is inconsistent", start_index=start, end_index=end)
            raise RangeInconsistencyError(
                f"Replay start index ({start}) can't be past the end index ({end})",
                start_index=start,
                end_index=end,
            )

        self._status = InteractorStatus.REPLAYING
        self._log.info("Replaying log book", start_index=start, end_index=end)

        previous = await self._send_previous_state(start)
        for index in range(start, end + 1):
            entry = self._log_book.get_entry(index)
            state = await self._engine.process_action(entry)
            self._states.append(state)
            self._update_message(entry, previous)
            previous = state

        self._log.info("Replay finished", state_count=len(self._states))

    def _update_message(self, entry: LogEntry, previous_state: GameState | None) -> None:
        if self._version is None:
            return
        try:
            entry.update_message(self._version, previous_state)
        except TankGameError as exc:
            self._log.warning("Could not render log entry", entry_id=entry.id, error=exc.message)

    # -------------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------------

    def add_log_book_entry(
        self,
        raw_entry: dict[str, Any],
        *,
        action: GenericPossibleAction | None = None,
    ) -> asyncio.Future[LogEntry]:
        """Submit a new entry behind any in-flight work.

        Args:
            raw_entry: Raw fields of the entry.
            action: Possible action the entry was built from, for dice and finalization.

        Returns:
            A future resolving to the appended entry.

        Raises:
            StateDesyncError: If the log book and states disagree in length.
            EngineRejectedActionError: If the engine rejects the entry.
            EngineUnavailableError: If the engine cannot be reached.
            PersistenceError: If saving fails after the entry was accepted.
        """
        return self._enqueue("submit", lambda: self._add_log_book_entry(raw_entry, action))

    async def _add_log_book_entry(
        self,
        raw_entry: dict[str, Any],
        action: GenericPossibleAction | None,
    ) -> LogEntry:
        if len(self._states) != len(self._log_book):
            self._log.error(
                "Log book and states are out of sync",
                log_length=len(self._log_book),
                state_count=len(self._states),
            )
            raise StateDesyncError(
                "Log book length and states length should be identical "
                f"(log book = {len(self._log_book)}, states = {len(self._states)})",
                log_length=len(self._log_book),
                state_count=len(self._states),
            )

        self._status = InteractorStatus.SUBMITTING
        previous = await self._send_previous_state(len(self._states))

        raw = dict(raw_entry)
        if self._version is not None:
            raw = self._version.finalize_entry(raw, game_state=previous, action=action, rng=self._rng)

        entry = self._log_book.make_entry_from_raw(raw)
        state = await self._engine.process_action(entry)

        if not state.valid:
            self._log.info("Entry rejected by engine", type=entry.type, reason=state.error)
            raise EngineRejectedActionError(
                f"Engine rejected {entry.type}: {state.error}",
                action=entry.type,
                reason=state.error,
            )

        self._log_book.add_entry(entry)
        self._states.append(state)
        self._update_message(entry, previous)
        self._log.info("Entry added", entry_id=entry.id, type=entry.type, day=entry.day)

        if self._save_handler is not None:
            await self._save()

        return entry

    async def _save(self) -> None:
        assert self._save_handler is not None
        try:
            result = self._save_handler(self._initial_state, self._log_book)
            if inspect.isawaitable(result):
                await result
        except PersistenceError:
            raise
        except Exception as exc:
            self._log.error("Saving the game failed", error=str(exc))
            raise PersistenceError(f"Failed to save game: {exc}") from exc

    # -------------------------------------------------------------------------
    # Possible actions
    # -------------------------------------------------------------------------

    def get_possible_actions(
        self,
        player_name: str | None,
        state_id: int | None = None,
    ) -> asyncio.Future[list[GenericPossibleAction]]:
        """Compute the actions ``player_name`` may take after ``state_id``.

        ``state_id`` defaults to the latest state; with no states yet the
        initial state is used. Queued like any other engine operation.
        """
        return self._enqueue("possible_actions", lambda: self._get_possible_actions(player_name, state_id))

    async def _get_possible_actions(
        self,
        player_name: str | None,
        state_id: int | None,
    ) -> list[GenericPossibleAction]:
        if self._version is None:
            raise ConfigurationError("A game version is required to compute possible actions")

        if state_id is None:
            state = self._states[-1] if self._states else self._initial_state
        else:
            state = self.get_game_state_by_id(state_id)

        await self._engine.set_board_state(state)
        sources = self._version.build_action_sources(self._engine)
        return await sources.get_action_factories_for_player(
            ActionContext(player_name=player_name, game_state=state, engine=self._engine)
        )

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @property
    def status(self) -> InteractorStatus:
        return self._status

    @property
    def state_count(self) -> int:
        return len(self._states)

    @property
    def initial_state(self) -> GameState:
        return self._initial_state

    def get_log_book(self) -> LogBook:
        return self._log_book

    def get_game_state_by_id(self, state_id: int) -> GameState:
        """Return the state after entry ``state_id``.

        Raises:
            OutOfRangeError: If that state has not been derived.
        """
        if not 0 <= state_id < len(self._states):
            raise OutOfRangeError(
                f"No game state with id {state_id} ({len(self._states)} states derived)",
                entry_id=state_id,
            )
        return self._states[state_id]

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def shutdown(self) -> None:
        """Finish queued work, stop the worker, and release the engine."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)
        await self._worker
        await self._engine.shutdown()
        self._log.info("Interactor shut down", state_count=len(self._states))


__all__ = ["GameInteractor", "InteractorStatus"]
