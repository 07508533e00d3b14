"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the tankgame test suite, including a scriptable in-memory rules
engine that records every call it receives.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import pytest

from tankgame.models.game_state import GameState
from tankgame.models.log_book import LogBook


if TYPE_CHECKING:
    from collections.abc import Generator, Sequence

    from tankgame.models.log_entry import LogEntry


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from tankgame.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def deterministic_timestamps() -> Generator[None, None, None]:
    """Make log entry timestamps deterministic."""
    from tankgame.models.log_entry import disable_test_mode_timestamps, enable_test_mode_timestamps

    enable_test_mode_timestamps()
    yield
    disable_test_mode_timestamps()


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Restore structlog and root logger configuration after each test."""
    import logging

    import structlog

    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up mock environment variables for testing.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "TANKGAME_LOG_JSON": "true",
        "TANKGAME_ENGINE_READ_LIMIT": "1048576",
        "TANKGAME_LOG_LEVEL": "DEBUG",
        "TANKGAME_ENGINE_TIMEOUT_SECONDS": "5.5",
        "TANKGAME_GAME_DEFAULT_VERSION": "default-v4",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


# =============================================================================
# Randomness
# =============================================================================


class FixedRandom:
    """Random source returning a fixed, repeating sequence of indices."""

    def __init__(self, indices: Sequence[int]) -> None:
        self._indices = list(indices)
        self._next = 0
        self.calls = 0

    def randrange(self, stop: int) -> int:
        self.calls += 1
        value = self._indices[self._next % len(self._indices)]
        self._next += 1
        return value % stop


@pytest.fixture
def always_hit() -> FixedRandom:
    """Every hit die lands on its first side (hit)."""
    return FixedRandom([0])


@pytest.fixture
def always_miss() -> FixedRandom:
    """Every hit die lands on its second side (miss)."""
    return FixedRandom([1])


# =============================================================================
# Fake Engine
# =============================================================================


class FakeEngine:
    """In-memory rules engine.

    Each accepted entry produces a state whose ``day`` is the entry's day
    and whose ``history`` extra lists every entry applied so far, so
    states depend on the full replay order. Entries whose action is in
    ``reject_actions`` (or that carry ``"reject": True``) come back
    invalid.
    """

    def __init__(
        self,
        *,
        reject_actions: Sequence[str] = (),
        possible_actions: dict[str, list[dict[str, Any]]] | None = None,
        line_of_sight: dict[str, list[Any]] | None = None,
        is_main_branch: bool = True,
        delay: float = 0,
    ) -> None:
        self.is_main_branch = is_main_branch
        self.reject_actions = set(reject_actions)
        self.possible_actions = possible_actions or {}
        self.line_of_sight = line_of_sight or {}
        self.delay = delay

        self.current_state: GameState | None = None
        self.calls: list[tuple[str, Any]] = []
        self.processed: list[dict[str, Any]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.shut_down = False

    async def _enter(self, method: str, argument: Any) -> None:
        self.calls.append((method, argument))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(self.delay)

    def _exit(self) -> None:
        self.in_flight -= 1

    async def set_board_state(self, state: GameState) -> None:
        await self._enter("set_board_state", state)
        try:
            self.current_state = state
        finally:
            self._exit()

    async def process_action(self, entry: LogEntry) -> GameState:
        await self._enter("process_action", entry.raw.get("action"))
        try:
            assert self.current_state is not None, "set_board_state must come first"
            self.processed.append(dict(entry.raw))

            if entry.type in self.reject_actions or entry.raw.get("reject"):
                return self.current_state.model_copy(update={"valid": False, "error": f"{entry.type} is not allowed"})

            previous = self.current_state.to_dict()
            history = list(previous.get("history", []))
            history.append(
                {
                    "type": entry.type,
                    "day": entry.day,
                    "subject": entry.raw.get("subject"),
                    "hit": entry.raw.get("hit"),
                }
            )
            state = GameState.from_dict({**previous, "valid": True, "error": None, "day": entry.day, "history": history})
            self.current_state = state
            return state
        finally:
            self._exit()

    async def get_possible_actions(self, player: str) -> list[dict[str, Any]]:
        await self._enter("get_possible_actions", player)
        try:
            return list(self.possible_actions.get(player, []))
        finally:
            self._exit()

    async def get_line_of_sight_for(self, player: str) -> list[Any]:
        await self._enter("get_line_of_sight_for", player)
        try:
            return list(self.line_of_sight.get(player, []))
        finally:
            self._exit()

    async def shutdown(self) -> None:
        await self._enter("shutdown", None)
        try:
            self.shut_down = True
        finally:
            self._exit()


@pytest.fixture
def fake_engine() -> FakeEngine:
    """Provide a fake engine that accepts everything."""
    return FakeEngine()


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def sample_state_data() -> dict[str, Any]:
    """Provide raw data for a small 5x5 game.

    Ted's tank sits at A1 with range 3, Bob's tank at C1 with 3 health,
    and a wall (no health) at A3. Alice is a councilor.
    """
    return {
        "day": 0,
        "players": [
            {"name": "Ted", "type": "tank", "attributes": {"actions": 1}},
            {"name": "Bob", "type": "tank", "attributes": {"actions": 1}},
            {"name": "Alice", "type": "councilor"},
        ],
        "board": {
            "width": 5,
            "height": 5,
            "units": [
                {"type": "tank", "position": "A1", "owner": "Ted", "attributes": {"range": 3, "health": 3}},
                {"type": "tank", "position": "C1", "owner": "Bob", "attributes": {"range": 2, "health": 3}},
                {"type": "wall", "position": "A3", "attributes": {"durability": 3}},
            ],
        },
    }


@pytest.fixture
def sample_state(sample_state_data: dict[str, Any]) -> GameState:
    """Provide the sample game state."""
    return GameState.from_dict(sample_state_data)


@pytest.fixture
def empty_log_book() -> LogBook:
    """Provide an empty default-v3 log book."""
    return LogBook("default-v3")


@pytest.fixture
def raw_entries() -> list[dict[str, Any]]:
    """Provide a few days of raw log entries (days 1, 1, 2, 2, 2, 3)."""
    return [
        {"action": "start_of_day", "day": 1},
        {"action": "move", "subject": "Ted", "target": "B2", "day": 1},
        {"action": "start_of_day", "day": 2},
        {"action": "buy_action", "subject": "Bob", "gold": 3, "day": 2},
        {"action": "upgrade_range", "subject": "Ted", "day": 2},
        {"action": "start_of_day", "day": 3},
    ]


@pytest.fixture
def make_engine() -> type[FakeEngine]:
    """Provide the FakeEngine class for tests needing custom behaviour."""
    return FakeEngine


@pytest.fixture
def make_random() -> type[FixedRandom]:
    """Provide the FixedRandom class for tests needing custom sequences."""
    return FixedRandom
