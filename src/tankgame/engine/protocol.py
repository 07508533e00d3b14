"""The contract between the core and a rules engine.

The rules engine is stateful: it holds one "current" board state per
instance, ingests actions against it, and answers questions about it.
The core never interprets the rules itself.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable


if TYPE_CHECKING:
    from tankgame.models.game_state import GameState
    from tankgame.models.log_book import LogBook
    from tankgame.models.log_entry import LogEntry


@runtime_checkable
class RulesEngine(Protocol):
    """One engine instance.

    Attributes:
        is_main_branch: Whether the engine speaks the current wire format
            (typed player refs and positions) rather than the legacy one.
    """

    is_main_branch: bool

    async def set_board_state(self, state: GameState) -> None:
        """Make ``state`` the instance's current state."""
        ...

    async def process_action(self, entry: LogEntry) -> GameState:
        """Apply ``entry`` to the current state and return the result.

        A rejected entry comes back as a state with ``valid`` set to False.
        """
        ...

    async def get_possible_actions(self, player: str) -> list[dict[str, Any]]:
        """Describe the actions ``player`` may take in the current state."""
        ...

    async def get_line_of_sight_for(self, player: str) -> list[Any]:
        """Return the positions ``player`` can see from the current state."""
        ...

    async def shutdown(self) -> None:
        """Release the instance."""
        ...


SaveHandler = Callable[["GameState", "LogBook"], "Awaitable[None] | None"]
"""Called with ``(initial_state, log_book)`` after every accepted entry."""


__all__ = ["RulesEngine", "SaveHandler"]
