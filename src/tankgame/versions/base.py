"""Per-ruleset configuration.

A GameVersion bundles everything that differs between rulesets but is
not the rules themselves: which action sources to consult, how entries
are rendered, which dice an entry's roll fields use, and how a raw
entry is finalized before the engine sees it.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from tankgame.actions.finalize import finalize_log_entry
from tankgame.actions.sources import ActionSource, PossibleActionSourceSet, StartOfDaySource
from tankgame.core.constants import COUNCIL_PLAYER_TYPES
from tankgame.core.logging import get_logger
from tankgame.versions.formatter import LogEntryFormatter


if TYPE_CHECKING:
    from tankgame.actions.dice import Dice, RandomSource
    from tankgame.actions.possible_action import GenericPossibleAction
    from tankgame.engine.protocol import RulesEngine
    from tankgame.models.game_state import GameState
    from tankgame.models.log_entry import LogEntry

logger = get_logger(__name__)

DiceFactory = Callable[["GameState | None", Mapping[str, Any]], "Sequence[Dice]"]
EntryFinalizer = Callable[[dict[str, Any]], dict[str, Any]]
ActionSourceFactory = Callable[["RulesEngine"], Sequence[ActionSource]]


def _default_action_sources(engine: RulesEngine) -> list[ActionSource]:
    return [StartOfDaySource()]


class GameVersion:
    """Configuration of one ruleset.

    Attributes:
        name: Registry name, e.g. ``"default-v3"``.
        council_player_types: Player types acting for the council.
    """

    def __init__(
        self,
        name: str,
        *,
        formatter: LogEntryFormatter | None = None,
        action_sources: ActionSourceFactory | None = None,
        dice_factories: Mapping[str, Mapping[str, DiceFactory]] | None = None,
        entry_finalizers: Mapping[str, EntryFinalizer] | None = None,
        council_player_types: Sequence[str] = COUNCIL_PLAYER_TYPES,
    ) -> None:
        """Initialize the version.

        Args:
            name: Registry name.
            formatter: Renders log entries; defaults to one with no format functions.
            action_sources: Builds the action sources for an engine.
            dice_factories: ``{action: {field: factory}}`` for die roll fields.
            entry_finalizers: ``{action: finalizer}`` applied before submission.
            council_player_types: Player types acting for the council.
        """
        self.name = name
        self.council_player_types = tuple(council_player_types)
        self._formatter = formatter or LogEntryFormatter()
        self._action_sources = action_sources or _default_action_sources
        self._dice_factories = {action: dict(fields) for action, fields in (dice_factories or {}).items()}
        self._entry_finalizers = dict(entry_finalizers or {})

    def build_action_sources(self, engine: RulesEngine) -> PossibleActionSourceSet:
        return PossibleActionSourceSet(self._action_sources(engine))

    def format_log_entry(self, entry: LogEntry, game_state: GameState | None) -> str:
        return self._formatter.format(entry, game_state)

    def get_dice_for(
        self,
        action: str,
        field: str,
        *,
        game_state: GameState | None = None,
        raw_entry: Mapping[str, Any] | None = None,
    ) -> list[Dice]:
        """Return the dice used by ``action``'s ``field`` (empty when none)."""
        factory = self._dice_factories.get(action, {}).get(field)
        if factory is None:
            return []
        return list(factory(game_state, raw_entry or {}))

    def finalize(self, raw_entry: dict[str, Any]) -> dict[str, Any]:
        """Apply the entry finalizer for the entry's action, if any."""
        finalizer = self._entry_finalizers.get(raw_entry.get("action") or "")
        if finalizer is None:
            return raw_entry
        return finalizer(raw_entry)

    def finalize_entry(
        self,
        raw_entry: dict[str, Any],
        *,
        game_state: GameState | None = None,
        action: GenericPossibleAction | None = None,
        rng: RandomSource | None = None,
    ) -> dict[str, Any]:
        """Roll pending dice and finalize a copy of ``raw_entry``."""
        return finalize_log_entry(raw_entry, version=self, action=action, game_state=game_state, rng=rng)

    def __repr__(self) -> str:
        return f"GameVersion({self.name!r})"


__all__ = ["GameVersion", "DiceFactory", "EntryFinalizer", "ActionSourceFactory"]
