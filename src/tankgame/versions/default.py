"""The default tank game rulesets (v3, v4, v5)."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from tankgame.actions.dice import Dice
from tankgame.actions.possible_action import shoot_finalizer
from tankgame.actions.shoot import ShootActionSource
from tankgame.actions.sources import ActionSource, EngineActionSource, StartOfDaySource
from tankgame.core.exceptions import DiceRollError
from tankgame.models.position import Position
from tankgame.versions.base import GameVersion
from tankgame.versions.formatter import BASE_FORMAT_FUNCTIONS, LogEntryFormatter


if TYPE_CHECKING:
    from tankgame.engine.protocol import RulesEngine
    from tankgame.models.game_state import GameState, PlayerInfo


def _numeric(value: Any) -> Any:
    if isinstance(value, Mapping):
        return value.get("value")
    return value


def get_dice_for_shot(game_state: GameState | None, subject: str, target: Any) -> list[Dice]:
    """Return the hit dice for ``subject`` shooting at ``target``.

    Targets with health need ``range - distance + 1`` hit dice; anything
    else is hit automatically.

    Raises:
        DiceRollError: If the shooter is unknown or does not own exactly one unit.
    """
    # The first entry of a game has no previous state, and it is always a start of day
    if game_state is None or game_state.board is None:
        return []

    player = game_state.get_player(subject)
    if player is None:
        raise DiceRollError(f"No such player {subject}", die_name="hit die")

    units = game_state.board.get_units_owned_by(subject)
    if len(units) != 1:
        raise DiceRollError(
            f"Expected player {subject} to have exactly 1 unit for shooting",
            die_name="hit die",
            details={"units": len(units)},
        )

    shooter = units[0]
    target_unit = game_state.board.get_unit_at(Position.coerce(target))
    if target_unit is None or target_unit.attribute("health") is None:
        return []

    shot_range = _numeric(shooter.attribute("range", player.attribute("range", 0)))
    distance = shooter.position.distance_to(target_unit.position)
    # Anything the engine reports in line of sight gets at least one die
    return [Dice(max(int(shot_range) - distance + 1, 1), "hit die")]


def hit_roll_dice(game_state: GameState | None, raw_entry: Mapping[str, Any]) -> list[Dice]:
    """Dice factory for ``shoot.hit_roll``."""
    if raw_entry.get("target") is None:
        return []
    return get_dice_for_shot(game_state, raw_entry.get("subject"), raw_entry["target"])


def can_shoot(player: PlayerInfo) -> bool:
    return player.type == "tank"


def v3_action_sources(engine: RulesEngine) -> list[ActionSource]:
    return [
        StartOfDaySource(),
        ShootActionSource(get_dice_for_shot, can_shoot),
        EngineActionSource(actions_to_skip=["shoot"]),
    ]


def engine_action_sources(engine: RulesEngine) -> list[ActionSource]:
    return [
        StartOfDaySource(),
        EngineActionSource(),
    ]


def _make_version(name: str, action_sources: Any, *, local_dice: bool) -> GameVersion:
    return GameVersion(
        name,
        formatter=LogEntryFormatter(BASE_FORMAT_FUNCTIONS),
        action_sources=action_sources,
        dice_factories={"shoot": {"hit_roll": hit_roll_dice}} if local_dice else None,
        entry_finalizers={"shoot": shoot_finalizer},
    )


DEFAULT_V3 = _make_version("default-v3", v3_action_sources, local_dice=True)
DEFAULT_V4 = _make_version("default-v4", engine_action_sources, local_dice=False)
DEFAULT_V5 = _make_version("default-v5", engine_action_sources, local_dice=False)


__all__ = [
    "DEFAULT_V3",
    "DEFAULT_V4",
    "DEFAULT_V5",
    "get_dice_for_shot",
    "hit_roll_dice",
    "can_shoot",
]
