"""Turning a submitted raw entry into the entry sent to the engine.

Automatic dice rolls are only requested by the player; they are rolled
here, at submission time, and the game version's finalizer then derives
fields such as ``hit`` from the roll.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from tankgame.actions.dice import RandomSource, roll_dice
from tankgame.core.constants import START_OF_DAY
from tankgame.core.exceptions import DiceRollError
from tankgame.core.logging import get_logger
from tankgame.models.log_entry import is_die_roll


if TYPE_CHECKING:
    from tankgame.actions.possible_action import GenericPossibleAction
    from tankgame.models.game_state import GameState
    from tankgame.versions.base import GameVersion

logger = get_logger(__name__)


def finalize_log_entry(
    raw_entry: dict[str, Any],
    *,
    version: GameVersion | None = None,
    action: GenericPossibleAction | None = None,
    game_state: GameState | None = None,
    rng: RandomSource | None = None,
) -> dict[str, Any]:
    """Roll pending dice and apply the entry finalizer.

    Dice come from ``action`` when given (the field specs the player saw),
    otherwise from the version's dice factories. The action's finalizer
    runs before the version's.

    Args:
        raw_entry: Entry as submitted; left untouched.
        version: Game version providing dice factories and finalizers.
        action: Possible action the entry was built from.
        game_state: State the entry will be applied to.
        rng: Random source for automatic rolls.

    Returns:
        A finalized copy of the entry.

    Raises:
        DiceRollError: If an automatic roll has no dice to roll.
    """
    raw = copy.deepcopy(raw_entry)
    entry_type = raw.get("action") or START_OF_DAY

    for name, value in list(raw.items()):
        if not is_die_roll(value) or value.get("manual") or value.get("roll") is not None:
            continue

        if action is not None:
            dice = action.get_dice_for(name, raw)
        elif version is not None:
            dice = version.get_dice_for(entry_type, name, game_state=game_state, raw_entry=raw)
        else:
            dice = []

        if not dice:
            raise DiceRollError(
                f"No dice available for {entry_type}.{name}",
                details={"action": entry_type, "field": name},
            )

        value["roll"] = roll_dice(dice, rng)
        value["dice"] = [group.serialize() for group in dice]

    if action is not None:
        raw = action.finalize_log_entry(raw)
    if version is not None:
        raw = version.finalize(raw)

    logger.debug("Log entry finalized", action=entry_type)
    return raw


__all__ = ["finalize_log_entry"]
