"""Possible actions, their field specs, and dice.

Modules:
    dice: Dice with labeled sides and an injectable random source.
    field_spec: Select, position, input, and hidden field specs.
    dice_field_spec: Dice roll field specs.
    possible_action: GenericPossibleAction, ShootAction, ActionError.
    sources: ActionSource protocol, engine and start-of-day sources.
    shoot: The shoot action source.
    finalize: Rolling pending dice before submission.
"""

from __future__ import annotations

from tankgame.actions.dice import COMMON_DICE, Dice, Die, DieSide, RandomSource, get_die, roll_dice
from tankgame.actions.dice_field_spec import DiceLogFieldSpec, deserialize_field_spec
from tankgame.actions.field_spec import FieldSpec, LogFieldSpec, prettify_name
from tankgame.actions.finalize import finalize_log_entry
from tankgame.actions.possible_action import ActionError, GenericPossibleAction, ShootAction, shoot_finalizer
from tankgame.actions.shoot import ShootActionSource
from tankgame.actions.sources import (
    ActionContext,
    ActionSource,
    EngineActionSource,
    PossibleActionSourceSet,
    StartOfDaySource,
)


__all__ = [
    # Dice
    "Die",
    "DieSide",
    "Dice",
    "RandomSource",
    "COMMON_DICE",
    "get_die",
    "roll_dice",
    # Field specs
    "FieldSpec",
    "LogFieldSpec",
    "DiceLogFieldSpec",
    "deserialize_field_spec",
    "prettify_name",
    # Actions
    "ActionError",
    "GenericPossibleAction",
    "ShootAction",
    "shoot_finalizer",
    "finalize_log_entry",
    # Sources
    "ActionContext",
    "ActionSource",
    "EngineActionSource",
    "StartOfDaySource",
    "ShootActionSource",
    "PossibleActionSourceSet",
]
