"""The shoot action source.

Shooting is built locally rather than taken from the engine: the engine
only reports which tiles are in line of sight, and the dice a shot needs
depend on the target, so every target option carries its own nested
field (a dice roll, or a fixed ``hit`` when no roll is needed).
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from tankgame.actions.dice import Dice
from tankgame.actions.dice_field_spec import DiceLogFieldSpec
from tankgame.actions.field_spec import FieldSpec, LogFieldSpec
from tankgame.actions.possible_action import ActionError, GenericPossibleAction, ShootAction
from tankgame.core.constants import FIELD_SELECT_POSITION, FIELD_SET_VALUE
from tankgame.core.exceptions import InvalidPositionError
from tankgame.core.logging import get_logger
from tankgame.models.position import Position


if TYPE_CHECKING:
    from tankgame.actions.sources import ActionContext
    from tankgame.models.game_state import GameState, PlayerInfo

logger = get_logger(__name__)

DiceForTarget = Callable[["GameState | None", str, Position], Sequence[Dice]]
PlayerCanShoot = Callable[["PlayerInfo"], bool]


class ShootActionSource:
    """Builds the shoot action from the engine's line of sight.

    Attributes:
        dice_field: Name of the dice field nested under each target.
    """

    def __init__(
        self,
        get_dice_for_target: DiceForTarget,
        player_can_shoot: PlayerCanShoot,
        *,
        dice_field: str = "hit_roll",
    ) -> None:
        """Initialize the source.

        Args:
            get_dice_for_target: Returns the dice to roll when shooting a target.
            player_can_shoot: Decides whether a player may shoot at all.
            dice_field: Field the roll is stored under.
        """
        self.dice_field = dice_field
        self._get_dice_for_target = get_dice_for_target
        self._player_can_shoot = player_can_shoot

    async def get_action_factories_for_player(self, context: ActionContext) -> list[GenericPossibleAction]:
        if context.player_name is None:
            return []

        game_state = context.game_state
        player = game_state.get_player(context.player_name)
        if player is None or not self._player_can_shoot(player):
            return []

        in_sight = await context.engine.get_line_of_sight_for(context.player_name)
        targets = self._parse_targets(in_sight, game_state)

        errors = [] if targets else [ActionError(category="GENERIC", message="No targets available")]
        field_specs: list[FieldSpec] = []
        if targets:
            field_specs.append(
                LogFieldSpec(
                    "target",
                    FIELD_SELECT_POSITION,
                    options=[target.human_readable for target in targets],
                    nested_specs=[
                        (target.human_readable, self._hit_fields(game_state, context.player_name, target))
                        for target in targets
                    ],
                )
            )

        return [ShootAction(field_specs, errors=errors, subject=context.player_name)]

    @staticmethod
    def _parse_targets(raw_positions: Sequence[object], game_state: GameState) -> list[Position]:
        targets = []
        for raw in raw_positions:
            try:
                position = Position.coerce(raw)
            except InvalidPositionError as exc:
                logger.warning("Received invalid position from engine (dropping)", position=raw, error=exc.message)
                continue

            if game_state.board is not None and not game_state.board.is_in_bounds(position):
                logger.warning("Received out of bounds position from engine (dropping)", position=str(position))
                continue

            if position not in targets:
                targets.append(position)
        return targets

    def _hit_fields(self, game_state: GameState, subject: str, target: Position) -> list[FieldSpec]:
        dice = list(self._get_dice_for_target(game_state, subject, target))
        if dice:
            return [DiceLogFieldSpec(self.dice_field, dice)]
        return [LogFieldSpec("hit", FIELD_SET_VALUE, value=True)]


__all__ = ["ShootActionSource", "DiceForTarget", "PlayerCanShoot"]
