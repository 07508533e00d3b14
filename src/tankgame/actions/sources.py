"""Action sources and their aggregation.

Every source looks at the same ActionContext and contributes the
possible actions it knows about. The engine supplies most of them; the
start-of-day action and shooting are built locally because they need
information (the day boundary, dice) the engine does not describe.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from tankgame.actions.field_spec import FieldSpec, LogFieldSpec
from tankgame.actions.possible_action import ActionError, GenericPossibleAction
from tankgame.core.constants import (
    COUNCIL_PLAYER_TYPES,
    COUNCIL_SUBJECT,
    FIELD_SELECT,
    FIELD_SELECT_POSITION,
    START_OF_DAY,
)
from tankgame.core.exceptions import GameEngineError
from tankgame.core.logging import get_logger
from tankgame.models.position import Position


if TYPE_CHECKING:
    from tankgame.engine.protocol import RulesEngine
    from tankgame.models.game_state import GameState

logger = get_logger(__name__)


@dataclass(frozen=True)
class ActionContext:
    """What a source needs to compute actions.

    Attributes:
        player_name: Player asking, or None for game-level actions.
        game_state: State the actions apply to (already sent to the engine).
        engine: Engine holding that state.
    """

    player_name: str | None
    game_state: GameState
    engine: RulesEngine


class ActionSource(Protocol):
    """Anything that contributes possible actions for a player."""

    async def get_action_factories_for_player(
        self, context: ActionContext
    ) -> list[GenericPossibleAction] | None: ...


# =============================================================================
# Engine Actions
# =============================================================================


class EngineActionSource:
    """Actions described by the rules engine itself.

    Example:
        >>> source = EngineActionSource(actions_to_skip=["shoot"])
    """

    def __init__(self, actions_to_skip: Iterable[str] = ()) -> None:
        self.actions_to_skip = frozenset(actions_to_skip)

    async def get_action_factories_for_player(self, context: ActionContext) -> list[GenericPossibleAction]:
        if context.player_name is None:
            return []

        player = context.game_state.get_player(context.player_name)
        if player is None:
            return []

        player_to_request = context.player_name
        if not getattr(context.engine, "is_main_branch", True) and player.type in COUNCIL_PLAYER_TYPES:
            player_to_request = COUNCIL_SUBJECT

        described = await context.engine.get_possible_actions(player_to_request)

        actions = []
        for description in described:
            action_name = description["rule"]
            if action_name in self.actions_to_skip:
                continue

            field_specs, errors = self._build_field_specs(action_name, description.get("fields", []))
            errors.extend(ActionError.from_dict(error) for error in description.get("errors", []))

            actions.append(
                GenericPossibleAction(
                    action_name,
                    field_specs,
                    errors=errors,
                    subject=context.player_name,
                )
            )

        return actions

    def _build_field_specs(
        self, action_name: str, fields: Sequence[Mapping[str, Any]]
    ) -> tuple[list[FieldSpec], list[ActionError]]:
        """Convert engine field descriptions into specs.

        A field with no legal values produces an INVALID_DATA error and
        the action loses all of its specs.
        """
        specs: list[FieldSpec] = []
        errors: list[ActionError] = []

        for field in fields:
            if field.get("options") is None:
                raise GameEngineError(
                    "Engine gave us an invalid log field spec",
                    details={"action": action_name, "field": field.get("field_name")},
                )

            if len(field["options"]) == 0:
                errors.append(
                    ActionError(
                        category="INVALID_DATA",
                        message=f"There are not valid options for '{field['field_name']}'",
                    )
                )
                continue

            specs.append(self._build_enumerated_spec(action_name, field))

        if errors:
            specs = []

        return specs, errors

    @staticmethod
    def _build_enumerated_spec(action_name: str, field: Mapping[str, Any]) -> LogFieldSpec:
        data_type = field.get("data_type")
        field_type = FIELD_SELECT

        if data_type == "Position":
            field_type = FIELD_SELECT_POSITION
            options: list[Any] = [
                Position.coerce(option["value"]).human_readable for option in field["options"]
            ]
        elif data_type == "PlayerRef":
            options = [
                {"display": option.get("pretty_name"), "value": option["value"]["name"]}
                for option in field["options"]
            ]
        elif data_type is None:
            options = [
                {"display": option.get("pretty_name"), "value": option["value"]}
                for option in field["options"]
            ]
        else:
            raise GameEngineError(
                f"Unsupported data type: {data_type}",
                details={"action": action_name, "field": field.get("field_name")},
            )

        return LogFieldSpec(field["field_name"], field_type, options=options)


# =============================================================================
# Start Of Day
# =============================================================================


class StartOfDaySource:
    """Offers the start-of-day action when no player is given."""

    async def get_action_factories_for_player(self, context: ActionContext) -> list[GenericPossibleAction]:
        if context.player_name is not None:
            return []
        return [GenericPossibleAction(START_OF_DAY, [])]


# =============================================================================
# Aggregation
# =============================================================================


class PossibleActionSourceSet:
    """Concatenates the actions of several sources, in source order."""

    def __init__(self, sources: Sequence[ActionSource]) -> None:
        self.sources = list(sources)

    async def get_action_factories_for_player(self, context: ActionContext) -> list[GenericPossibleAction]:
        """Ask every source in turn and concatenate the results.

        Sources returning None contribute nothing. Duplicates are kept.
        """
        actions: list[GenericPossibleAction] = []
        for source in self.sources:
            result = await source.get_action_factories_for_player(context)
            if result:
                actions.extend(result)

        logger.debug(
            "Possible actions computed",
            player=context.player_name,
            count=len(actions),
            actions=[action.action_name for action in actions],
        )
        return actions


__all__ = [
    "ActionContext",
    "ActionSource",
    "EngineActionSource",
    "StartOfDaySource",
    "PossibleActionSourceSet",
]
