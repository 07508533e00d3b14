"""Human-readable log entry messages.

Each entry type has a format function taking the raw fields and a
FormattingHelpers instance that knows the state the entry was applied
to. Unknown types render a placeholder instead of failing, so an old
client can still show a log written by a newer ruleset.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from tankgame.actions.field_spec import prettify_name
from tankgame.core.exceptions import InvalidPositionError
from tankgame.core.logging import get_logger
from tankgame.models.position import Position


if TYPE_CHECKING:
    from tankgame.models.game_state import GameState
    from tankgame.models.log_entry import LogEntry

logger = get_logger(__name__)

FormatFunction = Callable[[Mapping[str, Any], "FormattingHelpers"], str]


class FormattingHelpers:
    """Lookups shared by format functions."""

    def __init__(self, game_state: GameState | None, entry: LogEntry) -> None:
        self._game_state = game_state
        self._entry = entry

    def describe_location(
        self,
        location: Any,
        *,
        location_in_parenthesis: bool,
        unit: bool = True,
        floor: bool = False,
    ) -> str:
        """Describe what stands at ``location``, e.g. ``"A1 (wall)"``.

        Returns the bare location when there is no state to look at.
        """
        if location is None:
            return ""
        if self._game_state is None or self._game_state.board is None:
            return str(location)

        try:
            position = Position.coerce(location)
        except InvalidPositionError:
            return str(location)

        info = None
        if unit:
            found = self._game_state.board.get_unit_at(position)
            if found is not None and found.type != "empty":
                info = found.owner or prettify_name(found.type, capitalize=False)

        if info is None and floor:
            for tile in (self._game_state.board.model_extra or {}).get("floor", []) or []:
                if Position.coerce(tile.get("position")) == position and tile.get("type") != "empty":
                    info = prettify_name(tile["type"], capitalize=False)
                    break

        if info is None:
            info = "empty"

        label = position.human_readable
        if location_in_parenthesis:
            return f"{info} ({label})"
        return f"{label} ({info})"

    def die_roll(self, field: str, *, prefix: str = "", suffix: str = "") -> str:
        """Render a cached die roll as ``prefix + "hit, miss" + suffix``."""
        roll = (self._entry.die_rolls or {}).get(field)
        if not roll:
            return ""
        return f"{prefix}{', '.join(str(side['display']) for side in roll)}{suffix}"


class LogEntryFormatter:
    """Dispatches entries to per-type format functions."""

    def __init__(self, format_functions: Mapping[str, FormatFunction] | None = None) -> None:
        self._format_functions = dict(format_functions or {})

    @property
    def supported_types(self) -> list[str]:
        return sorted(self._format_functions)

    def format(self, entry: LogEntry, game_state: GameState | None) -> str:
        format_function = self._format_functions.get(entry.type)
        if format_function is None:
            logger.warning("Missing formatter for log entry type", type=entry.type, entry_id=entry.id)
            return f"Log entry type {entry.type} is not supported"

        fields = {**entry.raw, "day": entry.day}
        return format_function(fields, FormattingHelpers(game_state, entry))


# =============================================================================
# Format Functions
# =============================================================================


def _target_player(entry: Mapping[str, Any]) -> Any:
    return entry.get("target") or entry.get("target_player")


def _target_position(entry: Mapping[str, Any]) -> Any:
    return entry.get("target") or entry.get("target_position")


def start_of_day(entry: Mapping[str, Any], helpers: FormattingHelpers) -> str:
    return f"Start of day {entry['day']}"


def buy_action(entry: Mapping[str, Any], helpers: FormattingHelpers) -> str:
    return f"{entry.get('subject')} traded {entry.get('gold')} gold for actions"


def donate(entry: Mapping[str, Any], helpers: FormattingHelpers) -> str:
    return f"{entry.get('subject')} donated {entry.get('donation')} pre-tax gold to {_target_player(entry)}"


def upgrade_range(entry: Mapping[str, Any], helpers: FormattingHelpers) -> str:
    return f"{entry.get('subject')} upgraded their range"


def bounty(entry: Mapping[str, Any], helpers: FormattingHelpers) -> str:
    return f"{entry.get('subject')} placed a {entry.get('bounty')} gold bounty on {_target_player(entry)}"


def stimulus(entry: Mapping[str, Any], helpers: FormattingHelpers) -> str:
    return f"{entry.get('subject')} granted a stimulus of 1 action to {_target_player(entry)}"


def grant_life(entry: Mapping[str, Any], helpers: FormattingHelpers) -> str:
    return f"{entry.get('subject')} granted 1 life to {_target_player(entry)}"


def spawn_wall(entry: Mapping[str, Any], helpers: FormattingHelpers) -> str:
    return f"{entry.get('subject')} spawned a wall at {_target_position(entry)}"


def spawn_lava(entry: Mapping[str, Any], helpers: FormattingHelpers) -> str:
    return f"{entry.get('subject')} spawned a lava at {_target_position(entry)}"


def smite(entry: Mapping[str, Any], helpers: FormattingHelpers) -> str:
    return f"{entry.get('subject')} smote {_target_player(entry)}"


def heal(entry: Mapping[str, Any], helpers: FormattingHelpers) -> str:
    return f"{entry.get('subject')} healed {_target_player(entry)}"


def slow(entry: Mapping[str, Any], helpers: FormattingHelpers) -> str:
    return f"{entry.get('subject')} slowed {_target_player(entry)}"


def hasten(entry: Mapping[str, Any], helpers: FormattingHelpers) -> str:
    return f"{entry.get('subject')} hastened {_target_player(entry)}"


def move(entry: Mapping[str, Any], helpers: FormattingHelpers) -> str:
    location = helpers.describe_location(
        _target_position(entry), location_in_parenthesis=False, unit=False, floor=True
    )
    return f"{entry.get('subject')} moved to {location}"


def loot(entry: Mapping[str, Any], helpers: FormattingHelpers) -> str:
    location = helpers.describe_location(
        _target_position(entry), location_in_parenthesis=False, unit=False, floor=True
    )
    return f"{entry.get('subject')} looted {location}"


def shoot(entry: Mapping[str, Any], helpers: FormattingHelpers) -> str:
    verb = "shot" if entry.get("hit") or entry.get("hit") is None else "missed"
    target = helpers.describe_location(_target_position(entry), location_in_parenthesis=False)

    damage_info = ""
    if entry.get("damage") is not None:
        damage_info = f" dealing {entry['damage']} damage"

    return f"{entry.get('subject')} {verb}{damage_info} {target}{helpers.die_roll('hit_roll', prefix=' [', suffix=']')}"


BASE_FORMAT_FUNCTIONS: dict[str, FormatFunction] = {
    "start_of_day": start_of_day,
    "move": move,
    "shoot": shoot,
    "donate": donate,
    "bounty": bounty,
    "stimulus": stimulus,
    "grant_life": grant_life,
    "buy_action": buy_action,
    "upgrade_range": upgrade_range,
    "loot": loot,
    "spawn_wall": spawn_wall,
    "spawn_lava": spawn_lava,
    "smite": smite,
    "heal": heal,
    "slow": slow,
    "hasten": hasten,
}


__all__ = [
    "LogEntryFormatter",
    "FormattingHelpers",
    "FormatFunction",
    "BASE_FORMAT_FUNCTIONS",
]
