"""Log entries: one recorded game action or day boundary.

A log entry wraps the raw field map submitted by a player (subject,
target, amounts, die rolls, timestamp). The rendered ``message`` and the
expanded ``die_rolls`` are a cache rebuilt from the game version and
are never treated as authoritative.
"""

from __future__ import annotations

import copy
import time
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from tankgame.core.constants import DIE_ROLL_TYPE, START_OF_DAY, TEST_MODE_TIMESTAMP_STEP
from tankgame.core.exceptions import ValidationError
from tankgame.core.logging import get_logger


if TYPE_CHECKING:
    from tankgame.models.game_state import GameState
    from tankgame.versions.base import GameVersion

logger = get_logger(__name__)


# =============================================================================
# Timestamps
# =============================================================================


class _Clock:
    """Source of log entry timestamps (seconds since the epoch)."""

    def __init__(self) -> None:
        self._test_mode = False
        self._last = 0

    def now(self) -> int:
        if self._test_mode:
            self._last += TEST_MODE_TIMESTAMP_STEP
            return self._last
        return int(time.time())

    def enable_test_mode(self) -> None:
        self._test_mode = True
        self._last = 0

    def disable_test_mode(self) -> None:
        self._test_mode = False


_clock = _Clock()


def make_timestamp() -> int:
    """Return the timestamp assigned to a new entry."""
    return _clock.now()


def enable_test_mode_timestamps() -> None:
    """Make timestamps deterministic: 20 minutes apart, starting at 20 minutes."""
    _clock.enable_test_mode()


def disable_test_mode_timestamps() -> None:
    _clock.disable_test_mode()


def is_die_roll(value: Any) -> bool:
    """Check whether a raw field value holds a die roll."""
    return isinstance(value, dict) and value.get("type") == DIE_ROLL_TYPE


# =============================================================================
# Log Entry
# =============================================================================


@dataclass
class LogEntry:
    """A single entry in the log book.

    Attributes:
        id: Position of the entry in its log book.
        day: Game day the entry belongs to.
        raw: Field map as submitted (includes ``timestamp``).
        message: Cached human-readable rendering.
        die_rolls: Cached display sides for every die roll field.
    """

    id: int
    day: int
    raw: dict[str, Any]
    message: str | None = None
    die_rolls: dict[str, list[dict[str, Any]]] | None = field(default=None)

    def __post_init__(self) -> None:
        if "class" in self.raw:
            raise ValidationError("Raw log entry must not carry a class tag", field_name="class")
        if self.day < 0:
            raise ValidationError("Log entry day must be >= 0", field_name="day", invalid_value=self.day)
        if self.raw.get("timestamp") is None:
            self.raw["timestamp"] = make_timestamp()

    @property
    def type(self) -> str:
        return self.raw.get("action") or START_OF_DAY

    @property
    def timestamp(self) -> int:
        return self.raw["timestamp"]

    def get_timestamp(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp, tz=UTC)

    def get(self, name: str, default: Any = None) -> Any:
        return self.raw.get(name, default)

    def iter_die_roll_fields(self) -> Iterator[tuple[str, dict[str, Any]]]:
        """Yield ``(field_name, value)`` for every die roll field."""
        for name, value in self.raw.items():
            if is_die_roll(value):
                yield name, value

    def without_state_info(self) -> LogEntry:
        """Return a copy with no cached rendering."""
        return LogEntry(id=self.id, day=self.day, raw=copy.deepcopy(self.raw))

    def update_message(self, version: GameVersion, previous_state: GameState | None) -> str:
        """Rebuild the cached die rolls and message for this entry.

        Args:
            version: Game version providing dice factories and formatters.
            previous_state: State the entry was applied to.

        Returns:
            The rendered message.
        """
        self.die_rolls = {}
        for name, value in self.iter_die_roll_fields():
            dice = version.get_dice_for(self.type, name, game_state=previous_state, raw_entry=self.raw)
            expanded = [die for dice_group in dice for die in dice_group.expand()]
            roll = value.get("roll") or []
            sides = []
            for die, rolled in zip(expanded, roll):
                side = die.side_for_value(rolled)
                sides.append(side.to_dict() if side is not None else {"value": rolled, "display": rolled, "icon": None})
            self.die_rolls[name] = sides

        self.message = version.format_log_entry(self, previous_state)
        return self.message

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def serialize(self) -> dict[str, Any]:
        payload = copy.deepcopy(self.raw)
        if self.message is not None:
            payload["savedData"] = {
                "message": self.message,
                "dieRolls": self.die_rolls,
            }
        return payload

    @classmethod
    def deserialize(cls, entry_id: int, previous_day: int, raw_entry: dict[str, Any]) -> LogEntry:
        """Build an entry from its stored form.

        The day defaults to the previous entry's day when not stored.
        """
        raw = copy.deepcopy(raw_entry)
        saved = raw.pop("savedData", None) or {}
        day = raw.get("day")
        return cls(
            id=entry_id,
            day=previous_day if day is None else int(day),
            raw=raw,
            message=saved.get("message"),
            die_rolls=saved.get("dieRolls"),
        )


__all__ = [
    "LogEntry",
    "make_timestamp",
    "enable_test_mode_timestamps",
    "disable_test_mode_timestamps",
    "is_die_roll",
]
