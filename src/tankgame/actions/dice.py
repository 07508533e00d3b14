"""Dice with labeled sides.

A Die is an immutable catalog entry (the "hit die" has a ``hit`` side
and a ``miss`` side). Dice pairs a die with a count. Randomness comes
from an injectable RandomSource so tests can supply fixed sequences;
nothing here rolls unless asked to.
"""

from __future__ import annotations

import random
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from tankgame.core.exceptions import DiceRollError
from tankgame.core.logging import get_logger


logger = get_logger(__name__)


class RandomSource(Protocol):
    """Anything that can pick an index; ``random.Random`` qualifies."""

    def randrange(self, stop: int) -> int: ...


_default_random: RandomSource = random.Random()


def get_default_random() -> RandomSource:
    return _default_random


def set_default_random(source: RandomSource) -> None:
    """Replace the process-wide random source used when none is passed."""
    global _default_random  # noqa: PLW0603
    _default_random = source


@dataclass(frozen=True)
class DieSide:
    """One face of a die.

    Attributes:
        value: Value stored in the log entry.
        display: Label shown to players.
        icon: Optional icon name.
    """

    value: Any
    display: Any
    icon: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "display": self.display, "icon": self.icon}


class Die:
    """A named die with ordered sides."""

    def __init__(self, name: str, sides: Iterable[Any], *, name_plural: str | None = None) -> None:
        """Initialize the die.

        Args:
            name: Die name, e.g. ``"hit die"``.
            sides: DieSide objects, ``{"value", "display", "icon"}`` mappings, or bare values.
            name_plural: Plural name; defaults to ``name + "s"``.
        """
        self.name = name
        self.name_plural = name_plural or f"{name}s"
        self.sides: tuple[DieSide, ...] = tuple(self._make_side(side) for side in sides)
        if not self.sides:
            raise DiceRollError("A die needs at least one side", die_name=name)

        self._display_to_value = {side.display: side.value for side in self.sides}
        self._value_to_side = {side.value: side for side in self.sides}

    @staticmethod
    def _make_side(side: Any) -> DieSide:
        if isinstance(side, DieSide):
            return side
        if isinstance(side, dict):
            value = side["value"]
            return DieSide(value=value, display=side.get("display", value), icon=side.get("icon"))
        return DieSide(value=side, display=side)

    @property
    def side_names(self) -> list[Any]:
        return [side.display for side in self.sides]

    def roll(self, rng: RandomSource | None = None) -> Any:
        """Pick a side uniformly and return its value."""
        rng = rng or get_default_random()
        return self.sides[rng.randrange(len(self.sides))].value

    def translate_value(self, display: Any) -> Any:
        """Map a side label to its stored value (None when unknown)."""
        return self._display_to_value.get(display)

    def side_for_value(self, value: Any) -> DieSide | None:
        return self._value_to_side.get(value)

    def __repr__(self) -> str:
        return f"Die({self.name!r})"


COMMON_DICE: dict[str, Die] = {
    "hit die": Die(
        "hit die",
        [
            DieSide(value=True, display="hit", icon="hit"),
            DieSide(value=False, display="miss", icon=""),
        ],
        name_plural="hit dice",
    ),
    "d4": Die("d4", [1, 2, 3, 4]),
    "d6": Die("d6", [1, 2, 3, 4, 5, 6]),
}


def get_die(name: str) -> Die:
    """Look up a die in the common catalog.

    Raises:
        DiceRollError: If no die has that name.
    """
    try:
        return COMMON_DICE[name]
    except KeyError as exc:
        raise DiceRollError(f"No die named {name}", die_name=name) from exc


class Dice:
    """A count of identical dice, e.g. ``Dice(3, "hit die")``."""

    def __init__(self, count: int, die: Die | str) -> None:
        if count < 0:
            raise DiceRollError("Dice count must be >= 0", details={"count": count})
        self.count = count
        self.die = get_die(die) if isinstance(die, str) else die

    @staticmethod
    def expand_all(dice: Sequence[Dice]) -> list[Die]:
        """Flatten a dice pool into one die per value to roll."""
        return [die for group in dice for die in group.expand()]

    @classmethod
    def deserialize(cls, raw_dice: dict[str, Any]) -> Dice:
        return cls(raw_dice["count"], raw_dice["die"])

    def serialize(self) -> dict[str, Any]:
        return {"count": self.count, "die": self.die.name}

    def expand(self) -> list[Die]:
        return [self.die] * self.count

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Dice):
            return NotImplemented
        return self.count == other.count and self.die.name == other.die.name

    def __hash__(self) -> int:
        return hash((self.count, self.die.name))

    def __str__(self) -> str:
        die_name = self.die.name if self.count == 1 else self.die.name_plural
        return f"{self.count}x {die_name}"

    def __repr__(self) -> str:
        return f"Dice({self.count}, {self.die.name!r})"


def roll_dice(dice: Sequence[Dice], rng: RandomSource | None = None) -> list[Any]:
    """Roll every die in a pool and return the side values in order."""
    rng = rng or get_default_random()
    values = [die.roll(rng) for die in Dice.expand_all(dice)]
    logger.debug("Dice rolled", dice=[str(group) for group in dice], values=values)
    return values


__all__ = [
    "RandomSource",
    "get_default_random",
    "set_default_random",
    "DieSide",
    "Die",
    "Dice",
    "COMMON_DICE",
    "get_die",
    "roll_dice",
]
