"""Board coordinates and their spreadsheet-style labels.

Columns use bijective base-26 letters (A..Z, AA, AB, ...) and rows are
1-based, so ``Position(2, 5)`` reads as ``"C6"``.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any

from tankgame.core.exceptions import InvalidPositionError


_POSITION_EXPR = re.compile(r"([A-Za-z]+)(\d+)")
_ENCODED_A = ord("A")


@dataclass(frozen=True, order=True)
class Position:
    """An immutable board coordinate.

    Attributes:
        x: Zero-based column.
        y: Zero-based row.
    """

    x: int
    y: int

    def __post_init__(self) -> None:
        if (
            not isinstance(self.x, int)
            or not isinstance(self.y, int)
            or isinstance(self.x, bool)
            or isinstance(self.y, bool)
            or self.x < 0
            or self.y < 0
        ):
            raise InvalidPositionError(
                f"Invalid position ({self.x!r}, {self.y!r})",
                invalid_value=(self.x, self.y),
            )

    @classmethod
    def from_human_readable(cls, label: str) -> Position:
        """Parse a label such as ``"AA30"``.

        Raises:
            InvalidPositionError: If the label is not a letters+digits pair.
        """
        match = _POSITION_EXPR.fullmatch(label.strip()) if isinstance(label, str) else None
        if match is None:
            raise InvalidPositionError(
                f"Invalid human readable position: {label!r}",
                invalid_value=label,
            )

        x = -1
        for char in match.group(1).upper():
            x = (x + 1) * 26 + (ord(char) - _ENCODED_A)

        return cls(x, int(match.group(2)) - 1)

    @classmethod
    def coerce(cls, value: Any) -> Position:
        """Build a position from a label, a mapping, a pair, or a position."""
        if isinstance(value, Position):
            return value
        if isinstance(value, str):
            return cls.from_human_readable(value)
        if isinstance(value, dict) and "x" in value and "y" in value:
            return cls(value["x"], value["y"])
        if isinstance(value, (tuple, list)) and len(value) == 2:
            return cls(value[0], value[1])
        raise InvalidPositionError(f"Cannot build a position from {value!r}", invalid_value=value)

    @property
    def human_readable_x(self) -> str:
        letters = ""
        x = self.x
        while True:
            letters = chr(_ENCODED_A + (x % 26)) + letters
            remaining = x // 26
            if remaining == 0:
                break
            x = remaining - 1
        return letters

    @property
    def human_readable_y(self) -> str:
        return str(self.y + 1)

    @property
    def human_readable(self) -> str:
        return self.human_readable_x + self.human_readable_y

    def distance_to(self, other: Position) -> int:
        """Return the floored straight-line distance to another position."""
        return math.floor(math.hypot(other.x - self.x, other.y - self.y))

    def to_dict(self) -> dict[str, int]:
        return {"x": self.x, "y": self.y}

    def __str__(self) -> str:
        return self.human_readable


__all__ = ["Position"]
