"""Game state models produced by the rules engine.

A GameState is derived, never edited: the interactor stores exactly one
state per log entry, each the result of replaying that entry against
the previous state. Fields the core does not interpret are preserved as
model extras so they round-trip back to the engine.

Models:
    PlayerInfo: A player and its attributes.
    Unit: Something standing on a board tile.
    Board: Board dimensions and units.
    GameState: The full state after one log entry.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tankgame.core.exceptions import InvalidPositionError
from tankgame.models.position import Position


class PlayerInfo(BaseModel):
    """A player in the game.

    Attributes:
        name: Unique player name.
        type: Player role (tank, councilor, senator, ...).
        attributes: Engine-reported attributes (range, actions, gold, ...).
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    name: str = Field(description="Unique player name")
    type: str = Field(default="tank", description="Player role")
    attributes: dict[str, Any] = Field(default_factory=dict, description="Engine attributes")

    def attribute(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)


class Unit(BaseModel):
    """A unit occupying a board tile."""

    model_config = ConfigDict(extra="allow", frozen=True)

    type: str = Field(description="Unit type (tank, wall, ...)")
    position: Position = Field(description="Tile the unit occupies")
    owner: str | None = Field(default=None, description="Owning player name")
    attributes: dict[str, Any] = Field(default_factory=dict)

    @field_validator("position", mode="before")
    @classmethod
    def parse_position(cls, value: Any) -> Position:
        try:
            return Position.coerce(value)
        except InvalidPositionError as exc:
            raise ValueError(exc.message) from exc

    def attribute(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)


class Board(BaseModel):
    """Board dimensions and the units standing on it."""

    model_config = ConfigDict(extra="allow", frozen=True)

    width: int = Field(ge=0, description="Number of columns")
    height: int = Field(ge=0, description="Number of rows")
    units: list[Unit] = Field(default_factory=list)

    def is_in_bounds(self, position: Position) -> bool:
        return 0 <= position.x < self.width and 0 <= position.y < self.height

    def get_unit_at(self, position: Position) -> Unit | None:
        for unit in self.units:
            if unit.position == position:
                return unit
        return None

    def get_units_owned_by(self, player_name: str) -> list[Unit]:
        return [unit for unit in self.units if unit.owner == player_name]


class GameState(BaseModel):
    """Board and player state after replaying a log entry.

    Attributes:
        valid: False when the engine rejected the entry that produced this state.
        error: Engine-supplied rejection reason.
        day: Game day of the state.
        players: All players.
        board: The board, when the engine reports one.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    valid: bool = Field(default=True, description="Whether the producing action was accepted")
    error: str | None = Field(default=None, description="Rejection reason")
    day: int = Field(default=0, ge=0, description="Game day")
    players: list[PlayerInfo] = Field(default_factory=list)
    board: Board | None = Field(default=None)

    def get_player(self, name: str) -> PlayerInfo | None:
        for player in self.players:
            if player.name == name:
                return player
        return None

    def get_players_by_type(self, player_type: str) -> list[PlayerInfo]:
        return [player for player in self.players if player.type == player_type]

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable dictionary."""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameState:
        return cls.model_validate(data)


__all__ = [
    "PlayerInfo",
    "Unit",
    "Board",
    "GameState",
]
