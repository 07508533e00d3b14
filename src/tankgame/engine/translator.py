"""Conversion between core data and the engine's wire format.

Two engine branches are supported. The main branch expects typed
payloads (``PlayerRef`` subjects, ``Position`` targets, ``DieRollResult``
rolls). The legacy branch takes the raw entry as-is, except that council
actions are submitted with ``"Council"`` as the subject.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from tankgame.core.constants import COUNCIL_ACTIONS, COUNCIL_SUBJECT
from tankgame.core.exceptions import InvalidPositionError
from tankgame.models.game_state import GameState
from tankgame.models.log_entry import is_die_roll
from tankgame.models.position import Position


if TYPE_CHECKING:
    from tankgame.models.log_entry import LogEntry


def player_ref(name: str) -> dict[str, Any]:
    return {"class": "PlayerRef", "name": name}


def position_payload(position: Position) -> dict[str, Any]:
    return {"class": "Position", "x": position.x, "y": position.y}


def _to_main_branch(raw: dict[str, Any]) -> dict[str, Any]:
    converted = dict(raw)

    # A target is either a board position or a player name
    target = converted.pop("target", None)
    if target is not None:
        try:
            Position.coerce(target)
        except InvalidPositionError:
            converted["target_player"] = target
        else:
            converted["target_position"] = target

    if converted.get("target_position") is not None:
        converted["target_position"] = position_payload(Position.coerce(converted["target_position"]))

    if converted.get("target_player") is not None:
        converted["target_player"] = player_ref(converted["target_player"])

    if converted.get("subject") is not None:
        converted["subject"] = player_ref(converted["subject"])

    for key, value in list(converted.items()):
        if is_die_roll(value):
            roll = {name: field for name, field in value.items() if name != "type"}
            roll["class"] = "DieRollResult"
            converted[key] = roll

    return converted


def _to_legacy_branch(entry: LogEntry, raw: dict[str, Any]) -> dict[str, Any]:
    converted = dict(raw)
    if entry.type in COUNCIL_ACTIONS:
        converted["subject"] = COUNCIL_SUBJECT
    return converted


def convert_log_entry(entry: LogEntry, main_branch: bool) -> dict[str, Any]:
    """Return the wire form of ``entry`` for an engine branch.

    Cached rendering (message, die roll displays) is never sent.
    """
    raw = entry.without_state_info().raw
    if main_branch:
        return _to_main_branch(raw)
    return _to_legacy_branch(entry, raw)


def encode_state(state: GameState) -> dict[str, Any]:
    """Wire form of a state sent with ``setState``."""
    return state.to_dict()


def decode_state(raw_state: dict[str, Any]) -> GameState:
    """Build a state from a ``getState`` response."""
    payload = {key: value for key, value in raw_state.items() if key not in ("method", "instance")}
    return GameState.from_dict(payload)


__all__ = [
    "convert_log_entry",
    "encode_state",
    "decode_state",
    "player_ref",
    "position_payload",
]
