"""Tests for log entry finalization."""

from __future__ import annotations

from typing import Any

import pytest

from tankgame.actions.dice import Dice
from tankgame.actions.dice_field_spec import DiceLogFieldSpec
from tankgame.actions.field_spec import LogFieldSpec
from tankgame.actions.finalize import finalize_log_entry
from tankgame.actions.possible_action import ShootAction
from tankgame.core.exceptions import DiceRollError
from tankgame.models.game_state import GameState
from tankgame.versions import get_game_version


def _auto_roll(count: int = 0) -> dict[str, Any]:
    return {"type": "die-roll", "manual": False, "dice": [{"count": count, "die": "hit die"}] if count else []}


class TestFinalizeLogEntry:
    """Tests for finalize_log_entry."""

    def test_rolls_with_version_dice(self, sample_state: GameState, always_miss: Any) -> None:
        """Test automatic rolls use the version's dice factories."""
        raw = {"action": "shoot", "subject": "Ted", "target": "C1", "hit_roll": _auto_roll()}

        finalized = finalize_log_entry(
            raw, version=get_game_version("default-v3"), game_state=sample_state, rng=always_miss
        )

        assert finalized["hit_roll"]["roll"] == [False, False]
        assert finalized["hit_roll"]["dice"] == [{"count": 2, "die": "hit die"}]
        assert finalized["hit"] is False
        assert "roll" not in raw["hit_roll"]
        assert "hit" not in raw

    def test_rolls_with_action_dice(self, always_hit: Any) -> None:
        """Test the action's dice win over the version's."""
        action = ShootAction(
            [
                LogFieldSpec(
                    "target",
                    "select-position",
                    options=["B2"],
                    nested_specs=[("B2", [DiceLogFieldSpec("hit_roll", [Dice(3, "hit die")])])],
                )
            ],
            subject="Ted",
        )
        raw = {"action": "shoot", "subject": "Ted", "target": "B2", "hit_roll": _auto_roll(1)}

        finalized = finalize_log_entry(raw, action=action, rng=always_hit)

        assert finalized["hit_roll"]["roll"] == [True, True, True]
        assert finalized["hit"] is True

    def test_manual_roll_untouched(self, always_hit: Any) -> None:
        """Test manual rolls are not re-rolled."""
        raw = {
            "action": "shoot",
            "hit_roll": {"type": "die-roll", "manual": True, "dice": [{"count": 1, "die": "hit die"}], "roll": [False]},
        }

        finalized = finalize_log_entry(raw, version=get_game_version("default-v3"), rng=always_hit)

        assert finalized["hit_roll"]["roll"] == [False]
        assert finalized["hit"] is False
        assert always_hit.calls == 0

    def test_no_dice_raises(self, always_hit: Any) -> None:
        """Test an automatic roll with nothing to roll fails."""
        raw = {"action": "shoot", "subject": "Ted", "target": "C1", "hit_roll": _auto_roll()}

        with pytest.raises(DiceRollError) as exc_info:
            finalize_log_entry(raw, version=get_game_version("default-v4"), rng=always_hit)

        assert exc_info.value.details == {"action": "shoot", "field": "hit_roll"}

    def test_entry_without_rolls(self) -> None:
        """Test entries with no rolls pass through as copies."""
        raw = {"action": "move", "subject": "Ted", "target": "B2"}

        finalized = finalize_log_entry(raw, version=get_game_version("default-v3"))

        assert finalized == raw
        assert finalized is not raw

    def test_version_finalize_entry(self, sample_state: GameState, always_hit: Any) -> None:
        """Test GameVersion.finalize_entry delegates here."""
        raw = {"action": "shoot", "subject": "Ted", "target": "C1", "hit_roll": _auto_roll()}

        finalized = get_game_version("default-v3").finalize_entry(raw, game_state=sample_state, rng=always_hit)

        assert finalized["hit"] is True
        assert always_hit.calls == 2
