"""Tests for field specs."""

from __future__ import annotations

import pytest

from tankgame.actions.dice import Dice
from tankgame.actions.dice_field_spec import DiceLogFieldSpec, deserialize_field_spec
from tankgame.actions.field_spec import LogFieldSpec, prettify_name
from tankgame.core.exceptions import FieldSpecError, InvalidPositionError, ValidationError
from tankgame.models.position import Position


@pytest.mark.parametrize(
    ("name", "pretty"),
    [("hit_roll", "Hit Roll"), ("targetPosition", "Target Position"), ("target", "Target")],
)
def test_prettify_name(name: str, pretty: str) -> None:
    """Test field names become display labels."""
    assert prettify_name(name) == pretty


class TestLogFieldSpec:
    """Tests for LogFieldSpec."""

    def test_invalid_type(self) -> None:
        """Test unknown types are rejected."""
        with pytest.raises(FieldSpecError):
            LogFieldSpec("target", "checkbox")

    @pytest.mark.parametrize("options", [None, [], "A1"])
    def test_select_needs_options(self, options: object) -> None:
        """Test selects need a non-empty option list."""
        with pytest.raises(FieldSpecError):
            LogFieldSpec("target", "select", options=options)  # type: ignore[arg-type]

    def test_duplicate_display_rejected(self) -> None:
        """Test options must have unique labels."""
        with pytest.raises(FieldSpecError):
            LogFieldSpec(
                "target",
                "select",
                options=[{"display": "Ted", "value": "ted-1"}, {"display": "Ted", "value": "ted-2"}],
            )

    def test_select_translates_display(self) -> None:
        """Test display labels map to stored values."""
        spec = LogFieldSpec(
            "target",
            "select",
            options=[{"display": "Ted", "value": "ted-1"}, {"display": "Bob", "value": "bob-1"}],
        )

        assert spec.options == ["Ted", "Bob"]
        assert spec.translate_value("Bob") == "bob-1"
        assert spec.is_valid("bob-1")
        assert not spec.is_valid("Bob")
        assert not spec.is_valid(None)

    def test_position_select(self) -> None:
        """Test position selects store positions."""
        spec = LogFieldSpec("target", "select-position", options=[Position(0, 0), "C1"])

        assert spec.options == ["A1", "C1"]
        assert spec.translate_value("C1") == Position(2, 0)
        assert spec.is_valid(Position(2, 0))
        assert spec.is_valid("C1")
        assert not spec.is_valid("B1")

    def test_position_select_bad_label(self) -> None:
        """Test unparseable labels raise InvalidPositionError."""
        spec = LogFieldSpec("target", "select-position", options=["A1"])
        with pytest.raises(InvalidPositionError):
            spec.translate_value("nowhere")

    def test_input_number(self) -> None:
        """Test number inputs parse strings."""
        spec = LogFieldSpec("gold", "input-number")

        assert spec.translate_value("3") == 3
        assert spec.translate_value("2.5") == 2.5
        assert spec.translate_value(7) == 7
        with pytest.raises(ValidationError):
            spec.translate_value("lots")

    def test_free_input_accepts_anything(self) -> None:
        """Test inputs without options accept any non-None value."""
        spec = LogFieldSpec("note", "input")
        assert spec.is_valid("anything")
        assert not spec.is_valid(None)

    def test_set_value_is_hidden(self) -> None:
        """Test set-value fields are hidden with one option."""
        spec = LogFieldSpec("hit", "set-value", value=True)

        assert spec.hidden
        assert spec.options == [True]
        assert spec.is_valid(True)
        assert not spec.is_valid(False)

    def test_nested_specs(self) -> None:
        """Test nested specs are keyed by stored value."""
        nested = LogFieldSpec("hit", "set-value", value=True)
        spec = LogFieldSpec("target", "select-position", options=["A1", "B1"], nested_specs={"B1": [nested]})

        assert spec.nested_specs_for("B1") == [nested]
        assert spec.nested_specs_for(Position(1, 0)) == [nested]
        assert spec.nested_specs_for("A1") == []

    def test_serialize_round_trip(self) -> None:
        """Test nested specs survive serialization."""
        spec = LogFieldSpec(
            "target",
            "select-position",
            options=["A1", "B1"],
            nested_specs=[("B1", [DiceLogFieldSpec("hit_roll", [Dice(2, "hit die")])])],
        )

        data = spec.serialize()
        restored = deserialize_field_spec(data)

        assert data["options"] == ["A1", "B1"]
        assert isinstance(restored, LogFieldSpec)
        assert restored.options == ["A1", "B1"]
        nested = restored.nested_specs_for("B1")
        assert isinstance(nested[0], DiceLogFieldSpec)
        assert nested[0].dice == [Dice(2, "hit die")]


class TestDiceLogFieldSpec:
    """Tests for DiceLogFieldSpec."""

    @pytest.fixture
    def spec(self) -> DiceLogFieldSpec:
        return DiceLogFieldSpec("hit_roll", [Dice(3, "hit die")])

    def test_auto_roll(self, spec: DiceLogFieldSpec) -> None:
        """Test automatic rolls carry the dice but no roll."""
        value = spec.translate_value({"manual": False})

        assert value == {"type": "die-roll", "manual": False, "dice": [{"count": 3, "die": "hit die"}]}
        assert spec.is_valid(value)

    def test_manual_roll(self, spec: DiceLogFieldSpec) -> None:
        """Test manual labels become side values."""
        value = spec.translate_value({"manual": True, "dice": ["hit", "miss", "hit"]})

        assert value["roll"] == [True, False, True]
        assert spec.is_valid(value)

    def test_manual_roll_wrong_length(self, spec: DiceLogFieldSpec) -> None:
        """Test a manual roll needs one label per die."""
        assert spec.translate_value({"manual": True, "dice": ["hit", "miss"]}) is None
        assert not spec.is_valid({"type": "die-roll", "manual": True, "dice": [], "roll": [True, False]})

    def test_manual_roll_unknown_label(self, spec: DiceLogFieldSpec) -> None:
        """Test labels that match no side make the roll invalid."""
        value = spec.translate_value({"manual": True, "dice": ["hit", "crit", "hit"]})
        assert value["roll"] == [True, None, True]
        assert not spec.is_valid(value)

    def test_empty_pool_cannot_auto_roll(self) -> None:
        """Test an automatic roll needs at least one die."""
        spec = DiceLogFieldSpec("hit_roll", [])
        assert not spec.is_valid(spec.translate_value({"manual": False}))

    def test_describe_and_serialize(self, spec: DiceLogFieldSpec) -> None:
        """Test the description and stored form."""
        assert spec.describe_dice() == ["3x hit dice"]
        assert spec.display == "Hit Roll"
        assert DiceLogFieldSpec.deserialize(spec.serialize()).dice == spec.dice
