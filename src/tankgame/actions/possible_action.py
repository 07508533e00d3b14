"""Possible actions: what a player may currently do, and why not.

A GenericPossibleAction is recomputed every turn. It names the action,
lists the ordered field specs a submission must fill in, and carries
ActionErrors when the action is visible but cannot be selected right
now (no targets, on cooldown, ...).
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from tankgame.actions.dice import Dice
from tankgame.actions.dice_field_spec import DiceLogFieldSpec, deserialize_field_spec
from tankgame.actions.field_spec import FieldSpec
from tankgame.core.exceptions import ValidationError
from tankgame.core.logging import get_logger


logger = get_logger(__name__)

EntryFinalizer = Callable[[dict[str, Any]], dict[str, Any] | None]


@dataclass(frozen=True)
class ActionError:
    """Why an action is currently unavailable.

    Attributes:
        category: Machine-readable category (GENERIC, INVALID_DATA, COOLDOWN, ...).
        message: Human-readable explanation.
        expiration: Unix timestamp after which the error no longer applies.
    """

    category: str
    message: str
    expiration: int | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ActionError:
        return cls(
            category=data.get("category", "GENERIC"),
            message=data.get("message", ""),
            expiration=data.get("expiration"),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"category": self.category, "message": self.message}
        if self.expiration is not None:
            payload["expiration"] = self.expiration
        return payload

    def __str__(self) -> str:
        return self.message


class GenericPossibleAction:
    """One action a subject may take, described by its field specs.

    Attributes:
        action_name: Log entry ``action`` value.
        subject: Player taking the action, if any.
    """

    def __init__(
        self,
        action_name: str,
        field_specs: Sequence[FieldSpec],
        *,
        errors: Sequence[ActionError] | None = None,
        subject: str | None = None,
        finalizer: EntryFinalizer | None = None,
    ) -> None:
        """Initialize the possible action.

        Args:
            action_name: Name of the action.
            field_specs: Top level field specs, in order.
            errors: Reasons the action cannot be selected.
            subject: Player the action was built for.
            finalizer: Transform applied to the raw entry right before submission.
        """
        self.action_name = action_name
        self.subject = subject
        self._field_specs = tuple(field_specs)
        self._errors = tuple(errors or ())
        self._finalizer = finalizer

        self._nested_table: dict[tuple[str, Any], tuple[FieldSpec, ...]] = {}
        self._index_nested(self._field_specs)

    def _index_nested(self, specs: Sequence[FieldSpec]) -> None:
        for spec in specs:
            nested = getattr(spec, "nested_specs", None)
            if not nested:
                continue
            for value, nested_specs in nested.items():
                self._nested_table[(spec.name, value)] = tuple(nested_specs)
                self._index_nested(nested_specs)

    # -------------------------------------------------------------------------
    # Description
    # -------------------------------------------------------------------------

    @property
    def field_specs(self) -> list[FieldSpec]:
        return list(self._field_specs)

    @property
    def errors(self) -> list[ActionError]:
        return list(self._errors)

    @property
    def is_available(self) -> bool:
        return not self._errors

    def get_action_name(self) -> str:
        return self.action_name

    def get_parameter_spec(self, entry: Mapping[str, Any]) -> list[FieldSpec]:
        """Return the specs active for ``entry``.

        Top level specs come first; each spec whose value is already set
        in the entry pulls in the nested specs keyed by that value.
        """
        active: list[FieldSpec] = []
        pending = list(self._field_specs)
        while pending:
            spec = pending.pop(0)
            active.append(spec)
            value = entry.get(spec.name)
            if value is None:
                continue
            pending.extend(self._nested_for(spec, value))
        return active

    def _nested_for(self, spec: FieldSpec, value: Any) -> tuple[FieldSpec, ...]:
        # Dice payloads are dicts and never key nested specs.
        try:
            return self._nested_table.get((spec.name, spec.canonical_value(value)), ())
        except TypeError:
            return ()

    def get_dice_for(self, field_name: str, entry: Mapping[str, Any]) -> list[Dice]:
        """Return the dice pool the entry's ``field_name`` should be rolled with."""
        for spec in self.get_parameter_spec(entry):
            if spec.name == field_name and isinstance(spec, DiceLogFieldSpec):
                return list(spec.dice)
        return []

    # -------------------------------------------------------------------------
    # Validation & submission
    # -------------------------------------------------------------------------

    def validate_entry(self, entry: Mapping[str, Any]) -> None:
        """Check every active field of a candidate entry.

        Raises:
            ValidationError: If the action is unavailable or a field is invalid.
        """
        if self._errors:
            raise ValidationError(
                f"Action {self.action_name} is not available: {self._errors[0]}",
                field_name="action",
                invalid_value=self.action_name,
            )

        for spec in self.get_parameter_spec(entry):
            value = entry.get(spec.name)
            if not spec.is_valid(value):
                raise ValidationError(
                    f"Invalid value for {spec.display}",
                    field_name=spec.name,
                    invalid_value=value,
                )

    def is_valid_entry(self, entry: Mapping[str, Any]) -> bool:
        try:
            self.validate_entry(entry)
        except ValidationError:
            return False
        return True

    def build_raw_entry(self, display_values: Mapping[str, Any]) -> dict[str, Any]:
        """Translate UI values into a raw log entry for this action.

        Hidden set-value fields are filled in automatically. Values that do
        not translate (such as a manual roll with the wrong number of dice)
        are left out, so the entry fails validation.
        """
        raw: dict[str, Any] = {"action": self.action_name}
        if self.subject is not None:
            raw["subject"] = self.subject

        pending = list(self._field_specs)
        while pending:
            spec = pending.pop(0)
            if spec.hidden:
                value = spec.translate_value(spec.options[0])  # type: ignore[attr-defined]
            elif spec.name in display_values:
                value = spec.translate_value(display_values[spec.name])
            else:
                continue
            if value is None:
                continue

            raw[spec.name] = value.human_readable if hasattr(value, "human_readable") else value
            pending.extend(self._nested_for(spec, value))

        return raw

    def finalize_log_entry(self, raw_entry: dict[str, Any]) -> dict[str, Any]:
        """Apply the configured finalizer, if any, to a copy of the entry."""
        if self._finalizer is None:
            return raw_entry
        result = self._finalizer(copy.deepcopy(raw_entry))
        return raw_entry if result is None else result

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    @classmethod
    def deserialize(cls, data: Mapping[str, Any]) -> GenericPossibleAction:
        return cls(
            data["actionName"],
            [deserialize_field_spec(spec) for spec in data.get("fieldSpecs", [])],
            errors=[ActionError.from_dict(error) for error in data.get("errors", [])],
            subject=data.get("subject"),
        )

    def serialize(self) -> dict[str, Any]:
        return {
            "actionName": self.action_name,
            "subject": self.subject,
            "fieldSpecs": [spec.serialize() for spec in self._field_specs],
            "errors": [error.to_dict() for error in self._errors],
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({self.action_name!r}, "
            f"fields={[spec.name for spec in self._field_specs]}, errors={len(self._errors)})"
        )


def shoot_finalizer(raw_entry: dict[str, Any]) -> dict[str, Any]:
    """Derive ``hit`` from ``hit_roll`` and ``damage`` from ``damage_roll``.

    A shot hits when any hit die came up hit. An explicit ``hit`` (set by a
    hidden field when no roll is needed) is left alone.
    """
    hit_roll = raw_entry.get("hit_roll")
    if raw_entry.get("hit") is None and isinstance(hit_roll, Mapping):
        raw_entry["hit"] = any(hit_roll.get("roll") or [])

    damage_roll = raw_entry.get("damage_roll")
    if raw_entry.get("damage") is None and isinstance(damage_roll, Mapping):
        raw_entry["damage"] = sum(side for side in damage_roll.get("roll") or [] if side is not None)

    return raw_entry


class ShootAction(GenericPossibleAction):
    """The shoot action; finalizes dice rolls into ``hit`` / ``damage``."""

    def __init__(
        self,
        field_specs: Sequence[FieldSpec],
        *,
        errors: Sequence[ActionError] | None = None,
        subject: str | None = None,
        finalizer: EntryFinalizer | None = None,
    ) -> None:
        super().__init__(
            "shoot",
            field_specs,
            errors=errors,
            subject=subject,
            finalizer=finalizer or shoot_finalizer,
        )


__all__ = [
    "ActionError",
    "GenericPossibleAction",
    "ShootAction",
    "shoot_finalizer",
    "EntryFinalizer",
]
