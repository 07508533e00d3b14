"""Descriptions of the input fields of a possible action.

A field spec tells a client what shape a field has (select, position
select, free input, hidden fixed value), which values are legal, and how
a UI-facing display value maps back to the value stored in the log
entry. Specs can branch: choosing a value may activate further specs
(e.g. picking a shoot target decides which dice to roll).
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from tankgame.core.constants import (
    FIELD_INPUT_NUMBER,
    FIELD_SELECT_POSITION,
    FIELD_SET_VALUE,
    VALID_FIELD_TYPES,
)
from tankgame.core.exceptions import FieldSpecError, InvalidPositionError, ValidationError
from tankgame.models.position import Position


_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def prettify_name(name: str, *, capitalize: bool = True) -> str:
    """Turn ``hit_roll`` or ``targetPosition`` into ``Hit Roll`` / ``Target Position``."""
    words = re.split(r"_|-|\s+", _CAMEL_BOUNDARY.sub("_", name).lower())
    if capitalize:
        words = [word[:1].upper() + word[1:] for word in words]
    return " ".join(word for word in words if word)


class FieldSpec(ABC):
    """Common interface of every field spec."""

    type: str

    def __init__(self, name: str, *, display: str | None = None, description: str | None = None) -> None:
        self.name = name
        self.display = display or prettify_name(name)
        self.description = description

    @property
    def hidden(self) -> bool:
        return False

    @abstractmethod
    def is_valid(self, value: Any) -> bool:
        """Check a stored (already translated) value."""

    @abstractmethod
    def translate_value(self, display_value: Any) -> Any:
        """Map a UI-facing value to the value stored in the log entry."""

    @abstractmethod
    def serialize(self) -> dict[str, Any]:
        """Return a JSON-serializable description."""

    def canonical_value(self, value: Any) -> Any:
        """Key used to look up nested specs for a stored value."""
        return value

    def nested_specs_for(self, value: Any) -> list[FieldSpec]:
        return []


class LogFieldSpec(FieldSpec):
    """A select, position select, free input, or hidden fixed-value field.

    Example:
        >>> spec = LogFieldSpec("target", "select-position", options=["A1", "B2"])
        >>> spec.is_valid(spec.translate_value("B2"))
        True
    """

    def __init__(
        self,
        name: str,
        type: str,
        *,
        options: Sequence[Any] | None = None,
        value: Any = None,
        display: str | None = None,
        description: str | None = None,
        nested_specs: Mapping[Any, Sequence[FieldSpec]] | Iterable[tuple[Any, Sequence[FieldSpec]]] | None = None,
    ) -> None:
        """Initialize the field spec.

        Args:
            name: Log entry field the value is stored under.
            type: One of select, select-position, input, input-number, set-value.
            options: Legal options; bare values, positions, or ``{"display", "value"}`` mappings.
            value: The single value of a set-value field.
            display: Label shown to players.
            description: Longer help text.
            nested_specs: Specs activated by a chosen value, keyed by display or stored value.

        Raises:
            FieldSpecError: For an unknown type, a select without options, or duplicate labels.
        """
        super().__init__(name, display=display, description=description)

        if type not in VALID_FIELD_TYPES:
            raise FieldSpecError(f"Invalid log field spec type {type}", field_name=name, invalid_value=type)

        if type == FIELD_SET_VALUE:
            options = [value]

        if type.startswith("select") and (options is None or isinstance(options, (str, bytes)) or len(options) == 0):
            raise FieldSpecError("Selects must have a non-empty list of options", field_name=name)

        self.type = type
        self._orig_options = list(options) if options is not None else None
        self.options: list[Any] | None = None
        self._option_to_value: dict[Any, Any] = {}
        self._valid_values: set[Any] | None = None

        if self._orig_options is not None:
            self.options = []
            for option in self._orig_options:
                display_key = self._display_key(option)
                if display_key in self._option_to_value:
                    raise FieldSpecError(
                        f"While building log field spec {name} ({type}) found duplicate display value: {display_key!r}",
                        field_name=name,
                        invalid_value=display_key,
                    )
                self.options.append(display_key)
                self._option_to_value[display_key] = self._stored_value(option)

            self._valid_values = {self.canonical_value(value) for value in self._option_to_value.values()}

        self._nested: dict[Any, list[FieldSpec]] = {}
        pairs = nested_specs.items() if isinstance(nested_specs, Mapping) else (nested_specs or [])
        for key, specs in pairs:
            self._nested[self.canonical_value(self.translate_value(key))] = list(specs)

    @staticmethod
    def _display_key(option: Any) -> Any:
        if isinstance(option, Position):
            return option.human_readable
        if isinstance(option, Mapping):
            if option.get("display") is not None:
                return option["display"]
            if option.get("position") is not None:
                return Position.coerce(option["position"]).human_readable
        return option

    @staticmethod
    def _stored_value(option: Any) -> Any:
        if isinstance(option, Mapping):
            if "value" in option:
                return option["value"]
            if "position" in option:
                return Position.coerce(option["position"]).human_readable
        if isinstance(option, Position):
            return option.human_readable
        return option

    @property
    def hidden(self) -> bool:
        return self.type == FIELD_SET_VALUE

    @property
    def is_position(self) -> bool:
        return self.type == FIELD_SELECT_POSITION

    def canonical_value(self, value: Any) -> Any:
        if self.is_position and value is not None:
            try:
                return Position.coerce(value)
            except InvalidPositionError:
                return value
        return value

    def translate_value(self, display_value: Any) -> Any:
        """Map a display value to its stored value.

        Raises:
            InvalidPositionError: If a position field gets an unparseable label.
            ValidationError: If a number field gets a non-numeric string.
        """
        value = self._option_to_value.get(display_value, display_value) if _hashable(display_value) else display_value

        if self.is_position and isinstance(value, str):
            return Position.from_human_readable(value)

        if self.type == FIELD_INPUT_NUMBER and isinstance(value, str):
            try:
                return int(value)
            except ValueError:
                try:
                    return float(value)
                except ValueError as exc:
                    raise ValidationError(
                        f"Expected a number for {self.name}",
                        field_name=self.name,
                        invalid_value=value,
                    ) from exc

        return value

    def is_valid(self, value: Any) -> bool:
        if value is None:
            return False

        if self._valid_values is not None:
            canonical = self.canonical_value(value)
            return _hashable(canonical) and canonical in self._valid_values

        return True

    def nested_specs_for(self, value: Any) -> list[FieldSpec]:
        canonical = self.canonical_value(value)
        if not _hashable(canonical):
            return []
        return list(self._nested.get(canonical, []))

    @property
    def nested_specs(self) -> dict[Any, list[FieldSpec]]:
        return {key: list(specs) for key, specs in self._nested.items()}

    @classmethod
    def deserialize(cls, raw_spec: Mapping[str, Any]) -> LogFieldSpec:
        from tankgame.actions.dice_field_spec import deserialize_field_spec

        nested = [
            (key, [deserialize_field_spec(spec) for spec in specs])
            for key, specs in raw_spec.get("nestedSpecsByValue") or []
        ]
        return cls(
            raw_spec["name"],
            raw_spec["type"],
            options=raw_spec.get("options"),
            value=raw_spec.get("value"),
            display=raw_spec.get("display"),
            description=raw_spec.get("description"),
            nested_specs=nested,
        )

    def serialize(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "display": self.display,
            "type": self.type,
            "options": [_jsonable(option) for option in self._orig_options] if self._orig_options is not None else None,
            "value": _jsonable(self._orig_options[0]) if self.hidden and self._orig_options else None,
            "description": self.description,
            "nestedSpecsByValue": [
                [_jsonable(key), [spec.serialize() for spec in specs]]
                for key, specs in self._nested.items()
            ] or None,
        }

    def __repr__(self) -> str:
        return f"LogFieldSpec({self.name!r}, {self.type!r}, options={self.options!r})"


def _hashable(value: Any) -> bool:
    try:
        hash(value)
    except TypeError:
        return False
    return True


def _jsonable(value: Any) -> Any:
    if isinstance(value, Position):
        return value.human_readable
    return value


__all__ = [
    "FieldSpec",
    "LogFieldSpec",
    "prettify_name",
]
