"""Custom exception hierarchy for the tank game turn-processing core.

This module defines the exception hierarchy used across the log book,
the possible-action catalog, and the engine interactor. All exceptions
inherit from TankGameError, enabling unified error handling at the
application boundary while preserving domain-specific context.

Example:
    >>> from tankgame.core.exceptions import EngineRejectedActionError
    >>> raise EngineRejectedActionError("Target out of range", action="shoot")
"""

from __future__ import annotations

from typing import Any


class TankGameError(Exception):
    """Base exception for all tank game errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details.

        Returns:
            Formatted error message including any provided details.
        """
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        """Return a detailed string representation of the exception."""
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Game Engine Domain Exceptions
# =============================================================================


class GameEngineError(TankGameError):
    """Base exception for errors raised while driving the rules engine.

    Raised when there are issues with replaying the log book, submitting
    new entries, or talking to the external engine process.
    """


class RangeInconsistencyError(GameEngineError):
    """Raised when a replay range is impossible.

    This indicates a programmer error: the derived state list can never
    be longer than the log book.
    """

    def __init__(
        self,
        message: str,
        *,
        start_index: int | None = None,
        end_index: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize range error with replay bounds.

        Args:
            message: Human-readable error description.
            start_index: First index that was going to be replayed.
            end_index: Last index that was going to be replayed.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if start_index is not None:
            combined_details["start_index"] = start_index
        if end_index is not None:
            combined_details["end_index"] = end_index
        super().__init__(message, details=combined_details)


class StateDesyncError(GameEngineError):
    """Raised when the log book and derived states disagree in length.

    Seeing this means something mutated the log book without going
    through the interactor's operation queue.
    """

    def __init__(
        self,
        message: str,
        *,
        log_length: int | None = None,
        state_count: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize desync error with both lengths.

        Args:
            message: Human-readable error description.
            log_length: Number of entries in the log book.
            state_count: Number of derived game states.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if log_length is not None:
            combined_details["log_length"] = log_length
        if state_count is not None:
            combined_details["state_count"] = state_count
        super().__init__(message, details=combined_details)


class EngineRejectedActionError(GameEngineError):
    """Raised when the engine reports a submitted action as invalid.

    This is an expected, recoverable error. The caller may resubmit a
    corrected entry.
    """

    def __init__(
        self,
        message: str,
        *,
        action: str | None = None,
        reason: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize rejection error with the engine-supplied reason.

        Args:
            message: Human-readable error description.
            action: Type of the rejected action.
            reason: Reason reported by the engine.
            details: Optional dictionary containing additional error context.
        """
        self.reason = reason
        combined_details = details or {}
        if action:
            combined_details["action"] = action
        if reason:
            combined_details["reason"] = reason
        super().__init__(message, details=combined_details)


class EngineUnavailableError(GameEngineError):
    """Raised when the engine process cannot be reached.

    This covers timeouts, a dead process, malformed responses, and
    error payloads returned by the engine itself.
    """

    def __init__(
        self,
        message: str,
        *,
        method: str | None = None,
        instance: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize transport error with request context.

        Args:
            message: Human-readable error description.
            method: Engine method that was being called.
            instance: Engine instance name.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if method:
            combined_details["method"] = method
        if instance:
            combined_details["instance"] = instance
        super().__init__(message, details=combined_details)


class DiceRollError(TankGameError):
    """Raised when dice cannot be built or rolled.

    This typically occurs for an unknown die name or a roll field with
    no dice assigned.
    """

    def __init__(
        self,
        message: str,
        *,
        die_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize dice error with die context.

        Args:
            message: Human-readable error description.
            die_name: Name of the die involved.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if die_name:
            combined_details["die_name"] = die_name
        super().__init__(message, details=combined_details)


# =============================================================================
# Log Book Exceptions
# =============================================================================


class LogBookError(TankGameError):
    """Base exception for log book errors."""


class OutOfRangeError(LogBookError):
    """Raised when a log entry id or day is outside the book."""

    def __init__(
        self,
        message: str,
        *,
        entry_id: int | None = None,
        day: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize out of range error.

        Args:
            message: Human-readable error description.
            entry_id: The requested entry id.
            day: The requested day.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if entry_id is not None:
            combined_details["entry_id"] = entry_id
        if day is not None:
            combined_details["day"] = day
        super().__init__(message, details=combined_details)


# =============================================================================
# Configuration, Validation & Persistence Exceptions
# =============================================================================


class ConfigurationError(TankGameError):
    """Raised when application or game version configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with config key context.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


class ValidationError(TankGameError):
    """Raised when submitted data fails validation.

    This includes field values that are not among the legal options
    and entries that do not match their action's field specs.
    """

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        invalid_value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error with field context.

        Args:
            message: Human-readable error description.
            field_name: Name of the field that failed validation.
            invalid_value: The value that failed validation.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if field_name:
            combined_details["field_name"] = field_name
        if invalid_value is not None:
            combined_details["invalid_value"] = invalid_value
        super().__init__(message, details=combined_details)


class InvalidPositionError(ValidationError):
    """Raised when a board coordinate or label cannot be parsed."""


class FieldSpecError(ValidationError):
    """Raised when a log field spec is constructed with bad options."""


class PersistenceError(TankGameError):
    """Raised when a game file cannot be saved or loaded.

    A save failure after a successful submission does not roll back the
    in-memory log book.
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize persistence error with file context.

        Args:
            message: Human-readable error description.
            path: Path of the game file involved.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if path:
            combined_details["path"] = path
        super().__init__(message, details=combined_details)


__all__ = [
    # Base exception
    "TankGameError",
    # Game engine exceptions
    "GameEngineError",
    "RangeInconsistencyError",
    "StateDesyncError",
    "EngineRejectedActionError",
    "EngineUnavailableError",
    "DiceRollError",
    # Log book exceptions
    "LogBookError",
    "OutOfRangeError",
    # Configuration, validation & persistence
    "ConfigurationError",
    "ValidationError",
    "InvalidPositionError",
    "FieldSpecError",
    "PersistenceError",
]
