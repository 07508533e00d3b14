"""Application-wide constants for the tank game core.

This module defines the sentinel action names, field spec types, and
engine protocol constants shared across the package.
"""

from __future__ import annotations

# =============================================================================
# Log Entries
# =============================================================================

START_OF_DAY = "start_of_day"
"""Entry type used when a raw entry carries no ``action`` field."""

DIE_ROLL_TYPE = "die-roll"
"""Marker stored in the ``type`` key of a die roll field value."""

TEST_MODE_TIMESTAMP_STEP = 20 * 60
"""Seconds added per entry by the deterministic test-mode clock."""

# =============================================================================
# Field Specs
# =============================================================================

FIELD_SELECT = "select"
FIELD_SELECT_POSITION = "select-position"
FIELD_INPUT = "input"
FIELD_INPUT_NUMBER = "input-number"
FIELD_SET_VALUE = "set-value"
FIELD_ROLL_DICE = "roll-dice"

VALID_FIELD_TYPES = (
    FIELD_SELECT,
    FIELD_SELECT_POSITION,
    FIELD_INPUT,
    FIELD_INPUT_NUMBER,
    FIELD_SET_VALUE,
)
"""Field types accepted by LogFieldSpec (dice fields have their own class)."""

# =============================================================================
# Players & Engine Protocol
# =============================================================================

COUNCIL_PLAYER_TYPES = ("councilor", "senator")
"""Player types that act on behalf of the council."""

COUNCIL_SUBJECT = "Council"
"""Subject name the engine uses for council actions."""

COUNCIL_ACTIONS = ("bounty", "grant_life", "stimulus")
"""Actions submitted as the council on the legacy engine branch."""

ENGINE_READ_LIMIT = 16 * 1024 * 1024
"""Largest engine response line, in bytes. Full board states run to megabytes."""

# =============================================================================
# Game Files
# =============================================================================

FILE_FORMAT_VERSION = 7
"""Game file format written by this package."""

MINIMUM_SUPPORTED_FILE_FORMAT_VERSION = 5
"""Oldest game file format this package will load."""


__all__ = [
    "START_OF_DAY",
    "DIE_ROLL_TYPE",
    "TEST_MODE_TIMESTAMP_STEP",
    "FIELD_SELECT",
    "FIELD_SELECT_POSITION",
    "FIELD_INPUT",
    "FIELD_INPUT_NUMBER",
    "FIELD_SET_VALUE",
    "FIELD_ROLL_DICE",
    "VALID_FIELD_TYPES",
    "COUNCIL_PLAYER_TYPES",
    "COUNCIL_SUBJECT",
    "COUNCIL_ACTIONS",
    "ENGINE_READ_LIMIT",
    "FILE_FORMAT_VERSION",
    "MINIMUM_SUPPORTED_FILE_FORMAT_VERSION",
]
