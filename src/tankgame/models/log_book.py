"""The authoritative, append-only history of a game.

Entries are 0-indexed and their days never decrease. The book keeps a
derived ``day -> first entry id`` map for day-granularity navigation.
"""

from __future__ import annotations

import bisect
from collections.abc import Iterator
from typing import Any

from tankgame.core.exceptions import LogBookError, OutOfRangeError
from tankgame.core.logging import get_logger
from tankgame.models.log_entry import LogEntry


logger = get_logger(__name__)


class LogBook:
    """Ordered sequence of log entries for one game.

    Example:
        >>> book = LogBook("default-v3")
        >>> entry = book.make_entry_from_raw({"action": "start_of_day", "day": 1})
        >>> book.add_entry(entry)
        0
    """

    def __init__(self, game_version: str, entries: list[LogEntry] | None = None) -> None:
        """Initialize the log book.

        Args:
            game_version: Name of the ruleset the entries were written for.
            entries: Existing entries, in order.
        """
        self.game_version = game_version
        self._entries: list[LogEntry] = list(entries or [])
        self._build_day_map()

    def _build_day_map(self) -> None:
        """Record the id of the first entry of every day."""
        self._day_map: dict[int, int] = {}
        self._days: list[int] = []
        self._min_day: int | None = None
        self._max_day: int | None = None

        previous_day: int | None = None
        for entry in self._entries:
            if previous_day is not None and entry.day < previous_day:
                raise LogBookError(
                    "Log book days must not decrease",
                    details={"entry_id": entry.id, "day": entry.day, "previous_day": previous_day},
                )
            self._record_day(entry)
            previous_day = entry.day

    def _record_day(self, entry: LogEntry) -> None:
        if entry.day not in self._day_map:
            self._day_map[entry.day] = entry.id
            self._days.append(entry.day)
        if self._min_day is None:
            self._min_day = entry.day
        self._max_day = entry.day

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    @classmethod
    def deserialize(cls, data: dict[str, Any]) -> LogBook:
        """Build a book from ``{"gameVersion": ..., "rawEntries": [...]}``."""
        previous_day = 0
        entries = []
        for idx, raw_entry in enumerate(data.get("rawEntries", [])):
            entry = LogEntry.deserialize(idx, previous_day, raw_entry)
            previous_day = entry.day
            entries.append(entry)

        return cls(data["gameVersion"], entries)

    def serialize(self) -> dict[str, Any]:
        return {
            "gameVersion": self.game_version,
            "rawEntries": [entry.serialize() for entry in self._entries],
        }

    # -------------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(self._entries)

    def get_entry(self, entry_id: int) -> LogEntry:
        """Return the entry at ``entry_id``.

        Raises:
            OutOfRangeError: If the id is outside ``[0, len)``.
        """
        if not 0 <= entry_id < len(self._entries):
            raise OutOfRangeError(
                f"No log entry with id {entry_id} (book has {len(self._entries)} entries)",
                entry_id=entry_id,
            )
        return self._entries[entry_id]

    def get_first_entry_id(self) -> int:
        return 0

    def get_last_entry_id(self) -> int:
        """Return the id of the last entry, or -1 for an empty book."""
        return len(self._entries) - 1

    @property
    def min_day(self) -> int | None:
        return self._min_day

    @property
    def max_day(self) -> int | None:
        return self._max_day

    @property
    def days(self) -> list[int]:
        return list(self._days)

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def make_entry_from_raw(self, raw_entry: dict[str, Any]) -> LogEntry:
        """Build a candidate entry that would be appended next.

        The day defaults to the latest day in the book so callers can
        submit "later today" actions without tracking the day.
        """
        raw = dict(raw_entry)
        day = raw.get("day")
        if day is None:
            day = self._max_day if self._max_day is not None else 0
        return LogEntry(id=len(self._entries), day=int(day), raw=raw)

    def add_entry(self, entry: LogEntry) -> int:
        """Append an entry and return its id.

        Raises:
            LogBookError: If the entry's id or day does not fit the end of the book.
        """
        if entry.id != len(self._entries):
            raise LogBookError(
                "Entry id does not match the end of the log book",
                details={"entry_id": entry.id, "expected_id": len(self._entries)},
            )
        if self._max_day is not None and entry.day < self._max_day:
            raise LogBookError(
                "Entry day is earlier than the last day in the log book",
                details={"day": entry.day, "max_day": self._max_day},
            )

        self._entries.append(entry)
        self._record_day(entry)
        logger.debug("Log entry added", entry_id=entry.id, day=entry.day, type=entry.type)
        return entry.id

    # -------------------------------------------------------------------------
    # Day navigation
    # -------------------------------------------------------------------------

    def get_first_entry_of_day(self, day: int) -> LogEntry:
        """Return the first entry recorded on ``day``.

        Raises:
            OutOfRangeError: If no entry was recorded on that day.
        """
        if day not in self._day_map:
            raise OutOfRangeError(f"No log entries for day {day}", day=day)
        return self.get_entry(self._day_map[day])

    def get_last_entry_of_day(self, day: int) -> LogEntry:
        """Return the last entry recorded on ``day``.

        Raises:
            OutOfRangeError: If no entry was recorded on that day.
        """
        if day not in self._day_map:
            raise OutOfRangeError(f"No log entries for day {day}", day=day)

        if day == self._max_day:
            return self.get_entry(self.get_last_entry_id())

        next_day = self._days[bisect.bisect_right(self._days, day)]
        return self.get_entry(self._day_map[next_day] - 1)


__all__ = ["LogBook"]
