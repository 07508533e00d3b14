"""Game versions (rulesets) and the version registry.

Example:
    >>> version = get_game_version("default-v3")
    >>> version.name
    'default-v3'
"""

from __future__ import annotations

from tankgame.core.exceptions import ConfigurationError
from tankgame.versions.base import GameVersion
from tankgame.versions.default import DEFAULT_V3, DEFAULT_V4, DEFAULT_V5
from tankgame.versions.formatter import BASE_FORMAT_FUNCTIONS, FormattingHelpers, LogEntryFormatter


_GAME_VERSIONS: dict[str, GameVersion] = {
    version.name: version for version in (DEFAULT_V3, DEFAULT_V4, DEFAULT_V5)
}


def get_game_version(name: str) -> GameVersion:
    """Look up a registered game version.

    Raises:
        ConfigurationError: If no version has that name.
    """
    try:
        return _GAME_VERSIONS[name]
    except KeyError as exc:
        raise ConfigurationError(
            f"Unknown game version {name}",
            config_key="game.default_version",
            details={"available": get_all_versions()},
        ) from exc


def get_all_versions() -> list[str]:
    return list(_GAME_VERSIONS)


__all__ = [
    "GameVersion",
    "LogEntryFormatter",
    "FormattingHelpers",
    "BASE_FORMAT_FUNCTIONS",
    "get_game_version",
    "get_all_versions",
]
