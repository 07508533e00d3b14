"""Rules engine integration.

Modules:
    protocol: The RulesEngine contract and SaveHandler type.
    interactor: GameInteractor, the per-game turn processor.
    channel: JSON-lines transport to an engine subprocess.
    subprocess_engine: Engine instances and factories over that transport.
    translator: Log entry and state wire conversion.
    manager: Engine selection per game version and the games in a save directory.
"""

from __future__ import annotations

from tankgame.engine.channel import JsonLineChannel
from tankgame.engine.interactor import GameInteractor, InteractorStatus
from tankgame.engine.manager import EngineManager, GameManager
from tankgame.engine.protocol import RulesEngine, SaveHandler
from tankgame.engine.subprocess_engine import (
    EngineFactory,
    SubprocessRulesEngine,
    discover_engine_factories,
    find_factory_for_version,
)
from tankgame.engine.translator import convert_log_entry, decode_state, encode_state


__all__ = [
    "RulesEngine",
    "SaveHandler",
    "GameInteractor",
    "InteractorStatus",
    "EngineManager",
    "GameManager",
    "JsonLineChannel",
    "SubprocessRulesEngine",
    "EngineFactory",
    "discover_engine_factories",
    "find_factory_for_version",
    "convert_log_entry",
    "encode_state",
    "decode_state",
]
