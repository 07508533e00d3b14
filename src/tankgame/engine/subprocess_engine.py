"""Rules engines running as subprocesses.

An EngineFactory wraps one engine program (e.g. a jar). All engines it
creates share a single JsonLineChannel and are told apart by instance
name; the process is asked to exit when its last instance is destroyed.
"""

from __future__ import annotations

import asyncio
import itertools
import json
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

from tankgame.core.config import EngineSettings, get_settings
from tankgame.core.constants import ENGINE_READ_LIMIT
from tankgame.core.exceptions import ConfigurationError, EngineUnavailableError
from tankgame.core.logging import get_logger
from tankgame.engine.channel import JsonLineChannel
from tankgame.engine.translator import convert_log_entry, decode_state, encode_state
from tankgame.models.game_state import GameState


if TYPE_CHECKING:
    from tankgame.models.log_entry import LogEntry

logger = get_logger(__name__)

# Instance names carry a process-wide counter so they can be told apart in logs
_instance_counter = itertools.count(1)


class SubprocessRulesEngine:
    """One named engine instance on a shared channel.

    Use :meth:`create`, which registers the instance with the engine.
    """

    def __init__(
        self,
        channel: JsonLineChannel,
        ruleset: str,
        instance: str,
        *,
        main_branch: bool = True,
        on_shutdown: Callable[[str], Any] | None = None,
    ) -> None:
        self._channel = channel
        self.ruleset = ruleset
        self.instance = instance
        self.is_main_branch = main_branch
        self._on_shutdown = on_shutdown
        self._current_state: GameState | None = None

    @classmethod
    async def create(
        cls,
        channel: JsonLineChannel,
        ruleset: str,
        *,
        main_branch: bool = True,
        on_shutdown: Callable[[str], Any] | None = None,
    ) -> SubprocessRulesEngine:
        engine = cls(
            channel,
            ruleset,
            f"{ruleset}--{next(_instance_counter)}",
            main_branch=main_branch,
            on_shutdown=on_shutdown,
        )
        await engine._request("createInstance", ruleset=ruleset)
        logger.info("Engine instance created", instance=engine.instance, ruleset=ruleset)
        return engine

    async def _request(self, method: str, **params: Any) -> dict[str, Any]:
        response = await self._channel.send_request_and_wait({"method": method, "instance": self.instance, **params})
        if response.get("error"):
            raise EngineUnavailableError(
                f"Engine reported an error for {method}: {response.get('message', 'unknown error')}",
                method=method,
                instance=self.instance,
                details={"response": response},
            )
        return response

    # -------------------------------------------------------------------------
    # RulesEngine
    # -------------------------------------------------------------------------

    async def set_board_state(self, state: GameState) -> None:
        await self._request("setState", **encode_state(state))
        self._current_state = state

    async def get_board_state(self) -> GameState:
        return decode_state(await self._request("getState"))

    async def process_action(self, entry: LogEntry) -> GameState:
        """Ingest an entry and return the resulting state.

        An engine error payload for ``ingestAction`` is a rejection of the
        entry, not a transport failure; it comes back as an invalid state.
        """
        response = await self._channel.send_request_and_wait(
            {
                "method": "ingestAction",
                "instance": self.instance,
                **convert_log_entry(entry, self.is_main_branch),
            }
        )
        if response.get("error"):
            reason = response.get("message") or "Action rejected by engine"
            logger.info("Engine rejected action", instance=self.instance, type=entry.type, reason=reason)
            if self._current_state is not None:
                return self._current_state.model_copy(update={"valid": False, "error": reason})
            return GameState(valid=False, error=reason)

        state = await self.get_board_state()
        self._current_state = state
        return state

    async def can_process_action(self, entry: LogEntry) -> list[str]:
        """Ask whether an entry would be accepted; returns the engine's reasons if not."""
        response = await self._request("canIngestAction", **convert_log_entry(entry, self.is_main_branch))
        return list(response.get("errors") or [])

    async def get_possible_actions(self, player: str) -> list[dict[str, Any]]:
        response = await self._request("getPossibleActions", player=player)
        return list(response.get("actions") or [])

    async def get_line_of_sight_for(self, player: str) -> list[Any]:
        response = await self._request("getLineOfSight", player=player)
        return list(response.get("positions") or [])

    async def shutdown(self) -> None:
        await self._request("destroyInstance")
        logger.info("Engine instance destroyed", instance=self.instance)
        if self._on_shutdown is not None:
            result = self._on_shutdown(self.instance)
            if asyncio.iscoroutine(result):
                await result

    def __repr__(self) -> str:
        return f"SubprocessRulesEngine({self.instance!r})"


class EngineFactory:
    """Creates engine instances for one engine program."""

    def __init__(
        self,
        command: Sequence[str],
        *,
        timeout: float = 3.0,
        start_retries: int = 3,
        read_limit: int = ENGINE_READ_LIMIT,
    ) -> None:
        self.command = list(command)
        self.timeout = timeout
        self.start_retries = start_retries
        self.read_limit = read_limit
        self._version_info: dict[str, Any] = {}
        self._channel: JsonLineChannel | None = None
        self._instances: set[str] = set()

    @classmethod
    def from_settings(cls, command: Sequence[str], settings: EngineSettings | None = None) -> EngineFactory:
        settings = settings or get_settings().engine
        return cls(
            command,
            timeout=settings.timeout_seconds,
            start_retries=settings.start_retries,
            read_limit=settings.read_limit,
        )

    async def query_version(self) -> dict[str, Any]:
        """Run the engine with ``--version`` and record what it reports.

        Raises:
            EngineUnavailableError: If the engine cannot be run or its output is not JSON.
        """
        try:
            process = await asyncio.create_subprocess_exec(
                *self.command,
                "--version",
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=self.timeout * 10)
        except (OSError, asyncio.TimeoutError) as exc:
            raise EngineUnavailableError(
                f"Failed to query engine version: {exc}",
                method="--version",
                details={"command": self.command},
            ) from exc

        try:
            self._version_info = json.loads(stdout.decode())
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise EngineUnavailableError(
                "Engine version output is not JSON",
                method="--version",
                details={"command": self.command},
            ) from exc

        logger.info(
            "Engine version read",
            command=self.command,
            version=self.pretty_version,
            rulesets=self.supported_rulesets,
        )
        return self._version_info

    @property
    def pretty_version(self) -> str | None:
        return self._version_info.get("pretty_version")

    @property
    def supported_rulesets(self) -> list[str]:
        return list(self._version_info.get("supported_rulesets") or [])

    @property
    def is_main_branch(self) -> bool:
        return bool(self._version_info.get("main_branch", True))

    @property
    def instance_count(self) -> int:
        return len(self._instances)

    async def create_engine(self, ruleset: str) -> SubprocessRulesEngine:
        if self._channel is None:
            self._channel = JsonLineChannel(
                self.command,
                timeout=self.timeout,
                name=Path(self.command[-1]).name,
                start_retries=self.start_retries,
                read_limit=self.read_limit,
            )

        engine = await SubprocessRulesEngine.create(
            self._channel,
            ruleset,
            main_branch=self.is_main_branch,
            on_shutdown=self._instance_destroyed,
        )
        self._instances.add(engine.instance)
        return engine

    async def _instance_destroyed(self, instance: str) -> None:
        self._instances.discard(instance)
        if self._instances or self._channel is None:
            return

        channel, self._channel = self._channel, None
        # The engine exits without answering
        await channel.send_request({"method": "exit"})
        await channel.close()


async def discover_engine_factories(settings: EngineSettings | None = None) -> list[EngineFactory]:
    """Find every engine the settings point at.

    An explicit ``command`` wins; otherwise every jar in ``search_dir`` is used.
    """
    settings = settings or get_settings().engine

    commands: Iterable[list[str]]
    if settings.command:
        commands = [list(settings.command)]
    elif settings.search_dir.is_dir():
        commands = [["java", "-jar", str(jar)] for jar in sorted(settings.search_dir.glob("*.jar"))]
    else:
        commands = []

    factories = []
    for command in commands:
        factory = EngineFactory.from_settings(command, settings)
        await factory.query_version()
        factories.append(factory)
    return factories


def find_factory_for_version(factories: Sequence[EngineFactory], version: str) -> EngineFactory:
    """Return the first factory supporting ``version``.

    Raises:
        ConfigurationError: If no engine supports it.
    """
    for factory in factories:
        if version in factory.supported_rulesets:
            return factory
    raise ConfigurationError(f"No engine supports game version {version}", config_key="engine.command")


__all__ = [
    "SubprocessRulesEngine",
    "EngineFactory",
    "discover_engine_factories",
    "find_factory_for_version",
]
