"""Line-oriented JSON transport to an engine subprocess.

Requests and responses are single JSON objects, one per line, over the
child's stdin/stdout. Only one request is in flight at a time; anything
the engine writes to stderr is forwarded to the log.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Sequence
from typing import Any

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from tankgame.core.constants import ENGINE_READ_LIMIT
from tankgame.core.exceptions import EngineUnavailableError
from tankgame.core.logging import get_logger


logger = get_logger(__name__)


class JsonLineChannel:
    """A request/response channel to one engine process.

    The process is started lazily on the first request and restarted on
    the next request after it dies or times out.

    Example:
        >>> channel = JsonLineChannel(["java", "-jar", "engine/TankGame.jar"], timeout=3.0)
        >>> response = await channel.send_request_and_wait({"method": "exit"})
    """

    def __init__(
        self,
        command: Sequence[str],
        *,
        timeout: float = 3.0,
        name: str = "engine",
        start_retries: int = 3,
        read_limit: int = ENGINE_READ_LIMIT,
    ) -> None:
        """Initialize the channel.

        Args:
            command: Program and arguments to spawn.
            timeout: Seconds to wait for each response line.
            name: Label used in log events.
            start_retries: Attempts made to spawn the process.
            read_limit: Largest response line accepted, in bytes.
        """
        if not command:
            raise EngineUnavailableError("No engine command configured", details={"name": name})

        self.command = list(command)
        self.timeout = timeout
        self.name = name
        self.start_retries = max(start_retries, 1)
        self.read_limit = read_limit

        self._process: asyncio.subprocess.Process | None = None
        self._stderr_task: asyncio.Task[None] | None = None
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    # -------------------------------------------------------------------------
    # Process lifecycle
    # -------------------------------------------------------------------------

    async def _spawn(self) -> asyncio.subprocess.Process:
        return await asyncio.create_subprocess_exec(
            *self.command,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            limit=self.read_limit,
        )

    async def start(self) -> None:
        """Spawn the engine process if it is not running.

        Raises:
            EngineUnavailableError: If the process cannot be started.
        """
        if self.is_running:
            return

        @retry(
            retry=retry_if_exception_type(OSError),
            stop=stop_after_attempt(self.start_retries),
            wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
            reraise=True,
        )
        async def spawn_with_retry() -> asyncio.subprocess.Process:
            return await self._spawn()

        try:
            self._process = await spawn_with_retry()
        except OSError as exc:
            raise EngineUnavailableError(
                f"Failed to start {self.name}: {exc}",
                details={"command": self.command},
            ) from exc

        self._stderr_task = asyncio.create_task(self._forward_stderr(self._process))
        logger.info("Engine process started", name=self.name, pid=self._process.pid)

    async def _forward_stderr(self, process: asyncio.subprocess.Process) -> None:
        assert process.stderr is not None
        while True:
            line = await process.stderr.readline()
            if not line:
                return
            logger.info("Engine output", name=self.name, line=line.decode(errors="replace").rstrip())

    async def close(self) -> None:
        """Stop the process: terminate, then kill if it does not exit."""
        process, self._process = self._process, None
        if process is None:
            return

        if process.returncode is None:
            try:
                process.terminate()
                await asyncio.wait_for(process.wait(), timeout=self.timeout)
            except (ProcessLookupError, asyncio.TimeoutError):
                logger.warning("Engine did not exit after terminate, killing", name=self.name, pid=process.pid)
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
                await process.wait()

        if self._stderr_task is not None:
            await asyncio.gather(self._stderr_task, return_exceptions=True)
            self._stderr_task = None

        logger.info("Engine process stopped", name=self.name, returncode=process.returncode)

    # -------------------------------------------------------------------------
    # Requests
    # -------------------------------------------------------------------------

    async def send_request_and_wait(self, request: dict[str, Any]) -> dict[str, Any]:
        """Send one request and wait for its response.

        Args:
            request: JSON-serializable request; ``method`` names the operation.

        Returns:
            The decoded response object.

        Raises:
            EngineUnavailableError: On timeout, EOF, a dead process, or malformed output.
        """
        method = request.get("method")
        instance = request.get("instance")

        async with self._lock:
            await self.start()
            process = self._process
            assert process is not None and process.stdin is not None and process.stdout is not None

            logger.debug("Engine request", name=self.name, method=method, instance=instance)
            try:
                process.stdin.write(json.dumps(request).encode() + b"\n")
                await process.stdin.drain()
                line = await asyncio.wait_for(process.stdout.readline(), timeout=self.timeout)
            except asyncio.TimeoutError as exc:
                # The stream is out of step with our requests now
                await self.close()
                raise EngineUnavailableError(
                    f"{self.name} did not respond within {self.timeout} seconds",
                    method=method,
                    instance=instance,
                ) from exc
            except (BrokenPipeError, ConnectionResetError) as exc:
                await self.close()
                raise EngineUnavailableError(
                    f"{self.name} closed its input",
                    method=method,
                    instance=instance,
                ) from exc
            except ValueError as exc:
                # readline gives up on lines longer than the stream limit
                await self.close()
                raise EngineUnavailableError(
                    f"{self.name} sent a response longer than {self.read_limit} bytes",
                    method=method,
                    instance=instance,
                ) from exc

            if not line:
                await self.close()
                raise EngineUnavailableError(
                    f"{self.name} exited unexpectedly",
                    method=method,
                    instance=instance,
                )

            try:
                response = json.loads(line)
            except json.JSONDecodeError as exc:
                await self.close()
                raise EngineUnavailableError(
                    f"{self.name} sent malformed JSON",
                    method=method,
                    instance=instance,
                    details={"line": line.decode(errors="replace")[:200]},
                ) from exc

            if not isinstance(response, dict):
                await self.close()
                raise EngineUnavailableError(
                    f"{self.name} sent a non-object response",
                    method=method,
                    instance=instance,
                )

            return response

    async def send_request(self, request: dict[str, Any]) -> None:
        """Send a request without waiting for a response.

        Does nothing when the process is not running.
        """
        async with self._lock:
            process = self._process
            if not self.is_running or process is None or process.stdin is None:
                return
            try:
                process.stdin.write(json.dumps(request).encode() + b"\n")
                await process.stdin.drain()
            except (BrokenPipeError, ConnectionResetError):
                logger.debug("Engine closed its input", name=self.name, method=request.get("method"))


__all__ = ["JsonLineChannel"]
