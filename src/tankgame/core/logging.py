"""Structured logging for the tank game core.

Every event is a structlog event with keyword context. Work done on
behalf of one game runs inside that game's interactor worker task, which
binds the game name and ruleset as context variables; engine transport
and storage events emitted from that task carry them without passing
them around. Console output for development, JSON for production.

Example:
    >>> from tankgame.core.logging import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Replay finished", state_count=12)
"""

from __future__ import annotations

import logging
import sys
from contextlib import AbstractContextManager
from typing import TYPE_CHECKING

import structlog
from structlog.types import Processor


if TYPE_CHECKING:
    from structlog.types import EventDict, WrappedLogger

_STDLIB_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def add_app_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Tag every event with the application name."""
    event_dict["app"] = "tankgame"
    return event_dict


def _renderer(json_format: bool) -> list[Processor]:
    if json_format:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=True, exception_formatter=structlog.dev.plain_traceback)]


def configure_logging(
    *,
    level: str = "INFO",
    json_format: bool = False,
    log_file: str | None = None,
) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        level: The logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: Render events as JSON lines instead of console output.
        log_file: Optional file that also receives standard library records.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_app_context,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            *_renderer(json_format),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format=_STDLIB_FORMAT, level=log_level, stream=sys.stdout, force=True)
    # asyncio reports every subprocess transport at DEBUG
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(_STDLIB_FORMAT))
        logging.getLogger().addHandler(file_handler)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    return structlog.get_logger(name)


def bind_game_context(game: str, *, version: str | None = None) -> None:
    """Attach the game (and its ruleset) to every later event in the current task.

    Example:
        >>> bind_game_context("season-3", version="default-v4")
    """
    context = {"game": game}
    if version is not None:
        context["version"] = version
    structlog.contextvars.bind_contextvars(**context)


def operation_context(operation: str) -> AbstractContextManager[None]:
    """Context manager tagging events with the interactor operation being run."""
    return structlog.contextvars.bound_contextvars(operation=operation)


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_game_context",
    "operation_context",
]
