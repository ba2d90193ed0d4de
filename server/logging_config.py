"""
Structured logging configuration for the Monopoly Deal server.

Provides:
- ContextFilter stamping request/game/player ids onto every record
- JSONFormatter for production (machine-readable logs)
- Human-readable formatter for development
- game_context() to scope game and player ids to a block
"""

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Iterator, Optional

# Context variables for request-scoped data
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
game_id_var: ContextVar[Optional[str]] = ContextVar("game_id", default=None)
player_id_var: ContextVar[Optional[str]] = ContextVar("player_id", default=None)

CONTEXT_FIELDS = {
    "request_id": request_id_var,
    "game_id": game_id_var,
    "player_id": player_id_var,
}


class ContextFilter(logging.Filter):
    """
    Copy the active context vars onto each record.

    A value passed explicitly through `extra=` wins over the context var.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for name, var in CONTEXT_FIELDS.items():
            if not getattr(record, name, None):
                setattr(record, name, var.get())
        return True


def _record_context(record: logging.LogRecord) -> dict[str, str]:
    context = {}
    for name in CONTEXT_FIELDS:
        value = getattr(record, name, None)
        if value:
            context[name] = value
    return context


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_record_context(record),
        }
        if record.levelno >= logging.ERROR:
            entry["source"] = f"{record.pathname}:{record.lineno} in {record.funcName}"
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Colored single-line output for a terminal."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, "")
        when = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]

        context = _record_context(record)
        if "request_id" in context:
            context["request_id"] = context["request_id"][:8]
        tags = " ".join(f"{key.split('_')[0]}={value}" for key, value in context.items())

        line = f"{when} {color}{record.levelname:<8}{self.RESET if color else ''} {record.name}"
        if tags:
            line += f" [{tags}]"
        line += f" - {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    level: str = "INFO",
    environment: str = "development",
) -> None:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        environment: "production" logs JSON; anything else logs for humans.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(ContextFilter())
    handler.setFormatter(JSONFormatter() if environment == "production" else DevelopmentFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for noisy in ("uvicorn.access", "uvicorn.error", "asyncio", "asyncpg"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"Logging configured: level={level}, environment={environment}")


@contextmanager
def game_context(game_id: str, player_id: Optional[str] = None) -> Iterator[None]:
    """
    Attach game and player ids to every log record in the block.

    Usage:
        with game_context("ABC123", "alice"):
            logger.info("Move applied")
    """
    game_token = game_id_var.set(game_id)
    player_token = player_id_var.set(player_id)
    try:
        yield
    finally:
        player_id_var.reset(player_token)
        game_id_var.reset(game_token)
