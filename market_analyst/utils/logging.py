"""
Root logger setup for the analyst process.

Only entry points (the CLI commands) call ``configure_logging``; everything
else just asks for ``logging.getLogger(__name__)``.  Records go to stdout and,
when ``[logging] log_file`` is set, to that file as well.  With
``json_format = true`` each record becomes a single JSON line, and any
``extra={...}`` fields passed at the call site are carried as top-level keys::

    {"ts": "2024-01-10T21:30:00Z", "level": "INFO", "logger": "market_analyst.scheduler",
     "msg": "[nightly-review] Completed", "job": "nightly-review"}
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from market_analyst.config import LoggingConfig

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s | %(message)s"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Chatty libraries held at WARNING: httpx logs one INFO line per request and
# asyncio reports slow callbacks while a job awaits the collaborator.
QUIET_LOGGERS = ("httpx", "httpcore", "asyncio")

_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


class JsonLineFormatter(logging.Formatter):
    """Render a record as one JSON object: ``ts``, ``level``, ``logger``, ``msg``, extras."""

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict = {
            "ts": stamp.strftime(TIMESTAMP_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(
            (key, val) for key, val in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        )
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return JsonLineFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt=TIMESTAMP_FORMAT)


def configure_logging(config: "LoggingConfig") -> None:
    """Replace the root logger's handlers according to ``config``."""
    level = logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.log_file:
        path = Path(config.log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))

    formatter = _formatter(config.json_format)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
