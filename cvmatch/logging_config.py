"""Logging setup driven by LoggingSettings.

Supports JSON-lines output for production and plain text for local runs.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from .config import LoggingSettings, settings

TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(config: LoggingSettings | None = None) -> None:
    """Configure the root logger.

    Replaces existing root handlers so repeated calls (app reloads, tests)
    don't duplicate output.
    """
    config = config or settings.logging

    formatter: logging.Formatter
    if config.format == "json":
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.file:
        handlers.append(logging.FileHandler(config.file, encoding="utf-8"))

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(config.level.upper())

    logging.getLogger(__name__).debug(f"Logging configured: level={config.level}, format={config.format}")
