"""Logging setup for the governance engine."""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Optional

from quorumvault.config import Settings, get_settings

ROOT_LOGGER_NAME = "quorumvault"
TEXT_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"

# Attributes every LogRecord carries; anything else came in via ``extra=``.
_RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class JsonLineFormatter(logging.Formatter):
    """Render each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED and not key.startswith("_"):
                entry[key] = value
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """Install handlers on the ``quorumvault`` logger.

    Calling it again replaces the handlers it installed before.

    Args:
        settings: Settings to read the level, format and file options from.

    Returns:
        The configured package logger.
    """
    settings = settings or get_settings()
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(settings.log_level)

    for handler in list(logger.handlers):
        if getattr(handler, "_quorumvault", False):
            logger.removeHandler(handler)
            handler.close()

    formatter: logging.Formatter
    if settings.log_format == "json":
        formatter = JsonLineFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT)

    handlers = [logging.StreamHandler()]
    if settings.log_file_enabled:
        log_path = Path(settings.log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler._quorumvault = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    return logger


__all__ = ["configure_logging", "JsonLineFormatter", "ROOT_LOGGER_NAME"]
