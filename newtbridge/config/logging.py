"""Structured logging for hosts embedding newtbridge.

The engine only emits records on ``newtbridge.*`` loggers. Hosts that want
one JSON object per line call :func:`configure_logging` with the handler of
their choice (stderr by default); everything else is left to the host.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import msgspec

from .model import ManagerConfig

LOGGER_NAME = "newtbridge"

# Attribute names every LogRecord carries; anything else came in via ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}

_encoder = msgspec.json.Encoder(enc_hook=str)


def _log_value(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"[{bytes(value).hex(' ').upper()}]"
    return value


class StructuredLogFormatter(logging.Formatter):
    """One JSON object per record; ``newtbridge.`` is dropped from logger names."""

    def format(self, record: logging.LogRecord) -> str:
        name = record.name
        if name.startswith(LOGGER_NAME + "."):
            name = name[len(LOGGER_NAME) + 1 :]

        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": name,
            "message": record.getMessage(),
        }
        extra = {
            key: _log_value(value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        if extra:
            entry["extra"] = extra
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return _encoder.encode(entry).decode("utf-8")


def configure_logging(config: ManagerConfig, handler: logging.Handler | None = None) -> logging.Handler:
    """Route the ``newtbridge`` logger tree to *handler* as structured JSON.

    A handler installed by an earlier call is replaced. The root logger is
    not touched.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for previous in [h for h in logger.handlers if getattr(h, "_newtbridge", False)]:
        logger.removeHandler(previous)
        previous.close()

    handler = handler or logging.StreamHandler()
    handler.setFormatter(StructuredLogFormatter())
    handler._newtbridge = True  # type: ignore[attr-defined]

    level = logging.DEBUG if config.debug_logging else logging.INFO
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    logger.info("Logging configured at level %s", logging.getLevelName(level))
    return handler


__all__ = ["StructuredLogFormatter", "configure_logging"]
