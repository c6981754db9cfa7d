"""General-purpose utilities for newtbridge."""

from __future__ import annotations

import logging

__all__ = [
    "hex_description",
    "log_hexdump",
]


def hex_description(data: bytes | bytearray | memoryview | None) -> str:
    """Render *data* as space separated uppercase hex."""
    if not data:
        return ""
    return bytes(data).hex(" ").upper()


def log_hexdump(logger_instance: logging.Logger, level: int, label: str, data: bytes) -> None:
    """Log binary data in hexadecimal format.

    Format: [HEXDUMP] %s: %s
    """
    if not logger_instance.isEnabledFor(level):
        return

    logger_instance.log(level, "[HEXDUMP] %s: %s", label, hex_description(data))
