"""Configuration defaults for newtbridge."""

from __future__ import annotations

from typing import Final

DEFAULT_RESPONSE_TIMEOUT: Final[float] = 5.0
DEFAULT_RETRY_ATTEMPTS: Final[int] = 1
DEFAULT_DEBUG_LOGGING: Final[bool] = False
