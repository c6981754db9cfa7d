"""Settings loader for newtbridge.

The engine is a library, so configuration arrives as a mapping from the host
application (parsed from whatever file or UI it owns). Missing keys fall back
to the protocol defaults.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from marshmallow import ValidationError

from .model import ManagerConfig
from .schema import ManagerConfigSchema

logger = logging.getLogger(__name__)


def load_manager_config(raw: Mapping[str, Any] | None = None) -> ManagerConfig:
    """Validate *raw* and build a :class:`ManagerConfig`.

    Raises:
        ValueError: If any value is out of range or of the wrong type.
    """
    try:
        config = ManagerConfigSchema().load(dict(raw or {}))
    except ValidationError as e:
        logger.error("Invalid newtbridge configuration: %s", e.messages)
        raise ValueError(f"Invalid configuration: {e.messages}") from e
    return config


__all__ = ["ManagerConfig", "load_manager_config"]
