"""Configuration helpers for newtbridge."""

from .const import *  # noqa: F401, F403
from .model import ManagerConfig
from .settings import load_manager_config
from . import logging, settings  # noqa: F401  # pyright: ignore[reportUnusedImport]

__all__ = ["ManagerConfig", "load_manager_config"]
