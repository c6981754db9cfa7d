"""newtbridge: client-side newtmgr (NMP) protocol engine."""

__version__ = "0.1.0"

from .client import NewtClient, Outcome
from .commands import (
    Command,
    Echo,
    ImageConfirm,
    ImageList,
    ImageTest,
    ListStats,
    ReadStatDetails,
    ReadTaskStats,
    Request,
    Reset,
    Upload,
)
from .config import ManagerConfig, load_manager_config
from .errors import NewtError, NewtErrorKind, ResponseTimeoutError
from .metrics import EngineMetrics
from .services import NewtManager

__all__ = [
    "Command",
    "Echo",
    "EngineMetrics",
    "ImageConfirm",
    "ImageList",
    "ImageTest",
    "ListStats",
    "ManagerConfig",
    "NewtClient",
    "NewtError",
    "NewtErrorKind",
    "NewtManager",
    "Outcome",
    "ReadStatDetails",
    "ReadTaskStats",
    "Request",
    "Reset",
    "ResponseTimeoutError",
    "Upload",
    "load_manager_config",
]
