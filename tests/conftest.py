"""Pytest configuration for newtbridge tests."""

from __future__ import annotations

import logging
from collections.abc import Callable

import pytest

from newtbridge.config.model import ManagerConfig
from newtbridge.metrics import EngineMetrics
from newtbridge.services.manager import NewtManager
from tests.mocks import CompletionRecorder, RecordingTransport


@pytest.fixture()
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture()
def metrics() -> EngineMetrics:
    return EngineMetrics()


@pytest.fixture()
def manager_config() -> ManagerConfig:
    return ManagerConfig(response_timeout=0.05)


@pytest.fixture()
def manager(transport: RecordingTransport, manager_config: ManagerConfig, metrics: EngineMetrics) -> NewtManager:
    engine = NewtManager(transport, config=manager_config, metrics=metrics)
    engine.start()
    return engine


@pytest.fixture()
def recorder_factory() -> Callable[[], CompletionRecorder]:
    return CompletionRecorder


@pytest.fixture(autouse=True)
def reset_newtbridge_logger():
    """Undo configure_logging side effects between tests."""
    yield
    logger = logging.getLogger("newtbridge")
    for handler in logger.handlers[:]:
        try:
            handler.close()
        except (OSError, RuntimeError):
            pass
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
