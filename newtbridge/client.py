"""Asyncio facade over :class:`NewtManager`.

The engine itself is callback based and never waits. This module turns each
request into an awaitable, bounds it with a response timeout, and feeds the
timeout back into the engine so a silent device cannot stall the queue.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import msgspec
import tenacity

from .commands import (
    Command,
    Echo,
    ImageConfirm,
    ImageList,
    ImageTest,
    ListStats,
    ProgressHandler,
    ReadStatDetails,
    ReadTaskStats,
    Reset,
    Upload,
)
from .config.model import ManagerConfig
from .errors import ResponseTimeoutError
from .protocol.structures import Image, StatDetails, TaskStats
from .services.manager import NewtManager

logger = logging.getLogger("newtbridge.client")


class Outcome(msgspec.Struct, frozen=True):
    """Result of one request: exactly one of ``result`` / ``error`` is meaningful."""

    result: Any = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.result


class NewtClient:
    """Coroutine API for newtmgr commands."""

    def __init__(self, manager: NewtManager, config: ManagerConfig | None = None) -> None:
        self._manager = manager
        self._config = config or manager.config

    @property
    def manager(self) -> NewtManager:
        return self._manager

    async def request(self, command: Command, progress: ProgressHandler | None = None) -> Outcome:
        """Run *command* and return its :class:`Outcome`.

        Device and transport errors are returned in the outcome. Only a
        missing response is retried, up to ``retry_attempts`` attempts.
        """
        try:
            retryer = self._build_retryer()
            return await retryer(self._single_attempt, command, progress)
        except ResponseTimeoutError as e:
            logger.error("Giving up on %r: %s", command, e)
            return Outcome(error=e)

    #  --- Tenacity Helpers ---
    def _build_retryer(self) -> tenacity.AsyncRetrying:
        return tenacity.AsyncRetrying(
            stop=tenacity.stop_after_attempt(self._config.retry_attempts),
            retry=tenacity.retry_if_exception_type(ResponseTimeoutError),
            before_sleep=self._on_retry_sleep,
            reraise=True,
        )

    def _on_retry_sleep(self, retry_state: tenacity.RetryCallState) -> None:
        logger.warning(
            "Timeout waiting for device response (attempt %d/%d)",
            retry_state.attempt_number,
            self._config.retry_attempts,
        )

    async def _single_attempt(self, command: Command, progress: ProgressHandler | None) -> Outcome:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Outcome] = loop.create_future()
        timeout = self._config.response_timeout
        deadline: list[asyncio.Timeout] = []

        def _complete(result: Any, error: BaseException | None) -> None:
            if not future.done():
                future.set_result(Outcome(result=result, error=error))

        def _progress(fraction: float) -> bool:
            # Every accepted chunk proves the device is alive.
            if deadline:
                deadline[0].reschedule(loop.time() + timeout)
            return bool(progress(fraction)) if progress is not None else False

        watch_progress = isinstance(command, Upload)
        request = self._manager.send_request(
            command,
            progress=_progress if watch_progress else progress,
            completion=_complete,
        )

        try:
            async with asyncio.timeout(timeout) as cm:
                deadline.append(cm)
                # The timeout must not cancel the future; recovery below reads it.
                return await asyncio.shield(future)
        except TimeoutError:
            if future.done() and not future.cancelled():
                return future.result()
            error = ResponseTimeoutError(f"No response to {command!r} within {timeout:.2f}s")
            if self._manager.current_request is request:
                self._manager.on_data_received(None, error)
            else:
                self._manager.withdraw(request)
            raise error

    # ------------------------------------------------------------------
    # Typed commands
    # ------------------------------------------------------------------

    async def image_list(self) -> list[Image]:
        return (await self.request(ImageList())).unwrap()

    async def image_test(self, hash: bytes) -> list[Image]:
        return (await self.request(ImageTest(hash=hash))).unwrap()

    async def image_confirm(self, hash: bytes | None = None) -> list[Image]:
        return (await self.request(ImageConfirm(hash=hash))).unwrap()

    async def upload(self, data: bytes, progress: ProgressHandler | None = None) -> None:
        (await self.request(Upload(image_data=bytes(data)), progress)).unwrap()

    async def task_stats(self) -> list[TaskStats]:
        return (await self.request(ReadTaskStats())).unwrap()

    async def reset(self) -> None:
        (await self.request(Reset())).unwrap()

    async def echo(self, message: str) -> str:
        return (await self.request(Echo(message=message))).unwrap()

    async def stats(self) -> list[str]:
        return (await self.request(ListStats())).unwrap()

    async def stat_details(self, name: str) -> list[StatDetails]:
        return (await self.request(ReadStatDetails(name=name))).unwrap()


__all__ = ["NewtClient", "Outcome"]
