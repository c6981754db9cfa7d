"""Transport boundary for the protocol engine.

The engine never talks to a link directly. It hands encoded packets to a
:class:`NewtTransport` and is fed inbound bytes through
``NewtManager.on_data_received``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

WriteCompletion = Callable[[BaseException | None], None]
AsyncWrite = Callable[[bytes], Awaitable[None]]

logger = logging.getLogger("newtbridge.transport")


class NewtTransport(Protocol):
    def write(self, data: bytes, completion: WriteCompletion) -> None:
        """Send *data*; report the outcome later through *completion*."""
        ...


class AsyncWriteTransport:
    """Adapt an ``async def write(data)`` coroutine function to the callback boundary.

    Writes run as tasks on the event loop; an exception raised by the
    coroutine is reported through the completion, success as ``None``.
    """

    def __init__(self, write: AsyncWrite, *, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._write = write
        self._loop = loop
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending_writes(self) -> int:
        return len(self._tasks)

    def write(self, data: bytes, completion: WriteCompletion) -> None:
        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(self._write(bytes(data)))
        self._tasks.add(task)

        def _on_done(done: asyncio.Task[None]) -> None:
            self._tasks.discard(done)
            if done.cancelled():
                completion(asyncio.CancelledError())
                return
            exc = done.exception()
            if exc is not None:
                logger.warning("Transport write failed: %s", exc)
            completion(exc)

        task.add_done_callback(_on_done)

    async def drain(self) -> None:
        """Wait for all in-progress writes to finish."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)


__all__ = ["AsyncWrite", "AsyncWriteTransport", "NewtTransport", "WriteCompletion"]
