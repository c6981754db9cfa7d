"""Chunked firmware upload state machine.

Each chunk is a CBOR map ``{"off": <offset>, "data": <bytes>}``; the first
chunk also carries ``"len"`` with the total image size, which is why its data
budget is reduced by a fixed reserve. The device answers every chunk with the
offset it has accepted, and the next chunk always starts there.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from transitions import Machine

from ..protocol import protocol
from ..protocol.payload import encode_payload

ProgressHandler = Callable[[float], bool]

logger = logging.getLogger("newtbridge.service.upload")


def chunk_length(
    total_length: int,
    offset: int,
    *,
    chunk_size: int = protocol.UPLOAD_CHUNK_SIZE,
    first_chunk_reserve: int = protocol.UPLOAD_FIRST_CHUNK_RESERVE,
) -> int:
    """Number of image bytes the chunk starting at *offset* carries.

    Returns 0 once *offset* has reached *total_length*.
    """
    budget = chunk_size - (first_chunk_reserve if offset == 0 else 0)
    remaining = total_length - offset
    if remaining <= 0:
        return 0
    return min(remaining, budget)


def build_chunk_fields(
    image_data: bytes,
    offset: int,
    *,
    chunk_size: int = protocol.UPLOAD_CHUNK_SIZE,
    first_chunk_reserve: int = protocol.UPLOAD_FIRST_CHUNK_RESERVE,
) -> dict[str, Any]:
    length = chunk_length(
        len(image_data),
        offset,
        chunk_size=chunk_size,
        first_chunk_reserve=first_chunk_reserve,
    )
    fields: dict[str, Any] = {
        protocol.FIELD_OFFSET: offset,
        protocol.FIELD_DATA: image_data[offset : offset + length],
    }
    if offset == 0:
        fields[protocol.FIELD_LENGTH] = len(image_data)
    return fields


class UploadSession:
    """Tracks one image transfer from first chunk to completion.

    :meth:`next_chunk` is the single step function: it reports progress,
    honours cancellation, detects completion, and otherwise returns the
    encoded payload of the chunk to send.
    """

    if TYPE_CHECKING:
        # FSM generated methods and attributes for static analysis
        fsm_state: str
        send_chunk: Callable[[], None]
        finish: Callable[[], None]
        cancel: Callable[[], None]
        fail: Callable[[], None]

    # FSM States
    STATE_IDLE = "idle"
    STATE_CHUNK_SENT = "chunk_sent"
    STATE_COMPLETE = "complete"
    STATE_CANCELLED = "cancelled"
    STATE_FAILED = "failed"

    _ACTIVE_STATES = [STATE_IDLE, STATE_CHUNK_SENT]

    def __init__(
        self,
        image_data: bytes,
        *,
        progress: ProgressHandler | None = None,
        chunk_size: int = protocol.UPLOAD_CHUNK_SIZE,
        first_chunk_reserve: int = protocol.UPLOAD_FIRST_CHUNK_RESERVE,
    ) -> None:
        self._image_data = bytes(image_data)
        self._progress = progress
        self._chunk_size = chunk_size
        self._first_chunk_reserve = first_chunk_reserve
        self.offset = 0
        self.last_chunk_length = 0
        self.chunks_sent = 0

        # FSM Initialization
        self.state_machine = Machine(
            model=self,
            states=[
                self.STATE_IDLE,
                self.STATE_CHUNK_SENT,
                self.STATE_COMPLETE,
                self.STATE_CANCELLED,
                self.STATE_FAILED,
            ],
            initial=self.STATE_IDLE,
            ignore_invalid_triggers=True,
            model_attribute="fsm_state",
        )

        # FSM Transitions
        self.state_machine.add_transition(trigger="send_chunk", source=self._ACTIVE_STATES, dest=self.STATE_CHUNK_SENT)
        self.state_machine.add_transition(trigger="finish", source=self._ACTIVE_STATES, dest=self.STATE_COMPLETE)
        self.state_machine.add_transition(trigger="cancel", source=self._ACTIVE_STATES, dest=self.STATE_CANCELLED)
        self.state_machine.add_transition(trigger="fail", source=self._ACTIVE_STATES, dest=self.STATE_FAILED)

    @property
    def total_length(self) -> int:
        return len(self._image_data)

    @property
    def is_active(self) -> bool:
        return self.fsm_state in self._ACTIVE_STATES

    def next_chunk(self, offset: int) -> bytes | None:
        """Advance to *offset* and return the next chunk payload.

        Returns None when the transfer has ended; ``fsm_state`` then tells
        whether it completed or was cancelled.
        """
        if not self.is_active:
            return None

        self.offset = offset
        if self._progress is not None and self._progress(offset / self.total_length):
            logger.info("Upload cancelled at offset %d/%d", offset, self.total_length)
            self.cancel()
            return None

        if self.total_length - offset <= 0:
            logger.info("Upload finished: %d bytes in %d chunks", self.total_length, self.chunks_sent)
            self.finish()
            return None

        fields = build_chunk_fields(
            self._image_data,
            offset,
            chunk_size=self._chunk_size,
            first_chunk_reserve=self._first_chunk_reserve,
        )
        self.last_chunk_length = len(fields[protocol.FIELD_DATA])
        self.chunks_sent += 1
        self.send_chunk()
        return encode_payload(fields)


__all__ = ["UploadSession", "build_chunk_fields", "chunk_length"]
