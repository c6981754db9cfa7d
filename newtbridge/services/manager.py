"""Request engine: single-flight dispatch, reassembly and response parsing."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from ..commands import (
    Command,
    CompletionHandler,
    Echo,
    ImageConfirm,
    ImageList,
    ImageTest,
    ListStats,
    ProgressHandler,
    ReadStatDetails,
    ReadTaskStats,
    Request,
    Upload,
)
from ..config.model import ManagerConfig
from ..errors import NewtError, NewtErrorKind
from ..metrics import EngineMetrics
from ..protocol import protocol
from ..protocol.packet import Response
from ..protocol.payload import PayloadEncodeError, decode_payload, encode_payload, get_uint, has_field
from ..protocol.protocol import ReturnCode
from ..protocol.structures import (
    parse_echo,
    parse_images,
    parse_stat_details,
    parse_stat_list,
    parse_task_stats,
)
from ..state.queue import CommandQueue
from ..transport.base import NewtTransport
from ..util import log_hexdump
from .upload import UploadSession

logger = logging.getLogger("newtbridge.service.manager")

ResultParser = Callable[[Any], Any]

_RESULT_PARSERS: dict[type[Command], ResultParser] = {
    ImageList: parse_images,
    ImageTest: parse_images,
    ImageConfirm: parse_images,
    Echo: parse_echo,
    ReadTaskStats: parse_task_stats,
    ListStats: parse_stat_list,
    ReadStatDetails: parse_stat_details,
}


def verify_response_code(payload: Any, mandatory: bool) -> NewtError | None:
    """Check the ``rc`` field of a decoded response.

    When *mandatory* is false a missing or unrecognised ``rc`` counts as
    success; only a known non-OK code fails the request.
    """
    if not has_field(payload, protocol.FIELD_RC):
        if mandatory:
            return NewtError(NewtErrorKind.RECEIVED_RESPONSE_MISSING_FIELDS)
        return None

    value = payload[protocol.FIELD_RC]
    try:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(value)
        code = ReturnCode(value)
    except ValueError:
        if mandatory:
            return NewtError(NewtErrorKind.RECEIVED_RESPONSE_INVALID_VALUES)
        logger.debug("Ignoring unrecognised rc value %r", value)
        return None

    if code is not ReturnCode.OK:
        return NewtError.result_not_ok(code.description)
    return None


class NewtManager:
    """Drives one newtmgr conversation over a byte transport.

    Requests run strictly one at a time in submission order. Responses are
    correlated with the request at the head of the queue; there is no
    sequence matching. All entry points are expected to be called from one
    thread or event loop.
    """

    def __init__(
        self,
        transport: NewtTransport | None = None,
        *,
        config: ManagerConfig | None = None,
        metrics: EngineMetrics | None = None,
    ) -> None:
        self.transport = transport
        self.config = config or ManagerConfig()
        self.metrics = metrics or EngineMetrics()
        self._queue: CommandQueue[Request] = CommandQueue(self._execute_request)
        self._buffer = bytearray()
        self._seq = 0
        self._upload: UploadSession | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        self._reset("start")

    def stop(self) -> None:
        """Drop queued requests without completing them."""
        self._reset("stop")

    def _reset(self, reason: str) -> None:
        if self._queue:
            logger.info("Discarding %d queued request(s) on %s", len(self._queue), reason)
        self._queue.clear()
        self._buffer.clear()
        self._upload = None
        self._seq = 0

    @property
    def current_request(self) -> Request | None:
        return self._queue.peek()

    @property
    def pending_requests(self) -> int:
        return len(self._queue)

    @property
    def reassembly_pending(self) -> bool:
        return bool(self._buffer)

    def withdraw(self, request: Request) -> bool:
        """Remove *request* if it is still waiting behind the head."""
        removed = self._queue.discard(request)
        if removed:
            logger.debug("Withdrew queued %r", request.command)
        return removed

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def send_request(
        self,
        command: Command,
        progress: ProgressHandler | None = None,
        completion: CompletionHandler | None = None,
    ) -> Request:
        """Queue *command*; it is written at once if nothing else is in flight."""
        request = Request(command=command, progress=progress, completion=completion)
        logger.debug("Queueing %r (%d ahead)", command, len(self._queue))
        self._queue.enqueue(request)
        return request

    def _execute_request(self, request: Request) -> None:
        if self._buffer:
            logger.warning(
                "Refusing %r: %d response byte(s) still buffered",
                request.command,
                len(self._buffer),
            )
            # Stale bytes are reported once; the next request starts clean.
            self._buffer.clear()
            self._finish(request, None, NewtError(NewtErrorKind.WAITING_FOR_RESPONSE))
            return

        command = request.command
        if isinstance(command, Upload):
            self._start_upload(request, command)
            return

        fields = command.request_fields()
        try:
            payload = encode_payload(fields) if fields is not None else b""
        except PayloadEncodeError as e:
            logger.error("Cannot encode %r: %s", command, e)
            self._finish(request, None, NewtError(NewtErrorKind.INTERNAL_ERROR))
            return
        self._write(request, payload)

    def _start_upload(self, request: Request, command: Upload) -> None:
        if len(command.image_data) < self.config.upload_min_image_size:
            logger.error(
                "Upload image too small (%d bytes, minimum %d)",
                len(command.image_data),
                self.config.upload_min_image_size,
            )
            self._finish(request, None, NewtError(NewtErrorKind.UPDATE_IMAGE_INVALID))
            return

        session = UploadSession(
            command.image_data,
            progress=request.report_progress,
            chunk_size=self.config.upload_chunk_size,
            first_chunk_reserve=self.config.upload_first_chunk_reserve,
        )
        self._upload = session
        logger.info("Starting upload of %d bytes", session.total_length)
        self._continue_upload(request, session, 0)

    def _continue_upload(self, request: Request, session: UploadSession, offset: int) -> None:
        chunk = session.next_chunk(offset)
        if chunk is None:
            if session.fsm_state == UploadSession.STATE_CANCELLED:
                self._finish(request, None, NewtError(NewtErrorKind.USER_CANCELLED))
            else:
                self._finish(request, None, None)
            return
        self.metrics.record_upload_chunk(session.last_chunk_length)
        self._write(request, chunk)

    def _next_seq(self) -> int:
        seq = self._seq
        self._seq = (self._seq + 1) & protocol.UINT8_MASK
        return seq

    def _write(self, request: Request, payload: bytes) -> None:
        transport = self.transport
        if transport is None:
            logger.error("No transport attached; dropping %r", request.command)
            self._finish(request, None, NewtError(NewtErrorKind.INTERNAL_ERROR))
            return

        try:
            data = request.command.packet.with_payload(payload, seq=self._next_seq()).to_bytes()
        except ValueError as e:
            logger.error("Cannot build packet for %r: %s", request.command, e)
            self._finish(request, None, NewtError(NewtErrorKind.INTERNAL_ERROR))
            return

        log_hexdump(logger, logging.DEBUG, "TX", data)
        self.metrics.record_sent()
        transport.write(data, lambda error: self._on_write_complete(request, error))

    def _on_write_complete(self, request: Request, error: BaseException | None) -> None:
        if error is None:
            return
        if self._queue.peek() is not request:
            logger.debug("Write error for a request no longer in flight: %s", error)
            return
        logger.warning("Transport write failed for %r: %s", request.command, error)
        self._buffer.clear()
        self._finish(request, None, error)

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def on_data_received(self, data: bytes | None, error: BaseException | None = None) -> None:
        """Feed one transport notification (a whole packet) into the engine."""
        if error is not None or data is None:
            self.response_error(error or NewtError(NewtErrorKind.RECEIVED_RESPONSE_IS_NOT_A_PACKET))
            return

        log_hexdump(logger, logging.DEBUG, "RX", data)
        try:
            response = Response.from_bytes(data)
        except NewtError as e:
            logger.warning("Dropping undecodable packet (%d bytes)", len(data))
            self.response_error(e)
            return

        self.metrics.record_received()
        request = self._queue.peek()
        if request is None:
            logger.warning("%s received with no command in flight; dropping", response.description)
            return

        packet = response.packet
        self._buffer.extend(packet.payload)
        if not packet.is_complete:
            logger.debug("Buffered fragment (%d bytes so far)", len(self._buffer))
            return

        raw = bytes(self._buffer)
        self._buffer.clear()
        try:
            payload = decode_payload(raw)
        except NewtError as e:
            # The request stays at the head until a caller-side timeout.
            logger.error("%s: %s", e.description, response.description)
            return

        self._handle_response(request, payload)

    def response_error(self, error: BaseException) -> None:
        """Fail the request in flight with *error* and move on."""
        self._buffer.clear()
        request = self._queue.peek()
        if request is None:
            logger.warning("Response error with no command in flight: %s", error)
            return
        logger.warning("Request %r failed: %s", request.command, error)
        self._finish(request, None, error)

    def _handle_response(self, request: Request, payload: Any) -> None:
        command = request.command
        if isinstance(command, Upload):
            self._handle_upload_response(request, payload)
            return

        error = verify_response_code(payload, mandatory=False)
        if error is not None:
            self._finish(request, None, error)
            return

        parser = _RESULT_PARSERS.get(type(command))
        self._finish(request, parser(payload) if parser is not None else None, None)

    def _handle_upload_response(self, request: Request, payload: Any) -> None:
        session = self._upload
        if session is None or not session.is_active:
            logger.error("Upload response without an active upload session")
            self._finish(request, None, NewtError(NewtErrorKind.INTERNAL_ERROR))
            return

        error = verify_response_code(payload, mandatory=True)
        if error is not None:
            session.fail()
            logger.warning("Upload aborted at offset %d: %s", session.offset, error)
            self._finish(request, None, error)
            return

        self._continue_upload(request, session, get_uint(payload, protocol.FIELD_OFFSET))

    def _finish(self, request: Request, result: Any, error: BaseException | None) -> None:
        if isinstance(request.command, Upload):
            self._upload = None
        request.complete(result, error)
        self.metrics.record_completion(error)
        self._queue.advance(request)


__all__ = ["NewtManager", "verify_response_code"]
