"""Tests for chunked image upload."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from newtbridge.commands import Upload
from newtbridge.config.model import ManagerConfig
from newtbridge.errors import NewtError, NewtErrorKind
from newtbridge.metrics import EngineMetrics
from newtbridge.protocol.protocol import Group, GroupImage, OpCode
from newtbridge.services.manager import NewtManager
from newtbridge.services.upload import UploadSession, build_chunk_fields, chunk_length
from tests.mocks import CompletionRecorder, RecordingTransport, make_response


def _image(size: int) -> bytes:
    return bytes(i & 0xFF for i in range(size))


def _ack_last_chunk(manager: NewtManager, transport: RecordingTransport, offset: int, rc: int = 0) -> None:
    manager.on_data_received(make_response(transport.packets[-1], {"rc": rc, "off": offset}))


@pytest.mark.parametrize(
    "total,offset,expected",
    [
        (299, 0, 146),
        (299, 146, 153),
        (299, 299, 0),
        (306, 299, 7),
        (40, 0, 40),
        (10, 20, 0),
    ],
)
def test_chunk_length(total: int, offset: int, expected: int) -> None:
    assert chunk_length(total, offset) == expected


def test_only_first_chunk_carries_total_length() -> None:
    image = _image(200)

    first = build_chunk_fields(image, 0)
    second = build_chunk_fields(image, 146)

    assert list(first) == ["off", "data", "len"]
    assert first["len"] == 200
    assert first["data"] == image[:146]
    assert list(second) == ["off", "data"]
    assert second["data"] == image[146:]


def test_session_state_transitions() -> None:
    session = UploadSession(_image(40))

    assert session.fsm_state == UploadSession.STATE_IDLE
    assert session.next_chunk(0) is not None
    assert session.fsm_state == UploadSession.STATE_CHUNK_SENT
    assert session.next_chunk(40) is None
    assert session.fsm_state == UploadSession.STATE_COMPLETE
    assert session.next_chunk(0) is None
    assert not session.is_active


def test_exact_budget_image_ends_without_empty_chunk(
    manager: NewtManager,
    transport: RecordingTransport,
    recorder_factory: Callable[[], CompletionRecorder],
) -> None:
    image = _image(299)
    recorder = recorder_factory()
    manager.send_request(Upload(image_data=image), completion=recorder)

    _ack_last_chunk(manager, transport, 146)
    _ack_last_chunk(manager, transport, 299)

    chunks = transport.payloads()
    assert [len(chunk["data"]) for chunk in chunks] == [146, 153]
    assert chunks[0] == {"off": 0, "data": image[:146], "len": 299}
    assert chunks[1] == {"off": 146, "data": image[146:]}
    assert recorder.calls == [(None, None)]
    assert manager.current_request is None


def test_image_just_over_two_chunks_needs_a_third(
    manager: NewtManager,
    transport: RecordingTransport,
    metrics: EngineMetrics,
    recorder_factory: Callable[[], CompletionRecorder],
) -> None:
    image = _image(306)
    recorder = recorder_factory()
    manager.send_request(Upload(image_data=image), completion=recorder)

    for offset in (146, 299, 306):
        _ack_last_chunk(manager, transport, offset)

    assert [len(chunk["data"]) for chunk in transport.payloads()] == [146, 153, 7]
    assert recorder.error is None
    assert metrics.sample("newtbridge_upload_bytes_total") == 306.0


def test_upload_packets_use_image_upload_header(manager: NewtManager, transport: RecordingTransport) -> None:
    manager.send_request(Upload(image_data=_image(64)))

    packet = transport.packets[0]
    assert (packet.op, packet.group, packet.id) == (OpCode.WRITE, Group.IMAGE, GroupImage.UPLOAD)


def test_progress_reports_fraction_before_each_chunk(
    manager: NewtManager,
    transport: RecordingTransport,
) -> None:
    progress: list[float] = []

    def _progress(fraction: float) -> bool:
        progress.append(fraction)
        return False

    manager.send_request(Upload(image_data=_image(299)), progress=_progress)
    _ack_last_chunk(manager, transport, 146)
    _ack_last_chunk(manager, transport, 299)

    assert progress == [0.0, pytest.approx(146 / 299), 1.0]


def test_cancel_on_second_chunk(
    manager: NewtManager,
    transport: RecordingTransport,
    recorder_factory: Callable[[], CompletionRecorder],
) -> None:
    recorder = recorder_factory()
    after = recorder_factory()
    manager.send_request(
        Upload(image_data=_image(500)),
        progress=lambda fraction: fraction > 0,
        completion=recorder,
    )
    manager.send_request(Upload(image_data=_image(8)), completion=after)

    _ack_last_chunk(manager, transport, 146)

    assert len(transport.writes) == 1
    assert recorder.error == NewtError(NewtErrorKind.USER_CANCELLED)
    assert after.error == NewtError(NewtErrorKind.UPDATE_IMAGE_INVALID)


def test_cancel_before_first_chunk_sends_nothing(
    manager: NewtManager,
    transport: RecordingTransport,
    recorder_factory: Callable[[], CompletionRecorder],
) -> None:
    recorder = recorder_factory()
    manager.send_request(Upload(image_data=_image(64)), progress=lambda _: True, completion=recorder)

    assert transport.writes == []
    assert recorder.error == NewtError(NewtErrorKind.USER_CANCELLED)


@pytest.mark.parametrize("size", [0, 1, 31])
def test_small_image_is_rejected(
    size: int,
    manager: NewtManager,
    transport: RecordingTransport,
    recorder_factory: Callable[[], CompletionRecorder],
) -> None:
    recorder = recorder_factory()
    manager.send_request(Upload(image_data=_image(size)), completion=recorder)

    assert transport.writes == []
    assert recorder.error == NewtError(NewtErrorKind.UPDATE_IMAGE_INVALID)
    assert manager.current_request is None


def test_minimum_image_fits_one_chunk(
    manager: NewtManager,
    transport: RecordingTransport,
    recorder_factory: Callable[[], CompletionRecorder],
) -> None:
    recorder = recorder_factory()
    manager.send_request(Upload(image_data=_image(32)), completion=recorder)
    _ack_last_chunk(manager, transport, 32)

    assert transport.payloads() == [{"off": 0, "data": _image(32), "len": 32}]
    assert recorder.calls == [(None, None)]


def test_next_chunk_starts_at_device_offset(manager: NewtManager, transport: RecordingTransport) -> None:
    image = _image(400)
    manager.send_request(Upload(image_data=image))

    _ack_last_chunk(manager, transport, 100)

    second = transport.payloads()[1]
    assert second == {"off": 100, "data": image[100:253]}


def test_upload_requires_result_code(
    manager: NewtManager,
    transport: RecordingTransport,
    recorder_factory: Callable[[], CompletionRecorder],
) -> None:
    recorder = recorder_factory()
    manager.send_request(Upload(image_data=_image(400)), completion=recorder)

    manager.on_data_received(make_response(transport.packets[0], {"off": 146}))

    assert recorder.error == NewtError(NewtErrorKind.RECEIVED_RESPONSE_MISSING_FIELDS)
    assert len(transport.writes) == 1
    assert manager.current_request is None


def test_device_rejection_aborts_upload(
    manager: NewtManager,
    transport: RecordingTransport,
    recorder_factory: Callable[[], CompletionRecorder],
) -> None:
    recorder = recorder_factory()
    manager.send_request(Upload(image_data=_image(400)), completion=recorder)

    _ack_last_chunk(manager, transport, 146, rc=3)

    assert recorder.error == NewtError.result_not_ok("Device is in invalid state")
    assert len(transport.writes) == 1


def test_custom_chunk_size(transport: RecordingTransport) -> None:
    manager = NewtManager(transport, config=ManagerConfig(upload_chunk_size=64, upload_first_chunk_reserve=8))
    manager.send_request(Upload(image_data=_image(100)))
    _ack_last_chunk(manager, transport, 56)

    assert [len(chunk["data"]) for chunk in transport.payloads()] == [56, 44]
