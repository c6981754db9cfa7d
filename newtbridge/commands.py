"""Commands a caller can submit, and the request envelope the queue owns."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, ClassVar

import msgspec

from .protocol import protocol
from .protocol.packet import Packet
from .protocol.protocol import Group, GroupDefault, GroupImage, GroupStats, OpCode

# Returning True from a progress handler cancels the operation.
ProgressHandler = Callable[[float], bool]
CompletionHandler = Callable[[Any, "BaseException | None"], None]


class Command(msgspec.Struct, frozen=True, tag=True):
    """Base for the closed set of device commands."""

    PACKET: ClassVar[Packet]

    @property
    def packet(self) -> Packet:
        return self.PACKET

    def request_fields(self) -> dict[str, Any] | None:
        """Return the CBOR request map, or None for header-only commands."""
        return None


class ImageList(Command, frozen=True):
    PACKET = Packet(op=OpCode.READ, group=Group.IMAGE, id=GroupImage.LIST)


class ImageTest(Command, frozen=True):
    hash: bytes

    PACKET = Packet(op=OpCode.WRITE, group=Group.IMAGE, id=GroupImage.LIST)

    def request_fields(self) -> dict[str, Any]:
        return {protocol.FIELD_CONFIRM: False, protocol.FIELD_HASH: self.hash}


class ImageConfirm(Command, frozen=True):
    """Confirm the image with *hash*, or the pending image when hash is None."""

    hash: bytes | None = None

    PACKET = Packet(op=OpCode.WRITE, group=Group.IMAGE, id=GroupImage.LIST)

    def request_fields(self) -> dict[str, Any]:
        return {protocol.FIELD_CONFIRM: True, protocol.FIELD_HASH: self.hash}


class Upload(Command, frozen=True):
    image_data: bytes

    PACKET = Packet(op=OpCode.WRITE, group=Group.IMAGE, id=GroupImage.UPLOAD)

    def __repr__(self) -> str:
        return f"Upload(image_data=<{len(self.image_data)} bytes>)"


class ReadTaskStats(Command, frozen=True):
    PACKET = Packet(op=OpCode.READ, group=Group.DEFAULT, id=GroupDefault.TASK_STATS)


class Reset(Command, frozen=True):
    PACKET = Packet(op=OpCode.WRITE, group=Group.DEFAULT, id=GroupDefault.RESET)


class Echo(Command, frozen=True):
    message: str

    PACKET = Packet(op=OpCode.WRITE, group=Group.DEFAULT, id=GroupDefault.ECHO)

    def request_fields(self) -> dict[str, Any]:
        return {protocol.FIELD_ECHO_MESSAGE: self.message}


class ListStats(Command, frozen=True):
    PACKET = Packet(op=OpCode.READ, group=Group.STATS, id=GroupStats.STATS)


class ReadStatDetails(Command, frozen=True):
    name: str

    PACKET = Packet(op=OpCode.READ, group=Group.STATS, id=GroupStats.STAT_DETAILS)

    def request_fields(self) -> dict[str, Any]:
        return {protocol.FIELD_STAT_NAME: self.name}


class Request(msgspec.Struct):
    """A command plus the caller's callbacks, owned by the queue until completion."""

    command: Command
    progress: ProgressHandler | None = None
    completion: CompletionHandler | None = None

    def complete(self, result: Any, error: BaseException | None) -> None:
        if self.completion is not None:
            self.completion(result, error)

    def report_progress(self, fraction: float) -> bool:
        """Report progress; True means the caller asked to cancel."""
        if self.progress is None:
            return False
        return bool(self.progress(fraction))


__all__ = [
    "Command",
    "CompletionHandler",
    "Echo",
    "ImageConfirm",
    "ImageList",
    "ImageTest",
    "ListStats",
    "ProgressHandler",
    "ReadStatDetails",
    "ReadTaskStats",
    "Request",
    "Reset",
    "Upload",
]
