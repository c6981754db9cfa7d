"""NMP packet building and parsing.

Wire layout (big-endian)::

    +-------+-------+------------+------------+-------+-------+-----------------+
    |  op   | flags |   length   |   group    |  seq  |  id   |     payload     |
    | 1 B   | 1 B   |    2 B     |    2 B     |  1 B  |  1 B  |  length bytes   |
    +-------+-------+------------+------------+-------+-------+-----------------+

The length field is always computed from the payload when building. When
parsing it is only a hint: a value larger than the bytes actually received is
clamped, because BLE notifications are routinely cut short by the transport.
"""

from __future__ import annotations

import logging
from typing import Any

import msgspec
from construct import ConstructError

from ..errors import NewtError, NewtErrorKind
from . import protocol
from .protocol import Flags, Group, OpCode

logger = logging.getLogger("newtbridge.protocol.packet")


class Packet(msgspec.Struct, frozen=True, kw_only=True):
    """A single NMP message.

    Attributes:
        op: Operation code.
        flags: Header flags; responses split over several packets only set
            ``RESPONSE_COMPLETE`` on the last one.
        group: Command group.
        seq: Sequence byte.
        id: Command id within the group.
        payload: CBOR payload bytes (possibly a fragment).
    """

    op: OpCode
    group: Group
    id: int
    flags: Flags = Flags.NONE
    seq: int = 0
    payload: bytes = b""

    @property
    def length(self) -> int:
        return len(self.payload)

    @property
    def is_complete(self) -> bool:
        return bool(self.flags & Flags.RESPONSE_COMPLETE)

    @staticmethod
    def build(
        op: int,
        flags: int,
        group: int,
        seq: int,
        command_id: int,
        payload: bytes | None = None,
    ) -> bytes:
        """Build a raw packet (header + payload)."""
        body = payload or b""
        if len(body) > protocol.UINT16_MAX:
            raise ValueError(f"Payload too large ({len(body)} bytes); max is {protocol.UINT16_MAX}")

        header = protocol.HEADER_STRUCT.build(
            {
                "op": op,
                "flags": flags,
                "length": len(body),
                "group": group,
                "seq": seq & protocol.UINT8_MASK,
                "id": command_id,
            }
        )
        return header + body

    @staticmethod
    def parse(raw: bytes | bytearray | memoryview) -> dict[str, Any]:
        """Parse the header of *raw* and slice out the payload.

        Raises ``NewtError(RECEIVED_RESPONSE_IS_NOT_A_PACKET)`` on short
        buffers and unknown op/flags/group values.
        """
        data = bytes(raw)
        if len(data) < protocol.HEADER_SIZE:
            raise NewtError(NewtErrorKind.RECEIVED_RESPONSE_IS_NOT_A_PACKET)

        try:
            header: Any = protocol.HEADER_STRUCT.parse(data[: protocol.HEADER_SIZE])
        except ConstructError as e:
            raise NewtError(NewtErrorKind.RECEIVED_RESPONSE_IS_NOT_A_PACKET) from e

        available = len(data) - protocol.HEADER_SIZE
        length = header.length
        if length > available:
            logger.warning(
                "Declared packet length %d exceeds received payload (%d bytes); clamping",
                length,
                available,
            )
            length = available

        try:
            op = OpCode(header.op)
            flags = Flags(header.flags)
            group = Group(header.group)
        except ValueError as e:
            logger.error(
                "Invalid packet header values: op=%d flags=%d group=%d",
                header.op,
                header.flags,
                header.group,
            )
            raise NewtError(NewtErrorKind.RECEIVED_RESPONSE_IS_NOT_A_PACKET) from e

        return {
            "op": op,
            "flags": flags,
            "group": group,
            "seq": header.seq,
            "id": header.id,
            "payload": data[protocol.HEADER_SIZE : protocol.HEADER_SIZE + length],
        }

    def encode(self, payload: bytes | None = None) -> bytes:
        """Serialize the header with *payload*, or with this packet's own payload."""
        body = self.payload if payload is None else payload
        return self.build(self.op, self.flags, self.group, self.seq, self.id, body)

    def to_bytes(self) -> bytes:
        return self.encode()

    @classmethod
    def from_bytes(cls, raw: bytes | bytearray | memoryview) -> Packet:
        """Parse *raw* and create a :class:`Packet`."""
        return cls(**cls.parse(raw))

    def with_payload(self, payload: bytes, *, seq: int | None = None) -> Packet:
        return msgspec.structs.replace(
            self,
            payload=payload,
            seq=self.seq if seq is None else seq & protocol.UINT8_MASK,
        )


class Response(msgspec.Struct, frozen=True):
    """A decoded packet received from the device."""

    packet: Packet

    @property
    def description(self) -> str:
        return (
            f"Nmgr Response (Op Code = {int(self.packet.op)} "
            f"Group = {int(self.packet.group)} Id = {self.packet.id})"
        )

    @classmethod
    def from_bytes(cls, raw: bytes | bytearray | memoryview) -> Response:
        return cls(Packet.from_bytes(raw))


__all__ = ["Packet", "Response"]
