"""Protocol helpers for newtbridge: wire constants, packet codec and CBOR payloads."""

from . import protocol, packet, payload, structures
from .packet import Packet, Response
from .protocol import Flags, Group, GroupDefault, GroupImage, GroupStats, OpCode, ReturnCode

__all__ = [
    "Flags",
    "Group",
    "GroupDefault",
    "GroupImage",
    "GroupStats",
    "OpCode",
    "Packet",
    "Response",
    "ReturnCode",
    "protocol",
    "packet",
    "payload",
    "structures",
]
