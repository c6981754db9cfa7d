"""Newtmgr (NMP) protocol bindings.

Numeric codes for op/flags/group/id form a fixed table. New groups or
operations extend the enums below.
"""
from __future__ import annotations

from construct import Int8ub, Int16ub, Struct as BinStruct  # type: ignore
from enum import IntEnum
from typing import Final

HEADER_STRUCT: Final = BinStruct(
    "op" / Int8ub,
    "flags" / Int8ub,
    "length" / Int16ub,
    "group" / Int16ub,
    "seq" / Int8ub,
    "id" / Int8ub,
)
HEADER_SIZE: Final[int] = HEADER_STRUCT.sizeof()  # type: ignore

UINT8_MASK: Final[int] = 255
UINT16_MAX: Final[int] = 65535

UPLOAD_CHUNK_SIZE: Final[int] = 153
UPLOAD_FIRST_CHUNK_RESERVE: Final[int] = 7
UPLOAD_MIN_IMAGE_SIZE: Final[int] = 32

# Request field names
FIELD_CONFIRM: Final[str] = "confirm"
FIELD_HASH: Final[str] = "hash"
FIELD_OFFSET: Final[str] = "off"
FIELD_DATA: Final[str] = "data"
FIELD_LENGTH: Final[str] = "len"
FIELD_ECHO_MESSAGE: Final[str] = "d"
FIELD_STAT_NAME: Final[str] = "name"

# Response field names
FIELD_RC: Final[str] = "rc"
FIELD_IMAGES: Final[str] = "images"
FIELD_SLOT: Final[str] = "slot"
FIELD_VERSION: Final[str] = "version"
FIELD_CONFIRMED: Final[str] = "confirmed"
FIELD_PENDING: Final[str] = "pending"
FIELD_ACTIVE: Final[str] = "active"
FIELD_BOOTABLE: Final[str] = "bootable"
FIELD_ECHO_REPLY: Final[str] = "r"
FIELD_TASKS: Final[str] = "tasks"
FIELD_TASK_STATE: Final[str] = "state"
FIELD_TASK_RUNTIME: Final[str] = "runtime"
FIELD_TASK_PRIORITY: Final[str] = "prio"
FIELD_TASK_ID: Final[str] = "tid"
FIELD_TASK_CSWCNT: Final[str] = "cswcnt"
FIELD_TASK_STACK_USED: Final[str] = "stkuse"
FIELD_TASK_STACK_SIZE: Final[str] = "stksiz"
FIELD_TASK_LAST_CHECKIN: Final[str] = "last_checkin"
FIELD_TASK_NEXT_CHECKIN: Final[str] = "next_checkin"
FIELD_STAT_LIST: Final[str] = "stat_list"
FIELD_STAT_FIELDS: Final[str] = "fields"


class OpCode(IntEnum):
    READ = 0
    READ_RESPONSE = 1
    WRITE = 2
    WRITE_RESPONSE = 3


class Flags(IntEnum):
    NONE = 0
    RESPONSE_COMPLETE = 1


class Group(IntEnum):
    DEFAULT = 0
    IMAGE = 1
    STATS = 2


class GroupDefault(IntEnum):
    ECHO = 0
    TASK_STATS = 2
    RESET = 5


class GroupImage(IntEnum):
    LIST = 0
    UPLOAD = 1


class GroupStats(IntEnum):
    STAT_DETAILS = 0
    STATS = 1


class ReturnCode(IntEnum):
    OK = 0  # Success.
    UNKNOWN = 1  # Unknown error; command might not be supported.
    NOMEM = 2  # Out of memory.
    INVAL = 3  # Device is in invalid state.
    TIMEOUT = 4  # Operation timeout.
    NOENT = 5  # No such entry.
    PERUSER = 256  # Start of per-user codes.

    @property
    def description(self) -> str:
        return RETURN_CODE_DESCRIPTIONS[self]


RETURN_CODE_DESCRIPTIONS: Final[dict[ReturnCode, str]] = {
    ReturnCode.OK: "Success",
    ReturnCode.UNKNOWN: "Unknown Error: Command might not be supported",
    ReturnCode.NOMEM: "Out of memory",
    ReturnCode.INVAL: "Device is in invalid state",
    ReturnCode.TIMEOUT: "Operation Timeout",
    ReturnCode.NOENT: "Enoent",
    ReturnCode.PERUSER: "Peruser",
}
