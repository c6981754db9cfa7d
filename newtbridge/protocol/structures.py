"""Result records produced by response parsing."""

from __future__ import annotations

from typing import Any

import msgspec

from . import protocol
from .payload import as_str, as_uint, get_bool, get_bytes, get_int, get_list, get_map, get_str, get_uint


class Image(msgspec.Struct, frozen=True):
    slot: int
    version: str
    is_confirmed: bool
    is_pending: bool
    is_active: bool
    is_bootable: bool
    hash: bytes


class TaskStats(msgspec.Struct, frozen=True):
    task_id: int
    name: str
    priority: int
    state: int
    run_time: int
    context_switch_count: int
    stack_size: int
    stack_used: int
    last_sanity_checkin: int
    next_sanity_checkin: int


class StatDetails(msgspec.Struct, frozen=True):
    name: str
    value: int


def parse_images(payload: Any) -> list[Image]:
    """Read the ``images`` array of an image list/test/confirm response."""
    return [
        Image(
            slot=get_int(entry, protocol.FIELD_SLOT),
            version=get_str(entry, protocol.FIELD_VERSION),
            is_confirmed=get_bool(entry, protocol.FIELD_CONFIRMED),
            is_pending=get_bool(entry, protocol.FIELD_PENDING),
            is_active=get_bool(entry, protocol.FIELD_ACTIVE),
            is_bootable=get_bool(entry, protocol.FIELD_BOOTABLE),
            hash=get_bytes(entry, protocol.FIELD_HASH),
        )
        for entry in get_list(payload, protocol.FIELD_IMAGES)
    ]


def parse_task_stats(payload: Any) -> list[TaskStats]:
    """Read the ``tasks`` map, keyed by task name."""
    return [
        TaskStats(
            task_id=get_uint(entry, protocol.FIELD_TASK_ID),
            name=as_str(name),
            priority=get_uint(entry, protocol.FIELD_TASK_PRIORITY),
            state=get_uint(entry, protocol.FIELD_TASK_STATE),
            run_time=get_uint(entry, protocol.FIELD_TASK_RUNTIME),
            context_switch_count=get_uint(entry, protocol.FIELD_TASK_CSWCNT),
            stack_size=get_uint(entry, protocol.FIELD_TASK_STACK_SIZE),
            stack_used=get_uint(entry, protocol.FIELD_TASK_STACK_USED),
            last_sanity_checkin=get_uint(entry, protocol.FIELD_TASK_LAST_CHECKIN),
            next_sanity_checkin=get_uint(entry, protocol.FIELD_TASK_NEXT_CHECKIN),
        )
        for name, entry in get_map(payload, protocol.FIELD_TASKS).items()
    ]


def parse_stat_list(payload: Any) -> list[str]:
    return [as_str(name) for name in get_list(payload, protocol.FIELD_STAT_LIST)]


def parse_stat_details(payload: Any) -> list[StatDetails]:
    return [
        StatDetails(name=as_str(name), value=as_uint(value))
        for name, value in get_map(payload, protocol.FIELD_STAT_FIELDS).items()
    ]


def parse_echo(payload: Any) -> str:
    return get_str(payload, protocol.FIELD_ECHO_REPLY)


__all__ = [
    "Image",
    "StatDetails",
    "TaskStats",
    "parse_echo",
    "parse_images",
    "parse_stat_details",
    "parse_stat_list",
    "parse_task_stats",
]
