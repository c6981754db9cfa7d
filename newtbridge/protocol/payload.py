"""CBOR payload adapter.

Requests are built from ordered string-keyed maps; responses are decoded to
plain Python values. Response field access is permissive: a missing or
wrong-typed field reads as a neutral default, and only the ``rc`` check
decides success or failure.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import cbor2

from ..errors import NewtError


class PayloadEncodeError(ValueError):
    """Raised when a request map holds a value CBOR cannot represent."""


def encode_payload(fields: Mapping[str, Any]) -> bytes:
    """Encode *fields* as a CBOR map, preserving key order."""
    try:
        return cbor2.dumps(dict(fields))
    except (cbor2.CBOREncodeError, TypeError, ValueError) as e:
        raise PayloadEncodeError(f"Cannot encode payload: {e}") from e


def decode_payload(data: bytes | bytearray | memoryview) -> Any:
    """Decode a complete CBOR item from *data*."""
    try:
        return cbor2.loads(bytes(data))
    except (cbor2.CBORDecodeError, ValueError, EOFError) as e:
        raise NewtError.not_a_cbor(e) from e


def _lookup(container: Any, key: str) -> Any:
    if isinstance(container, Mapping):
        return container.get(key)
    return None


def has_field(container: Any, key: str) -> bool:
    return isinstance(container, Mapping) and key in container


def get_int(container: Any, key: str, default: int = 0) -> int:
    value = _lookup(container, key)
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    return value


def get_uint(container: Any, key: str, default: int = 0) -> int:
    value = get_int(container, key, default)
    return value if value >= 0 else default


def get_str(container: Any, key: str, default: str = "") -> str:
    value = _lookup(container, key)
    return value if isinstance(value, str) else default


def get_bool(container: Any, key: str, default: bool = False) -> bool:
    value = _lookup(container, key)
    return value if isinstance(value, bool) else default


def get_bytes(container: Any, key: str, default: bytes = b"") -> bytes:
    value = _lookup(container, key)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return default


def get_list(container: Any, key: str) -> list[Any]:
    value = _lookup(container, key)
    return list(value) if isinstance(value, (list, tuple)) else []


def get_map(container: Any, key: str) -> dict[Any, Any]:
    value = _lookup(container, key)
    return dict(value) if isinstance(value, Mapping) else {}


def as_uint(value: Any, default: int = 0) -> int:
    """Read a bare value (e.g. a map entry) as an unsigned integer."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return default
    return value


def as_str(value: Any, default: str = "") -> str:
    return value if isinstance(value, str) else default


__all__ = [
    "PayloadEncodeError",
    "as_str",
    "as_uint",
    "decode_payload",
    "encode_payload",
    "get_bool",
    "get_bytes",
    "get_int",
    "get_list",
    "get_map",
    "get_str",
    "get_uint",
    "has_field",
]
