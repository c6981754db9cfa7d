"""Error taxonomy for the newtmgr protocol engine.

Errors are delivered as values through request completions; the engine only
raises them internally between its own layers.
"""

from __future__ import annotations

from enum import StrEnum


class NewtErrorKind(StrEnum):
    RECEIVED_RESPONSE_IS_NOT_A_PACKET = "received_response_is_not_a_packet"
    RECEIVED_RESPONSE_IS_NOT_A_CBOR = "received_response_is_not_a_cbor"
    RECEIVED_RESPONSE_MISSING_FIELDS = "received_response_missing_fields"
    RECEIVED_RESPONSE_INVALID_VALUES = "received_response_invalid_values"
    RECEIVED_RESULT_NOT_OK = "received_result_not_ok"
    INTERNAL_ERROR = "internal_error"
    UPDATE_IMAGE_INVALID = "update_image_invalid"
    IMAGE_INVALID = "image_invalid"
    USER_CANCELLED = "user_cancelled"
    WAITING_FOR_RESPONSE = "waiting_for_response"


_DESCRIPTIONS: dict[NewtErrorKind, str] = {
    NewtErrorKind.RECEIVED_RESPONSE_IS_NOT_A_PACKET: "Received response is not a packet",
    NewtErrorKind.RECEIVED_RESPONSE_IS_NOT_A_CBOR: "Received invalid response",
    NewtErrorKind.RECEIVED_RESPONSE_MISSING_FIELDS: "Received response with missing fields",
    NewtErrorKind.RECEIVED_RESPONSE_INVALID_VALUES: "Received response with invalid values",
    NewtErrorKind.RECEIVED_RESULT_NOT_OK: "Received incorrect result",
    NewtErrorKind.INTERNAL_ERROR: "Internal error",
    NewtErrorKind.UPDATE_IMAGE_INVALID: "Upload image is invalid",
    NewtErrorKind.IMAGE_INVALID: "Image invalid",
    NewtErrorKind.USER_CANCELLED: "Cancelled",
    NewtErrorKind.WAITING_FOR_RESPONSE: "Waiting for previous command",
}

_DETAILED_KINDS: frozenset[NewtErrorKind] = frozenset(
    {
        NewtErrorKind.RECEIVED_RESPONSE_IS_NOT_A_CBOR,
        NewtErrorKind.RECEIVED_RESULT_NOT_OK,
    }
)


class NewtError(Exception):
    """A protocol-level failure of one request.

    ``detail`` carries the rc description for ``RECEIVED_RESULT_NOT_OK`` and
    the decoder diagnostic for ``RECEIVED_RESPONSE_IS_NOT_A_CBOR``.
    """

    def __init__(self, kind: NewtErrorKind, detail: str | None = None) -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(self.description)

    @property
    def description(self) -> str:
        base = _DESCRIPTIONS[self.kind]
        if self.kind in _DETAILED_KINDS:
            return f"{base}: {self.detail or ''}"
        return base

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NewtError):
            return NotImplemented
        return self.kind is other.kind and self.detail == other.detail

    def __hash__(self) -> int:
        return hash((self.kind, self.detail))

    def __repr__(self) -> str:
        if self.detail is None:
            return f"NewtError({self.kind.name})"
        return f"NewtError({self.kind.name}, {self.detail!r})"

    @classmethod
    def result_not_ok(cls, description: str) -> NewtError:
        return cls(NewtErrorKind.RECEIVED_RESULT_NOT_OK, description)

    @classmethod
    def not_a_cbor(cls, cause: BaseException | None = None) -> NewtError:
        return cls(NewtErrorKind.RECEIVED_RESPONSE_IS_NOT_A_CBOR, str(cause) if cause else None)


class ResponseTimeoutError(TimeoutError):
    """Raised by the client facade when the device stays silent."""


__all__ = ["NewtError", "NewtErrorKind", "ResponseTimeoutError"]
