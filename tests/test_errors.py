from newtbridge.errors import NewtError, NewtErrorKind, ResponseTimeoutError
from newtbridge.protocol.protocol import ReturnCode


def test_descriptions() -> None:
    assert NewtError(NewtErrorKind.WAITING_FOR_RESPONSE).description == "Waiting for previous command"
    assert NewtError(NewtErrorKind.USER_CANCELLED).description == "Cancelled"
    assert str(NewtError.result_not_ok("Out of memory")) == "Received incorrect result: Out of memory"
    assert NewtError.not_a_cbor(ValueError("bad")).description == "Received invalid response: bad"


def test_equality_and_repr() -> None:
    assert NewtError(NewtErrorKind.IMAGE_INVALID) == NewtError(NewtErrorKind.IMAGE_INVALID)
    assert NewtError.result_not_ok("a") != NewtError.result_not_ok("b")
    assert len({NewtError(NewtErrorKind.INTERNAL_ERROR), NewtError(NewtErrorKind.INTERNAL_ERROR)}) == 1
    assert repr(NewtError.result_not_ok("Enoent")) == "NewtError(RECEIVED_RESULT_NOT_OK, 'Enoent')"


def test_return_code_descriptions() -> None:
    assert ReturnCode(2).description == "Out of memory"
    assert ReturnCode.UNKNOWN.description == "Unknown Error: Command might not be supported"


def test_timeout_is_a_timeout_error() -> None:
    assert issubclass(ResponseTimeoutError, TimeoutError)
