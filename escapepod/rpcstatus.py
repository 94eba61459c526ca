"""Status codes and the error type raised by service handlers."""

from __future__ import annotations

from enum import IntEnum


class Code(IntEnum):
    """Canonical status codes of a remote procedure call."""

    OK = 0
    CANCELLED = 1
    UNKNOWN = 2
    INVALID_ARGUMENT = 3
    DEADLINE_EXCEEDED = 4
    NOT_FOUND = 5
    ALREADY_EXISTS = 6
    PERMISSION_DENIED = 7
    RESOURCE_EXHAUSTED = 8
    FAILED_PRECONDITION = 9
    ABORTED = 10
    OUT_OF_RANGE = 11
    UNIMPLEMENTED = 12
    INTERNAL = 13
    UNAVAILABLE = 14
    DATA_LOSS = 15
    UNAUTHENTICATED = 16


class RpcError(Exception):
    """An error that carries a status code along with its message."""

    def __init__(self, code: Code | int, message: str = "") -> None:
        code = Code(code)
        if code is Code.OK:
            raise ValueError("status OK does not describe an error")
        super().__init__(message)
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"RpcError({self.code.name}, {self.message!r})"