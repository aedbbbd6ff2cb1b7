"""Status codes, call results, completion and connectivity states of gRPC."""

from __future__ import annotations

import enum

__all__ = [
    "GrpcStatusCode",
    "GrpcCallStatus",
    "GrpcCompletionType",
    "GrpcConnectivityState",
]


class GrpcStatusCode(enum.IntEnum):
    """Result of a remote procedure call."""

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

    @classmethod
    def from_code(cls, code: int) -> GrpcStatusCode:
        """Map a numeric status code to its member; unrecognised codes become UNKNOWN."""
        if isinstance(code, bool) or not isinstance(code, int):
            raise TypeError(f"status code must be an int, not {type(code).__name__}")
        try:
            return cls(code)
        except ValueError:
            return cls.UNKNOWN


class GrpcCallStatus(enum.IntEnum):
    """Result of starting a gRPC call operation; anything but OK is a caller bug."""

    OK = 0
    ERROR = 1
    ERROR_NOT_ON_SERVER = 2
    ERROR_NOT_ON_CLIENT = 3
    ERROR_ALREADY_ACCEPTED = 4
    ERROR_ALREADY_INVOKED = 5
    ERROR_NOT_INVOKED = 6
    ERROR_ALREADY_FINISHED = 7
    ERROR_TOO_MANY_OPERATIONS = 8
    ERROR_INVALID_FLAGS = 9
    ERROR_INVALID_METADATA = 10
    ERROR_INVALID_MESSAGE = 11
    ERROR_NOT_SERVER_COMPLETION_QUEUE = 12
    ERROR_BATCH_TOO_BIG = 13
    ERROR_PAYLOAD_TYPE_MISMATCH = 14
    ERROR_COMPLETION_QUEUE_SHUTDOWN = 15


class GrpcCompletionType(enum.IntEnum):
    """The kind of event a completion queue returns."""

    QUEUE_SHUTDOWN = 0
    QUEUE_TIMEOUT = 1
    OP_COMPLETE = 2


class GrpcConnectivityState(enum.IntEnum):
    """Connectivity state of a channel."""

    INIT = -1
    IDLE = 0
    CONNECTING = 1
    READY = 2
    TRANSIENT_FAILURE = 3
    SHUTDOWN = 4