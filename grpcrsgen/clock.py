"""Clock types, timespecs, compression settings and call flags of gRPC."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import timedelta

__all__ = [
    "GprClockType",
    "GprTimespec",
    "GrpcCompressionLevel",
    "GrpcCompressionAlgorithms",
    "GrpcServerRegisterMethodPayloadHandling",
    "GprLogSeverity",
    "InitialMetadataFlags",
    "WriteFlags",
]

_INT64_MAX = 2**63 - 1


class GprClockType(enum.IntEnum):
    """The clocks gRPC supports."""

    MONOTONIC = 0
    """Monotonic clock; epoch undefined, always moves forward."""
    REALTIME = 1
    """Realtime clock; epoch at 0:00:00 UTC 1 Jan 1970, may jump."""
    PRECISE = 2
    """CPU cycle time; degrades to REALTIME where unavailable."""
    TIMESPAN = 3
    """No base: the difference between two times."""


@dataclass(frozen=True)
class GprTimespec:
    """A point in time or a span, measured against a given clock."""

    tv_sec: int
    tv_nsec: int
    clock_type: GprClockType

    @classmethod
    def inf_future(cls) -> GprTimespec:
        """A realtime timespec later than any other."""
        return cls(tv_sec=_INT64_MAX, tv_nsec=0, clock_type=GprClockType.REALTIME)

    @classmethod
    def from_duration(cls, dur: timedelta) -> GprTimespec:
        """Convert a non-negative duration to a relative (TIMESPAN) timespec."""
        if not isinstance(dur, timedelta):
            raise TypeError(f"duration must be a timedelta, not {type(dur).__name__}")
        if dur < timedelta(0):
            raise ValueError(f"duration must not be negative: {dur!r}")
        return cls(
            tv_sec=dur.days * 86_400 + dur.seconds,
            tv_nsec=dur.microseconds * 1_000,
            clock_type=GprClockType.TIMESPAN,
        )


class GrpcCompressionLevel(enum.IntEnum):
    """Abstract compression levels, mapped to an algorithm per peer."""

    NONE = 0
    LOW = 1
    MED = 2
    HIGH = 3


class GrpcCompressionAlgorithms(enum.IntEnum):
    """Compression algorithms supported by gRPC."""

    NONE = 0
    DEFLATE = 1
    GZIP = 2


class GrpcServerRegisterMethodPayloadHandling(enum.IntEnum):
    """How a server handles payloads for a registered method."""

    NONE = 0
    READ_INITIAL_BYTE_BUFFER = 1


class GprLogSeverity(enum.IntEnum):
    """Severity of a gRPC log message."""

    DEBUG = 0
    INFO = 1
    ERROR = 2


class InitialMetadataFlags(enum.IntFlag):
    """Flags attached to the initial metadata of a call."""

    IDEMPOTENT_REQUEST = 0x0000_0010
    WAIT_FOR_READY = 0x0000_0020
    CACHEABLE_REQUEST = 0x0000_0040


class WriteFlags(enum.IntFlag):
    """Flags attached to a message write."""

    BUFFER_HINT = 0x0000_0001
    NO_COMPRESS = 0x0000_0002