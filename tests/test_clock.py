from datetime import timedelta

import pytest

from grpcrsgen.clock import (
    GprClockType,
    GprLogSeverity,
    GprTimespec,
    GrpcCompressionAlgorithms,
    GrpcCompressionLevel,
    GrpcServerRegisterMethodPayloadHandling,
    InitialMetadataFlags,
    WriteFlags,
)


def test_from_duration_whole_seconds():
    ts = GprTimespec.from_duration(timedelta(seconds=7))
    assert ts == GprTimespec(tv_sec=7, tv_nsec=0, clock_type=GprClockType.TIMESPAN)


def test_from_duration_zero():
    ts = GprTimespec.from_duration(timedelta(0))
    assert (ts.tv_sec, ts.tv_nsec) == (0, 0)
    assert ts.clock_type is GprClockType.TIMESPAN


def test_from_duration_subsecond_part_is_below_one_second():
    ts = GprTimespec.from_duration(timedelta(days=2, seconds=3, microseconds=999_999))
    assert 0 <= ts.tv_nsec < 1_000_000_000
    total = ts.tv_sec * 1_000_000_000 + ts.tv_nsec
    assert total == timedelta(days=2, seconds=3, microseconds=999_999) // timedelta(
        microseconds=1
    ) * 1_000


def test_from_duration_rejects_negative():
    with pytest.raises(ValueError):
        GprTimespec.from_duration(timedelta(seconds=-1))


def test_from_duration_rejects_non_timedelta():
    with pytest.raises(TypeError):
        GprTimespec.from_duration(5)


def test_inf_future_is_realtime_and_later_than_spans():
    inf = GprTimespec.inf_future()
    assert inf.clock_type is GprClockType.REALTIME
    assert inf.tv_nsec == 0
    assert inf.tv_sec > GprTimespec.from_duration(timedelta.max).tv_sec


def test_clock_type_from_value():
    assert GprClockType(0) is GprClockType.MONOTONIC
    assert GprClockType(1) is GprClockType.REALTIME
    assert GprClockType(2) is GprClockType.PRECISE
    assert GprClockType(3) is GprClockType.TIMESPAN
    with pytest.raises(ValueError):
        GprClockType(4)


def test_compression_and_misc_enums():
    assert GrpcCompressionLevel.NONE == 0
    assert GrpcCompressionLevel.HIGH > GrpcCompressionLevel.MED > GrpcCompressionLevel.LOW
    assert GrpcCompressionAlgorithms.NONE == 0
    assert list(GrpcCompressionAlgorithms)[-1] is GrpcCompressionAlgorithms.GZIP
    assert GrpcServerRegisterMethodPayloadHandling(1) is (
        GrpcServerRegisterMethodPayloadHandling.READ_INITIAL_BYTE_BUFFER
    )
    assert GprLogSeverity.DEBUG < GprLogSeverity.INFO < GprLogSeverity.ERROR


def test_initial_metadata_flags_from_value():
    assert InitialMetadataFlags(0x10) is InitialMetadataFlags.IDEMPOTENT_REQUEST
    assert InitialMetadataFlags(0x20) is InitialMetadataFlags.WAIT_FOR_READY
    assert InitialMetadataFlags(0x40) is InitialMetadataFlags.CACHEABLE_REQUEST


def test_write_flags_from_combined_value():
    combined = WriteFlags(0x3)
    assert combined == WriteFlags.BUFFER_HINT | WriteFlags.NO_COMPRESS
    assert WriteFlags.NO_COMPRESS in combined
    assert WriteFlags.BUFFER_HINT in combined
    assert WriteFlags(0x1) is WriteFlags.BUFFER_HINT
    assert WriteFlags(0x2) is WriteFlags.NO_COMPRESS