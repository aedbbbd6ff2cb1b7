"""Latency histograms and CPU usage sampling for benchmarks."""

from __future__ import annotations

import math
import os
import resource
import sys
import time
from dataclasses import dataclass, field
from datetime import timedelta

__all__ = [
    "Sample",
    "HistogramData",
    "Histogram",
    "CpuRecorder",
    "get_resource_usage",
    "get_cpu_usage",
    "cpu_num_cores",
    "dur_to_secs",
    "dur_to_nanos",
]

_FLOAT_MAX = sys.float_info.max
_FLOAT_MIN = -sys.float_info.max
_ON_LINUX = sys.platform.startswith("linux")


@dataclass(frozen=True)
class Sample:
    """CPU usage measured over an interval."""

    real_time: float
    user_time: float
    sys_time: float
    total_cpu: int
    idle_cpu: int


@dataclass
class HistogramData:
    """A snapshot of a histogram."""

    count: float
    sum: float
    sum_of_squares: float
    min_seen: float
    max_seen: float
    bucket: list[int] = field(default_factory=list)


class Histogram:
    """Accumulates values in buckets whose sizes grow exponentially."""

    def __init__(self, resolution: float, max_val: float) -> None:
        self._one_on_log_multiplier = 1.0 / math.log(1.0 + resolution)
        self._max_val = max_val
        self._buckets = [0] * (self._find_bucket(max_val) + 1)
        self._reset_stats()

    def _reset_stats(self) -> None:
        self._count = 0
        self._sum = 0.0
        self._sum_of_squares = 0.0
        self._min = _FLOAT_MAX
        self._max = _FLOAT_MIN

    def _find_bucket(self, value: float) -> int:
        value = max(value, 1.0)
        value = min(value, self._max_val)
        return max(0, int(math.log(value) * self._one_on_log_multiplier))

    def observe(self, value: float) -> None:
        """Record one value."""
        self._count += 1
        self._sum += value
        self._sum_of_squares += value * value
        self._min = min(self._min, value)
        self._max = max(self._max, value)
        self._buckets[self._find_bucket(value)] += 1

    def report(self, reset: bool) -> HistogramData:
        """Return the current data, clearing the histogram afterwards if ``reset``."""
        data = HistogramData(
            count=float(self._count),
            sum=self._sum,
            sum_of_squares=self._sum_of_squares,
            min_seen=self._min,
            max_seen=self._max,
            bucket=list(self._buckets),
        )
        if reset:
            self._reset_stats()
            self._buckets = [0] * len(self._buckets)
        return data


def get_resource_usage() -> tuple[float, float]:
    """Return ``(system_seconds, user_seconds)`` used by this process."""
    if not _ON_LINUX:
        return 0.0, 0.0
    usage = resource.getrusage(resource.RUSAGE_SELF)
    return usage.ru_stime, usage.ru_utime


def _parse_cpu_stat(text: str) -> tuple[int, int]:
    """Sum the first ten counters of the aggregate cpu line and pick the idle one."""
    counters = [int(value) for value in text[5:].split()[:10]]
    idle = counters[3] if len(counters) > 3 else 0
    return sum(counters), idle


def get_cpu_usage() -> tuple[int, int]:
    """Return ``(total_jiffies, idle_jiffies)`` of the whole machine."""
    if not _ON_LINUX:
        return 0, 0
    with open("/proc/stat", encoding="ascii") as stat:
        return _parse_cpu_stat(stat.read())


def cpu_num_cores() -> int:
    """Return the number of CPU cores."""
    return os.cpu_count() or 1


def dur_to_secs(dur: timedelta) -> float:
    """Convert a duration to seconds."""
    whole = dur.days * 86_400 + dur.seconds
    return whole + dur.microseconds / 1_000_000


def dur_to_nanos(dur: timedelta) -> float:
    """Convert a duration to nanoseconds."""
    whole = dur.days * 86_400 + dur.seconds
    return whole * 1_000_000_000.0 + dur.microseconds * 1_000.0


class CpuRecorder:
    """Measures CPU and wall time used since creation or the last reset."""

    def __init__(self) -> None:
        self._total_cpu, self._idle_cpu = get_cpu_usage()
        self._sys_time, self._user_time = get_resource_usage()
        self._last_reset_time = time.monotonic()

    def cpu_time(self, reset: bool) -> Sample:
        """Return usage since the last reset, starting a new interval if ``reset``."""
        now = time.monotonic()
        total_cpu, idle_cpu = get_cpu_usage()
        sys_time, user_time = get_resource_usage()

        sample = Sample(
            real_time=now - self._last_reset_time,
            user_time=user_time - self._user_time,
            sys_time=sys_time - self._sys_time,
            total_cpu=total_cpu - self._total_cpu,
            idle_cpu=idle_cpu - self._idle_cpu,
        )

        if reset:
            self._user_time = user_time
            self._sys_time = sys_time
            self._last_reset_time = now
            self._total_cpu = total_cpu
            self._idle_cpu = idle_cpu

        return sample