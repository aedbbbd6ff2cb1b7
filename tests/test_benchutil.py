import sys
from datetime import timedelta
from unittest import mock

import pytest

from grpcrsgen import benchutil
from grpcrsgen.benchutil import (
    CpuRecorder,
    Histogram,
    cpu_num_cores,
    dur_to_nanos,
    dur_to_secs,
    get_cpu_usage,
    get_resource_usage,
)


def test_empty_histogram_report():
    data = Histogram(0.01, 60e9).report(False)
    assert data.count == 0.0
    assert data.sum == 0.0
    assert data.min_seen == sys.float_info.max
    assert data.max_seen == -sys.float_info.max
    assert sum(data.bucket) == 0


def test_histogram_statistics():
    his = Histogram(0.01, 60e9)
    for value in (10.0, 20.0, 30.0):
        his.observe(value)
    data = his.report(False)
    assert data.count == 3.0
    assert data.sum == pytest.approx(60.0)
    assert data.sum_of_squares == pytest.approx(10.0**2 + 20.0**2 + 30.0**2)
    assert data.min_seen == 10.0
    assert data.max_seen == 30.0
    assert sum(data.bucket) == 3


def test_histogram_buckets_are_monotone():
    his = Histogram(0.01, 60e9)
    his.observe(100.0)
    his.observe(1e6)
    bucket = his.report(False).bucket
    first = bucket.index(1)
    second = bucket.index(1, first + 1)
    assert first < second


def test_small_values_go_to_first_bucket():
    his = Histogram(0.01, 1000.0)
    his.observe(0.5)
    his.observe(1.0)
    assert his.report(False).bucket[0] == 2


def test_large_values_go_to_last_bucket():
    his = Histogram(0.01, 1000.0)
    his.observe(1000.0)
    his.observe(1e9)
    assert his.report(False).bucket[-1] == 2


def test_report_reset_clears_data():
    his = Histogram(0.01, 1000.0)
    his.observe(5.0)
    first = his.report(True)
    second = his.report(False)
    assert first.count == 1.0
    assert second.count == 0.0
    assert sum(second.bucket) == 0
    assert len(second.bucket) == len(first.bucket)
    assert second.min_seen == sys.float_info.max


def test_report_without_reset_keeps_data():
    his = Histogram(0.01, 1000.0)
    his.observe(5.0)
    his.report(False)
    assert his.report(False).count == 1.0


def test_dur_to_secs():
    assert dur_to_secs(timedelta(seconds=1, microseconds=500000)) == 1.5
    assert dur_to_secs(timedelta(0)) == 0.0


def test_dur_to_nanos():
    assert dur_to_nanos(timedelta(seconds=2)) == 2e9
    assert dur_to_nanos(timedelta(microseconds=3)) == 3000.0


def test_dur_conversions_agree():
    dur = timedelta(days=1, seconds=7, microseconds=250)
    assert dur_to_nanos(dur) == pytest.approx(dur_to_secs(dur) * 1e9)


def test_parse_cpu_stat():
    text = "cpu  1 2 3 4 5 6 7 8 9 10 11\ncpu0 1 1 1 1 1 1 1 1 1 1\n"
    assert benchutil._parse_cpu_stat(text) == (55, 4)


def test_cpu_usage_invariant():
    total, idle = get_cpu_usage()
    assert 0 <= idle <= total


def test_resource_usage_non_negative():
    sys_time, user_time = get_resource_usage()
    assert sys_time >= 0.0
    assert user_time >= 0.0


def test_cpu_num_cores_positive():
    assert cpu_num_cores() >= 1


def test_cpu_recorder_real_time():
    with mock.patch("time.monotonic", side_effect=[100.0, 102.5, 103.0]):
        recorder = CpuRecorder()
        first = recorder.cpu_time(True)
        second = recorder.cpu_time(False)
    assert first.real_time == pytest.approx(2.5)
    assert second.real_time == pytest.approx(0.5)


def test_cpu_recorder_without_reset_accumulates():
    with mock.patch("time.monotonic", side_effect=[10.0, 11.0, 13.0]):
        recorder = CpuRecorder()
        first = recorder.cpu_time(False)
        second = recorder.cpu_time(False)
    assert second.real_time > first.real_time
    assert second.total_cpu >= second.idle_cpu >= 0