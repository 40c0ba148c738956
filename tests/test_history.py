"""Tests for the per-host ring buffer."""

from datetime import datetime, timedelta, timezone

import pytest

from webmon.monitor.history import HistoryBuffer, format_latency
from webmon.monitor.probe import Failure, Success

T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _at(minutes: int) -> datetime:
    return T0 + timedelta(minutes=minutes)


class TestRecord:
    """Tests for cursor movement and overwrite."""

    def test_first_record_lands_in_slot_zero(self):
        buf = HistoryBuffer(3)
        buf.record(Success(0.01), _at(0))

        assert buf.cursor == 0
        assert buf.snapshot()[0].latency == 0.01
        assert buf.snapshot()[1:] == [None, None]

    def test_wraps_and_evicts_oldest(self):
        """Capacity 3, latencies 10/20/30/40ms -> slots [40, 20, 30]."""
        buf = HistoryBuffer(3)
        for i, ms in enumerate([10, 20, 30, 40]):
            buf.record(Success(ms / 1000), _at(i))

        snapshot = buf.snapshot()
        assert len(snapshot) == 3
        assert [format_latency(s.latency) for s in snapshot] == ["40ms", "20ms", "30ms"]
        assert buf.cursor == 0
        assert snapshot[buf.cursor].collected_at == _at(3)
        assert buf.status() == "40ms"

    def test_n_plus_one_records_overwrite_only_the_oldest(self):
        capacity = 5
        buf = HistoryBuffer(capacity)
        for i in range(capacity + 1):
            buf.record(Success(i / 1000), _at(i))

        collected = sorted(s.collected_at for s in buf.snapshot())
        assert collected == [_at(i) for i in range(1, capacity + 1)]
        assert buf.snapshot()[buf.cursor].collected_at == _at(capacity)
        assert len(buf) == capacity

    def test_capacity_one(self):
        buf = HistoryBuffer(1)
        buf.record(Success(0.1), _at(0))
        buf.record(Failure("boom", 0.2), _at(1))

        assert buf.cursor == 0
        assert buf.status() == "Error: boom"

    def test_rejects_zero_capacity(self):
        with pytest.raises(ValueError):
            HistoryBuffer(0)


class TestStatus:
    """Tests for the display string."""

    def test_pending_before_first_probe(self):
        assert HistoryBuffer(4).status() == "pending"

    def test_failure_status_shows_reason(self):
        buf = HistoryBuffer(4)
        buf.record(Success(0.05), _at(0))
        buf.record(Failure("503 Service Unavailable", 0.01), _at(1))

        assert buf.status() == "Error: 503 Service Unavailable"

    def test_success_after_failure_clears_error(self):
        buf = HistoryBuffer(4)
        buf.record(Failure("connection refused", 0.0), _at(0))
        buf.record(Success(0.125), _at(1))

        assert buf.status() == "125ms"


class TestSnapshotAndSamples:
    """Tests for copies handed to readers."""

    def test_snapshot_is_a_copy(self):
        buf = HistoryBuffer(2)
        buf.record(Success(0.01), _at(0))
        snapshot = buf.snapshot()
        buf.record(Success(0.02), _at(1))

        assert snapshot[1] is None

    def test_samples_are_oldest_first_before_wrap(self):
        buf = HistoryBuffer(4)
        for i in range(2):
            buf.record(Success(0.01 * (i + 1)), _at(i))

        assert [s.collected_at for s in buf.samples()] == [_at(0), _at(1)]

    def test_samples_are_oldest_first_after_wrap(self):
        buf = HistoryBuffer(3)
        for i in range(5):
            buf.record(Success(0.01), _at(i))

        assert [s.collected_at for s in buf.samples()] == [_at(2), _at(3), _at(4)]

    def test_sample_properties(self):
        buf = HistoryBuffer(2)
        ok = buf.record(Success(0.5), _at(0))
        bad = buf.record(Failure("timed out after 10s", 10.0), _at(1))

        assert ok.ok is True and ok.error is None
        assert bad.ok is False and bad.error == "timed out after 10s"
        assert bad.latency == 10.0
