"""Tests for copilot_status.utils.timestamps."""

from datetime import datetime, timedelta, timezone

import pytest

from copilot_status.utils.timestamps import (
    is_valid_date,
    local_hour_key,
    parse_timestamp,
    today_utc,
    utc_date,
)


class TestParseTimestamp:
    def test_z_suffix(self):
        assert parse_timestamp("2024-01-15T10:00:00.000Z") == datetime(2024, 1, 15, 10, tzinfo=timezone.utc)

    def test_offset_kept(self):
        dt = parse_timestamp("2024-01-15T10:00:00+02:00")
        assert dt.utcoffset() == timedelta(hours=2)

    def test_naive_is_local(self):
        dt = parse_timestamp("2024-01-15T10:00:00")
        assert dt.tzinfo is not None
        assert dt.replace(tzinfo=None) == datetime(2024, 1, 15, 10)

    def test_epoch_seconds_and_millis(self):
        expected = datetime(2024, 1, 15, 10, tzinfo=timezone.utc)
        assert parse_timestamp(1705312800) == expected
        assert parse_timestamp(1705312800000) == expected

    @pytest.mark.parametrize("value", [None, "", "   ", "soon", True, [], {}])
    def test_unreadable(self, value):
        assert parse_timestamp(value) is None


def test_utc_date_crosses_midnight():
    dt = datetime(2024, 1, 15, 22, 0, tzinfo=timezone(timedelta(hours=-5)))
    assert utc_date(dt) == "2024-01-16"


def test_local_hour_key_is_two_digits():
    dt = datetime(2024, 1, 15, 7, 0).astimezone()
    assert local_hour_key(dt) == "07"


def test_today_utc():
    assert today_utc(datetime(2024, 1, 15, 23, 59, tzinfo=timezone.utc)) == "2024-01-15"


@pytest.mark.parametrize("value,ok", [
    ("2024-01-15", True), ("2024-02-30", False), ("2024-1-5", False),
    ("15-01-2024", False), ("today", False),
])
def test_is_valid_date(value, ok):
    assert is_valid_date(value) is ok
