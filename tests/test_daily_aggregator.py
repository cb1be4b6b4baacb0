"""Tests for copilot_status.services.daily_aggregator."""

import shutil
from datetime import datetime, timezone

import pytest

from helpers import write_session
from copilot_status.services.daily_aggregator import (
    SESSION_MODEL_LABEL,
    SessionProcessor,
    aggregate_daily_stats,
    create_empty_stats,
    is_session_from_date,
)
from copilot_status.types.sessions import Session, SessionMetrics
from copilot_status.types.usage import HOURS
from copilot_status.utils.timestamps import local_hour_key, parse_timestamp


def _hour(ts: str) -> str:
    return local_hour_key(parse_timestamp(ts))


def _assert_empty(stats, date):
    assert stats.date == date
    assert stats.total_prompts == 0
    assert stats.total_tokens == 0
    assert stats.total_cost == 0
    assert stats.unique_sessions == 0
    assert stats.commands == {}
    assert stats.models == {}
    assert list(stats.hourly_breakdown) == HOURS
    assert all(h.prompts == 0 and h.tokens == 0 and h.cost == 0 and h.duration == 0
               for h in stats.hourly_breakdown.values())


# ---------------------------------------------------------------------------
# Folding metrics
# ---------------------------------------------------------------------------

class TestAggregateDailyStats:
    def test_two_sessions_scenario(self):
        metrics = [
            SessionMetrics(session_id="a", start_time="2024-01-15T08:00:00Z", tokens=100, prompts=2, duration=60),
            SessionMetrics(session_id="b", start_time="2024-01-15T09:00:00Z", tokens=50, prompts=1, duration=30),
        ]
        stats = aggregate_daily_stats("2024-01-15", metrics)

        assert stats.total_tokens == 150
        assert stats.total_prompts == 3
        assert stats.unique_sessions == 2
        assert stats.average_prompt_tokens == 50
        assert stats.total_duration == 90
        assert stats.total_cost == pytest.approx(150 * 0.000001)
        assert stats.models == {SESSION_MODEL_LABEL: 3}
        assert stats.commands == {}

    def test_average_completion_tokens_is_total_minus_average(self):
        # Literal formula: total tokens minus the per-prompt average,
        # which is not a per-prompt completion figure.
        metrics = [SessionMetrics(session_id="a", start_time="2024-01-15T08:00:00Z", tokens=100, prompts=4)]
        stats = aggregate_daily_stats("2024-01-15", metrics)
        assert stats.average_prompt_tokens == 25
        assert stats.average_completion_tokens == 75

    def test_no_prompts_gives_zero_averages(self):
        metrics = [SessionMetrics(session_id="a", start_time="2024-01-15T08:00:00Z", tokens=40, prompts=0)]
        stats = aggregate_daily_stats("2024-01-15", metrics)
        assert stats.average_prompt_tokens == 0
        assert stats.average_completion_tokens == 0
        assert stats.unique_sessions == 1

    def test_hourly_breakdown_sums_match_totals(self):
        metrics = [
            SessionMetrics(session_id="a", start_time="2024-01-15T08:00:00Z", tokens=100, prompts=2, duration=60),
            SessionMetrics(session_id="b", start_time="2024-01-15T08:30:00Z", tokens=20, prompts=1, duration=5),
            SessionMetrics(session_id="c", start_time="2024-01-15T17:45:00Z", tokens=50, prompts=3, duration=30),
        ]
        stats = aggregate_daily_stats("2024-01-15", metrics)
        hourly = stats.hourly_breakdown

        assert list(hourly) == HOURS
        assert sum(h.prompts for h in hourly.values()) == stats.total_prompts
        assert sum(h.tokens for h in hourly.values()) == stats.total_tokens
        assert hourly[_hour("2024-01-15T08:00:00Z")].tokens == 120
        assert hourly[_hour("2024-01-15T17:45:00Z")].prompts == 3
        assert hourly[_hour("2024-01-15T08:00:00Z")].cost == pytest.approx(120 * 0.000001)

    def test_empty_input_gives_empty_shape(self):
        _assert_empty(aggregate_daily_stats("2024-01-15", []), "2024-01-15")
        _assert_empty(create_empty_stats("2024-02-01"), "2024-02-01")


# ---------------------------------------------------------------------------
# Date matching
# ---------------------------------------------------------------------------

class TestIsSessionFromDate:
    def test_matches_utc_date(self, now):
        session = Session(session_id="s", start_time="2024-01-15T23:30:00Z")
        assert is_session_from_date(session, "2024-01-15", now=now)
        assert not is_session_from_date(session, "2024-01-16", now=now)

    def test_epoch_millis_start_time(self, now):
        # 2024-01-15T10:00:00Z
        session = Session(session_id="s", start_time=1705312800000)
        assert is_session_from_date(session, "2024-01-15", now=now)
        assert not is_session_from_date(session, "2024-01-14", now=now)

    def test_offset_timestamp_uses_utc_date(self, now):
        # 01:30 at +03:00 is still the previous day in UTC
        session = Session(session_id="s", start_time="2024-01-16T01:30:00+03:00")
        assert is_session_from_date(session, "2024-01-15", now=now)

    def test_missing_start_time(self, now, caplog):
        assert not is_session_from_date(Session(session_id="s"), "2024-01-15", now=now)
        assert "missing startTime" in caplog.text

    def test_invalid_start_time(self, now, caplog):
        session = Session(session_id="s", start_time="not a date")
        assert not is_session_from_date(session, "2024-01-15", now=now)
        assert "invalid startTime" in caplog.text

    def test_future_start_time(self, caplog):
        now = datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)
        session = Session(session_id="s", start_time="2024-01-15T10:00:00Z")
        assert not is_session_from_date(session, "2024-01-15", now=now)
        assert "future timestamp" in caplog.text


# ---------------------------------------------------------------------------
# Directory scan
# ---------------------------------------------------------------------------

class TestSessionProcessor:
    def test_fixture_directory(self, populated_history_dir, now):
        processor = SessionProcessor(populated_history_dir)
        stats = processor.get_usage_by_date("2024-01-15", now=now)

        # simple (3 tokens, 1 prompt) + tools (62, 2) + open (0, 0); corrupt file skipped
        assert stats.unique_sessions == 3
        assert stats.total_tokens == 65
        assert stats.total_prompts == 3
        # open session runs until now: 12h01m
        assert stats.total_duration == 1800 + 100 + 43260
        assert stats.average_prompt_tokens == pytest.approx(65 / 3)
        assert stats.average_completion_tokens == pytest.approx(65 - 65 / 3)
        assert stats.hourly_breakdown[_hour("2024-01-15T14:20:00Z")].tokens >= 62

    def test_corrupt_file_does_not_change_results(self, history_dir, fixtures_dir, now, caplog):
        for name in ("session_simple.json", "session_with_tools.json"):
            shutil.copy(fixtures_dir / name, history_dir / name)
        processor = SessionProcessor(history_dir)
        clean = processor.get_usage_by_date("2024-01-15", now=now)

        shutil.copy(fixtures_dir / "session_malformed.json", history_dir / "session_malformed.json")
        with_corrupt = processor.get_usage_by_date("2024-01-15", now=now)

        assert with_corrupt == clean
        assert "session_malformed.json" in caplog.text

    def test_unhashable_role_file_is_skipped(self, history_dir, now, caplog):
        write_session(history_dir, "good", startTime="2024-01-15T10:00:00Z",
                      endTime="2024-01-15T10:01:00Z",
                      chatMessages=[{"role": "user", "content": "abcd"}])
        processor = SessionProcessor(history_dir)
        clean = processor.get_usage_by_date("2024-01-15", now=now)

        write_session(history_dir, "list_role", startTime="2024-01-15T11:00:00Z",
                      chatMessages=[{"role": ["user"]}])
        write_session(history_dir, "dict_role", startTime="2024-01-15T12:00:00Z",
                      chatMessages=[{"role": {"x": 1}}])
        mixed = processor.get_usage_by_date("2024-01-15", now=now)

        assert mixed == clean
        assert mixed.unique_sessions == 1
        assert "session_list_role.json" in caplog.text

    def test_zero_message_session_counts_as_unique(self, history_dir, now):
        write_session(history_dir, "empty", startTime="2024-01-15T10:00:00Z",
                      endTime="2024-01-15T10:00:10Z")
        stats = SessionProcessor(history_dir).get_usage_by_date("2024-01-15", now=now)
        assert stats.unique_sessions == 1
        assert stats.total_tokens == 0
        assert stats.total_prompts == 0

    def test_missing_start_time_does_not_abort_scan(self, history_dir, now):
        write_session(history_dir, "a_nostart", chatMessages=[{"role": "user", "content": "hi"}])
        write_session(history_dir, "b_ok", startTime="2024-01-15T10:00:00Z",
                      endTime="2024-01-15T10:01:00Z",
                      chatMessages=[{"role": "user", "content": "abcd"}])
        stats = SessionProcessor(history_dir).get_usage_by_date("2024-01-15", now=now)
        assert stats.unique_sessions == 1
        assert stats.total_tokens == 1

    def test_future_session_excluded(self, history_dir):
        write_session(history_dir, "future", startTime="2099-01-01T00:00:00Z",
                      chatMessages=[{"role": "user", "content": "abcd"}])
        stats = SessionProcessor(history_dir).get_usage_by_date("2099-01-01")
        _assert_empty(stats, "2099-01-01")

    def test_missing_directory_gives_empty_stats(self, tmp_path, now):
        stats = SessionProcessor(tmp_path / "nope").get_usage_by_date("2024-01-15", now=now)
        _assert_empty(stats, "2024-01-15")

    def test_no_matching_sessions(self, populated_history_dir, now):
        stats = SessionProcessor(populated_history_dir).get_usage_by_date("2023-12-31", now=now)
        _assert_empty(stats, "2023-12-31")

    def test_idempotent(self, populated_history_dir, now):
        processor = SessionProcessor(populated_history_dir)
        first = processor.get_usage_by_date("2024-01-15", now=now)
        second = processor.get_usage_by_date("2024-01-15", now=now)
        assert first == second
        assert first.to_dict() == second.to_dict()

    def test_today_usage_uses_utc_date(self, history_dir):
        now = datetime(2024, 1, 15, 18, 0, tzinfo=timezone.utc)
        write_session(history_dir, "today", startTime="2024-01-15T10:00:00Z",
                      endTime="2024-01-15T10:00:30Z",
                      chatMessages=[{"role": "user", "content": "abcdefgh"}])
        stats = SessionProcessor(history_dir).get_today_usage(now=now)
        assert stats.date == "2024-01-15"
        assert stats.total_tokens == 2

    def test_available_dates(self, populated_history_dir):
        write_session(populated_history_dir, "older", startTime="2024-01-10T08:00:00Z")
        write_session(populated_history_dir, "nostart")
        dates = SessionProcessor(populated_history_dir).get_available_dates()
        assert dates == ["2024-01-10", "2024-01-15"]

    def test_to_dict_uses_wire_keys(self, populated_history_dir, now):
        data = SessionProcessor(populated_history_dir).get_usage_by_date("2024-01-15", now=now).to_dict()
        assert set(data) == {
            "date", "totalPrompts", "totalTokens", "totalCost", "averagePromptTokens",
            "averageCompletionTokens", "totalDuration", "uniqueSessions", "commands",
            "models", "hourlyBreakdown",
        }
        assert set(data["hourlyBreakdown"]["00"]) == {"prompts", "tokens", "cost", "duration"}
