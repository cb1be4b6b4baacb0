"""Daily aggregation of session metrics from the Copilot history directory."""

import logging
from datetime import datetime
from pathlib import Path

from copilot_status.services.metrics_estimator import calculate_session_metrics
from copilot_status.services.session_parser import (
    SessionParseError,
    list_session_files,
    parse_session_file,
)
from copilot_status.types.sessions import Session, SessionMetrics
from copilot_status.types.usage import DailyStats, empty_hourly_breakdown
from copilot_status.utils.timestamps import (
    local_hour_key,
    parse_timestamp,
    today_utc,
    utc_date,
    utc_now,
)
from copilot_status.utils.token_estimator import calculate_cost

logger = logging.getLogger(__name__)

COPILOT_HISTORY_DIR = Path.home() / ".copilot" / "history-session-state"

# Sessions carry no model information
SESSION_MODEL_LABEL = "github-copilot"


class SessionProcessor:
    """Scans the session directory and folds matching sessions into DailyStats.

    Every query re-reads the directory; nothing is cached between calls.
    """

    def __init__(self, history_dir: str | Path | None = None):
        self.history_dir = Path(history_dir).expanduser() if history_dir else COPILOT_HISTORY_DIR

    def get_session_files(self) -> list[Path]:
        return list_session_files(self.history_dir)

    def get_today_usage(self, now: datetime | None = None) -> DailyStats:
        return self.get_usage_by_date(today_utc(now), now=now)

    def get_usage_by_date(self, target_date: str, now: datetime | None = None) -> DailyStats:
        """Aggregate every session whose UTC start date equals ``target_date``."""
        if now is None:
            now = utc_now()

        session_metrics: list[SessionMetrics] = []
        for session_file in self.get_session_files():
            try:
                session = parse_session_file(session_file)
            except SessionParseError as e:
                logger.warning("Failed to process session file %s: %s", session_file, e.reason)
                continue

            if is_session_from_date(session, target_date, now=now):
                session_metrics.append(calculate_session_metrics(session, now=now))

        return aggregate_daily_stats(target_date, session_metrics)

    def get_available_dates(self) -> list[str]:
        """Sorted UTC dates that have at least one parsable session."""
        dates = set()
        for session_file in self.get_session_files():
            try:
                session = parse_session_file(session_file)
            except SessionParseError:
                continue
            start = parse_timestamp(session.start_time)
            if start is not None:
                dates.add(utc_date(start))
        return sorted(dates)


def is_session_from_date(session: Session, target_date: str, now: datetime | None = None) -> bool:
    """Check whether a session started on ``target_date`` (UTC).

    Sessions with a missing, unreadable or future startTime never match.
    """
    if not session.start_time:
        logger.warning("Session %s missing startTime", session.session_id)
        return False

    start = parse_timestamp(session.start_time)
    if start is None:
        logger.warning(
            "Session %s has invalid startTime: %s", session.session_id, session.start_time,
        )
        return False

    if now is None:
        now = utc_now()
    elif now.tzinfo is None:
        now = now.astimezone()
    if start > now:
        logger.warning(
            "Session %s has future timestamp: %s", session.session_id, session.start_time,
        )
        return False

    return utc_date(start) == target_date


def aggregate_daily_stats(date: str, session_metrics: list[SessionMetrics]) -> DailyStats:
    """Fold per-session metrics into one DailyStats for ``date``."""
    if not session_metrics:
        return create_empty_stats(date)

    total_tokens = sum(m.tokens for m in session_metrics)
    total_prompts = sum(m.prompts for m in session_metrics)
    total_duration = sum(m.duration for m in session_metrics)

    average_prompt_tokens = total_tokens / total_prompts if total_prompts > 0 else 0
    # Kept as total minus the per-prompt average; not a completion average
    average_completion_tokens = total_tokens - average_prompt_tokens if total_prompts > 0 else 0

    return DailyStats(
        date=date,
        total_prompts=total_prompts,
        total_tokens=total_tokens,
        total_cost=calculate_cost(total_tokens),
        average_prompt_tokens=average_prompt_tokens,
        average_completion_tokens=average_completion_tokens,
        total_duration=total_duration,
        unique_sessions=len(session_metrics),
        commands={},
        models={SESSION_MODEL_LABEL: total_prompts},
        hourly_breakdown=calculate_hourly_breakdown(session_metrics),
    )


def calculate_hourly_breakdown(session_metrics: list[SessionMetrics]):
    """Bucket sessions by the local hour of their start time."""
    hourly = empty_hourly_breakdown()
    for metrics in session_metrics:
        start = parse_timestamp(metrics.start_time)
        if start is None:
            continue
        bucket = hourly[local_hour_key(start)]
        bucket.prompts += metrics.prompts
        bucket.tokens += metrics.tokens
        bucket.cost += calculate_cost(metrics.tokens)
        bucket.duration += metrics.duration
    return hourly


def create_empty_stats(date: str) -> DailyStats:
    return DailyStats(date=date)
