"""Live dashboard snapshot computation and refresh scheduling.

Compute and render are kept apart: ``compute_snapshot`` is pure data and
``run_periodic`` hands each snapshot to a render callback.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from copilot_status.services.daily_aggregator import SessionProcessor
from copilot_status.types.usage import CopilotMetrics, DailyStats
from copilot_status.utils.timestamps import utc_now

logger = logging.getLogger(__name__)

# Success can't be read from transcripts
DEFAULT_SUCCESS_RATE = 0.98
CONTEXT_WINDOW_TOKENS = 8000
CONTEXT_USAGE_MIN = 5.0
CONTEXT_USAGE_MAX = 95.0


@dataclass
class DashboardSnapshot:
    stats: DailyStats
    metrics: CopilotMetrics
    update_count: int
    computed_at: datetime
    compute_ms: float = 0.0
    activity_hours: list[str] = field(default_factory=list)


def calculate_metrics(stats: DailyStats) -> CopilotMetrics:
    """Derive rate metrics from a day's totals."""
    total_minutes = stats.total_duration / 60
    tokens_per_minute = round(stats.total_tokens / total_minutes) if total_minutes > 0 else 0

    average_response_time = (
        round(stats.total_duration / stats.total_prompts * 1000)
        if stats.total_prompts > 0 else 0
    )

    cost_burn_rate = stats.total_cost / total_minutes * 60 if total_minutes > 0 else 0.0

    avg_tokens_per_prompt = (
        stats.total_tokens / stats.total_prompts if stats.total_prompts > 0 else 0
    )
    context_usage = min(
        CONTEXT_USAGE_MAX,
        max(CONTEXT_USAGE_MIN, avg_tokens_per_prompt / CONTEXT_WINDOW_TOKENS * 100),
    )

    return CopilotMetrics(
        tokens_per_minute=tokens_per_minute,
        average_response_time=average_response_time,
        success_rate=DEFAULT_SUCCESS_RATE,
        cost_burn_rate=cost_burn_rate,
        context_window_usage=context_usage,
    )


def last_hours(now: datetime, count: int = 12) -> list[str]:
    """Hour keys for the trailing ``count`` local hours, oldest first."""
    current = now.astimezone().hour
    return [f"{(current - i) % 24:02d}" for i in range(count - 1, -1, -1)]


def compute_snapshot(
    processor: SessionProcessor,
    update_count: int,
    now: datetime | None = None,
) -> DashboardSnapshot:
    """Today's stats plus derived metrics, timed."""
    if now is None:
        now = utc_now()
    started = time.perf_counter()
    stats = processor.get_today_usage(now=now)
    metrics = calculate_metrics(stats)
    return DashboardSnapshot(
        stats=stats,
        metrics=metrics,
        update_count=update_count,
        computed_at=now,
        compute_ms=(time.perf_counter() - started) * 1000,
        activity_hours=last_hours(now),
    )


def run_periodic(
    compute: Callable[[int], DashboardSnapshot],
    render: Callable[[DashboardSnapshot], None],
    interval: float,
    sleep: Callable[[float], None] = time.sleep,
    max_ticks: Optional[int] = None,
) -> int:
    """Call compute then render every ``interval`` seconds.

    A failing tick is logged and the loop goes on. Returns the number of
    ticks run when ``max_ticks`` is reached; otherwise runs until interrupted.
    """
    tick = 0
    while max_ticks is None or tick < max_ticks:
        tick += 1
        try:
            render(compute(tick))
        except Exception:
            logger.exception("Dashboard refresh #%d failed", tick)
        if max_ticks is not None and tick >= max_ticks:
            break
        sleep(interval)
    return tick
