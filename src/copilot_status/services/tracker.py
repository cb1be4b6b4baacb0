"""Background tracking of new Copilot sessions.

Running totals live in a TrackerTotals accumulator owned by the tracking
loop; each tick takes the state in and hands the updated totals back.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from copilot_status.services.activity_probe import ActivityProbe
from copilot_status.services.daily_aggregator import SESSION_MODEL_LABEL, SessionProcessor
from copilot_status.services.metrics_estimator import calculate_session_metrics
from copilot_status.services.session_parser import SessionParseError, parse_session_file
from copilot_status.services.usage_log import UsageLogStore
from copilot_status.types.sessions import Session, SessionMetrics
from copilot_status.types.usage import UsageEvent
from copilot_status.utils.timestamps import parse_timestamp, utc_now
from copilot_status.utils.token_estimator import calculate_cost

logger = logging.getLogger(__name__)

# Transcripts don't split prompt and completion tokens
PROMPT_TOKEN_SHARE = 0.3
COMPLETION_TOKEN_SHARE = 0.7

EventCallback = Callable[[UsageEvent, Optional[SessionMetrics]], None]


@dataclass(frozen=True)
class TrackerTotals:
    tracked: int = 0
    tokens: int = 0
    cost: float = 0.0

    def add(self, event: UsageEvent) -> "TrackerTotals":
        return replace(
            self,
            tracked=self.tracked + 1,
            tokens=self.tokens + event.total_tokens,
            cost=self.cost + event.cost,
        )


@dataclass
class TrackerState:
    processed: set[str] = field(default_factory=set)
    totals: TrackerTotals = field(default_factory=TrackerTotals)


@dataclass
class TickResult:
    new_events: list[UsageEvent]
    total_files: int
    totals: TrackerTotals


def session_to_usage_event(session: Session, metrics: SessionMetrics,
                           now: datetime | None = None) -> UsageEvent:
    """Summarize a whole session as one usage event."""
    timestamp = parse_timestamp(session.start_time) or now or utc_now()
    return UsageEvent(
        timestamp=timestamp,
        model=SESSION_MODEL_LABEL,
        prompt_tokens=round(metrics.tokens * PROMPT_TOKEN_SHARE),
        completion_tokens=round(metrics.tokens * COMPLETION_TOKEN_SHARE),
        total_tokens=metrics.tokens,
        cost=calculate_cost(metrics.tokens),
        session_id=session.session_id,
        command=f"Session {session.session_id} ({metrics.prompts} prompts)",
        duration=metrics.duration * 1000,
    )


def process_session_file(
    session_file: str | Path,
    totals: TrackerTotals,
    store: UsageLogStore | None = None,
    now: datetime | None = None,
) -> tuple[UsageEvent | None, SessionMetrics | None, TrackerTotals]:
    """Turn one session file into a logged event and updated totals.

    A file that fails to parse is logged and leaves the totals unchanged.
    """
    try:
        session = parse_session_file(session_file)
    except SessionParseError as e:
        logger.error("Error processing session file %s: %s", session_file, e.reason)
        return None, None, totals

    metrics = calculate_session_metrics(session, now=now)
    event = session_to_usage_event(session, metrics, now=now)
    if store is not None:
        store.append(event)
    return event, metrics, totals.add(event)


def check_for_new_sessions(
    processor: SessionProcessor,
    state: TrackerState,
    store: UsageLogStore | None = None,
    on_event: EventCallback | None = None,
    now: datetime | None = None,
) -> TickResult:
    """Process every session file not seen before, each exactly once."""
    current_files = processor.get_session_files()
    new_events = []
    totals = state.totals

    for session_file in current_files:
        key = str(session_file)
        if key in state.processed:
            continue
        state.processed.add(key)
        event, metrics, totals = process_session_file(session_file, totals, store=store, now=now)
        if event is not None:
            new_events.append(event)
            if on_event is not None:
                on_event(event, metrics)

    state.totals = totals
    return TickResult(new_events=new_events, total_files=len(current_files), totals=totals)


def poll_probe(
    probe: ActivityProbe,
    state: TrackerState,
    store: UsageLogStore | None = None,
    on_event: EventCallback | None = None,
    now: datetime | None = None,
) -> list[UsageEvent]:
    """Log whatever the activity probe reports and fold it into the totals."""
    events = probe.poll(now=now)
    totals = state.totals
    for event in events:
        if store is not None:
            store.append(event)
        totals = totals.add(event)
        if on_event is not None:
            on_event(event, None)
    state.totals = totals
    return events
