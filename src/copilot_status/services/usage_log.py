"""Append-only NDJSON store of discrete usage events."""

import logging
from pathlib import Path

import orjson

from copilot_status.types.usage import DailyStats, UsageEvent, empty_hourly_breakdown
from copilot_status.utils.timestamps import local_hour_key

logger = logging.getLogger(__name__)

DEFAULT_LOG_FILE = "./copilot-status.log"


class UsageLogStore:
    """One JSON event per line. Lines are never rewritten.

    Using the store as a context manager creates the file on entry, so it is
    present and readable whatever happens inside the block.
    """

    def __init__(self, log_file: str | Path = DEFAULT_LOG_FILE):
        self.log_file = Path(log_file).expanduser()

    def __enter__(self) -> "UsageLogStore":
        self.ensure_store()
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def ensure_store(self):
        """Create the parent directory and an empty log file if absent."""
        if self.log_file.exists():
            return
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        # "a" never truncates a file that appeared in the meantime
        with open(self.log_file, "ab"):
            pass

    def append(self, event: UsageEvent):
        """Append one event. I/O failures are logged, not raised."""
        line = orjson.dumps(event.to_dict()) + b"\n"
        try:
            with open(self.log_file, "ab") as f:
                f.write(line)
        except OSError as e:
            logger.error("Failed to log usage to %s: %s", self.log_file, e)

    def read_for_date(self, date: str) -> list[UsageEvent]:
        """Events whose stored timestamp starts with ``date``.

        Unparsable lines are dropped.
        """
        try:
            data = self.log_file.read_bytes()
        except FileNotFoundError:
            return []

        events = []
        for line in data.splitlines():
            if not line.strip():
                continue
            try:
                raw = orjson.loads(line)
                if not isinstance(raw, dict) or not str(raw.get("timestamp", "")).startswith(date):
                    continue
                events.append(UsageEvent.from_dict(raw))
            except (orjson.JSONDecodeError, KeyError, TypeError, ValueError):
                continue
        return events

    def aggregate(self, date: str) -> DailyStats:
        """Fold the events of ``date`` into DailyStats, one prompt per event."""
        events = self.read_for_date(date)
        if not events:
            return DailyStats(date=date)

        commands: dict[str, int] = {}
        models: dict[str, int] = {}
        sessions = set()
        hourly = empty_hourly_breakdown()
        total_prompt_tokens = 0
        total_completion_tokens = 0

        for event in events:
            commands[event.command] = commands.get(event.command, 0) + 1
            models[event.model] = models.get(event.model, 0) + 1
            sessions.add(event.session_id)
            total_prompt_tokens += event.prompt_tokens
            total_completion_tokens += event.completion_tokens

            bucket = hourly[local_hour_key(event.timestamp)]
            bucket.prompts += 1
            bucket.tokens += event.total_tokens
            bucket.cost += event.cost
            bucket.duration += event.duration

        count = len(events)
        return DailyStats(
            date=date,
            total_prompts=count,
            total_tokens=sum(e.total_tokens for e in events),
            total_cost=sum(e.cost for e in events),
            average_prompt_tokens=total_prompt_tokens / count,
            average_completion_tokens=total_completion_tokens / count,
            total_duration=sum(e.duration for e in events),
            unique_sessions=len(sessions),
            commands=commands,
            models=models,
            hourly_breakdown=hourly,
        )
