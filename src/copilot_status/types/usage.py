"""Aggregated usage types shared by the session and event paths."""

from dataclasses import dataclass, field
from datetime import datetime, timezone


HOURS = [f"{h:02d}" for h in range(24)]


@dataclass
class HourlyStats:
    prompts: int = 0
    tokens: int = 0
    cost: float = 0.0
    duration: float = 0

    def to_dict(self) -> dict:
        return {
            "prompts": self.prompts,
            "tokens": self.tokens,
            "cost": self.cost,
            "duration": self.duration,
        }


def empty_hourly_breakdown() -> dict[str, HourlyStats]:
    """All 24 hour buckets, zeroed, keyed "00".."23"."""
    return {hour: HourlyStats() for hour in HOURS}


@dataclass
class DailyStats:
    date: str
    total_prompts: int = 0
    total_tokens: int = 0
    total_cost: float = 0.0
    average_prompt_tokens: float = 0.0
    average_completion_tokens: float = 0.0
    total_duration: float = 0
    unique_sessions: int = 0
    commands: dict[str, int] = field(default_factory=dict)
    models: dict[str, int] = field(default_factory=dict)
    hourly_breakdown: dict[str, HourlyStats] = field(default_factory=empty_hourly_breakdown)

    def to_dict(self) -> dict:
        """Serialize using the camelCase keys of the JSON output."""
        return {
            "date": self.date,
            "totalPrompts": self.total_prompts,
            "totalTokens": self.total_tokens,
            "totalCost": self.total_cost,
            "averagePromptTokens": self.average_prompt_tokens,
            "averageCompletionTokens": self.average_completion_tokens,
            "totalDuration": self.total_duration,
            "uniqueSessions": self.unique_sessions,
            "commands": dict(self.commands),
            "models": dict(self.models),
            "hourlyBreakdown": {h: s.to_dict() for h, s in self.hourly_breakdown.items()},
        }


@dataclass
class UsageEvent:
    """One logged interaction in the usage log store."""
    timestamp: datetime
    model: str
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    cost: float
    session_id: str
    command: str
    duration: int  # milliseconds

    def to_dict(self) -> dict:
        ts = self.timestamp
        if ts.tzinfo is None:
            ts = ts.astimezone()
        # UTC with a Z suffix so the first ten characters are the date
        stamp = ts.astimezone(timezone.utc).isoformat(timespec="milliseconds")
        return {
            "timestamp": stamp.replace("+00:00", "Z"),
            "model": self.model,
            "promptTokens": self.prompt_tokens,
            "completionTokens": self.completion_tokens,
            "totalTokens": self.total_tokens,
            "cost": self.cost,
            "sessionId": self.session_id,
            "command": self.command,
            "duration": self.duration,
        }

    @classmethod
    def from_dict(cls, raw: dict) -> "UsageEvent":
        """Build an event from a log line. Raises on missing or mistyped fields."""
        stamp = raw["timestamp"]
        if not isinstance(stamp, str):
            raise ValueError(f"timestamp must be a string, got {type(stamp).__name__}")
        return cls(
            timestamp=datetime.fromisoformat(stamp.replace("Z", "+00:00")),
            model=str(raw["model"]),
            prompt_tokens=int(raw["promptTokens"]),
            completion_tokens=int(raw["completionTokens"]),
            total_tokens=int(raw["totalTokens"]),
            cost=float(raw["cost"]),
            session_id=str(raw["sessionId"]),
            command=str(raw["command"]),
            duration=int(raw["duration"]),
        )


@dataclass
class CopilotMetrics:
    tokens_per_minute: int = 0
    average_response_time: int = 0  # milliseconds
    success_rate: float = 0.0
    cost_burn_rate: float = 0.0  # currency per hour
    context_window_usage: float = 0.0  # percentage
