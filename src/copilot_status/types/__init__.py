"""Type definitions for copilot-status."""

from copilot_status.types.sessions import (
    ChatMessage,
    MessageRole,
    Session,
    SessionMetrics,
    ToolCall,
    ToolFunction,
)
from copilot_status.types.usage import (
    HOURS,
    CopilotMetrics,
    DailyStats,
    HourlyStats,
    UsageEvent,
    empty_hourly_breakdown,
)

__all__ = [
    "ChatMessage",
    "MessageRole",
    "Session",
    "SessionMetrics",
    "ToolCall",
    "ToolFunction",
    "HOURS",
    "CopilotMetrics",
    "DailyStats",
    "HourlyStats",
    "UsageEvent",
    "empty_hourly_breakdown",
]
