"""Services for copilot-status."""

from copilot_status.services.session_parser import (
    SessionParseError,
    list_session_files,
    parse_session_file,
)
from copilot_status.services.metrics_estimator import calculate_session_metrics
from copilot_status.services.daily_aggregator import SessionProcessor
from copilot_status.services.usage_log import UsageLogStore

__all__ = [
    "SessionParseError",
    "list_session_files",
    "parse_session_file",
    "calculate_session_metrics",
    "SessionProcessor",
    "UsageLogStore",
]
