"""Per-session metrics derived from a parsed transcript."""

from datetime import datetime

from copilot_status.types.sessions import MessageRole, Session, SessionMetrics
from copilot_status.utils.timestamps import parse_timestamp, utc_now
from copilot_status.utils.token_estimator import estimate_session_tokens


def calculate_session_metrics(session: Session, now: datetime | None = None) -> SessionMetrics:
    """Compute token, duration and count metrics for one session.

    An open session (no endTime) is measured up to ``now``. Missing optional
    fields count as zero.
    """
    user_messages = count_role(session, MessageRole.USER)
    return SessionMetrics(
        session_id=session.session_id,
        start_time=session.start_time,
        end_time=session.end_time,
        duration=session_duration(session, now=now),
        tokens=estimate_session_tokens(session),
        prompts=user_messages,
        messages=len(session.chat_messages),
        tool_calls=count_tool_calls(session),
        user_messages=user_messages,
        assistant_messages=count_role(session, MessageRole.ASSISTANT),
        tool_messages=count_role(session, MessageRole.TOOL),
    )


def session_duration(session: Session, now: datetime | None = None) -> int:
    """Whole seconds from start to end (or now); 0 without a usable start."""
    start = parse_timestamp(session.start_time)
    if start is None:
        return 0
    end = parse_timestamp(session.end_time) if session.end_time else None
    if end is None:
        end = now or utc_now()
        if end.tzinfo is None:
            end = end.astimezone()
    return round((end - start).total_seconds())


def count_role(session: Session, role: MessageRole) -> int:
    return sum(1 for m in session.chat_messages if m.role == role)


def count_tool_calls(session: Session) -> int:
    return sum(len(m.tool_calls) for m in session.chat_messages if m.tool_calls)
