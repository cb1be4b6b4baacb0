"""Loader and structural validator for Copilot CLI session files."""

import logging
from pathlib import Path

import orjson

from copilot_status.types.sessions import (
    ChatMessage,
    MessageRole,
    Session,
    ToolCall,
    ToolFunction,
)

logger = logging.getLogger(__name__)

SESSION_FILE_PREFIX = "session_"
SESSION_FILE_SUFFIX = ".json"

_VALID_ROLES = {r.value for r in MessageRole}


class SessionParseError(Exception):
    """A session file could not be loaded."""

    def __init__(self, path: str | Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{reason}: {path}")


class SessionNotFoundError(SessionParseError):
    pass


class SessionPermissionError(SessionParseError):
    pass


class EmptySessionFileError(SessionParseError):
    pass


class MalformedSessionJsonError(SessionParseError):
    pass


class SessionSchemaError(SessionParseError):
    pass


def is_session_file_name(name: str) -> bool:
    return name.startswith(SESSION_FILE_PREFIX) and name.endswith(SESSION_FILE_SUFFIX)


def list_session_files(directory: str | Path) -> list[Path]:
    """List session files in a history directory, sorted by name.

    A missing or unreadable directory is logged and reads as empty.
    """
    root = Path(directory)
    try:
        names = sorted(entry.name for entry in root.iterdir())
    except FileNotFoundError:
        logger.warning("Session directory does not exist: %s", root)
        logger.info("GitHub Copilot CLI may not be installed or used yet.")
        return []
    except NotADirectoryError:
        logger.warning("Session directory is not a directory: %s", root)
        return []
    except PermissionError:
        logger.warning("Permission denied accessing session directory: %s", root)
        return []

    files = [root / name for name in names if is_session_file_name(name)]
    if not files:
        logger.warning("No session files found in: %s", root)
    return files


def parse_session_file(file_path: str | Path) -> Session:
    """Load and validate one session file.

    Raises a SessionParseError subclass describing the first problem found.
    """
    path = Path(file_path)
    if not path.exists():
        raise SessionNotFoundError(path, "File not found")

    try:
        data = path.read_bytes()
    except PermissionError as e:
        raise SessionPermissionError(path, "Permission denied") from e
    except FileNotFoundError as e:
        # Removed between the exists() check and the read
        raise SessionNotFoundError(path, "File not found") from e
    except OSError as e:
        raise SessionParseError(path, f"Failed to read session file ({e})") from e

    if not data.strip():
        raise EmptySessionFileError(path, "Empty file")

    try:
        raw = orjson.loads(data)
    except orjson.JSONDecodeError as e:
        raise MalformedSessionJsonError(path, f"Invalid JSON ({e})") from e

    return _parse_raw_session(path, raw)


def _parse_raw_session(path: Path, raw) -> Session:
    if not isinstance(raw, dict):
        raise SessionSchemaError(path, "Invalid JSON object")

    session_id = raw.get("sessionId")
    if not session_id or not isinstance(session_id, str):
        raise SessionSchemaError(path, "Missing or invalid sessionId")

    raw_messages = raw.get("chatMessages")
    if not isinstance(raw_messages, list):
        raise SessionSchemaError(path, "Missing or invalid chatMessages array")

    messages = []
    for index, raw_msg in enumerate(raw_messages):
        role = raw_msg.get("role") if isinstance(raw_msg, dict) else None
        if not isinstance(role, str) or role not in _VALID_ROLES:
            raise SessionSchemaError(path, f"Invalid message role at index {index}")
        messages.append(_parse_raw_message(raw_msg))

    timeline = raw.get("timeline")
    return Session(
        session_id=session_id,
        start_time=raw.get("startTime"),
        end_time=raw.get("endTime"),
        chat_messages=messages,
        timeline=timeline if isinstance(timeline, list) else None,
        raw=raw,
    )


def _parse_raw_message(raw: dict) -> ChatMessage:
    content = raw.get("content")
    if not isinstance(content, str):
        content = None

    # The CLI writes tool_calls; accept the camelCase spelling as well
    raw_calls = raw.get("tool_calls", raw.get("toolCalls"))
    tool_calls = None
    if isinstance(raw_calls, list):
        tool_calls = [_parse_tool_call(c) for c in raw_calls]

    timestamp = raw.get("timestamp")
    return ChatMessage(
        role=MessageRole(raw["role"]),
        content=content,
        tool_calls=tool_calls,
        timestamp=timestamp if isinstance(timestamp, str) else None,
    )


def _parse_tool_call(raw) -> ToolCall:
    if not isinstance(raw, dict):
        return ToolCall()
    function = raw.get("function")
    if not isinstance(function, dict):
        function = {}
    return ToolCall(
        id=str(raw.get("id", "")),
        type=str(raw.get("type", "function")),
        function=ToolFunction(
            name=str(function.get("name", "")),
            arguments=str(function.get("arguments", "")),
        ),
    )
