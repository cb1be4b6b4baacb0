"""Session transcript types as written by the Copilot CLI."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"
    SYSTEM = "system"


@dataclass
class ToolFunction:
    name: str = ""
    arguments: str = ""  # raw JSON string, never parsed


@dataclass
class ToolCall:
    id: str = ""
    type: str = "function"
    function: ToolFunction = field(default_factory=ToolFunction)


@dataclass
class ChatMessage:
    role: MessageRole
    content: Optional[str] = None
    tool_calls: Optional[list[ToolCall]] = None
    timestamp: Optional[str] = None


@dataclass
class Session:
    session_id: str
    start_time: Optional[str | int | float] = None  # ISO 8601 string or epoch number
    end_time: Optional[str | int | float] = None
    chat_messages: list[ChatMessage] = field(default_factory=list)
    timeline: Optional[list[Any]] = None
    raw: dict = field(default_factory=dict, repr=False)


@dataclass
class SessionMetrics:
    session_id: str
    start_time: Optional[str | int | float] = None
    end_time: Optional[str | int | float] = None
    duration: int = 0  # seconds
    tokens: int = 0
    prompts: int = 0
    messages: int = 0
    tool_calls: int = 0
    user_messages: int = 0
    assistant_messages: int = 0
    tool_messages: int = 0
