"""Token estimation and cost calculation utilities."""

import math

from copilot_status.types.sessions import ChatMessage, Session

# ~1 token per 4 characters of message content
CHARS_PER_TOKEN = 4
# Flat overhead per tool call
TOOL_CALL_TOKENS = 10

# Flat rate applied after aggregation on the session path
COST_PER_TOKEN = 0.000001

# Per-token cost by model, used for logged usage events
MODEL_COSTS: dict[str, float] = {
    "gpt-4": 0.00003,
    "gpt-3.5-turbo": 0.000002,
    "github-copilot-chat": 0.000001,
    "github-copilot-code": 0.0000005,
}


def estimate_tokens(text: str | None) -> int:
    """Estimate token count from text, rounding partial tokens up."""
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def estimate_message_tokens(message: ChatMessage) -> int:
    """Content tokens plus the fixed overhead for each tool call."""
    total = estimate_tokens(message.content)
    if message.tool_calls:
        total += TOOL_CALL_TOKENS * len(message.tool_calls)
    return total


def estimate_session_tokens(session: Session) -> int:
    return sum(estimate_message_tokens(m) for m in session.chat_messages)


def calculate_cost(tokens: int | float) -> float:
    """Cost in USD for a token count at the flat session rate."""
    return tokens * COST_PER_TOKEN


def cost_per_token(model: str) -> float:
    """Match a model string to its per-token cost, by exact name then prefix."""
    if model in MODEL_COSTS:
        return MODEL_COSTS[model]
    # Longest prefix first so "gpt-4-turbo" doesn't fall into a shorter entry
    for prefix in sorted(MODEL_COSTS, key=len, reverse=True):
        if model.startswith(prefix):
            return MODEL_COSTS[prefix]
    return COST_PER_TOKEN
