"""Synthetic usage events for trying out the log-based reports."""

import math
import random
from datetime import datetime, timedelta
from typing import Iterator

from copilot_status.services.usage_log import UsageLogStore
from copilot_status.types.usage import UsageEvent
from copilot_status.utils.token_estimator import MODEL_COSTS, cost_per_token

DEMO_COMMANDS = [
    'gh copilot suggest "deploy application to kubernetes"',
    'gh copilot explain "async/await pattern in JavaScript"',
    "gh copilot review ./src/components/UserProfile.tsx",
    'gh copilot chat "optimize database query performance"',
    'gh copilot suggest "handle error cases in API calls"',
    'gh copilot explain "difference between map and forEach"',
    'gh copilot chat "best practices for React hooks"',
    'gh copilot suggest "implement authentication middleware"',
    "gh copilot review ./tests/integration.test.js",
    'gh copilot chat "explain memory leaks in Node.js"',
    'gh copilot suggest "create responsive CSS grid layout"',
    'gh copilot explain "how JWT tokens work"',
    'gh copilot chat "performance optimization strategies"',
    'gh copilot suggest "implement rate limiting"',
    'gh copilot explain "microservices architecture patterns"',
]

DEMO_SESSIONS = 5


def generate_demo_events(
    days: int,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> Iterator[UsageEvent]:
    """Yield 5-19 events per day for the last ``days`` days, during working hours."""
    rng = rng or random.Random()
    if now is None:
        now = datetime.now().astimezone()
    midnight = now.astimezone().replace(hour=0, minute=0, second=0, microsecond=0)

    for day in range(days):
        day_start = midnight - timedelta(days=day)
        for _ in range(rng.randint(5, 19)):
            timestamp = day_start + timedelta(hours=rng.randint(9, 17), minutes=rng.randint(0, 59))
            command = rng.choice(DEMO_COMMANDS)
            model = rng.choice(list(MODEL_COSTS))
            prompt_tokens = math.floor(len(command) * 0.75) + rng.randint(0, 199)
            completion_tokens = math.floor(prompt_tokens * (0.3 + rng.random() * 1.5))
            total_tokens = prompt_tokens + completion_tokens
            yield UsageEvent(
                timestamp=timestamp,
                model=model,
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=total_tokens,
                cost=total_tokens * cost_per_token(model),
                session_id=f"demo_session_{rng.randint(1, DEMO_SESSIONS)}",
                command=command,
                duration=rng.randint(500, 3499),
            )


def write_demo_data(store: UsageLogStore, days: int, now: datetime | None = None,
                    seed: int | None = None) -> int:
    """Append demo events to the store; returns how many were written."""
    count = 0
    with store:
        for event in generate_demo_events(days, now=now, rng=random.Random(seed)):
            store.append(event)
            count += 1
    return count
