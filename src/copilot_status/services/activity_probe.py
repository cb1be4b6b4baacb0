"""Best-effort probes that detect Copilot CLI activity outside session files.

Nothing here reads real token counts: the Copilot CLI exposes none, so
every probe estimates usage from the command line it observes.
"""

import logging
import math
import random
import subprocess
import time
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable

from copilot_status.types.usage import UsageEvent
from copilot_status.utils.timestamps import utc_now
from copilot_status.utils.token_estimator import MODEL_COSTS, cost_per_token

logger = logging.getLogger(__name__)

SIMULATED_COMMANDS = [
    'copilot suggest "deploy application"',
    'copilot explain "complex algorithm"',
    "copilot review",
    'copilot chat "optimize performance"',
    'gh copilot suggest "create function"',
    'gh copilot explain "async patterns"',
]

# Never report our own process
_OWN_PROCESS_MARKERS = ("copilot-status", "copilot_status", "copilot-usage")


class CopilotType(str, Enum):
    NPM = "npm"
    GH_EXTENSION = "gh-extension"
    NONE = "none"


def _run_version(args: list[str], runner: Callable = subprocess.run) -> str | None:
    try:
        result = runner(args, capture_output=True, text=True, timeout=10)
    except (OSError, subprocess.SubprocessError):
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip()


def detect_copilot_type(runner: Callable = subprocess.run) -> CopilotType:
    """Which Copilot CLI is installed: the npm package, the gh extension, or none."""
    if _run_version(["copilot", "--version"], runner) is not None:
        return CopilotType.NPM
    if _run_version(["gh", "copilot", "--version"], runner) is not None:
        return CopilotType.GH_EXTENSION
    return CopilotType.NONE


def get_copilot_version(runner: Callable = subprocess.run) -> str | None:
    version = _run_version(["copilot", "--version"], runner)
    if version is not None:
        return f"npm: {version}"
    version = _run_version(["gh", "copilot", "--version"], runner)
    if version is not None:
        return f"gh extension: {version}"
    return None


def generate_session_id(rng: random.Random | None = None) -> str:
    rng = rng or random.Random()
    suffix = "".join(rng.choice("abcdefghijklmnopqrstuvwxyz0123456789") for _ in range(9))
    return f"session_{int(time.time() * 1000)}_{suffix}"


def simulate_usage(
    command: str,
    timestamp: datetime,
    session_id: str,
    rng: random.Random,
    duration: int = 0,
) -> UsageEvent:
    """Estimate a usage event for a command from its length."""
    model = rng.choice(list(MODEL_COSTS))
    prompt_tokens = math.floor(len(command) * 0.75 + rng.random() * 100)
    completion_tokens = math.floor(prompt_tokens * (0.5 + rng.random() * 2))
    total_tokens = prompt_tokens + completion_tokens
    return UsageEvent(
        timestamp=timestamp,
        model=model,
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=total_tokens,
        cost=total_tokens * cost_per_token(model),
        session_id=session_id,
        command=command,
        duration=duration,
    )


class ActivityProbe(ABC):
    """Source of usage events polled once per tracker tick."""

    name = "probe"

    @abstractmethod
    def poll(self, now: datetime | None = None) -> list[UsageEvent]:
        ...


class NullProbe(ActivityProbe):
    name = "none"

    def poll(self, now: datetime | None = None) -> list[UsageEvent]:
        return []


class SimulationProbe(ActivityProbe):
    """Emits a random command every 15-45 seconds, for demonstration."""

    name = "simulation"

    def __init__(
        self,
        seed: int | None = None,
        min_gap: float = 15.0,
        max_gap: float = 45.0,
    ):
        self._rng = random.Random(seed)
        self._min_gap = min_gap
        self._max_gap = max_gap
        self._session_id = generate_session_id(self._rng)
        self._next_due: datetime | None = None

    @property
    def session_id(self) -> str:
        return self._session_id

    def _schedule_next(self, now: datetime):
        gap = self._min_gap + self._rng.random() * (self._max_gap - self._min_gap)
        self._next_due = now + timedelta(seconds=gap)

    def poll(self, now: datetime | None = None) -> list[UsageEvent]:
        if now is None:
            now = utc_now()
        if self._next_due is None:
            self._schedule_next(now)
            return []
        if now < self._next_due:
            return []
        self._schedule_next(now)
        command = self._rng.choice(SIMULATED_COMMANDS)
        return [simulate_usage(command, now, self._session_id, self._rng)]


class ProcessProbe(ActivityProbe):
    """Scans ``ps aux`` for running copilot commands.

    Each process is reported once, keyed by PID.
    """

    name = "process"

    def __init__(self, runner: Callable = subprocess.run, seed: int | None = None):
        self._runner = runner
        self._rng = random.Random(seed)
        self._session_id = generate_session_id(self._rng)
        self._seen_pids: set[str] = set()

    def _list_processes(self) -> list[str]:
        try:
            result = self._runner(["ps", "aux"], capture_output=True, text=True, timeout=10)
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug("Process listing failed: %s", e)
            return []
        if result.returncode != 0:
            return []
        return result.stdout.splitlines()

    def poll(self, now: datetime | None = None) -> list[UsageEvent]:
        if now is None:
            now = utc_now()
        events = []
        for line in self._list_processes():
            command = extract_copilot_command(line)
            if not command:
                continue
            parts = line.split()
            pid = parts[1] if len(parts) > 1 else line
            if pid in self._seen_pids:
                continue
            self._seen_pids.add(pid)
            events.append(simulate_usage(command, now, self._session_id, self._rng))
        return events


def extract_copilot_command(process_line: str) -> str:
    """The copilot command portion of a ``ps aux`` line, or "" if none."""
    if any(marker in process_line for marker in _OWN_PROCESS_MARKERS):
        return ""
    parts = process_line.split()
    for index, part in enumerate(parts):
        if part == "grep":
            return ""
        name = part.rsplit("/", 1)[-1]
        if name == "copilot":
            start = index - 1 if index > 0 and parts[index - 1].rsplit("/", 1)[-1] == "gh" else index
            return " ".join(parts[start:])
    return ""


def make_probe(kind: str, seed: int | None = None) -> ActivityProbe:
    if kind == SimulationProbe.name:
        return SimulationProbe(seed=seed)
    if kind == ProcessProbe.name:
        return ProcessProbe(seed=seed)
    return NullProbe()
