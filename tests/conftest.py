"""Shared test fixtures for copilot-status."""

import shutil
from datetime import datetime, timezone
from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    """Path to the test fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def simple_session_path(fixtures_dir) -> Path:
    return fixtures_dir / "session_simple.json"


@pytest.fixture
def tools_session_path(fixtures_dir) -> Path:
    return fixtures_dir / "session_with_tools.json"


@pytest.fixture
def open_session_path(fixtures_dir) -> Path:
    return fixtures_dir / "session_open.json"


@pytest.fixture
def malformed_session_path(fixtures_dir) -> Path:
    return fixtures_dir / "session_malformed.json"


@pytest.fixture
def now() -> datetime:
    """Fixed 'now' for deterministic tests: the day after the fixture sessions."""
    return datetime(2024, 1, 16, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def history_dir(tmp_path) -> Path:
    """Empty Copilot history-session-state directory."""
    path = tmp_path / ".copilot" / "history-session-state"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def populated_history_dir(history_dir, fixtures_dir) -> Path:
    """History directory holding every fixture session, corrupt one included."""
    for fixture in fixtures_dir.glob("session_*.json"):
        shutil.copy(fixture, history_dir / fixture.name)
    return history_dir
