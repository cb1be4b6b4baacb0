"""Tests for copilot_status.services.exporter."""

from datetime import datetime, timezone
from pathlib import Path

import orjson

from copilot_status import __version__
from copilot_status.services.exporter import (
    FORMAT_VERSION,
    PRODUCER_NAME,
    build_export_document,
    export_stats,
    resolve_export_path,
)
from copilot_status.types.usage import DailyStats


class TestResolveExportPath:
    def test_trailing_slash_is_directory(self):
        assert resolve_export_path("out/", "2024-01-15") == Path("out/copilot-stats-2024-01-15.json")

    def test_no_dot_is_directory(self):
        assert resolve_export_path("reports", "2024-01-15") == Path("reports/copilot-stats-2024-01-15.json")

    def test_json_suffix_kept(self):
        assert resolve_export_path("stats.json", "2024-01-15") == Path("stats.json")

    def test_other_suffix_gets_json_appended(self):
        assert resolve_export_path("stats.v2", "2024-01-15") == Path("stats.v2.json")


def test_document_shape():
    stats = DailyStats(date="2024-01-15", total_prompts=3, total_tokens=150)
    now = datetime(2024, 1, 16, 8, 30, tzinfo=timezone.utc)
    doc = build_export_document(stats, "2024-01-15", now=now)

    assert doc["metadata"] == {
        "exportTimestamp": "2024-01-16T08:30:00.000Z",
        "producerName": PRODUCER_NAME,
        "producerVersion": __version__,
        "formatVersion": FORMAT_VERSION,
        "queriedDate": "2024-01-15",
    }
    assert doc["data"] == stats.to_dict()


def test_export_writes_indented_json(tmp_path):
    stats = DailyStats(date="2024-01-15", total_tokens=42)
    path = export_stats(stats, str(tmp_path / "nested") + "/", "2024-01-15")

    assert path == tmp_path / "nested" / "copilot-stats-2024-01-15.json"
    text = path.read_text()
    assert text.startswith("{\n  ")
    doc = orjson.loads(text)
    assert doc["data"]["totalTokens"] == 42
    assert len(doc["data"]["hourlyBreakdown"]) == 24
