"""Export DailyStats to a JSON file with a metadata envelope."""

import logging
from datetime import datetime, timezone
from pathlib import Path

import orjson

from copilot_status import __version__
from copilot_status.types.usage import DailyStats

logger = logging.getLogger(__name__)

PRODUCER_NAME = "copilot-status"
FORMAT_VERSION = "1.0.0"


def resolve_export_path(output: str, date: str) -> Path:
    """Turn the --output value into a concrete .json file path.

    A value ending in "/" or without any "." names a directory.
    """
    if output.endswith("/") or "." not in output:
        output = str(Path(output) / f"copilot-stats-{date}.json")
    if not output.endswith(".json"):
        output += ".json"
    return Path(output)


def build_export_document(stats: DailyStats, date: str, now: datetime | None = None) -> dict:
    if now is None:
        now = datetime.now(timezone.utc)
    stamp = now.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return {
        "metadata": {
            "exportTimestamp": stamp.replace("+00:00", "Z"),
            "producerName": PRODUCER_NAME,
            "producerVersion": __version__,
            "formatVersion": FORMAT_VERSION,
            "queriedDate": date,
        },
        "data": stats.to_dict(),
    }


def export_stats(stats: DailyStats, output: str, date: str, now: datetime | None = None) -> Path:
    """Write the export document and return the path written."""
    path = resolve_export_path(output, date)
    path.parent.mkdir(parents=True, exist_ok=True)
    document = build_export_document(stats, date, now=now)
    path.write_bytes(orjson.dumps(document, option=orjson.OPT_INDENT_2))
    logger.info("Exported stats for %s to %s", date, path)
    return path
