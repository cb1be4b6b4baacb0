"""Shared test helpers."""

import json
from pathlib import Path


def write_session(directory: Path, name: str, **fields) -> Path:
    """Write a session document as session_<name>.json."""
    doc = {"sessionId": name, "chatMessages": []}
    doc.update(fields)
    path = directory / f"session_{name}.json"
    path.write_text(json.dumps(doc))
    return path
