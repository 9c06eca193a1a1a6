"""JSON export helpers."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List


def write_json(path: Path, payload: Any) -> Path:
    """Write payload as pretty JSON and return path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2) + "\n")
    return path


def write_watch_log(path: Path, events: List[Dict[str, Any]], started_at: datetime) -> Path:
    """Write recorded subscription events with a small header."""
    return write_json(
        path,
        {
            "started_at": started_at.isoformat(timespec="seconds"),
            "count": len(events),
            "events": events,
        },
    )
