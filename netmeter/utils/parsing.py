"""Parsing helpers for probe output and state documents."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

_TRUE_VALUES = {"true", "yes", "1", "on", "metered"}
_FALSE_VALUES = {"false", "no", "0", "off", "unmetered"}


def split_terse_line(line: str) -> List[str]:
    """Split one line of ``nmcli -t`` output on unescaped colons."""
    fields: List[str] = []
    current: List[str] = []
    escaped = False
    for char in line:
        if escaped:
            current.append(char)
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == ":":
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
    fields.append("".join(current))
    return fields


def parse_terse_rows(text: str) -> List[List[str]]:
    """Parse multi-line ``nmcli -t`` output into rows of fields."""
    return [split_terse_line(line) for line in text.splitlines() if line.strip()]


def parse_terse_fields(text: str) -> Dict[str, str]:
    """Parse ``nmcli -t -f FIELD device show`` output into a field map."""
    fields: Dict[str, str] = {}
    for row in parse_terse_rows(text):
        if len(row) < 2:
            continue
        fields[row[0].strip()] = ":".join(row[1:]).strip()
    return fields


def parse_optional_bool(value: Any) -> Optional[bool]:
    """Parse a loose boolean; ``None`` means unknown."""
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    if text in {"", "unknown", "null", "none"}:
        return None
    raise ValueError(f"Unrecognized boolean value: {value!r}")


def load_state_document(path: Path) -> Dict[str, Any]:
    """Load a network state document from a JSON or YAML file."""
    text = path.read_text()
    raw_data: Any
    try:
        if path.suffix.lower() in {".yaml", ".yml"}:
            raw_data = yaml.safe_load(text)
        else:
            try:
                raw_data = json.loads(text)
            except json.JSONDecodeError:
                raw_data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid state document {path}: {exc}") from exc

    if not isinstance(raw_data, dict):
        raise ValueError(f"State document {path} must contain a mapping at the root")
    return raw_data
