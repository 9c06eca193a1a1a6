"""Formatting helpers used for console output."""

from __future__ import annotations

from typing import List, Optional, Tuple

from netmeter.core.constants import TRANSPORT_LABELS
from netmeter.core.models import NetworkClassification, ReachabilityResult


def format_bool(value: Optional[bool]) -> str:
    """Lower-case boolean text for plain output; ``unknown`` for None."""
    if value is None:
        return "unknown"
    return "true" if value else "false"


def format_transport(classification: NetworkClassification) -> str:
    label = TRANSPORT_LABELS.get(classification.transport.value, "Unknown")
    if classification.interface:
        return f"{label} ({classification.interface})"
    return label


def describe(classification: NetworkClassification) -> str:
    """One-line human summary of a classification."""
    if not classification.connected:
        return "Offline (treated as metered)"
    cost = "metered" if classification.metered else "unmetered"
    return f"{format_transport(classification)}, {cost}"


def classification_rows(classification: NetworkClassification) -> List[Tuple[str, str]]:
    """Key/value rows for table or tab-separated output."""
    return [
        ("connected", format_bool(classification.connected)),
        ("metered", format_bool(classification.metered)),
        ("transport", classification.transport.value),
        ("interface", classification.interface or "-"),
    ]


def reachability_rows(result: ReachabilityResult) -> List[Tuple[str, str]]:
    return [
        ("url", result.url),
        ("reachable", format_bool(result.reachable)),
        ("status_code", str(result.status_code) if result.status_code is not None else "-"),
        ("elapsed_ms", f"{result.elapsed_ms:.1f}" if result.elapsed_ms is not None else "-"),
        ("captive_portal", format_bool(result.captive_portal)),
        ("error", result.error or "-"),
    ]
