"""Shared command helpers."""

from __future__ import annotations

import json
from typing import Any, List, Optional, Tuple

import typer
from rich.markup import escape
from rich.table import Table

from netmeter.core.advisor import NetworkAdvisor
from netmeter.core.channel import NetworkChannel
from netmeter.core.config import ConfigError
from netmeter.core.constants import ERROR_PLATFORM
from netmeter.core.probe import ProbeUnavailable, build_probe
from netmeter.core.reachability import ReachabilityChecker
from netmeter.core.state import CLIState


def get_state(ctx: typer.Context) -> CLIState:
    """Extract validated CLI state from Typer context."""
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=2)
    return state


def build_advisor(state: CLIState) -> NetworkAdvisor:
    """Create an advisor over the configured probe."""
    try:
        probe = build_probe(state.config, backend=state.probe_backend)
    except ConfigError as exc:
        typer.echo(f"Config error: {exc}")
        raise typer.Exit(code=2)
    return NetworkAdvisor(probe)


def build_channel(state: CLIState) -> NetworkChannel:
    return NetworkChannel(build_advisor(state))


def build_checker(state: CLIState, url: Optional[str] = None) -> ReachabilityChecker:
    reach_cfg = state.config.get("reachability", {})
    return ReachabilityChecker(
        url=url or str(reach_cfg.get("url")),
        expected_status=int(reach_cfg.get("expected_status", 204)),
        timeout_seconds=float(reach_cfg.get("timeout_seconds", 5)),
    )


def print_json_payload(state: CLIState, payload: Any) -> None:
    """Print JSON payload with plain-mode fallback for piping."""
    if state.plain_output:
        typer.echo(json.dumps(payload, separators=(",", ":")))
        return
    state.console.print_json(data=payload)


def print_rows(state: CLIState, title: str, rows: List[Tuple[str, str]]) -> None:
    """Print key/value rows as tab-separated text or a Rich table."""
    if state.plain_output:
        for key, value in rows:
            typer.echo(f"{key}\t{value}")
        return

    table = Table(title=title, show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    for key, value in rows:
        table.add_row(key, value)
    state.console.print(table)


def report_probe_error(state: CLIState, exc: ProbeUnavailable) -> None:
    """Render a probe failure in the active output mode."""
    if state.json_output:
        print_json_payload(
            state,
            {"status": "error", "error": {"code": ERROR_PLATFORM, "message": str(exc)}},
        )
    elif state.plain_output:
        typer.echo("status\terror")
        typer.echo(f"code\t{ERROR_PLATFORM}")
        typer.echo(f"message\t{exc}")
    else:
        state.console.print(f"Network probe unavailable: {escape(str(exc))}")
