"""Network change subscription command."""

from __future__ import annotations

import json
import queue
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import typer
from rich.markup import escape

from netmeter.commands.common import build_advisor, get_state
from netmeter.core.models import NetworkClassification
from netmeter.core.probe import ProbeUnavailable
from netmeter.core.state import CLIState
from netmeter.exporters.json_export import write_watch_log
from netmeter.utils.formatting import describe, format_bool

# Upper bound on a single queue wait, keeps Ctrl-C responsive
_POLL_SLICE_SECONDS = 0.5


def _emit_change(state: CLIState, event: Dict[str, Any], classification: NetworkClassification) -> None:
    if state.json_output:
        typer.echo(json.dumps(event, separators=(",", ":")))
    elif state.plain_output:
        typer.echo(
            f"{event['at']}\tconnected={format_bool(classification.connected)}"
            f"\tmetered={format_bool(classification.metered)}"
            f"\ttransport={classification.transport.value}"
        )
    else:
        state.console.print(f"[{event['at']}] {describe(classification)}")


def _emit_error(state: CLIState, exc: ProbeUnavailable) -> None:
    at = datetime.now().isoformat(timespec="seconds")
    if state.json_output:
        typer.echo(json.dumps({"at": at, "error": str(exc)}, separators=(",", ":")))
    elif state.plain_output:
        typer.echo(f"{at}\terror\t{exc}")
    else:
        state.console.print(f"[{at}] Network probe unavailable: {escape(str(exc))}")


def watch_command(
    ctx: typer.Context,
    count: Optional[int] = typer.Option(None, "--count", "-n", min=1, help="Stop after N change events"),
    duration: Optional[float] = typer.Option(None, "--duration", min=0.0, help="Stop after N seconds"),
    interval: Optional[float] = typer.Option(None, "--interval", help="Polling interval in seconds"),
    no_initial: bool = typer.Option(False, "--no-initial", help="Do not report the starting state"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write recorded events to a JSON file"),
) -> None:
    """Report network changes until interrupted."""
    state = get_state(ctx)
    watch_cfg = state.config.get("watch", {})
    interval_seconds = interval if interval is not None else float(watch_cfg.get("interval_seconds", 5.0))
    if interval_seconds <= 0:
        raise typer.BadParameter("--interval must be greater than zero")
    emit_initial = bool(watch_cfg.get("emit_initial", True)) and not no_initial

    advisor = build_advisor(state)
    inbox: "queue.Queue[Tuple[str, Any]]" = queue.Queue()
    recorded: List[Dict[str, Any]] = []
    started_at = datetime.now()
    deadline = time.monotonic() + duration if duration is not None else None

    subscription = advisor.subscribe(
        on_change=lambda classification: inbox.put(("change", classification)),
        on_error=lambda exc: inbox.put(("error", exc)),
        interval_seconds=interval_seconds,
        emit_initial=emit_initial,
    )
    try:
        while count is None or len(recorded) < count:
            wait = _POLL_SLICE_SECONDS
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                wait = min(wait, remaining)
            try:
                kind, item = inbox.get(timeout=wait)
            except queue.Empty:
                continue

            if kind == "error":
                _emit_error(state, item)
                continue

            event = {"at": datetime.now().isoformat(timespec="seconds"), **item.to_dict()}
            recorded.append(event)
            _emit_change(state, event, item)
    except KeyboardInterrupt:
        pass
    finally:
        subscription.cancel()

    if output is not None:
        path = write_watch_log(output.expanduser(), recorded, started_at)
        if not state.json_output and not state.quiet:
            state.console.print(f"Recorded {len(recorded)} events to: {path}")
