"""One-shot network status commands."""

from __future__ import annotations

from typing import Any, Dict, Optional

import typer
from rich.markup import escape

from netmeter.commands.common import (
    build_advisor,
    get_state,
    print_json_payload,
    print_rows,
    report_probe_error,
)
from netmeter.core.models import NetworkClassification
from netmeter.core.probe import ProbeUnavailable
from netmeter.core.state import CLIState
from netmeter.utils.formatting import classification_rows, describe, format_bool


def _query(state: CLIState) -> NetworkClassification:
    advisor = build_advisor(state)
    try:
        return advisor.query_metered_status()
    except ProbeUnavailable as exc:
        report_probe_error(state, exc)
        raise typer.Exit(code=1)


def status_command(ctx: typer.Context) -> None:
    """Show the active network classification."""
    state = get_state(ctx)
    classification = _query(state)

    if state.json_output:
        print_json_payload(state, classification.to_dict())
        return

    print_rows(state, "Active network", classification_rows(classification))
    if not state.plain_output:
        state.console.print(describe(classification))


def metered_command(ctx: typer.Context) -> None:
    """Print whether the active network is metered (true/false)."""
    state = get_state(ctx)
    classification = _query(state)

    if state.json_output:
        print_json_payload(state, {"metered": classification.metered})
        return
    typer.echo(format_bool(classification.metered))


def _decision(classification: NetworkClassification) -> Dict[str, Any]:
    if not classification.connected:
        reason = "offline"
    elif classification.metered:
        reason = "metered"
    else:
        reason = "unmetered"
    return {
        "proceed": classification.unmetered,
        "reason": reason,
        "network": classification.to_dict(),
    }


def check_command(
    ctx: typer.Context,
    on_probe_error: Optional[str] = typer.Option(
        None,
        "--on-probe-error",
        help="Probe failure policy: metered|error (default from config)",
    ),
) -> None:
    """Exit 0 when costly transfers may proceed, 1 when they should wait."""
    state = get_state(ctx)
    policy = on_probe_error or state.config.get("policy", {}).get("on_probe_unavailable", "metered")
    if policy not in {"metered", "error"}:
        raise typer.BadParameter("--on-probe-error must be one of: metered, error")

    advisor = build_advisor(state)
    try:
        decision = _decision(advisor.query_metered_status())
    except ProbeUnavailable as exc:
        if policy == "error":
            report_probe_error(state, exc)
            raise typer.Exit(code=3)
        decision = {
            "proceed": False,
            "reason": "probe_unavailable",
            "message": str(exc),
            "network": None,
        }

    if state.json_output:
        print_json_payload(state, decision)
    elif state.plain_output:
        typer.echo(f"proceed\t{format_bool(decision['proceed'])}")
        typer.echo(f"reason\t{decision['reason']}")
    elif decision["proceed"]:
        state.console.print("OK to proceed: network is unmetered")
    elif decision["reason"] == "probe_unavailable":
        state.console.print(f"Hold off: network probe unavailable ({escape(decision['message'])})")
    else:
        state.console.print(f"Hold off: network is {decision['reason']}")

    raise typer.Exit(code=0 if decision["proceed"] else 1)
