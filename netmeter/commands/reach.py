"""Reachability check command."""

from __future__ import annotations

from contextlib import nullcontext
from typing import Optional

import typer

from netmeter.commands.common import build_checker, get_state, print_json_payload, print_rows
from netmeter.utils.formatting import reachability_rows


def reach_command(
    ctx: typer.Context,
    url: Optional[str] = typer.Option(None, help="Connectivity check URL (default from config)"),
) -> None:
    """Check whether the internet is reachable through the active network."""
    state = get_state(ctx)
    checker = build_checker(state, url=url)

    status_ctx = (
        state.console.status(f"Checking {checker.url}...")
        if not (state.plain_output or state.json_output)
        else nullcontext()
    )
    with status_ctx:
        result = checker.check()

    if state.json_output:
        print_json_payload(state, result.to_dict())
    else:
        print_rows(state, "Reachability", reachability_rows(result))
        if not state.plain_output and result.captive_portal:
            state.console.print("Unexpected response: likely a captive portal")

    if not result.reachable:
        raise typer.Exit(code=1)
