"""Call-boundary commands: single calls and a JSON-lines server."""

from __future__ import annotations

import json
import sys
from typing import Any, Optional

import typer
from rich.markup import escape

from netmeter.commands.common import build_channel, get_state, print_json_payload
from netmeter.core.channel import MethodCall, serve_lines
from netmeter.core.constants import STATUS_ERROR, STATUS_SUCCESS


def call_command(
    ctx: typer.Context,
    method: str = typer.Argument(..., help="Method name, e.g. isActiveNetworkMetered"),
    arguments: Optional[str] = typer.Option(None, "--args", help="JSON-encoded call arguments"),
) -> None:
    """Make one call across the network channel and print the result."""
    state = get_state(ctx)

    parsed: Any = None
    if arguments is not None:
        try:
            parsed = json.loads(arguments)
        except json.JSONDecodeError as exc:
            raise typer.BadParameter(f"--args must be valid JSON: {exc}")

    channel = build_channel(state)
    result = channel.handle(MethodCall(method=method, arguments=parsed))

    if state.json_output or state.plain_output:
        print_json_payload(state, result.to_dict())
    elif result.status == STATUS_SUCCESS:
        state.console.print(f"{method} -> {json.dumps(result.value)}")
    elif result.status == STATUS_ERROR:
        state.console.print(f"{method} failed ({result.code}): {escape(result.message or '')}")
    else:
        state.console.print(f"{method}: not implemented")

    if result.status == STATUS_SUCCESS:
        return
    raise typer.Exit(code=1 if result.status == STATUS_ERROR else 3)


def serve_command(ctx: typer.Context) -> None:
    """Answer JSON-lines channel requests from stdin until EOF."""
    state = get_state(ctx)
    channel = build_channel(state)
    for response in serve_lines(channel, sys.stdin):
        typer.echo(response)
