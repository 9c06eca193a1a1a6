"""Configuration commands."""

from __future__ import annotations

import typer

from netmeter.commands.common import get_state, print_json_payload
from netmeter.core.config import default_config, save_config

app = typer.Typer(help="Inspect and initialize configuration")


@app.command("show")
def show_command(ctx: typer.Context) -> None:
    """Print the effective configuration."""
    state = get_state(ctx)
    if not state.json_output and not state.plain_output:
        state.console.print(f"Config file: {state.config_path}")
    print_json_payload(state, state.config)


@app.command("init")
def init_command(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config file"),
) -> None:
    """Write the default configuration to the config file path."""
    state = get_state(ctx)
    if state.config_path.exists() and not force:
        typer.echo(f"Config file already exists: {state.config_path} (use --force to overwrite)")
        raise typer.Exit(code=1)

    path = save_config(default_config(), state.config_path)
    if state.json_output:
        print_json_payload(state, {"status": "written", "path": str(path)})
    else:
        typer.echo(f"Wrote default config to: {path}")
