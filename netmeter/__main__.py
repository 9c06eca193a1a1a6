"""Entry point for netmeter."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from netmeter import __version__
from netmeter.commands import config as config_commands
from netmeter.commands.channel import call_command, serve_command
from netmeter.commands.reach import reach_command
from netmeter.commands.status import check_command, metered_command, status_command
from netmeter.commands.watch import watch_command
from netmeter.core.config import ConfigError, default_config_path, load_config
from netmeter.core.state import CLIState

app = typer.Typer(
    add_completion=False,
    help="Network metering advisor: is the active connection safe for costly transfers?",
    invoke_without_command=True,
)


def _configure_logging(console: Console, verbose: bool) -> None:
    handler = RichHandler(
        console=console,
        show_time=False,
        show_path=False,
    )
    logger = logging.getLogger("netmeter")
    logger.handlers = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False


@app.callback()
def main_callback(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Output JSON where available"),
    plain_output: bool = typer.Option(
        False,
        "--plain",
        help="Output plain text (no rich formatting/tables)",
    ),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to config file"),
    probe: Optional[str] = typer.Option(None, "--probe", help="Probe backend: nmcli|file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Quiet output"),
    version: bool = typer.Option(False, "--version", help="Show version and exit"),
) -> None:
    """Initialize global CLI state."""
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if json_output and plain_output:
        typer.echo("Options --json and --plain are mutually exclusive.")
        raise typer.Exit(code=2)

    cfg_path = (config or default_config_path()).expanduser().resolve()
    try:
        cfg = load_config(cfg_path)
    except ConfigError as exc:
        typer.echo(f"Config error: {exc}")
        raise typer.Exit(code=2)

    log_console = Console(stderr=True, quiet=quiet)
    _configure_logging(log_console, verbose=verbose)
    console = Console(
        quiet=quiet,
        no_color=plain_output,
        log_time=False,
        log_path=False,
    )
    ctx.obj = CLIState(
        json_output=(json_output and not plain_output),
        plain_output=plain_output,
        verbose=verbose,
        quiet=quiet,
        config_path=cfg_path,
        config=cfg,
        console=console,
        probe_backend=probe,
        log_console=log_console,
    )

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


# Top-level commands
app.command("status")(status_command)
app.command("metered")(metered_command)
app.command("check")(check_command)
app.command("watch")(watch_command)
app.command("call")(call_command)
app.command("serve")(serve_command)
app.command("reach")(reach_command)
app.add_typer(config_commands.app, name="config")


def main() -> None:
    """Console script entrypoint."""
    app()


if __name__ == "__main__":
    main()
