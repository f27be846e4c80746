"""Command-line interface for chatsync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- login: Log in to a server and store the session
- run: Run the sync loop with the bot observers
- rooms: List known rooms after a full-state sync
- send: Send a text message to a room
"""

from __future__ import annotations

from pathlib import Path

import click

from chatsync.client.cli.config import (
    get_config_dir,
    get_credential_store,
    setup_logging,
)
from chatsync.client.cli.login import login
from chatsync.client.cli.rooms import rooms, send
from chatsync.client.cli.run import run


@click.group()
@click.version_option(package_name="chatsync")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    envvar="CHATSYNC_CONFIG_DIR",
    help="Configuration directory (default: ~/.chatsync).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, config_dir: Path | None, verbose: bool) -> None:
    """chatsync - incremental sync client for Matrix-style chat servers."""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_dir"] = config_dir or get_config_dir()


# Session commands
cli.add_command(login)
cli.add_command(run)

# Room commands
cli.add_command(rooms)
cli.add_command(send)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "cli",
    "main",
    "get_config_dir",
    "get_credential_store",
    "setup_logging",
]
