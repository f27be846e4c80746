"""Run command for chatsync CLI.

Commands:
- run: Run the sync loop with the bot observers
"""

from __future__ import annotations

import signal
import sys
from pathlib import Path
from types import FrameType

import click
import httpx

from chatsync.client.api import APIError
from chatsync.client.cli.config import MESSAGE_LOG_FILE, require_session
from chatsync.client.engine import SyncEngine
from chatsync.client.observers import AutoJoiner, MessageLogger


@click.command()
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Where to append room messages (default: <config-dir>/messages.log).",
)
@click.option(
    "--auto-join/--no-auto-join",
    default=True,
    show_default=True,
    help="Accept invitations to invite-only rooms.",
)
@click.option("--full-state", is_flag=True, help="Request full room state on the first cycle.")
@click.option("--once", is_flag=True, help="Run a single sync cycle and exit.")
@click.pass_context
def run(
    ctx: click.Context,
    log_file: Path | None,
    auto_join: bool,
    full_state: bool,
    once: bool,
) -> None:
    """Run the sync loop.

    Messages are appended to the log file and, with --auto-join,
    invitations are accepted. Stop with Ctrl+C; the sync cursor is saved
    on exit.
    """
    config_dir: Path = ctx.obj["config_dir"]
    session, store = require_session(config_dir)

    engine = SyncEngine(session, credential_store=store)
    engine.register(MessageLogger(log_file or config_dir / MESSAGE_LOG_FILE, engine.directory))
    if auto_join:
        engine.register(AutoJoiner(engine))

    def handle_sigterm(signum: int, frame: FrameType | None) -> None:
        engine.stop()

    previous_handler = signal.signal(signal.SIGTERM, handle_sigterm)
    try:
        if once:
            with engine.session_scope():
                result = engine.sync_once(full_state=full_state)
            click.echo(
                f"Synced {result.total_events} events "
                f"({result.joined_rooms} joined, {result.invited_rooms} invited rooms)"
            )
        else:
            click.echo(f"Syncing with {session.server_url} (Ctrl+C to stop)")
            engine.run(full_state_first=full_state)
    except KeyboardInterrupt:
        click.echo("\nStopped.")
    except (APIError, httpx.TransportError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    finally:
        signal.signal(signal.SIGTERM, previous_handler)
        engine.close()
