"""Room commands for chatsync CLI.

Commands:
- rooms: List known rooms after a full-state sync
- send: Send a text message to a room
"""

from __future__ import annotations

import sys
from pathlib import Path

import click
import httpx

from chatsync.client.api import APIError
from chatsync.client.cli.config import require_session
from chatsync.client.directory import Room
from chatsync.client.engine import SyncEngine


@click.command()
@click.argument("name", required=False)
@click.option("--substring", is_flag=True, help="Match rooms whose name contains NAME.")
@click.pass_context
def rooms(ctx: click.Context, name: str | None, substring: bool) -> None:
    """List rooms, optionally filtered by NAME (case-insensitive).

    Performs one full-state sync without waiting for new events. The
    stored sync cursor is not changed.
    """
    session, _ = require_session(ctx.obj["config_dir"])
    session.timeout = 0

    with SyncEngine(session) as engine:
        try:
            engine.sync_once(full_state=True)
        except (APIError, httpx.TransportError) as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

        found: list[Room]
        if name is None:
            found = list(engine.directory.rooms())
        else:
            found = engine.directory.find_rooms_by_name(  # type: ignore[assignment]
                name, exact=not substring, full=True
            )

    if not found:
        click.echo("No rooms found.")
        return
    for room in found:
        click.echo(f"{room.room_id}\t{room.name or '-'}\t{len(room.members)} members")


@click.command()
@click.argument("room_id")
@click.argument("message")
@click.pass_context
def send(ctx: click.Context, room_id: str, message: str) -> None:
    """Send MESSAGE to the room ROOM_ID."""
    config_dir: Path = ctx.obj["config_dir"]
    session, _ = require_session(config_dir)

    with SyncEngine(session) as engine:
        try:
            event_id = engine.send_message(room_id, message)
        except (APIError, httpx.TransportError) as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    click.echo(f"Sent {event_id}")
