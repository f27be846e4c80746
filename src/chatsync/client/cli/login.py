"""Login command for chatsync CLI.

Commands:
- login: Log in to a server and store the session
"""

from __future__ import annotations

import sys
from pathlib import Path

import click
import httpx

from chatsync.client.api import DEFAULT_DEVICE_NAME, AuthenticationError
from chatsync.client.cli.config import get_credential_store
from chatsync.client.credentials import CredentialStoreError
from chatsync.client.engine import SyncEngine
from chatsync.client.session import Session
from chatsync.core.config import ConfigurationError


@click.command()
@click.option(
    "--server",
    required=True,
    help="Server URL (e.g., https://matrix.example.org).",
)
@click.option("--user", required=True, help="User name or full user id.")
@click.option(
    "--password",
    prompt=True,
    hide_input=True,
    help="Account password (prompted if omitted).",
)
@click.option(
    "--device-name",
    default=DEFAULT_DEVICE_NAME,
    show_default=True,
    help="Display name of the new device.",
)
@click.option(
    "--timeout",
    type=float,
    default=30.0,
    show_default=True,
    help="Long-poll timeout in seconds.",
)
@click.pass_context
def login(
    ctx: click.Context,
    server: str,
    user: str,
    password: str,
    device_name: str,
    timeout: float,
) -> None:
    """Log in to a server and store the session.

    The access token, server and timeout are saved in the configuration
    directory; the sync cursor starts from scratch.
    """
    config_dir: Path = ctx.obj["config_dir"]
    store = get_credential_store(config_dir)

    try:
        session = Session(server_url=server, timeout=timeout)
        with SyncEngine(session) as engine:
            response = engine.login(user, password, device_name=device_name)
        store.save(session)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except AuthenticationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except httpx.ConnectError:
        click.echo(f"Error: Could not connect to server at {server}", err=True)
        sys.exit(1)
    except httpx.RequestError as e:
        click.echo(f"Error: Request failed: {e}", err=True)
        sys.exit(1)
    except CredentialStoreError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Logged in as {response.user_id or user}")
    click.echo(f"Session saved to {store.path}")
