"""Shared helpers for the command modules.

Opening a gateway session for one command, selecting lights, and turning
gateway errors into status lines.
"""

import asyncio
import functools
from contextlib import asynccontextmanager

import click

from core.auth import load_identity
from core.config import Collaborators, load_config, load_gateway_address
from core.exceptions import (
    AuthenticationFailed,
    DiscoveryFailed,
    InvalidArgument,
    NotAuthenticated,
    NotFound,
    SessionError,
    TradfriError,
)
from core.light import TradfriLight
from core.session import GatewaySession
from models.utils import format_light_line, parse_selection, similarity_score

NOT_CONNECTED_MESSAGE = "You are not connected/authenticated to an IKEA Trådfri Gateway."
AUTH_FAILED_MESSAGE = "Could not authenticate with the given parameters."
NOT_FOUND_MESSAGE = "The selected light couldn't be found."

# Minimum similarity score for a light name to match a query
NAME_MATCH_THRESHOLD = 60


def run_async(coro):
    """Run a coroutine to completion from a synchronous click command."""
    return asyncio.run(coro)


def gateway_errors(func):
    """Print gateway errors as status lines instead of tracebacks."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except NotAuthenticated:
            click.secho(f"✗ {NOT_CONNECTED_MESSAGE}", fg='red')
            click.echo('Run "discover" and "connect" first.')
        except AuthenticationFailed:
            click.secho(f"✗ {AUTH_FAILED_MESSAGE}", fg='red')
            click.echo('Check the security code or identity/PSK and run "connect" again.')
        except NotFound:
            click.secho(f"✗ {NOT_FOUND_MESSAGE}", fg='red')
        except DiscoveryFailed:
            click.secho("✗ Could not find an IKEA Trådfri gateway on the network.", fg='red')
        except (InvalidArgument, SessionError) as e:
            click.secho(f"✗ {e}", fg='red')
        except TradfriError as e:
            click.secho(f"✗ Gateway error: {e}", fg='red')
    return wrapper


def require_client_factory(collaborators: Collaborators):
    if collaborators.client_factory is None:
        raise click.ClickException(
            "No gateway client configured. Set 'client_factory' in "
            f"{collaborators.config_file} or the TRADFRI_CLIENT_FACTORY environment variable."
        )
    return collaborators.client_factory


@asynccontextmanager
async def open_session(collaborators: Collaborators):
    """Connect to the stored gateway with the stored identity and observe devices.

    Yields:
        An observing GatewaySession, closed on exit
    """
    client_factory = require_client_factory(collaborators)
    address = load_gateway_address(load_config(collaborators.config_file))
    identity = load_identity(collaborators.store)
    if address is None or identity is None:
        raise NotAuthenticated("No stored gateway address or identity")

    session = GatewaySession(address, client_factory)
    try:
        await session.authenticate_with_identity(identity)
        await session.start_receiving_device_updates()
        yield session
    finally:
        await session.close()


def _sorted_lights(session: GatewaySession) -> list[TradfriLight]:
    return sorted(session.get_tradfri_lights(), key=lambda light: (light.name.lower(), light.device_id))


def find_light(session: GatewaySession, query: str) -> TradfriLight:
    """Find a light by '#id', plain id or (fuzzy) name.

    Raises:
        NotFound: If nothing matches
    """
    text = query.strip().lstrip('#')
    if text.isdigit():
        light = session.get_light_from_device_id(int(text))
        if light is not None:
            return light

    best_score, best_light = 0, None
    for light in _sorted_lights(session):
        score = similarity_score(query, light.name)
        if score > best_score:
            best_score, best_light = score, light

    if best_light is None or best_score < NAME_MATCH_THRESHOLD:
        raise NotFound(f"No light matches {query!r}")
    return best_light


def prompt_for_lights(session: GatewaySession, message: str, multiple: bool = False) -> list[TradfriLight]:
    """Show a numbered menu of lights and return the user's selection."""
    lights = _sorted_lights(session)
    if not lights:
        raise NotFound("No lights are connected to the gateway")

    click.echo()
    click.secho(message, fg='cyan', bold=True)
    for i, light in enumerate(lights, 1):
        click.echo(f"  {click.style(str(i), fg='green', bold=True)}. {format_light_line(light.get_device_data())}")
    click.echo()

    hint = "e.g. 1,3-4" if multiple else f"1-{len(lights)}"
    choice = click.prompt(f"Select light{'s' if multiple else ''} [{hint}]", type=str, default='1')
    indexes = parse_selection(choice, len(lights))
    if not multiple and len(indexes) > 1:
        raise InvalidArgument("Select a single light")

    # Re-resolve through the registry, entries may have been replaced meanwhile
    return session.get_lights_from_device_ids([lights[i].device_id for i in indexes])


def select_light(session: GatewaySession, query: str | None, message: str) -> TradfriLight:
    if query:
        return find_light(session, query)
    return prompt_for_lights(session, message)[0]


def select_lights(session: GatewaySession, queries: tuple[str, ...], message: str) -> list[TradfriLight]:
    if queries:
        return [find_light(session, query) for query in queries]
    return prompt_for_lights(session, message, multiple=True)
