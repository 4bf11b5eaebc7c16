"""
Setup commands for Tradfri Control CLI.

Contains the custom Click group class for coloured help output and typo
suggestions, plus the help, discover and connect commands.
"""

from dataclasses import dataclass

import click

from commands.helpers import gateway_errors, require_client_factory, run_async
from core.auth import discover_gateway, load_identity, save_identity
from core.config import load_config, load_gateway_address, save_gateway
from core.exceptions import NotAuthenticated
from core.session import GatewaySession
from models.types import GatewayIdentity
from models.utils import find_similar_strings


@dataclass(frozen=True)
class CommandSection:
    """Represents a section in the help command."""
    name: str
    commands: list[tuple[str, str]]


class ColouredGroup(click.Group):
    """Custom Group class that adds colour to help output and suggests similar commands."""

    def resolve_command(self, ctx, args):
        """Resolve command with suggestions for typos."""
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError as e:
            if 'No such command' in str(e):
                cmd_name = args[0] if args else ''
                visible = [
                    name for name in self.list_commands(ctx)
                    if not self.get_command(ctx, name).hidden
                ]
                suggestions = find_similar_strings(cmd_name, visible, limit=3) if cmd_name else []

                if suggestions:
                    error_msg = f"Error: No such command '{cmd_name}'.\n\n"
                    error_msg += click.style("Did you mean one of these?\n", fg='yellow')
                    for suggestion in suggestions:
                        error_msg += click.style(f"  • {suggestion}\n", fg='green')
                    raise click.UsageError(error_msg)
            raise

    def format_commands(self, ctx, formatter):
        """Format commands with colour."""
        commands = []
        for subcommand in self.list_commands(ctx):
            cmd = self.get_command(ctx, subcommand)
            if cmd is None or cmd.hidden:
                continue
            commands.append((subcommand, cmd.get_short_help_str(limit=500)))

        if commands:
            formatter.write_paragraph()
            formatter.write_text(click.style('Commands:', fg='yellow', bold=True))

            max_len = max(max(len(cmd[0]) for cmd in commands), 12)

            with formatter.indentation():
                for subcommand, help_text in commands:
                    formatter.write_text(
                        click.style(subcommand.ljust(max_len), fg='green') + '  ' +
                        click.style(help_text, fg='white', dim=True)
                    )


@click.command(name='help')
def help_command():
    """Display help and common commands."""
    click.secho("\n=== Tradfri Control - Quick Reference ===", fg='cyan', bold=True)
    click.echo()

    COMMAND_SECTIONS = [
        CommandSection(
            name="GATEWAY",
            commands=[
                ("discover", "Find a gateway on the network and remember it"),
                ("connect", "Authenticate (security code, new or stored identity/PSK)"),
            ]
        ),
        CommandSection(
            name="LIGHTS",
            commands=[
                ("list", "List lights connected to the gateway"),
                ("identify [light...]", "Blink lights, then restore their state"),
                ("toggle [light]", "Toggle a light on or off"),
                ("colour [light] [-c value]", "Set a light's colour"),
                ("brightness [light] [0-100]", "Set a light's brightness"),
            ]
        ),
    ]

    for section in COMMAND_SECTIONS:
        click.secho(section.name, fg='yellow', bold=True)
        for cmd, desc in section.commands:
            click.echo("  ", nl=False)
            click.secho(cmd, fg='green', nl=False)
            click.echo(" " * (30 - len(cmd)) + "  " + desc)
        click.echo()

    click.secho("Lights can be given by name or as #id; omit them to pick from a menu.", fg='cyan')
    click.echo()


@click.command()
@click.pass_obj
@gateway_errors
def discover_command(collaborators):
    """Discover an IKEA Trådfri gateway on your network."""
    if collaborators.discover is None:
        raise click.ClickException(
            "No discovery service configured. Set 'discovery' in "
            f"{collaborators.config_file} or the TRADFRI_DISCOVERY environment variable."
        )

    gateway = run_async(discover_gateway(collaborators.discover))
    address = gateway['addresses'][0]
    save_gateway(gateway['name'], address, collaborators.config_file)

    click.secho(f"✓ Found IKEA Trådfri Gateway ({gateway['name']}) at address {address}.", fg='green')
    click.echo('Run "connect" to connect to this gateway.')


async def _authenticate(collaborators, address: str, method: str,
                        security_code: str | None, identity: GatewayIdentity | None):
    """Authenticate a fresh session and return the identity to store and the light count."""
    session = GatewaySession(address, collaborators.client_factory)
    try:
        if method == 'code':
            identity = await session.authenticate_with_security_code(security_code)
        else:
            await session.authenticate_with_identity(identity)
        await session.start_receiving_device_updates()
        return identity, len(session.get_tradfri_lights())
    finally:
        await session.close()


@click.command()
@click.option('--method', '-m', type=click.Choice(['code', 'new', 'stored']),
              help='Authenticate with a security code, a new identity/PSK, or the stored identity/PSK')
@click.option('--security-code', '-s', help='Security code printed on the gateway')
@click.option('--identity', '-i', help='Identity to authenticate with (method "new")')
@click.option('--psk', '-p', help='PSK to authenticate with (method "new")')
@click.pass_obj
@gateway_errors
def connect_command(collaborators, method, security_code, identity, psk):
    """Connect to the previously discovered gateway.

    \b
    Examples:
      tradfri-control connect -m code -s ABCDEFGH12345678
      tradfri-control connect -m stored
    """
    require_client_factory(collaborators)

    address = load_gateway_address(load_config(collaborators.config_file))
    if address is None:
        click.echo("No IKEA Trådfri Gateway previously discovered.")
        click.echo('Run the "discover" command first.')
        return

    stored_identity = load_identity(collaborators.store)

    if method is None:
        choices = ['code', 'new'] + (['stored'] if stored_identity else [])
        method = click.prompt(
            "How do you want to authenticate with this gateway?",
            type=click.Choice(choices),
            default='stored' if stored_identity else 'code',
        )

    gateway_identity = None
    if method == 'code':
        security_code = security_code or click.prompt(
            "Enter the security code found on the back of the device", type=str
        )
    elif method == 'new':
        identity = identity or click.prompt("Enter the identity string to use for authentication", type=str)
        psk = psk or click.prompt("Enter the PSK string to use for authentication", type=str, hide_input=True)
        gateway_identity = GatewayIdentity(identity=identity, psk=psk)
    else:
        if stored_identity is None:
            raise NotAuthenticated("No stored identity")
        gateway_identity = stored_identity

    gateway_identity, light_count = run_async(
        _authenticate(collaborators, address, method, security_code, gateway_identity)
    )

    if method != 'stored':
        save_identity(collaborators.store, gateway_identity)

    click.secho("✓ Authenticated and connected successfully.", fg='green')
    click.echo(f"  {light_count} light{'s' if light_count != 1 else ''} connected to the gateway.")
