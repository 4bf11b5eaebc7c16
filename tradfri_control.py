#!/usr/bin/env python3
"""
Tradfri Control CLI
Discover an IKEA Trådfri gateway, connect to it, and control its lights.
"""

import logging

import click

from commands.control import (
    brightness_command,
    colour_command,
    identify_command,
    list_lights_command,
    toggle_command,
)
from commands.setup import ColouredGroup, connect_command, discover_command, help_command
from core.auth import JsonCredentialStore
from core.config import CONFIG_FILE, load_collaborators, load_config


@click.group(
    cls=ColouredGroup,
    context_settings={
        'help_option_names': ['-h', '--help'],
        'max_content_width': 999
    }
)
@click.version_option(version='0.1.0', prog_name='Tradfri Control')
@click.option('--verbose', '-v', is_flag=True, help='Log gateway traffic')
@click.pass_context
def cli(ctx, verbose):
    """Tradfri Control CLI - Control the lights of an IKEA Trådfri gateway.

Run 'discover' to find your gateway, then 'connect' to authenticate.
Credentials are stored in ~/.tradfri_control/config.json.

Use 'help' for a quick reference of all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    if ctx.obj is None:
        ctx.obj = load_collaborators(
            load_config(CONFIG_FILE), store=JsonCredentialStore(CONFIG_FILE), config_file=CONFIG_FILE
        )


cli.add_command(help_command)
cli.add_command(discover_command, name='discover')
cli.add_command(connect_command, name='connect')
cli.add_command(list_lights_command)  # Uses 'list' name defined in decorator
cli.add_command(identify_command, name='identify')
cli.add_command(toggle_command, name='toggle')
cli.add_command(colour_command, name='colour')
cli.add_command(brightness_command, name='brightness')


if __name__ == '__main__':
    cli()
