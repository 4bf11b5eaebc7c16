"""
Control commands for lights connected to the gateway.

Includes list, identify, toggle, colour and brightness.
"""

import click

from commands.helpers import gateway_errors, open_session, run_async, select_light, select_lights
from core.exceptions import InvalidArgument
from core.light import IDENTIFY_OPERATIONS, IDENTIFY_PACING_MS
from models.accessory import WHITE_SPECTRUM_PALETTE, Spectrum
from models.utils import format_light_line


@click.command(name='list')
@click.pass_obj
@gateway_errors
def list_lights_command(collaborators):
    """List the lights connected to the gateway."""
    async def _list():
        async with open_session(collaborators) as session:
            return [light.get_device_data() for light in session.get_tradfri_lights()]

    lights = run_async(_list())

    click.secho("Showing all IKEA Trådfri lightbulbs connected to the gateway:", fg='cyan', bold=True)
    if not lights:
        click.echo("  (none)")
    for data in sorted(lights, key=lambda d: (d['name'].lower(), d['deviceId'])):
        click.echo(f"  {format_light_line(data)}")


@click.command()
@click.argument('lights', nargs=-1)
@click.pass_obj
@gateway_errors
def identify_command(collaborators, lights):
    """Blink lights so you can tell which is which.

    Each light flashes red, then goes back to the state it had before.

    \b
    Examples:
      tradfri-control identify "Desk lamp" "#65537"
      tradfri-control identify
    """
    async def _identify():
        async with open_session(collaborators) as session:
            selected = select_lights(session, lights, "Select the lights to identify:")
            click.echo("Identification sequence sent.")
            outcomes = await session.execute_operations_multiple(
                selected, IDENTIFY_OPERATIONS, IDENTIFY_PACING_MS, revert=True
            )
            return [(light.name, outcome) for light, outcome in zip(selected, outcomes)]

    for name, outcome in run_async(_identify()):
        if outcome.ok:
            click.secho(f"✓ {name} (#{outcome.device_id}) identified", fg='green')
        else:
            click.secho(f"✗ {name} (#{outcome.device_id}): {outcome.error}", fg='red')


@click.command()
@click.argument('light', required=False)
@click.pass_obj
@gateway_errors
def toggle_command(collaborators, light):
    """Toggle a light on or off."""
    async def _toggle():
        async with open_session(collaborators) as session:
            target = select_light(session, light, "Select the light to toggle:")
            await target.toggle()
            return target.name

    name = run_async(_toggle())
    click.secho(f"✓ {name} toggled", fg='green')


def _prompt_colour(spectrum: Spectrum) -> str:
    if spectrum == Spectrum.RGB:
        return click.prompt("Enter the colour 6-digit HEX value", type=str)

    labels = {label.lower(): value for value, label in WHITE_SPECTRUM_PALETTE.items()}
    choice = click.prompt(
        "Select the colour for this light",
        type=click.Choice(sorted(labels), case_sensitive=False),
    )
    return labels[choice.lower()]


@click.command()
@click.argument('light', required=False)
@click.option('--colour', '-c', 'value', help='6-digit HEX value (rgb lights) or white/warm/yellow')
@click.pass_obj
@gateway_errors
def colour_command(collaborators, light, value):
    """Set a light's colour.

    \b
    Examples:
      tradfri-control colour "Desk lamp" -c FF8800
      tradfri-control colour "Hallway" -c warm
    """
    async def _colour():
        async with open_session(collaborators) as session:
            target = select_light(session, light, "Select the light for which you want to change the colour:")
            if target.spectrum == Spectrum.NONE:
                raise InvalidArgument(f"{target.name} does not support colours")
            colour = value or _prompt_colour(target.spectrum)

            # Palette names are accepted for white spectrum lights
            by_label = {label.lower(): hex_value for hex_value, label in WHITE_SPECTRUM_PALETTE.items()}
            if target.spectrum == Spectrum.WHITE:
                colour = by_label.get(colour.lower(), colour)

            await target.set_color(colour)
            return target.name, colour

    name, colour = run_async(_colour())
    click.secho(f"✓ {name} colour set to #{colour}", fg='green')


@click.command()
@click.argument('light', required=False)
@click.argument('brightness', type=click.IntRange(0, 100), required=False)
@click.pass_obj
@gateway_errors
def brightness_command(collaborators, light, brightness):
    """Set a light's brightness (0-100).

    \b
    Examples:
      tradfri-control brightness "Desk lamp" 40
    """
    async def _brightness():
        async with open_session(collaborators) as session:
            target = select_light(session, light, "Select the light for which you want to change the brightness:")
            value = brightness
            if value is None:
                value = click.prompt("Enter the brightness value (0-100)", type=click.IntRange(0, 100))
            await target.set_brightness(value)
            return target.name, value

    name, value = run_async(_brightness())
    click.secho(f"✓ {name} brightness set to {value}/100", fg='green')
