"""Tests for the command line surface, using an in-memory gateway client."""

from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from conftest import GATEWAY_ADDRESS, IDENTITY, SECURITY_CODE
from core.auth import JsonCredentialStore, load_identity, save_identity
from core.config import Collaborators, load_config, load_gateway_address, save_gateway
from models.accessory import Spectrum
from tradfri_control import cli


@pytest.fixture
def config_file(tmp_path):
    return tmp_path / 'config.json'


@pytest.fixture
def collaborators(fake_client, config_file):
    async def discover():
        return {'name': 'gw-b072bf257a41', 'addresses': [GATEWAY_ADDRESS]}

    return Collaborators(
        client_factory=lambda address: fake_client,
        discover=discover,
        store=JsonCredentialStore(config_file),
        config_file=config_file,
    )


@pytest.fixture
def connected(collaborators, config_file):
    """Collaborators with a stored gateway address and identity."""
    save_gateway('gw-b072bf257a41', GATEWAY_ADDRESS, config_file)
    save_identity(collaborators.store, IDENTITY)
    return collaborators


def invoke(collaborators, args, **kwargs):
    return CliRunner().invoke(cli, args, obj=collaborators, **kwargs)


class TestSetupCommands:
    """Tests for discover and connect."""

    def test_discover_saves_gateway(self, collaborators, config_file):
        result = invoke(collaborators, ['discover'])

        assert result.exit_code == 0
        assert f"at address {GATEWAY_ADDRESS}" in result.output
        assert load_gateway_address(load_config(config_file)) == GATEWAY_ADDRESS

    def test_discover_nothing_found(self, collaborators):
        async def discover():
            return None

        collaborators.discover = discover
        result = invoke(collaborators, ['discover'])

        assert "Could not find an IKEA Trådfri gateway" in result.output

    def test_connect_without_discovery(self, collaborators):
        result = invoke(collaborators, ['connect', '-m', 'code', '-s', SECURITY_CODE])
        assert 'Run the "discover" command first.' in result.output

    def test_connect_with_security_code_stores_identity(self, collaborators, config_file, fake_client):
        save_gateway('gw', GATEWAY_ADDRESS, config_file)

        result = invoke(collaborators, ['connect', '-m', 'code', '-s', SECURITY_CODE])

        assert result.exit_code == 0
        assert "✓ Authenticated and connected successfully." in result.output
        assert "2 lights connected" in result.output
        assert load_identity(collaborators.store) == IDENTITY
        assert fake_client.closed is True

    def test_connect_with_wrong_code(self, collaborators, config_file):
        save_gateway('gw', GATEWAY_ADDRESS, config_file)

        result = invoke(collaborators, ['connect', '-m', 'code', '-s', 'WRONG'])

        assert "Could not authenticate with the given parameters." in result.output
        assert load_identity(collaborators.store) is None

    def test_connect_with_stored_identity(self, connected):
        result = invoke(connected, ['connect', '-m', 'stored'])
        assert "✓ Authenticated and connected successfully." in result.output

    def test_connect_stored_without_identity(self, collaborators, config_file):
        save_gateway('gw', GATEWAY_ADDRESS, config_file)
        result = invoke(collaborators, ['connect', '-m', 'stored'])
        assert "You are not connected/authenticated" in result.output

    def test_missing_client_factory(self, collaborators, config_file):
        save_gateway('gw', GATEWAY_ADDRESS, config_file)
        collaborators.client_factory = None

        result = invoke(collaborators, ['connect', '-m', 'stored'])

        assert result.exit_code != 0
        assert "No gateway client configured" in result.output


class TestControlCommands:
    """Tests for the light control commands."""

    def test_not_connected(self, collaborators):
        result = invoke(collaborators, ['list'])
        assert "✗ You are not connected/authenticated to an IKEA Trådfri Gateway." in result.output

    def test_list(self, connected):
        result = invoke(connected, ['list'])

        assert result.exit_code == 0
        assert "Desk lamp (#65537) - rgb" in result.output
        assert "Hallway (#65538) - white" in result.output
        assert "Remote" not in result.output

    def test_toggle_by_name(self, connected, fake_client):
        result = invoke(connected, ['toggle', 'Desk lamp'])

        assert "✓ Desk lamp toggled" in result.output
        assert fake_client.payloads() == [('operate', {'onOff': False})]

    def test_toggle_from_menu(self, connected, fake_client):
        # Menu is sorted by name: 1. Desk lamp, 2. Hallway
        result = invoke(connected, ['toggle'], input='2\n')

        assert "✓ Hallway toggled" in result.output
        assert fake_client.payloads(65538) == [('operate', {'onOff': True})]

    def test_unknown_light(self, connected, fake_client):
        result = invoke(connected, ['toggle', 'Garage'])

        assert "✗ The selected light couldn't be found." in result.output
        assert fake_client.transmissions == []

    def test_brightness_by_id(self, connected, fake_client):
        result = invoke(connected, ['brightness', '#65538', '40'])

        assert "✓ Hallway brightness set to 40/100" in result.output
        assert fake_client.payloads() == [('operate', {'dimmer': 40})]

    def test_brightness_out_of_range(self, connected, fake_client):
        result = invoke(connected, ['brightness', 'Hallway', '140'])

        assert result.exit_code != 0
        assert fake_client.transmissions == []

    def test_colour_white_palette_name(self, connected, fake_client):
        result = invoke(connected, ['colour', 'Hallway', '-c', 'warm'])

        assert "✓ Hallway colour set to #f1e0b5" in result.output
        assert fake_client.payloads() == [('operate', {'color': 'f1e0b5'})]

    def test_colour_on_light_without_colour_support(self, connected, fake_client, make_accessory):
        fake_client.devices.append(make_accessory(65540, 'Porch', Spectrum.NONE))

        result = invoke(connected, ['colour', 'Porch'])

        assert "✗ Porch does not support colours" in result.output
        assert "Select the colour" not in result.output
        assert fake_client.transmissions == []

    def test_colour_rejected(self, connected, fake_client):
        result = invoke(connected, ['colour', 'Desk lamp', '-c', 'red'])

        assert "✗" in result.output
        assert fake_client.transmissions == []

    def test_identify(self, connected, fake_client):
        with patch('core.session.delay', new_callable=AsyncMock):
            result = invoke(connected, ['identify', 'Desk lamp', '#65538'])

        assert "Identification sequence sent." in result.output
        assert "✓ Desk lamp (#65537) identified" in result.output
        assert "✓ Hallway (#65538) identified" in result.output
        assert len(fake_client.payloads(65537)) == 7
        assert fake_client.payloads(65538)[-1] == (
            'update', {'onOff': False, 'color': 'f1e0b5', 'dimmer': 30}
        )

    def test_identify_reports_failed_light(self, connected, fake_client):
        fake_client.failing_steps[65537] = {0}

        with patch('core.session.delay', new_callable=AsyncMock):
            result = invoke(connected, ['identify', 'Desk lamp', 'Hallway'])

        assert "✗ Desk lamp (#65537)" in result.output
        assert "✓ Hallway (#65538) identified" in result.output


class TestHelp:
    """Tests for help output and typo suggestions."""

    def test_help_command(self, collaborators):
        result = invoke(collaborators, ['help'])
        assert "Tradfri Control - Quick Reference" in result.output

    def test_typo_suggestion(self, collaborators):
        result = invoke(collaborators, ['togle'])

        assert result.exit_code != 0
        assert "toggle" in result.output
