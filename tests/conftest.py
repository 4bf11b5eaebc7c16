"""Pytest configuration and fixtures for Tradfri Control tests."""

import asyncio
from pathlib import Path

import pytest
import pytest_asyncio

from core.exceptions import AuthenticationFailed, DeviceCommandError
from core.protocol import ClientEvent
from core.session import GatewaySession
from models.accessory import Accessory, AccessoryType, LightState, Spectrum
from models.types import GatewayIdentity

GATEWAY_ADDRESS = '192.168.1.50'
SECURITY_CODE = 'ABCDEFGH12345678'
IDENTITY = GatewayIdentity(identity='tradfri_1700000000', psk='s3cr3tPsK')


class FakeGatewayClient:
    """In-memory protocol client recording every device transmission."""

    def __init__(self, address: str):
        self.address = address
        self.devices: list[Accessory] = []
        self.transmissions: list[tuple[float, str, int, dict]] = []
        self.calls: list[str] = []
        self.listeners = {event: [] for event in ClientEvent}
        self.failing_steps: dict[int, set[int]] = {}
        self.failing_updates: set[int] = set()
        self.closed = False
        self._step_counts: dict[int, int] = {}

    async def authenticate(self, security_code):
        self.calls.append('authenticate')
        if security_code != SECURITY_CODE:
            raise AuthenticationFailed("Security code rejected")
        return IDENTITY

    async def connect(self, identity, psk):
        self.calls.append('connect')
        if (identity, psk) != (IDENTITY.identity, IDENTITY.psk):
            raise AuthenticationFailed("Identity rejected")

    async def observe_devices(self):
        self.calls.append('observe_devices')
        for device in self.devices:
            self.emit(ClientEvent.DEVICE_UPDATED, device.clone())

    async def operate_light(self, accessory, operation, ack_required=False):
        device_id = accessory.instance_id
        step = self._step_counts.get(device_id, 0)
        self._step_counts[device_id] = step + 1
        await asyncio.sleep(0)
        if step in self.failing_steps.get(device_id, set()):
            raise DeviceCommandError(f"Gateway busy for {device_id}", device_id)
        self.transmissions.append(
            (asyncio.get_running_loop().time(), 'operate', device_id, operation.to_payload())
        )

    async def update_device(self, accessory):
        device_id = accessory.instance_id
        await asyncio.sleep(0)
        if device_id in self.failing_updates:
            raise OSError("Network unreachable")
        self.transmissions.append(
            (asyncio.get_running_loop().time(), 'update', device_id,
             accessory.light_list[0].to_operation().to_payload())
        )

    def add_listener(self, event, callback):
        self.listeners[event].append(callback)
        return lambda: self.listeners[event].remove(callback)

    def emit(self, event, *args):
        for callback in list(self.listeners[event]):
            callback(*args)

    async def close(self):
        self.closed = True

    def payloads(self, device_id=None):
        """Return (kind, payload) pairs in transmission order."""
        return [
            (kind, payload) for _, kind, sent_id, payload in self.transmissions
            if device_id is None or sent_id == device_id
        ]


def build_accessory(instance_id, name='Light', spectrum=Spectrum.RGB, on=True,
                    brightness=80, color='f1e0b5', accessory_type=AccessoryType.LIGHTBULB):
    light_list = []
    if accessory_type == AccessoryType.LIGHTBULB:
        light_list.append(LightState(spectrum=spectrum, on=on, brightness=brightness, color=color))
    return Accessory(instance_id=instance_id, name=name, type=accessory_type, light_list=light_list)


@pytest.fixture
def project_root():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def make_accessory():
    """Return a factory building accessories."""
    return build_accessory


@pytest.fixture
def fake_client():
    client = FakeGatewayClient(GATEWAY_ADDRESS)
    client.devices = [
        build_accessory(65537, 'Desk lamp', Spectrum.RGB),
        build_accessory(65538, 'Hallway', Spectrum.WHITE, on=False, brightness=30),
        build_accessory(65539, 'Remote', accessory_type=AccessoryType.REMOTE),
    ]
    return client


@pytest.fixture
def session(fake_client):
    """An unauthenticated session using the fake client."""
    return GatewaySession(GATEWAY_ADDRESS, lambda address: fake_client)


@pytest_asyncio.fixture
async def observing_session(session):
    """An authenticated session that has enumerated the fake devices."""
    await session.authenticate_with_identity(IDENTITY)
    await session.start_receiving_device_updates()
    return session
