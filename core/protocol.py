"""Collaborator contracts used by the gateway session.

The session does not speak the gateway's wire protocol itself. A protocol
client implementing GatewayClient provides the secure channel, and discovery
and credential storage are supplied by the caller.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Protocol

from models.accessory import Accessory, LightOperation
from models.types import DiscoveredGateway, GatewayIdentity


class ClientEvent(str, Enum):
    """Events emitted by a protocol client."""
    DEVICE_UPDATED = 'device updated'
    CONNECTION_LOST = 'connection lost'


class GatewayClient(Protocol):
    """Secure channel to a single gateway.

    Implementations raise AuthenticationFailed when credentials are rejected
    and DeviceCommandError when a device write fails.
    """

    async def authenticate(self, security_code: str) -> GatewayIdentity:
        """Exchange the printed security code for an identity/PSK pair."""
        ...

    async def connect(self, identity: str, psk: str) -> None:
        ...

    async def observe_devices(self) -> None:
        """Start emitting DEVICE_UPDATED, once for every known device first."""
        ...

    async def operate_light(
        self, accessory: Accessory, operation: LightOperation, ack_required: bool = False
    ) -> None:
        ...

    async def update_device(self, accessory: Accessory) -> None:
        """Send the accessory's full in-memory state to the gateway."""
        ...

    def add_listener(self, event: ClientEvent, callback: Callable[..., Any]) -> Callable[[], None]:
        """Register a callback and return a function that removes it."""
        ...

    async def close(self) -> None:
        ...


class CredentialStore(Protocol):
    """Key/value storage for serialised credentials."""

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...


ClientFactory = Callable[[str], GatewayClient]
DiscoverFunc = Callable[[], Awaitable[DiscoveredGateway | None]]
