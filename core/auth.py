"""
Authentication module for Tradfri gateways.

Handles gateway discovery through the discovery collaborator, identity/PSK
serialisation, and credential storage in the local config file.
"""

import json
import logging
import os

from core.config import CONFIG_FILE, load_config, save_config
from core.exceptions import DiscoveryFailed, InvalidArgument
from core.protocol import DiscoverFunc
from models.types import DiscoveredGateway, GatewayIdentity

_LOGGER = logging.getLogger(__name__)

# Credential store key for the identity/PSK pair
IDENTITY_KEY = 'idpsk'


async def discover_gateway(discover: DiscoverFunc) -> DiscoveredGateway:
    """Find a gateway on the network.

    Args:
        discover: Discovery collaborator

    Returns:
        The discovered gateway, with at least one address

    Raises:
        DiscoveryFailed: If no gateway (or no usable address) was found
    """
    gateway = await discover()
    if gateway is None:
        raise DiscoveryFailed("Could not find a Tradfri gateway on the network")

    addresses = [address for address in gateway.get('addresses', []) if address]
    if not addresses:
        raise DiscoveryFailed(f"Gateway {gateway.get('name', 'unknown')} reported no address")

    _LOGGER.info("Discovered gateway %s at %s", gateway.get('name'), addresses[0])
    return {'name': gateway.get('name', 'Tradfri gateway'), 'addresses': addresses}


def serialize_identity(identity: GatewayIdentity) -> str:
    """Serialise an identity/PSK pair for a credential store."""
    return json.dumps({'identity': identity.identity, 'psk': identity.psk})


def deserialize_identity(raw: str) -> GatewayIdentity:
    """Parse an identity/PSK pair read from a credential store.

    Raises:
        InvalidArgument: If the stored value is not a valid identity
    """
    try:
        data = json.loads(raw)
    except (TypeError, json.JSONDecodeError) as e:
        raise InvalidArgument(f"Stored identity is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise InvalidArgument("Stored identity must be a JSON object")

    identity = data.get('identity')
    psk = data.get('psk')

    # Validate both values exist and are non-empty strings
    if identity and psk and isinstance(identity, str) and isinstance(psk, str):
        return GatewayIdentity(identity=identity, psk=psk)

    raise InvalidArgument("Stored identity is missing 'identity' or 'psk'")


class JsonCredentialStore:
    """Credential store backed by the 'credentials' section of the config file."""

    def __init__(self, config_file=None):
        self.config_file = config_file or CONFIG_FILE

    def get(self, key: str) -> str | None:
        credentials = load_config(self.config_file).get('credentials', {})
        value = credentials.get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        config = load_config(self.config_file)
        config.setdefault('credentials', {})[key] = value
        save_config(config, self.config_file)

        # Set secure file permissions (user read/write only)
        os.chmod(self.config_file, 0o600)


def load_identity(store) -> GatewayIdentity | None:
    """Load the stored identity/PSK pair, or None if nothing usable is stored."""
    raw = store.get(IDENTITY_KEY)
    if raw is None:
        return None
    try:
        return deserialize_identity(raw)
    except InvalidArgument as e:
        _LOGGER.warning("Ignoring stored identity: %s", e)
        return None


def save_identity(store, identity: GatewayIdentity) -> None:
    store.set(IDENTITY_KEY, serialize_identity(identity))
