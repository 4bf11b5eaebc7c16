"""Configuration management.

This module handles:
- Loading/saving the configuration file
- The stored gateway address
- Loading the protocol client and discovery collaborators from import paths
"""

import importlib
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from core.exceptions import InvalidArgument

# Configuration file path
CONFIG_FILE = Path.home() / '.tradfri_control' / 'config.json'

# Environment variables overriding the collaborator import paths
CLIENT_FACTORY_ENV = 'TRADFRI_CLIENT_FACTORY'
DISCOVERY_ENV = 'TRADFRI_DISCOVERY'


def load_config(config_file: Path | None = None) -> dict:
    """Load configuration from the local file.

    Returns:
        Config dict, empty if the file doesn't exist
    """
    config_file = config_file or CONFIG_FILE
    if config_file.exists():
        with open(config_file, 'r') as f:
            return json.load(f)
    return {}


def save_config(config: dict, config_file: Path | None = None):
    """Save configuration to file.

    Args:
        config: Configuration dict to save
    """
    config_file = config_file or CONFIG_FILE

    # Create config directory if it doesn't exist
    config_file.parent.mkdir(parents=True, exist_ok=True)

    with open(config_file, 'w') as f:
        json.dump(config, f, indent=2)


def load_gateway_address(config: dict) -> str | None:
    """Return the stored gateway address, if any."""
    address = config.get('gateway', {}).get('address')
    return address if isinstance(address, str) and address else None


def save_gateway(name: str, address: str, config_file: Path | None = None):
    """Remember the gateway found by discovery."""
    config = load_config(config_file)
    config['gateway'] = {'name': name, 'address': address}
    save_config(config, config_file)


def import_object(path: str) -> Any:
    """Import an object from a 'module:attribute' path."""
    module_name, _, attribute = path.partition(':')
    if not module_name or not attribute:
        raise InvalidArgument(f"Expected 'module:attribute', got {path!r}")
    module = importlib.import_module(module_name)
    try:
        return getattr(module, attribute)
    except AttributeError:
        raise InvalidArgument(f"{module_name} has no attribute {attribute!r}") from None


@dataclass
class Collaborators:
    """External collaborators the command line needs to reach a gateway."""
    client_factory: Any = None
    discover: Any = None
    store: Any = None
    config_file: Path = CONFIG_FILE


def load_collaborators(config: dict, store=None, config_file: Path | None = None) -> Collaborators:
    """Build collaborators from the config file and environment.

    Import paths are read from TRADFRI_CLIENT_FACTORY / TRADFRI_DISCOVERY
    first, then from the 'client_factory' / 'discovery' config keys. Missing
    entries are left as None.
    """
    client_factory_path = os.getenv(CLIENT_FACTORY_ENV) or config.get('client_factory')
    discovery_path = os.getenv(DISCOVERY_ENV) or config.get('discovery')

    return Collaborators(
        client_factory=import_object(client_factory_path) if client_factory_path else None,
        discover=import_object(discovery_path) if discovery_path else None,
        store=store,
        config_file=config_file or CONFIG_FILE,
    )
