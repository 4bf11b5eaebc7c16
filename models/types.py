"""Type definitions for Tradfri Control.

This module provides the identity dataclass and TypedDict definitions for
structured data types used across the application.
"""

from dataclasses import dataclass
from typing import TypedDict


@dataclass(frozen=True)
class GatewayIdentity:
    """Identity/PSK pair issued by the gateway after security code authentication.

    Opaque to this application: it is stored and re-submitted verbatim.
    """
    identity: str
    psk: str


class DeviceData(TypedDict):
    """Identification data for a single light."""
    deviceId: int
    name: str
    spectrum: str


class DiscoveredGateway(TypedDict):
    """Gateway information returned by a discovery service."""
    name: str
    addresses: list[str]
