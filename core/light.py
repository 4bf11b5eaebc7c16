"""TradfriLight device façade.

A TradfriLight wraps one lightbulb accessory seen by a GatewaySession. It holds
no network state of its own: every change is sent through the owning session.
"""

from __future__ import annotations

import weakref
from typing import TYPE_CHECKING

from core.exceptions import InvalidArgument, SessionError
from models.accessory import Accessory, LightOperation, LightState, Spectrum
from models.types import DeviceData
from models.utils import validate_brightness, validate_color

if TYPE_CHECKING:
    from core.session import GatewaySession

# Sequence played by identify(), one step per second
IDENTIFY_OPERATIONS = (
    LightOperation(on=True, color='FF0000', brightness=100),
    LightOperation(on=False),
    LightOperation(on=True),
    LightOperation(on=False),
    LightOperation(on=True),
    LightOperation(on=False),
)
IDENTIFY_PACING_MS = 1000


class TradfriLight:
    """A controllable light connected to the gateway."""

    def __init__(self, session: GatewaySession, accessory: Accessory):
        """Create a light for an accessory observed by the given session.

        Args:
            session: Session that observes the accessory (held as a weak reference)
            accessory: Accessory with at least one light record
        """
        if not accessory.light_list:
            raise InvalidArgument(f"Accessory {accessory.instance_id} has no light record")
        self._session_ref = weakref.ref(session)
        self._accessory = accessory
        self._light = accessory.light_list[0]

    def __repr__(self) -> str:
        return f"TradfriLight(device_id={self.device_id}, name={self.name!r}, spectrum={self.spectrum.value!r})"

    @property
    def session(self) -> GatewaySession:
        session = self._session_ref()
        if session is None:
            raise SessionError(f"Session for light {self.device_id} no longer exists")
        return session

    @property
    def device_id(self) -> int:
        return self._accessory.instance_id

    @property
    def name(self) -> str:
        return self._accessory.name

    @property
    def spectrum(self) -> Spectrum:
        return self._light.spectrum

    @property
    def accessory(self) -> Accessory:
        return self._accessory

    @property
    def light_state(self) -> LightState:
        return self._light

    def get_device_id(self) -> int:
        """Return the gateway-assigned instance id of this light."""
        return self.device_id

    def get_device_data(self) -> DeviceData:
        """Return identification data for this light."""
        return {
            'deviceId': self.device_id,
            'name': self.name,
            'spectrum': self.spectrum.value,
        }

    async def identify(self):
        """Blink the light so the user can tell which one it is.

        The light returns to its previous state afterwards.
        """
        await self.session.execute_operations(
            self, IDENTIFY_OPERATIONS, IDENTIFY_PACING_MS, revert=True
        )

    async def toggle(self):
        """Toggle the light on or off."""
        await self.session.operate_light(self, LightOperation(on=not self._light.on))

    async def set_brightness(self, value: int):
        """Set the brightness (0-100)."""
        validate_brightness(value)
        await self.session.operate_light(self, LightOperation(brightness=value))

    async def set_color(self, value: str):
        """Set the colour.

        Args:
            value: 6-digit hex colour for rgb lights, or one of the
                white spectrum palette values for white lights
        """
        validate_color(value, self.spectrum)
        await self.session.operate_light(self, LightOperation(color=value))
