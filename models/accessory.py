"""Gateway accessory models.

An accessory is any device managed by the gateway. Lightbulb accessories carry
a list of light records holding the current power, brightness and colour.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any


class AccessoryType(IntEnum):
    """Accessory type discriminators reported by the gateway."""
    REMOTE = 0
    SLAVE_REMOTE = 1
    LIGHTBULB = 2
    PLUG = 3
    MOTION_SENSOR = 4
    SIGNAL_REPEATER = 6
    BLIND = 7
    SOUND_REMOTE = 8


class Spectrum(str, Enum):
    """Colour capability of a light."""
    NONE = 'none'
    WHITE = 'white'
    RGB = 'rgb'


# Fixed palette supported by white spectrum lights (hex value -> label)
WHITE_SPECTRUM_PALETTE = {
    'f5faf6': 'White',
    'f1e0b5': 'Warm',
    'efd275': 'Yellow',
}


@dataclass(frozen=True)
class LightOperation:
    """A single desired-state delta for a light.

    Unset fields (None) are left untouched by the gateway.
    """
    on: bool | None = None
    color: str | None = None
    brightness: int | None = None

    def to_payload(self) -> dict[str, Any]:
        """Return the operation as a payload dict without unset fields."""
        payload: dict[str, Any] = {}
        if self.on is not None:
            payload['onOff'] = self.on
        if self.color is not None:
            payload['color'] = self.color
        if self.brightness is not None:
            payload['dimmer'] = self.brightness
        return payload

    def is_empty(self) -> bool:
        return not self.to_payload()


# Fields of LightState that describe mutable device state
_STATE_FIELDS = ('on', 'brightness', 'color')


@dataclass
class LightState:
    """Current state of one light record of an accessory."""
    spectrum: Spectrum = Spectrum.NONE
    on: bool | None = None
    brightness: int | None = None
    color: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LightState:
        """Create LightState from a collaborator light payload."""
        try:
            spectrum = Spectrum(data.get('spectrum', Spectrum.NONE.value))
        except ValueError:
            spectrum = Spectrum.NONE
        return cls(
            spectrum=spectrum,
            on=data.get('onOff'),
            brightness=data.get('dimmer'),
            color=data.get('color'),
        )

    def clone(self) -> LightState:
        """Return a deep copy that shares no mutable state with this one."""
        return copy.deepcopy(self)

    def merge(self, other: LightState) -> None:
        """Overwrite every state field that is set on other."""
        for name in _STATE_FIELDS:
            value = getattr(other, name)
            if value is not None:
                setattr(self, name, value)

    def apply(self, operation: LightOperation) -> None:
        """Record an acknowledged operation in this state."""
        for name in _STATE_FIELDS:
            value = getattr(operation, name)
            if value is not None:
                setattr(self, name, value)

    def to_operation(self) -> LightOperation:
        """Return the full state as a single operation."""
        return LightOperation(on=self.on, color=self.color, brightness=self.brightness)


@dataclass
class Accessory:
    """A device managed by the gateway."""
    instance_id: int
    name: str
    type: int
    light_list: list[LightState] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Accessory:
        """Create Accessory from a collaborator payload dictionary."""
        return cls(
            instance_id=int(data['instanceId']),
            name=data.get('name', ''),
            type=int(data.get('type', -1)),
            light_list=[LightState.from_dict(light) for light in data.get('lightList', [])],
        )

    @property
    def is_lightbulb(self) -> bool:
        return self.type == AccessoryType.LIGHTBULB

    def clone(self) -> Accessory:
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        """Serialise back to the collaborator payload shape."""
        return {
            'instanceId': self.instance_id,
            'name': self.name,
            'type': self.type,
            'lightList': [
                {'spectrum': light.spectrum.value, **light.to_operation().to_payload()}
                for light in self.light_list
            ],
        }

