"""GatewaySession class for managing a Tradfri gateway connection.

This module contains the session that authenticates against one gateway,
keeps the live registry of lights fed by the gateway's device updates, and
executes paced, optionally reverting operation sequences on those lights.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from core.exceptions import (
    AuthenticationFailed,
    DeviceCommandError,
    InvalidArgument,
    NotAuthenticated,
    NotFound,
    RevertFailed,
    SessionError,
    TradfriError,
)
from core.light import TradfriLight
from core.protocol import ClientEvent, ClientFactory
from core.timeout import delay
from models.accessory import Accessory, LightOperation
from models.types import GatewayIdentity
from models.utils import validate_operation

_LOGGER = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Lifecycle states of a gateway session."""
    UNAUTHENTICATED = 'unauthenticated'
    AUTHENTICATING = 'authenticating'
    AUTHENTICATED = 'authenticated'
    OBSERVING = 'observing'
    DISCONNECTED = 'disconnected'


class SessionEvent(str, Enum):
    """Events a session reports to its listeners."""
    LIGHT_UPDATED = 'light updated'
    DISCONNECTED = 'disconnected'


@dataclass(frozen=True)
class OperationOutcome:
    """Result of an operation sequence on one light."""
    device_id: int
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class GatewaySession:
    """Manages one authenticated connection to a Tradfri gateway."""

    def __init__(self, address: str, client_factory: ClientFactory):
        """Create a session for the gateway at the given address.

        Args:
            address: Network address where the gateway can be reached
            client_factory: Callable building a protocol client for an address
        """
        self._address = address
        self._client = client_factory(address)
        self._state = SessionState.UNAUTHENTICATED
        self._authenticated = False

        # Registry of lights, written by the device update callback only
        self._lights: dict[int, TradfriLight] = {}
        self._lights_lock = threading.Lock()

        # One lock per device id so sequences on the same light never interleave
        self._operation_locks: dict[int, asyncio.Lock] = {}

        self._listeners: dict[SessionEvent, list[Callable[..., Any]]] = {
            SessionEvent.LIGHT_UPDATED: [],
            SessionEvent.DISCONNECTED: [],
        }
        self._background_tasks: set[asyncio.Task[None]] = set()
        # Loop the session runs on, captured when authentication starts
        self._loop: asyncio.AbstractEventLoop | None = None
        self._unsubscribers: list[Callable[[], None]] = [
            self._client.add_listener(ClientEvent.CONNECTION_LOST, self._on_connection_lost)
        ]
        self._observing = False

    def __repr__(self) -> str:
        return f"GatewaySession(address={self._address!r}, state={self._state.value!r})"

    @property
    def address(self) -> str:
        return self._address

    @property
    def state(self) -> SessionState:
        return self._state

    def is_authenticated(self) -> bool:
        """Check if this session is authenticated against the gateway."""
        return self._authenticated

    # --------------------------
    # Authentication
    # --------------------------

    async def authenticate_with_security_code(self, security_code: str) -> GatewayIdentity:
        """Authenticate using the security code printed on the gateway.

        Only meant for the first connection: the returned identity/PSK pair
        should be stored and used with authenticate_with_identity() afterwards.

        Args:
            security_code: Security code from the label of the gateway

        Returns:
            The identity/PSK pair issued by the gateway

        Raises:
            AuthenticationFailed: If the gateway rejects the code
        """
        if not security_code:
            raise InvalidArgument("Security code must not be empty")
        self._begin_authentication()

        try:
            identity = await self._client.authenticate(security_code)
        except Exception:
            self._state = SessionState.UNAUTHENTICATED
            raise

        await self._connect(identity)
        return identity

    async def authenticate_with_identity(self, identity: GatewayIdentity) -> None:
        """Authenticate using a previously issued identity/PSK pair.

        Raises:
            AuthenticationFailed: If the gateway rejects the pair
        """
        self._begin_authentication()
        await self._connect(identity)

    def _begin_authentication(self) -> None:
        if self._state is not SessionState.UNAUTHENTICATED:
            raise SessionError(
                f"Session is {self._state.value}; create a new session to reconnect"
            )
        self._loop = asyncio.get_running_loop()
        self._state = SessionState.AUTHENTICATING

    async def _connect(self, identity: GatewayIdentity) -> None:
        try:
            await self._client.connect(identity.identity, identity.psk)
        except AuthenticationFailed:
            _LOGGER.warning("Gateway %s rejected identity %s", self._address, identity.identity)
            self._state = SessionState.UNAUTHENTICATED
            raise
        except Exception:
            self._state = SessionState.UNAUTHENTICATED
            raise

        self._authenticated = True
        self._state = SessionState.AUTHENTICATED
        _LOGGER.info("Authenticated against gateway %s as %s", self._address, identity.identity)

    def _require_authenticated(self) -> None:
        if not self._authenticated:
            raise NotAuthenticated(
                f"Not connected/authenticated to the gateway at {self._address}"
            )

    # --------------------------
    # Device registry
    # --------------------------

    async def start_receiving_device_updates(self) -> None:
        """Subscribe to device updates and enumerate the current devices."""
        self._require_authenticated()
        if self._observing:
            return

        self._unsubscribers.append(
            self._client.add_listener(ClientEvent.DEVICE_UPDATED, self._on_device_updated)
        )
        self._observing = True
        await self._client.observe_devices()
        self._state = SessionState.OBSERVING
        _LOGGER.debug("Observing devices on gateway %s (%d lights)", self._address, len(self._lights))

    def _on_device_updated(self, accessory: Accessory) -> None:
        """Callback for device updated events.

        Every update builds a new TradfriLight that replaces the registry
        entry; previously returned instances keep their old accessory.
        """
        if not accessory.is_lightbulb:
            _LOGGER.debug("Ignoring update for accessory %s of type %s",
                          accessory.instance_id, accessory.type)
            return
        if not accessory.light_list:
            _LOGGER.warning("Lightbulb %s reported without light data", accessory.instance_id)
            return

        light = TradfriLight(self, accessory)
        with self._lights_lock:
            self._lights[light.device_id] = light

        self._notify_listeners(SessionEvent.LIGHT_UPDATED, light)

    def get_light_from_device_id(self, device_id: int) -> TradfriLight | None:
        """Return the light with the given id, or None if not found."""
        with self._lights_lock:
            return self._lights.get(device_id)

    def get_lights_from_device_ids(self, device_ids: Iterable[int]) -> list[TradfriLight]:
        """Return the lights with the given ids.

        Raises:
            NotFound: If any id is not in the registry
        """
        with self._lights_lock:
            requested = list(device_ids)
            missing = [device_id for device_id in requested if device_id not in self._lights]
            if missing:
                raise NotFound(f"Lights not found: {', '.join(map(str, missing))}", missing)
            return [self._lights[device_id] for device_id in requested]

    def get_tradfri_lights(self) -> list[TradfriLight]:
        """Return all lights currently known to the gateway."""
        with self._lights_lock:
            return list(self._lights.values())

    # --------------------------
    # Listeners
    # --------------------------

    def register_listener(self, event: SessionEvent, listener: Callable[..., Any]) -> Callable[[], None]:
        """Register a listener for a session event and return its remover."""
        self._listeners[event].append(listener)

        def remove() -> None:
            if listener in self._listeners[event]:
                self._listeners[event].remove(listener)

        return remove

    def _notify_listeners(self, event: SessionEvent, *args: Any) -> None:
        """Call the listeners of an event on the session's event loop.

        Client callbacks may arrive on a network thread; listeners are then
        handed over to the loop instead of being run on that thread.
        """
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if self._loop is not None and running is not self._loop:
            self._loop.call_soon_threadsafe(self._notify_listeners, event, *args)
            return

        for listener in list(self._listeners[event]):
            if inspect.iscoroutinefunction(listener):
                task = asyncio.create_task(listener(*args))
                self._background_tasks.add(task)
                task.add_done_callback(self._background_tasks.discard)
            else:
                listener(*args)

    def _on_connection_lost(self, error: BaseException | None = None) -> None:
        if error is not None:
            _LOGGER.warning("Lost connection to gateway %s: %s", self._address, error)
        else:
            _LOGGER.info("Connection to gateway %s closed", self._address)
        self._authenticated = False
        self._state = SessionState.DISCONNECTED
        self._notify_listeners(SessionEvent.DISCONNECTED, error)

    # --------------------------
    # Device operations
    # --------------------------

    def _operation_lock(self, device_id: int) -> asyncio.Lock:
        return self._operation_locks.setdefault(device_id, asyncio.Lock())

    async def _transmit(self, light: TradfriLight, operation: LightOperation) -> None:
        self._require_authenticated()
        _LOGGER.debug("Light %s <- %s", light.device_id, operation.to_payload())
        try:
            await self._client.operate_light(light.accessory, operation, True)
        except DeviceCommandError:
            raise
        except (OSError, TimeoutError, asyncio.TimeoutError) as err:
            raise DeviceCommandError(
                f"Failed to operate light {light.device_id}: {err}", light.device_id
            ) from err
        light.light_state.apply(operation)

    async def _push_state(self, light: TradfriLight, accessory: Accessory | None = None) -> None:
        """Send a full accessory state, the light's own unless one is given."""
        self._require_authenticated()
        if accessory is None:
            accessory = light.accessory
        _LOGGER.debug("Light %s <- full state %s", light.device_id,
                      accessory.light_list[0].to_operation().to_payload())
        try:
            await self._client.update_device(accessory)
        except DeviceCommandError:
            raise
        except (OSError, TimeoutError, asyncio.TimeoutError) as err:
            raise DeviceCommandError(
                f"Failed to update light {light.device_id}: {err}", light.device_id
            ) from err

    async def operate_light(self, light: TradfriLight, operation: LightOperation) -> None:
        """Send a single operation to a light."""
        self._require_authenticated()
        validate_operation(operation)
        async with self._operation_lock(light.device_id):
            await self._transmit(light, operation)

    async def sync_light_state(self, light: TradfriLight) -> None:
        """Push the light's in-memory state to the gateway."""
        self._require_authenticated()
        async with self._operation_lock(light.device_id):
            await self._push_state(light)

    async def execute_operations(
        self,
        light: TradfriLight,
        operations: Iterable[LightOperation],
        pacing_ms: float = 0,
        revert: bool = False,
    ) -> None:
        """Execute a sequence of operations on a light.

        Steps are sent strictly in order, each followed by a pause of
        pacing_ms. A failing step aborts the remaining steps.

        Args:
            light: Target light
            operations: Operations to send, in order
            pacing_ms: Pause in ms after each operation
            revert: If True, restore the state the light had before the sequence

        Raises:
            NotAuthenticated: If the session is not authenticated
            InvalidArgument: If any operation is malformed (nothing is sent)
            DeviceCommandError: If a step fails
            RevertFailed: If restoring the previous state fails
        """
        self._require_authenticated()
        operations = list(operations)
        for operation in operations:
            validate_operation(operation)
        if pacing_ms < 0:
            raise InvalidArgument(f"Pacing must not be negative, got {pacing_ms}")

        async with self._operation_lock(light.device_id):
            previous_state = light.light_state.clone()

            for operation in operations:
                await self._transmit(light, operation)
                await delay(pacing_ms)

            if not revert:
                return

            # Local state only changes once the gateway accepted the restore
            restored = light.accessory.clone()
            restored.light_list[0].merge(previous_state)
            try:
                await self._push_state(light, restored)
            except TradfriError as err:
                raise RevertFailed(
                    f"Failed to restore previous state of light {light.device_id}", light.device_id
                ) from err
            light.light_state.merge(previous_state)

    async def execute_operations_multiple(
        self,
        lights: Iterable[TradfriLight],
        operations: Iterable[LightOperation],
        pacing_ms: float = 0,
        revert: bool = False,
    ) -> list[OperationOutcome]:
        """Execute the same sequence on several lights concurrently.

        Each light runs its own sequence and pacing; a failure on one light
        does not stop the others.

        Returns:
            One OperationOutcome per light, in the order given
        """
        self._require_authenticated()
        lights = list(lights)
        operations = tuple(operations)

        results = await asyncio.gather(
            *(self.execute_operations(light, operations, pacing_ms, revert) for light in lights),
            return_exceptions=True,
        )

        outcomes = []
        for light, result in zip(lights, results):
            if isinstance(result, BaseException):
                _LOGGER.warning("Sequence on light %s failed: %s", light.device_id, result)
                outcomes.append(OperationOutcome(light.device_id, result))
            else:
                outcomes.append(OperationOutcome(light.device_id))
        return outcomes

    # --------------------------
    # Teardown
    # --------------------------

    async def close(self) -> None:
        """Detach from the client and close the connection."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self._observing = False
        self._authenticated = False
        self._state = SessionState.DISCONNECTED
        await self._client.close()
