"""Custom exceptions for Tradfri gateway operations."""


class TradfriError(Exception):
    """Base exception for gateway session operations."""


class DiscoveryFailed(TradfriError):
    """Raised when no gateway could be found on the network."""


class AuthenticationFailed(TradfriError):
    """Raised when the gateway rejects a security code or identity/PSK pair."""


class NotAuthenticated(TradfriError):
    """Raised when a device operation is attempted on an unauthenticated session."""


class SessionError(TradfriError):
    """Raised when a session is used outside its lifecycle."""


class DeviceCommandError(TradfriError):
    """Raised when a transmission to a specific device fails."""

    def __init__(self, message: str, device_id: int | None = None):
        """Initialize the exception with the id of the device that failed."""
        super().__init__(message)
        self.device_id = device_id


class RevertFailed(DeviceCommandError):
    """Raised when restoring a light's previous state fails after a sequence."""


class InvalidArgument(TradfriError, ValueError):
    """Raised for malformed caller input, before anything is transmitted."""


class NotFound(TradfriError, LookupError):
    """Raised when requested devices are not present in the registry."""

    def __init__(self, message: str, device_ids: list[int] | None = None):
        super().__init__(message)
        self.device_ids = device_ids or []
