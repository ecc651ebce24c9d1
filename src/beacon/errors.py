"""Exception hierarchy for Beacon."""

from typing import Optional


class BeaconError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(BeaconError):
    """Required configuration is missing or invalid."""


class TransportError(BeaconError):
    """The registry could not be reached (connection failure, timeout)."""


class ProtocolError(BeaconError):
    """The registry answered with a non-success status or a malformed body."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class RegistryCallError(BeaconError):
    """A registry operation failed.

    *cause* is the underlying :class:`TransportError` or
    :class:`ProtocolError`.
    """

    operation = "call"

    def __init__(self, cause: BeaconError):
        super().__init__(f"{self.operation} failed: {cause}")
        self.cause = cause

    @property
    def transient(self) -> bool:
        return isinstance(self.cause, TransportError)


class RegistrationError(RegistryCallError):
    operation = "register"


class PublishError(RegistryCallError):
    operation = "update"


class DeregistrationError(RegistryCallError):
    operation = "deregister"


class PingError(RegistryCallError):
    operation = "ping"


class StateInvariantViolation(BeaconError):
    """Internal controller state was inconsistent. Indicates a bug."""
