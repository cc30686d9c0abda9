"""Provisioning error hierarchy."""


class ProvisioningError(Exception):
    """Base class for errors that abort a provisioning run."""


class InvalidAddressError(ProvisioningError, ValueError):
    """Raised when an IP address string cannot be classified."""


class ResourceFailedError(ProvisioningError):
    """The resource entered a terminal failure state while we waited on it."""

    def __init__(self, resource):
        self.resource = resource
        state = getattr(resource, "raw_state", "") or getattr(resource, "state", "unknown")
        state = getattr(state, "value", state)
        super().__init__(f"Machine {getattr(resource, 'id', '?')} reached failure state '{state}'")


class ReadinessTimeoutError(ProvisioningError):
    pass


class NoPublicAddressError(ProvisioningError):
    pass


class ProbePermissionError(ProvisioningError):
    pass


class PortUnreachableError(ProvisioningError):
    pass
