"""Initialization failures for the authorization components.

Only these propagate out of the service; everything that goes wrong while
answering a single check is folded into an UNKNOWN decision instead.
"""


class InitializationError(Exception):
    """Raised when a component cannot be brought up."""


class ConfigurationError(InitializationError):
    """Missing or invalid remote authority URL."""


class CacheProvisioningError(InitializationError):
    """The decision cache could not be created."""
