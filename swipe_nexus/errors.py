"""
Exception types for Swipe Nexus.
"""


class SwipeNexusError(Exception):
    """Base class for all Swipe Nexus errors."""


class ConfigurationError(SwipeNexusError):
    """A difficulty configuration or grid size that cannot produce a playable board."""


class StorageError(SwipeNexusError):
    """The durable key-value store could not be read or written."""
