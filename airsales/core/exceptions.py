"""
Domain exceptions.
Sold-out flights and duplicate termination triggers are normal outcomes
and are not represented here.
"""


class AirSalesError(Exception):
    """Base class for simulator errors."""


class ChannelError(AirSalesError):
    """The control channel could not be opened or has no counterpart."""


class SharedMemoryError(AirSalesError):
    """The shared statistics region is unusable."""
