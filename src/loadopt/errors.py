"""
Error hierarchy for the loading optimizer.

Only rejected *inputs* are exceptions.  A run that places nothing, or stops
at its iteration budget, is a normal result and is reported through
``PackingResult.termination`` instead.
"""


class LoadOptError(Exception):
    """Base class for all loading-optimizer errors."""


class InvalidGeometryError(LoadOptError):
    """A dimension, weight or volume is zero, negative or not finite."""


class DimensionFormatError(InvalidGeometryError):
    """A dimension string could not be parsed as ``LxWxH``."""


class UnknownUnitError(LoadOptError):
    """A unit tag is not recognised (raised in strict mode only)."""


class UnsupportedContainerError(LoadOptError):
    """The container variant has no box geometry to pack into."""


class GridTooLargeError(LoadOptError):
    """The occupancy grid for a container would exceed the configured cell limit."""


class UnknownStrategyError(ValueError, LoadOptError):
    """No spatial index is registered under the requested name."""


class JobFileError(LoadOptError):
    """A job file could not be read or failed validation."""
