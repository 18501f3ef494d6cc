"""Fatal error types.

Single-provider failures are never raised; they travel as ``Err`` values.
These exceptions cover the conditions that must stop a run.
"""


class AcquisitionError(RuntimeError):
    """A cycle cannot produce a usable snapshot (no FX, no benchmark, no markets)."""


class InsufficientDataError(ValueError):
    """A series reached analytics without the data it needs."""
