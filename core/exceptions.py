"""Errors raised at the edges of the simulator (loading, storing)."""


class FinsimError(Exception):
    """Base exception for the simulator."""

    pass


class ModelLoadError(FinsimError, ValueError):
    """A model or scenario document could not be read or parsed."""

    pass


class StoreError(FinsimError):
    """The persistence backend failed to write a document."""

    pass
