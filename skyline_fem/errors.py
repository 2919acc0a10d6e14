# skyline_fem/errors.py
"""Exceptions raised while building and assembling a model."""


class SkylineFemError(Exception):
    """Base class for every error raised by skyline_fem."""
    pass


class ModelError(SkylineFemError, ValueError):
    """Raised when the model data is malformed (bad references, DOF mismatch, ...)."""
    pass


class SequencingError(SkylineFemError, RuntimeError):
    """Raised when a pipeline stage runs before the stage it depends on."""
    pass


class ElementContractError(SkylineFemError, RuntimeError):
    """Raised when an element implementation returns data of the wrong shape."""
    pass
