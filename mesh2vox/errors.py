"""Exception hierarchy for mesh2vox."""

from __future__ import annotations

__all__ = ["Mesh2VoxError", "ConfigurationError", "DegenerateInputError"]


class Mesh2VoxError(Exception):
    """Base class for every error raised by mesh2vox."""


class ConfigurationError(Mesh2VoxError, ValueError):
    """A voxelization parameter is unusable (e.g. a cell-size axis <= 0)."""


class DegenerateInputError(Mesh2VoxError, ValueError):
    """The mesh itself is malformed (bad index list or vertex array)."""
