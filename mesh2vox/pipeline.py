"""One-call mesh → occupancy pipeline."""

from __future__ import annotations

import logging
from typing import NamedTuple, Optional

import numpy as np

from .evaluator import evaluate, resolve_options
from .grid import Grid, build_grid
from .mesh import Bounds, Mesh
from .options import DEFAULT_CELL_SIZE, VoxelizeOptions

logger = logging.getLogger(__name__)


class VoxelizationResult(NamedTuple):
    grid: Grid
    occupancy: np.ndarray

    @property
    def occupied_count(self) -> int:
        return int(np.count_nonzero(self.occupancy))


def voxelize(
    mesh: Mesh,
    cell_size=DEFAULT_CELL_SIZE,
    bounds: Optional[Bounds] = None,
    options: Optional[VoxelizeOptions] = None,
    **overrides,
) -> VoxelizationResult:
    """Voxelize *mesh* into cells of *cell_size*.

    Parameters
    ----------
    mesh:
        Closed, consistently wound triangle mesh.
    cell_size:
        Scalar or ``(sx, sy, sz)`` cell extents, all > 0.
    bounds:
        Region to grid; defaults to ``mesh.bounds``.
    options, **overrides:
        See :func:`~mesh2vox.evaluator.evaluate`.

    Returns
    -------
    VoxelizationResult
        ``(grid, occupancy)``; unpacks like a tuple.

    Raises
    ------
    ConfigurationError
        Bad cell size or options.  Nothing is evaluated.

    Examples
    --------
    >>> grid, occupancy = voxelize(mesh, cell_size=0.5)
    >>> grid.reshape(occupancy).shape
    (2, 2, 2)
    """
    opts = resolve_options(options, **overrides)
    if bounds is None:
        bounds = mesh.bounds
    grid = build_grid(bounds, cell_size)
    logger.debug("Built %r over %r", grid, bounds)
    return VoxelizationResult(grid, evaluate(mesh, grid, opts))
