"""Parallel evaluation of the point-in-mesh test over every grid cell.

The flattened index range ``[0, nx*ny*nz)`` is cut into contiguous batches of
``options.batch_size`` indices.  Each batch computes its own cell centres,
classifies them and writes the result into its own slice of one
preallocated output array.  Slices never overlap and the mesh buffers are
read-only, so batches need no locking and may finish in any order.  The
output does not depend on batch size or worker count.

Batches run on a :class:`concurrent.futures.ThreadPoolExecutor`; numpy
releases the GIL inside its array kernels, which is where the time goes.
"""

from __future__ import annotations

import dataclasses
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple

import numpy as np

from .classify import classify_points
from .grid import Grid
from .mesh import Mesh
from .options import VoxelizeOptions

logger = logging.getLogger(__name__)


def resolve_options(options: Optional[VoxelizeOptions] = None, **overrides) -> VoxelizeOptions:
    """Merge keyword *overrides* into *options* (or the defaults)."""
    if options is None:
        return VoxelizeOptions(**overrides)
    if overrides:
        return dataclasses.replace(options, **overrides)
    return options


def _batches(total: int, batch_size: int) -> List[Tuple[int, int]]:
    return [(start, min(start + batch_size, total)) for start in range(0, total, batch_size)]


def evaluate(
    mesh: Mesh,
    grid: Grid,
    options: Optional[VoxelizeOptions] = None,
    **overrides,
) -> np.ndarray:
    """Classify the centre of every cell of *grid* against *mesh*.

    Parameters
    ----------
    mesh:
        Closed triangle mesh.
    grid:
        Cell layout from :func:`~mesh2vox.grid.build_grid`.
    options:
        Evaluation settings; keyword *overrides* (``batch_size=``,
        ``workers=``, ``max_distance=`` ...) are applied on top.

    Returns
    -------
    numpy.ndarray
        Read-only ``(nx*ny*nz,)`` bool array indexed by the flattened cell
        index.  Use :meth:`Grid.reshape` for a ``(nz, ny, nx)`` view.

    Raises
    ------
    ConfigurationError
        For invalid options; raised before any work is dispatched.

    Notes
    -----
    Blocks until every cell is written.  If a batch raises, the remaining
    batches are cancelled, the partial buffer is dropped and the exception
    propagates.
    """
    opts = resolve_options(options, **overrides)
    total = grid.cell_count
    occupancy = np.zeros(total, dtype=bool)

    if total == 0:
        logger.debug("Empty grid %s; nothing to evaluate", grid.dims)
        occupancy.setflags(write=False)
        return occupancy

    height = grid.ny * float(grid.cell_size[1])
    if height > opts.max_distance:
        logger.warning(
            "Grid height %.6g exceeds max_distance %.6g; cells high above the "
            "mesh bottom will be classified outside", height, opts.max_distance,
        )

    batches = _batches(total, opts.batch_size)
    logger.info("Evaluating %d cells against %d triangles in %d batches",
                total, mesh.triangle_count, len(batches))

    def _run(start: int, stop: int) -> None:
        centres = grid.centers(np.arange(start, stop, dtype=np.int64))
        occupancy[start:stop] = classify_points(centres, mesh, opts)

    if opts.workers == 1 or len(batches) == 1:
        for start, stop in batches:
            _run(start, stop)
    else:
        with ThreadPoolExecutor(max_workers=opts.workers) as pool:
            futures = [pool.submit(_run, start, stop) for start, stop in batches]
            try:
                for future in futures:
                    future.result()
            except BaseException:
                for future in futures:
                    future.cancel()
                raise

    logger.info("Evaluation done: %d of %d cells occupied", int(occupancy.sum()), total)
    occupancy.setflags(write=False)
    return occupancy
