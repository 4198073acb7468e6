"""Regular cell-centred grids laid over a bounding box.

Cells are addressed by a flattened index ``x + y*nx + z*nx*ny``.  Reshaping
an occupancy array of length ``nx*ny*nz`` to ``(nz, ny, nx)`` therefore gives
the same z-first layout as :func:`numpy.meshgrid` with ``indexing="ij"`` on
``(zs, ys, xs)``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterator, Tuple

import numpy as np
import numpy.typing as npt

from .errors import ConfigurationError, DegenerateInputError
from .mesh import Bounds

_Array = npt.NDArray[np.floating]
_Dims3D = Tuple[int, int, int]


def as_cell_size(cell_size) -> _Array:
    """Validate *cell_size* and return it as a read-only ``(3,)`` float array.

    A scalar is used on all three axes.

    Raises
    ------
    ConfigurationError
        If the value is not one or three numbers, or any axis is not a
        finite positive number.
    """
    try:
        cs = np.array(cell_size, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"cell size must be numeric, got {cell_size!r}") from exc
    if cs.ndim == 0:
        cs = np.full(3, float(cs))
    if cs.shape != (3,):
        raise ConfigurationError(f"cell size must have 3 components, got shape {cs.shape}")
    if not np.all(np.isfinite(cs)) or np.any(cs <= 0.0):
        raise ConfigurationError(f"every cell size axis must be > 0, got {cs.tolist()}")
    cs.setflags(write=False)
    return cs


# ===========================================================================
# Grid
# ===========================================================================

@dataclass(frozen=True, eq=False)
class Grid:
    """Cell layout produced by :func:`build_grid`.

    Attributes
    ----------
    dims:
        ``(nx, ny, nz)`` cell counts.
    origin:
        Centre of cell ``(0, 0, 0)``.
    cell_size:
        ``(3,)`` cell extents.
    """

    dims: _Dims3D
    origin: _Array
    cell_size: _Array

    @property
    def nx(self) -> int:
        return self.dims[0]

    @property
    def ny(self) -> int:
        return self.dims[1]

    @property
    def nz(self) -> int:
        return self.dims[2]

    @property
    def cell_count(self) -> int:
        return self.nx * self.ny * self.nz

    @property
    def shape(self) -> Tuple[int, int, int]:
        """z-first ``(nz, ny, nx)`` shape of a reshaped occupancy array."""
        return (self.nz, self.ny, self.nx)

    def flat_index(self, x: int, y: int, z: int) -> int:
        return x + y * self.nx + z * self.nx * self.ny

    def unflatten(self, index):
        """Inverse of :meth:`flat_index`; works on ints and integer arrays."""
        x = index % self.nx
        y = (index // self.nx) % self.ny
        z = index // (self.nx * self.ny)
        return x, y, z

    def centers(self, indices) -> _Array:
        """``(N, 3)`` centres of the cells with the given flattened *indices*."""
        idx = np.asarray(indices, dtype=np.int64).reshape(-1)
        if len(idx) == 0:
            return np.empty((0, 3), dtype=np.float64)
        x, y, z = self.unflatten(idx)
        xyz = np.stack([x, y, z], axis=-1).astype(np.float64)
        return self.origin + xyz * self.cell_size

    def center(self, index: int) -> _Array:
        """Centre of a single cell."""
        return self.centers([index])[0]

    def cell_centers(self) -> _Array:
        """All ``(nx*ny*nz, 3)`` cell centres in flattened order."""
        return self.centers(np.arange(self.cell_count, dtype=np.int64))

    def reshape(self, occupancy: np.ndarray) -> np.ndarray:
        """View a flat occupancy array as ``(nz, ny, nx)``."""
        return np.asarray(occupancy).reshape(self.shape)

    def __repr__(self) -> str:
        return (f"Grid(dims={self.dims}, origin={self.origin.tolist()}, "
                f"cell_size={self.cell_size.tolist()})")


def build_grid(bounds: Bounds, cell_size) -> Grid:
    """Lay a grid of *cell_size* cells over *bounds*.

    Each dimension is ``ceil(bounds.size / cell_size)`` along its axis; the
    first cell centre sits half a cell in from ``bounds.min``.  A flat axis
    (size 0) gives an empty grid.

    Raises
    ------
    ConfigurationError
        If any cell-size axis is <= 0.
    """
    cs = as_cell_size(cell_size)
    dims = tuple(int(n) for n in np.ceil(bounds.size / cs))
    origin = bounds.min + 0.5 * cs
    origin.setflags(write=False)
    return Grid(dims, origin, cs)


# ===========================================================================
# Results
# ===========================================================================

def occupied_cells(grid: Grid, occupancy: np.ndarray) -> Iterator[Tuple[int, _Array]]:
    """Yield ``(flat_index, centre)`` for every occupied cell, in index order."""
    occ = np.asarray(occupancy, dtype=bool).reshape(-1)
    if len(occ) != grid.cell_count:
        raise DegenerateInputError(
            f"occupancy has {len(occ)} entries, grid has {grid.cell_count} cells"
        )
    indices = np.flatnonzero(occ)
    for index, centre in zip(indices.tolist(), grid.centers(indices)):
        yield index, centre


def save_npz(path: str, grid: Grid, occupancy: np.ndarray) -> None:
    """Save a grid and its occupancy to *path* (creates parent directories if needed)."""
    out_dir = os.path.dirname(path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    np.savez_compressed(
        path,
        occupancy=np.asarray(occupancy, dtype=bool),
        dims=np.asarray(grid.dims, dtype=np.int64),
        origin=grid.origin,
        cell_size=grid.cell_size,
    )


def load_npz(path: str) -> Tuple[Grid, np.ndarray]:
    """Load a ``(grid, occupancy)`` pair written by :func:`save_npz`."""
    with np.load(path) as data:
        dims = tuple(int(n) for n in data["dims"])
        origin = np.array(data["origin"], dtype=np.float64)
        cell_size = as_cell_size(data["cell_size"])
        occupancy = np.array(data["occupancy"], dtype=bool)
    origin.setflags(write=False)
    return Grid(dims, origin, cell_size), occupancy
