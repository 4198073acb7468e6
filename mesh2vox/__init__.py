"""mesh2vox — closed triangle mesh to occupancy grid (pure numpy).

Marks which cells of a regular 3-D grid have their centres inside a closed
triangulated surface.

Quick start
-----------
>>> from mesh2vox import load_stl, voxelize
>>> mesh = load_stl("my_mesh.stl")
>>> grid, occupancy = voxelize(mesh, cell_size=0.1)
>>> grid.reshape(occupancy).shape          # (nz, ny, nx)

Pipeline
--------
1. :func:`build_grid` — ``ceil(bounds.size / cell_size)`` cells per axis,
   first centre half a cell in from ``bounds.min``.
2. :func:`evaluate` — every cell centre is classified by
   :func:`is_inside`, batched over a thread pool.
3. The caller consumes ``occupancy`` (flattened ``x + y*nx + z*nx*ny``),
   e.g. through :func:`occupied_cells`.

Watertight requirement
----------------------
Classification uses Möller–Trumbore ray casting straight down (−Y) and the
parity of the crossing count.  It is only correct for **closed**,
consistently wound meshes.  Hits further than ``max_distance`` (default
1000) along the ray are ignored; raise it for very tall meshes.

Performance
-----------
O(F × N) for F triangles and N cells; no acceleration structure.
"""

from .errors import ConfigurationError, DegenerateInputError, Mesh2VoxError
from .kernel import DOWN, Ray, intersect
from .mesh import Bounds, Mesh, load_stl
from .grid import Grid, build_grid, load_npz, occupied_cells, save_npz
from .classify import classify_points, is_inside
from .options import VoxelizeOptions
from .evaluator import evaluate
from .pipeline import VoxelizationResult, voxelize

__version__ = "0.1.0"

__all__ = [
    # Errors
    "Mesh2VoxError",
    "ConfigurationError",
    "DegenerateInputError",

    # Kernel
    "DOWN",
    "Ray",
    "intersect",

    # Mesh
    "Bounds",
    "Mesh",
    "load_stl",

    # Grid
    "Grid",
    "build_grid",
    "occupied_cells",
    "save_npz",
    "load_npz",

    # Classification and evaluation
    "is_inside",
    "classify_points",
    "VoxelizeOptions",
    "evaluate",
    "voxelize",
    "VoxelizationResult",
]
