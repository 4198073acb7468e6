"""Indexed triangle meshes and their axis-aligned bounds."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np
import numpy.typing as npt

from ._math import _stl_to_triangles
from .errors import DegenerateInputError

logger = logging.getLogger(__name__)

_Array = npt.NDArray[np.floating]


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


# ===========================================================================
# Bounds
# ===========================================================================

@dataclass(frozen=True, eq=False)
class Bounds:
    """Axis-aligned box given by its minimum corner and its size."""

    min: _Array
    size: _Array

    def __post_init__(self) -> None:
        lo = np.array(self.min, dtype=np.float64).reshape(3)
        size = np.array(self.size, dtype=np.float64).reshape(3)
        if not (np.all(np.isfinite(lo)) and np.all(np.isfinite(size))):
            raise DegenerateInputError("bounds must be finite")
        if np.any(size < 0):
            raise DegenerateInputError(f"bounds size must be non-negative, got {size.tolist()}")
        object.__setattr__(self, "min", _readonly(lo))
        object.__setattr__(self, "size", _readonly(size))

    @classmethod
    def from_min_max(cls, lo, hi) -> "Bounds":
        lo = np.asarray(lo, dtype=np.float64)
        return cls(lo, np.asarray(hi, dtype=np.float64) - lo)

    @classmethod
    def from_points(cls, points) -> "Bounds":
        """Tightest box around ``(N, 3)`` *points*; a zero box at the origin if empty."""
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        if len(pts) == 0:
            return cls(np.zeros(3), np.zeros(3))
        return cls.from_min_max(pts.min(axis=0), pts.max(axis=0))

    @property
    def max(self) -> _Array:
        return self.min + self.size

    @property
    def center(self) -> _Array:
        return self.min + 0.5 * self.size

    def __repr__(self) -> str:
        return f"Bounds(min={self.min.tolist()}, size={self.size.tolist()})"


# ===========================================================================
# Mesh
# ===========================================================================

class Mesh:
    """Read-only indexed triangle mesh.

    Parameters
    ----------
    vertices:
        ``(V, 3)`` vertex positions.
    triangles:
        Triangle vertex indices, either flat (length a multiple of 3) or
        shaped ``(F, 3)``.

    Raises
    ------
    DegenerateInputError
        If the index count is not a multiple of 3, an index is out of range,
        or the vertex array is not a finite ``(V, 3)`` array.

    Notes
    -----
    Both buffers are copied and frozen, so a ``Mesh`` can be shared by any
    number of threads without locking.  The surface is assumed closed and
    consistently wound; nothing here checks that.
    """

    def __init__(self, vertices, triangles) -> None:
        verts = np.array(vertices, dtype=np.float64)
        if verts.size == 0:
            verts = verts.reshape(0, 3)
        if verts.ndim != 2 or verts.shape[1] != 3:
            raise DegenerateInputError(f"vertices must have shape (V, 3), got {verts.shape}")
        if not np.all(np.isfinite(verts)):
            raise DegenerateInputError("vertices contain NaN or infinite coordinates")

        raw = np.asarray(triangles)
        if raw.size and not np.issubdtype(raw.dtype, np.integer):
            raise DegenerateInputError(f"triangle indices must be integers, got dtype {raw.dtype}")
        flat = raw.astype(np.int64).reshape(-1)
        if len(flat) % 3:
            raise DegenerateInputError(
                f"triangle index count {len(flat)} is not a multiple of 3"
            )
        if len(flat) and (flat.min() < 0 or flat.max() >= len(verts)):
            bad = flat[(flat < 0) | (flat >= len(verts))][0]
            raise DegenerateInputError(
                f"triangle index {bad} out of range for {len(verts)} vertices"
            )

        self._vertices = _readonly(verts)
        self._triangles = _readonly(flat)
        self._triangle_vertices = _readonly(verts[flat.reshape(-1, 3)])  # (F, 3, 3)
        self._bounds = Bounds.from_points(verts)

    @classmethod
    def from_triangles(cls, triangles, *, weld: bool = False) -> "Mesh":
        """Build a mesh from a ``(F, 3, 3)`` triangle-soup array.

        With ``weld=True`` identical vertex positions are merged into a single
        vertex; otherwise every triangle gets its own three vertices.
        """
        tris = np.asarray(triangles, dtype=np.float64).reshape(-1, 3, 3)
        verts = tris.reshape(-1, 3)
        if weld and len(verts):
            verts, inverse = np.unique(verts, axis=0, return_inverse=True)
            return cls(verts, inverse.reshape(-1))
        return cls(verts, np.arange(len(verts), dtype=np.int64))

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def vertices(self) -> _Array:
        """``(V, 3)`` vertex positions (read-only)."""
        return self._vertices

    @property
    def triangles(self) -> np.ndarray:
        """Flat triangle index sequence (read-only)."""
        return self._triangles

    @property
    def faces(self) -> np.ndarray:
        """Triangle indices as ``(F, 3)``."""
        return self._triangles.reshape(-1, 3)

    @property
    def triangle_vertices(self) -> _Array:
        """``(F, 3, 3)`` vertex positions of every triangle (read-only)."""
        return self._triangle_vertices

    @property
    def vertex_count(self) -> int:
        return len(self._vertices)

    @property
    def triangle_count(self) -> int:
        return len(self._triangles) // 3

    @property
    def bounds(self) -> Bounds:
        """Axis-aligned bounds of the vertex positions."""
        return self._bounds

    def __repr__(self) -> str:
        return f"Mesh(vertices={self.vertex_count}, triangles={self.triangle_count})"


def load_stl(path: Union[str, Path], *, weld: bool = True) -> Mesh:
    """Load a binary or ASCII STL file as a :class:`Mesh`.

    Parameters
    ----------
    path:
        Path to the ``.stl`` file.
    weld:
        Merge coincident vertices (STL stores every facet separately).
    """
    triangles = _stl_to_triangles(path)
    mesh = Mesh.from_triangles(triangles, weld=weld)
    logger.debug("Loaded %d triangles (%d vertices) from %s",
                 mesh.triangle_count, mesh.vertex_count, path)
    return mesh
