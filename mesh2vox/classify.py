"""Point-in-mesh classification by ray-casting parity.

A ray is cast straight down from the query point and the triangles it
crosses are counted.  Odd count → inside.  Only meaningful for closed,
consistently wound, non-self-intersecting meshes.

Points strictly outside the mesh's bounding box are reported outside
without casting a ray, so the origin jitter can never pull them in.

Cost is O(F) per point (no acceleration structure); callers with many
points should use :func:`classify_points`, which loops over triangles and
vectorises over points.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ._math import _ray_triangle_hits
from .kernel import DOWN, Ray, intersect
from .mesh import Bounds, Mesh
from .options import VoxelizeOptions


def _within(points: np.ndarray, bounds: Bounds) -> np.ndarray:
    """``(N,)`` mask of *points* inside the closed box *bounds*."""
    return np.all((points >= bounds.min) & (points <= bounds.max), axis=1)


def is_inside(point, mesh: Mesh, options: Optional[VoxelizeOptions] = None) -> bool:
    """Return ``True`` if *point* lies inside the closed surface *mesh*.

    Rays grazing an edge or vertex exactly are ambiguous; the default
    ``options.jitter`` nudges the ray origin sideways to avoid the common
    grid-aligned cases.
    """
    if options is None:
        options = VoxelizeOptions()
    if not _within(np.asarray(point, dtype=np.float64).reshape(1, 3), mesh.bounds)[0]:
        return False
    ray = Ray.downward(point, options.jitter)
    count = 0
    for v1, v2, v3 in mesh.triangle_vertices:
        hit = intersect(ray, v1, v2, v3,
                        max_distance=options.max_distance, epsilon=options.epsilon)
        if hit is not None:
            count += 1
    return count % 2 == 1


def classify_points(points, mesh: Mesh, options: Optional[VoxelizeOptions] = None) -> np.ndarray:
    """Vectorised :func:`is_inside` for ``(N, 3)`` *points*; returns ``(N,)`` bool."""
    if options is None:
        options = VoxelizeOptions()
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    inside = np.zeros(len(pts), dtype=bool)
    candidates = np.flatnonzero(_within(pts, mesh.bounds))
    if len(candidates) == 0:
        return inside
    origins = pts[candidates] + np.asarray(options.jitter)
    hits = np.zeros(len(origins), dtype=np.int32)
    for tri in mesh.triangle_vertices:
        hits += _ray_triangle_hits(origins, DOWN, tri, options.max_distance, options.epsilon)
    inside[candidates] = hits % 2 == 1
    return inside
