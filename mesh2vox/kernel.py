"""Ray/triangle intersection kernel.

The kernel is a pure function: it holds no state and may be called from any
number of threads at once.
"""

from __future__ import annotations

from typing import NamedTuple, Optional

import numpy as np
import numpy.typing as npt

from ._math import _intersect_distance

_Array = npt.NDArray[np.floating]

# World is Y-up; every classification ray points straight down.
DOWN: _Array = np.array([0.0, -1.0, 0.0], dtype=np.float64)
DOWN.setflags(write=False)

#: Determinant threshold below which a ray and triangle count as parallel.
DEFAULT_EPSILON: float = 1e-5

#: Hits further than this along the ray are ignored.  Meshes taller than
#: this value will misclassify; raise it for large models.
DEFAULT_MAX_DISTANCE: float = 1000.0


class Ray(NamedTuple):
    """A half-line ``origin + t * direction`` for ``t >= 0``."""

    origin: _Array
    direction: _Array

    @classmethod
    def downward(cls, point, jitter=None) -> "Ray":
        """Ray cast straight down from *point*, optionally shifted by *jitter*."""
        origin = np.asarray(point, dtype=np.float64)
        if jitter is not None:
            origin = origin + np.asarray(jitter, dtype=np.float64)
        return cls(origin, DOWN)


def intersect(
    ray: Ray,
    v1,
    v2,
    v3,
    *,
    max_distance: float = DEFAULT_MAX_DISTANCE,
    epsilon: float = DEFAULT_EPSILON,
) -> Optional[float]:
    """Möller–Trumbore intersection of *ray* with triangle ``(v1, v2, v3)``.

    Parameters
    ----------
    ray:
        The ray to test.
    v1, v2, v3:
        ``(3,)`` triangle vertices.
    max_distance:
        Largest accepted hit distance along the ray.
    epsilon:
        Rays whose determinant magnitude falls below this are treated as
        parallel to the triangle (no hit).  Zero-area triangles fall in the
        same bucket.

    Returns
    -------
    float or None
        Distance ``t`` from the ray origin to the hit point, or ``None`` when
        the ray misses, hits behind its origin, or hits beyond
        *max_distance*.

    Examples
    --------
    >>> tri = np.array([[0, 0, 0], [2, 0, 0], [0, 0, 2]], dtype=float)
    >>> intersect(Ray.downward([0.5, 1.0, 0.5]), *tri)
    1.0
    """
    t = _intersect_distance(
        np.asarray(ray.origin, dtype=np.float64),
        np.asarray(ray.direction, dtype=np.float64),
        np.asarray(v1, dtype=np.float64),
        np.asarray(v2, dtype=np.float64),
        np.asarray(v3, dtype=np.float64),
        max_distance,
        epsilon,
    )
    if t < 0.0:
        return None
    return t
