"""Internal math for mesh voxelization.

All symbols here are private (underscore-prefixed).  Users should import
from :mod:`mesh2vox.kernel`, :mod:`mesh2vox.mesh` and friends instead.

Algorithms
----------
Intersection — Möller–Trumbore ray/triangle test.
    ``p = d × e2``, ``det = e1 · p``.  ``|det| < epsilon`` means the ray is
    (near-)parallel to the triangle plane or the triangle has no area; that
    pair never counts as a hit.  Barycentric ``u``, ``v`` must lie inside the
    triangle and the hit distance ``t`` must lie in ``[0, max_distance]``.

Arithmetic — every dot and cross product is spelled out component by
    component (:func:`_dot`, :func:`_cross`) so the scalar kernel and the
    vectorised kernel perform exactly the same floating-point operations in
    the same order.  A point therefore gets the same answer whether it is
    tested alone or inside a batch of any size.

STL parsing — binary and ASCII, detected via the binary-size invariant.
"""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Union

import numpy as np
import numpy.typing as npt

from .errors import DegenerateInputError

_Array = npt.NDArray[np.floating]


# ---------------------------------------------------------------------------
# Component-wise vector helpers (operate on the last axis, broadcast freely)
# ---------------------------------------------------------------------------

def _dot(a: _Array, b: _Array) -> _Array:
    return a[..., 0] * b[..., 0] + a[..., 1] * b[..., 1] + a[..., 2] * b[..., 2]


def _cross(a: _Array, b: _Array) -> _Array:
    a, b = np.broadcast_arrays(a, b)
    return np.stack(
        [
            a[..., 1] * b[..., 2] - a[..., 2] * b[..., 1],
            a[..., 2] * b[..., 0] - a[..., 0] * b[..., 2],
            a[..., 0] * b[..., 1] - a[..., 1] * b[..., 0],
        ],
        axis=-1,
    )


# ---------------------------------------------------------------------------
# Möller–Trumbore ray casting
# ---------------------------------------------------------------------------

def _intersect_distance(
    origin: _Array,
    direction: _Array,
    v1: _Array,
    v2: _Array,
    v3: _Array,
    max_distance: float,
    epsilon: float,
) -> float:
    """Hit distance of one ray against one triangle, or ``-1.0`` on a miss."""
    e1 = v2 - v1
    e2 = v3 - v1
    p = _cross(direction, e2)
    det = float(_dot(e1, p))
    if -epsilon < det < epsilon:
        return -1.0

    inv_det = 1.0 / det
    s = origin - v1
    u = float(_dot(s, p)) * inv_det
    if u < 0.0 or u > 1.0:
        return -1.0

    q = _cross(s, e1)
    v = float(_dot(direction, q)) * inv_det
    if v < 0.0 or u + v > 1.0:
        return -1.0

    t = float(_dot(e2, q)) * inv_det
    if t < 0.0 or t > max_distance:
        return -1.0
    return t


def _ray_triangle_hits(
    origins: _Array,
    direction: _Array,
    tri: _Array,
    max_distance: float,
    epsilon: float,
) -> np.ndarray:
    """Return (N,) int32: 1 where the ray from each origin hits *tri*, 0 otherwise.

    Same acceptance rules as :func:`_intersect_distance`, vectorised over the
    ``(N, 3)`` ray origins.  All rays share *direction*.
    """
    v1, v2, v3 = tri[0], tri[1], tri[2]
    e1 = v2 - v1
    e2 = v3 - v1
    p = _cross(direction, e2)
    det = float(_dot(e1, p))
    if -epsilon < det < epsilon:
        return np.zeros(len(origins), dtype=np.int32)

    inv_det = 1.0 / det
    s = origins - v1                      # (N, 3)
    u = _dot(s, p) * inv_det              # (N,)
    q = _cross(s, e1)                     # (N, 3)
    v = _dot(direction, q) * inv_det      # (N,)
    t = _dot(e2, q) * inv_det             # (N,)

    hit = (
        (u >= 0.0) & (u <= 1.0)
        & (v >= 0.0) & ((u + v) <= 1.0)
        & (t >= 0.0) & (t <= max_distance)
    )
    return hit.astype(np.int32)


# ---------------------------------------------------------------------------
# STL parsing
# ---------------------------------------------------------------------------

# 50-byte binary facet record: normal, three corners, attribute byte count.
_STL_RECORD = np.dtype([("normal", "<f4", (3,)), ("vertices", "<f4", (3, 3)), ("attr", "<u2")])
_STL_HEADER = 84


def _is_binary_stl(raw: bytes) -> bool:
    # ASCII files may also start with "solid", and so may some binary
    # headers; only the record count gives a reliable answer.
    if len(raw) < _STL_HEADER:
        return False
    count = struct.unpack_from("<I", raw, 80)[0]
    return len(raw) == _STL_HEADER + _STL_RECORD.itemsize * count


def _stl_to_triangles(path: Union[str, Path]) -> np.ndarray:
    """Triangle soup ``(F, 3, 3)`` of the binary or ASCII STL at *path*.

    Facet normals are ignored; orientation comes from vertex order alone.

    Raises
    ------
    DegenerateInputError
        If an ASCII file holds a malformed ``vertex`` line or a partial facet.
    """
    raw = Path(path).read_bytes()
    if _is_binary_stl(raw):
        return _binary_stl_to_triangles(raw)
    return _ascii_stl_to_triangles(raw.decode("ascii", errors="replace"))


def _binary_stl_to_triangles(raw: bytes) -> np.ndarray:
    count = struct.unpack_from("<I", raw, 80)[0]
    facets = np.frombuffer(raw, dtype=_STL_RECORD, count=count, offset=_STL_HEADER)
    return facets["vertices"].astype(np.float64)


def _ascii_stl_to_triangles(text: str) -> np.ndarray:
    corners: list[tuple[float, float, float]] = []
    for n, line in enumerate(text.splitlines(), start=1):
        fields = line.split()
        if not fields or fields[0] != "vertex":
            continue
        try:
            x, y, z = (float(f) for f in fields[1:])
        except ValueError as exc:
            raise DegenerateInputError(f"malformed vertex line {n}: {line.strip()!r}") from exc
        corners.append((x, y, z))
    if len(corners) % 3:
        raise DegenerateInputError(
            f"ASCII STL lists {len(corners)} vertices, not a multiple of 3"
        )
    return np.array(corners, dtype=np.float64).reshape(-1, 3, 3)
