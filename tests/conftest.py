"""Shared mesh fixtures for the mesh2vox tests."""
from __future__ import annotations

import logging
import struct

import numpy as np
import pytest

from mesh2vox import Mesh

# Outward-wound quads split into two triangles each.
BOX_FACES = [
    (0, 2, 1), (0, 3, 2),   # -Z
    (4, 5, 6), (4, 6, 7),   # +Z
    (0, 4, 7), (0, 7, 3),   # -X
    (1, 2, 6), (1, 6, 5),   # +X
    (0, 1, 5), (0, 5, 4),   # -Y
    (3, 7, 6), (3, 6, 2),   # +Y
]


def make_box(lo=(0.0, 0.0, 0.0), hi=(1.0, 1.0, 1.0)) -> Mesh:
    """12-triangle watertight box [lo, hi]."""
    (x0, y0, z0), (x1, y1, z1) = lo, hi
    verts = np.array([
        [x0, y0, z0], [x1, y0, z0], [x1, y1, z0], [x0, y1, z0],
        [x0, y0, z1], [x1, y0, z1], [x1, y1, z1], [x0, y1, z1],
    ], dtype=np.float64)
    return Mesh(verts, np.array(BOX_FACES, dtype=np.int64))


def make_octahedron(r: float = 1.0) -> Mesh:
    """8-triangle octahedron |x| + |y| + |z| <= r."""
    verts = np.array([
        [ r, 0, 0], [-r, 0, 0], [0,  r, 0], [0, -r, 0], [0, 0,  r], [0, 0, -r],
    ], dtype=np.float64)
    faces = [
        (0, 2, 4), (2, 1, 4), (1, 3, 4), (3, 0, 4),
        (2, 0, 5), (1, 2, 5), (3, 1, 5), (0, 3, 5),
    ]
    return Mesh(verts, faces)


def binary_stl_bytes(triangles: np.ndarray) -> bytes:
    header  = b"\x00" * 80
    count   = struct.pack("<I", len(triangles))
    records = bytearray()
    for tri in triangles:
        records += struct.pack("<fff", 0.0, 0.0, 0.0)
        for v in tri:
            records += struct.pack("<fff", float(v[0]), float(v[1]), float(v[2]))
        records += struct.pack("<H", 0)
    return header + count + bytes(records)


def ascii_stl_text(triangles: np.ndarray) -> str:
    lines = ["solid test"]
    for tri in triangles:
        lines.append("  facet normal 0 0 0")
        lines.append("    outer loop")
        for v in tri:
            lines.append(f"      vertex {v[0]:.6g} {v[1]:.6g} {v[2]:.6g}")
        lines.append("    endloop")
        lines.append("  endfacet")
    lines.append("endsolid test")
    return "\n".join(lines)


@pytest.fixture(autouse=True)
def _reset_package_logger():
    yield
    logger = logging.getLogger("mesh2vox")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def unit_cube() -> Mesh:
    return make_box()


@pytest.fixture
def octahedron() -> Mesh:
    return make_octahedron()


@pytest.fixture
def cube_stl(tmp_path):
    path = tmp_path / "cube.stl"
    path.write_bytes(binary_stl_bytes(make_box().triangle_vertices))
    return path
