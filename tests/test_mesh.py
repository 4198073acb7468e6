"""Tests for Mesh, Bounds and STL loading."""
from __future__ import annotations

import numpy as np
import numpy.testing as npt
import pytest

from mesh2vox import Bounds, DegenerateInputError, Mesh, load_stl
from mesh2vox._math import _stl_to_triangles

from conftest import ascii_stl_text, binary_stl_bytes, make_box


# ---------------------------------------------------------------------------
# Mesh validation
# ---------------------------------------------------------------------------

class TestMeshValidation:
    def setup_method(self):
        self.verts = make_box().vertices

    def test_flat_and_shaped_indices_equivalent(self):
        shaped = Mesh(self.verts, [(0, 1, 2), (0, 2, 3)])
        flat = Mesh(self.verts, [0, 1, 2, 0, 2, 3])
        npt.assert_array_equal(shaped.triangles, flat.triangles)
        assert shaped.triangle_count == 2

    def test_index_count_not_multiple_of_three(self):
        with pytest.raises(DegenerateInputError, match="multiple of 3"):
            Mesh(self.verts, [0, 1, 2, 3])

    def test_index_out_of_range(self):
        with pytest.raises(DegenerateInputError, match="out of range"):
            Mesh(self.verts, [0, 1, 8])

    def test_negative_index(self):
        with pytest.raises(DegenerateInputError, match="out of range"):
            Mesh(self.verts, [0, -1, 2])

    def test_float_indices_rejected(self):
        with pytest.raises(DegenerateInputError, match="integers"):
            Mesh(self.verts, [0.0, 1.0, 2.0])

    def test_bad_vertex_shape(self):
        with pytest.raises(DegenerateInputError, match=r"\(V, 3\)"):
            Mesh(np.zeros((4, 2)), [0, 1, 2])

    def test_nan_vertex(self):
        verts = self.verts.copy()
        verts[3, 1] = np.nan
        with pytest.raises(DegenerateInputError, match="NaN"):
            Mesh(verts, [0, 1, 2])

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            Mesh(self.verts, [0, 1])

    def test_empty_mesh_allowed(self):
        mesh = Mesh([], [])
        assert mesh.vertex_count == 0
        assert mesh.triangle_count == 0
        assert mesh.triangle_vertices.shape == (0, 3, 3)

    def test_vertices_without_triangles(self):
        mesh = Mesh(self.verts, [])
        assert mesh.triangle_count == 0
        npt.assert_array_equal(mesh.bounds.size, [1.0, 1.0, 1.0])


class TestMeshBuffers:
    def test_read_only(self, unit_cube):
        with pytest.raises(ValueError):
            unit_cube.vertices[0, 0] = 5.0
        with pytest.raises(ValueError):
            unit_cube.triangles[0] = 1

    def test_copies_input(self):
        verts = make_box().vertices.copy()
        mesh = Mesh(verts, [0, 1, 2])
        verts[0, 0] = 99.0
        assert mesh.vertices[0, 0] == 0.0

    def test_triangle_vertices(self, unit_cube):
        tv = unit_cube.triangle_vertices
        assert tv.shape == (12, 3, 3)
        npt.assert_array_equal(tv[0], unit_cube.vertices[unit_cube.faces[0]])

    def test_from_triangles_soup(self, unit_cube):
        soup = Mesh.from_triangles(unit_cube.triangle_vertices)
        assert soup.vertex_count == 36
        npt.assert_array_equal(soup.triangle_vertices, unit_cube.triangle_vertices)

    def test_from_triangles_weld(self, unit_cube):
        welded = Mesh.from_triangles(unit_cube.triangle_vertices, weld=True)
        assert welded.vertex_count == 8
        npt.assert_array_equal(welded.triangle_vertices, unit_cube.triangle_vertices)


# ---------------------------------------------------------------------------
# Bounds
# ---------------------------------------------------------------------------

class TestBounds:
    def test_from_mesh(self):
        mesh = make_box(lo=(-1.0, 2.0, 0.5), hi=(3.0, 2.5, 1.5))
        npt.assert_allclose(mesh.bounds.min, [-1.0, 2.0, 0.5])
        npt.assert_allclose(mesh.bounds.size, [4.0, 0.5, 1.0])
        npt.assert_allclose(mesh.bounds.max, [3.0, 2.5, 1.5])
        npt.assert_allclose(mesh.bounds.center, [1.0, 2.25, 1.0])

    def test_from_min_max(self):
        b = Bounds.from_min_max([0, 0, 0], [1, 2, 3])
        npt.assert_array_equal(b.size, [1, 2, 3])

    def test_empty_points(self):
        b = Bounds.from_points(np.empty((0, 3)))
        npt.assert_array_equal(b.min, [0, 0, 0])
        npt.assert_array_equal(b.size, [0, 0, 0])

    def test_negative_size_rejected(self):
        with pytest.raises(DegenerateInputError):
            Bounds([0, 0, 0], [1, -1, 1])


# ---------------------------------------------------------------------------
# STL loading
# ---------------------------------------------------------------------------

class TestStlToTriangles:
    def test_binary_values(self, tmp_path):
        tris = make_box().triangle_vertices
        stl = tmp_path / "box.stl"
        stl.write_bytes(binary_stl_bytes(tris))
        loaded = _stl_to_triangles(stl)
        assert loaded.shape == (12, 3, 3)
        assert loaded.dtype == np.float64
        npt.assert_allclose(loaded, tris, atol=1e-6)

    def test_ascii_values(self, tmp_path):
        tris = make_box().triangle_vertices
        stl = tmp_path / "box.stl"
        stl.write_text(ascii_stl_text(tris))
        npt.assert_allclose(_stl_to_triangles(stl), tris, atol=1e-5)

    def test_ascii_truncated_facet(self, tmp_path):
        stl = tmp_path / "bad.stl"
        stl.write_text("solid x\n vertex 0 0 0\n vertex 1 0 0\nendsolid x\n")
        with pytest.raises(DegenerateInputError):
            _stl_to_triangles(stl)

    @pytest.mark.parametrize("bad", ["vertex 0 0", "vertex 0 x 0", "vertex 1 2 3 4"])
    def test_ascii_malformed_vertex_line(self, tmp_path, bad):
        stl = tmp_path / "bad.stl"
        stl.write_text(f"solid x\n  facet normal 0 0 1\n    {bad}\nendsolid x\n")
        with pytest.raises(DegenerateInputError, match="malformed vertex line 3"):
            _stl_to_triangles(stl)


class TestLoadStl:
    def test_welds_by_default(self, cube_stl):
        mesh = load_stl(cube_stl)
        assert mesh.triangle_count == 12
        assert mesh.vertex_count == 8
        npt.assert_allclose(mesh.bounds.size, [1.0, 1.0, 1.0])

    def test_no_weld(self, cube_stl):
        mesh = load_stl(cube_stl, weld=False)
        assert mesh.vertex_count == 36

    def test_empty_ascii(self, tmp_path):
        stl = tmp_path / "empty.stl"
        stl.write_text("solid empty\nendsolid empty\n")
        mesh = load_stl(stl)
        assert mesh.triangle_count == 0
