"""voxelize_demo.py — closed mesh → occupancy grid demo.

Voxelizes an STL file, or a built-in UV sphere when no file is given, and
shows the occupied cells as a matplotlib voxel plot.

Usage
-----
python examples/mesh2vox/voxelize_demo.py                       # UV sphere, 0.1 cells
python examples/mesh2vox/voxelize_demo.py --stl part.stl --cell 2.5
python examples/mesh2vox/voxelize_demo.py --no-plot             # numbers only

Outputs
-------
<name>_occupancy.npz — occupancy, dims, origin, cell_size (see mesh2vox.save_npz)
<name>_occupancy.png — voxel rendering (needs matplotlib: pip install .[viz])
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

import numpy as np

from mesh2vox import Mesh, load_stl, occupied_cells, save_npz, voxelize

_EXAMPLES_DIR = Path(__file__).parent


# ---------------------------------------------------------------------------
# Built-in mesh
# ---------------------------------------------------------------------------

def uv_sphere(radius: float = 1.0, n_lat: int = 16, n_lon: int = 32) -> Mesh:
    """Closed UV sphere centred at the origin (poles on the Y axis)."""
    verts = [[0.0, radius, 0.0]]
    for i in range(1, n_lat):
        theta = np.pi * i / n_lat
        for j in range(n_lon):
            phi = 2.0 * np.pi * j / n_lon
            verts.append([
                radius * np.sin(theta) * np.cos(phi),
                radius * np.cos(theta),
                radius * np.sin(theta) * np.sin(phi),
            ])
    verts.append([0.0, -radius, 0.0])
    bottom = len(verts) - 1

    def ring(i, j):
        return 1 + (i - 1) * n_lon + (j % n_lon)

    faces = []
    for j in range(n_lon):
        faces.append((0, ring(1, j + 1), ring(1, j)))
        faces.append((bottom, ring(n_lat - 1, j), ring(n_lat - 1, j + 1)))
    for i in range(1, n_lat - 1):
        for j in range(n_lon):
            a, b = ring(i, j), ring(i, j + 1)
            c, d = ring(i + 1, j), ring(i + 1, j + 1)
            faces.append((a, b, d))
            faces.append((a, d, c))
    return Mesh(np.array(verts), np.array(faces))


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> None:
    parser = argparse.ArgumentParser(description="Mesh → occupancy grid demo")
    parser.add_argument("--stl", type=Path, default=None,
                        help="Closed STL mesh (default: built-in UV sphere of radius 1)")
    parser.add_argument("--cell", type=float, default=0.1,
                        help="Cubic cell size (default 0.1)")
    parser.add_argument("--workers", type=int, default=None,
                        help="Worker threads (default: executor's choice)")
    parser.add_argument("--no-plot", action="store_true", help="Skip the matplotlib rendering")
    args = parser.parse_args()

    if args.stl is None:
        mesh, name = uv_sphere(), "sphere"
    elif not args.stl.exists():
        print(f"ERROR: {args.stl} not found", file=sys.stderr)
        sys.exit(1)
    else:
        mesh, name = load_stl(args.stl), args.stl.stem
    print(f"{name}: {mesh.triangle_count:,} triangles, bounds {mesh.bounds}", flush=True)

    start = time.perf_counter()
    grid, occupancy = voxelize(mesh, args.cell, workers=args.workers)
    elapsed = time.perf_counter() - start
    occupied = int(occupancy.sum())
    print(f"Grid {grid.dims}: {occupied:,} / {grid.cell_count:,} cells occupied "
          f"({elapsed:.2f} s)", flush=True)

    if name == "sphere":
        # Occupied volume should approach 4/3 pi r^3 as the cells shrink.
        volume = occupied * float(np.prod(grid.cell_size))
        print(f"  occupied volume {volume:.4f}  (exact {4.0 / 3.0 * np.pi:.4f})")

    first = next(occupied_cells(grid, occupancy), None)
    if first is not None:
        print(f"  first occupied cell #{first[0]} at {np.round(first[1], 4).tolist()}")

    out = _EXAMPLES_DIR / f"{name}_occupancy.npz"
    save_npz(str(out), grid, occupancy)
    print(f"Saved occupancy to {out}")

    if args.no_plot:
        return
    try:
        import matplotlib.pyplot as plt
    except ImportError:
        print("matplotlib not installed; skipping plot  (pip install .[viz])", file=sys.stderr)
        return

    # voxels() wants [x, y, z] indexing; the grid reshapes to (nz, ny, nx).
    filled = grid.reshape(occupancy).transpose(2, 1, 0)
    fig = plt.figure(figsize=(7, 7), facecolor="#111111")
    ax = fig.add_subplot(projection="3d")
    ax.set_facecolor("#111111")
    ax.voxels(filled, facecolors="#f2c14e", edgecolors="#7a5c12", linewidth=0.2)
    ax.set_box_aspect(grid.dims)
    ax.set_axis_off()
    ax.set_title(f"{name} — {occupied:,} occupied cells", color="white")

    out_png = out.with_suffix(".png")
    fig.savefig(out_png, dpi=150, bbox_inches="tight", facecolor=fig.get_facecolor())
    plt.close(fig)
    print(f"Saved: {out_png}")


if __name__ == "__main__":
    main()
