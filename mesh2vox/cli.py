"""Command-line entry point: STL in, occupancy ``.npz`` out.

Usage
-----
python -m mesh2vox part.stl                       # 0.2 cells, writes part_occupancy.npz
python -m mesh2vox part.stl --cell-size 0.05      # finer cubic cells
python -m mesh2vox part.stl --cell-size 1 0.5 1   # per-axis cell size
python -m mesh2vox part.stl --workers 1 -v        # sequential, with progress logs
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .errors import Mesh2VoxError
from .grid import save_npz
from .logging_config import setup_logging
from .mesh import load_stl
from .options import DEFAULT_BATCH_SIZE, DEFAULT_CELL_SIZE, VoxelizeOptions
from .kernel import DEFAULT_MAX_DISTANCE
from .pipeline import voxelize


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mesh2vox",
        description="Mark the grid cells whose centres lie inside a closed STL mesh.",
    )
    parser.add_argument("mesh", type=Path, help="Path to a closed binary or ASCII STL file")
    parser.add_argument(
        "--cell-size", type=float, nargs="+", default=list(DEFAULT_CELL_SIZE),
        metavar="S",
        help="Cell edge length: one value for cubic cells or three for SX SY SZ (default 0.2)",
    )
    parser.add_argument(
        "--max-distance", type=float, default=DEFAULT_MAX_DISTANCE,
        help=f"Ignore ray hits further than this (default {DEFAULT_MAX_DISTANCE:g})",
    )
    parser.add_argument(
        "--batch-size", type=int, default=DEFAULT_BATCH_SIZE,
        help=f"Cells per work unit (default {DEFAULT_BATCH_SIZE})",
    )
    parser.add_argument(
        "--workers", type=int, default=None,
        help="Worker threads (default: executor's choice; 1 = sequential)",
    )
    parser.add_argument(
        "--out", type=Path, default=None,
        help="Output .npz path, suffix added if missing (default <mesh>_occupancy.npz next to the mesh)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr")
    parser.add_argument("--log-file", default=None, help="Also write the log to this file")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING, args.log_file)

    if not args.mesh.exists():
        print(f"ERROR: mesh file not found: {args.mesh}", file=sys.stderr)
        return 1

    cell_size = args.cell_size[0] if len(args.cell_size) == 1 else args.cell_size
    out = args.out or args.mesh.with_name(args.mesh.stem + "_occupancy.npz")
    if out.suffix != ".npz":
        # numpy appends the suffix itself; report the file actually written.
        out = out.with_name(out.name + ".npz")

    try:
        options = VoxelizeOptions(
            max_distance=args.max_distance,
            batch_size=args.batch_size,
            workers=args.workers,
        )
        mesh = load_stl(args.mesh)
        print(f"Loaded {mesh.triangle_count:,} triangles from {args.mesh}", flush=True)
        grid, occupancy = voxelize(mesh, cell_size, options=options)
    except Mesh2VoxError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    occupied = int(occupancy.sum())
    print(f"Grid {grid.nx} x {grid.ny} x {grid.nz} = {grid.cell_count:,} cells, "
          f"{occupied:,} occupied", flush=True)

    save_npz(str(out), grid, occupancy)
    print(f"Saved occupancy to {out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
