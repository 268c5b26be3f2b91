"""Perception scanner: ray-cast depth, foveal identity and proximal contact."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, List, Tuple

from fworld.geometry import GridPoint, Vector, ang_vec, dist, next_vec_point
from fworld.grid import WorldGrid

# front, left, right, back relative to heading; Left turns add to the angle
PROX_ANGLES: Tuple[int, ...] = (0, 90, -90, 180)
PROX_NAMES: Tuple[str, ...] = ("front", "left", "right", "back")


@dataclass
class RayScan:
    """Per-ray raw depth (-1 = no hit), normalized log depth and material."""

    angles: List[int] = field(default_factory=list)
    depths: List[float] = field(default_factory=list)
    depth_logs: List[float] = field(default_factory=list)
    mats: List[int] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.depths)


@dataclass
class ProxScan:
    """Material and grid point one step away in each PROX_ANGLES direction."""

    mats: List[int] = field(default_factory=lambda: [0, 0, 0, 0])
    positions: List[GridPoint] = field(default_factory=lambda: [(0, 0)] * 4)

    @property
    def front(self) -> int:
        return self.mats[0]

    @property
    def back(self) -> int:
        return self.mats[3]


def max_log_depth(size: Tuple[int, int]) -> float:
    return math.log(1 + math.sqrt(size[0] * size[0] + size[1] * size[1]))


def cast_ray(grid: WorldGrid, origin: Vector, ang: int, is_hit: Callable[[int], bool]) -> Tuple[float, int]:
    """Step cell by cell from origin until is_hit or the grid edge.

    Returns (depth, mat); depth is -1 and mat 0 when nothing was hit.
    """
    vec = ang_vec(ang)
    cp = origin
    while True:
        cp, gp = next_vec_point(cp, vec)
        if not grid.in_bounds(gp):
            return -1.0, 0
        mat = grid.get_cell(gp)
        if is_hit(mat):
            return dist(cp, origin), mat


def _log_depth(depth: float, maxld: float) -> float:
    if depth > 0:
        return math.log(1 + depth) / maxld
    return 1.0


def _scan(grid: WorldGrid, origin: Vector, head_dir: int, angles: List[int], is_hit: Callable[[int], bool]) -> RayScan:
    maxld = max_log_depth(grid.size)
    scan = RayScan(angles=list(angles))
    for ang in angles:
        depth, mat = cast_ray(grid, origin, ang + head_dir, is_hit)
        scan.depths.append(depth)
        scan.depth_logs.append(_log_depth(depth, maxld))
        scan.mats.append(mat)
    return scan


def scan_depth(grid: WorldGrid, origin: Vector, head_dir: int, fov: int, vis_ang_inc: int) -> RayScan:
    """Wide field: rays from +fov/2 down to -fov/2 that stop only at barriers."""
    half = fov // 2
    angles = list(range(half, -half - 1, -vis_ang_inc))
    return _scan(grid, origin, head_dir, angles, grid.palette.is_barrier)


def scan_fovea(grid: WorldGrid, origin: Vector, head_dir: int, fovea_size: int, fovea_ang_inc: int) -> RayScan:
    """Narrow field: rays that stop at the first non-empty material."""
    nmat = len(grid.palette)
    angles = [-fi * fovea_ang_inc for fi in range(-fovea_size, fovea_size + 1)]
    return _scan(grid, origin, head_dir, angles, lambda mat: 0 < mat < nmat)


def scan_prox(grid: WorldGrid, origin: Vector, head_dir: int) -> ProxScan:
    """Contact sensing one cell away; off-grid cells read as the first barrier."""
    scan = ProxScan(mats=[], positions=[])
    for rel in PROX_ANGLES:
        _, gp = next_vec_point(origin, ang_vec(head_dir + rel))
        scan.positions.append(gp)
        scan.mats.append(grid.get_cell(gp) if grid.in_bounds(gp) else 1)
    return scan


__all__ = [
    "PROX_ANGLES",
    "PROX_NAMES",
    "ProxScan",
    "RayScan",
    "cast_ray",
    "max_log_depth",
    "scan_depth",
    "scan_fovea",
    "scan_prox",
]
