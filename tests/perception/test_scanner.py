import math

import pytest

from fworld.config import FWorldConfig
from fworld.grid import WorldGrid
from fworld.sensors import PROX_NAMES, cast_ray, max_log_depth, scan_depth, scan_fovea, scan_prox


def walled_grid(size=(10, 10)):
    grid = WorldGrid(size, FWorldConfig().palette())
    grid.world_rect((0, 0), (size[0] - 1, size[1] - 1), grid.palette.index("Wall"))
    return grid


def test_wide_scan_ray_count_and_order():
    grid = walled_grid()
    scan = scan_depth(grid, (5.0, 5.0), 0, fov=180, vis_ang_inc=45)
    assert scan.angles == [90, 45, 0, -45, -90]
    assert len(scan) == 5
    assert scan.depths[2] == pytest.approx(4.0)
    assert scan.depths[0] == pytest.approx(4.0)
    assert scan.depths[4] == pytest.approx(5.0)
    assert all(m == 1 for m in scan.mats)


def test_log_depth_normalization():
    grid = walled_grid()
    scan = scan_depth(grid, (5.0, 5.0), 0, fov=180, vis_ang_inc=45)
    maxld = math.log(1 + math.sqrt(200))
    assert max_log_depth((10, 10)) == pytest.approx(maxld)
    assert scan.depth_logs[2] == pytest.approx(math.log(5.0) / maxld)
    assert all(0 < dl <= 1 for dl in scan.depth_logs)


def test_wide_scan_sees_through_resources():
    grid = walled_grid()
    grid.set_cell((7, 5), grid.palette.index("Water"))
    scan = scan_depth(grid, (5.0, 5.0), 0, fov=180, vis_ang_inc=45)
    assert scan.depths[2] == pytest.approx(4.0)
    assert scan.mats[2] == grid.palette.index("Wall")


def test_fovea_stops_at_first_object():
    grid = walled_grid()
    water = grid.palette.index("Water")
    grid.set_cell((7, 5), water)
    scan = scan_fovea(grid, (5.0, 5.0), 0, fovea_size=1, fovea_ang_inc=5)
    assert scan.angles == [5, 0, -5]
    assert scan.mats[1] == water
    assert scan.depths[1] == pytest.approx(2.0)


def test_no_hit_is_far():
    grid = WorldGrid((3, 3), FWorldConfig().palette())
    depth, mat = cast_ray(grid, (1.0, 1.0), 0, grid.palette.is_barrier)
    assert (depth, mat) == (-1.0, 0)
    scan = scan_depth(grid, (1.0, 1.0), 0, fov=180, vis_ang_inc=90)
    assert scan.depths == [-1.0, -1.0, -1.0]
    assert scan.depth_logs == [1.0, 1.0, 1.0]


def test_prox_directions():
    grid = walled_grid()
    pal = grid.palette
    grid.set_cell((6, 5), pal.index("Water"))
    grid.set_cell((5, 6), pal.index("Salt"))
    prox = scan_prox(grid, (5.0, 5.0), 0)
    assert prox.positions == [(6, 5), (5, 6), (5, 4), (4, 5)]
    named = dict(zip(PROX_NAMES, prox.mats))
    assert named["left"] == pal.index("Salt")
    assert prox.front == pal.index("Water")
    assert prox.mats[2] == 0
    assert prox.back == 0


def test_prox_off_grid_reads_as_barrier():
    grid = WorldGrid((3, 3), FWorldConfig().palette())
    prox = scan_prox(grid, (0.0, 0.0), 0)
    assert prox.mats == [0, 0, 1, 1]
