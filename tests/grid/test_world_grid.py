import logging

import numpy as np
import pytest

from fworld.config import ConfigError, FWorldConfig
from fworld.grid import WorldGrid
from fworld.rng import RNG


def make_grid(size=(5, 4)):
    return WorldGrid(size, FWorldConfig().palette())


def test_set_get_and_shape():
    grid = make_grid((5, 4))
    assert grid.cells.shape == (4, 5)
    grid.set_cell((4, 3), 2)
    assert grid.get_cell((4, 3)) == 2
    assert grid.cells[3, 4] == 2
    assert grid.in_bounds((4, 3))
    assert not grid.in_bounds((5, 0))
    assert not grid.in_bounds((0, -1))


def test_zero_size_rejected():
    with pytest.raises(ConfigError):
        make_grid((0, 4))


def test_save_writes_empty_as_blank_field(tmp_path):
    grid = make_grid((3, 2))
    pal = grid.palette
    grid.set_cell((0, 0), pal.index("Wall"))
    grid.set_cell((2, 0), pal.index("Water"))
    path = tmp_path / "world.tsv"
    grid.save_text(path)
    lines = path.read_text().split("\n")
    assert lines[0] == "Wall\t\tWater\t"
    assert lines[1] == "\t\t\t"


def test_save_load_round_trip(tmp_path):
    grid = make_grid((6, 5))
    stream = RNG(3).stream("world")
    grid.world_rect((0, 0), (5, 4), 1)
    grid.world_random(4, grid.palette.index("Salt"), stream)
    grid.set_cell((2, 2), grid.palette.index("WaterWas"))
    path = tmp_path / "world.tsv"
    grid.save_text(path)

    fresh = make_grid((6, 5))
    fresh.load_text(path)
    np.testing.assert_array_equal(fresh.cells, grid.cells)


def test_load_skips_unknown_names(tmp_path, caplog):
    path = tmp_path / "world.tsv"
    path.write_text("Wall\tBogus\tWater\t\n")
    grid = make_grid((3, 1))
    with caplog.at_level(logging.WARNING, logger="fworld.grid"):
        grid.load_text(path)
    assert grid.get_cell((0, 0)) == grid.palette.index("Wall")
    assert grid.get_cell((1, 0)) == 0
    assert grid.get_cell((2, 0)) == grid.palette.index("Water")
    assert "Mat not found: Bogus" in caplog.text


def test_short_file_leaves_rows_empty(tmp_path):
    path = tmp_path / "world.tsv"
    path.write_text("Wall\tWall\tWall\t\n")
    grid = make_grid((3, 3))
    grid.cells.fill(2)
    grid.load_text(path)
    assert list(grid.cells[0]) == [1, 1, 1]
    assert grid.cells[1:].sum() == 0


def test_missing_file_raises_oserror(tmp_path):
    grid = make_grid()
    with pytest.raises(OSError):
        grid.load_text(tmp_path / "nope.tsv")


def test_world_rect_and_lines():
    grid = make_grid((5, 5))
    grid.world_rect((0, 0), (4, 4), 1)
    assert grid.count(1) == 16
    assert grid.cells[1:4, 1:4].sum() == 0

    grid.zero()
    grid.world_line((0, 0), (3, 3), 1)
    for p in [(1, 1), (2, 2), (3, 3)]:
        assert grid.get_cell(p) == 1

    grid.zero()
    grid.world_line((1, 4), (1, 0), 1)
    assert grid.count(1) == 5


def test_world_random_only_fills_empty_cells():
    grid = make_grid((4, 4))
    grid.world_rect((0, 0), (3, 3), 1)
    grid.world_random(4, 2, RNG(1).stream("world"))
    assert grid.count(2) == 4
    assert grid.count(1) == 12
    with pytest.raises(ConfigError):
        grid.world_random(1, 3, RNG(1).stream("world"))
