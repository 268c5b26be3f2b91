"""World grid store: material indices per cell plus tab-separated snapshots."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Tuple

import numpy as np

from fworld.config import ConfigError, MaterialPalette
from fworld.geometry import GridPoint, dist, next_vec_point, norm_vec_line
from fworld.rng import RNGStream

logger = logging.getLogger(__name__)


class WorldGrid:
    """2D grid of material indices, indexed by (x, y) points."""

    def __init__(self, size: Tuple[int, int], palette: MaterialPalette) -> None:
        if size[0] <= 0 or size[1] <= 0:
            raise ConfigError(f"grid size must be positive, got {size}")
        self.size = (int(size[0]), int(size[1]))
        self.palette = palette
        self.cells = np.zeros((self.size[1], self.size[0]), dtype=np.int64)

    def in_bounds(self, p: GridPoint) -> bool:
        return 0 <= p[0] < self.size[0] and 0 <= p[1] < self.size[1]

    def set_cell(self, p: GridPoint, mat: int) -> None:
        self.cells[p[1], p[0]] = mat

    def get_cell(self, p: GridPoint) -> int:
        return int(self.cells[p[1], p[0]])

    def zero(self) -> None:
        self.cells.fill(0)

    def copy(self) -> np.ndarray:
        return self.cells.copy()

    def restore(self, snapshot: np.ndarray) -> None:
        if snapshot.shape != self.cells.shape:
            raise ValueError(f"snapshot shape {snapshot.shape} != grid shape {self.cells.shape}")
        np.copyto(self.cells, snapshot)

    def count(self, mat: int) -> int:
        return int(np.count_nonzero(self.cells == mat))

    # ------------------------------------------------------------------ #
    #  Snapshots                                                          #
    # ------------------------------------------------------------------ #
    def save_text(self, path: str | Path) -> None:
        """Write one tab-terminated field per cell, one line per row; Empty is ''."""
        lines = []
        for y in range(self.size[1]):
            row = []
            for x in range(self.size[0]):
                name = self.palette.name(int(self.cells[y, x]))
                row.append(("" if name == "Empty" else name) + "\t")
            lines.append("".join(row) + "\n")
        with open(path, "w", encoding="utf-8") as fh:
            fh.writelines(lines)

    def load_text(self, path: str | Path) -> None:
        """Replace the grid with a snapshot; missing rows stay Empty."""
        with open(path, "r", encoding="utf-8") as fh:
            text = fh.read()
        self.zero()
        mat_map = self.palette.mat_map
        rows = text.split("\n")
        for y in range(self.size[1]):
            if y >= len(rows) or rows[y] == "":
                break
            fields = rows[y].rstrip("\r").split("\t")
            for x, name in enumerate(fields[: self.size[0]]):
                if name == "":
                    continue
                mat = mat_map.get(name)
                if mat is None:
                    logger.warning("Mat not found: %s (row %d, col %d in %s)", name, y, x, path)
                    continue
                self.cells[y, x] = mat

    # ------------------------------------------------------------------ #
    #  Generation helpers                                                 #
    # ------------------------------------------------------------------ #
    def world_line_horiz(self, st: GridPoint, ed: GridPoint, mat: int) -> None:
        for x in range(min(st[0], ed[0]), max(st[0], ed[0]) + 1):
            self.cells[st[1], x] = mat

    def world_line_vert(self, st: GridPoint, ed: GridPoint, mat: int) -> None:
        for y in range(min(st[1], ed[1]), max(st[1], ed[1]) + 1):
            self.cells[y, st[0]] = mat

    def world_line(self, st: GridPoint, ed: GridPoint, mat: int) -> None:
        """Draw a line of mat from st to ed by stepping along the ray."""
        dx, dy = ed[0] - st[0], ed[1] - st[1]
        if dx == 0:
            self.world_line_vert(st, ed, mat)
            return
        if dy == 0:
            self.world_line_horiz(st, ed, mat)
            return
        length = (dx * dx + dy * dy) ** 0.5
        vec = norm_vec_line((float(dx), float(dy)))
        origin = (float(st[0]), float(st[1]))
        cp = origin
        while True:
            cp, gp = next_vec_point(cp, vec)
            if self.in_bounds(gp):
                self.set_cell(gp, mat)
            if dist(cp, origin) >= length:
                break

    def world_rect(self, st: GridPoint, ed: GridPoint, mat: int) -> None:
        self.world_line_horiz(st, (ed[0], st[1]), mat)
        self.world_line_horiz((st[0], ed[1]), ed, mat)
        self.world_line_vert(st, (st[0], ed[1]), mat)
        self.world_line_vert((ed[0], st[1]), ed, mat)

    def world_random(self, n: int, mat: int, stream: RNGStream) -> None:
        """Scatter n cells of mat over currently empty cells."""
        free = int(np.count_nonzero(self.cells == 0))
        if n > free:
            raise ConfigError(f"cannot place {n} x {self.palette.name(mat)}: only {free} empty cells")
        placed = 0
        while placed < n:
            x = stream.randrange(self.size[0])
            y = stream.randrange(self.size[1])
            if self.cells[y, x] == 0:
                self.cells[y, x] = mat
                placed += 1


__all__ = ["WorldGrid"]
