from __future__ import annotations

from typing import Any, Dict, Set, Tuple

from experiments.protocols.base import Protocol
from metrics.schema import TickData


class ExplorationProtocol(Protocol):
    """Coverage of the grid: distinct cells visited, penalised by bumps."""

    name = "exploration"

    def __init__(self, config: dict | None = None) -> None:
        super().__init__(config)
        cfg = self.config
        self.replica = cfg.get("replica")
        self.bump_penalty = float(cfg.get("bump_penalty", 0.5))
        self.visited: Set[Tuple[int, int]] = set()
        self.bumps = 0
        self.turns = 0
        self.ticks_run = 0

    def setup(self, env: Any) -> None:
        if self.replica is not None:
            env.init_pos(int(self.replica))
            env.place_agent(env.pos_i, env.head_dir)
        self.visited = {tuple(env.pos_i)}

    def on_tick(self, env: Any, tickdata: TickData, tick_index: int) -> None:
        self.ticks_run += 1
        self.visited.add(tuple(tickdata.pos))
        if any(v > 0 for v in tickdata.neg_us):
            self.bumps += 1
        if tickdata.action in ("Left", "Right"):
            self.turns += 1

    def is_done(self, env: Any, tickdata: TickData, tick_index: int) -> bool:
        return False

    def summarize(self) -> Dict[str, Any]:
        cells = len(self.visited)
        return {
            "ticks_run": self.ticks_run,
            "cells_visited": cells,
            "bumps": self.bumps,
            "turns": self.turns,
            "score": cells - self.bump_penalty * self.bumps,
        }


__all__ = ["ExplorationProtocol"]
