"""Consumption events and the delayed refresh of consumed resources."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from fworld.geometry import GridPoint, Vector
from fworld.grid import WorldGrid


@dataclass(frozen=True)
class WorldEvent:
    """Snapshot of the agent and the material involved in an event."""

    tick: int
    pos_i: GridPoint
    pos_f: Vector
    angle: int
    act: int
    mat: int
    mat_pos: GridPoint


@dataclass
class EventLog:
    """Pending refreshes plus the full event history, both keyed by tick."""

    pending: Dict[int, List[WorldEvent]] = field(default_factory=dict)
    history: Dict[int, List[WorldEvent]] = field(default_factory=dict)

    def add(self, event: WorldEvent) -> None:
        self.pending.setdefault(event.tick, []).append(event)
        self.history.setdefault(event.tick, []).append(event)

    def clear(self) -> None:
        self.pending.clear()
        self.history.clear()

    def n_pending(self) -> int:
        return sum(len(evs) for evs in self.pending.values())

    def n_total(self) -> int:
        return sum(len(evs) for evs in self.history.values())

    def refresh(self, grid: WorldGrid, tick: int, delay: int) -> List[WorldEvent]:
        """Restore materials whose events are at least delay ticks old."""
        restored: List[WorldEvent] = []
        for t in [t for t in self.pending if t + delay <= tick]:
            for event in self.pending.pop(t):
                grid.set_cell(event.mat_pos, event.mat)
                restored.append(event)
        return restored


__all__ = ["EventLog", "WorldEvent"]
