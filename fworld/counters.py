"""Nested run / epoch / trial counters and the orthogonal tick-scale counters."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Tuple


class TimeScale(Enum):
    RUN = "Run"
    EPOCH = "Epoch"
    TRIAL = "Trial"
    TICK = "Tick"
    EVENT = "Event"
    SCENE = "Scene"
    EPISODE = "Episode"


@dataclass
class Counter:
    """Current / previous value with a changed flag and optional wrap-around max."""

    scale: TimeScale
    cur: int = 0
    prv: int = -1
    chg: bool = False
    max: int = 0

    def init(self) -> None:
        self.cur = 0
        self.prv = -1
        self.chg = False

    def same(self) -> None:
        self.chg = False

    def incr(self) -> bool:
        """Advance by one; True when the counter wrapped past max back to 0."""
        self.chg = True
        self.prv = self.cur
        self.cur += 1
        if self.max > 0 and self.cur >= self.max:
            self.cur = 0
            return True
        return False

    def set(self, cur: int) -> bool:
        if cur == self.cur:
            self.chg = False
            return False
        self.chg = True
        self.prv = self.cur
        self.cur = cur
        return True

    def query(self) -> Tuple[int, int, bool]:
        return self.cur, self.prv, self.chg


@dataclass
class Counters:
    run: Counter = field(default_factory=lambda: Counter(TimeScale.RUN))
    epoch: Counter = field(default_factory=lambda: Counter(TimeScale.EPOCH))
    trial: Counter = field(default_factory=lambda: Counter(TimeScale.TRIAL))
    tick: Counter = field(default_factory=lambda: Counter(TimeScale.TICK))
    event: Counter = field(default_factory=lambda: Counter(TimeScale.EVENT))
    scene: Counter = field(default_factory=lambda: Counter(TimeScale.SCENE))
    episode: Counter = field(default_factory=lambda: Counter(TimeScale.EPISODE))

    def by_scale(self) -> Dict[TimeScale, Counter]:
        return {
            TimeScale.RUN: self.run,
            TimeScale.EPOCH: self.epoch,
            TimeScale.TRIAL: self.trial,
            TimeScale.TICK: self.tick,
            TimeScale.EVENT: self.event,
            TimeScale.SCENE: self.scene,
            TimeScale.EPISODE: self.episode,
        }

    def init_all(self, run: int) -> None:
        for ctr in self.by_scale().values():
            ctr.init()
        self.run.cur = run
        # first step() lands on 0
        self.trial.cur = -1
        self.tick.cur = -1
        self.event.cur = -1


__all__ = ["Counter", "Counters", "TimeScale"]
