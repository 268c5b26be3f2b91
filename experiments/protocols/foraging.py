from __future__ import annotations

from typing import Any, Dict

from experiments.protocols.base import Protocol
from metrics.schema import TickData


class ForagingProtocol(Protocol):
    """Counts resources consumed per US; bumps cost a fraction of a point."""

    name = "foraging"

    def __init__(self, config: dict | None = None) -> None:
        super().__init__(config)
        cfg = self.config
        self.bump_penalty = float(cfg.get("bump_penalty", 0.1))
        self.target = int(cfg.get("target_consumptions", 0))
        self.consumed: Dict[str, int] = {}
        self.bumps = 0
        self.first_consume_tick = -1
        self.urgent_ticks = 0
        self.ticks_run = 0

    def setup(self, env: Any) -> None:
        self.consumed = {us: 0 for us in env.config.pos_uss}

    def on_tick(self, env: Any, tickdata: TickData, tick_index: int) -> None:
        self.ticks_run += 1
        if tickdata.consumed:
            self.consumed[tickdata.consumed] = self.consumed.get(tickdata.consumed, 0) + 1
            if self.first_consume_tick < 0:
                self.first_consume_tick = tickdata.tick
        if any(v > 0 for v in tickdata.neg_us):
            self.bumps += 1
        if tickdata.urgency > 0:
            self.urgent_ticks += 1

    def is_done(self, env: Any, tickdata: TickData, tick_index: int) -> bool:
        return self.target > 0 and sum(self.consumed.values()) >= self.target

    def summarize(self) -> Dict[str, Any]:
        total = sum(self.consumed.values())
        score = total - self.bump_penalty * self.bumps
        return {
            "ticks_run": self.ticks_run,
            "consumed": dict(sorted(self.consumed.items())),
            "total_consumed": total,
            "first_consume_tick": self.first_consume_tick,
            "bumps": self.bumps,
            "urgent_ticks": self.urgent_ticks,
            "score": score,
        }


__all__ = ["ForagingProtocol"]
