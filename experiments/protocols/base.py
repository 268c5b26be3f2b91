"""Protocol base classes for headless FWorld experiments."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict

from fworld.config import FWorldConfig
from metrics.schema import TickData


class Protocol(ABC):
    name: str = "base"

    def __init__(self, config: dict | None = None) -> None:
        cfg = config or {}
        self.config = cfg
        # share of non-urgent ticks handed to the noisy cortex stand-in
        self.pct_cortex = float(cfg.get("pct_cortex", 0.0))
        self.cortex_noise = float(cfg.get("cortex_noise", 0.2))
        if not 0.0 <= self.pct_cortex <= 1.0:
            raise ValueError(f"pct_cortex must be in [0,1], got {self.pct_cortex}")
        if self.cortex_noise < 0:
            raise ValueError(f"cortex_noise must be non-negative, got {self.cortex_noise}")

    def world_config(self) -> FWorldConfig:
        """World settings for this protocol; the "world" key overrides defaults."""
        return FWorldConfig.from_dict(dict(self.config.get("world", {})))

    @abstractmethod
    def setup(self, env: Any) -> None:
        """Deterministically place the agent once the world is initialised."""

    @abstractmethod
    def on_tick(self, env: Any, tickdata: TickData, tick_index: int) -> None:
        """Hook invoked every tick."""

    @abstractmethod
    def is_done(self, env: Any, tickdata: TickData, tick_index: int) -> bool:
        """Return True to end the run early."""

    @abstractmethod
    def summarize(self) -> Dict[str, Any]:
        """Return summary metrics and score."""


__all__ = ["Protocol"]
