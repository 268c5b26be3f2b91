"""Environment interface consumed by training loops and hosts."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Tuple

import numpy as np

from fworld.counters import TimeScale


class Env(ABC):
    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @property
    def desc(self) -> str:
        return ""

    @abstractmethod
    def validate(self) -> None:
        """Raise ConfigError if the env is not usable."""

    @abstractmethod
    def init(self, run: int) -> None:
        """Restart the environment for the given run."""

    @abstractmethod
    def step(self) -> bool:
        """Advance one decision tick and publish the settled percepts."""

    @abstractmethod
    def state(self, element: str) -> Optional[np.ndarray]:
        """Current (settled) percept tensor by name."""

    @abstractmethod
    def action(self, name: str, values: Optional[np.ndarray] = None) -> None:
        """Apply a named action."""

    @abstractmethod
    def counter(self, scale: TimeScale) -> Tuple[int, int, bool]:
        """(cur, prv, changed) for the given time scale."""


__all__ = ["Env"]
