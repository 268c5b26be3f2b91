"""Population codes: scalars rendered as overlapping Gaussian tuning curves."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np


@dataclass
class PopCode1D:
    """Gaussian bump code over a linear range.

    Unit i is tuned to min + i * (max - min) / (n - 1); its activation is
    exp(-((target - val) / (sigma * (max - min)))^2), zeroed below thr.
    """

    min: float = -0.5
    max: float = 1.5
    sigma: float = 0.2
    clip: bool = True
    thr: float = 0.1
    min_sum: float = 0.2

    def targets(self, n: int) -> np.ndarray:
        return np.linspace(self.min, self.max, n, dtype=np.float64)

    def encode(self, val: float, n: int) -> np.ndarray:
        if n < 2:
            raise ValueError(f"population code needs at least 2 units, got {n}")
        if self.clip:
            val = min(max(val, self.min), self.max)
        sr = self.sigma * (self.max - self.min)
        pat = np.zeros(n, dtype=np.float32)
        if sr <= 0:
            return pat
        d = (self.targets(n) - val) / sr
        act = np.exp(-(d * d))
        act[act < self.thr] = 0.0
        pat[:] = act
        return pat

    def decode(self, pat: np.ndarray) -> float:
        acts = np.asarray(pat, dtype=np.float64).ravel().copy()
        acts[acts < self.thr] = 0.0
        total = max(float(acts.sum()), self.min_sum)
        return float(np.dot(self.targets(acts.size), acts) / total)


@dataclass
class PopCodeRing:
    """Gaussian bump code over a circular range (e.g. heading / 360)."""

    min: float = 0.0
    max: float = 1.0
    sigma: float = 0.1
    thr: float = 0.1

    def targets(self, n: int) -> np.ndarray:
        return self.min + np.arange(n, dtype=np.float64) * (self.max - self.min) / n

    def _wrapped(self, val: float, n: int) -> np.ndarray:
        rng = self.max - self.min
        d = self.targets(n) - val
        d = (d + rng / 2) % rng - rng / 2
        return d

    def encode(self, val: float, n: int) -> np.ndarray:
        if n < 2:
            raise ValueError(f"population code needs at least 2 units, got {n}")
        sr = self.sigma * (self.max - self.min)
        pat = np.zeros(n, dtype=np.float32)
        if sr <= 0:
            return pat
        d = self._wrapped(val, n) / sr
        act = np.exp(-(d * d))
        act[act < self.thr] = 0.0
        pat[:] = act
        return pat

    def decode(self, pat: np.ndarray) -> float:
        acts = np.asarray(pat, dtype=np.float64).ravel().copy()
        acts[acts < self.thr] = 0.0
        if acts.sum() <= 0:
            return self.min
        rng = self.max - self.min
        theta = (self.targets(acts.size) - self.min) / rng * 2 * math.pi
        ang = math.atan2(float(np.dot(acts, np.sin(theta))), float(np.dot(acts, np.cos(theta))))
        return self.min + (ang % (2 * math.pi)) / (2 * math.pi) * rng


__all__ = ["PopCode1D", "PopCodeRing"]
