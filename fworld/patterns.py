"""Bit patterns for materials and actions, plus nearest-pattern action decoding."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence, Tuple

import numpy as np

from fworld.config import ConfigError
from fworld.rng import RNGStream

logger = logging.getLogger(__name__)


def correlation(a: np.ndarray, b: np.ndarray) -> float:
    """Pearson correlation of two flattened tensors; 0 when either is constant."""
    x = np.asarray(a, dtype=np.float64).ravel()
    y = np.asarray(b, dtype=np.float64).ravel()
    if x.size != y.size:
        raise ValueError(f"size mismatch: {x.size} vs {y.size}")
    x = x - x.mean()
    y = y - y.mean()
    denom = float(np.sqrt(np.dot(x, x) * np.dot(y, y)))
    if denom <= 0:
        return 0.0
    return float(np.dot(x, y) / denom)


class PatternStore:
    """Name -> float32 pattern of a fixed (Y, X) shape."""

    def __init__(self, shape: Tuple[int, int]) -> None:
        self.shape = (int(shape[0]), int(shape[1]))
        self.pats: Dict[str, np.ndarray] = {}

    def __contains__(self, name: str) -> bool:
        return name in self.pats

    def get(self, name: str) -> Optional[np.ndarray]:
        return self.pats.get(name)

    def set(self, name: str, pat: np.ndarray) -> None:
        arr = np.asarray(pat, dtype=np.float32)
        if arr.shape != self.shape:
            raise ValueError(f"pattern {name!r} has shape {arr.shape}, want {self.shape}")
        self.pats[name] = arr.copy()

    def generate(self, names: Iterable[str], stream: RNGStream, n_on: int) -> None:
        """Fill in random sparse binary patterns for names."""
        ncell = self.shape[0] * self.shape[1]
        n_on = max(1, min(n_on, ncell - 1))
        for name in names:
            flat = np.zeros(ncell, dtype=np.float32)
            flat[stream.sample(range(ncell), n_on)] = 1.0
            self.pats[name] = flat.reshape(self.shape)

    def validate(self, required: Sequence[str]) -> None:
        missing = [n for n in required if n not in self.pats]
        if missing:
            raise ConfigError(f"missing patterns for: {missing}")

    def load_json(self, path: str | Path, known_names: Sequence[str]) -> None:
        """Replace patterns with the records in a JSON file of name -> 2D list."""
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError(f"pattern file {path} must hold a JSON object")
        known = set(known_names)
        loaded: Dict[str, np.ndarray] = {}
        for name, values in data.items():
            if name not in known:
                logger.warning("Pattern name not recognized: %s (in %s)", name, path)
                continue
            arr = np.asarray(values, dtype=np.float32)
            if arr.shape != self.shape:
                logger.warning("Pattern %s has shape %s, want %s; skipped", name, arr.shape, self.shape)
                continue
            loaded[name] = arr
        self.pats = loaded

    def save_json(self, path: str | Path) -> None:
        payload = {name: pat.tolist() for name, pat in self.pats.items()}
        Path(path).write_text(json.dumps(payload, indent=1, sort_keys=True))


def decode_act(
    values: np.ndarray,
    store: PatternStore,
    acts: Sequence[str],
    fwd_margin: float,
    stream: RNGStream,
) -> int:
    """Index of the action whose pattern best correlates with values.

    Forward is picked only when its correlation exceeds fwd_margin times the
    best rival, since it is by far the most frequent action.
    """
    best_name = ""
    best = 0.0
    fwd = 0.0
    for name in acts:
        pat = store.get(name)
        if pat is None:
            continue
        d = correlation(values, pat)
        if name == "Forward":
            fwd = d
        elif best_name == "" or d > best:
            best_name = name
            best = d
    if fwd > fwd_margin * best:
        best_name = "Forward"
    if best_name in acts:
        return list(acts).index(best_name)
    return stream.randrange(len(acts))


__all__ = ["PatternStore", "correlation", "decode_act"]
