"""Digests for tick traces and percept tensors.

``tick_hash`` and ``RunHash`` fingerprint the logged records so two runs with
the same seed can be compared by a single string. ``percept_checksum`` is
stored in each record and covers the settled percept tensors, which are too
large to log.
"""

from __future__ import annotations

import hashlib
from typing import Iterable, Tuple

import numpy as np

from .logger import TickLike, canonical_json, tick_record


def tick_hash(tick: TickLike) -> str:
    return hashlib.sha256(canonical_json(tick_record(tick)).encode("utf-8")).hexdigest()


def percept_checksum(states: Iterable[Tuple[str, np.ndarray]]) -> str:
    """Short digest over named percept tensors, visited in name order."""
    hasher = hashlib.sha256()
    for name, arr in sorted(states, key=lambda item: item[0]):
        hasher.update(name.encode("utf-8"))
        hasher.update(np.ascontiguousarray(arr, dtype=np.float32).tobytes())
    return hasher.hexdigest()[:16]


class RunHash:
    """Chains per-tick hashes into one digest for the whole run."""

    def __init__(self) -> None:
        self.n_ticks = 0
        self._hasher = hashlib.sha256()

    def update(self, tick: TickLike) -> str:
        digest = tick_hash(tick)
        self._hasher.update(digest.encode("utf-8"))
        self.n_ticks += 1
        return digest

    def hexdigest(self) -> str:
        return self._hasher.hexdigest()


__all__ = ["RunHash", "percept_checksum", "tick_hash"]
