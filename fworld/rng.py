"""Seeded random streams for the environment.

World layout, patterns, instinct rolls, action decoding and arbitration each
draw from their own named stream, so adding draws to one concern never shifts
another. Two environments built with the same seed and replica index replay
identically.
"""

from __future__ import annotations

import hashlib
import random
from typing import Any, Dict, List, Sequence


def stream_seed(seed: int, name: str, replica: int = 0) -> int:
    """63-bit seed for stream name of the given replica."""
    digest = hashlib.sha256(f"{seed}:{replica}:{name}".encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big") & ((1 << 63) - 1)


class RNGStream:
    """One named stream; thin wrapper over a private random.Random."""

    def __init__(self, seed: int) -> None:
        self.seed = seed
        self._random = random.Random(seed)

    def __repr__(self) -> str:
        return f"RNGStream(seed={self.seed})"

    def random(self) -> float:
        return self._random.random()

    def bool_p(self, p: float) -> bool:
        """True with probability p."""
        return self._random.random() < p

    def randrange(self, n: int) -> int:
        return self._random.randrange(n)

    def gauss(self, mu: float = 0.0, sigma: float = 1.0) -> float:
        return self._random.gauss(mu, sigma)

    def sample(self, population: Sequence[Any], k: int) -> List[Any]:
        return self._random.sample(population, k)


class RNG:
    """Hands out cached RNGStreams keyed by name."""

    def __init__(self, seed: int, replica: int = 0) -> None:
        self.seed = seed
        self.replica = replica
        self._streams: Dict[str, RNGStream] = {}

    def stream(self, name: str) -> RNGStream:
        stream = self._streams.get(name)
        if stream is None:
            stream = RNGStream(stream_seed(self.seed, name, self.replica))
            self._streams[name] = stream
        return stream

    def names(self) -> List[str]:
        return sorted(self._streams)


__all__ = ["RNG", "RNGStream", "stream_seed"]
