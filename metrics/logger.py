"""Tick log: one canonical JSON object per line (ticks.jsonl)."""

from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import IO, Any, Dict, List, Mapping, Union

from .schema import TickData

TickLike = Union[TickData, Mapping[str, Any]]


def tick_record(tick: TickLike) -> Dict[str, Any]:
    """Plain dict for a TickData, another dataclass, or a mapping."""
    if isinstance(tick, TickData):
        return tick.to_ordered_dict()
    if is_dataclass(tick):
        return asdict(tick)
    if isinstance(tick, Mapping):
        return dict(tick)
    raise TypeError(f"Unsupported tick type: {type(tick)!r}")


def canonical_json(payload: Mapping[str, Any]) -> str:
    # sorted keys, no whitespace: same run, same bytes
    return json.dumps(payload, sort_keys=True, separators=(",", ":"))


class JsonlLogger:
    """Writes ticks to path, truncating it on open; usable as a context manager."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.n_written = 0
        self._fh: IO[str] | None = None

    def __enter__(self) -> "JsonlLogger":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._fh is not None

    def open(self) -> None:
        if self._fh is not None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._fh = self.path.open("w", encoding="utf-8")
        self.n_written = 0

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None

    def write_tick(self, tick: TickLike) -> None:
        self.open()
        assert self._fh is not None
        self._fh.write(canonical_json(tick_record(tick)) + "\n")
        self._fh.flush()
        self.n_written += 1


def read_ticks(path: str | Path) -> List[Dict[str, Any]]:
    """Load every record of a ticks.jsonl file; blank lines are skipped."""
    with Path(path).open("r", encoding="utf-8") as fh:
        return [json.loads(line) for line in fh if line.strip()]


__all__ = ["JsonlLogger", "canonical_json", "read_ticks", "tick_record"]
