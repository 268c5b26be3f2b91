"""Per-tick record of an FWorld run."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Tuple

SCHEMA_VERSION = "1.0.0"


@dataclass
class TickData:
    """Single source of truth for analysis and the replay API."""

    schema_version: str = SCHEMA_VERSION
    tick: int = 0
    trial: int = 0
    epoch: int = 0
    event: int = 0
    scene: int = 0
    # Pose
    pos: Tuple[int, int] = (0, 0)
    head_dir: int = 0
    # Action selection
    action: str = "None"
    instinct_action: str = "None"
    net_action: str = ""
    act_match: bool = False
    urgency: float = 0.0
    should_gate: bool = False
    effort: float = 0.0
    # USs
    pos_us: List[float] = field(default_factory=list)
    neg_us: List[float] = field(default_factory=list)
    consumed: str = ""
    # Percepts
    percept_checksum: str = ""
    # Assay info
    protocol_name: str = ""

    def to_ordered_dict(self) -> Dict[str, Any]:
        """Return a plain dict in schema order for deterministic serialization."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def validate(self) -> None:
        if not 0.0 <= self.urgency <= 1.0:
            raise ValueError(f"urgency must be in [0,1], got {self.urgency}")
        if not 0 <= self.head_dir < 360:
            raise ValueError(f"head_dir must be in [0,360), got {self.head_dir}")
        if self.effort < 0:
            raise ValueError(f"effort must be non-negative, got {self.effort}")


__all__ = ["SCHEMA_VERSION", "TickData"]
