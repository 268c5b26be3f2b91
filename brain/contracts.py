"""Data contracts exchanged between the environment and decision policies."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class InstinctDecision:
    """Reflex action chosen by the instinct policy for one tick."""

    act: int  # index into the env's action list
    act_name: str
    urgency: float  # probability the reflex should override a learned action
    should_gate: bool = False
    trace: str = ""

    def validate(self) -> None:
        if self.act < 0:
            raise ValueError(f"act must be a valid index, got {self.act}")
        if not 0.0 <= self.urgency <= 1.0:
            raise ValueError(f"urgency must be in [0,1], got {self.urgency}")


@dataclass(frozen=True)
class ArbitratedAction:
    """Action actually taken after blending reflex and network proposals."""

    act: int
    instinct_act: int
    net_act: int  # -1 when no network proposal was available
    source: str  # "instinct" or "network"

    @property
    def act_match(self) -> bool:
        return self.net_act == self.instinct_act

    def validate(self) -> None:
        if self.source not in ("instinct", "network"):
            raise ValueError(f"source must be 'instinct' or 'network', got {self.source}")
        if self.act < 0 or self.instinct_act < 0:
            raise ValueError("action indices must be non-negative")


__all__ = ["ArbitratedAction", "InstinctDecision"]
