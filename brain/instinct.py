"""Hand-coded reflex policy: wall avoidance, approach, consume, explore.

The policy reads the environment's latest scans (never the rendered tensors)
and returns an action plus an urgency in [0, 1] saying how strongly the
reflex should override a learned action.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Any, Dict, Optional, Sequence, Tuple

from brain.contracts import InstinctDecision
from fworld.config import MOVE_ACTS, ConfigError, MaterialPalette
from fworld.rng import RNGStream
from fworld.sensors import RayScan

if TYPE_CHECKING:
    from fworld.engine import FWorld

NO_DEPTH = 100000.0


@dataclass
class InstinctParams:
    far_dist: float = 10.0
    far_turn_p: float = 0.2
    rnd_exp_same: float = 0.33
    rnd_exp_turn: float = 0.33
    softmax_gain: float = 10.0
    near_depth: float = 4.0
    tie_margin: float = 0.1  # min-depth gap below which sides compare by average

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "InstinctParams":
        data = dict(data or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown instinct params: {unknown}")
        params = cls(**{k: float(v) for k, v in data.items()})
        params.validate()
        return params

    def validate(self) -> None:
        for name in ("far_turn_p", "rnd_exp_same", "rnd_exp_turn"):
            val = getattr(self, name)
            if not 0.0 <= val <= 1.0:
                raise ConfigError(f"{name} must be a probability, got {val}")
        if self.rnd_exp_same + self.rnd_exp_turn > 1.0:
            raise ConfigError("rnd_exp_same + rnd_exp_turn must not exceed 1")
        if self.tie_margin < 0 or self.near_depth < 0 or self.far_dist < 0:
            raise ConfigError("distances and tie_margin must be non-negative")


@dataclass(frozen=True)
class FoveaReading:
    """What the fovea sees: per-resource weight and nearest depth, plus clutter."""

    us_weights: Dict[int, float] = field(default_factory=dict)
    us_depths: Dict[int, float] = field(default_factory=dict)
    fovea_depth: float = NO_DEPTH
    center_mat: int = 0
    non_wall: int = 0

    def winner(self) -> Optional[int]:
        """Resource whose weight is positive and strictly above every other one."""
        if not self.us_weights:
            return None
        best = max(self.us_weights, key=lambda m: self.us_weights[m])
        wt = self.us_weights[best]
        if wt <= 0:
            return None
        if any(w >= wt for m, w in self.us_weights.items() if m != best):
            return None
        return best


def read_fovea(fovea: RayScan, palette: MaterialPalette) -> FoveaReading:
    weights: Dict[int, float] = {palette.mats_us_start + i: 0.0 for i in range(palette.n_drives)}
    depths: Dict[int, float] = {m: NO_DEPTH for m in weights}
    fovea_depth = NO_DEPTH
    non_wall = 0
    for mat, depth, dlog in zip(fovea.mats, fovea.depths, fovea.depth_logs):
        if palette.is_active_us(mat):
            weights[mat] += 1 - dlog  # closer counts more
            depths[mat] = min(depths[mat], depth)
        elif mat > palette.barrier_idx:
            non_wall = mat
        if depth >= 0:
            fovea_depth = min(fovea_depth, depth)
    center = fovea.mats[len(fovea.mats) // 2] if fovea.mats else 0
    return FoveaReading(
        us_weights=weights, us_depths=depths, fovea_depth=fovea_depth, center_mat=center, non_wall=non_wall
    )


def read_full_field(depth_logs: Sequence[float], tie_margin: float = 0.1) -> Tuple[float, float]:
    """Closeness (1 - log depth) of obstacles in the left and right visual fields.

    Rays run from the leftmost angle to the rightmost; the three central rays
    are excluded. When the two minimum depths are within tie_margin, the
    average depth of each side is used instead.
    """
    n = len(depth_logs)
    half = n // 2
    min_left = min_right = 1.0
    sum_left = sum_right = 0.0
    for i, dp in enumerate(depth_logs):
        if i < half - 1:
            min_left = min(min_left, dp)
            sum_left += dp
        elif i > half + 1:
            min_right = min(min_right, dp)
            sum_right += dp
    left_close = 1 - min_left
    right_close = 1 - min_right
    if abs(min_left - min_right) < tie_margin:
        nside = max(half - 1, 1)
        left_close = 1 - sum_left / nside
        right_close = 1 - sum_right / nside
    return left_close, right_close


def turn_right_prob(left_close: float, right_close: float, gain: float = 10.0) -> float:
    """Softmax preference for turning right, i.e. away from a closer left side."""
    if left_close + right_close <= 0:
        return 0.5
    lpow = math.exp(left_close * gain)
    rpow = math.exp(right_close * gain)
    return lpow / (lpow + rpow)


class InstinctPolicy:
    """Priority-ordered reflexes; stateless apart from its parameters."""

    def __init__(self, params: Optional[InstinctParams] = None) -> None:
        self.params = params or InstinctParams()

    def decide(self, env: "FWorld", just_gated: bool, has_gated: bool, stream: RNGStream) -> InstinctDecision:
        p = self.params
        cfg = env.config
        palette = env.palette
        assert palette is not None
        acts = cfg.acts
        fwd = acts.index("Forward")
        left = acts.index("Left")
        right = acts.index("Right")
        consume = acts.index("Consume")

        prox_mat = min(env.prox.front, len(palette))
        reading = read_fovea(env.fovea, palette)
        left_close, right_close = read_full_field(env.depth.depth_logs, p.tie_margin)
        rlp = turn_right_prob(left_close, right_close, p.softmax_gain)

        # always two draws so the stream advances identically on every path
        rlact = right if stream.bool_p(rlp) else left
        frnd = stream.random()

        last = env.last_act
        last_name = acts[last] if 0 <= last < len(acts) else ""
        center_name = palette.name(reading.center_mat) if reading.center_mat < len(palette) else "?"

        should_gate = False
        urgency = 0.0
        act = fwd
        if palette.is_barrier(prox_mat):
            if last in (left, right):
                act, trace = last, "at wall, keep turning"
            else:
                act, trace = rlact, f"at wall, rlp: {rlp:.3g}, turn"
            urgency = cfg.wall_urgency
        elif palette.is_active_us(prox_mat):
            should_gate = True
            act, trace = consume, "at US, consume"
            urgency = cfg.eat_urgency
        elif has_gated:
            trace = "has gated"
        elif reading.winner() is not None:
            us = reading.winner()
            name = palette.name(us)
            depth = reading.us_depths[us]
            wts = f"{name} weight: {reading.us_weights[us]:g}, dist: {depth:g}"
            if depth > p.far_dist:
                if frnd < p.far_turn_p:
                    act, trace = rlact, f"far {name} in view ({wts}), explore, rlp: {rlp:.3g}, turn"
                else:
                    trace = f"far {name} in view {wts}"
            else:
                urgency = cfg.close_urgency
                trace = f"close {name} in view {wts}"
        elif reading.fovea_depth < p.near_depth and reading.non_wall == 0:
            urgency = cfg.close_urgency
            if last in (left, right):
                act, trace = last, f"close to: {center_name} keep turning"
            else:
                act, trace = rlact, f"close to: {center_name} rlp: {rlp:.3g}, turn"
        else:
            if frnd < p.rnd_exp_same and last_name in MOVE_ACTS:
                act, trace = last, f"looking at: {center_name} repeat last act"
            elif frnd < p.rnd_exp_same + p.rnd_exp_turn:
                act, trace = rlact, f"looking at: {center_name} turn"
            else:
                trace = f"looking at: {center_name} go"

        return InstinctDecision(
            act=act,
            act_name=acts[act],
            urgency=float(urgency),
            should_gate=should_gate,
            trace=f"{trace}: act: {acts[act]}",
        )


__all__ = [
    "FoveaReading",
    "InstinctParams",
    "InstinctPolicy",
    "read_fovea",
    "read_full_field",
    "turn_right_prob",
]
