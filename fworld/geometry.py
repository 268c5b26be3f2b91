"""Angle and ray-stepping helpers for the integer grid."""

from __future__ import annotations

import math
from typing import Tuple

Vector = Tuple[float, float]
GridPoint = Tuple[int, int]


def ang_mod(ang: int) -> int:
    """Wrap angle in degrees to [0, 360)."""
    return ang % 360


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def round_vec(pos: Vector) -> GridPoint:
    """Round a float position to its grid cell, halves away from zero."""
    return (_round_half_away(pos[0]), _round_half_away(pos[1]))


def norm_vec_line(vec: Vector) -> Vector:
    """Scale vec so its largest absolute component is exactly 1."""
    ax, ay = abs(vec[0]), abs(vec[1])
    if ax > ay:
        return (vec[0] / ax, vec[1] / ax)
    if ay == 0.0:
        raise ValueError("cannot normalize a zero vector")
    return (vec[0] / ay, vec[1] / ay)


def ang_vec(ang: int) -> Vector:
    """Step vector for the given heading, in degrees.

    The dominant axis always advances by exactly one cell per step, so a ray
    never skips a cell along that axis.
    """
    rad = math.radians(ang_mod(ang))
    return norm_vec_line((math.cos(rad), math.sin(rad)))


def next_vec_point(pos: Vector, vec: Vector) -> Tuple[Vector, GridPoint]:
    """Advance pos by vec; return the new float position and its grid cell."""
    nxt = (pos[0] + vec[0], pos[1] + vec[1])
    return nxt, round_vec(nxt)


def dist(a: Vector, b: Vector) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


__all__ = [
    "GridPoint",
    "Vector",
    "ang_mod",
    "ang_vec",
    "dist",
    "next_vec_point",
    "norm_vec_line",
    "round_vec",
]
