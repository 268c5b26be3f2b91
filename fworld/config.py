"""Environment configuration: material palette, actions, and tunables."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

REQUIRED_ACTS: Tuple[str, ...] = ("Forward", "Left", "Right", "Consume", "None")
KNOWN_ACTS: Tuple[str, ...] = REQUIRED_ACTS + ("Backward", "Stay")
MOVE_ACTS: Tuple[str, ...] = ("Forward", "Backward", "Left", "Right")

DEFAULT_COLORS: Tuple[str, ...] = (
    "lightgrey", "black", "blue", "orange", "red", "white", "navy", "brown", "pink", "gray",
)


class ConfigError(ValueError):
    """Raised when the environment cannot be configured as requested."""


@dataclass(frozen=True)
class MaterialPalette:
    """Ordered material list with fixed semantic zones.

    Layout: [Empty, barriers (1..barrier_idx), other fixed mats,
    active USs (mats_us_start..), depleted "Was" USs (next n_drives)].
    """

    mats: Tuple[str, ...]
    barrier_idx: int
    mats_us_start: int
    n_drives: int
    colors: Tuple[str, ...] = ()

    @classmethod
    def build(
        cls,
        fixed: Sequence[str] = ("Empty", "Wall"),
        *,
        barrier_idx: int = 1,
        pos_uss: Sequence[str] = ("Water", "Protein", "Sugar", "Salt"),
        colors: Sequence[str] = DEFAULT_COLORS,
    ) -> "MaterialPalette":
        if not fixed or fixed[0] != "Empty":
            raise ConfigError("material list must start with 'Empty'")
        if not 1 <= barrier_idx < len(fixed):
            raise ConfigError(f"barrier_idx {barrier_idx} outside fixed materials {list(fixed)}")
        mats = list(fixed) + list(pos_uss) + [us + "Was" for us in pos_uss]
        if len(set(mats)) != len(mats):
            raise ConfigError(f"duplicate material names in {mats}")
        return cls(
            mats=tuple(mats),
            barrier_idx=barrier_idx,
            mats_us_start=len(fixed),
            n_drives=len(pos_uss),
            colors=tuple(colors),
        )

    def __len__(self) -> int:
        return len(self.mats)

    @property
    def mat_map(self) -> Dict[str, int]:
        return {m: i for i, m in enumerate(self.mats)}

    def index(self, name: str) -> int:
        return self.mats.index(name)

    def name(self, idx: int) -> str:
        return self.mats[idx]

    def is_barrier(self, idx: int) -> bool:
        return 0 < idx <= self.barrier_idx

    def is_active_us(self, idx: int) -> bool:
        return self.mats_us_start <= idx < self.mats_us_start + self.n_drives

    def is_depleted(self, idx: int) -> bool:
        start = self.mats_us_start + self.n_drives
        return start <= idx < start + self.n_drives

    def depleted_of(self, idx: int) -> int:
        return idx + self.n_drives

    def color(self, idx: int) -> str:
        if idx < len(self.colors):
            return self.colors[idx]
        return "gray"


def _default_params() -> Dict[str, float]:
    return {
        "MoveEffort": 1.0,
        "RotEffort": 1.0,
        "BumpPain": 0.1,
        "EnvRefresh": 100.0,  # ticks before consumed items are refreshed
    }


@dataclass
class FWorldConfig:
    """All tunables of the flat world; supplied once at construction."""

    name: str = "Demo"
    desc: str = "Example world with basic actions"
    size: Tuple[int, int] = (50, 50)
    pat_size: Tuple[int, int] = (5, 5)
    fixed_mats: List[str] = field(default_factory=lambda: ["Empty", "Wall"])
    barrier_idx: int = 1
    acts: List[str] = field(default_factory=lambda: list(REQUIRED_ACTS))
    pos_uss: List[str] = field(default_factory=lambda: ["Water", "Protein", "Sugar", "Salt"])
    neg_uss: List[str] = field(default_factory=lambda: ["Bump"])
    colors: List[str] = field(default_factory=lambda: list(DEFAULT_COLORS))
    params: Dict[str, float] = field(default_factory=_default_params)
    fov: int = 180
    vis_ang_inc: int = 45
    mot_ang_inc: int = 15
    fovea_size: int = 1
    fovea_ang_inc: int = 5
    wall_urgency: float = 0.9
    eat_urgency: float = 0.8
    close_urgency: float = 0.5
    fwd_margin: float = 2.0
    pop_size: int = 16
    depth_size: int = 16
    depth_range: Tuple[float, float] = (0.1, 1.0)
    ang_range: Tuple[float, float] = (0.0, 1.0)
    pop_sigma: float = 0.1
    pat_n_on: int = 6
    n_trials: int = 0
    resources_per_drive: Optional[int] = None
    start_pos: Optional[Tuple[int, int]] = None
    world_file: Optional[str] = None
    pats_file: Optional[str] = None
    trace_instinct: bool = False
    instinct: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FWorldConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown config keys: {unknown}")
        kwargs = dict(data)
        for key in ("size", "pat_size", "depth_range", "ang_range", "start_pos"):
            if kwargs.get(key) is not None:
                kwargs[key] = tuple(kwargs[key])
        if "params" in kwargs:
            params = _default_params()
            params.update({k: float(v) for k, v in kwargs["params"].items()})
            kwargs["params"] = params
        return cls(**kwargs)

    @property
    def n_drives(self) -> int:
        return len(self.pos_uss)

    @property
    def n_fov_rays(self) -> int:
        return self.fov // self.vis_ang_inc + 1

    @property
    def n_mot_angles(self) -> int:
        return 360 // self.mot_ang_inc + 1

    @property
    def fovea_width(self) -> int:
        return 1 + 2 * self.fovea_size

    @property
    def n_resources_per_drive(self) -> int:
        if self.resources_per_drive is not None:
            return self.resources_per_drive
        return 40 // max(self.n_drives, 1)

    def palette(self) -> MaterialPalette:
        return MaterialPalette.build(
            self.fixed_mats,
            barrier_idx=self.barrier_idx,
            pos_uss=self.pos_uss,
            colors=self.colors,
        )

    def validate(self) -> None:
        """Raise ConfigError for settings the environment cannot run with."""
        if self.size[0] <= 0 or self.size[1] <= 0:
            raise ConfigError(f"FWorld: {self.name} has size == 0 -- need to Config")
        if self.pat_size[0] <= 0 or self.pat_size[1] <= 0:
            raise ConfigError(f"pattern size must be positive, got {self.pat_size}")
        if self.vis_ang_inc <= 0 or self.fov % self.vis_ang_inc != 0:
            raise ConfigError(f"fov {self.fov} must be a multiple of vis_ang_inc {self.vis_ang_inc}")
        if self.fov <= 0 or self.fov % 2 != 0:
            raise ConfigError(f"fov {self.fov} must be positive and even")
        if self.mot_ang_inc <= 0 or self.fovea_ang_inc <= 0 or self.fovea_size < 0:
            raise ConfigError("angle increments must be positive and fovea_size >= 0")
        missing = [a for a in REQUIRED_ACTS if a not in self.acts]
        if missing:
            raise ConfigError(f"required actions missing: {missing}")
        unknown = [a for a in self.acts if a not in KNOWN_ACTS]
        if unknown:
            raise ConfigError(f"unsupported actions: {unknown}")
        if not self.pos_uss or not self.neg_uss:
            raise ConfigError("need at least one positive and one negative US")
        if "Bump" not in self.neg_uss:
            raise ConfigError("negative USs must include 'Bump'")
        for key in ("MoveEffort", "RotEffort", "BumpPain", "EnvRefresh"):
            if key not in self.params:
                raise ConfigError(f"missing param {key}")
        if self.pop_size < 2 or self.depth_size < 2:
            raise ConfigError("population codes need at least 2 units")
        self.palette()


def load_config(path: str | Path) -> FWorldConfig:
    """Read an FWorldConfig from a JSON file."""
    data = json.loads(Path(path).read_text())
    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must hold a JSON object")
    return FWorldConfig.from_dict(data)


__all__ = [
    "ConfigError",
    "DEFAULT_COLORS",
    "FWorldConfig",
    "KNOWN_ACTS",
    "MOVE_ACTS",
    "MaterialPalette",
    "REQUIRED_ACTS",
    "load_config",
]
