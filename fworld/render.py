"""Render scans, pose and last action into the ``next`` percept tensors."""

from __future__ import annotations

from typing import Dict, Sequence

from fworld.config import FWorldConfig, MaterialPalette
from fworld.patterns import PatternStore
from fworld.popcode import PopCode1D, PopCodeRing
from fworld.sensors import ProxScan, RayScan
from fworld.states import StateBuffer

DEPTH = "Depth"
FOV_DEPTH = "FovDepth"
FOVEA = "Fovea"
PROX_SOMA = "ProxSoma"
HEAD_DIR = "HeadDir"
ACTION = "Action"
POS_USS = "PosUSs"
NEG_USS = "NegUSs"

STATE_NAMES = (DEPTH, FOV_DEPTH, FOVEA, PROX_SOMA, HEAD_DIR, ACTION, POS_USS, NEG_USS)


class Renderer:
    """Owns the population codes and writes percepts into a StateBuffer."""

    def __init__(self, config: FWorldConfig, palette: MaterialPalette, pats: PatternStore, states: StateBuffer) -> None:
        self.config = config
        self.palette = palette
        self.pats = pats
        self.states = states
        lo, hi = config.depth_range
        self.depth_code = PopCode1D(min=lo, max=hi, sigma=config.pop_sigma)
        lo, hi = config.ang_range
        self.ang_code = PopCodeRing(min=lo, max=hi, sigma=config.pop_sigma)
        self.pos_us_map: Dict[str, int] = {us: i for i, us in enumerate(config.pos_uss)}
        self.neg_us_map: Dict[str, int] = {us: i for i, us in enumerate(config.neg_uss)}
        self._allocate()

    def _allocate(self) -> None:
        cfg = self.config
        py, px = cfg.pat_size[1], cfg.pat_size[0]
        fw = cfg.fovea_width
        self.states.add(DEPTH, (1, cfg.n_fov_rays, cfg.depth_size, 1))
        self.states.add(FOV_DEPTH, (1, fw, cfg.depth_size, 1))
        self.states.add(FOVEA, (1, fw, py, px))
        self.states.add(PROX_SOMA, (1, 4, 2, 1))
        self.states.add(HEAD_DIR, (1, cfg.pop_size))
        self.states.add(ACTION, (py, px))
        self.states.add(POS_USS, (len(cfg.pos_uss),))
        self.states.add(NEG_USS, (len(cfg.neg_uss),))
        self.states.copy_next_to_cur()

    def render_view(self, depth: RayScan, fovea: RayScan) -> None:
        dv = self.states.next[DEPTH]
        for i, dl in enumerate(depth.depth_logs):
            dv[0, i, :, 0] = self.depth_code.encode(dl, self.config.depth_size)
        fd = self.states.next[FOV_DEPTH]
        fv = self.states.next[FOVEA]
        for i, dl in enumerate(fovea.depth_logs):
            fd[0, i, :, 0] = self.depth_code.encode(dl, self.config.depth_size)
            mat = fovea.mats[i]
            if mat < len(self.palette):
                pat = self.pats.get(self.palette.name(mat))
                if pat is not None:
                    fv[0, i] = pat

    def render_prox_soma(self, prox: ProxScan) -> None:
        ps = self.states.next[PROX_SOMA]
        ps.fill(0.0)
        for i, mat in enumerate(prox.mats):
            if mat != 0:
                ps[0, i, 0, 0] = 1.0  # on
            else:
                ps[0, i, 1, 0] = 1.0  # off

    def render_head_dir(self, head_dir: int) -> None:
        self.states.next[HEAD_DIR][0, :] = self.ang_code.encode(head_dir / 360.0, self.config.pop_size)

    def render_action(self, act_name: str) -> None:
        pat = self.pats.get(act_name)
        if pat is not None:
            self.states.next[ACTION][:] = pat

    def clear_us(self, us_type: str) -> None:
        self.states.next[us_type].fill(0.0)

    def set_us(self, us_type: str, us: str, val: float) -> None:
        idx = (self.pos_us_map if us_type == POS_USS else self.neg_us_map)[us]
        self.states.next[us_type][idx] = val

    def render_state(self, depth: RayScan, fovea: RayScan, prox: ProxScan, head_dir: int, act_name: str) -> None:
        self.render_view(depth, fovea)
        self.render_prox_soma(prox)
        self.render_head_dir(head_dir)
        self.render_action(act_name)


def us_names(values: Sequence[float], names: Sequence[str]) -> list[str]:
    """Names of the USs that are active (> 0) in a US vector."""
    return [n for n, v in zip(names, values) if v > 0]


__all__ = [
    "ACTION",
    "DEPTH",
    "FOVEA",
    "FOV_DEPTH",
    "HEAD_DIR",
    "NEG_USS",
    "POS_USS",
    "PROX_SOMA",
    "Renderer",
    "STATE_NAMES",
    "us_names",
]
