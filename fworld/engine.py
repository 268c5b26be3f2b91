"""FWorld: the flat grid-world environment.

One instance owns its grid, agent pose, percept buffers, event log and
counters. Hosts drive it with ``action(name)`` followed by ``step()``;
``step()`` publishes the percepts rendered by the action so ``state()``
always returns a settled tick.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np

from brain.contracts import InstinctDecision
from brain.instinct import InstinctParams, InstinctPolicy
from fworld.config import ConfigError, FWorldConfig, MaterialPalette
from fworld.counters import Counters, TimeScale
from fworld.env import Env
from fworld.events import EventLog, WorldEvent
from fworld.geometry import GridPoint, Vector, ang_mod, ang_vec, next_vec_point
from fworld.grid import WorldGrid
from fworld.patterns import PatternStore, decode_act
from fworld.pipeline import Pipeline
from fworld.render import NEG_USS, POS_USS, Renderer
from fworld.rng import RNG
from fworld.sensors import ProxScan, RayScan, scan_depth, scan_fovea, scan_prox
from fworld.states import StateBuffer

logger = logging.getLogger(__name__)

# replica start layout: 12 columns x 3 rows
N_START_COLS = 12
START_ROW_MARGIN = 8


class FWorld(Env):
    """Tile world with ray-cast vision, contact sensing and consumable resources."""

    def __init__(self, config: Optional[FWorldConfig] = None, *, seed: int = 0, replica: int = 0) -> None:
        self.config = config if config is not None else FWorldConfig()
        self.seed = seed
        self.rng = RNG(seed, replica=replica)
        self.palette: Optional[MaterialPalette] = None
        self.grid: Optional[WorldGrid] = None
        self.pats: Optional[PatternStore] = None
        self.states = StateBuffer()
        self.renderer: Optional[Renderer] = None
        self.counters = Counters()
        self.events = EventLog()
        self.instinct = InstinctPolicy(InstinctParams.from_dict(self.config.instinct))

        self.pos_f: Vector = (0.0, 0.0)
        self.pos_i: GridPoint = (0, 0)
        self.head_dir = 0
        self.rot_ang = 0
        self.last_act = 0
        self.last_effort = 0.0
        self.should_gate = False
        self.just_gated = False
        self.has_gated = False
        self.urgency = 0.0
        self.trace_inst = ""

        self.depth = RayScan()
        self.fovea = RayScan()
        self.prox = ProxScan()

        self._snapshot: Optional[np.ndarray] = None
        self._pipeline = Pipeline(
            {
                "counters": self.counters.epoch.same,
                "render_action": self._render_last_action,
                "publish": self.states.copy_next_to_cur,
                "tick": self._advance_tick,
                "refresh": self.refresh_world,
                "trial": self._advance_trial,
            }
        )
        self.configured = False

    # ------------------------------------------------------------------ #
    #  Configuration                                                      #
    # ------------------------------------------------------------------ #
    @property
    def name(self) -> str:
        return self.config.name

    @property
    def desc(self) -> str:
        return self.config.desc

    @property
    def acts(self) -> List[str]:
        return self.config.acts

    @property
    def size(self) -> Tuple[int, int]:
        return self.config.size

    def act_index(self, name: str) -> Optional[int]:
        try:
            return self.config.acts.index(name)
        except ValueError:
            return None

    def configure(self) -> None:
        """Build palette, patterns, tensors and a freshly generated world."""
        cfg = self.config
        cfg.validate()
        self.palette = cfg.palette()
        self.counters.trial.max = cfg.n_trials

        self.pats = PatternStore((cfg.pat_size[1], cfg.pat_size[0]))
        names = self.pattern_names()
        if cfg.pats_file:
            try:
                self.pats.load_json(cfg.pats_file, names)
            except (OSError, ValueError) as exc:
                raise ConfigError(f"cannot load patterns from {cfg.pats_file}: {exc}") from exc
        else:
            self.pats.generate(names, self.rng.stream("patterns"), cfg.pat_n_on)
        self.pats.validate(names)

        self.grid = WorldGrid(cfg.size, self.palette)
        self.states = StateBuffer()
        self._pipeline.handlers["publish"] = self.states.copy_next_to_cur
        self.renderer = Renderer(cfg, self.palette, self.pats, self.states)

        self.gen_world()
        self._snapshot = self.grid.copy()
        if cfg.world_file:
            if not self.save_world(cfg.world_file):
                logger.warning("World snapshot kept in memory only")
        self.configured = True
        logger.info(
            "Configured %s: size=%s mats=%d acts=%d rays=%d",
            cfg.name, cfg.size, len(self.palette), len(cfg.acts), cfg.n_fov_rays,
        )

    def pattern_names(self) -> List[str]:
        assert self.palette is not None
        return list(self.palette.mats) + list(self.config.acts)

    def validate(self) -> None:
        if self.config.size[0] <= 0 or self.config.size[1] <= 0:
            raise ConfigError(f"FWorld: {self.config.name} has size == 0 -- need to Config")
        if not self.configured or self.pats is None:
            raise ConfigError(f"FWorld: {self.config.name} is not configured")
        self.pats.validate(self.pattern_names())

    def gen_world(self) -> None:
        """Wall border plus randomly scattered resources; the centre stays clear."""
        assert self.grid is not None and self.palette is not None
        grid = self.grid
        stream = self.rng.stream("world")
        wall = self.palette.mat_map.get("Wall", self.palette.barrier_idx)
        sx, sy = grid.size
        grid.zero()
        grid.world_rect((0, 0), (sx - 1, sy - 1), wall)
        ctr = (sx // 2, sy // 2)
        grid.set_cell(ctr, wall)
        nper = self.config.n_resources_per_drive
        for i in range(self.palette.n_drives):
            grid.world_random(nper, self.palette.mats_us_start + i, stream)
        grid.set_cell(ctr, 0)

    # ------------------------------------------------------------------ #
    #  Run lifecycle                                                      #
    # ------------------------------------------------------------------ #
    def init(self, run: int) -> None:
        """Restart: reload the world snapshot, reset counters, flags and pose."""
        if not self.configured:
            self.configure()
        assert self.grid is not None
        if self.config.world_file:
            self.open_world(self.config.world_file)
        elif self._snapshot is not None:
            self.grid.restore(self._snapshot)

        self.counters.init_all(run)
        self.should_gate = False
        self.just_gated = False
        self.has_gated = False
        self.urgency = 0.0
        self.trace_inst = ""
        self.events.clear()

        start = self.config.start_pos
        if start is None:
            start = (self.config.size[0] // 2, self.config.size[1] // 2)
        self.pos_i = (int(start[0]), int(start[1]))
        self.pos_f = (float(self.pos_i[0]), float(self.pos_i[1]))
        self.head_dir = 0
        self.rot_ang = 0
        self.last_act = self.act_index("None") or 0
        self.last_effort = 0.0
        self.states.clear()
        self.scan()
        self._render()
        self.states.copy_next_to_cur()
        logger.debug("Init run %d at %s", run, self.pos_i)

    def init_pos(self, n: int) -> None:
        """Place replica n on the 12 x 3 lattice of start positions."""
        sx, sy = self.config.size
        ypos = [START_ROW_MARGIN, sy // 2, sy - START_ROW_MARGIN]
        if not 0 <= n < N_START_COLS * len(ypos):
            raise ValueError(f"replica index {n} outside 0..{N_START_COLS * len(ypos) - 1}")
        xpi = sx / (N_START_COLS + 1)
        xpos = [int(np.floor((i + 1) * xpi + 0.5)) for i in range(N_START_COLS)]
        self.pos_i = (xpos[n % N_START_COLS], ypos[n // N_START_COLS])
        self.pos_f = (float(self.pos_i[0]), float(self.pos_i[1]))

    def place_agent(self, pos: GridPoint, head_dir: int = 0) -> None:
        """Move the agent without acting, then rescan and rerender."""
        self.pos_i = (int(pos[0]), int(pos[1]))
        self.pos_f = (float(pos[0]), float(pos[1]))
        self.head_dir = ang_mod(head_dir)
        self.scan()
        self._render()

    # ------------------------------------------------------------------ #
    #  Perception                                                         #
    # ------------------------------------------------------------------ #
    def scan(self) -> None:
        assert self.grid is not None
        cfg = self.config
        self.depth = scan_depth(self.grid, self.pos_f, self.head_dir, cfg.fov, cfg.vis_ang_inc)
        self.fovea = scan_fovea(self.grid, self.pos_f, self.head_dir, cfg.fovea_size, cfg.fovea_ang_inc)
        self.prox = scan_prox(self.grid, self.pos_f, self.head_dir)

    def _render(self) -> None:
        assert self.renderer is not None
        self.renderer.render_state(self.depth, self.fovea, self.prox, self.head_dir, self.last_act_name)

    def _render_last_action(self) -> None:
        if self.renderer is not None:
            self.renderer.render_action(self.last_act_name)

    def state(self, element: str) -> Optional[np.ndarray]:
        return self.states.current(element)

    # ------------------------------------------------------------------ #
    #  Actions                                                            #
    # ------------------------------------------------------------------ #
    @property
    def last_act_name(self) -> str:
        if 0 <= self.last_act < len(self.config.acts):
            return self.config.acts[self.last_act]
        return "Stay"

    def action(self, name: str, values: Optional[np.ndarray] = None) -> None:
        idx = self.act_index(name)
        if idx is None:
            logger.warning("Action not recognized: %s", name)
            return
        self.last_act = idx
        self.take_act(idx)

    def take_act(self, act: int) -> None:
        """Apply action index act to pose and world, then rescan and rerender."""
        assert self.renderer is not None and self.grid is not None and self.palette is not None
        acts = self.config.acts
        name = acts[act] if 0 <= act < len(acts) else "Stay"
        params = self.config.params

        self.rot_ang = 0
        self.renderer.clear_us(POS_USS)
        self.renderer.clear_us(NEG_USS)
        if name == "None":
            self.last_effort = 0.0
            return

        front = min(self.prox.front, len(self.palette))
        behind = self.prox.back
        eff = 0.0
        if name in ("Left", "Right"):
            self.rot_ang = self.config.mot_ang_inc if name == "Left" else -self.config.mot_ang_inc
            self.head_dir = ang_mod(self.head_dir + self.rot_ang)
            eff += params["RotEffort"]
        elif name in ("Forward", "Backward"):
            eff += params["MoveEffort"]
            ahead = front if name == "Forward" else behind
            heading = self.head_dir if name == "Forward" else ang_mod(self.head_dir + 180)
            if self.palette.is_barrier(ahead):
                self.renderer.set_us(NEG_USS, "Bump", params["BumpPain"])
            else:
                self.pos_f, self.pos_i = next_vec_point(self.pos_f, ang_vec(heading))
        elif name == "Consume":
            if self.palette.is_active_us(front):
                self.consume(act, front, self.prox.positions[0])
        self.last_effort = eff
        self.scan()
        self._render()

    def consume(self, act: int, mat: int, mat_pos: GridPoint) -> WorldEvent:
        """Deplete the resource at mat_pos and schedule its refresh."""
        assert self.renderer is not None and self.grid is not None and self.palette is not None
        self.renderer.set_us(POS_USS, self.palette.name(mat), 1.0)
        event = WorldEvent(
            tick=self.counters.tick.cur,
            pos_i=self.pos_i,
            pos_f=self.pos_f,
            angle=self.head_dir,
            act=act,
            mat=mat,
            mat_pos=mat_pos,
        )
        self.events.add(event)
        self.grid.set_cell(mat_pos, self.palette.depleted_of(mat))
        self.counters.event.set(0)
        self.counters.scene.incr()
        logger.debug("Consumed %s at %s on tick %d", self.palette.name(mat), mat_pos, event.tick)
        return event

    def refresh_world(self) -> List[WorldEvent]:
        assert self.grid is not None
        delay = int(self.config.params["EnvRefresh"])
        restored = self.events.refresh(self.grid, self.counters.tick.cur, delay)
        for event in restored:
            logger.debug("Refreshed %s at %s", self.grid.palette.name(event.mat), event.mat_pos)
        return restored

    def decode_act(self, values: np.ndarray) -> int:
        assert self.pats is not None
        return decode_act(values, self.pats, self.config.acts, self.config.fwd_margin, self.rng.stream("decode"))

    # ------------------------------------------------------------------ #
    #  Stepping                                                           #
    # ------------------------------------------------------------------ #
    def _advance_tick(self) -> None:
        self.counters.tick.incr()
        self.counters.event.incr()

    def _advance_trial(self) -> None:
        if self.counters.trial.incr():
            self.counters.epoch.incr()

    def step(self) -> bool:
        self._pipeline.run()
        return True

    def counter(self, scale: TimeScale) -> Tuple[int, int, bool]:
        ctr = self.counters.by_scale().get(scale)
        if ctr is None:
            return -1, -1, False
        return ctr.query()

    # ------------------------------------------------------------------ #
    #  Instinct                                                           #
    # ------------------------------------------------------------------ #
    def instinct_decision(self, just_gated: bool, has_gated: bool) -> InstinctDecision:
        self.just_gated = just_gated
        self.has_gated = has_gated
        decision = self.instinct.decide(self, just_gated, has_gated, self.rng.stream("instinct"))
        self.should_gate = decision.should_gate
        self.urgency = decision.urgency
        self.trace_inst = decision.trace
        if self.config.trace_instinct:
            logger.debug("instinct: %s", decision.trace)
        return decision

    def instinct_act(self, just_gated: bool, has_gated: bool) -> Tuple[int, float]:
        """(action index, urgency) from the hand-coded reflex policy."""
        decision = self.instinct_decision(just_gated, has_gated)
        return decision.act, decision.urgency

    # ------------------------------------------------------------------ #
    #  Host operations                                                    #
    # ------------------------------------------------------------------ #
    def save_world(self, path: str | Path) -> bool:
        assert self.grid is not None
        try:
            self.grid.save_text(path)
        except OSError as exc:
            logger.error("Error creating world file %s: %s", path, exc)
            return False
        return True

    def open_world(self, path: str | Path) -> bool:
        assert self.grid is not None
        backup = self.grid.copy()
        try:
            self.grid.load_text(path)
        except (OSError, UnicodeDecodeError) as exc:
            self.grid.restore(backup)
            logger.error("Error opening world file %s: %s", path, exc)
            return False
        return True

    def save_pats(self, path: str | Path) -> bool:
        assert self.pats is not None
        try:
            self.pats.save_json(path)
        except OSError as exc:
            logger.error("Error saving patterns to %s: %s", path, exc)
            return False
        return True

    def open_pats(self, path: str | Path) -> bool:
        """Replace patterns from a JSON file; on any failure the old set stays."""
        assert self.pats is not None
        fresh = PatternStore(self.pats.shape)
        try:
            fresh.load_json(path, self.pattern_names())
            fresh.validate(self.pattern_names())
        except (OSError, ValueError) as exc:
            logger.error("Error opening patterns %s: %s", path, exc)
            return False
        self.pats.pats = fresh.pats
        return True

    def __str__(self) -> str:
        return (
            f"Evt_{self.counters.event.cur}_Pos_{self.pos_i[0]}_{self.pos_i[1]}"
            f"_Ang_{self.head_dir}_Act_{self.last_act_name}"
        )


__all__ = ["FWorld", "N_START_COLS"]
