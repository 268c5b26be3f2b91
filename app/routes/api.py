from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from flask import current_app, jsonify, request

from app.routes import bp
from fworld.config import ConfigError, FWorldConfig
from fworld.counters import TimeScale
from fworld.engine import FWorld

logger = logging.getLogger("fworld.app")

MAX_STEPS = 100


class WorldState:
    """Holds the served world and the gating flag carried between steps."""

    def __init__(self, seed: int = 1337, world: Optional[Dict[str, Any]] = None) -> None:
        self.seed = seed
        self.env = FWorld(FWorldConfig.from_dict(dict(world or {})), seed=seed)
        self.env.configure()
        self.env.validate()
        self.env.init(0)
        self.just_gated = False

    def step(self, n: int) -> Dict[str, Any]:
        env = self.env
        for _ in range(n):
            decision = env.instinct_decision(self.just_gated, False)
            self.just_gated = decision.should_gate
            env.action(decision.act_name)
            env.step()
        return serialize_state(env)


state: WorldState | None = None


def init_state(seed: int = 1337, world: Optional[Dict[str, Any]] = None) -> None:
    global state
    state = WorldState(seed=seed, world=world)


def serialize_state(env: FWorld) -> Dict[str, Any]:
    counters = {scale.value: env.counter(scale)[0] for scale in TimeScale}
    return {
        "name": env.name,
        "pos": list(env.pos_i),
        "pos_f": list(env.pos_f),
        "head_dir": env.head_dir,
        "last_act": env.last_act_name,
        "last_effort": env.last_effort,
        "should_gate": env.should_gate,
        "urgency": env.urgency,
        "trace": env.trace_inst,
        "counters": counters,
        "events": env.events.n_total(),
        "label": str(env),
    }


def _data_path(name: Any) -> Optional[Path]:
    """Resolve name inside the data directory; None if it escapes it."""
    if not isinstance(name, str) or not name:
        return None
    root = Path(current_app.config["FWORLD_DATA_DIR"]).resolve()
    path = (root / name).resolve()
    if not path.is_relative_to(root):
        return None
    return path


def _file_op(op: str) -> Any:
    assert state is not None, "World state not initialized"
    req = request.get_json(silent=True) or {}
    path = _data_path(req.get("file"))
    if path is None:
        return jsonify({"status": "error", "error": "file must name a path inside the data directory"}), 400
    if op.startswith("save"):
        path.parent.mkdir(parents=True, exist_ok=True)
    handlers = {
        "save_world": state.env.save_world,
        "open_world": state.env.open_world,
        "save_pats": state.env.save_pats,
        "open_pats": state.env.open_pats,
    }
    ok = handlers[op](path)
    if ok and op == "open_world":
        # pose is unchanged but the percepts must reflect the new grid
        state.env.place_agent(state.env.pos_i, state.env.head_dir)
    return jsonify({"status": "ok" if ok else "failed", "file": path.name}), (200 if ok else 500)


@bp.route("/", methods=["GET"])
def index() -> Any:
    return jsonify({"status": "ok"})


@bp.route("/state", methods=["GET"])
def get_state() -> Any:
    assert state is not None, "World state not initialized"
    return jsonify(serialize_state(state.env))


@bp.route("/percepts/<name>", methods=["GET"])
def percepts(name: str) -> Any:
    assert state is not None, "World state not initialized"
    arr = state.env.state(name)
    if arr is None:
        return jsonify({"status": "error", "error": f"unknown percept {name}"}), 404
    return jsonify({"name": name, "shape": list(arr.shape), "values": arr.tolist()})


@bp.route("/action", methods=["POST"])
def action() -> Any:
    assert state is not None, "World state not initialized"
    req = request.get_json(silent=True) or {}
    name = str(req.get("name", ""))
    if name not in state.env.acts:
        return jsonify({"status": "error", "error": f"unknown action {name}"}), 400
    state.env.action(name)
    state.env.step()
    return jsonify(serialize_state(state.env))


@bp.route("/step", methods=["POST"])
def step() -> Any:
    assert state is not None, "World state not initialized"
    req = request.get_json(silent=True) or {}
    try:
        n = int(req.get("n", 1))
    except (TypeError, ValueError):
        return jsonify({"status": "error", "error": f"invalid step count {req.get('n')!r}"}), 400
    n = max(1, min(n, MAX_STEPS))
    return jsonify(state.step(n))


@bp.route("/instinct", methods=["POST"])
def instinct() -> Any:
    assert state is not None, "World state not initialized"
    req = request.get_json(silent=True) or {}
    decision = state.env.instinct_decision(bool(req.get("just_gated", False)), bool(req.get("has_gated", False)))
    return jsonify(
        {
            "act": decision.act,
            "act_name": decision.act_name,
            "urgency": decision.urgency,
            "should_gate": decision.should_gate,
            "trace": decision.trace,
        }
    )


@bp.route("/reset", methods=["POST"])
def reset() -> Any:
    req = request.get_json(silent=True) or {}
    try:
        new_seed = int(req.get("seed", 1337))
    except (TypeError, ValueError):
        return jsonify({"status": "error", "error": f"invalid seed {req.get('seed')!r}"}), 400
    try:
        init_state(seed=new_seed, world=current_app.config.get("FWORLD_WORLD"))
    except ConfigError as exc:
        logger.error("Reset failed: %s", exc)
        return jsonify({"status": "error", "error": str(exc)}), 400
    return jsonify({"status": "reset", "seed": new_seed})


@bp.route("/world/save", methods=["POST"])
def world_save() -> Any:
    return _file_op("save_world")


@bp.route("/world/load", methods=["POST"])
def world_load() -> Any:
    return _file_op("open_world")


@bp.route("/patterns/save", methods=["POST"])
def patterns_save() -> Any:
    return _file_op("save_pats")


@bp.route("/patterns/load", methods=["POST"])
def patterns_load() -> Any:
    return _file_op("open_pats")
