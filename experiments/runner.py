from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Type

import numpy as np

from brain.arbiter import arbitrate
from experiments.protocols.base import Protocol
from experiments.protocols.exploration import ExplorationProtocol
from experiments.protocols.foraging import ForagingProtocol
from fworld.config import FWorldConfig
from fworld.engine import FWorld
from fworld.logging_config import setup_logging
from fworld.render import NEG_USS, POS_USS, STATE_NAMES, us_names
from metrics.hash import RunHash, percept_checksum
from metrics.logger import JsonlLogger
from metrics.schema import SCHEMA_VERSION, TickData

logger = logging.getLogger("experiments.runner")

PROTOCOLS: Dict[str, Type[Protocol]] = {
    "foraging": ForagingProtocol,
    "exploration": ExplorationProtocol,
}


def list_protocols() -> str:
    return "\n".join(sorted(PROTOCOLS.keys()))


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Headless FWorld runner")
    parser.add_argument("--protocol", choices=sorted(PROTOCOLS.keys()))
    parser.add_argument("--seed", type=int, default=1337)
    parser.add_argument("--ticks", type=int, default=1000)
    parser.add_argument("--out", type=str, required=False)
    parser.add_argument("--list", action="store_true", help="List available protocols")
    parser.add_argument("--protocol-config", type=str, help="Path to JSON protocol config")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def cortex_proposal(env: FWorld, instinct_act: int, noise: float) -> int:
    """Stand-in for a trained network: the instinct action pattern plus noise, decoded."""
    assert env.pats is not None
    pat = env.pats.get(env.acts[instinct_act])
    if pat is None:
        return instinct_act
    stream = env.rng.stream("cortex")
    noisy = np.array([v + stream.gauss(0.0, noise) for v in pat.ravel()], dtype=np.float32)
    return env.decode_act(noisy.reshape(pat.shape))


def run_tick(env: FWorld, protocol: Protocol, just_gated: bool) -> TickData:
    """One decision: instinct, arbitration, action, step; returns the settled record."""
    decision = env.instinct_decision(just_gated, False)
    net_act = None
    if protocol.pct_cortex > 0:
        net_act = cortex_proposal(env, decision.act, protocol.cortex_noise)
    chosen = arbitrate(decision.act, decision.urgency, net_act, protocol.pct_cortex, env.rng.stream("arbiter"))
    env.action(env.acts[chosen.act])
    env.step()

    pos_us = [float(v) for v in env.state(POS_USS)]
    neg_us = [float(v) for v in env.state(NEG_USS)]
    consumed = next(iter(us_names(pos_us, env.config.pos_uss)), "")
    percepts = [(name, env.state(name)) for name in STATE_NAMES]
    return TickData(
        tick=env.counters.tick.cur,
        trial=env.counters.trial.cur,
        epoch=env.counters.epoch.cur,
        event=env.counters.event.cur,
        scene=env.counters.scene.cur,
        pos=(int(env.pos_i[0]), int(env.pos_i[1])),
        head_dir=int(env.head_dir),
        action=env.acts[chosen.act],
        instinct_action=decision.act_name,
        net_action="" if net_act is None else env.acts[net_act],
        act_match=chosen.act_match,
        urgency=decision.urgency,
        should_gate=decision.should_gate,
        effort=float(env.last_effort),
        pos_us=pos_us,
        neg_us=neg_us,
        consumed=consumed,
        percept_checksum=percept_checksum(percepts),
        protocol_name=protocol.name,
    )


def run(
    protocol_name: str,
    seed: int,
    ticks: int,
    outdir: Path,
    protocol_config: dict | None = None,
    config: Optional[FWorldConfig] = None,
) -> Dict[str, Any]:
    proto_cls = PROTOCOLS[protocol_name]
    protocol = proto_cls(protocol_config)
    env = FWorld(config if config is not None else protocol.world_config(), seed=seed)
    env.configure()
    env.validate()
    env.init(0)
    protocol.setup(env)

    outdir.mkdir(parents=True, exist_ok=True)
    tick_path = outdir / "ticks.jsonl"
    summary_path = outdir / "summary.json"

    rh = RunHash()
    ticks_run_actual = 0
    just_gated = False
    with JsonlLogger(tick_path) as tick_log:
        for i in range(ticks):
            tick = run_tick(env, protocol, just_gated)
            just_gated = tick.should_gate
            ticks_run_actual += 1
            protocol.on_tick(env, tick, i)
            tick_log.write_tick(tick)
            rh.update(tick)
            if protocol.is_done(env, tick, i):
                logger.info("Protocol %s finished early at tick %d", protocol_name, i)
                break

    env.save_world(outdir / "world.tsv")

    summary = protocol.summarize()
    summary.update(
        {
            "protocol": protocol_name,
            "seed": seed,
            "ticks_requested": ticks,
            "ticks_run": ticks_run_actual,
            "schema_version": SCHEMA_VERSION,
            "run_hash": rh.hexdigest(),
            "events": env.events.n_total(),
            "protocol_config": protocol_config or {},
        }
    )
    summary_path.write_text(json.dumps(summary, sort_keys=True, separators=(",", ":")))
    logger.info("Run %s seed=%d: %d ticks, score=%s", protocol_name, seed, ticks_run_actual, summary.get("score"))
    return summary


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    if args.list:
        print(list_protocols())
        return
    if not args.protocol:
        raise SystemExit("Protocol required unless --list is used")
    protocol_config = None
    if args.protocol_config:
        protocol_config = json.loads(Path(args.protocol_config).read_text())
    outdir = Path(args.out) if args.out else Path(f"runs/{args.protocol}_{args.seed}")
    setup_logging(outdir, level=getattr(logging, args.log_level))
    run(args.protocol, args.seed, args.ticks, outdir, protocol_config=protocol_config)


if __name__ == "__main__":
    main()
