"""Blend the instinct action with a learned (network) action proposal."""

from __future__ import annotations

from typing import Optional

from brain.contracts import ArbitratedAction
from fworld.rng import RNGStream


def arbitrate(
    instinct_act: int,
    urgency: float,
    net_act: Optional[int],
    pct_cortex: float,
    stream: RNGStream,
) -> ArbitratedAction:
    """Instinct wins with probability urgency; otherwise the network action is
    taken with probability pct_cortex, falling back to instinct."""
    net = -1 if net_act is None else net_act
    if stream.bool_p(urgency):
        return ArbitratedAction(act=instinct_act, instinct_act=instinct_act, net_act=net, source="instinct")
    if net_act is not None and stream.bool_p(pct_cortex):
        return ArbitratedAction(act=net_act, instinct_act=instinct_act, net_act=net, source="network")
    return ArbitratedAction(act=instinct_act, instinct_act=instinct_act, net_act=net, source="instinct")


__all__ = ["arbitrate"]
