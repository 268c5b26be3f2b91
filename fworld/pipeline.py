"""Ordered stages of a world step."""

from __future__ import annotations

from typing import Callable, Dict, Iterable, Tuple

# counters settle first, refresh runs on the new tick, trial wraps last
STEP_ORDER: Tuple[str, ...] = (
    "counters",
    "render_action",
    "publish",
    "tick",
    "refresh",
    "trial",
)

Stage = Callable[[], None]


class Pipeline:
    """Executes named stages in a fixed, explicit order."""

    def __init__(self, handlers: Dict[str, Stage], order: Iterable[str] = STEP_ORDER) -> None:
        missing = [name for name in order if name not in handlers]
        if missing:
            raise ValueError(f"no handler for stages: {missing}")
        self.handlers = handlers
        self.order = tuple(order)

    def run(self) -> None:
        for name in self.order:
            self.handlers[name]()


__all__ = ["Pipeline", "STEP_ORDER", "Stage"]
