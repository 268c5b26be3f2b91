"""Double-buffered percept tensors.

Actions render into ``next``; ``step()`` publishes ``next`` into ``cur`` in
one pass, so readers of ``cur`` only ever see a fully rendered tick.
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional, Tuple

import numpy as np


class StateBuffer:
    def __init__(self) -> None:
        self.next: Dict[str, np.ndarray] = {}
        self.cur: Dict[str, np.ndarray] = {}

    def add(self, name: str, shape: Tuple[int, ...]) -> np.ndarray:
        arr = np.zeros(shape, dtype=np.float32)
        self.next[name] = arr
        return arr

    def names(self) -> Iterable[str]:
        return self.next.keys()

    def copy_next_to_cur(self) -> None:
        for name, ns in self.next.items():
            cs = self.cur.get(name)
            if cs is None or cs.shape != ns.shape:
                self.cur[name] = ns.copy()
            else:
                np.copyto(cs, ns)

    def current(self, name: str) -> Optional[np.ndarray]:
        """Read-only view of the settled tensor, or None for unknown names."""
        cs = self.cur.get(name)
        if cs is None:
            return None
        view = cs.view()
        view.flags.writeable = False
        return view

    def clear(self) -> None:
        for arr in self.next.values():
            arr.fill(0.0)
        self.copy_next_to_cur()


__all__ = ["StateBuffer"]
