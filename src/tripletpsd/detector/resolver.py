from __future__ import annotations
from typing import Literal, NamedTuple, Optional, Tuple
import numpy as np

from tripletpsd.detector.tubes import TripletAssembly, MIDDLE
from tripletpsd.geometry.cylinder import intersect_cylinder

Ordering = Literal["shortcut", "strict"]

class TubeHit(NamedTuple):
    tube: int
    t0: float
    t1: float
    r_local: np.ndarray
    v_local: np.ndarray

class GeometryResolver:
    """
    First-hit search over the three tubes.

    "shortcut": middle tube untransformed (it is the assembly frame), then 0, then 2.
    "strict":   tubes 0, 1, 2, each through its full frame transform.

    Overlapping tubes are not detected; the traversal order picks the winner.
    """

    def __init__(self, assembly: TripletAssembly, ordering: Ordering = "shortcut"):
        if ordering not in ("shortcut", "strict"):
            raise ValueError(f"Unknown ordering {ordering!r}")
        self.assembly = assembly
        self.ordering = ordering
        self.order: Tuple[int, ...] = (MIDDLE, 0, 2) if ordering == "shortcut" else (0, 1, 2)

    def resolve(self, r: np.ndarray, v: np.ndarray) -> Optional[TubeHit]:
        for i in self.order:
            tube = self.assembly.tubes[i]
            if i == MIDDLE and self.ordering == "shortcut":
                rl, vl = r, v
            else:
                rl, vl = tube.frame.to_local(r, v)
            hit, t0, t1 = intersect_cylinder(rl, vl, tube.radius, tube.length)
            if hit:
                return TubeHit(i, t0, t1, rl, vl)
        return None
