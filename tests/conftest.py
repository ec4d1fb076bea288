from __future__ import annotations
import numpy as np
import pytest

from tripletpsd.detector.tubes import Tube, TripletAssembly
from tripletpsd.geometry.frames import Frame


class FixedRandom:
    """Deterministic stand-in for the host random source."""

    def __init__(self, values):
        self.values = list(values)
        self.calls = 0

    def random(self) -> float:
        u = self.values[self.calls % len(self.values)]
        self.calls += 1
        return u


def make_assembly(
    length=0.25,
    radius=0.0127,
    rho=1000.0,
    pitch=0.026,
    R01=380.0,
    R12=380.0,
    lead_a=0.0,
    lead_b=0.0,
    offsets=None,
) -> TripletAssembly:
    if offsets is None:
        offsets = [[-pitch, 0.0, 0.0], [0.0, 0.0, 0.0], [pitch, 0.0, 0.0]]
    tubes = tuple(
        Tube(i, length, radius, rho, Frame(np.asarray(off, dtype=float), np.eye(3)))
        for i, off in enumerate(offsets)
    )
    return TripletAssembly(tubes, R01=R01, R12=R12, lead_a=lead_a, lead_b=lead_b)


@pytest.fixture
def assembly() -> TripletAssembly:
    return make_assembly()
