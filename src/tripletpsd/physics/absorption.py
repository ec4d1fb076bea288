# src/tripletpsd/physics/absorption.py
from __future__ import annotations
import math
import numpy as np

# He-3 macroscopic absorption at 2200 m/s: 7.417 per (bar m)
HE3_MU_PER_BAR_M = 7.417
V_REF_M_PER_S = 2200.0


def he3_transmission(pressure_bar: float, t0: float, t1: float) -> float:
    """
    Probability to cross the gas without capture.

    |t1 - t0| is the time spent inside the tube, so |t1 - t0| * 2200 equals
    the path length scaled by the 1/v cross-section (2200 / speed).
    """
    return math.exp(-HE3_MU_PER_BAR_M * pressure_bar * abs(t1 - t0) * V_REF_M_PER_S)


def absorbed_weight(p: float, pressure_bar: float, t0: float, t1: float) -> float:
    """Weight carried by the absorbed fraction; unchanged without gas or chord."""
    if pressure_bar > 0 and t1 != t0:
        return p * (1.0 - he3_transmission(pressure_bar, t0, t1))
    return p


def axial_fraction(
    y_local: float,
    vy_local: float,
    t0: float,
    t1: float,
    length: float,
    mirrored: bool,
) -> float:
    """
    Fractional position along the tube from the chord midpoint.

    Outer tubes count from the -y end; the middle tube is mirrored in the
    assembly so it counts from the +y end.
    """
    y_hit = y_local + vy_local * 0.5 * (t0 + t1)
    if mirrored:
        return (0.5 * length - y_hit) / length
    return (y_hit + 0.5 * length) / length


def smootherstep(x):
    """6x^5 - 15x^4 + 10x^3 on [0, 1], clamped outside."""
    x = np.clip(x, 0.0, 1.0)
    return x * x * x * (x * (6.0 * x - 15.0) + 10.0)


def end_efficiency(ty: float, dead_length: float, length: float) -> float:
    """
    Sensitivity near both tube ends, 0 at the end and 1 beyond dead_length.

    dead_length == 0 gives exactly 1.
    """
    if dead_length <= 0:
        return 1.0
    f = dead_length / length
    return float(smootherstep(ty / f) * smootherstep((1.0 - ty) / f))
