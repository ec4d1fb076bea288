"""
Ray / finite-cylinder intersection.

The cylinder is centred on the local origin with its axis along y.
The ray is r + v*t; the returned t0 <= t1 are in the units of t implied
by v (a time when v is a velocity). The whole line is tested, so t0 may be
negative when the ray starts inside or beyond the cylinder.
"""
from __future__ import annotations
import math
import numpy as np

def intersect_cylinder(
    r: np.ndarray,
    v: np.ndarray,
    radius: float,
    length: float,
) -> tuple[bool, float, float]:
    x, y, z = float(r[0]), float(r[1]), float(r[2])
    vx, vy, vz = float(v[0]), float(v[1]), float(v[2])
    half = 0.5 * length

    # side wall: (x + vx t)^2 + (z + vz t)^2 = radius^2
    a = vx * vx + vz * vz
    c = x * x + z * z - radius * radius
    if a > 0.0:
        b = x * vx + z * vz
        disc = b * b - a * c
        if disc < 0.0:
            return False, 0.0, 0.0
        root = math.sqrt(disc)
        t0 = (-b - root) / a
        t1 = (-b + root) / a
    else:
        # parallel to the axis
        if c > 0.0:
            return False, 0.0, 0.0
        t0, t1 = -math.inf, math.inf

    # end caps: -half <= y + vy t <= half
    if vy != 0.0:
        ta = (-half - y) / vy
        tb = (half - y) / vy
        if ta > tb:
            ta, tb = tb, ta
        t0 = max(t0, ta)
        t1 = min(t1, tb)
    elif abs(y) > half:
        return False, 0.0, 0.0

    if t0 > t1 or math.isinf(t0) or math.isinf(t1):
        return False, 0.0, 0.0
    return True, t0, t1
