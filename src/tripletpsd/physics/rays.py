from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple
import numpy as np

@dataclass(slots=True)
class Ray:
    """
    Neutron ray handed over by the host simulation.

    r: position [m]
    v: velocity [m/s]
    p: statistical weight
    t: time [s]
    s: optional spin vector
    ext: extension slots, laid out by the RaySchema that created the ray
    """
    r: np.ndarray  # shape (3,), dtype float
    v: np.ndarray  # shape (3,), dtype float
    p: float = 1.0
    t: float = 0.0
    s: Optional[np.ndarray] = None
    ext: np.ndarray = field(default_factory=lambda: np.zeros(0))

    def kinematics(self) -> Tuple[np.ndarray, np.ndarray, float, Optional[np.ndarray]]:
        """Copy of the state restored by non-perturbing detectors."""
        return (
            self.r.copy(),
            self.v.copy(),
            self.p,
            None if self.s is None else self.s.copy(),
        )

    def restore(self, state) -> None:
        r, v, p, s = state
        self.r[...] = r
        self.v[...] = v
        self.p = p
        if s is not None:
            self.s[...] = s


@dataclass(frozen=True)
class OutputSlot:
    """Handle to one named extension slot, resolved once before tracing."""
    name: str
    index: int

    def write(self, ray: Ray, value: float) -> None:
        ray.ext[self.index] = value

    def read(self, ray: Ray) -> float:
        return float(ray.ext[self.index])


@dataclass(frozen=True)
class RaySchema:
    """Names of the extension slots every ray carries, in storage order."""
    slots: Tuple[str, ...] = ()

    @classmethod
    def of(cls, names: Sequence[str]) -> "RaySchema":
        names = tuple(names)
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate ray slot names in {names}")
        return cls(names)

    def slot(self, name: str) -> OutputSlot:
        try:
            return OutputSlot(name, self.slots.index(name))
        except ValueError:
            raise KeyError(name) from None

    def new_ray(self, r, v, p: float = 1.0, t: float = 0.0, s=None) -> Ray:
        return Ray(
            r=np.asarray(r, dtype=np.float64).copy(),
            v=np.asarray(v, dtype=np.float64).copy(),
            p=float(p),
            t=float(t),
            s=None if s is None else np.asarray(s, dtype=np.float64).copy(),
            ext=np.zeros(len(self.slots), dtype=np.float64),
        )
