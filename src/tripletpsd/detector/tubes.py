from __future__ import annotations
from dataclasses import dataclass, field
from typing import Tuple
import numpy as np

from tripletpsd.config.schemas import DetectorCfg, TubeCfg, AnglesOrientation
from tripletpsd.geometry.frames import Frame, rotation_from_angles, rotation_from_endpoint

MIDDLE = 1

@dataclass(frozen=True)
class Tube:
    """
    One gas-filled PSD tube, axis along local y.

    length, radius [m]; rho [Ohm/m]; frame places it in the assembly.
    """
    index: int
    length: float
    radius: float
    rho: float
    frame: Frame

    @property
    def resistance(self) -> float:
        return self.rho * self.length


@dataclass(frozen=True)
class TripletAssembly:
    """
    Three tubes wired in series: lead_a, tube0, R01, tube1, R12, tube2, lead_b.

    total_resistance is fixed at construction.
    """
    tubes: Tuple[Tube, Tube, Tube]
    R01: float = 0.0
    R12: float = 0.0
    lead_a: float = 0.0
    lead_b: float = 0.0
    total_resistance: float = field(init=False)
    _preceding: Tuple[float, float, float] = field(init=False, repr=False)

    def __post_init__(self):
        if len(self.tubes) != 3:
            raise ValueError(f"TripletAssembly needs 3 tubes, got {len(self.tubes)}")
        t0, t1, t2 = self.tubes
        preceding = (
            self.lead_a,
            self.lead_a + t0.resistance + self.R01,
            self.lead_a + t0.resistance + self.R01 + t1.resistance + self.R12,
        )
        total = sum(t.resistance for t in self.tubes) + self.R01 + self.R12 + self.lead_a + self.lead_b
        object.__setattr__(self, "_preceding", preceding)
        object.__setattr__(self, "total_resistance", float(total))

    def preceding_resistance(self, index: int) -> float:
        """Chain resistance between end A and the start of tube `index`."""
        return self._preceding[index]

    @classmethod
    def from_cfg(cls, cfg: DetectorCfg) -> "TripletAssembly":
        tubes = tuple(_resolve_tube(i, t, cfg) for i, t in enumerate(cfg.tubes))
        return cls(tubes, R01=cfg.R01, R12=cfg.R12, lead_a=cfg.lead_a, lead_b=cfg.lead_b)


def _resolve_tube(index: int, tcfg: TubeCfg, cfg: DetectorCfg) -> Tube:
    """Apply the aggregate overrides and build the tube's frame."""
    length = cfg.length if cfg.length > 0 else tcfg.length
    radius = cfg.radius if cfg.radius > 0 else tcfg.radius
    if length <= 0 or radius <= 0:
        raise ValueError(f"tube {index}: length and radius must be > 0")

    # R (explicit wire resistance) wins over rho; aggregate wins over per-tube
    rho = cfg.rho if cfg.rho > 0 else tcfg.rho
    if cfg.R > 0:
        rho = cfg.R / length
    elif cfg.rho <= 0 and tcfg.resistance > 0:
        rho = tcfg.resistance / length

    offset = np.zeros(3) if index == MIDDLE else np.asarray(tcfg.offset, dtype=np.float64)
    ori = cfg.orientation
    if isinstance(ori, AnglesOrientation):
        rot = rotation_from_angles(*ori.angles[index])
    else:
        rot = rotation_from_endpoint(length, np.asarray(ori.ends[index], dtype=np.float64))
    return Tube(index=index, length=length, radius=radius, rho=rho, frame=Frame.from_rotation(offset, rot))
