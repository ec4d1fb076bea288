from __future__ import annotations
from dataclasses import dataclass, field
import math
import numpy as np

@dataclass
class TripletHistogram:
    """
    Per-channel count, weight sum and weight^2 sum.

    The `no` channels form three equal bands, one per tube in index order.
    All updates are additive, so private copies can be merged in any order.
    """
    no: int
    N: np.ndarray = field(init=False)
    p: np.ndarray = field(init=False)
    p2: np.ndarray = field(init=False)
    dropped: int = 0  # hits whose channel fell outside [0, no)

    def __post_init__(self):
        if self.no < 3 or self.no % 3:
            raise ValueError(f"no={self.no} must be a positive multiple of 3")
        self.N = np.zeros(self.no, dtype=np.uint64)
        self.p = np.zeros(self.no, dtype=np.float64)
        self.p2 = np.zeros(self.no, dtype=np.float64)

    @property
    def band(self) -> int:
        return self.no // 3

    def channel(self, tube: int, ty: float) -> int:
        return int(math.floor(self.band * ty)) + tube * self.band

    def record(self, channel: int, weight: float) -> bool:
        """Add one hit; returns False (and skips) when the channel is out of range."""
        if channel < 0 or channel >= self.no:
            self.dropped += 1
            return False
        self.N[channel] += 1
        self.p[channel] += weight
        self.p2[channel] += weight * weight
        return True

    def merge(self, other: "TripletHistogram") -> None:
        if other.no != self.no:
            raise ValueError(f"Cannot merge histograms with no={other.no} into no={self.no}")
        self.N += other.N
        self.p += other.p
        self.p2 += other.p2
        self.dropped += other.dropped
