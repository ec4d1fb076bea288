from __future__ import annotations
import math
from typing import Protocol

from ..detector.tubes import TripletAssembly

MISS_CHARGE = -1

class RandomSource(Protocol):
    def random(self) -> float:
        """Uniform draw in [0, 1)."""

# --- Interfaces -------------------------------------------------------------

class ChargeDivision:
    """Base protocol: split the signal of a hit between the two readout ends."""
    name: str
    needs_rng = False

    def __init__(self, assembly: TripletAssembly):
        self.assembly = assembly

    def right_resistance(self, tube: int, ty: float) -> float:
        """Chain resistance from end A to the hit point."""
        t = self.assembly.tubes[tube]
        return self.assembly.preceding_resistance(tube) + t.resistance * ty

    def split(self, tube: int, ty: float, rng: RandomSource | None = None) -> tuple[float, float]:
        """Return (left, right)."""
        raise NotImplementedError

# --- Implementations --------------------------------------------------------

class ContinuousDivider(ChargeDivision):
    """left + right == total_resistance."""
    name = "continuous"

    def split(self, tube, ty, rng=None):
        right = self.right_resistance(tube, ty)
        return self.assembly.total_resistance - right, right

class QuantizedPulseDivider(ChargeDivision):
    """
    Integer pulse height uniform in [threshold, levels), divided by the
    continuous resistance ratio with truncation; left + right == height.
    """
    name = "quantized"
    needs_rng = True

    def __init__(self, assembly: TripletAssembly, threshold: int, levels: int):
        super().__init__(assembly)
        if not 0 <= threshold < levels:
            raise ValueError(f"need 0 <= threshold < levels, got {threshold}, {levels}")
        if assembly.total_resistance <= 0:
            raise ValueError("quantized charge division needs a positive total resistance")
        self.threshold = int(threshold)
        self.levels = int(levels)

    def pulse_height(self, rng: RandomSource) -> int:
        span = self.levels - self.threshold
        # guard u == 1.0 from sources that round up
        return self.threshold + min(int(math.floor(span * rng.random())), span - 1)

    def split(self, tube, ty, rng=None):
        if rng is None:
            raise ValueError("quantized charge division needs a random source")
        height = self.pulse_height(rng)
        ratio = self.right_resistance(tube, ty) / self.assembly.total_resistance
        right = int(math.floor(height * ratio))
        return height - right, right

# --- Factory ----------------------------------------------------------------

def make_charge_division(cfg_charge, assembly: TripletAssembly) -> ChargeDivision:
    if cfg_charge.kind == "continuous":
        return ContinuousDivider(assembly)
    elif cfg_charge.kind == "quantized":
        return QuantizedPulseDivider(assembly, cfg_charge.threshold, cfg_charge.levels)
    else:
        raise ValueError(f"Unknown charge division {cfg_charge.kind}")
