from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Literal, NamedTuple, Optional

import numpy as np

from tripletpsd.config.schemas import Config
from tripletpsd.detector.histogram import TripletHistogram
from tripletpsd.detector.resolver import GeometryResolver, Ordering
from tripletpsd.detector.tubes import TripletAssembly, MIDDLE
from tripletpsd.physics.absorption import absorbed_weight, axial_fraction, end_efficiency
from tripletpsd.physics.charge import (
    ChargeDivision,
    ContinuousDivider,
    RandomSource,
    make_charge_division,
    MISS_CHARGE,
)
from tripletpsd.physics.rays import OutputSlot, Ray, RaySchema

Outcome = Literal["scatter", "absorb"]

@dataclass(slots=True)
class DetectionEvent:
    """
    Per-ray detection record (not persisted).

    A miss carries tube=-1, t0=-2, t1=-1 and left=right=-1.
    """
    tube: int
    t0: float
    t1: float
    ty: float
    channel: int
    left: float
    right: float
    p: float

    @classmethod
    def miss(cls) -> "DetectionEvent":
        return cls(-1, -2.0, -1.0, -1.0, -1, MISS_CHARGE, MISS_CHARGE, 0.0)

    @property
    def is_hit(self) -> bool:
        return self.tube >= 0

    @property
    def time(self) -> float:
        return 0.5 * (self.t0 + self.t1)


class TraceResult(NamedTuple):
    event: DetectionEvent
    outcome: Outcome
    recorded: bool   # histogram cell updated
    restored: bool   # kinematics put back after processing


@dataclass
class TraceStats:
    rays: int = 0
    hits: int = 0
    misses: int = 0
    reasons: Dict[str, int] = field(default_factory=dict)

    def inc(self, reason: str) -> None:
        self.reasons[reason] = self.reasons.get(reason, 0) + 1

    def merge(self, other: "TraceStats") -> None:
        self.rays += other.rays
        self.hits += other.hits
        self.misses += other.misses
        for k, n in other.reasons.items():
            self.reasons[k] = self.reasons.get(k, 0) + n


def _resolve_slot(detector: str, schema: RaySchema, name: str) -> Optional[OutputSlot]:
    if not name:
        return None
    try:
        return schema.slot(name)
    except KeyError:
        raise KeyError(
            f"Detector {detector!r}: ray slot {name!r} is not defined "
            f"(available: {list(schema.slots)})"
        ) from None


class TripletDetector:
    """
    Three serially wired He-3 PSD tubes with charge-division readout.

    One instance owns its histogram; rays are traced one at a time with
    trace(), or in bulk with tripletpsd.detector.batch.trace_rays().
    """

    def __init__(
        self,
        assembly: TripletAssembly,
        *,
        name: str = "triplet",
        ordering: Ordering = "shortcut",
        charge: ChargeDivision | None = None,
        no: int = 300,
        pressure: float = 0.0,
        dead_length: float = 0.0,
        schema: RaySchema | None = None,
        charge_left: str = "",
        charge_right: str = "",
        time: str = "",
        restore_neutron: bool = False,
        rng: RandomSource | None = None,
    ):
        self.name = name
        self.assembly = assembly
        self.resolver = GeometryResolver(assembly, ordering)
        self.charge = charge if charge is not None else ContinuousDivider(assembly)
        if self.charge.needs_rng and rng is None:
            raise ValueError(
                f"Detector {name!r}: {self.charge.name} charge division needs a random source"
            )
        self.pressure = float(pressure)
        self.dead_length = float(dead_length)
        self.restore_neutron = bool(restore_neutron)
        self.rng = rng
        self.histogram = TripletHistogram(no)
        self.stats = TraceStats()

        # slot names are checked here so a typo fails before any tracing
        self.schema = schema if schema is not None else RaySchema()
        self.slot_left = _resolve_slot(name, self.schema, charge_left)
        self.slot_right = _resolve_slot(name, self.schema, charge_right)
        self.slot_time = _resolve_slot(name, self.schema, time)

    @classmethod
    def from_cfg(
        cls,
        cfg: Config,
        schema: RaySchema | None = None,
        rng: RandomSource | None = None,
    ) -> "TripletDetector":
        det = cfg.detector
        assembly = TripletAssembly.from_cfg(det)
        return cls(
            assembly,
            name=det.name,
            ordering=det.ordering,
            charge=make_charge_division(det.charge, assembly),
            no=cfg.histogram.no,
            pressure=det.pressure,
            dead_length=det.dead_length,
            schema=schema,
            charge_left=cfg.output.charge_left,
            charge_right=cfg.output.charge_right,
            time=cfg.output.time,
            restore_neutron=cfg.output.restore_neutron,
            rng=rng,
        )

    @property
    def total_resistance(self) -> float:
        return self.assembly.total_resistance

    def _miss(self, ray: Ray, state, stats: TraceStats, reason: str) -> TraceResult:
        stats.misses += 1
        stats.inc(reason)
        if state is not None:
            ray.restore(state)
        return TraceResult(DetectionEvent.miss(), "absorb", False, state is not None)

    def trace(
        self,
        ray: Ray,
        rng: RandomSource | None = None,
        histogram: TripletHistogram | None = None,
        stats: TraceStats | None = None,
    ) -> TraceResult:
        """
        Process one ray: find the struck tube, attenuate its weight, histogram
        the hit, divide the charge and write the optional ray slots.
        """
        hist = self.histogram if histogram is None else histogram
        stats = self.stats if stats is None else stats
        rng = self.rng if rng is None else rng
        stats.rays += 1

        state = ray.kinematics() if self.restore_neutron else None

        hit = self.resolver.resolve(ray.r, ray.v)
        if hit is None:
            return self._miss(ray, state, stats, "no_intersection")

        tube = self.assembly.tubes[hit.tube]
        p = absorbed_weight(ray.p, self.pressure, hit.t0, hit.t1)
        ty = axial_fraction(
            hit.r_local[1], hit.v_local[1], hit.t0, hit.t1, tube.length, mirrored=hit.tube == MIDDLE
        )
        if not 0.0 <= ty <= 1.0:
            return self._miss(ray, state, stats, "axial_out_of_range")
        p *= end_efficiency(ty, self.dead_length, tube.length)

        # split first: a failing draw must leave ray and histogram untouched
        left, right = self.charge.split(hit.tube, ty, rng)
        ray.p = p

        channel = hist.channel(hit.tube, ty)
        recorded = hist.record(channel, p)
        if not recorded:
            stats.inc("channel_out_of_range")

        event = DetectionEvent(hit.tube, hit.t0, hit.t1, ty, channel, left, right, p)

        if self.slot_left is not None:
            self.slot_left.write(ray, left)
        if self.slot_right is not None:
            self.slot_right.write(ray, right)
        if self.slot_time is not None:
            self.slot_time.write(ray, event.time)

        stats.hits += 1
        if state is not None:
            ray.restore(state)
        return TraceResult(event, "scatter", recorded, state is not None)
