from __future__ import annotations
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Annotated, Literal, Optional, List, Union

class RunCfg(BaseModel):
    """
    Global run controls.
    """

    # Performance / execution
    workers: Union[int, Literal["auto"]] = 0
    chunk_rays: Union[int, Literal["auto"]] = "auto"
    progress: bool = True

    # Seed for the host random source (None = fresh entropy)
    seed: Optional[int] = None

    # Diagnostics
    diagnostics_level: int = 1  # 0=off, 1=minimal, 2=verbose

    @field_validator("diagnostics_level")
    def _diag_range(cls, v: int) -> int:
        if v not in (0, 1, 2):
            raise ValueError("diagnostics_level must be 0, 1, or 2")
        return v


class TubeCfg(BaseModel):
    """
    One PSD tube. Lengths in m, resistivity in Ohm/m.

    `resistance`, when > 0, replaces rho*length for this tube.
    `offset` is the tube centre relative to the middle (reference) tube.
    """

    length: float = 0.25
    radius: float = 0.0127
    rho: float = 7874.0  # 200 Ohm/in
    resistance: float = 0.0
    offset: List[float] = [0.0, 0.0, 0.0]

    @field_validator("offset")
    def _offset_3(cls, v: List[float]) -> List[float]:
        if len(v) != 3:
            raise ValueError("tube offset must have 3 components")
        return v


class AnglesOrientation(BaseModel):
    """
    Explicit tilt per tube: [rx, rz] in degrees (about local x, then z).

    TOML:

    [detector.orientation]
    kind = "angles"
    angles = [[0, 0], [0, 0], [0, 0]]
    """

    kind: Literal["angles"] = "angles"
    angles: List[List[float]] = [[0.0, 0.0], [0.0, 0.0], [0.0, 0.0]]

    @field_validator("angles")
    def _three_pairs(cls, v: List[List[float]]) -> List[List[float]]:
        if len(v) != 3 or any(len(a) != 2 for a in v):
            raise ValueError("orientation.angles must be three [rx, rz] pairs")
        return v


class EndpointsOrientation(BaseModel):
    """
    Orientation derived from the displacement of each tube's +y end away
    from its nominal (untilted) position. Only the x and z components are
    free; y follows from the tube length.

    TOML:

    [detector.orientation]
    kind = "endpoints"
    ends = [[0.001, 0, 0], [0, 0, 0], [-0.001, 0, 0]]
    """

    kind: Literal["endpoints"] = "endpoints"
    ends: List[List[float]] = [[0.0, 0.0, 0.0], [0.0, 0.0, 0.0], [0.0, 0.0, 0.0]]

    @field_validator("ends")
    def _three_vectors(cls, v: List[List[float]]) -> List[List[float]]:
        if len(v) != 3 or any(len(a) != 3 for a in v):
            raise ValueError("orientation.ends must be three [dx, dy, dz] vectors")
        return v


OrientationCfg = Annotated[
    Union[AnglesOrientation, EndpointsOrientation], Field(discriminator="kind")
]


class ContinuousCharge(BaseModel):
    kind: Literal["continuous"] = "continuous"


class QuantizedCharge(BaseModel):
    """
    Pulse-height spectrum: integer heights uniform in [threshold, levels).
    """

    kind: Literal["quantized"] = "quantized"
    threshold: int = 200
    levels: int = 4096

    @model_validator(mode="after")
    def _window(self) -> "QuantizedCharge":
        if self.threshold < 0 or self.threshold >= self.levels:
            raise ValueError(
                f"need 0 <= threshold < levels, got threshold={self.threshold}, levels={self.levels}"
            )
        return self


ChargeCfg = Annotated[Union[ContinuousCharge, QuantizedCharge], Field(discriminator="kind")]


class DetectorCfg(BaseModel):
    """
    Triplet geometry and electronics.

    Aggregate overrides (length, radius, R, rho) replace the matching
    per-tube value for all three tubes whenever they are > 0.
    """

    name: str = "triplet"
    ordering: Literal["shortcut", "strict"] = "shortcut"

    # Gas and end effects
    pressure: float = 0.0  # bar of He-3; 0 disables attenuation
    dead_length: float = 0.0  # m from each tube end

    # Series chain
    R01: float = 0.0
    R12: float = 0.0
    lead_a: float = 0.0
    lead_b: float = 0.0

    # Aggregate overrides
    length: float = 0.0
    radius: float = 0.0
    R: float = 0.0
    rho: float = 0.0

    tubes: List[TubeCfg] = Field(
        default_factory=lambda: [
            TubeCfg(offset=[-0.026, 0.0, 0.0]),
            TubeCfg(),
            TubeCfg(offset=[0.026, 0.0, 0.0]),
        ]
    )
    orientation: OrientationCfg = Field(default_factory=AnglesOrientation)
    charge: ChargeCfg = Field(default_factory=ContinuousCharge)

    @field_validator("tubes")
    def _three_tubes(cls, v: List[TubeCfg]) -> List[TubeCfg]:
        if len(v) != 3:
            raise ValueError(f"a triplet needs exactly 3 tubes, got {len(v)}")
        if any(abs(x) > 0 for x in v[1].offset):
            raise ValueError("the middle tube is the reference frame; its offset must be [0, 0, 0]")
        return v

    @field_validator("pressure", "dead_length", "R01", "R12", "lead_a", "lead_b")
    def _non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("must be >= 0")
        return v


class OutputCfg(BaseModel):
    """
    Optional ray-slot outputs and the non-perturbing flag.

    Empty slot names disable that output.
    """

    charge_left: str = ""
    charge_right: str = ""
    time: str = ""
    restore_neutron: bool = False


class HistogramCfg(BaseModel):
    no: int = 300
    filename: str = "triplet.h5"
    title: str = "Triplet PSD"
    nowrite: bool = False

    @field_validator("no")
    def _bands(cls, v: int) -> int:
        if v < 3 or v % 3:
            raise ValueError("histogram.no must be a positive multiple of 3")
        return v


class SourceCfg(BaseModel):
    """
    Synthetic beam aimed at the assembly origin.

    shape = "point": all rays start at `position`.
    shape = "rect":  start points uniform over width x height in the xy plane.
    """

    n_rays: int = 100000
    shape: Literal["point", "rect"] = "rect"
    position: List[float] = [0.0, 0.0, -1.0]
    width: float = 0.05
    height: float = 0.3
    target: List[float] = [0.0, 0.0, 0.0]
    focus_width: float = 0.05
    focus_height: float = 0.3
    lambda_min: float = 3.0  # Angstrom
    lambda_max: float = 5.0
    weight: float = 1.0
    slots: List[str] = []


class VisCfg(BaseModel):
    export_png_on_write: bool = False


class Config(BaseModel):
    """
    Top-level TOML configuration.
    """

    run: RunCfg = Field(default_factory=RunCfg)
    detector: DetectorCfg = Field(default_factory=DetectorCfg)
    output: OutputCfg = Field(default_factory=OutputCfg)
    histogram: HistogramCfg = Field(default_factory=HistogramCfg)
    source: SourceCfg = Field(default_factory=SourceCfg)
    vis: VisCfg = Field(default_factory=VisCfg)
