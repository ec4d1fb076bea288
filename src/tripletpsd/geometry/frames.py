from __future__ import annotations
from dataclasses import dataclass
import numpy as np
from scipy.spatial.transform import Rotation

Y_AXIS = np.array([0.0, 1.0, 0.0])

def rotation_from_angles(rx_deg: float, rz_deg: float) -> Rotation:
    """Tilt about local x, then about z (degrees). Identity for (0, 0)."""
    return Rotation.from_euler("xz", [rx_deg, rz_deg], degrees=True)

def rotation_from_endpoint(length: float, end: np.ndarray) -> Rotation:
    """
    Orientation taking (0,1,0) onto the centre-to-end vector of a tube whose
    +y end is displaced by `end` from its nominal position.

    The displacement is only free in x and z; the y component of the
    centre-to-end vector follows from the tube length. A non-zero end[1]
    must agree with that value.
    """
    end = np.asarray(end, dtype=np.float64)
    half = 0.5 * float(length)
    dx, dy, dz = end
    y2 = half * half - dx * dx - dz * dz
    if y2 <= 0:
        raise ValueError(
            f"Tube end displacement ({dx}, {dz}) is not smaller than the half-length {half}"
        )
    com_to_end = np.array([dx, np.sqrt(y2), dz])
    if dy != 0 and not np.isclose(com_to_end[1], half + dy):
        raise ValueError("Provided tube-end displacement contains a wrong y-component value")
    if dx == 0 and dz == 0:
        return Rotation.identity()
    rot, _ = Rotation.align_vectors([com_to_end / np.linalg.norm(com_to_end)], [Y_AXIS])
    return rot

@dataclass(frozen=True)
class Frame:
    """
    Placement of a tube inside the assembly frame.

    offset: tube centre in assembly coordinates
    matrix: (3,3) rotation, local -> assembly
    """
    offset: np.ndarray
    matrix: np.ndarray

    @classmethod
    def from_rotation(cls, offset, rotation: Rotation) -> "Frame":
        return cls(np.asarray(offset, dtype=np.float64), rotation.as_matrix())

    @property
    def axis(self) -> np.ndarray:
        """Tube axis direction in assembly coordinates."""
        return self.matrix @ Y_AXIS

    def to_local(self, r: np.ndarray, v: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Translate then rotate a point and a direction into the local frame."""
        m_t = self.matrix.T
        return m_t @ (r - self.offset), m_t @ v
