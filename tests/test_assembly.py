import itertools
import numpy as np
import pytest

from tripletpsd.config.schemas import DetectorCfg, TubeCfg
from tripletpsd.detector.tubes import TripletAssembly
from tripletpsd.geometry.frames import rotation_from_angles, rotation_from_endpoint


def _cfg(**kw) -> DetectorCfg:
    tubes = [
        TubeCfg(length=0.20, radius=0.010, rho=1000.0, offset=[-0.03, 0, 0]),
        TubeCfg(length=0.25, radius=0.012, rho=2000.0),
        TubeCfg(length=0.30, radius=0.014, rho=3000.0, resistance=900.0, offset=[0.03, 0, 0]),
    ]
    return DetectorCfg(tubes=tubes, **kw)


def test_total_resistance_sums_tubes_connectors_and_leads():
    a = TripletAssembly.from_cfg(_cfg(R01=10.0, R12=20.0, lead_a=1.0, lead_b=2.0))
    # tube 2 uses its explicit resistance
    expect = 0.20 * 1000.0 + 0.25 * 2000.0 + 900.0 + 10.0 + 20.0 + 1.0 + 2.0
    assert a.total_resistance == pytest.approx(expect)
    assert a.preceding_resistance(0) == pytest.approx(1.0)
    assert a.preceding_resistance(1) == pytest.approx(1.0 + 200.0 + 10.0)
    assert a.preceding_resistance(2) == pytest.approx(1.0 + 200.0 + 10.0 + 500.0 + 20.0)


def test_total_resistance_is_frozen():
    a = TripletAssembly.from_cfg(_cfg(R01=10.0, R12=20.0))
    with pytest.raises(Exception):
        a.total_resistance = 0.0


@pytest.mark.parametrize(
    "length,radius,R,rho",
    list(itertools.product([0.0, 0.5], [0.0, 0.02], [0.0, 600.0], [0.0, 4000.0])),
)
def test_aggregate_overrides_take_precedence(length, radius, R, rho):
    per_tube = _cfg().tubes
    a = TripletAssembly.from_cfg(_cfg(length=length, radius=radius, R=R, rho=rho, R01=5.0, R12=7.0))
    for t, tc in zip(a.tubes, per_tube):
        assert t.length == (length if length > 0 else tc.length)
        assert t.radius == (radius if radius > 0 else tc.radius)
        if R > 0:
            assert t.resistance == pytest.approx(R)
        elif rho > 0:
            assert t.rho == rho
        elif tc.resistance > 0:
            assert t.resistance == pytest.approx(tc.resistance)
        else:
            assert t.rho == tc.rho
    assert a.total_resistance == pytest.approx(sum(t.resistance for t in a.tubes) + 12.0)


def test_middle_tube_has_no_offset():
    a = TripletAssembly.from_cfg(_cfg())
    np.testing.assert_array_equal(a.tubes[1].frame.offset, np.zeros(3))
    np.testing.assert_allclose(a.tubes[0].frame.offset, [-0.03, 0, 0])


def test_angle_orientation_rotates_axis():
    m = rotation_from_angles(0.0, 90.0).as_matrix()
    np.testing.assert_allclose(m @ [0, 1, 0], [-1, 0, 0], atol=1e-12)
    np.testing.assert_allclose(rotation_from_angles(0.0, 0.0).as_matrix(), np.eye(3), atol=1e-15)


def test_endpoint_orientation_points_axis_at_displaced_end():
    L, dx = 0.25, 0.01
    m = rotation_from_endpoint(L, np.array([dx, 0.0, 0.0])).as_matrix()
    expect = np.array([dx, np.sqrt(0.25 * L * L - dx * dx), 0.0])
    np.testing.assert_allclose(m @ [0, 1, 0], expect / np.linalg.norm(expect), atol=1e-9)


def test_endpoint_orientation_rejects_impossible_displacement():
    with pytest.raises(ValueError):
        rotation_from_endpoint(0.25, np.array([0.2, 0.0, 0.0]))


def test_endpoint_config_builds_tilted_frames():
    cfg = _cfg(orientation={"kind": "endpoints", "ends": [[0.005, 0, 0], [0, 0, 0], [0, 0, -0.005]]})
    a = TripletAssembly.from_cfg(cfg)
    assert a.tubes[0].frame.axis[0] > 0
    np.testing.assert_allclose(a.tubes[1].frame.axis, [0, 1, 0], atol=1e-12)
    assert a.tubes[2].frame.axis[2] < 0
