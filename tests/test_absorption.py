import math
import numpy as np
import pytest

from tripletpsd.physics.absorption import (
    absorbed_weight,
    axial_fraction,
    end_efficiency,
    he3_transmission,
    smootherstep,
)


def test_no_gas_keeps_weight():
    assert absorbed_weight(0.7, 0.0, 1e-5, 2e-5) == 0.7


def test_zero_chord_keeps_weight():
    assert absorbed_weight(0.7, 10.0, 1e-5, 1e-5) == 0.7


def test_gas_attenuates_weight():
    t0, t1 = 1.0e-5, 1.5e-5
    transmit = math.exp(-7.417 * 10.0 * 0.5e-5 * 2200.0)
    assert he3_transmission(10.0, t0, t1) == pytest.approx(transmit)
    assert absorbed_weight(2.0, 10.0, t0, t1) == pytest.approx(2.0 * (1.0 - transmit))
    # swapping t0/t1 changes nothing
    assert he3_transmission(10.0, t1, t0) == pytest.approx(transmit)


def test_axial_fraction_outer_and_mirrored():
    L = 0.25
    # chord midpoint at y = +L/4
    assert axial_fraction(0.0, 1250.0, 0.0, 1e-4, L, mirrored=False) == pytest.approx(0.75)
    assert axial_fraction(0.0, 1250.0, 0.0, 1e-4, L, mirrored=True) == pytest.approx(0.25)
    assert axial_fraction(0.0, 0.0, 0.0, 1e-4, L, mirrored=True) == 0.5


def test_axial_fraction_can_leave_unit_interval():
    assert axial_fraction(0.2, 0.0, 0.0, 1e-4, 0.25, mirrored=False) > 1.0


def test_zero_dead_length_is_identity():
    for ty in np.linspace(0.0, 1.0, 101):
        assert end_efficiency(float(ty), 0.0, 0.25) == 1.0


def test_dead_length_tapers_to_ends():
    L, d = 0.25, 0.025
    assert end_efficiency(0.0, d, L) == 0.0
    assert end_efficiency(1.0, d, L) == 0.0
    assert end_efficiency(0.5, d, L) == 1.0
    assert end_efficiency(0.05, d, L) == pytest.approx(end_efficiency(0.95, d, L))
    assert 0.0 < end_efficiency(0.05, d, L) < 1.0


def test_smootherstep_flat_at_boundaries():
    h = 1e-4
    for x0 in (0.0, 1.0):
        slope = (smootherstep(x0 + h) - smootherstep(x0 - h)) / (2 * h)
        assert abs(slope) < 1e-6
    assert smootherstep(0.5) == pytest.approx(0.5)
