import math
import numpy as np
import pytest

from tripletpsd.config.schemas import ContinuousCharge, QuantizedCharge
from tripletpsd.physics.charge import (
    ContinuousDivider,
    QuantizedPulseDivider,
    make_charge_division,
)

from conftest import FixedRandom, make_assembly


@pytest.mark.parametrize("tube", [0, 1, 2])
@pytest.mark.parametrize("ty", [0.0, 0.13, 0.5, 0.999, 1.0])
def test_continuous_sums_to_total_resistance(assembly, tube, ty):
    left, right = ContinuousDivider(assembly).split(tube, ty)
    assert left + right == pytest.approx(assembly.total_resistance)


def test_continuous_right_charge_follows_chain():
    a = make_assembly(length=0.25, rho=1000.0, R01=300.0, R12=400.0, lead_a=5.0, lead_b=7.0)
    div = ContinuousDivider(a)
    # tube 1 starts after lead_a + tube0 + R01
    _, right = div.split(1, 0.2)
    assert right == pytest.approx(5.0 + 250.0 + 300.0 + 0.2 * 250.0)
    _, right0 = div.split(0, 0.0)
    assert right0 == pytest.approx(5.0)
    left2, _ = div.split(2, 1.0)
    assert left2 == pytest.approx(7.0)


def test_quantized_sums_to_height(assembly):
    div = QuantizedPulseDivider(assembly, threshold=200, levels=4096)
    rng = FixedRandom([0.5])
    left, right = div.split(1, 0.37, rng)
    height = 200 + math.floor(3896 * 0.5)
    assert isinstance(left, int) and isinstance(right, int)
    assert left + right == height
    ratio = div.right_resistance(1, 0.37) / assembly.total_resistance
    assert right == math.floor(height * ratio)


def test_quantized_height_window(assembly):
    div = QuantizedPulseDivider(assembly, threshold=200, levels=4096)
    rng = FixedRandom([0.0, 0.25, 0.999999999, np.nextafter(1.0, 0.0)])
    heights = [div.pulse_height(rng) for _ in range(4)]
    assert heights[0] == 200
    assert all(200 <= h < 4096 for h in heights)
    assert heights[-1] == 4095


def test_quantized_many_draws(assembly):
    div = QuantizedPulseDivider(assembly, threshold=50, levels=1024)
    rng = np.random.default_rng(7)
    for tube in (0, 1, 2):
        for ty in np.linspace(0, 1, 11):
            left, right = div.split(tube, float(ty), rng)
            assert 50 <= left + right < 1024
            assert left >= 0 and right >= 0


def test_quantized_needs_random_source(assembly):
    with pytest.raises(ValueError):
        QuantizedPulseDivider(assembly, 10, 100).split(0, 0.5)


def test_factory(assembly):
    assert make_charge_division(ContinuousCharge(), assembly).name == "continuous"
    q = make_charge_division(QuantizedCharge(threshold=1, levels=8), assembly)
    assert isinstance(q, QuantizedPulseDivider) and q.levels == 8
