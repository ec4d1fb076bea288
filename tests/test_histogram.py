import numpy as np
import pytest

from tripletpsd.detector.histogram import TripletHistogram


def test_bands_and_channels():
    h = TripletHistogram(30)
    assert h.band == 10
    assert h.channel(0, 0.0) == 0
    assert h.channel(1, 0.5) == 15
    assert h.channel(2, 0.999) == 29
    assert h.channel(2, 1.0) == 30


def test_no_must_split_into_three():
    with pytest.raises(ValueError):
        TripletHistogram(31)


def test_record_and_drop():
    h = TripletHistogram(9)
    assert h.record(4, 0.5)
    assert h.record(4, 0.25)
    assert not h.record(9, 1.0)
    assert not h.record(-1, 1.0)
    assert h.N[4] == 2
    assert h.p[4] == pytest.approx(0.75)
    assert h.p2[4] == pytest.approx(0.3125)
    assert h.dropped == 2


def test_merge_is_order_free():
    rng = np.random.default_rng(1)
    ch = rng.integers(-3, 33, 500)
    w = rng.uniform(0, 2, 500)

    a = TripletHistogram(30)
    for c, x in zip(ch, w):
        a.record(int(c), float(x))

    b1, b2 = TripletHistogram(30), TripletHistogram(30)
    for c, x in zip(ch[:200], w[:200]):
        b1.record(int(c), float(x))
    for c, x in zip(ch[200:], w[200:]):
        b2.record(int(c), float(x))
    b = TripletHistogram(30)
    b.merge(b2)
    b.merge(b1)

    np.testing.assert_array_equal(a.N, b.N)
    np.testing.assert_allclose(a.p, b.p)
    np.testing.assert_allclose(a.p2, b.p2)
    assert a.dropped == b.dropped


def test_merge_rejects_other_channel_count():
    with pytest.raises(ValueError):
        TripletHistogram(30).merge(TripletHistogram(60))
