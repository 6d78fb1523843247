import math
import random

import pytest

from gadsidm.scatterkernels import (
    fcosth_moller,
    fcosth_rutherford,
    get_gij,
    get_wij,
    shuffle_neighbours,
)


def integrate(f, a, b, n=20000):
    step = (b - a) / n
    return sum(f(a + (k + 0.5) * step) for k in range(n)) * step


def test_wij_central_value():
    assert get_wij(2.0, 0.0) == pytest.approx(8.0 / (3.14159265358979 * 8.0))


def test_wij_normalised():
    h = 1.5
    total = integrate(lambda r: 4 * math.pi * r * r * get_wij(h, r), 0.0, h)
    assert total == pytest.approx(1.0, rel=1e-4)


def test_wij_continuous_and_compact():
    h = 1.0
    assert get_wij(h, 0.5 - 1e-9) == pytest.approx(get_wij(h, 0.5), rel=1e-6)
    assert get_wij(h, 1.0) == 0.0
    assert get_wij(h, 3.0) == 0.0


def test_gij_continuous_and_compact():
    h = 2.0
    assert get_gij(h, 1.0 - 1e-9) == pytest.approx(get_gij(h, 1.0), rel=1e-6)
    assert get_gij(h, 2.0 - 1e-6) == pytest.approx(0.0, abs=1e-12)
    assert get_gij(h, 2.5) == 0.0
    assert get_gij(h, 0.0) > get_gij(h, 0.5) > get_gij(h, 1.5)


def test_nonpositive_h_raises():
    with pytest.raises(ValueError):
        get_wij(0.0, 0.1)
    with pytest.raises(ValueError):
        get_gij(-1.0, 0.1)


@pytest.mark.parametrize("v,vw", [(1.0, 1.0), (3.0, 0.5), (0.2, 2.0)])
def test_rutherford_normalised(v, vw):
    assert integrate(lambda c: fcosth_rutherford(c, v, vw), -1.0, 1.0) == pytest.approx(1.0, rel=1e-4)


@pytest.mark.parametrize("v,vw", [(1.0, 1.0), (3.0, 0.5), (0.2, 2.0)])
def test_moller_normalised_and_symmetric(v, vw):
    assert integrate(lambda c: fcosth_moller(c, v, vw), -1.0, 1.0) == pytest.approx(1.0, rel=1e-4)
    assert fcosth_moller(0.3, v, vw) == pytest.approx(fcosth_moller(-0.3, v, vw))


def test_shuffle_is_permutation_and_leaves_input():
    items = list(range(20))
    result = shuffle_neighbours(items, random.Random(3))
    assert sorted(result) == items
    assert items == list(range(20))


def test_shuffle_reproducible_with_seed():
    items = list(range(50))
    first = shuffle_neighbours(items, random.Random(11))
    second = shuffle_neighbours(items, random.Random(11))
    assert first == second
    assert shuffle_neighbours([], random.Random(1)) == []