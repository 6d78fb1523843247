import math

import numpy as np
import pytest

from gadsidm.kernel import (
    force_factor,
    potential_term,
    shortrange_force_table,
    shortrange_potential_table,
)


def test_force_newtonian_outside_softening():
    assert force_factor(2.0, 3.0, 1.0) == pytest.approx(2.0 / 27.0)
    assert force_factor(1.0, 1.0, 1.0) == pytest.approx(1.0)


def test_force_continuous_at_softening_edge():
    inside = force_factor(1.5, 2.0 - 1e-9, 2.0)
    outside = force_factor(1.5, 2.0, 2.0)
    assert inside == pytest.approx(outside, rel=1e-6)


def test_force_continuous_at_half_softening():
    below = force_factor(1.0, 0.5 - 1e-10, 1.0)
    above = force_factor(1.0, 0.5 + 1e-10, 1.0)
    assert below == pytest.approx(above, rel=1e-6)


def test_force_finite_at_origin():
    assert force_factor(1.0, 0.0, 1.0) == pytest.approx(10.666666666667)


def test_force_scales_with_mass():
    assert force_factor(3.0, 0.3, 1.0) == pytest.approx(3.0 * force_factor(1.0, 0.3, 1.0))


def test_potential_newtonian_outside():
    assert potential_term(2.0, 4.0, 1.0) == pytest.approx(-0.5)


def test_potential_at_origin():
    assert potential_term(1.0, 0.0, 2.0) == pytest.approx(-2.8 / 2.0)


def test_potential_continuous_at_edges():
    assert potential_term(1.0, 1.0 - 1e-9, 1.0) == pytest.approx(-1.0, rel=1e-6)
    below = potential_term(1.0, 0.5 - 1e-10, 1.0)
    above = potential_term(1.0, 0.5 + 1e-10, 1.0)
    assert below == pytest.approx(above, rel=1e-6)


def test_potential_monotonic():
    values = [potential_term(1.0, r, 1.0) for r in np.linspace(0.0, 3.0, 50)]
    assert all(a <= b + 1e-12 for a, b in zip(values, values[1:]))


def test_nonpositive_softening_raises():
    with pytest.raises(ValueError):
        force_factor(1.0, 1.0, 0.0)
    with pytest.raises(ValueError):
        potential_term(1.0, 1.0, -1.0)


def test_tables_shape_and_bounds():
    force = shortrange_force_table(1000)
    pot = shortrange_potential_table(1000)
    assert force.shape == (1000,)
    assert pot.shape == (1000,)
    assert np.all(force > 0) and np.all(force <= 1.0)
    assert np.all(pot > 0) and np.all(pot <= 1.0)
    assert np.all(np.diff(force) < 0)
    assert np.all(np.diff(pot) < 0)
    assert np.all(force >= pot)


def test_table_first_entry():
    pot = shortrange_potential_table(10)
    assert pot[0] == pytest.approx(math.erfc(0.15))


def test_table_length_must_be_positive():
    with pytest.raises(ValueError):
        shortrange_force_table(0)
    with pytest.raises(ValueError):
        shortrange_potential_table(-3)