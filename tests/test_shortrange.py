import numpy as np
import pytest

from gadsidm.ewald import EwaldTable
from gadsidm.kernel import (
    force_factor,
    potential_term,
    shortrange_force_table,
    shortrange_potential_table,
)
from gadsidm.octree import OctTree, Particle
from gadsidm.shortrange import ShortRangeWalker
from gadsidm.treewalk import TreeWalker, WalkSettings

SOFT = (0.01,) * 6


def _pair(distance):
    parts = [Particle(pos=[0.0, 0.0, 0.0]), Particle(pos=[distance, 0.0, 0.0])]
    return parts, OctTree.build(parts, SOFT)


def test_pair_force_uses_short_range_table():
    parts, tree = _pair(1.0)
    walker = ShortRangeWalker(asmth=1.0)
    (ax, ay, az), count = walker.acceleration(tree, parts[0])
    index = int(0.5 / 1.0 * (1000 / 3.0) * 1.0)
    expected = force_factor(1.0, 1.0, 0.01) * shortrange_force_table(1000)[index]
    assert ax == pytest.approx(expected)
    assert ay == pytest.approx(0.0)
    assert az == pytest.approx(0.0)
    assert count == 2


def test_pair_forces_are_opposite():
    parts, tree = _pair(1.0)
    walker = ShortRangeWalker(asmth=1.0)
    a0, _ = walker.acceleration(tree, parts[0])
    a1, _ = walker.acceleration(tree, parts[1])
    assert a0[0] == pytest.approx(-a1[0])


def test_far_particle_beyond_table_gives_nothing():
    parts, tree = _pair(10.0)
    walker = ShortRangeWalker(asmth=1.0)
    acc, count = walker.acceleration(tree, parts[0])
    assert acc == (0.0, 0.0, 0.0)
    assert count == 1


def test_large_split_scale_matches_full_tree_force():
    rng = np.random.default_rng(3)
    parts = [Particle(pos=list(rng.uniform(-1, 1, 3)), mass=float(rng.uniform(0.5, 2))) for _ in range(30)]
    tree = OctTree.build(parts, SOFT)
    short = ShortRangeWalker(asmth=1.0e4)
    full = TreeWalker(WalkSettings())
    for part in parts[:5]:
        a_short, _ = short.acceleration(tree, part)
        a_full, _ = full.acceleration(tree, part)
        assert a_short == pytest.approx(a_full, rel=1e-5, abs=1e-9)


def test_potential_of_pair():
    parts, tree = _pair(1.0)
    walker = ShortRangeWalker(asmth=1.0)
    table = shortrange_potential_table(1000)
    index = int(1.0 * 0.5 * (1000 / 3.0))
    expected = table[0] * potential_term(1.0, 0.0, 0.01) + table[index] * potential_term(1.0, 1.0, 0.01)
    assert walker.potential(tree, parts[0]) == pytest.approx(expected)


def test_far_potential_only_self_term():
    parts, tree = _pair(10.0)
    walker = ShortRangeWalker(asmth=1.0)
    expected = shortrange_potential_table(1000)[0] * potential_term(1.0, 0.0, 0.01)
    assert walker.potential(tree, parts[0]) == pytest.approx(expected)


def test_invalid_split_scale():
    with pytest.raises(ValueError):
        ShortRangeWalker(asmth=0.0)


def test_invalid_cut_radius():
    with pytest.raises(ValueError):
        ShortRangeWalker(asmth=1.0, rcut=-1.0)


def test_ewald_settings_rejected():
    zeros = np.zeros((2, 2, 2))
    table = EwaldTable(1.0, 1, zeros, zeros, zeros, zeros)
    settings = WalkSettings(box_size=1.0, ewald=table)
    with pytest.raises(ValueError):
        ShortRangeWalker(asmth=1.0, settings=settings)


def test_target_without_softening_rejected():
    parts, tree = _pair(1.0)
    stranger = Particle(pos=[0.2, 0.0, 0.0], ptype=9)
    with pytest.raises(ValueError):
        ShortRangeWalker(asmth=1.0).acceleration(tree, stranger)