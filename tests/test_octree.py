import random

import numpy as np
import pytest

from gadsidm.octree import OctTree, Particle, TreeBuildError

SOFT = (0.01, 0.02, 0.05, 0.05, 0.05, 0.05)


def make_particles(n=40, seed=1):
    rng = random.Random(seed)
    return [
        Particle(
            pos=[rng.random(), rng.random(), rng.random()],
            vel=[rng.uniform(-1, 1) for _ in range(3)],
            mass=rng.uniform(0.5, 2.0),
            ptype=1,
            pid=i + 1,
        )
        for i in range(n)
    ]


def root_node(tree):
    return tree.nodes[0]


def test_root_mass_and_centre_of_mass():
    parts = make_particles()
    tree = OctTree.build(parts, SOFT)
    total = sum(p.mass for p in parts)
    com = [sum(p.mass * p.pos[k] for p in parts) / total for k in range(3)]
    vcom = [sum(p.mass * p.vel[k] for p in parts) / total for k in range(3)]
    root = root_node(tree)
    assert root.mass == pytest.approx(total)
    assert root.com == pytest.approx(com)
    assert root.vel_com == pytest.approx(vcom)


def test_walk_visits_everything_once():
    parts = make_particles()
    tree = OctTree.build(parts, SOFT)
    visited = list(tree.walk())
    assert len(visited) == len(parts) + len(tree.nodes)
    assert set(visited) == set(range(len(parts) + len(tree.nodes)))
    assert visited[0] == tree.root


def test_fathers_hold_their_particles_geometrically():
    parts = make_particles()
    tree = OctTree.build(parts, SOFT)
    for i, part in enumerate(parts):
        father = tree.nodes[tree.father[i] - tree.root]
        assert i in father.suns
        slot = father.suns.index(i)
        for axis in range(3):
            above = part.pos[axis] > father.center[axis]
            assert above == bool(slot & (1 << axis))


def test_node_masses_sum_children():
    parts = make_particles()
    tree = OctTree.build(parts, SOFT)
    for node in tree.nodes:
        total = 0.0
        for child in node.suns:
            if child < 0:
                continue
            if child >= tree.root:
                total += tree.nodes[child - tree.root].mass
            else:
                total += parts[child].mass
        assert node.mass == pytest.approx(total)
    assert root_node(tree).sibling == -1
    assert root_node(tree).father == -1


def test_softening_flags():
    parts = make_particles(10)
    parts[3].ptype = 2
    tree = OctTree.build(parts, SOFT)
    assert root_node(tree).max_soft_type == 2
    assert root_node(tree).has_mixed_softening

    uniform = OctTree.build(make_particles(10), SOFT)
    assert uniform.nodes[0].max_soft_type == 1
    assert not uniform.nodes[0].has_mixed_softening


def test_empty_tree_with_explicit_root():
    tree = OctTree.build([], SOFT, center=(1.0, 2.0, 3.0), length=4.0)
    root = root_node(tree)
    assert root.mass == 0
    assert root.com == [1.0, 2.0, 3.0]
    assert root.max_soft_type == 7
    assert list(tree.walk()) == [tree.root]


def test_empty_tree_without_root_size_raises():
    with pytest.raises(ValueError):
        OctTree.build([], SOFT)


def test_unknown_type_raises():
    parts = make_particles(3)
    parts[0].ptype = 6
    with pytest.raises(ValueError):
        OctTree.build(parts, SOFT)


def test_coincident_particles_without_randomizing_fail():
    parts = [Particle(pos=[0.5, 0.5, 0.5], pid=1), Particle(pos=[0.5, 0.5, 0.5], pid=2)]
    with pytest.raises(TreeBuildError):
        OctTree.build(parts, SOFT, center=(0, 0, 0), length=2.0, randomize_close=False)


def test_coincident_particles_with_randomizing_build():
    parts = [Particle(pos=[0.5, 0.5, 0.5], pid=1), Particle(pos=[0.5, 0.5, 0.5], pid=2)]
    tree = OctTree.build(parts, SOFT, center=(0, 0, 0), length=2.0)
    visited = [i for i in tree.walk() if i < tree.root]
    assert sorted(visited) == [0, 1]
    assert root_node(tree).mass == pytest.approx(2.0)


def test_dump_particles_round_trip(tmp_path):
    parts = make_particles(5)
    tree = OctTree.build(parts, SOFT)
    path = tmp_path / "particles0.dat"
    tree.dump_particles(path)
    raw = path.read_bytes()
    count = int(np.frombuffer(raw[:4], dtype="<i4")[0])
    assert count == 5
    floats = np.frombuffer(raw[4:4 + 2 * 12 * count], dtype="<f4").reshape(2, count, 3)
    ids = np.frombuffer(raw[4 + 2 * 12 * count:], dtype="<i4")
    np.testing.assert_allclose(floats[0], [p.pos for p in parts], rtol=1e-6)
    np.testing.assert_allclose(floats[1], [p.vel for p in parts], rtol=1e-6)
    assert list(ids) == [p.pid for p in parts]