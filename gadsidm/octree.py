"""Geometric oct-tree holding particles and their multipole moments."""

from __future__ import annotations

import random
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

NO_SOFT_TYPE = 7
_CLOSE_FRACTION = 1.0e-3
_BOX_ENLARGE = 1.001


def _zeros() -> list[float]:
    return [0.0, 0.0, 0.0]


def _vector(values, name: str) -> list[float]:
    vec = [float(v) for v in values]
    if len(vec) != 3:
        raise ValueError(f"{name} must have three components, got {len(vec)}")
    return vec


@dataclass(eq=False)
class Particle:
    """A simulation particle with the state used by gravity and scattering."""

    pos: list[float]
    vel: list[float] = field(default_factory=_zeros)
    mass: float = 1.0
    ptype: int = 1
    pid: int = 0
    hsml: float = 0.0
    grav_accel: list[float] = field(default_factory=_zeros)
    old_acc: float = 0.0
    grav_cost: float = 0.0
    potential: float = 0.0
    ti_begstep: int = 0
    ti_endstep: int = 0
    tscatt: int = 0

    def __post_init__(self) -> None:
        self.pos = _vector(self.pos, "pos")
        self.vel = _vector(self.vel, "vel")
        self.grav_accel = _vector(self.grav_accel, "grav_accel")


@dataclass(eq=False)
class Node:
    """An internal tree node.

    ``bitflags`` holds the particle type of largest softening in bits 2-4
    (7 when the node is empty) and, in bit 5, whether softer particles are
    present as well.
    """

    center: list[float]
    length: float
    suns: list[int] = field(default_factory=lambda: [-1] * 8)
    mass: float = 0.0
    com: list[float] = field(default_factory=_zeros)
    vel_com: list[float] = field(default_factory=_zeros)
    hmax: float = 0.0
    bitflags: int = 0
    sibling: int = -1
    father: int = -1
    nextnode: int = -1

    @property
    def max_soft_type(self) -> int:
        return (self.bitflags >> 2) & 7

    @property
    def has_mixed_softening(self) -> bool:
        return bool((self.bitflags >> 5) & 1)


class TreeBuildError(RuntimeError):
    """Raised when the tree needs more nodes than allowed."""


def _octant(pos: Sequence[float], center: Sequence[float]) -> int:
    sub = 0
    if pos[0] > center[0]:
        sub += 1
    if pos[1] > center[1]:
        sub += 2
    if pos[2] > center[2]:
        sub += 4
    return sub


def _random_number(seed: float) -> float:
    return random.Random(int(seed)).random()


def _merge_soft(current: int, diff: int, candidate: int, soft: Sequence[float]) -> tuple[int, int]:
    if current == NO_SOFT_TYPE:
        return candidate, diff
    if candidate == NO_SOFT_TYPE:
        return current, diff
    if soft[candidate] > soft[current]:
        return candidate, 1
    if soft[candidate] < soft[current]:
        return current, 1
    return current, diff


def _bounding_cube(particles: Sequence[Particle]) -> tuple[list[float], float]:
    if not particles:
        raise ValueError("cannot size the root node of an empty tree; give center and length")
    coords = np.array([p.pos for p in particles], dtype=float)
    lo = coords.min(axis=0)
    hi = coords.max(axis=0)
    extent = float(np.max(hi - lo))
    length = _BOX_ENLARGE * extent if extent > 0 else 1.0
    return [float(c) for c in 0.5 * (lo + hi)], length


@dataclass(eq=False)
class OctTree:
    """Oct-tree over ``particles``.

    Indices below ``root`` refer to particles, indices from ``root`` on to
    ``nodes[index - root]``; -1 ends a chain.  ``next_particle`` and the
    nodes' ``nextnode`` thread the tree for a non-recursive walk.
    """

    particles: list[Particle]
    nodes: list[Node]
    force_softening: tuple[float, ...]
    next_particle: list[int]
    father: list[int]

    @property
    def root(self) -> int:
        return len(self.particles)

    @classmethod
    def build(
        cls,
        particles,
        force_softening,
        center=None,
        length=None,
        max_nodes=None,
        randomize_close=True,
    ) -> "OctTree":
        """Insert all particles, then compute masses, centres and threading."""
        particles = list(particles)
        soft = tuple(float(s) for s in force_softening)
        for part in particles:
            if not 0 <= part.ptype < len(soft):
                raise ValueError(f"particle type {part.ptype} has no softening length")

        if center is None or length is None:
            auto_center, auto_length = _bounding_cube(particles)
            center = auto_center if center is None else center
            length = auto_length if length is None else length
        center = _vector(center, "center")
        length = float(length)
        if length <= 0:
            raise ValueError(f"root length must be positive, got {length!r}")

        npart = len(particles)
        root = npart
        if max_nodes is None:
            max_nodes = 8 * npart + 64

        nodes = [Node(center, length)]

        for i, part in enumerate(particles):
            epsilon = soft[part.ptype]
            th = root
            parent = -1
            subnode = 0
            while True:
                if th >= root:
                    node = nodes[th - root]
                    subnode = _octant(part.pos, node.center)
                    nn = node.suns[subnode]
                    if nn >= 0:
                        parent, th = th, nn
                        continue
                    node.suns[subnode] = i
                    break

                parent_node = nodes[parent - root]
                quarter = 0.25 * parent_node.length
                child_center = [
                    c + quarter if subnode & (1 << axis) else c - quarter
                    for axis, c in enumerate(parent_node.center)
                ]
                child = Node(child_center, 0.5 * parent_node.length)
                new_index = root + len(nodes)
                parent_node.suns[subnode] = new_index
                nodes.append(child)

                sub = _octant(particles[th].pos, child_center)
                if randomize_close and child.length < _CLOSE_FRACTION * epsilon:
                    # Particles at (nearly) identical places: split them at random.
                    sub = int(8.0 * _random_number((0xFFFF & part.pid) + part.grav_cost))
                    part.grav_cost += 1
                    sub = min(sub, 7)
                child.suns[sub] = th
                th = new_index

                if len(nodes) >= max_nodes:
                    raise TreeBuildError(
                        f"maximum number {max_nodes} of tree nodes reached for particle {i}"
                    )

        tree = cls(particles, nodes, soft, [-1] * npart, [-1] * npart)
        tree._compute_moments()
        return tree

    def _set_next(self, last: int, no: int) -> None:
        if last >= self.root:
            self.nodes[last - self.root].nextnode = no
        else:
            self.next_particle[last] = no

    def _compute_moments(self) -> None:
        root = self.root
        soft = self.force_softening
        last = -1

        def update(no: int, sib: int, father: int) -> None:
            nonlocal last
            if last >= 0:
                self._set_next(last, no)
            last = no

            if no < root:
                self.father[no] = father
                return

            node = self.nodes[no - root]
            suns = [s for s in node.suns if s >= 0]
            mass = 0.0
            s = [0.0, 0.0, 0.0]
            vs = [0.0, 0.0, 0.0]
            hmax = 0.0
            maxtype = NO_SOFT_TYPE
            diff = 0

            for p, nextsib in zip(suns, suns[1:] + [sib]):
                update(p, nextsib, no)
                if p >= root:
                    child = self.nodes[p - root]
                    mass += child.mass
                    for k in range(3):
                        s[k] += child.mass * child.com[k]
                        vs[k] += child.mass * child.vel_com[k]
                    hmax = max(hmax, child.hmax)
                    diff |= int(child.has_mixed_softening)
                    maxtype, diff = _merge_soft(maxtype, diff, child.max_soft_type, soft)
                else:
                    part = self.particles[p]
                    mass += part.mass
                    for k in range(3):
                        s[k] += part.mass * part.pos[k]
                        vs[k] += part.mass * part.vel[k]
                    maxtype, diff = _merge_soft(maxtype, diff, part.ptype, soft)
                    if part.ptype == 0:
                        hmax = max(hmax, part.hsml)

            if mass:
                s = [c / mass for c in s]
                vs = [c / mass for c in vs]
            else:
                s = list(node.center)

            node.mass = mass
            node.com = s
            node.vel_com = vs
            node.hmax = hmax
            node.bitflags = 4 * maxtype + 32 * diff
            node.sibling = sib
            node.father = father

        update(root, -1, -1)
        self._set_next(last, -1)

    def walk(self) -> Iterator[int]:
        """Yield every particle and node index in threaded depth-first order."""
        no = self.root
        while no >= 0:
            yield no
            if no >= self.root:
                no = self.nodes[no - self.root].nextnode
            else:
                no = self.next_particle[no]

    def dump_particles(self, path) -> None:
        """Write count, positions, velocities and IDs in single precision."""
        parts = self.particles
        count = len(parts)
        pos = np.array([p.pos for p in parts], dtype="<f4").reshape(count, 3)
        vel = np.array([p.vel for p in parts], dtype="<f4").reshape(count, 3)
        ids = np.array([p.pid for p in parts], dtype="<i4")
        with Path(path).open("wb") as fh:
            fh.write(np.array([count], dtype="<i4").tobytes())
            fh.write(pos.tobytes())
            fh.write(vel.tobytes())
            fh.write(ids.tobytes())