"""Tree walks for gravitational accelerations, potentials and Ewald corrections."""

from __future__ import annotations

import math
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

from gadsidm.ewald import EwaldTable, nearest_image
from gadsidm.kernel import force_factor, potential_term
from gadsidm.octree import NO_SOFT_TYPE, Node, OctTree, Particle

_INSIDE_CELL = 0.60
_EWALD_MAX_CELL = 0.20
_DIRECT_EWALD_MIN_U = 1.0e-5

Vector = tuple[float, float, float]


@dataclass(frozen=True)
class WalkSettings:
    """Opening criterion and boundary conditions of a tree walk.

    A non-zero ``err_tol_theta`` selects the geometric Barnes-Hut criterion;
    zero selects the relative criterion driven by ``err_tol_force_acc`` and the
    target's acceleration from the previous step.  ``box_size`` makes the
    walk periodic and ``ewald`` adds the Ewald correction of the periodic images.
    """

    err_tol_theta: float = 0.5
    err_tol_force_acc: float = 0.005
    box_size: float | None = None
    ewald: EwaldTable | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.err_tol_theta < 0:
            raise ValueError(f"opening angle must not be negative, got {self.err_tol_theta!r}")
        if self.err_tol_force_acc < 0:
            raise ValueError(
                f"force accuracy must not be negative, got {self.err_tol_force_acc!r}"
            )
        if self.box_size is not None and self.box_size <= 0:
            raise ValueError(f"box size must be positive, got {self.box_size!r}")
        if self.ewald is not None:
            if self.box_size is None:
                raise ValueError("an Ewald table needs a periodic box size")
            if not math.isclose(self.ewald.box_size, self.box_size):
                raise ValueError(
                    f"Ewald table is for box {self.ewald.box_size!r}, walk uses {self.box_size!r}"
                )


class TreeWalker:
    """Computes gravity on a target by walking an :class:`OctTree`.

    Results are in units with G = 1.
    """

    def __init__(self, settings: WalkSettings | None = None) -> None:
        self.settings = settings if settings is not None else WalkSettings()

    def _separation(self, source: Sequence[float], pos: Sequence[float]) -> list[float]:
        d = [source[k] - pos[k] for k in range(3)]
        box = self.settings.box_size
        if box is not None:
            d = [nearest_image(x, box) for x in d]
        return d

    def _opens(self, node: Node, r2: float, mass: float, aold: float, pos: Sequence[float]) -> bool:
        theta = self.settings.err_tol_theta
        length2 = node.length * node.length
        if theta:
            return length2 > r2 * theta * theta
        if mass * length2 > r2 * r2 * aold:
            return True
        limit = _INSIDE_CELL * node.length
        return all(abs(node.center[k] - pos[k]) < limit for k in range(3))

    @staticmethod
    def _target_softening(tree: OctTree, target: Particle) -> float:
        if not 0 <= target.ptype < len(tree.force_softening):
            raise ValueError(f"target type {target.ptype} has no softening length")
        return tree.force_softening[target.ptype]

    def _interactions(
        self, tree: OctTree, target: Particle
    ) -> Iterator[tuple[list[float], float, float, float]]:
        """Yield (separation, r^2, mass, softening) for every accepted particle or node."""
        soft = tree.force_softening
        h_target = self._target_softening(tree, target)
        aold = self.settings.err_tol_force_acc * target.old_acc
        pos = target.pos
        root = tree.root

        no = root
        while no >= 0:
            if no < root:
                part = tree.particles[no]
                d = self._separation(part.pos, pos)
                r2 = d[0] * d[0] + d[1] * d[1] + d[2] * d[2]
                mass = part.mass
                h = max(h_target, soft[part.ptype])
                no = tree.next_particle[no]
            else:
                node = tree.nodes[no - root]
                d = self._separation(node.com, pos)
                r2 = d[0] * d[0] + d[1] * d[1] + d[2] * d[2]
                mass = node.mass
                if self._opens(node, r2, mass, aold, pos):
                    no = node.nextnode
                    continue

                h = h_target
                maxtype = node.max_soft_type
                if maxtype == NO_SOFT_TYPE:
                    if mass > 0:
                        raise RuntimeError("a node with mass carries no softening type")
                    no = node.nextnode
                    continue
                if h < soft[maxtype]:
                    h = soft[maxtype]
                    if r2 < h * h and node.has_mixed_softening:
                        no = node.nextnode
                        continue
                no = node.sibling
            yield d, r2, mass, h

    def acceleration(self, tree: OctTree, target: Particle) -> tuple[Vector, int]:
        """Acceleration on ``target`` and the number of tree interactions used.

        With an Ewald table configured, the periodic correction is included.
        """
        acc = [0.0, 0.0, 0.0]
        count = 0
        for d, r2, mass, h in self._interactions(tree, target):
            fac = force_factor(mass, math.sqrt(r2), h)
            for k in range(3):
                acc[k] += d[k] * fac
            count += 1

        if self.settings.ewald is not None:
            corr, _ = self.ewald_correction(tree, target, target.old_acc)
            acc = [acc[k] + corr[k] for k in range(3)]
        return (acc[0], acc[1], acc[2]), count

    def potential(self, tree: OctTree, target: Particle) -> float:
        """Gravitational potential at ``target``, including its own softened term."""
        ewald = self.settings.ewald
        pot = 0.0
        for d, r2, mass, h in self._interactions(tree, target):
            pot += potential_term(mass, math.sqrt(r2), h)
            if ewald is not None:
                pot += mass * ewald.potential_correction(*d)
        return pot

    def ewald_correction(self, tree: OctTree, target: Particle, old_acc: float) -> tuple[Vector, int]:
        """Ewald correction to the acceleration of ``target`` and the number of terms.

        Nodes are only replaced by their centre of mass when they lie wholly on
        one side of the periodic boundary and are small compared with the box.
        """
        ewald = self.settings.ewald
        box = self.settings.box_size
        if ewald is None or box is None:
            raise ValueError("the Ewald correction needs a periodic box and an Ewald table")

        aold = self.settings.err_tol_force_acc * old_acc
        pos = target.pos
        root = tree.root
        acc = [0.0, 0.0, 0.0]
        cost = 0

        no = root
        while no >= 0:
            if no < root:
                part = tree.particles[no]
                d = self._separation(part.pos, pos)
                mass = part.mass
                no = tree.next_particle[no]
            else:
                node = tree.nodes[no - root]
                d = self._separation(node.com, pos)
                mass = node.mass
                r2 = d[0] * d[0] + d[1] * d[1] + d[2] * d[2]
                if self._opens(node, r2, mass, aold, pos):
                    limit = 0.5 * (box - node.length)
                    straddles = any(
                        abs(nearest_image(node.center[k] - pos[k], box)) > limit for k in range(3)
                    )
                    if straddles or node.length > _EWALD_MAX_CELL * box:
                        no = node.nextnode
                        continue
                no = node.sibling

            corr = ewald.force_correction(*d)
            for k in range(3):
                acc[k] += mass * corr[k]
            cost += 1

        return (acc[0], acc[1], acc[2]), cost


def _wrap(x: float, box_size: float) -> float:
    half = 0.5 * box_size
    while x > half:
        x -= box_size
    while x < -half:
        x += box_size
    return x


def direct_acceleration(
    particles,
    target: Particle,
    force_softening,
    box_size: float | None = None,
    ewald: EwaldTable | None = None,
) -> Vector:
    """Acceleration on ``target`` by direct summation over ``particles`` (G = 1)."""
    soft = tuple(float(s) for s in force_softening)
    if not 0 <= target.ptype < len(soft):
        raise ValueError(f"target type {target.ptype} has no softening length")
    if ewald is not None:
        if box_size is None:
            box_size = ewald.box_size
        elif not math.isclose(ewald.box_size, box_size):
            raise ValueError(
                f"Ewald table is for box {ewald.box_size!r}, summation uses {box_size!r}"
            )
    if box_size is not None and box_size <= 0:
        raise ValueError(f"box size must be positive, got {box_size!r}")

    h_target = soft[target.ptype]
    acc = [0.0, 0.0, 0.0]
    for part in particles:
        if not 0 <= part.ptype < len(soft):
            raise ValueError(f"particle type {part.ptype} has no softening length")
        h = max(soft[part.ptype], h_target)
        d = [part.pos[k] - target.pos[k] for k in range(3)]
        if box_size is not None:
            d = [_wrap(x, box_size) for x in d]
        r = math.sqrt(d[0] * d[0] + d[1] * d[1] + d[2] * d[2])
        fac = force_factor(part.mass, r, h)
        for k in range(3):
            acc[k] += d[k] * fac
        if ewald is not None and r / h > _DIRECT_EWALD_MIN_U:
            corr = ewald.force_correction(*d)
            for k in range(3):
                acc[k] += part.mass * corr[k]
    return (acc[0], acc[1], acc[2])