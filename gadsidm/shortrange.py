"""Short-range tree walks for the TreePM split of the gravitational force."""

from __future__ import annotations

import math
from collections.abc import Sequence

from gadsidm.ewald import nearest_image
from gadsidm.kernel import (
    force_factor,
    potential_term,
    shortrange_force_table,
    shortrange_potential_table,
)
from gadsidm.octree import NO_SOFT_TYPE, Node, OctTree, Particle
from gadsidm.treewalk import WalkSettings

NTAB = 1000
RCUT_OVER_ASMTH = 4.5 / 1.25
_INSIDE_CELL = 0.60

Vector = tuple[float, float, float]


class ShortRangeWalker:
    """Walks an :class:`OctTree` for the erfc-suppressed short-range force.

    ``asmth`` is the force-split scale; nodes farther than ``rcut`` (by default
    3.6 split scales) are skipped.  Results are in units with G = 1.
    """

    def __init__(
        self,
        asmth: float,
        rcut: float | None = None,
        settings: WalkSettings | None = None,
        ntab: int = NTAB,
    ) -> None:
        if asmth <= 0:
            raise ValueError(f"split scale must be positive, got {asmth!r}")
        if rcut is None:
            rcut = RCUT_OVER_ASMTH * asmth
        if rcut <= 0:
            raise ValueError(f"cut radius must be positive, got {rcut!r}")
        settings = settings if settings is not None else WalkSettings()
        if settings.ewald is not None:
            raise ValueError("the short-range walk takes no Ewald correction")
        self.asmth = float(asmth)
        self.rcut = float(rcut)
        self.settings = settings
        self.ntab = ntab
        self._force_table = shortrange_force_table(ntab)
        self._potential_table = shortrange_potential_table(ntab)
        self._asmthfac = 0.5 / self.asmth * (ntab / 3.0)

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

    def _outside_cut(self, node: Node, pos: Sequence[float]) -> bool:
        eff_dist = self.rcut + 0.5 * node.length
        return any(abs(d) > eff_dist for d in self._separation(node.center, pos))

    @staticmethod
    def _node_softening(node: Node, h_target: float, r2: float, mass: float, soft) -> float | None:
        """Softening to use for ``node``, or None when it must be opened."""
        maxtype = node.max_soft_type
        if maxtype == NO_SOFT_TYPE:
            if mass > 0:
                raise RuntimeError("a node with mass carries no softening type")
            return None
        h = h_target
        if h < soft[maxtype]:
            h = soft[maxtype]
            if r2 < h * h and node.has_mixed_softening:
                return None
        return h

    @staticmethod
    def _target_softening(tree: OctTree, target: Particle) -> float:
        if not 0 <= target.ptype < len(tree.force_softening):
            raise ValueError(f"target type {target.ptype} has no softening length")
        return tree.force_softening[target.ptype]

    def acceleration(self, tree: OctTree, target: Particle) -> tuple[Vector, int]:
        """Short-range acceleration on ``target`` and the number of interactions."""
        soft = tree.force_softening
        h_target = self._target_softening(tree, target)
        aold = self.settings.err_tol_force_acc * target.old_acc
        pos = target.pos
        root = tree.root
        rcut2 = self.rcut * self.rcut

        acc = [0.0, 0.0, 0.0]
        count = 0
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
                mass = node.mass
                d = self._separation(node.com, pos)
                r2 = d[0] * d[0] + d[1] * d[1] + d[2] * d[2]
                if r2 > rcut2 and self._outside_cut(node, pos):
                    no = node.sibling
                    continue
                if self._opens(node, r2, mass, aold, pos):
                    no = node.nextnode
                    continue
                h = self._node_softening(node, h_target, r2, mass, soft)
                if h is None:
                    no = node.nextnode
                    continue
                no = node.sibling

            r = math.sqrt(r2)
            tabindex = int(self._asmthfac * r)
            if tabindex < self.ntab:
                fac = force_factor(mass, r, h) * self._force_table[tabindex]
                for k in range(3):
                    acc[k] += d[k] * fac
                count += 1

        return (acc[0], acc[1], acc[2]), count

    def potential(self, tree: OctTree, target: Particle) -> float:
        """Short-range potential at ``target``, including its own softened term."""
        soft = tree.force_softening
        h_target = self._target_softening(tree, target)
        aold = self.settings.err_tol_force_acc * target.old_acc
        pos = target.pos
        root = tree.root

        pot = 0.0
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
                mass = node.mass
                d = self._separation(node.com, pos)
                r2 = d[0] * d[0] + d[1] * d[1] + d[2] * d[2]
                if self._outside_cut(node, pos):
                    no = node.sibling
                    continue
                if self._opens(node, r2, mass, aold, pos):
                    no = node.nextnode
                    continue
                h = self._node_softening(node, h_target, r2, mass, soft)
                if h is None:
                    no = node.nextnode
                    continue
                no = node.sibling

            r = math.sqrt(r2)
            tabindex = int(r * self._asmthfac)
            if tabindex < self.ntab:
                pot += self._potential_table[tabindex] * potential_term(mass, r, h)

        return pot