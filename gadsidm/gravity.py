"""Gravitational accelerations for all active particles."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace

from gadsidm.octree import OctTree
from gadsidm.shortrange import ShortRangeWalker
from gadsidm.softening import Softenings
from gadsidm.treeupdate import recompute_moments
from gadsidm.treewalk import TreeWalker, WalkSettings


@dataclass(frozen=True)
class GravitySettings:
    """Physical constants, cosmology and force options of a gravity step.

    ``short_range`` selects the TreePM short-range walk; ``selective_no_gravity``
    is a bit mask of particle types that receive no gravitational force.
    """

    softenings: Softenings
    g: float = 1.0
    time: float = 1.0
    comoving: bool = False
    hubble: float = 0.0
    omega0: float = 0.0
    omega_lambda: float = 0.0
    walk: WalkSettings = field(default_factory=WalkSettings)
    type_of_opening_criterion: int = 0
    short_range: ShortRangeWalker | None = None
    gravity_on: bool = True
    selective_no_gravity: int = 0

    def __post_init__(self) -> None:
        if self.g == 0:
            raise ValueError("the gravitational constant must not be zero")
        if self.time <= 0:
            raise ValueError(f"time must be positive, got {self.time!r}")
        if self.type_of_opening_criterion not in (0, 1):
            raise ValueError(
                f"opening criterion type must be 0 or 1, got {self.type_of_opening_criterion!r}"
            )


@dataclass(frozen=True)
class GravityReport:
    """Outcome of a gravity step and the settings to use for the next one."""

    active: int
    interactions: int
    tree: OctTree
    tree_built: bool
    next_settings: GravitySettings


def _next_settings(settings: GravitySettings) -> GravitySettings:
    if settings.type_of_opening_criterion != 1 or not settings.gravity_on:
        return settings
    walk = replace(settings.walk, err_tol_theta=0.0)
    short = settings.short_range
    if short is not None:
        short = ShortRangeWalker(
            short.asmth, short.rcut, replace(short.settings, err_tol_theta=0.0), short.ntab
        )
    return replace(settings, walk=walk, short_range=short)


def compute_gravity(particles, settings: GravitySettings, tree=None, ti_current: int = 0, external=None) -> GravityReport:
    """Set ``grav_accel`` of every particle whose step ends at ``ti_current``.

    A tree is built when none is given.  ``external`` is any object with an
    ``acceleration(pos)`` method whose result is added to active particles.
    """
    particles = list(particles)
    soft = settings.softenings.force_softening(settings.time, settings.comoving)

    built = False
    if tree is None:
        tree = OctTree.build(particles, soft)
        built = True
    else:
        if len(tree.particles) != len(particles) or any(
            a is not b for a, b in zip(tree.particles, particles)
        ):
            raise ValueError("the tree was built over different particles")
        if tuple(tree.force_softening) != tuple(soft):
            recompute_moments(tree, soft)

    active = [p for p in particles if p.ti_endstep == ti_current]
    periodic = settings.walk.box_size is not None
    pm = settings.short_range is not None
    interactions = 0

    if settings.gravity_on:
        walker = settings.short_range if pm else TreeWalker(settings.walk)
        mask = settings.selective_no_gravity
        gravitating = [p for p in active if not ((1 << p.ptype) & mask)]

        results = [walker.acceleration(tree, p) for p in gravitating]
        for part, (acc, count) in zip(gravitating, results):
            part.grav_accel = list(acc)
            part.grav_cost = count
            interactions += count

        if settings.comoving and not periodic and not pm:
            fac = 0.5 * settings.hubble * settings.hubble * settings.omega0 / settings.g
            for part in gravitating:
                part.grav_accel = [a + fac * x for a, x in zip(part.grav_accel, part.pos)]

        for part in gravitating:
            part.old_acc = math.sqrt(sum(a * a for a in part.grav_accel))
            part.grav_accel = [a * settings.g for a in part.grav_accel]

        if not settings.comoving and not periodic and not pm:
            fac = settings.omega_lambda * settings.hubble * settings.hubble
            if fac:
                for part in gravitating:
                    part.grav_accel = [a + fac * x for a, x in zip(part.grav_accel, part.pos)]
    else:
        for part in active:
            part.grav_accel = [0.0, 0.0, 0.0]

    if external is not None:
        for part in active:
            extra = external.acceleration(part.pos)
            part.grav_accel = [a + e for a, e in zip(part.grav_accel, extra)]

    return GravityReport(
        active=len(active),
        interactions=interactions,
        tree=tree,
        tree_built=built,
        next_settings=_next_settings(settings),
    )