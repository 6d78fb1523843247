"""Monte-Carlo self-interaction scattering between neighbouring particles."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass

from gadsidm.collision import ScatterParams, collision_basis, scatter_direction, scattered_velocities
from gadsidm.ewald import nearest_image
from gadsidm.octree import Particle
from gadsidm.scatterkernels import shuffle_neighbours

_PI = 3.14159265358979
_SCATTERING_TYPES = (1, 2)
_EXCITED = 1
_GROUND = 2


@dataclass(frozen=True)
class ScatterEvent:
    """A scatter that took place: the pair, the centre-of-mass angles and the mass change."""

    bullet: int
    target: int
    costh: float
    phi: float
    down_scatter: bool
    delta: float


def _separation(a, b, box_size: float | None) -> list[float]:
    d = [a[k] - b[k] for k in range(3)]
    if box_size is not None:
        d = [nearest_image(x, box_size) for x in d]
    return d


def find_neighbours(particles, center, radius: float, box_size: float | None = None) -> list[int]:
    """Indices of the particles within ``radius`` of ``center``, in index order."""
    if radius < 0:
        raise ValueError(f"search radius must not be negative, got {radius!r}")
    r2max = radius * radius
    found = []
    for i, part in enumerate(particles):
        d = _separation(part.pos, center, box_size)
        if d[0] * d[0] + d[1] * d[1] + d[2] * d[2] <= r2max:
            found.append(i)
    return found


def _predicted_velocity(part: Particle, dt_gravkick: float) -> tuple[float, float, float]:
    return tuple(part.vel[k] + part.grav_accel[k] * dt_gravkick for k in range(3))  # type: ignore[return-value]


def try_scatter(
    particles,
    bullet: int,
    neighbours,
    params: ScatterParams,
    dt_drift: float,
    dt_gravkick: float,
    typical_dist: float,
    rng: random.Random | None = None,
    box_size: float | None = None,
) -> ScatterEvent | None:
    """Let ``bullet`` scatter off at most one of its ``neighbours``.

    Neighbours are tried in random order.  A pair scatters when the target lies
    ahead of the bullet within ``typical_dist``, the impact parameter is below
    the scattering length and the closest approach falls within ``dt_drift``.
    Velocities, and for a down-scatter types and masses, are updated in place.
    """
    if rng is None:
        rng = random.Random()
    if not 0 <= bullet < len(particles):
        raise IndexError(f"bullet index {bullet} out of range")
    bpart = particles[bullet]
    if bpart.ptype not in _SCATTERING_TYPES:
        return None

    vb = _predicted_velocity(bpart, dt_gravkick)
    pos = bpart.pos
    mass = bpart.mass
    scatt_length = params.scattering_length(mass)
    max_dist2 = typical_dist * typical_dist

    for target in shuffle_neighbours(neighbours, rng):
        if target == bullet:
            continue
        tpart = particles[target]
        d = _separation(tpart.pos, pos, box_size)
        dr2 = d[0] * d[0] + d[1] * d[1] + d[2] * d[2]
        if dr2 > max_dist2:
            continue

        vt = _predicted_velocity(tpart, dt_gravkick)
        vr_vec = tuple(vb[k] - vt[k] for k in range(3))
        vr = math.sqrt(sum(c * c for c in vr_vec))
        dr = math.sqrt(dr2)
        if vr == 0 or dr == 0:
            # No approach direction is defined for coincident or co-moving pairs.
            continue

        costh = (d[0] * vr_vec[0] + d[1] * vr_vec[1] + d[2] * vr_vec[2]) / (dr * vr)
        sinth = math.sqrt(max(0.0, 1.0 - costh * costh))
        impact = dr * sinth
        dt_scatt = abs(dr * costh / vr)
        if costh < 0 or impact > scatt_length or dt_scatt > dt_drift or tpart.ptype > 2:
            continue

        vcm = tuple(0.5 * (vb[k] + vt[k]) for k in range(3))
        basis = collision_basis(vr_vec, vcm)

        costhp = 2.0 * rng.random() - 1.0
        phip = rng.random() * 2.0 * _PI
        if costhp < 0:
            costhp = -costhp
            phip += _PI
        direction = scatter_direction(basis, costhp, phip)

        prob_d = rng.random()
        down = bpart.ptype == _EXCITED and tpart.ptype == _EXCITED and prob_d < params.ratio_ds
        m1 = mass
        if down:
            delta = mass * params.deltaf
            m2 = m1 - delta
            for part in (bpart, tpart):
                part.ptype = _GROUND
                part.mass = m2
        else:
            delta = 0.0
            m2 = mass

        new_b, new_t = scattered_velocities(vb, vt, direction, m1, m2, delta)
        bpart.vel = list(new_b)
        tpart.vel = list(new_t)
        bpart.tscatt += 1
        tpart.tscatt += 1
        return ScatterEvent(bullet, target, costhp, phip, down, delta)

    return None