"""Two-body kinematics of a dark-matter scattering event."""

from __future__ import annotations

import math
from dataclasses import dataclass

CLIGHT = 299792.458
_PI = 3.14159265358979

Vector = tuple[float, float, float]


def _vec(values, name: str) -> Vector:
    vec = tuple(float(v) for v in values)
    if len(vec) != 3:
        raise ValueError(f"{name} must have three components, got {len(vec)}")
    return vec  # type: ignore[return-value]


def _cross(a: Vector, b: Vector) -> Vector:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def _norm(a: Vector) -> float:
    return math.sqrt(a[0] * a[0] + a[1] * a[1] + a[2] * a[2])


@dataclass(frozen=True)
class ScatterParams:
    """Cross section, code units and down-scattering settings.

    ``sigma_m`` is the cross section per unit mass in cm^2/g; ``deltaf`` the
    fractional mass lost in a down-scatter and ``ratio_ds`` the probability
    that a scatter of two excited particles is a down-scatter.
    """

    unit_mass_in_g: float
    unit_length_in_cm: float
    sigma_m: float = 50.0
    deltaf: float = 0.0
    ratio_ds: float = 0.0

    def __post_init__(self) -> None:
        if self.unit_mass_in_g <= 0 or self.unit_length_in_cm <= 0:
            raise ValueError("code units must be positive")
        if self.sigma_m < 0:
            raise ValueError(f"cross section must not be negative, got {self.sigma_m!r}")
        if not 0.0 <= self.ratio_ds <= 1.0:
            raise ValueError(f"down-scatter ratio must lie in [0, 1], got {self.ratio_ds!r}")
        if not 0.0 <= self.deltaf < 1.0:
            raise ValueError(f"mass fraction must lie in [0, 1), got {self.deltaf!r}")

    def scattering_length(self, mass: float) -> float:
        """Largest impact parameter, in code lengths, at which a pair scatters."""
        return math.sqrt(self.sigma_m * mass * self.unit_mass_in_g / _PI) / self.unit_length_in_cm


def collision_basis(vr, vcm) -> tuple[Vector, Vector, Vector]:
    """Orthonormal right-handed frame (x, y, z) with z along the relative velocity.

    The x axis is perpendicular to both ``vr`` and the centre-of-mass velocity;
    if the latter vanishes it is chosen perpendicular to z in the y-z plane.
    """
    vr = _vec(vr, "vr")
    vcm = _vec(vcm, "vcm")
    speed = _norm(vr)
    if speed == 0:
        raise ValueError("the relative velocity must not vanish")
    ez = (vr[0] / speed, vr[1] / speed, vr[2] / speed)

    if vcm == (0.0, 0.0, 0.0):
        norm = math.sqrt(ez[1] * ez[1] + ez[2] * ez[2])
        if norm == 0:
            raise ValueError("no perpendicular axis in the y-z plane for a relative velocity along x")
        ex = (0.0, -ez[2] / norm, ez[1] / norm)
    else:
        cx = _cross(ez, vcm)
        norm = _norm(cx)
        if norm == 0:
            raise ValueError("relative and centre-of-mass velocities are parallel")
        ex = (cx[0] / norm, cx[1] / norm, cx[2] / norm)

    ey = _cross(ez, ex)
    return ex, ey, ez


def scatter_direction(basis, costh: float, phi: float) -> Vector:
    """Unit vector at polar angle acos(costh) and azimuth ``phi`` in ``basis``."""
    if not -1.0 <= costh <= 1.0:
        raise ValueError(f"cosine must lie in [-1, 1], got {costh!r}")
    ex, ey, ez = basis
    sinth = math.sqrt(1.0 - costh * costh)
    a = sinth * math.cos(phi)
    b = sinth * math.sin(phi)
    return tuple(a * ex[k] + b * ey[k] + costh * ez[k] for k in range(3))  # type: ignore[return-value]


def scattered_velocities(vb, vt, direction, m1: float, m2: float, delta: float) -> tuple[Vector, Vector]:
    """Outgoing velocities of two equal-mass particles after a scatter.

    Each particle goes from mass ``m1`` to ``m2``; ``delta`` is the rest mass
    converted into kinetic energy per particle pair. ``direction`` is the unit
    vector of the bullet's outgoing velocity in the centre-of-mass frame.
    """
    vb = _vec(vb, "vb")
    vt = _vec(vt, "vt")
    direction = _vec(direction, "direction")
    if m1 <= 0 or m2 <= 0:
        raise ValueError("masses must be positive")

    vcm = tuple(0.5 * (vb[k] + vt[k]) for k in range(3))
    vr = _norm(tuple(vb[k] - vt[k] for k in range(3)))  # type: ignore[arg-type]
    energy = (4.0 * delta * CLIGHT * CLIGHT + m1 * vr * vr) / m2
    if energy < 0:
        raise ValueError("not enough kinetic energy for this mass change")
    vrp = math.sqrt(energy)
    ratio = m1 / m2

    new_b = tuple(ratio * vcm[k] + 0.5 * vrp * direction[k] for k in range(3))
    new_t = tuple(ratio * vcm[k] - 0.5 * vrp * direction[k] for k in range(3))
    return new_b, new_t  # type: ignore[return-value]