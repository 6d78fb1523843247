"""Static external potentials: Milky Way model and evolving host halo."""

from __future__ import annotations

import math
from dataclasses import dataclass

from gadsidm.kernel import force_factor

_PI = 3.14159265358979
_PI_NFW = 3.141592653


def disk_radial_force(g: float, mass: float, a: float, b: float, radius: float, z: float) -> float:
    """Cylindrical-radial acceleration of a Miyamoto-Nagai disc."""
    s = a + math.sqrt(b * b + z * z)
    return -g * mass * radius / (radius * radius + s * s) ** 1.5


def disk_vertical_force(g: float, mass: float, a: float, b: float, radius: float, z: float) -> float:
    """Vertical acceleration of a Miyamoto-Nagai disc."""
    root = math.sqrt(b * b + z * z)
    s = a + root
    return -g * mass * z * s / root / (radius * radius + s * s) ** 1.5


def hernquist_radial_force(g: float, mass: float, r_h: float, r: float) -> float:
    """Radial acceleration of a Hernquist sphere."""
    return -g * mass / (r_h + r) ** 2


def nfw_radial_force(g: float, rhos: float, rs: float, r: float, softening_halo: float) -> float:
    """Radial acceleration of an NFW halo; its finite central limit within 3 softenings."""
    if r < 3 * softening_halo:
        return -g * 2 * _PI_NFW * rs * rhos
    return -g * 4 * _PI_NFW * rs**3 * rhos * (-r / (r + rs) + math.log(1 + r / rs)) / (r * r)


def halo_mass_over_r3(r: float, time: float, hubble_param: float, softening: float) -> float:
    """Enclosed host mass over r^3 for a redshift-dependent NFW plus Hernquist host.

    ``r`` is comoving in kpc/h and ``time`` the scale factor; inside
    ``softening`` the spline kernel replaces 1/r^3.
    """
    z = 1.0 / time - 1.0
    rhos = (
        0.00008018508808657744
        + 0.00001173220974381105 * z
        + 0.00005788062708937496 * z**2
        - 0.00001091975902862681 * z**3
        + 4.322228318940011e-6 * z**4
    ) / hubble_param**2
    rs = (
        101.07117877864096
        - 8.071187120090881 * z
        - 40.28285233649378 * z**2
        + 22.552770822134857 * z**3
        - 4.007626606926756 * z**4
    ) * hubble_param
    rphys = time * r

    rhoh = (
        0.104684
        * (1.0 + z) ** 3.63
        * (10.0076 - 2.78014 * z + 3.65695 * z**2 - 4.04992 * z**3 + 1.02619 * z**4)
        / hubble_param**2
    )
    rh = 1.14986 / (1.0 + z) ** 1.21 * hubble_param

    halo_mass = 4 * _PI * rhos * rs**3 * (-(rphys / (rphys + rs)) - math.log(rs / (rphys + rs)))
    hern_mass = 2 * _PI * rhoh * rphys**2 * rh**3 / (rphys + rh) ** 2
    return force_factor(halo_mass + hern_mass, r, softening)


@dataclass(frozen=True)
class MilkyWayPotential:
    """Two stellar discs, two gas discs, a Hernquist bulge and an NFW halo.

    Only the stellar discs enter the y and z components; the gas discs
    contribute to x alone.
    """

    g: float
    softening_halo: float
    stellar_discs: tuple[tuple[float, float, float], ...] = ((3.5186, 2.50, 0.3), (1.0487, 3.02, 0.9))
    gas_discs: tuple[tuple[float, float, float], ...] = ((1.1, 7.0, 0.085), (0.12, 1.5, 0.045))
    bulge_mass: float = 0.923
    bulge_radius: float = 1.3
    halo_rhos: float = 8.54e-4
    halo_rs: float = 19.6

    def acceleration(self, pos) -> tuple[float, float, float]:
        """Acceleration at position ``pos``; undefined on the symmetry axis."""
        x, y, z = pos
        cyl = math.sqrt(x * x + y * y)
        if cyl == 0:
            raise ValueError("the disc force direction is undefined on the z axis")
        r = math.sqrt(x * x + y * y + z * z)

        fr_stellar = sum(disk_radial_force(self.g, m, a, b, cyl, z) for m, a, b in self.stellar_discs)
        fr_gas = sum(disk_radial_force(self.g, m, a, b, cyl, z) for m, a, b in self.gas_discs)
        fz_stellar = sum(disk_vertical_force(self.g, m, a, b, cyl, z) for m, a, b in self.stellar_discs)
        fr_sph = hernquist_radial_force(self.g, self.bulge_mass, self.bulge_radius, r) + nfw_radial_force(
            self.g, self.halo_rhos, self.halo_rs, r, self.softening_halo
        )

        ax = (fr_stellar + fr_gas) * x / cyl + fr_sph * x / r
        ay = fr_stellar * y / cyl + fr_sph * y / r
        az = fz_stellar + fr_sph * z / r
        return (ax, ay, az)