"""Per-type gravitational softening lengths."""

from __future__ import annotations

import math
from dataclasses import dataclass

_SPLINE_FACTOR = 2.8


@dataclass(frozen=True)
class Softenings:
    """Comoving softening lengths per particle type with physical caps."""

    gas: float
    halo: float
    disk: float
    bulge: float
    stars: float
    bndry: float
    gas_max_phys: float = math.inf
    halo_max_phys: float = math.inf
    disk_max_phys: float = math.inf
    bulge_max_phys: float = math.inf
    stars_max_phys: float = math.inf
    bndry_max_phys: float = math.inf
    min_gas_hsml_fractional: float = 0.0

    def _pairs(self):
        return (
            (self.gas, self.gas_max_phys),
            (self.halo, self.halo_max_phys),
            (self.disk, self.disk_max_phys),
            (self.bulge, self.bulge_max_phys),
            (self.stars, self.stars_max_phys),
            (self.bndry, self.bndry_max_phys),
        )

    def table(self, time: float, comoving: bool) -> tuple[float, ...]:
        """Softening per type; in comoving runs the physical length is capped."""
        if not comoving:
            return tuple(soft for soft, _ in self._pairs())
        return tuple(
            max_phys / time if soft * time > max_phys else soft
            for soft, max_phys in self._pairs()
        )

    def force_softening(self, time: float, comoving: bool) -> tuple[float, ...]:
        """Spline softening lengths (2.8 times the Plummer-equivalent values)."""
        return tuple(_SPLINE_FACTOR * soft for soft in self.table(time, comoving))

    def min_gas_hsml(self, time: float, comoving: bool) -> float:
        """Lower bound on the SPH smoothing length of gas."""
        return self.min_gas_hsml_fractional * self.force_softening(time, comoving)[0]