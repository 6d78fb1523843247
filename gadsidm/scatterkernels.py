"""Smoothing kernels, scattering-angle distributions and neighbour shuffling."""

from __future__ import annotations

import math
import random

_PI = 3.14159265358979
_GIJ_NORM = 12.0974


def _check_h(h: float) -> None:
    if h <= 0:
        raise ValueError(f"smoothing length must be positive, got {h!r}")


def get_wij(h: float, dr: float) -> float:
    """Cubic spline kernel W(dr; h) with compact support on dr < h."""
    _check_h(h)
    wij = 8.0 / (_PI * h**3)
    q = dr / h
    if dr < h / 2.0:
        return wij * (1 - 6 * q * q + 6 * q**3)
    if dr < h:
        return wij * 2 * (1 - q) ** 3
    return 0.0


def get_gij(h: float, dr: float) -> float:
    """Normalised overlap of two spline kernels separated by ``dr``."""
    _check_h(h)
    if dr < h / 2.0:
        gij = (
            2
            * (
                4160 * dr**9
                - 11520 * dr**8 * h
                + 8064 * dr**7 * h**2
                + 2688 * dr**6 * h**3
                - 2016 * dr**5 * h**4
                - 5040 * dr**4 * h**5
                + 3864 * dr**3 * h**6
                + 1116 * dr**2 * h**7
                - 1854 * dr * h**8
                + 491 * h**9
            )
        ) / (315.0 * h**12 * _PI)
    elif dr < h:
        gij = (-128 * (dr - h) ** 6 * (5 * dr**3 - 6 * dr**2 * h - 3 * dr * h**2 - 3 * h**3)) / (
            105.0 * h**12 * _PI
        )
    else:
        gij = 0.0
    return _GIJ_NORM * gij


def fcosth_rutherford(costh: float, v: float, vw: float) -> float:
    """Normalised distribution of cos(theta) for Rutherford-like scattering."""
    return (2 * vw**2 * (v**2 + vw**2)) / ((-1 + costh) * v**2 - 2 * vw**2) ** 2


def fcosth_moller(costh: float, v: float, vw: float) -> float:
    """Normalised distribution of cos(theta) for Moller-like scattering."""
    numerator = (1 + 3 * costh**2) * v**4 + 4 * v**2 * vw**2 + 4 * vw**4
    denom = ((-1 + costh**2) * v**4 - 4 * v**2 * vw**2 - 4 * vw**4) ** 2
    norm = 1 / (v**2 * vw**2 + vw**4) + math.log(vw**2 / (v**2 + vw**2)) / (v**4 + 2 * v**2 * vw**2)
    return numerator / (denom * norm)


def shuffle_neighbours(neighbours, rng: random.Random | None = None) -> list:
    """Return the neighbours in a uniformly random order; the input is untouched."""
    if rng is None:
        rng = random.Random()
    shuffled = list(neighbours)
    rng.shuffle(shuffled)
    return shuffled