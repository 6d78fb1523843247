"""Spline-softened gravitational kernel and TreePM short-range tables."""

from __future__ import annotations

import math

import numpy as np

_SQRT_PI = math.sqrt(math.pi)


def _check_softening(h: float) -> None:
    if h <= 0:
        raise ValueError(f"softening length must be positive, got {h!r}")


def force_factor(mass: float, r: float, h: float) -> float:
    """Return the factor f such that the acceleration is ``f * (dx, dy, dz)``.

    Beyond the softening length ``h`` this is Newtonian, ``mass / r**3``.
    Inside it the cubic spline kernel is used.
    """
    _check_softening(h)
    if r >= h:
        return mass / (r * r * r)
    h_inv = 1.0 / h
    h3_inv = h_inv * h_inv * h_inv
    u = r * h_inv
    if u < 0.5:
        return mass * h3_inv * (10.666666666667 + u * u * (32.0 * u - 38.4))
    return mass * h3_inv * (
        21.333333333333
        - 48.0 * u
        + 38.4 * u * u
        - 10.666666666667 * u * u * u
        - 0.066666666667 / (u * u * u)
    )


def potential_term(mass: float, r: float, h: float) -> float:
    """Return the (negative) potential contribution of ``mass`` at distance ``r``."""
    _check_softening(h)
    if r >= h:
        return -mass / r
    h_inv = 1.0 / h
    u = r * h_inv
    if u < 0.5:
        wp = -2.8 + u * u * (5.333333333333 + u * u * (6.4 * u - 9.6))
    else:
        wp = -3.2 + 0.066666666667 / u + u * u * (
            10.666666666667 + u * (-16.0 + u * (9.6 - 2.133333333333 * u))
        )
    return mass * h_inv * wp


def _table_arguments(ntab: int) -> np.ndarray:
    if ntab <= 0:
        raise ValueError(f"table length must be positive, got {ntab!r}")
    return 3.0 / ntab * (np.arange(ntab, dtype=float) + 0.5)


def shortrange_force_table(ntab: int) -> np.ndarray:
    """Short-range force suppression, erfc(u) + 2u/sqrt(pi) exp(-u^2), on u in (0, 3)."""
    u = _table_arguments(ntab)
    erfc = np.array([math.erfc(x) for x in u])
    return erfc + 2.0 * u / _SQRT_PI * np.exp(-u * u)


def shortrange_potential_table(ntab: int) -> np.ndarray:
    """Short-range potential suppression, erfc(u), on u in (0, 3)."""
    u = _table_arguments(ntab)
    return np.array([math.erfc(x) for x in u])