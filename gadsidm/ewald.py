"""Ewald summation corrections for gravity in a periodic cube."""

from __future__ import annotations

import itertools
import math
from dataclasses import dataclass
from pathlib import Path

import numpy as np

ALPHA = 2.0
ORIGIN_POTENTIAL = 2.8372975
DEFAULT_TABLE_SIZE = 64

_LATTICE = np.array(list(itertools.product(range(-4, 5), repeat=3)), dtype=float)
_RECIPROCAL = _LATTICE[np.any(_LATTICE != 0, axis=1)]
_RECIPROCAL_H2 = np.sum(_RECIPROCAL * _RECIPROCAL, axis=1)
_SQRT_PI = math.sqrt(math.pi)


def nearest_image(dx: float, box_size: float) -> float:
    """Map a coordinate difference onto the nearest periodic image."""
    half = 0.5 * box_size
    if dx > half:
        return dx - box_size
    if dx < -half:
        return dx + box_size
    return dx


def _erfc(x: np.ndarray) -> np.ndarray:
    """Complementary error function, fractional error below 1.2e-7."""
    z = np.abs(x)
    t = 1.0 / (1.0 + 0.5 * z)
    poly = -1.26551223 + t * (
        1.00002368
        + t * (
            0.37409196
            + t * (
                0.09678418
                + t * (
                    -0.18628806
                    + t * (
                        0.27886807
                        + t * (-1.13520398 + t * (1.48851587 + t * (-0.82215223 + t * 0.17087277)))
                    )
                )
            )
        )
    )
    ans = t * np.exp(-z * z + poly)
    return np.where(x >= 0, ans, 2.0 - ans)


def _psi_points(points: np.ndarray) -> np.ndarray:
    sum1 = np.zeros(len(points))
    for n in _LATTICE:
        d = points - n
        r = np.sqrt(np.sum(d * d, axis=1))
        sum1 += _erfc(ALPHA * r) / r

    coeff = 1.0 / (math.pi * _RECIPROCAL_H2) * np.exp(
        -math.pi * math.pi * _RECIPROCAL_H2 / (ALPHA * ALPHA)
    )
    sum2 = np.zeros(len(points))
    for h, c in zip(_RECIPROCAL, coeff):
        sum2 += c * np.cos(2.0 * math.pi * (points @ h))

    r = np.sqrt(np.sum(points * points, axis=1))
    return math.pi / (ALPHA * ALPHA) - sum1 - sum2 + 1.0 / r


def _force_points(points: np.ndarray) -> np.ndarray:
    r2 = np.sum(points * points, axis=1)
    force = points / (r2 * np.sqrt(r2))[:, None]

    for n in _LATTICE:
        d = points - n
        r = np.sqrt(np.sum(d * d, axis=1))
        val = _erfc(ALPHA * r) + 2.0 * ALPHA * r / _SQRT_PI * np.exp(-ALPHA * ALPHA * r * r)
        force -= d * (val / (r * r * r))[:, None]

    coeff = 2.0 / _RECIPROCAL_H2 * np.exp(-math.pi * math.pi * _RECIPROCAL_H2 / (ALPHA * ALPHA))
    for h, c in zip(_RECIPROCAL, coeff):
        val = c * np.sin(2.0 * math.pi * (points @ h))
        force -= np.outer(val, h)
    return force


def ewald_psi(x) -> float:
    """Periodic potential correction at offset ``x`` in box units."""
    point = np.asarray(x, dtype=float).reshape(3)
    if not np.any(point):
        raise ValueError("the potential correction is singular at the origin")
    return float(_psi_points(point[None, :])[0])


def ewald_force(i: int, j: int, k: int, x) -> tuple[float, float, float]:
    """Force correction (full lattice minus nearest image) at ``x`` in box units.

    ``(i, j, k)`` is the table cell of ``x``; the origin cell has no correction.
    """
    if i == 0 and j == 0 and k == 0:
        return (0.0, 0.0, 0.0)
    point = np.asarray(x, dtype=float).reshape(3)
    fx, fy, fz = _force_points(point[None, :])[0]
    return (float(fx), float(fy), float(fz))


@dataclass(eq=False)
class EwaldTable:
    """Tabulated Ewald corrections over one octant of the box, in box units."""

    box_size: float
    size: int
    fx: np.ndarray
    fy: np.ndarray
    fz: np.ndarray
    pot: np.ndarray

    @classmethod
    def _from_raw(cls, box_size, size, fx, fy, fz, pot) -> "EwaldTable":
        box2 = box_size * box_size
        return cls(box_size, size, fx / box2, fy / box2, fz / box2, pot / box_size)

    @staticmethod
    def _check(box_size: float, size: int) -> None:
        if box_size <= 0:
            raise ValueError(f"box size must be positive, got {box_size!r}")
        if size < 1:
            raise ValueError(f"table size must be at least 1, got {size!r}")

    @classmethod
    def compute(cls, box_size: float, size: int = DEFAULT_TABLE_SIZE) -> "EwaldTable":
        """Compute the tables by Ewald summation."""
        cls._check(box_size, size)
        n = size + 1
        idx = np.indices((n, n, n)).reshape(3, -1).T
        points = 0.5 * idx / size
        origin = ~np.any(idx, axis=1)
        safe = points.copy()
        safe[origin] = 0.5

        force = _force_points(safe)
        psi = _psi_points(safe)
        force[origin] = 0.0
        psi[origin] = ORIGIN_POTENTIAL

        shape = (n, n, n)
        return cls._from_raw(
            box_size,
            size,
            force[:, 0].reshape(shape),
            force[:, 1].reshape(shape),
            force[:, 2].reshape(shape),
            psi.reshape(shape),
        )

    @classmethod
    def load(cls, path, box_size: float, size: int = DEFAULT_TABLE_SIZE) -> "EwaldTable":
        """Read tables written by :meth:`save` and scale them to ``box_size``."""
        cls._check(box_size, size)
        n = size + 1
        count = n * n * n
        data = np.frombuffer(Path(path).read_bytes(), dtype=np.float32)
        if len(data) < 4 * count:
            raise ValueError(
                f"Ewald table file {path} holds {len(data)} values, expected {4 * count}"
            )
        arrays = [
            data[part * count:(part + 1) * count].astype(float).reshape(n, n, n)
            for part in range(4)
        ]
        return cls._from_raw(box_size, size, *arrays)

    def save(self, path) -> None:
        """Write the unscaled tables as single-precision values."""
        box2 = self.box_size * self.box_size
        raw = np.concatenate(
            [
                (self.fx * box2).ravel(),
                (self.fy * box2).ravel(),
                (self.fz * box2).ravel(),
                (self.pot * self.box_size).ravel(),
            ]
        ).astype(np.float32)
        Path(path).write_bytes(raw.tobytes())

    @property
    def fac_intp(self) -> float:
        return 2 * self.size / self.box_size

    def _locate(self, d: float) -> tuple[int, float]:
        u = d * self.fac_intp
        i = int(u)
        if i >= self.size:
            i = self.size - 1
        return i, u - i

    @staticmethod
    def _trilinear(table, i, j, k, u, v, w) -> float:
        return float(
            table[i, j, k] * (1 - u) * (1 - v) * (1 - w)
            + table[i, j, k + 1] * (1 - u) * (1 - v) * w
            + table[i, j + 1, k] * (1 - u) * v * (1 - w)
            + table[i, j + 1, k + 1] * (1 - u) * v * w
            + table[i + 1, j, k] * u * (1 - v) * (1 - w)
            + table[i + 1, j, k + 1] * u * (1 - v) * w
            + table[i + 1, j + 1, k] * u * v * (1 - w)
            + table[i + 1, j + 1, k + 1] * u * v * w
        )

    def force_correction(self, dx: float, dy: float, dz: float) -> tuple[float, float, float]:
        """Interpolated correction force per unit mass for separation (dx, dy, dz)."""
        signs = []
        coords = []
        for d in (dx, dy, dz):
            if d < 0:
                signs.append(1.0)
                coords.append(-d)
            else:
                signs.append(-1.0)
                coords.append(d)
        (i, u), (j, v), (k, w) = (self._locate(c) for c in coords)
        return tuple(
            sign * self._trilinear(table, i, j, k, u, v, w)
            for sign, table in zip(signs, (self.fx, self.fy, self.fz))
        )

    def potential_correction(self, dx: float, dy: float, dz: float) -> float:
        """Interpolated correction potential per unit mass for separation (dx, dy, dz)."""
        (i, u), (j, v), (k, w) = (self._locate(abs(d)) for d in (dx, dy, dz))
        return self._trilinear(self.pot, i, j, k, u, v, w)