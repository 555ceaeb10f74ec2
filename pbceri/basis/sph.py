from __future__ import annotations

"""Cartesian to real solid harmonic transformation.

Solid harmonics use Racah normalization (``S_l0 = z^l + ...``) and are ordered
``m = -l, ..., l``. Coefficients follow the closed form of Helgaker, Jorgensen
and Olsen, *Molecular Electronic-Structure Theory*, eq. 6.4.47-6.4.50.
"""

from functools import lru_cache
from math import comb, factorial, sqrt

import numpy as np

from .cart import cartesian_components, ncart


def nsph(l: int) -> int:
    """Number of real spherical components for angular momentum `l`."""

    if l < 0:
        raise ValueError("l must be >= 0")
    return 2 * l + 1


def _solid_harmonic(l: int, m: int) -> dict[tuple[int, int, int], float]:
    am = abs(m)
    # v runs over half-integers for m < 0; work with twice its value
    two_vm = 0 if m >= 0 else 1
    norm = sqrt(2.0 * factorial(l + am) * factorial(l - am) / (2.0 if m == 0 else 1.0))
    norm /= float(2**am * factorial(l))

    out: dict[tuple[int, int, int], float] = {}
    two_vmax = 2 * ((am - two_vm) // 2) + two_vm
    for t in range((l - am) // 2 + 1):
        for u in range(t + 1):
            for two_v in range(two_vm, two_vmax + 1, 2):
                sign = -1.0 if ((2 * t + two_v - two_vm) // 2) % 2 else 1.0
                c = sign * 0.25**t * comb(l, t) * comb(l - t, am + t) * comb(t, u) * comb(am, two_v)
                lx = 2 * t + am - 2 * u - two_v
                ly = 2 * u + two_v
                lz = l - 2 * t - am
                key = (lx, ly, lz)
                out[key] = out.get(key, 0.0) + norm * c
    return out


@lru_cache(maxsize=None)
def cart2sph_matrix(l: int) -> np.ndarray:
    """Return the ``(ncart(l), nsph(l))`` Cartesian-to-spherical coefficient matrix.

    Column ``m + l`` holds the expansion of the solid harmonic ``S_lm`` in the
    Cartesian monomials of :func:`cartesian_components`.
    """

    if l < 0:
        raise ValueError("l must be >= 0")
    comps = cartesian_components(l)
    index = {c: i for i, c in enumerate(comps)}
    c2s = np.zeros((ncart(l), nsph(l)), dtype=np.float64)
    for m in range(-l, l + 1):
        for key, val in _solid_harmonic(l, m).items():
            c2s[index[key], m + l] += val
    c2s.setflags(write=False)
    return c2s


__all__ = ["cart2sph_matrix", "nsph"]
