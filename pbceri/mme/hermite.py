from __future__ import annotations

"""Hermite Gaussian expansion of Cartesian Gaussians (one-center McMurchie-Davidson).

With ``Lambda_t = (d/dA)^t exp(-a (x-A)^2)`` the Cartesian factor satisfies
``(x-A)^i exp(-a (x-A)^2) = sum_t E^i_t Lambda_t`` and
``E^{i+1}_t = E^i_{t-1} / (2a) + (t+1) E^i_{t+1}``.
"""

import functools

import numpy as np

from pbceri.basis.cart import cartesian_components_range


def e_coefficients(lmax: int, zet: float) -> np.ndarray:
    """Return ``E[i, t]`` for ``0 <= t <= i <= lmax``. Shape: `(lmax+1, lmax+1)`."""

    lmax = int(lmax)
    if lmax < 0:
        raise ValueError("lmax must be >= 0")
    zet = float(zet)
    if zet <= 0.0:
        raise ValueError("zet must be > 0")
    E = np.zeros((lmax + 1, lmax + 2), dtype=np.float64)
    E[0, 0] = 1.0
    inv2a = 0.5 / zet
    for i in range(lmax):
        for t in range(i + 2):
            val = (t + 1) * E[i, t + 1]
            if t > 0:
                val += inv2a * E[i, t - 1]
            E[i + 1, t] = val
    return E[:, : lmax + 1]


@functools.lru_cache(maxsize=None)
def _hermite_index(lmax: int) -> np.ndarray:
    n1 = lmax + 1
    t = np.stack(np.meshgrid(np.arange(n1), np.arange(n1), np.arange(n1), indexing="ij"), axis=-1)
    t = t.reshape(-1, 3)
    t.setflags(write=False)
    return t


def hermite_indices(lmax: int) -> np.ndarray:
    """All ``(tx, ty, tz)`` with ``0 <= t_d <= lmax`` in C order. Shape: `((lmax+1)**3, 3)`."""

    return _hermite_index(int(lmax))


def hermite_to_cart(lmin: int, lmax: int, zet: float, *, conjugate: bool = False) -> np.ndarray:
    """Matrix mapping Hermite Gaussians to Cartesian components ``lmin..lmax``.

    Row ``c`` corresponds to the ``c``-th component of
    :func:`~pbceri.basis.cart.cartesian_components_range`, column to the flattened
    ``(tx, ty, tz)`` index of :func:`hermite_indices`. With ``conjugate=True`` each
    column is multiplied by ``(-1)^(tx+ty+tz)`` (derivatives taken on the second center).
    """

    comps = cartesian_components_range(int(lmin), int(lmax))
    E = e_coefficients(lmax, zet)
    n1 = int(lmax) + 1
    out = np.empty((len(comps), n1, n1, n1), dtype=np.float64)
    for c, (lx, ly, lz) in enumerate(comps):
        out[c] = np.einsum("i,j,k->ijk", E[lx], E[ly], E[lz])
    out = out.reshape(len(comps), -1)
    if conjugate:
        t = hermite_indices(lmax)
        out = out * np.where(np.sum(t, axis=1) % 2 == 1, -1.0, 1.0)[None, :]
    return out


def hermite_h(nmax: int, y: np.ndarray) -> np.ndarray:
    """Physicists' Hermite polynomials ``H_0..H_nmax`` at ``y``. Shape: `y.shape + (nmax+1,)`."""

    y = np.asarray(y, dtype=np.float64)
    out = np.empty(y.shape + (int(nmax) + 1,), dtype=np.float64)
    out[..., 0] = 1.0
    if nmax >= 1:
        out[..., 1] = 2.0 * y
    for n in range(1, int(nmax)):
        out[..., n + 1] = 2.0 * y * out[..., n] - 2.0 * n * out[..., n - 1]
    return out


__all__ = ["e_coefficients", "hermite_h", "hermite_indices", "hermite_to_cart"]
