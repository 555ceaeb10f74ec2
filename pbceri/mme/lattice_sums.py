from __future__ import annotations

"""Hermite lattice sums of the periodic Coulomb kernel (numpy backend).

Both sums return ``D[nx, ny, nz]`` for ``0 <= n_d <= nmax``: the derivatives
``d^n/dR^n`` of

- G space: ``sum_G c_G exp(i G.R)`` with real weights ``c_G``,
- R space: ``sum_m p_m exp(-c_m |X_m|^2)`` where ``X_m = R + T_m``.
"""

import numpy as np

from .hermite import hermite_h

_CHUNK = 1 << 15


def gspace_sum(gv: np.ndarray, weight: np.ndarray, rab: np.ndarray, nmax: int) -> np.ndarray:
    """``D[n] = Re( i^|n| sum_G weight_G G^n exp(i G.rab) )``."""

    gv = np.asarray(gv, dtype=np.float64)
    weight = np.asarray(weight, dtype=np.float64)
    rab = np.asarray(rab, dtype=np.float64).reshape(3)
    n1 = int(nmax) + 1
    powers = np.arange(n1)
    acc = np.zeros((n1, n1, n1), dtype=np.complex128)
    for g0 in range(0, int(gv.shape[0]), _CHUNK):
        g = gv[g0 : g0 + _CHUNK]
        coef = weight[g0 : g0 + _CHUNK] * np.exp(1j * (g @ rab))
        px = g[:, 0:1] ** powers
        py = g[:, 1:2] ** powers
        pz = g[:, 2:3] ** powers
        acc += np.einsum("g,gi,gj,gk->ijk", coef, px, py, pz, optimize=True)
    ntot = powers[:, None, None] + powers[None, :, None] + powers[None, None, :]
    out = np.real(acc * (1j) ** ntot)
    out[ntot > int(nmax)] = 0.0
    return out


def rspace_sum(points: np.ndarray, c: np.ndarray, pref: np.ndarray, nmax: int) -> np.ndarray:
    """``D[n] = sum_m pref_m d^n/dX^n exp(-c_m |X_m|^2)``.

    Uses ``d^n/dx^n exp(-c x^2) = (-sqrt(c))^n H_n(sqrt(c) x) exp(-c x^2)``.
    """

    points = np.asarray(points, dtype=np.float64)
    c = np.asarray(c, dtype=np.float64)
    pref = np.asarray(pref, dtype=np.float64)
    n1 = int(nmax) + 1
    powers = np.arange(n1)
    acc = np.zeros((n1, n1, n1), dtype=np.float64)
    for m0 in range(0, int(points.shape[0]), _CHUNK):
        X = points[m0 : m0 + _CHUNK]
        cc = c[m0 : m0 + _CHUNK]
        sc = np.sqrt(cc)
        g = pref[m0 : m0 + _CHUNK] * np.exp(-cc * np.einsum("md,md->m", X, X))
        H = hermite_h(nmax, X * sc[:, None])  # (m, 3, n1)
        H *= ((-sc)[:, None] ** powers)[:, None, :]
        acc += np.einsum("m,mi,mj,mk->ijk", g, H[:, 0], H[:, 1], H[:, 2], optimize=True)
    ntot = powers[:, None, None] + powers[None, :, None] + powers[None, None, :]
    acc[ntot > int(nmax)] = 0.0
    return acc


def select_backend(name: str = "auto") -> str:
    """Return selected lattice-sum backend: 'python' | 'numba'."""

    v = str(name).strip().lower()
    if v in ("", "auto"):
        try:
            from pbceri.mme import _lattice_sums_numba as _nb  # noqa: PLC0415

            if bool(getattr(_nb, "HAS_NUMBA", False)):
                return "numba"
        except ImportError:
            pass
        return "python"
    if v in ("py", "python"):
        return "python"
    if v in ("nb", "numba"):
        return "numba"
    raise ValueError("PBCERI_MME_BACKEND must be one of: auto|python|numba")


def get_sum_functions(backend: str):
    """Return ``(gspace_sum, rspace_sum)`` of a resolved backend."""

    if backend == "python":
        return gspace_sum, rspace_sum
    if backend == "numba":
        from pbceri.mme import _lattice_sums_numba as _nb  # noqa: PLC0415

        return _nb.gspace_sum_numba, _nb.rspace_sum_numba
    raise ValueError(f"unknown lattice-sum backend {backend!r}")


__all__ = ["get_sum_functions", "gspace_sum", "rspace_sum", "select_backend"]
