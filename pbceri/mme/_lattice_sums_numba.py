from __future__ import annotations

"""Numba-accelerated Hermite lattice sums.

This module is imported lazily by `pbceri.mme.lattice_sums` when the backend
is set to "numba" (or "auto" with numba available). Results match the numpy
backend up to summation order.
"""

import math

import numpy as np

import numba as nb  # type: ignore

HAS_NUMBA = True


@nb.njit(cache=True)
def _gspace_kernel(gv, weight, rab, nmax):
    n1 = nmax + 1
    re = np.zeros((n1, n1, n1), dtype=np.float64)
    im = np.zeros((n1, n1, n1), dtype=np.float64)
    px = np.empty(n1, dtype=np.float64)
    py = np.empty(n1, dtype=np.float64)
    pz = np.empty(n1, dtype=np.float64)
    for ig in range(gv.shape[0]):
        gx = gv[ig, 0]
        gy = gv[ig, 1]
        gz = gv[ig, 2]
        arg = gx * rab[0] + gy * rab[1] + gz * rab[2]
        cr = weight[ig] * math.cos(arg)
        ci = weight[ig] * math.sin(arg)
        px[0] = 1.0
        py[0] = 1.0
        pz[0] = 1.0
        for p in range(1, n1):
            px[p] = px[p - 1] * gx
            py[p] = py[p - 1] * gy
            pz[p] = pz[p - 1] * gz
        for i in range(n1):
            for j in range(n1 - i):
                pij = px[i] * py[j]
                for k in range(n1 - i - j):
                    f = pij * pz[k]
                    re[i, j, k] += f * cr
                    im[i, j, k] += f * ci
    out = np.zeros((n1, n1, n1), dtype=np.float64)
    for i in range(n1):
        for j in range(n1 - i):
            for k in range(n1 - i - j):
                q = (i + j + k) % 4
                if q == 0:
                    out[i, j, k] = re[i, j, k]
                elif q == 1:
                    out[i, j, k] = -im[i, j, k]
                elif q == 2:
                    out[i, j, k] = -re[i, j, k]
                else:
                    out[i, j, k] = im[i, j, k]
    return out


@nb.njit(cache=True)
def _rspace_kernel(points, c, pref, nmax):
    n1 = nmax + 1
    out = np.zeros((n1, n1, n1), dtype=np.float64)
    h = np.empty((3, n1), dtype=np.float64)
    for m in range(points.shape[0]):
        cm = c[m]
        sc = math.sqrt(cm)
        r2 = points[m, 0] ** 2 + points[m, 1] ** 2 + points[m, 2] ** 2
        g = pref[m] * math.exp(-cm * r2)
        for d in range(3):
            y = sc * points[m, d]
            h[d, 0] = 1.0
            if n1 > 1:
                h[d, 1] = 2.0 * y
            for n in range(1, n1 - 1):
                h[d, n + 1] = 2.0 * y * h[d, n] - 2.0 * n * h[d, n - 1]
            fac = 1.0
            for n in range(n1):
                h[d, n] *= fac
                fac *= -sc
        for i in range(n1):
            for j in range(n1 - i):
                gij = g * h[0, i] * h[1, j]
                for k in range(n1 - i - j):
                    out[i, j, k] += gij * h[2, k]
    return out


def gspace_sum_numba(gv: np.ndarray, weight: np.ndarray, rab: np.ndarray, nmax: int) -> np.ndarray:
    return _gspace_kernel(
        np.ascontiguousarray(gv, dtype=np.float64),
        np.ascontiguousarray(weight, dtype=np.float64),
        np.ascontiguousarray(np.asarray(rab, dtype=np.float64).reshape(3)),
        int(nmax),
    )


def rspace_sum_numba(points: np.ndarray, c: np.ndarray, pref: np.ndarray, nmax: int) -> np.ndarray:
    return _rspace_kernel(
        np.ascontiguousarray(points, dtype=np.float64),
        np.ascontiguousarray(c, dtype=np.float64),
        np.ascontiguousarray(pref, dtype=np.float64),
        int(nmax),
    )


__all__ = ["HAS_NUMBA", "gspace_sum_numba", "rspace_sum_numba"]
