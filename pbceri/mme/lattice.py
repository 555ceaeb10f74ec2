from __future__ import annotations

"""Reciprocal and direct lattice enumeration for the MME lattice sums."""

import functools
from math import ceil, pi

import numpy as np

from pbceri.frontend.cell import Cell


def gvector_box(cell: Cell, gcut: float) -> tuple[int, int, int]:
    """Integer box ``|m_i| <= N_i`` containing all G with ``|G| <= gcut`` (``G.a_i = 2 pi m_i``)."""

    lengths = np.linalg.norm(cell.lattice, axis=1)
    return tuple(int(ceil(float(gcut) * float(L) / (2.0 * pi))) for L in lengths)


# lattice bytes -> (box, G vectors sorted by length, their lengths); grown on demand
_gvector_cache: dict[bytes, tuple[tuple[int, int, int], np.ndarray, np.ndarray]] = {}
_GVECTOR_CACHE_SIZE = 8


def _build_gvectors(lattice: np.ndarray, nbox: tuple[int, int, int]) -> tuple[np.ndarray, np.ndarray]:
    b = 2.0 * pi * np.linalg.inv(lattice).T
    axes = [np.arange(-n, n + 1, dtype=np.float64) for n in nbox]
    m = np.stack(np.meshgrid(*axes, indexing="ij"), axis=-1).reshape(-1, 3)
    m = m[np.any(m != 0.0, axis=1)]
    gv = m @ b
    gnorm = np.linalg.norm(gv, axis=1)
    order = np.argsort(gnorm, kind="stable")
    gv = np.ascontiguousarray(gv[order])
    gnorm = np.ascontiguousarray(gnorm[order])
    gv.setflags(write=False)
    gnorm.setflags(write=False)
    return gv, gnorm


def _sorted_gvectors(cell: Cell, nbox: tuple[int, int, int]) -> tuple[np.ndarray, np.ndarray]:
    key = cell.lattice.tobytes()
    hit = _gvector_cache.get(key)
    if hit is not None:
        if all(n <= m for n, m in zip(nbox, hit[0])):
            return hit[1], hit[2]
        nbox = tuple(max(n, m) for n, m in zip(nbox, hit[0]))
    elif len(_gvector_cache) >= _GVECTOR_CACHE_SIZE:
        _gvector_cache.pop(next(iter(_gvector_cache)))
    gv, gnorm = _build_gvectors(np.asarray(cell.lattice, dtype=np.float64), nbox)
    _gvector_cache[key] = (nbox, gv, gnorm)
    return gv, gnorm


def gvectors_within(cell: Cell, gcut: float) -> np.ndarray:
    """All non-zero reciprocal lattice vectors with ``|G| <= gcut``, sorted by length. Shape: `(nG, 3)`."""

    gv, gnorm = _sorted_gvectors(cell, gvector_box(cell, gcut))
    n = int(np.searchsorted(gnorm, float(gcut), side="right"))
    return gv[:n]


def estimate_gvector_count(cell: Cell, gcut: float) -> float:
    """Continuum estimate of the number of G vectors in a sphere of radius ``gcut``."""

    return (4.0 / 3.0) * pi * float(gcut) ** 3 * cell.volume / (2.0 * pi) ** 3


@functools.lru_cache(maxsize=64)
def _translations(lattice_key: bytes, nimgs: tuple[int, int, int]) -> np.ndarray:
    a = np.frombuffer(lattice_key, dtype=np.float64).reshape(3, 3)
    axes = [np.arange(-n, n + 1, dtype=np.float64) for n in nimgs]
    n = np.stack(np.meshgrid(*axes, indexing="ij"), axis=-1).reshape(-1, 3)
    T = np.ascontiguousarray(n @ a)
    T.setflags(write=False)
    return T


def image_box(cell: Cell, rcut: float, rab_norm: float = 0.0) -> tuple[int, int, int]:
    """Image box for a sphere of radius ``rcut`` around ``-rab``; widened by ``|rab|``."""

    nimgs = cell.bounding_box(float(rcut) + float(rab_norm))
    return tuple(int(n) for n in nimgs)


def image_count(cell: Cell, radii: np.ndarray, rab_norm: float = 0.0) -> int:
    """Total size of the image boxes of spheres with the given radii, each widened by ``|rab|``."""

    heights_inv = np.linalg.norm(cell.reciprocal_vectors(norm_to=1.0), axis=1)
    rc = np.asarray(radii, dtype=np.float64).reshape(-1) + float(rab_norm)
    nimgs = np.ceil(rc[:, None] * heights_inv[None, :])
    return int(np.sum(np.prod(2.0 * nimgs + 1.0, axis=1)))


def translations_within(cell: Cell, rab: np.ndarray, rcut: float) -> np.ndarray:
    """Lattice translations T with ``|rab + T| <= rcut``. Shape: `(nT, 3)`."""

    rab = np.asarray(rab, dtype=np.float64).reshape(3)
    T = _translations(cell.lattice.tobytes(), image_box(cell, rcut, float(np.linalg.norm(rab))))
    d = np.linalg.norm(rab[None, :] + T, axis=1)
    return T[d <= float(rcut)]


__all__ = [
    "estimate_gvector_count",
    "gvector_box",
    "gvectors_within",
    "image_box",
    "image_count",
    "translations_within",
]
