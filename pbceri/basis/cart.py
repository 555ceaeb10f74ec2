from __future__ import annotations

from functools import lru_cache


def ncart(l: int) -> int:
    """Calculate the number of Cartesian components for a given angular momentum `l`.

    Formula: `(l + 1) * (l + 2) / 2`.

    Parameters
    ----------
    l : int
        The angular momentum quantum number (l >= 0).

    Returns
    -------
    int
        The number of Cartesian components.
    """
    if l < 0:
        raise ValueError("l must be >= 0")
    return (l + 1) * (l + 2) // 2


def ncoset(lmin: int, lmax: int) -> int:
    """Number of Cartesian components over the angular momentum range `lmin..lmax`."""

    if lmin < 0 or lmax < lmin:
        raise ValueError("require 0 <= lmin <= lmax")
    return sum(ncart(l) for l in range(lmin, lmax + 1))


@lru_cache(maxsize=None)
def cartesian_components(l: int) -> tuple[tuple[int, int, int], ...]:
    """Generate the sequence of Cartesian exponent tuples `(lx, ly, lz)` for angular momentum `l`.

    The components are ordered by decreasing `lx`, then decreasing `ly`.
    Example for l=1 (p): `(1,0,0), (0,1,0), (0,0,1)` corresponding to x, y, z.
    Example for l=2 (d): `(2,0,0), (1,1,0), (1,0,1), (0,2,0), (0,1,1), (0,0,2)`.

    Parameters
    ----------
    l : int
        The angular momentum quantum number (l >= 0).

    Returns
    -------
    tuple[tuple[int, int, int], ...]
        A tuple of components, where each component is a tuple `(lx, ly, lz)`.
    """
    if l < 0:
        raise ValueError("l must be >= 0")
    out: list[tuple[int, int, int]] = []
    for lx in range(l, -1, -1):
        for ly in range(l - lx, -1, -1):
            lz = l - lx - ly
            out.append((lx, ly, lz))
    return tuple(out)


@lru_cache(maxsize=None)
def cartesian_components_range(lmin: int, lmax: int) -> tuple[tuple[int, int, int], ...]:
    """Concatenated Cartesian components for `l = lmin, ..., lmax` (the coset ordering)."""

    if lmin < 0 or lmax < lmin:
        raise ValueError("require 0 <= lmin <= lmax")
    out: list[tuple[int, int, int]] = []
    for l in range(lmin, lmax + 1):
        out.extend(cartesian_components(l))
    return tuple(out)


__all__ = ["cartesian_components", "cartesian_components_range", "ncart", "ncoset"]
