from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from .cart import ncart, ncoset
from .gto import normalize_contraction, primitive_norm_sph
from .sph import cart2sph_matrix, nsph


@dataclass(frozen=True)
class ShellSet:
    """A set of contracted shells sharing one list of primitive exponents.

    Parameters
    ----------
    zet : np.ndarray
        Primitive exponents. Shape: `(npgf,)`.
    l : tuple[int, ...]
        Angular momentum of each contracted shell of the set.
    coef : np.ndarray
        Contraction coefficients of normalized primitives, one column per shell.
        Shape: `(npgf, nshell)`.
    first_sgf : int
        Offset of the first spherical function of the set within its basis.
    sphi : np.ndarray
        Map from primitive Cartesian functions to normalized contracted spherical
        functions. Rows run pgf-major, then `l = lmin..lmax`, then Cartesian
        component; columns are the `nsgf` spherical functions of the set.
        Shape: `(npgf * ncoset(lmin, lmax), nsgf)`.
    """

    zet: np.ndarray
    l: tuple[int, ...]
    coef: np.ndarray
    first_sgf: int
    sphi: np.ndarray = field(repr=False)

    def __post_init__(self) -> None:
        if self.zet.dtype != np.float64 or self.zet.ndim != 1:
            raise TypeError("zet must be a 1D float64 array")
        if int(self.zet.size) == 0:
            raise ValueError("a shell set needs at least one primitive")
        if np.any(~np.isfinite(self.zet)) or np.any(self.zet <= 0.0):
            raise ValueError("exponents must be finite and > 0")
        if not self.l:
            raise ValueError("a shell set needs at least one shell")
        if self.coef.shape != (int(self.zet.size), len(self.l)):
            raise ValueError("coef must have shape (npgf, nshell)")
        if self.sphi.shape != (self.npgf * ncoset(self.lmin, self.lmax), self.nsgf):
            raise ValueError("sphi has inconsistent shape")

    @property
    def npgf(self) -> int:
        return int(self.zet.size)

    @property
    def lmin(self) -> int:
        return int(min(self.l))

    @property
    def lmax(self) -> int:
        return int(max(self.l))

    @property
    def nsgf(self) -> int:
        return int(sum(nsph(l) for l in self.l))

    @property
    def ncoset(self) -> int:
        return ncoset(self.lmin, self.lmax)


def build_sphi(zet: np.ndarray, ls: tuple[int, ...], coef: np.ndarray) -> np.ndarray:
    """Build the primitive-Cartesian to contracted-spherical matrix of a shell set."""

    zet = np.asarray(zet, dtype=np.float64).ravel()
    npgf = int(zet.size)
    lmin, lmax = int(min(ls)), int(max(ls))
    nco = ncoset(lmin, lmax)
    l_start = {}
    cursor = 0
    for l in range(lmin, lmax + 1):
        l_start[l] = cursor
        cursor += ncart(l)

    nsgf = int(sum(nsph(l) for l in ls))
    sphi = np.zeros((npgf * nco, nsgf), dtype=np.float64)
    col = 0
    for ish, l in enumerate(ls):
        c2s = cart2sph_matrix(l)
        cnorm = normalize_contraction(l, zet, coef[:, ish : ish + 1])[:, 0]
        scale = cnorm * primitive_norm_sph(l, zet)
        for ipgf in range(npgf):
            r0 = ipgf * nco + l_start[l]
            sphi[r0 : r0 + ncart(l), col : col + nsph(l)] = scale[ipgf] * c2s
        col += nsph(l)
    return sphi


def make_shell_set(zet, shells, *, first_sgf: int = 0) -> ShellSet:
    """Create a :class:`ShellSet` from exponents and ``[(l, coef), ...]`` shells."""

    zet = np.asarray(zet, dtype=np.float64).ravel()
    if not shells:
        raise ValueError("shells must be non-empty")
    ls = tuple(int(l) for l, _c in shells)
    if any(l < 0 for l in ls):
        raise ValueError("l must be >= 0")
    cols = []
    for _l, c in shells:
        c = np.asarray(c, dtype=np.float64).ravel()
        if int(c.size) != int(zet.size):
            raise ValueError("coefficient vector length must equal the number of exponents")
        cols.append(c)
    coef = np.stack(cols, axis=1)
    sphi = build_sphi(zet, ls, coef)
    return ShellSet(zet=zet, l=ls, coef=coef, first_sgf=int(first_sgf), sphi=sphi)


@dataclass(frozen=True)
class BasisSet:
    """Ordered shell sets of one atomic kind.

    Spherical ranges of the sets are contiguous and disjoint and cover `[0, nsgf)`.
    """

    sets: tuple[ShellSet, ...]
    name: str = ""

    def __post_init__(self) -> None:
        cursor = 0
        for iset, s in enumerate(self.sets):
            if int(s.first_sgf) != cursor:
                raise ValueError(f"set {iset} starts at sgf {s.first_sgf}, expected {cursor}")
            cursor += s.nsgf

    @property
    def nset(self) -> int:
        return len(self.sets)

    @property
    def nsgf(self) -> int:
        return int(sum(s.nsgf for s in self.sets))

    @property
    def lmax(self) -> int:
        return max((s.lmax for s in self.sets), default=0)

    def iter_primitives(self):
        """Yield ``(iset, exponent, l)`` for every primitive and every shell l of each set."""

        for iset, s in enumerate(self.sets):
            for zet in s.zet:
                for l in s.l:
                    yield iset, float(zet), int(l)


def make_basis_set(shell_sets, *, name: str = "") -> BasisSet:
    """Assemble a :class:`BasisSet` from ``[(zet, [(l, coef), ...]), ...]``, assigning offsets."""

    sets: list[ShellSet] = []
    cursor = 0
    for zet, shells in shell_sets:
        s = make_shell_set(zet, shells, first_sgf=cursor)
        sets.append(s)
        cursor += s.nsgf
    return BasisSet(sets=tuple(sets), name=str(name))


__all__ = ["BasisSet", "ShellSet", "build_sphi", "make_basis_set", "make_shell_set"]
