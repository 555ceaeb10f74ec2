from __future__ import annotations

from dataclasses import dataclass

import numpy as np

_ANGSTROM_TO_BOHR = 1.8897259886


def _anint(x: np.ndarray) -> np.ndarray:
    # round half away from zero
    return np.sign(x) * np.floor(np.abs(x) + 0.5)


@dataclass(frozen=True)
class Cell:
    """Periodic simulation cell.

    Parameters
    ----------
    lattice : np.ndarray
        Lattice vectors as rows, in Bohr. Shape: `(3, 3)`.
    """

    lattice: np.ndarray

    def __post_init__(self) -> None:
        a = np.asarray(self.lattice, dtype=np.float64)
        if a.shape != (3, 3):
            raise ValueError("lattice must have shape (3, 3)")
        if not np.all(np.isfinite(a)):
            raise ValueError("lattice must be finite")
        if abs(float(np.linalg.det(a))) < 1e-12:
            raise ValueError("lattice vectors are linearly dependent")
        a = a.copy()
        a.setflags(write=False)
        object.__setattr__(self, "lattice", a)

    @classmethod
    def from_lattice(cls, lattice, *, unit: str = "Bohr") -> "Cell":
        unit_norm = str(unit).strip().lower()
        if unit_norm in ("bohr", "a0", "au"):
            scale = 1.0
        elif unit_norm in ("angstrom", "ang", "a"):
            scale = _ANGSTROM_TO_BOHR
        else:
            raise ValueError("unit must be 'Bohr' or 'Angstrom'")
        return cls(lattice=np.asarray(lattice, dtype=np.float64) * scale)

    @classmethod
    def cubic(cls, length: float, *, unit: str = "Bohr") -> "Cell":
        return cls.from_lattice(np.eye(3) * float(length), unit=unit)

    @property
    def volume(self) -> float:
        return float(abs(np.linalg.det(self.lattice)))

    def reciprocal_vectors(self, norm_to: float = 2 * np.pi) -> np.ndarray:
        r"""Reciprocal vectors as rows, with :math:`a_i \cdot b_j = \mathrm{norm\_to}\,\delta_{ij}`."""

        return float(norm_to) * np.linalg.inv(self.lattice).T

    def frac_coords(self, r: np.ndarray) -> np.ndarray:
        return np.asarray(r, dtype=np.float64) @ np.linalg.inv(self.lattice)

    def pbc(self, r: np.ndarray) -> np.ndarray:
        """Wrap positions into the cell centred at the origin.

        Fractional coordinates end up in `[-1/2, 1/2]`; exact half-way values are
        rounded away from zero. Accepts a single position `(3,)` or an array `(n, 3)`.
        """

        r = np.asarray(r, dtype=np.float64)
        if r.shape[-1] != 3:
            raise ValueError("positions must have a trailing dimension of 3")
        s = self.frac_coords(r)
        s = s - _anint(s)
        return s @ self.lattice

    def bounding_box(self, rcut: float) -> np.ndarray:
        """Number of images `N_i` such that `-N_i <= n_i <= N_i` contains a sphere of radius `rcut`."""

        heights_inv = np.linalg.norm(self.reciprocal_vectors(norm_to=1.0), axis=1)
        return np.ceil(float(rcut) * heights_inv).astype(np.int64)

    def shortest_reciprocal_vector(self) -> float:
        """Length of the shortest non-zero reciprocal lattice vector."""

        b = self.reciprocal_vectors()
        n = np.arange(-2, 3)
        m = np.stack(np.meshgrid(n, n, n, indexing="ij"), axis=-1).reshape(-1, 3)
        m = m[np.any(m != 0, axis=1)]
        return float(np.min(np.linalg.norm(m @ b, axis=1)))


__all__ = ["Cell"]
