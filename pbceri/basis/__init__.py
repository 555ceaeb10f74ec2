from __future__ import annotations

"""Gaussian basis containers and angular helpers."""

from .cart import cartesian_components, cartesian_components_range, ncart, ncoset
from .shellset import BasisSet, ShellSet, make_basis_set, make_shell_set
from .sph import cart2sph_matrix, nsph

__all__ = [
    "BasisSet",
    "ShellSet",
    "cart2sph_matrix",
    "cartesian_components",
    "cartesian_components_range",
    "make_basis_set",
    "make_shell_set",
    "ncart",
    "ncoset",
    "nsph",
]
