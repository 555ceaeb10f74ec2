from __future__ import annotations

"""Front-end building blocks: cell, atoms/kinds and basis packing."""

from .basis_packer import build_kind_basis, parse_basis_dict
from .cell import Cell
from .system import DEFAULT_BASIS_TYPE, Atom, Kind, PeriodicSystem

__all__ = [
    "Atom",
    "Cell",
    "DEFAULT_BASIS_TYPE",
    "Kind",
    "PeriodicSystem",
    "build_kind_basis",
    "parse_basis_dict",
]
