from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

import numpy as np

from pbceri.basis.shellset import BasisSet

from .basis_packer import build_kind_basis, parse_basis_dict
from .cell import Cell, _ANGSTROM_TO_BOHR

DEFAULT_BASIS_TYPE = "ORB"


def _parse_atom_string(atom: str) -> list[tuple[str, np.ndarray]]:
    atoms: list[tuple[str, np.ndarray]] = []
    for frag in str(atom).replace("\n", ";").split(";"):
        frag = frag.strip()
        if not frag:
            continue
        tok = frag.split()
        if len(tok) != 4:
            raise ValueError(f"invalid atom fragment: {frag!r} (expected: 'El x y z')")
        xyz = np.asarray([float(tok[1]), float(tok[2]), float(tok[3])], dtype=np.float64)
        atoms.append((tok[0], xyz))
    if not atoms:
        raise ValueError("no atoms parsed")
    return atoms


def _parse_atoms(atoms: Any) -> list[tuple[str, np.ndarray]]:
    if isinstance(atoms, str):
        return _parse_atom_string(atoms)
    if isinstance(atoms, (list, tuple)):
        out: list[tuple[str, np.ndarray]] = []
        for item in atoms:
            if isinstance(item, str):
                out.extend(_parse_atom_string(item))
            elif isinstance(item, (list, tuple)) and len(item) == 2:
                out.append((str(item[0]), np.asarray(item[1], dtype=np.float64).reshape((3,))))
            else:
                raise ValueError(f"invalid atom entry: {item!r}")
        if not out:
            raise ValueError("no atoms parsed")
        return out
    raise TypeError("atoms must be an atom string or a list of (sym, (x,y,z))")


@dataclass(frozen=True)
class Kind:
    """An atomic kind with its basis sets keyed by basis-type label."""

    label: str
    basis_sets: Mapping[str, BasisSet]

    def get_basis(self, basis_type: str | None = None) -> BasisSet:
        key = DEFAULT_BASIS_TYPE if basis_type is None else str(basis_type)
        try:
            return self.basis_sets[key]
        except KeyError:
            raise KeyError(f"kind {self.label!r} has no basis of type {key!r}") from None


@dataclass(frozen=True)
class Atom:
    label: str
    kind: int
    r: np.ndarray


@dataclass(frozen=True)
class PeriodicSystem:
    """Atoms, kinds and cell of a periodic system (Bohr)."""

    cell: Cell
    kinds: tuple[Kind, ...]
    atoms: tuple[Atom, ...]

    def __post_init__(self) -> None:
        for a in self.atoms:
            if not 0 <= int(a.kind) < len(self.kinds):
                raise ValueError(f"atom {a.label!r} refers to unknown kind {a.kind}")

    @classmethod
    def from_atoms(
        cls,
        atoms: Any,
        cell: Cell,
        basis: Any,
        *,
        unit: str = "Bohr",
        basis_types: Mapping[str, Any] | None = None,
    ) -> "PeriodicSystem":
        """Build a system from atoms and pyscf-style basis dicts.

        ``basis`` becomes the ``"ORB"`` basis of every kind; ``basis_types`` maps
        further labels (e.g. ``"RI_AUX"``) to additional basis dicts.
        """

        if not isinstance(cell, Cell):
            raise TypeError("cell must be a Cell")
        atoms_list = _parse_atoms(atoms)
        unit_norm = str(unit).strip().lower()
        if unit_norm in ("bohr", "a0", "au"):
            scale = 1.0
        elif unit_norm in ("angstrom", "ang", "a"):
            scale = _ANGSTROM_TO_BOHR
        else:
            raise ValueError("unit must be 'Bohr' or 'Angstrom'")

        labels: list[str] = []
        for sym, _xyz in atoms_list:
            if sym not in labels:
                labels.append(sym)

        all_types: dict[str, Any] = {DEFAULT_BASIS_TYPE: basis}
        for key, val in (basis_types or {}).items():
            all_types[str(key)] = val

        per_type = {key: parse_basis_dict(val, elements=labels) for key, val in all_types.items()}
        kinds = tuple(
            Kind(
                label=sym,
                basis_sets={key: build_kind_basis(parsed[sym], name=f"{sym}:{key}") for key, parsed in per_type.items()},
            )
            for sym in labels
        )
        kind_of = {sym: i for i, sym in enumerate(labels)}
        atoms_out = tuple(Atom(label=sym, kind=kind_of[sym], r=xyz * scale) for sym, xyz in atoms_list)
        return cls(cell=cell, kinds=kinds, atoms=atoms_out)

    @property
    def natm(self) -> int:
        return len(self.atoms)

    def atom_basis(self, iatom: int, basis_type: str | None = None) -> BasisSet:
        return self.kinds[self.atoms[int(iatom)].kind].get_basis(basis_type)

    def nsgf_total(self, basis_type: str | None = None) -> int:
        """Total number of spherical functions over all atoms for a basis type."""

        return int(sum(self.atom_basis(i, basis_type).nsgf for i in range(self.natm)))


__all__ = ["Atom", "DEFAULT_BASIS_TYPE", "Kind", "PeriodicSystem"]
