from __future__ import annotations

"""Ownership of linear work indices.

Every index in ``[0, n)`` belongs to exactly one rank; the rule is a pure
function of the index, the rank count and the distribution name.
"""

from dataclasses import dataclass
from typing import Iterator

import numpy as np


def owner(index: int, worker_count: int) -> int:
    """Round-robin owner of a linear index: ``index mod worker_count``."""

    worker_count = int(worker_count)
    if worker_count <= 0:
        raise ValueError("worker_count must be > 0")
    if int(index) < 0:
        raise ValueError("index must be >= 0")
    return int(index) % worker_count


def get_limit(n: int, size: int, rank: int) -> tuple[int, int]:
    """Contiguous block ``[start, stop)`` of ``n`` items owned by ``rank``.

    The first ``n mod size`` ranks receive one extra item.
    """

    n, size, rank = int(n), int(size), int(rank)
    if size <= 0 or not 0 <= rank < size:
        raise ValueError("require 0 <= rank < size")
    if n < 0:
        raise ValueError("n must be >= 0")
    num_min, num_rem = divmod(n, size)
    start = rank * num_min + min(rank, num_rem)
    stop = start + num_min + (1 if rank < num_rem else 0)
    return start, stop


def block_owner(index: int, n: int, size: int) -> int:
    """Owner of ``index`` under :func:`get_limit`."""

    num_min, num_rem = divmod(int(n), int(size))
    split = num_rem * (num_min + 1)
    if index < split:
        return int(index) // (num_min + 1)
    return num_rem + (int(index) - split) // num_min


def is_mine(index: int, n: int, rank: int, size: int, distribution: str = "cyclic") -> bool:
    if distribution == "cyclic":
        return owner(index, size) == int(rank)
    if distribution == "block":
        start, stop = get_limit(n, size, rank)
        return start <= int(index) < stop
    raise ValueError("distribution must be 'cyclic' or 'block'")


def owned_indices(n: int, rank: int, size: int, distribution: str = "cyclic") -> np.ndarray:
    """All indices of ``[0, n)`` owned by ``rank``."""

    if distribution == "cyclic":
        if int(size) <= 0 or not 0 <= int(rank) < int(size):
            raise ValueError("require 0 <= rank < size")
        return np.arange(int(rank), int(n), int(size), dtype=np.int64)
    if distribution == "block":
        start, stop = get_limit(n, size, rank)
        return np.arange(start, stop, dtype=np.int64)
    raise ValueError("distribution must be 'cyclic' or 'block'")


@dataclass(frozen=True)
class SetPair:
    """One (atom i, set of i, atom j, set of j) work item of a two-center pass."""

    index: int
    iatom: int
    iset: int
    jatom: int
    jset: int
    offset_a: int
    offset_b: int


def _set_offsets(system, basis_type):
    out = []
    cursor = 0
    for iatom in range(system.natm):
        basis = system.atom_basis(iatom, basis_type)
        out.append([(iset, cursor + s.first_sgf) for iset, s in enumerate(basis.sets)])
        cursor += basis.nsgf
    return out


def count_set_pairs(system, basis_type_a: str | None = None, basis_type_b: str | None = None) -> int:
    nseta_total = sum(system.atom_basis(i, basis_type_a).nset for i in range(system.natm))
    nsetb_total = sum(system.atom_basis(i, basis_type_b).nset for i in range(system.natm))
    return int(nseta_total * nsetb_total)


def iter_set_pairs(system, basis_type_a: str | None = None, basis_type_b: str | None = None) -> Iterator[SetPair]:
    """Enumerate set pairs with their linear index: atoms outer, sets inner, b side innermost."""

    sets_a = _set_offsets(system, basis_type_a)
    sets_b = _set_offsets(system, basis_type_b)
    index = 0
    for iatom, asets in enumerate(sets_a):
        for iset, offset_a in asets:
            for jatom, bsets in enumerate(sets_b):
                for jset, offset_b in bsets:
                    yield SetPair(index, iatom, iset, jatom, jset, offset_a, offset_b)
                    index += 1


__all__ = [
    "SetPair",
    "block_owner",
    "count_set_pairs",
    "get_limit",
    "is_mine",
    "iter_set_pairs",
    "owned_indices",
    "owner",
]
