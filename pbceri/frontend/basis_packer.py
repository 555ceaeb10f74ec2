from __future__ import annotations

"""Packing basis data into per-kind :class:`~pbceri.basis.BasisSet` objects.

Input
-----
Explicit pyscf-style basis dicts::

    {"H": [[0, [exp, c1, c2, ...], ...], ...], ...}

Each shell entry becomes one shell set: its exponents are shared by every
contraction column and, for SP-type entries ``[l1, l2, [exp, c(l1), c(l2)], ...]``,
by every angular momentum of the entry.
"""

import re
from typing import Any

import numpy as np

from pbceri.basis.shellset import BasisSet, make_basis_set


def _parse_shell_entry(entry: Any) -> tuple[np.ndarray, list[tuple[int, np.ndarray]]]:
    """Parse one basis shell entry into ``(exps, [(l, coef), ...])``.

    Supports:
    - [l, [exp, c1, c2, ...], [exp, ...], ...]
    - [l1, l2, ..., [exp, c(l1,ctr1..), c(l2,ctr1..), ...], ...]  (SP shells)
    """

    if not isinstance(entry, (list, tuple)) or len(entry) < 2:
        raise ValueError(f"invalid basis shell entry: {entry!r}")

    # Collect angular momenta until the first primitive line.
    ls: list[int] = []
    prim_start = None
    for i, item in enumerate(entry):
        if isinstance(item, (int, np.integer)):
            ls.append(int(item))
            continue
        prim_start = i
        break
    if prim_start is None or not ls:
        raise ValueError(f"invalid basis shell entry header: {entry!r}")

    exps: list[float] = []
    coeff_rows: list[list[float]] = []
    for line in entry[prim_start:]:
        if not isinstance(line, (list, tuple)) or len(line) < 2:
            raise ValueError(f"invalid primitive line: {line!r}")
        exps.append(float(line[0]))
        coeff_rows.append([float(x) for x in line[1:]])

    exps_arr = np.asarray(exps, dtype=np.float64)
    nprim = int(exps_arr.size)
    coeff_mat = np.asarray(coeff_rows, dtype=np.float64)
    if coeff_mat.ndim != 2 or int(coeff_mat.shape[0]) != nprim:
        raise ValueError("unexpected coefficient matrix shape")

    nL = int(len(ls))
    ncols = int(coeff_mat.shape[1])
    if ncols % nL != 0:
        raise ValueError(f"coeff column count ({ncols}) not divisible by nL ({nL}) for entry {entry!r}")
    nctr = ncols // nL

    shells: list[tuple[int, np.ndarray]] = []
    for i, l in enumerate(ls):
        if l < 0:
            raise ValueError(f"negative angular momentum in entry {entry!r}")
        block = coeff_mat[:, i * nctr : (i + 1) * nctr]
        for ictr in range(nctr):
            shells.append((int(l), block[:, ictr].copy()))
    return exps_arr, shells


def parse_basis_dict(basis: Any, *, elements: list[str]) -> dict[str, list[tuple[np.ndarray, list[tuple[int, np.ndarray]]]]]:
    """Parse a basis dict into per-element shell-set descriptions."""

    if not isinstance(basis, dict):
        raise TypeError("basis must be a dict mapping element symbol -> shell list")
    elements = [str(e).strip() for e in elements]
    if not elements:
        raise ValueError("elements must be non-empty")

    # Accept element-key variants such as lowercase symbols or labels like "O1".
    norm_basis: dict[str, Any] = {}
    for key, val in basis.items():
        key_s = str(key).strip()
        m = re.match(r"^([A-Za-z]{1,2})", key_s)
        key_norm = (m.group(1) if m is not None else key_s).capitalize()
        if key_norm not in norm_basis:
            norm_basis[key_norm] = val

    out: dict[str, list[tuple[np.ndarray, list[tuple[int, np.ndarray]]]]] = {}
    for sym in elements:
        if sym in out:
            continue
        spec = basis.get(sym)
        if spec is None:
            spec = norm_basis.get(sym)
        if spec is None:
            raise KeyError(f"missing basis for element {sym!r}")
        if not isinstance(spec, (list, tuple)):
            raise TypeError(f"basis[{sym!r}] must be a list of shells")
        out[sym] = [_parse_shell_entry(entry) for entry in spec]
    return out


def build_kind_basis(shell_sets: list[tuple[np.ndarray, list[tuple[int, np.ndarray]]]], *, name: str = "") -> BasisSet:
    """Pack parsed shell sets of one element into a :class:`BasisSet`."""

    if not shell_sets:
        raise ValueError(f"basis {name!r} has no shells")
    return make_basis_set(shell_sets, name=name)


__all__ = ["build_kind_basis", "parse_basis_dict"]
