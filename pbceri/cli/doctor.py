from __future__ import annotations

import importlib
import os
import platform
import sys


def _try_import(modname: str):
    try:
        return importlib.import_module(modname), None
    except Exception as e:  # pragma: no cover
        return None, e


def _report_module(label: str, modname: str, hint: str | None = None):
    mod, err = _try_import(modname)
    if err is None:
        print(f"- {label}: OK ({getattr(mod, '__version__', 'unknown version')})")
    else:
        print(f"- {label}: MISSING ({type(err).__name__}: {err})")
        if hint:
            print(f"  hint: {hint}")
    return mod


def main() -> None:
    print("pbceri environment check (MME integrals)")
    print(f"- python: {sys.version.split()[0]}")
    print(f"- platform: {platform.platform()}")

    _report_module("numpy", "numpy")
    _report_module("scipy", "scipy")
    _report_module("numba", "numba", "install with `python -m pip install -e '.[numba]'`")
    _report_module("mpi4py", "mpi4py", "install with `python -m pip install -e '.[mpi]'` (requires an MPI library)")

    from pbceri.mme.lattice_sums import select_backend  # noqa: PLC0415

    raw = os.environ.get("PBCERI_MME_BACKEND", "auto")
    try:
        print(f"- lattice-sum backend: {select_backend(raw)} (PBCERI_MME_BACKEND={raw!r})")
    except ValueError as e:
        print(f"- lattice-sum backend: INVALID ({e})")

    from pbceri.parallel.comm import get_communicator  # noqa: PLC0415

    raw = os.environ.get("PBCERI_COMM", "auto")
    try:
        comm = get_communicator()
    except (RuntimeError, ValueError) as e:
        print(f"- communicator: UNAVAILABLE ({type(e).__name__}: {e})")
    else:
        print(f"- communicator: {type(comm).__name__} (rank={comm.rank}, size={comm.size}, PBCERI_COMM={raw!r})")


if __name__ == "__main__":  # pragma: no cover
    main()
