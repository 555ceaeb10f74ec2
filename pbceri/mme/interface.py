from __future__ import annotations

"""Two-center MME integration passes over a periodic system.

A pass enumerates work items (shell-set pairs, or primitive pairs for the
s-only pass), skips those owned by other ranks, adds the owned contributions
into a zero-initialized local buffer, and finishes with one global sum of the
buffer and one of the G/R counters.
"""

import functools
import time

import numpy as np

from pbceri.parallel.comm import Communicator, SerialCommunicator, abort_on_error, get_communicator
from pbceri.parallel.distribute import count_set_pairs, is_mine, iter_set_pairs, owned_indices
from pbceri.parallel.reduce import CounterSum, MatrixSum, reduce_parts
from pbceri.parallel.workers import run_ranks
from pbceri.utils.logger import Logger, new_logger

from .error_control import set_params_from_basis
from .kernel import integrate_low
from .lattice_sums import select_backend
from .types import IntegralCounters, MMEDiagnostics, MMEParams


def set_params(cell, kinds, basis_type: str | None = None, config=None) -> MMEParams:
    """Calibrate MME parameters for every kind's basis of type ``basis_type``."""

    return set_params_from_basis(cell, kinds, basis_type, config)


def integrate_prepare() -> IntegralCounters:
    """Fresh per-pass counters; every pass starts from zero."""

    return IntegralCounters()


def integrate_finalize(
    counters: IntegralCounters,
    comm: Communicator,
    log: Logger | None = None,
) -> MMEDiagnostics:
    """Sum the counters over all ranks and report the G/R split."""

    buf = counters.as_array()
    comm.allreduce_sum(buf)
    diag = MMEDiagnostics(g_count=int(buf[0]), r_count=int(buf[1]))
    if log is not None:
        log.info("ERI_MME| Percentage of integrals evaluated in")
        log.info("ERI_MME|   G space %28.1f", diag.g_percent)
        log.info("ERI_MME|   R space %28.1f", diag.r_percent)
    return diag


def _set_pair_block(param, seta, setb, rab, counters, backend) -> np.ndarray:
    # primitive Cartesian blocks, then contraction to spherical functions
    nco_a = seta.ncoset
    nco_b = setb.ncoset
    block = np.zeros((seta.npgf * nco_a, setb.npgf * nco_b), dtype=np.float64)
    for ipgf, za in enumerate(seta.zet):
        for jpgf, zb in enumerate(setb.zet):
            integrate_low(
                param,
                seta.lmin,
                seta.lmax,
                setb.lmin,
                setb.lmax,
                float(za),
                float(zb),
                rab,
                block,
                ipgf * nco_a,
                jpgf * nco_b,
                counters,
                backend=backend,
            )
    return seta.sphi.T @ block @ setb.sphi


def mme_2c_integrate_local(
    param: MMEParams,
    system,
    rank: int = 0,
    size: int = 1,
    basis_type_a: str | None = None,
    basis_type_b: str | None = None,
    *,
    backend: str | None = None,
) -> tuple[np.ndarray, IntegralCounters]:
    """Contribution of one rank to the full two-center matrix (not reduced).

    Returns the local ``(nsgf_a, nsgf_b)`` buffer and the local counters.
    """

    if backend is None:
        backend = select_backend(param.config.resolved_backend())
    distribution = param.config.distribution
    cell = system.cell
    nsgf_a = system.nsgf_total(basis_type_a)
    nsgf_b = system.nsgf_total(basis_type_b)
    npairs = count_set_pairs(system, basis_type_a, basis_type_b)
    log = new_logger(verbose=param.config.verbose)
    counters = integrate_prepare()
    buf = np.zeros((nsgf_a, nsgf_b), dtype=np.float64)

    # each endpoint is wrapped on its own; rab itself is not folded to the minimum image
    pos = [cell.pbc(atom.r) for atom in system.atoms]
    for pair in iter_set_pairs(system, basis_type_a, basis_type_b):
        if not is_mine(pair.index, npairs, rank, size, distribution):
            continue
        seta = system.atom_basis(pair.iatom, basis_type_a).sets[pair.iset]
        setb = system.atom_basis(pair.jatom, basis_type_b).sets[pair.jset]
        rab = pos[pair.iatom] - pos[pair.jatom]
        sab = _set_pair_block(param, seta, setb, rab, counters, backend)
        log.debug1(
            "ERI_MME| set pair %d: atom %d set %d x atom %d set %d",
            pair.index,
            pair.iatom,
            pair.iset,
            pair.jatom,
            pair.jset,
        )
        buf[pair.offset_a : pair.offset_a + seta.nsgf, pair.offset_b : pair.offset_b + setb.nsgf] += sab
    log.debug(
        "ERI_MME| rank %d/%d: %d integrals (G %d, R %d)", rank, size, counters.total, counters.g_count, counters.r_count
    )
    return buf, counters


def _check_hab(hab: np.ndarray, shape: tuple[int, int]) -> None:
    if not isinstance(hab, np.ndarray) or hab.dtype != np.float64:
        raise TypeError("hab must be a float64 numpy array")
    if hab.shape != shape:
        raise ValueError(f"hab has shape {hab.shape}, expected {shape}")


def mme_2c_integrate(
    param: MMEParams,
    system,
    hab: np.ndarray,
    basis_type_a: str | None = None,
    basis_type_b: str | None = None,
    comm: Communicator | None = None,
    profile: dict | None = None,
) -> MMEDiagnostics:
    """Add the periodic two-center Coulomb matrix (G = 0 term excluded) to ``hab``.

    Rows run over the spherical functions of ``basis_type_a`` on all atoms,
    columns over those of ``basis_type_b``. On return every rank holds the full
    reduced matrix added to its ``hab``.
    """

    _check_hab(hab, (system.nsgf_total(basis_type_a), system.nsgf_total(basis_type_b)))
    comm = get_communicator() if comm is None else comm
    log = new_logger(verbose=param.config.verbose)
    t0 = (time.process_time(), time.perf_counter())

    with abort_on_error(comm, log):
        buf, counters = mme_2c_integrate_local(
            param, system, comm.rank, comm.size, basis_type_a, basis_type_b
        )
    t1 = log.timer("eri_mme_2c_integrate local", *t0)
    comm.allreduce_sum(buf)
    hab += buf
    diag = integrate_finalize(counters, comm, log)
    t2 = log.timer("eri_mme_2c_integrate", *t0)

    if profile is not None:
        prof = profile.setdefault("eri_mme_2c", {})
        prof["t_local_s"] = float(t1[1] - t0[1])
        prof["t_reduce_s"] = float(t2[1] - t1[1])
        prof["n_set_pairs"] = count_set_pairs(system, basis_type_a, basis_type_b)
        prof["g_count"] = diag.g_count
        prof["r_count"] = diag.r_count
    return diag


def mme_2c_integrate_s_local(
    param: MMEParams,
    zeta: np.ndarray,
    zetb: np.ndarray,
    ra: np.ndarray,
    rb: np.ndarray,
    rank: int = 0,
    size: int = 1,
    *,
    distribution: str = "block",
    backend: str | None = None,
) -> tuple[np.ndarray, IntegralCounters]:
    """Contribution of one rank to the s-only pass (not reduced).

    Primitive pair ``(i, j)`` has linear index ``i * len(zetb) + j``.
    """

    zeta = np.asarray(zeta, dtype=np.float64).reshape(-1)
    zetb = np.asarray(zetb, dtype=np.float64).reshape(-1)
    ra = np.asarray(ra, dtype=np.float64)
    rb = np.asarray(rb, dtype=np.float64)
    if ra.shape != (zeta.size, 3) or rb.shape != (zetb.size, 3):
        raise ValueError("ra/rb must have shape (len(zeta), 3) / (len(zetb), 3)")
    if backend is None:
        backend = select_backend(param.config.resolved_backend())

    npgfa = int(zeta.size)
    npgfb = int(zetb.size)
    counters = integrate_prepare()
    buf = np.zeros((npgfa, npgfb), dtype=np.float64)
    for k in owned_indices(npgfa * npgfb, rank, size, distribution):
        i, j = divmod(int(k), npgfb)
        integrate_low(
            param, 0, 0, 0, 0, zeta[i], zetb[j], ra[i] - rb[j], buf, i, j, counters, backend=backend
        )
    return buf, counters


def mme_2c_integrate_s(
    param: MMEParams,
    zeta: np.ndarray,
    zetb: np.ndarray,
    ra: np.ndarray,
    rb: np.ndarray,
    hab: np.ndarray,
    comm: Communicator | None = None,
) -> MMEDiagnostics:
    """Two-center integrals over unnormalized s Gaussians, written into ``hab``.

    ``hab`` is zeroed first and receives the reduced ``(len(zeta), len(zetb))``
    matrix. Positions are used as given (no wrapping into the cell).
    Primitive pairs are split into contiguous blocks, see :func:`get_limit`.
    """

    _check_hab(hab, (int(np.size(zeta)), int(np.size(zetb))))
    comm = get_communicator() if comm is None else comm
    log = new_logger(verbose=param.config.verbose)
    t0 = (time.process_time(), time.perf_counter())

    hab[...] = 0.0
    with abort_on_error(comm, log):
        buf, counters = mme_2c_integrate_s_local(param, zeta, zetb, ra, rb, comm.rank, comm.size)
    comm.allreduce_sum(buf)
    hab += buf
    diag = integrate_finalize(counters, comm, log)
    log.timer("eri_mme_2c_integrate_s", *t0)
    return diag


def _local_full(param, system, basis_type_a, basis_type_b, rank, size):
    return mme_2c_integrate_local(param, system, rank, size, basis_type_a, basis_type_b)


def mme_2c_integrate_workers(
    param: MMEParams,
    system,
    hab: np.ndarray,
    nworkers: int,
    basis_type_a: str | None = None,
    basis_type_b: str | None = None,
    *,
    processes: bool = False,
) -> MMEDiagnostics:
    """Full pass split over ``nworkers`` local ranks and reduced in-process.

    ``processes=True`` runs each rank in its own process; otherwise the ranks
    run one after another in the calling process.
    """

    _check_hab(hab, (system.nsgf_total(basis_type_a), system.nsgf_total(basis_type_b)))
    log = new_logger(verbose=param.config.verbose)
    fn = functools.partial(_local_full, param, system, basis_type_a, basis_type_b)
    parts = run_ranks(fn, nworkers, processes=processes)
    hab += reduce_parts([p[0] for p in parts], MatrixSum())
    counters = reduce_parts([p[1] for p in parts], CounterSum())
    return integrate_finalize(counters, SerialCommunicator(), log)


def pair_count(system, basis_type_a: str | None = None, basis_type_b: str | None = None) -> int:
    """Number of primitive pairs a full pass evaluates."""

    def _npgf(bt):
        return sum(s.npgf for i in range(system.natm) for s in system.atom_basis(i, bt).sets)

    return int(_npgf(basis_type_a) * _npgf(basis_type_b))


__all__ = [
    "integrate_finalize",
    "integrate_prepare",
    "mme_2c_integrate",
    "mme_2c_integrate_local",
    "mme_2c_integrate_s",
    "mme_2c_integrate_s_local",
    "mme_2c_integrate_workers",
    "pair_count",
    "set_params",
]
