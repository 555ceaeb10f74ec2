from __future__ import annotations

"""Calibration of MME parameters from basis-set extremes.

The G-space cutoff is bounded by the hardest primitive pair (largest exponent,
largest angular momentum). The minimax expansion of 1/G^2 is fitted on
``[gmin^2, gcut^2]`` to a relative accuracy scaled by the Hermite-weighted G sum
of the extreme exponents (the smallest one and the cutoff extremes). A target
below float64 roundoff is a configuration error.
"""

import time
from dataclasses import dataclass
from math import exp, gamma, pi
from typing import Sequence

from scipy.special import gammainc

from pbceri.frontend.cell import Cell
from pbceri.utils.logger import new_logger

from .kernel import gspace_cutoff, gspace_tail
from .lattice import gvectors_within
from .minimax import fit_minimax
from .types import MMEConfig, MMEConfigurationError, MMEParams

# below this the measured relative error is dominated by float64 roundoff
_MIN_MINIMAX_TARGET = 1e-13


@dataclass(frozen=True)
class ExponentStatistics:
    """Extremes of a basis collection used for error bounding.

    Attributes
    ----------
    zet_mm : float
        Smallest exponent; bounds the minimax error.
    zet_m : float
        Largest exponent.
    l_m : int
        Largest angular momentum.
    zet_l : float
        Largest exponent occurring with angular momentum ``l_m``.
    l_zet : int
        Largest angular momentum occurring with exponent ``zet_m``.
    """

    zet_mm: float
    zet_m: float
    l_m: int
    zet_l: float
    l_zet: int

    @property
    def zet_err_cutoff(self) -> tuple[float, float]:
        return (self.zet_m, self.zet_l)

    @property
    def l_err_cutoff(self) -> tuple[int, int]:
        return (self.l_zet, self.l_m)


def exponent_statistics(kinds, basis_type: str | None = None) -> ExponentStatistics:
    """Scan every (exponent, l) primitive of all kinds for the error-bounding extremes.

    Parameters
    ----------
    kinds : Sequence[Kind]
        Atomic kinds; each must provide ``get_basis(basis_type)``.
    basis_type : str | None
        Basis-type label; ``None`` selects the orbital basis.
    """

    bases = []
    for kind in kinds:
        try:
            bases.append(kind.get_basis(basis_type))
        except KeyError as e:
            raise MMEConfigurationError(str(e.args[0]) if e.args else str(e)) from e

    l_m = 0
    zet_m = 0.0
    zet_mm = -1.0
    l_zet = -1
    zet_l = -1.0

    # 1) global max l, max exponent and min exponent
    for basis in bases:
        for _iset, zet, l in basis.iter_primitives():
            l_m = max(l_m, l)
            zet_m = max(zet_m, zet)
            zet_mm = zet if zet_mm < 0.0 else min(zet_mm, zet)

    # 2) largest exponent for max l and largest l for max exponent
    for basis in bases:
        for _iset, zet, l in basis.iter_primitives():
            if zet == zet_m and l > l_zet:
                l_zet = l
            if l == l_m and zet > zet_l:
                zet_l = zet

    if not (zet_l > 0.0 and l_zet >= 0 and zet_mm > 0.0):
        raise MMEConfigurationError("basis collection is empty or degenerate; cannot bound MME errors")
    return ExponentStatistics(zet_mm=zet_mm, zet_m=zet_m, l_m=l_m, zet_l=zet_l, l_zet=l_zet)


def minimax_error_weight(cell: Cell, zet: float, l_max: int, gcut: float) -> float:
    """Factor turning the minimax relative error into an integral error estimate.

    A relative error ``delta`` of ``1/G^2`` perturbs ``d^n S`` (``n = 2 l_max``,
    ``alpha = zet/2``) by at most ``delta * 4 pi / Omega sum_{0<|G|<=gcut} G^(n-2) exp(-G^2/(4 alpha))``.
    In a primitive integral that derivative enters with Hermite coefficients of
    order ``(2 zet)^(-n)``, which scale the sum. The shortest shell of G vectors is
    counted exactly, the rest is the continuum integral over ``[gmin, gcut]``.
    """

    zet = float(zet)
    alpha = 0.5 * zet
    n = 2 * int(l_max)
    gcut = float(gcut)
    gmin = cell.shortest_reciprocal_vector()
    if gcut < gmin:
        return 0.0
    nshell = gvectors_within(cell, gmin * (1.0 + 1e-8)).shape[0]
    first = 4.0 * pi / cell.volume * nshell * gmin ** (n - 2) * exp(-gmin * gmin / (4.0 * alpha))
    a = 0.5 * (n + 1)
    x_lo = gmin * gmin / (4.0 * alpha)
    x_hi = gcut * gcut / (4.0 * alpha)
    bulk = (4.0 * alpha) ** a * gamma(a) * max(gammainc(a, x_hi) - gammainc(a, x_lo), 0.0) / pi
    return float((first + bulk) / (2.0 * zet) ** n)


def set_params_custom(
    cell: Cell,
    zet_err_minimax: float,
    zet_err_cutoff: Sequence[float],
    l_err_cutoff: Sequence[int],
    l_max: int,
    config: MMEConfig | None = None,
) -> MMEParams:
    """Calibrate MME parameters from explicit exponent / angular momentum extremes.

    Parameters
    ----------
    cell : Cell
        Periodic cell.
    zet_err_minimax : float
        Exponent bounding the minimax error (smallest exponent).
    zet_err_cutoff, l_err_cutoff : Sequence
        Paired (exponent, l) extremes bounding the cutoff error.
    l_max : int
        Largest angular momentum of any later kernel call.
    config : MMEConfig | None
        Precision and limits.
    """

    cfg = MMEConfig() if config is None else config
    log = new_logger(verbose=cfg.verbose)
    t0 = (time.process_time(), time.perf_counter())

    zet_c = tuple(float(z) for z in zet_err_cutoff)
    l_c = tuple(int(l) for l in l_err_cutoff)
    if len(zet_c) != len(l_c) or not zet_c:
        raise ValueError("zet_err_cutoff and l_err_cutoff must be non-empty and of equal length")
    if any(z <= 0.0 for z in zet_c) or float(zet_err_minimax) <= 0.0:
        raise MMEConfigurationError("exponents used for error estimates must be > 0")
    if any(l < 0 for l in l_c) or int(l_max) < max(l_c):
        raise MMEConfigurationError(f"l_max={l_max} must cover l_err_cutoff={l_c}")
    l_max = int(l_max)
    precision = float(cfg.precision)

    gmin = cell.shortest_reciprocal_vector()
    # every admissible pair has alpha <= max(zet)/2 and derivative order <= 2 l_max
    gcut = gspace_cutoff(0.5 * max(zet_c), 2 * l_max, precision)
    gcut = max(gcut, gmin)
    cutoff_error = max(gspace_tail(0.5 * z, 2 * l, gcut) for z, l in zip(zet_c, l_c))

    zet_w = (float(zet_err_minimax),) + zet_c
    weights = [minimax_error_weight(cell, z, l_max, gcut) for z in zet_w]
    iw = max(range(len(weights)), key=weights.__getitem__)
    weight = weights[iw]
    target = precision / max(weight, 1.0)
    if target < _MIN_MINIMAX_TARGET:
        raise MMEConfigurationError(
            f"minimax target {target:.3e} for zeta={zet_w[iw]:.6g}, l_max={l_max} is unreachable "
            f"(below {_MIN_MINIMAX_TARGET:.0e}); loosen precision={precision:.3e}"
        )
    R = (gcut / gmin) ** 2
    a, w, rel_err = fit_minimax(R, target, max_iter=cfg.minimax_max_iter)
    minimax_error = rel_err * max(weight, 1.0)

    g2min = gmin * gmin
    params = MMEParams(
        cell=cell,
        l_max=l_max,
        gcut=float(gcut),
        gmin=float(gmin),
        zet_err_minimax=float(zet_err_minimax),
        zet_err_cutoff=zet_c,
        l_err_cutoff=l_c,
        minimax_exp=a / g2min,
        minimax_weight=w / g2min,
        cutoff_error=float(cutoff_error),
        minimax_error=float(minimax_error),
        precision=precision,
        max_terms=int(cfg.max_terms),
        config=cfg,
    )

    log.info("ERI_MME| Calibrated parameters")
    log.info("ERI_MME|   l_max: %d", params.l_max)
    log.info("ERI_MME|   G cutoff: %.6f", params.gcut)
    log.info("ERI_MME|   minimax terms: %d (range %.3e)", params.n_minimax, params.minimax_range)
    log.info("ERI_MME|   cutoff error: %.3e", params.cutoff_error)
    log.info("ERI_MME|   minimax error: %.3e", params.minimax_error)
    log.timer("eri_mme_set_params_custom", *t0)
    return params


def set_params_from_basis(
    cell: Cell,
    kinds,
    basis_type: str | None = None,
    config: MMEConfig | None = None,
) -> MMEParams:
    """Calibrate MME parameters from the basis sets of a kind collection."""

    stats = exponent_statistics(kinds, basis_type)
    l_max = max(stats.l_err_cutoff)
    return set_params_custom(
        cell,
        stats.zet_mm,
        stats.zet_err_cutoff,
        stats.l_err_cutoff,
        l_max,
        config,
    )


__all__ = [
    "ExponentStatistics",
    "exponent_statistics",
    "minimax_error_weight",
    "set_params_custom",
    "set_params_from_basis",
]
