from __future__ import annotations

import os
from dataclasses import dataclass, field

import numpy as np

from pbceri.frontend.cell import Cell


class MMEConfigurationError(RuntimeError):
    """Fatal configuration problem: degenerate basis, unreachable error bounds, l beyond l_max."""


_DISTRIBUTIONS = ("cyclic", "block")
_BACKENDS = ("auto", "python", "numba")


@dataclass(frozen=True)
class MMEConfig:
    """User-facing knobs of calibration and integration.

    Attributes
    ----------
    precision : float
        Target absolute error of the unit-prefactor lattice sum, used for both the
        G-space truncation and the minimax approximation.
    max_terms : int
        Largest number of lattice terms a single primitive pair may use in either space.
    minimax_max_iter : int
        Number of tightening steps allowed when fitting the minimax expansion.
    distribution : str
        ``"cyclic"`` (round-robin on the linear pair index) or ``"block"``
        (contiguous index ranges).
    backend : str | None
        Lattice-sum backend, ``"auto" | "python" | "numba"``. ``None`` reads
        ``PBCERI_MME_BACKEND``.
    verbose : int | None
        Logger verbosity. ``None`` reads ``PBCERI_VERBOSE``.
    """

    precision: float = 1e-10
    max_terms: int = 20_000_000
    minimax_max_iter: int = 30
    distribution: str = "cyclic"
    backend: str | None = None
    verbose: int | None = None

    def __post_init__(self) -> None:
        if not (0.0 < float(self.precision) < 1.0):
            raise ValueError("precision must be in (0, 1)")
        if int(self.max_terms) <= 0:
            raise ValueError("max_terms must be > 0")
        if int(self.minimax_max_iter) <= 0:
            raise ValueError("minimax_max_iter must be > 0")
        if str(self.distribution) not in _DISTRIBUTIONS:
            raise ValueError(f"distribution must be one of: {'|'.join(_DISTRIBUTIONS)}")
        if self.backend is not None and str(self.backend).strip().lower() not in _BACKENDS:
            raise ValueError(f"backend must be one of: {'|'.join(_BACKENDS)}")

    def resolved_backend(self) -> str:
        raw = self.backend if self.backend is not None else os.environ.get("PBCERI_MME_BACKEND", "auto")
        return str(raw).strip().lower() or "auto"


@dataclass(frozen=True)
class MMEParams:
    """Calibrated parameters of the MME method.

    Built by :func:`pbceri.mme.error_control.set_params_custom`; immutable afterwards.

    Attributes
    ----------
    cell : Cell
        Periodic cell the parameters were calibrated for.
    l_max : int
        Largest angular momentum any kernel call may request.
    gcut : float
        Global G-space cutoff (|G|, Bohr^-1); the minimax range extends up to it.
    gmin : float
        Shortest non-zero reciprocal lattice vector.
    zet_err_minimax : float
        Exponent used to bound the minimax error (smallest exponent of the basis).
    zet_err_cutoff, l_err_cutoff : tuple
        Extreme (exponent, l) combinations used to bound the cutoff error.
    minimax_exp, minimax_weight : np.ndarray
        ``1/G^2 ~ sum_k w_k exp(-a_k G^2)`` on ``[gmin^2, gcut^2]``.
    cutoff_error, minimax_error : float
        Error estimates at calibration.
    rspace_cache : dict
        Per-(alpha, n) R-space terms (scaled exponents, prefactors, image radii),
        filled lazily by the kernel.
    """

    cell: Cell
    l_max: int
    gcut: float
    gmin: float
    zet_err_minimax: float
    zet_err_cutoff: tuple[float, ...]
    l_err_cutoff: tuple[int, ...]
    minimax_exp: np.ndarray = field(repr=False)
    minimax_weight: np.ndarray = field(repr=False)
    cutoff_error: float
    minimax_error: float
    precision: float
    max_terms: int
    config: MMEConfig = field(default_factory=MMEConfig, repr=False)
    rspace_cache: dict = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        for name in ("minimax_exp", "minimax_weight"):
            arr = np.array(getattr(self, name), dtype=np.float64)
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)

    @property
    def n_minimax(self) -> int:
        return int(self.minimax_exp.size)

    @property
    def minimax_range(self) -> float:
        return float((self.gcut / self.gmin) ** 2)


@dataclass
class IntegralCounters:
    """Per-pass count of primitive-pair integrals evaluated in each space.

    Owned by the caller of an integration pass; process-local until reduced.
    """

    g_count: int = 0
    r_count: int = 0

    @property
    def total(self) -> int:
        return int(self.g_count + self.r_count)

    def as_array(self) -> np.ndarray:
        return np.asarray([self.g_count, self.r_count], dtype=np.int64)


@dataclass(frozen=True)
class MMEDiagnostics:
    """Reduced G/R evaluation counts of one integration pass."""

    g_count: int
    r_count: int

    @property
    def total(self) -> int:
        return int(self.g_count + self.r_count)

    @property
    def g_percent(self) -> float:
        return 100.0 * self.g_count / self.total if self.total else 0.0

    @property
    def r_percent(self) -> float:
        return 100.0 * self.r_count / self.total if self.total else 0.0


__all__ = ["IntegralCounters", "MMEConfig", "MMEConfigurationError", "MMEDiagnostics", "MMEParams"]
