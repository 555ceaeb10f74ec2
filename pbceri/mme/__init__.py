from __future__ import annotations

"""Minimax-exponential (MME) periodic two-center Coulomb integrals."""

from .error_control import (
    ExponentStatistics,
    exponent_statistics,
    minimax_error_weight,
    set_params_custom,
    set_params_from_basis,
)
from .interface import (
    integrate_finalize,
    integrate_prepare,
    mme_2c_integrate,
    mme_2c_integrate_local,
    mme_2c_integrate_s,
    mme_2c_integrate_s_local,
    mme_2c_integrate_workers,
    pair_count,
    set_params,
)
from .kernel import G_SPACE, R_SPACE, SpaceSelection, gspace_cutoff, gspace_tail, integrate_low, select_space
from .types import IntegralCounters, MMEConfig, MMEConfigurationError, MMEDiagnostics, MMEParams

__all__ = [
    "ExponentStatistics",
    "G_SPACE",
    "IntegralCounters",
    "MMEConfig",
    "MMEConfigurationError",
    "MMEDiagnostics",
    "MMEParams",
    "R_SPACE",
    "SpaceSelection",
    "exponent_statistics",
    "gspace_cutoff",
    "gspace_tail",
    "integrate_finalize",
    "integrate_low",
    "integrate_prepare",
    "minimax_error_weight",
    "mme_2c_integrate",
    "mme_2c_integrate_local",
    "mme_2c_integrate_s",
    "mme_2c_integrate_s_local",
    "mme_2c_integrate_workers",
    "pair_count",
    "select_space",
    "set_params",
    "set_params_custom",
    "set_params_from_basis",
]
