"""pbceri — periodic two-center Coulomb integrals with the MME method."""

from importlib.metadata import PackageNotFoundError, version as _dist_version

from pbceri.frontend import Cell, PeriodicSystem
from pbceri.mme import (
    MMEConfig,
    MMEConfigurationError,
    MMEDiagnostics,
    mme_2c_integrate,
    mme_2c_integrate_s,
    set_params,
    set_params_custom,
)

try:
    __version__ = _dist_version("pbceri")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.1.0"

__all__ = [
    "__version__",
    # Inputs
    "Cell",
    "PeriodicSystem",
    # Calibration
    "MMEConfig",
    "MMEConfigurationError",
    "set_params",
    "set_params_custom",
    # Integration
    "MMEDiagnostics",
    "mme_2c_integrate",
    "mme_2c_integrate_s",
]
