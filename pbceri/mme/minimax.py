from __future__ import annotations

"""Exponential-sum approximation of 1/x in the relative max norm.

``1/x = ∫ exp(s - x e^s) ds`` is discretized with the trapezoidal rule in
``s``. The integrand is analytic in the strip ``|Im s| < pi/2``, so the
discretization error decays like ``exp(-pi^2/h)``; the truncation of the
``s`` range controls the error at both ends of ``[1, R]``. The resulting sum
is close to the best (minimax) approximation with the same number of terms
and its max-norm error is measured, not assumed.
"""

from math import ceil, log, pi

import numpy as np

from .types import MMEConfigurationError


def _error_grid(R: float) -> np.ndarray:
    ndec = max(1.0, np.log10(R))
    npts = int(64 * ndec) + 2
    return np.geomspace(1.0, R, npts)


def relative_error(a: np.ndarray, w: np.ndarray, R: float) -> float:
    """Max of ``|x * sum_k w_k exp(-a_k x) - 1|`` on a log grid over ``[1, R]``."""

    x = _error_grid(float(R))
    approx = np.exp(-np.outer(x, a)) @ w
    return float(np.max(np.abs(x * approx - 1.0)))


def exp_sum_1overx(R: float, delta: float) -> tuple[np.ndarray, np.ndarray]:
    """Exponents ``a`` and weights ``w`` with ``1/x ~ sum_k w_k exp(-a_k x)`` on ``[1, R]``.

    ``delta`` is the intended relative error; the number of terms grows like
    ``log(1/delta) * log(R/delta)``.
    """

    R = float(R)
    delta = float(delta)
    if R < 1.0:
        raise ValueError("R must be >= 1")
    if not (0.0 < delta < 1.0):
        raise ValueError("delta must be in (0, 1)")
    ln = log(2.0 / delta)
    h = pi * pi / ln
    s_hi = log(ln) + 0.5
    s_lo = log(delta / (2.0 * R))
    n = int(ceil((s_hi - s_lo) / h)) + 1
    s = s_lo + h * np.arange(n, dtype=np.float64)
    a = np.exp(s)
    w = h * a
    return a, w


def fit_minimax(R: float, target: float, *, max_iter: int = 30) -> tuple[np.ndarray, np.ndarray, float]:
    """Tighten :func:`exp_sum_1overx` until its measured relative error is <= ``target``.

    Returns
    -------
    a, w : np.ndarray
        Exponents and weights (in units of the scaled variable ``x``).
    err : float
        Measured max relative error.
    """

    target = min(float(target), 0.5)
    if target <= 0.0:
        raise ValueError("target must be > 0")
    delta = target
    err = np.inf
    for _ in range(int(max_iter)):
        a, w = exp_sum_1overx(R, delta)
        err = relative_error(a, w, R)
        if err <= target:
            return a, w, err
        delta *= 0.5
    raise MMEConfigurationError(
        f"minimax expansion of 1/x on [1, {R:.3e}] did not reach relative error {target:.3e} "
        f"(last: {err:.3e}) within {int(max_iter)} iterations"
    )


__all__ = ["exp_sum_1overx", "fit_minimax", "relative_error"]
