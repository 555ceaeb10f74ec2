"""Tests for the exponential-sum approximation of 1/x."""

from __future__ import annotations

import numpy as np
import pytest


@pytest.mark.parametrize("R,target", [(10.0, 1e-6), (100.0, 1e-9), (5000.0, 1e-11)])
def test_fit_reaches_target(R, target):
    """The measured max relative error on [1, R] meets the requested target."""
    from pbceri.mme.minimax import fit_minimax, relative_error

    a, w, err = fit_minimax(R, target)
    assert err <= target
    assert np.all(a > 0.0) and np.all(w > 0.0)
    assert np.isclose(relative_error(a, w, R), err)

    x = np.asarray([1.0, np.sqrt(R), R])
    approx = np.exp(-np.outer(x, a)) @ w
    assert np.allclose(approx * x, 1.0, rtol=0.0, atol=2 * target)


def test_more_terms_for_tighter_target():
    """Tighter targets and wider ranges need more terms."""
    from pbceri.mme.minimax import fit_minimax

    n_loose = fit_minimax(100.0, 1e-6)[0].size
    n_tight = fit_minimax(100.0, 1e-11)[0].size
    n_wide = fit_minimax(1e4, 1e-6)[0].size
    assert n_tight > n_loose
    assert n_wide > n_loose


def test_invalid_arguments():
    """Ranges below 1 and non-positive targets are rejected."""
    from pbceri.mme.minimax import exp_sum_1overx, fit_minimax

    with pytest.raises(ValueError):
        exp_sum_1overx(0.5, 1e-6)
    with pytest.raises(ValueError):
        exp_sum_1overx(10.0, 0.0)
    with pytest.raises(ValueError):
        fit_minimax(10.0, -1.0)
