"""Tests for exponent statistics and MME parameter calibration."""

from __future__ import annotations

import numpy as np
import pytest

_BASIS = {
    "H": [[0, [3.0, 1.0]], [1, [0.5, 1.0]]],
    "O": [[0, [10.0, 1.0]], [2, [0.9, 1.0]]],
}


def _system(cell_length=9.0):
    from pbceri.frontend import Cell, PeriodicSystem

    return PeriodicSystem.from_atoms(
        [("H", (0.0, 0.0, 0.0)), ("O", (1.0, 1.0, 1.0)), ("H", (2.0, 0.0, 0.0))],
        Cell.cubic(cell_length),
        _BASIS,
    )


def test_exponent_statistics_extremes():
    """Global extremes and the cross extremes (exponent at max l, l at max exponent)."""
    from pbceri.mme import exponent_statistics

    stats = exponent_statistics(_system().kinds)
    assert stats.zet_mm == 0.5
    assert stats.zet_m == 10.0
    assert stats.l_m == 2
    assert stats.zet_l == 0.9
    assert stats.l_zet == 0
    assert stats.zet_err_cutoff == (10.0, 0.9)
    assert stats.l_err_cutoff == (0, 2)


def test_exponent_statistics_degenerate_and_missing():
    """An empty basis or an unknown basis type is a configuration error."""
    from pbceri.basis import BasisSet
    from pbceri.frontend import Kind
    from pbceri.mme import MMEConfigurationError, exponent_statistics

    empty = Kind(label="X", basis_sets={"ORB": BasisSet(sets=())})
    with pytest.raises(MMEConfigurationError):
        exponent_statistics([empty])
    with pytest.raises(MMEConfigurationError):
        exponent_statistics([])
    with pytest.raises(MMEConfigurationError, match="RI_AUX"):
        exponent_statistics(_system().kinds, "RI_AUX")


def test_calibration_is_deterministic():
    """Calibrating twice on identical input gives identical parameters."""
    from pbceri.mme import MMEConfig, set_params

    sys_ = _system()
    cfg = MMEConfig(precision=1e-9)
    p1 = set_params(sys_.cell, sys_.kinds, config=cfg)
    p2 = set_params(sys_.cell, sys_.kinds, config=cfg)
    assert p1.l_max == p2.l_max == 2
    assert p1.gcut == p2.gcut
    assert p1.cutoff_error == p2.cutoff_error
    assert p1.minimax_error == p2.minimax_error
    assert np.array_equal(p1.minimax_exp, p2.minimax_exp)
    assert np.array_equal(p1.minimax_weight, p2.minimax_weight)


def test_calibration_bounds_errors():
    """The cutoff covers the hardest pair and both error estimates stay near precision."""
    from pbceri.mme import MMEConfig, gspace_cutoff, set_params_custom
    from pbceri.frontend import Cell

    cell = Cell.cubic(10.0)
    prec = 1e-10
    p = set_params_custom(cell, 0.3, [4.0, 1.0], [0, 1], 1, MMEConfig(precision=prec))
    assert p.gcut >= gspace_cutoff(2.0, 2, prec) - 1e-12
    assert p.gmin == pytest.approx(2 * np.pi / 10.0)
    assert p.cutoff_error <= prec * (1 + 1e-6)
    assert p.minimax_error <= prec
    assert p.n_minimax == p.minimax_weight.size > 0
    assert p.minimax_range == pytest.approx((p.gcut / p.gmin) ** 2)


def test_calibration_rejects_bad_input():
    """l_max must cover the cutoff extremes and exponents must be positive."""
    from pbceri.frontend import Cell
    from pbceri.mme import MMEConfigurationError, set_params_custom

    cell = Cell.cubic(10.0)
    with pytest.raises(MMEConfigurationError):
        set_params_custom(cell, 1.0, [1.0], [2], 1)
    with pytest.raises(MMEConfigurationError):
        set_params_custom(cell, -1.0, [1.0], [0], 0)
    with pytest.raises(ValueError):
        set_params_custom(cell, 1.0, [1.0, 2.0], [0], 0)


def test_calibration_logs_at_info(capsys):
    """Info verbosity reports the calibrated parameters."""
    from pbceri.frontend import Cell
    from pbceri.mme import MMEConfig, set_params_custom

    set_params_custom(Cell.cubic(10.0), 1.0, [1.0], [0], 0, MMEConfig(verbose=4))
    out = capsys.readouterr().out
    assert "ERI_MME| Calibrated parameters" in out
    assert "G cutoff" in out


def test_calibration_with_all_electron_exponents():
    """A core exponent of 1.2e4 calibrates without enumerating G vectors up to the cutoff."""
    from pbceri.frontend import Cell
    from pbceri.mme import MMEConfig, select_space, set_params_custom
    from pbceri.mme import lattice

    cell = Cell.cubic(10.5)
    prec = 1e-10
    p = set_params_custom(cell, 0.1, [1.2e4], [0], 0, MMEConfig(precision=prec))
    assert p.gcut > 500.0
    assert p.cutoff_error <= prec * (1 + 1e-6)
    assert p.minimax_error <= prec
    nbox, _gv, _gnorm = lattice._gvector_cache[cell.lattice.tobytes()]
    assert max(nbox) <= 2
    assert select_space(p, 1.2e4, 1.2e4, 0, np.zeros(3)).space == "R"


def test_minimax_error_stays_within_precision():
    """Diffuse exponents with f functions still meet the requested precision."""
    from pbceri.frontend import Cell
    from pbceri.mme import MMEConfig, set_params_custom

    prec = 1e-10
    p = set_params_custom(Cell.cubic(8.0), 0.2, [20.0], [3], 3, MMEConfig(precision=prec))
    assert 0.0 < p.minimax_error <= prec
    assert p.cutoff_error <= prec * (1 + 1e-6)


def test_unreachable_minimax_target_is_fatal():
    """A precision the minimax fit cannot reach in float64 is a configuration error."""
    from pbceri.frontend import Cell
    from pbceri.mme import MMEConfig, MMEConfigurationError, set_params_custom

    with pytest.raises(MMEConfigurationError, match="unreachable"):
        set_params_custom(Cell.cubic(10.0), 1.0, [1e3], [0], 0, MMEConfig(precision=1e-12))


def test_minimax_error_weight_is_hermite_scaled():
    """The weight of a hard exponent shrinks with l, that of a soft one is bounded."""
    from pbceri.frontend import Cell
    from pbceri.mme import minimax_error_weight

    cell = Cell.cubic(8.0)
    w0 = minimax_error_weight(cell, 20.0, 0, 50.0)
    w3 = minimax_error_weight(cell, 20.0, 3, 50.0)
    assert w0 > 0.0 and w3 < w0
    assert minimax_error_weight(cell, 0.2, 3, 50.0) < 100.0
    assert minimax_error_weight(cell, 1.0, 0, 0.5) == 0.0


def test_calibrated_params_are_read_only():
    """Minimax exponents and weights cannot be modified after calibration."""
    from pbceri.frontend import Cell
    from pbceri.mme import set_params_custom

    p = set_params_custom(Cell.cubic(10.0), 1.0, [1.0], [0], 0)
    assert not p.minimax_exp.flags.writeable
    assert not p.minimax_weight.flags.writeable
    with pytest.raises(ValueError):
        p.minimax_exp[0] = 1.0
