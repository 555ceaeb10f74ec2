"""End-to-end tests of the two-center integration passes."""

from __future__ import annotations

import numpy as np
import pytest

_SP_BASIS = {
    "H": [[0, [1.2, 1.0]], [1, [0.8, 1.0]]],
    "He": [[0, [2.0, 0.6], [0.6, 0.5]]],
}


def _system(basis=_SP_BASIS, L=8.0):
    from pbceri.frontend import Cell, PeriodicSystem

    atoms = [("H", (0.0, 0.0, 0.0)), ("He", (1.5, 0.3, -0.4)), ("H", (-2.0, 6.5, 1.0))]
    return PeriodicSystem.from_atoms(atoms, Cell.cubic(L), basis)


def _params(system, **cfg):
    from pbceri.mme import MMEConfig, set_params

    return set_params(system.cell, system.kinds, config=MMEConfig(precision=1e-10, **cfg))


def test_full_pass_symmetric_and_counted():
    """Same basis on both sides gives a symmetric matrix; every primitive pair is counted once."""
    from pbceri.mme import mme_2c_integrate, pair_count
    from pbceri.parallel import SerialCommunicator

    system = _system()
    param = _params(system)
    n = system.nsgf_total()
    assert n == 4 + 1 + 4
    hab = np.zeros((n, n))
    profile: dict = {}
    diag = mme_2c_integrate(param, system, hab, comm=SerialCommunicator(), profile=profile)

    np.testing.assert_allclose(hab, hab.T, rtol=1e-9, atol=1e-11)
    assert np.all(np.isfinite(hab))
    assert diag.total == pair_count(system) == 6 * 6
    assert diag.g_percent + diag.r_percent == pytest.approx(100.0)
    assert profile["eri_mme_2c"]["n_set_pairs"] == 5 * 5
    assert profile["eri_mme_2c"]["g_count"] == diag.g_count


def test_full_pass_accumulates_into_hab():
    """The reduced matrix is added to whatever hab already holds."""
    from pbceri.mme import mme_2c_integrate

    system = _system()
    param = _params(system)
    n = system.nsgf_total()
    ref = np.zeros((n, n))
    mme_2c_integrate(param, system, ref)
    hab = np.full((n, n), 2.0)
    mme_2c_integrate(param, system, hab)
    np.testing.assert_allclose(hab, ref + 2.0, rtol=0, atol=1e-12)


def test_full_pass_matches_s_pass_for_s_primitives():
    """For uncontracted s functions the full pass is the s pass on wrapped positions times norms."""
    from pbceri.mme import mme_2c_integrate, mme_2c_integrate_s

    basis = {"He": [[0, [1.0, 1.0]]], "Li": [[0, [0.7, 1.0]]]}
    system = _system({"H": basis["He"], "He": basis["Li"]})
    param = _params(system)
    hab = np.zeros((3, 3))
    mme_2c_integrate(param, system, hab)

    zet = np.asarray([1.0, 0.7, 1.0])
    pos = np.asarray([system.cell.pbc(a.r) for a in system.atoms])
    hs = np.zeros((3, 3))
    mme_2c_integrate_s(param, zet, zet, pos, pos, hs)
    nrm = (2.0 * zet / np.pi) ** 0.75
    np.testing.assert_allclose(hab, nrm[:, None] * hs * nrm[None, :], rtol=1e-12, atol=1e-14)


@pytest.mark.parametrize("distribution", ["cyclic", "block"])
def test_full_pass_invariant_under_worker_count(distribution):
    """1, 2, 4 and 8 simulated workers reduce to the same matrix and counts."""
    from pbceri.mme import mme_2c_integrate_workers, pair_count

    system = _system()
    param = _params(system, distribution=distribution)
    n = system.nsgf_total()
    results = []
    for nworkers in (1, 2, 4, 8):
        hab = np.zeros((n, n))
        diag = mme_2c_integrate_workers(param, system, hab, nworkers)
        assert diag.total == pair_count(system)
        results.append((hab, diag))
    for hab, diag in results[1:]:
        np.testing.assert_allclose(hab, results[0][0], rtol=0, atol=1e-10)
        assert (diag.g_count, diag.r_count) == (results[0][1].g_count, results[0][1].r_count)


def test_workers_in_processes():
    """Worker processes give the same result as the in-process run."""
    from pbceri.mme import mme_2c_integrate_workers

    system = _system()
    param = _params(system)
    n = system.nsgf_total()
    h1 = np.zeros((n, n))
    h2 = np.zeros((n, n))
    mme_2c_integrate_workers(param, system, h1, 2)
    mme_2c_integrate_workers(param, system, h2, 2, processes=True)
    np.testing.assert_allclose(h2, h1, rtol=0, atol=1e-12)


def test_local_parts_are_disjoint():
    """Each rank only writes the blocks of the set pairs it owns."""
    from pbceri.mme import mme_2c_integrate_local

    system = _system()
    param = _params(system)
    b0, c0 = mme_2c_integrate_local(param, system, 0, 2)
    b1, c1 = mme_2c_integrate_local(param, system, 1, 2)
    assert not np.any((b0 != 0.0) & (b1 != 0.0))
    assert c0.total + c1.total == 36


def test_s_pass_idempotent_and_zeroes_hab():
    """Two s passes on the same input give bit-identical output; old hab content is discarded."""
    from pbceri.frontend import Cell
    from pbceri.mme import MMEConfig, mme_2c_integrate_s, set_params_custom

    param = set_params_custom(Cell.cubic(10.0), 0.4, [2.0], [0], 0, MMEConfig())
    zeta = np.asarray([2.0, 0.9, 0.4])
    zetb = np.asarray([1.0, 0.5])
    ra = np.asarray([[0.0, 0.0, 0.0], [1.0, 2.0, 3.0], [-4.0, 0.5, 0.0]])
    rb = np.asarray([[0.5, 0.5, 0.5], [3.0, -1.0, 2.0]])

    h1 = np.zeros((3, 2))
    d1 = mme_2c_integrate_s(param, zeta, zetb, ra, rb, h1)
    h2 = np.full((3, 2), 7.0)
    d2 = mme_2c_integrate_s(param, zeta, zetb, ra, rb, h2)
    assert np.array_equal(h1, h2)
    assert d1 == d2
    assert d1.total == 6


@pytest.mark.parametrize("nworkers", [1, 2, 4, 8])
def test_s_pass_block_split_invariance(nworkers):
    """Block-distributed s-pass parts reduce to the serial result."""
    from pbceri.frontend import Cell
    from pbceri.mme import MMEConfig, mme_2c_integrate_s, mme_2c_integrate_s_local, set_params_custom
    from pbceri.parallel import CounterSum, MatrixSum, reduce_parts

    param = set_params_custom(Cell.cubic(10.0), 0.5, [1.5], [0], 0, MMEConfig())
    zeta = np.asarray([1.5, 0.5, 1.0])
    ra = np.asarray([[0.0, 0.0, 0.0], [1.0, 1.0, 0.0], [0.0, -2.0, 3.0]])
    ref = np.zeros((3, 3))
    mme_2c_integrate_s(param, zeta, zeta, ra, ra, ref)

    parts = [mme_2c_integrate_s_local(param, zeta, zeta, ra, ra, r, nworkers) for r in range(nworkers)]
    np.testing.assert_allclose(reduce_parts([p[0] for p in parts], MatrixSum()), ref, rtol=0, atol=1e-10)
    assert reduce_parts([p[1] for p in parts], CounterSum()).total == 9


def test_diagnostics_logged(capsys):
    """Finalization reports the G/R percentages at info verbosity."""
    from pbceri.mme import mme_2c_integrate

    system = _system()
    param = _params(system, verbose=4)
    capsys.readouterr()
    n = system.nsgf_total()
    diag = mme_2c_integrate(param, system, np.zeros((n, n)))
    out = capsys.readouterr().out
    assert "ERI_MME| Percentage of integrals evaluated in" in out
    assert "G space" in out and "R space" in out
    assert f"{diag.g_percent:.1f}" in out


def test_hab_shape_is_checked():
    """A wrongly shaped or typed output buffer is rejected."""
    from pbceri.mme import mme_2c_integrate, mme_2c_integrate_s

    system = _system()
    param = _params(system)
    with pytest.raises(ValueError):
        mme_2c_integrate(param, system, np.zeros((2, 2)))
    with pytest.raises(TypeError):
        mme_2c_integrate_s(param, [1.0], [1.0], np.zeros((1, 3)), np.zeros((1, 3)), np.zeros((1, 1), dtype=np.float32))


def test_cross_basis_types():
    """Rows and columns can come from different basis types."""
    from pbceri.frontend import Cell, PeriodicSystem
    from pbceri.mme import MMEConfig, mme_2c_integrate, set_params

    aux = {"H": [[0, [0.9, 1.0]]], "He": [[1, [1.1, 1.0]]]}
    system = PeriodicSystem.from_atoms(
        [("H", (0.0, 0.0, 0.0)), ("He", (1.5, 0.3, -0.4))],
        Cell.cubic(8.0),
        _SP_BASIS,
        basis_types={"RI_AUX": aux},
    )
    param = set_params(system.cell, system.kinds, config=MMEConfig())
    hab = np.zeros((system.nsgf_total(), system.nsgf_total("RI_AUX")))
    assert hab.shape == (5, 4)
    diag = mme_2c_integrate(param, system, hab, basis_type_b="RI_AUX")
    assert diag.total == 4 * 2
    assert np.any(hab != 0.0)


def test_each_pass_starts_from_fresh_counters():
    """integrate_prepare hands out independent zeroed counters."""
    from pbceri.mme import integrate_prepare

    c1 = integrate_prepare()
    c2 = integrate_prepare()
    assert c1.total == c2.total == 0
    c1.g_count += 3
    assert c2.g_count == 0
