"""Tests for Cartesian/spherical helpers and shell-set packing."""

from __future__ import annotations

import numpy as np
import pytest


def test_cartesian_component_order():
    """Components are ordered by decreasing lx, then decreasing ly."""
    from pbceri.basis import cartesian_components, cartesian_components_range, ncoset

    assert cartesian_components(1) == ((1, 0, 0), (0, 1, 0), (0, 0, 1))
    assert cartesian_components(2) == ((2, 0, 0), (1, 1, 0), (1, 0, 1), (0, 2, 0), (0, 1, 1), (0, 0, 2))
    assert len(cartesian_components_range(0, 2)) == ncoset(0, 2) == 10
    assert ncoset(1, 1) == 3


def test_cart2sph_p_and_d():
    """p functions come out as (y, z, x); d0 is z^2 - (x^2 + y^2)/2."""
    from pbceri.basis import cart2sph_matrix

    c2s_p = cart2sph_matrix(1)
    assert np.allclose(c2s_p, [[0, 0, 1], [1, 0, 0], [0, 1, 0]])

    c2s_d = cart2sph_matrix(2)
    assert c2s_d.shape == (6, 5)
    # rows: xx xy xz yy yz zz; column m=0
    assert np.allclose(c2s_d[:, 2], [-0.5, 0.0, 0.0, -0.5, 0.0, 1.0])
    # m=-2 is sqrt(3) xy
    assert np.allclose(c2s_d[:, 0], [0.0, np.sqrt(3.0), 0.0, 0.0, 0.0, 0.0])


def test_cart2sph_is_read_only():
    """Cached transformation matrices cannot be modified."""
    from pbceri.basis import cart2sph_matrix

    with pytest.raises(ValueError):
        cart2sph_matrix(2)[0, 0] = 1.0


def test_primitive_normalization_folded_into_sphi():
    """A single normalized primitive gets the textbook normalization constant."""
    from pbceri.basis import make_shell_set

    a = 1.3
    s = make_shell_set([a], [(0, [1.0])])
    assert s.sphi.shape == (1, 1)
    assert np.isclose(s.sphi[0, 0], (2 * a / np.pi) ** 0.75)

    p = make_shell_set([a], [(1, [1.0])])
    nrm = (2 * a / np.pi) ** 0.75 * 2.0 * np.sqrt(a)
    assert np.allclose(p.sphi, nrm * np.asarray([[0, 0, 1], [1, 0, 0], [0, 1, 0]]))


def test_sp_shell_set_layout():
    """An SP set covers l=0..1 with pgf-major rows and s before p columns."""
    from pbceri.basis import make_shell_set

    s = make_shell_set([2.0, 0.5], [(0, [0.6, 0.4]), (1, [0.3, 0.7])], first_sgf=3)
    assert (s.lmin, s.lmax, s.npgf, s.nsgf, s.ncoset) == (0, 1, 2, 4, 4)
    assert s.sphi.shape == (8, 4)
    # the s column never touches p rows and vice versa
    assert np.all(s.sphi[[1, 2, 3, 5, 6, 7], 0] == 0.0)
    assert np.all(s.sphi[[0, 4], 1:] == 0.0)


def test_basis_set_offsets_are_contiguous():
    """make_basis_set assigns consecutive spherical offsets; gaps are rejected."""
    from pbceri.basis import BasisSet, make_basis_set, make_shell_set

    basis = make_basis_set([([1.0], [(0, [1.0])]), ([0.8], [(2, [1.0])]), ([0.4], [(1, [1.0])])])
    assert [s.first_sgf for s in basis.sets] == [0, 1, 6]
    assert basis.nsgf == 9
    assert basis.lmax == 2

    with pytest.raises(ValueError):
        BasisSet(sets=(make_shell_set([1.0], [(0, [1.0])], first_sgf=2),))


def test_parse_basis_dict_general_contraction():
    """Each contraction column becomes its own shell sharing the exponents."""
    from pbceri.frontend import build_kind_basis, parse_basis_dict

    basis = {"h": [[0, [3.0, 0.2, 0.0], [0.5, 0.8, 1.0]], [1, 0, [0.9, 1.0, 1.0]]]}
    parsed = parse_basis_dict(basis, elements=["H"])
    kb = build_kind_basis(parsed["H"], name="H:ORB")
    assert kb.nset == 2
    assert kb.sets[0].l == (0, 0)
    assert kb.sets[1].l == (1, 0)
    assert kb.nsgf == 2 + 4

    with pytest.raises(KeyError):
        parse_basis_dict(basis, elements=["O"])
