from __future__ import annotations

"""Gaussian primitive normalization helpers.

Primitives are unnormalized Cartesian Gaussians ``x^i y^j z^k exp(-a r^2)``;
normalization and contraction coefficients are folded into the ``sphi``
matrices of :mod:`pbceri.basis.shellset`.
"""

from math import gamma, pi, sqrt

import numpy as np


def _gaussian_int(n: int, alpha: np.ndarray) -> np.ndarray:
    """Compute ∫_0^∞ x^n exp(-alpha x^2) dx for vector alpha (float64)."""

    n = int(n)
    if n < 0:
        raise ValueError("n must be >= 0")
    alpha = np.asarray(alpha, dtype=np.float64)
    if alpha.ndim != 1:
        raise ValueError("alpha must be 1D")
    n1 = 0.5 * float(n + 1)
    return (gamma(n1) / 2.0) / np.power(alpha, n1)


def gto_norm_radial(l: int, exp: np.ndarray) -> np.ndarray:
    """Radial normalization of ``r^l exp(-a r^2)``."""

    l = int(l)
    if l < 0:
        raise ValueError("l must be >= 0")
    exp = np.asarray(exp, dtype=np.float64)
    if exp.ndim != 1:
        raise ValueError("exp must be 1D")
    return 1.0 / np.sqrt(_gaussian_int(l * 2 + 2, 2.0 * exp))


def angular_norm(l: int) -> float:
    """Factor turning a Racah-normalized solid harmonic into ``r^l Y_lm``."""

    if l < 0:
        raise ValueError("l must be >= 0")
    return sqrt((2 * l + 1) / (4.0 * pi))


def primitive_norm_sph(l: int, exp: np.ndarray) -> np.ndarray:
    """Full normalization of a spherical primitive built from Racah solid harmonics."""

    return gto_norm_radial(l, exp) * angular_norm(l)


def normalize_contraction(l: int, exp: np.ndarray, coef: np.ndarray) -> np.ndarray:
    """Rescale contraction columns ``coef (nprim, nctr)`` so that each contracted function is normalized.

    The input coefficients refer to normalized primitives.
    """

    l = int(l)
    exp = np.asarray(exp, dtype=np.float64).ravel()
    coef = np.asarray(coef, dtype=np.float64)
    if coef.ndim == 1:
        coef = coef.reshape((-1, 1))
    if coef.ndim != 2 or int(coef.shape[0]) != int(exp.size):
        raise ValueError("coef must have shape (nprim, nctr)")
    nrm = gto_norm_radial(l, exp)
    ee = exp[:, None] + exp[None, :]
    ovlp = gamma(l + 1.5) / (2.0 * np.power(ee, l + 1.5))
    ovlp *= nrm[:, None] * nrm[None, :]
    s = np.einsum("pi,pq,qi->i", coef, ovlp, coef)
    if np.any(s <= 0.0):
        raise ValueError("contraction has non-positive norm")
    return coef / np.sqrt(s)[None, :]


__all__ = ["angular_norm", "gto_norm_radial", "normalize_contraction", "primitive_norm_sph"]
