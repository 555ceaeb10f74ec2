from __future__ import annotations

"""Primitive two-center MME integrals.

For unnormalized Cartesian Gaussians on centers A and B (``rab = A - B``) the
periodic Coulomb integral without the G = 0 component is

    (a|b) = (pi^2 / (za zb))^(3/2) sum_{t,u} E^a_t E^b_u (-1)^|u| d^(t+u)/dR^(t+u) S(rab)

    S(R) = 4 pi / Omega sum_{G != 0} exp(-G^2 / (4 alpha)) exp(i G.R) / G^2,
    alpha = za zb / (za + zb).

S is summed either directly over G vectors, or in R space after replacing
1/G^2 by the minimax expansion ``sum_k W_k exp(-A_k G^2)`` and Poisson summation:

    S ~ 4 pi / Omega sum_k W_k [Omega (4 pi b_k)^(-3/2) sum_T exp(-|R+T|^2 / (4 b_k)) - 1],
    b_k = A_k + 1 / (4 alpha).
"""

from dataclasses import dataclass
from math import gamma, pi, sqrt

import numpy as np
from scipy.special import gammaincc, gammainccinv

from .hermite import hermite_indices, hermite_to_cart
from .lattice import estimate_gvector_count, gvectors_within, image_count, translations_within
from .lattice_sums import get_sum_functions, select_backend
from .types import IntegralCounters, MMEConfigurationError, MMEParams

G_SPACE = "G"
R_SPACE = "R"


def gspace_tail(alpha: float, n: int, gcut: float) -> float:
    """Continuum bound of the G-space truncation error of ``d^n S``.

    ``(2/pi) ∫_{gcut}^∞ G^n exp(-G^2 / (4 alpha)) dG``.
    """

    a = 0.5 * (int(n) + 1)
    x = float(gcut) ** 2 / (4.0 * float(alpha))
    return float((4.0 * alpha) ** a * gamma(a) * gammaincc(a, x) / pi)


def gspace_cutoff(alpha: float, n: int, precision: float) -> float:
    """Smallest |G| for which :func:`gspace_tail` is below ``precision``."""

    alpha = float(alpha)
    if alpha <= 0.0:
        raise ValueError("alpha must be > 0")
    a = 0.5 * (int(n) + 1)
    q = float(precision) * pi / ((4.0 * alpha) ** a * gamma(a))
    if q >= 1.0:
        return 0.0
    x = float(gammainccinv(a, q))
    return sqrt(4.0 * alpha * x)


def _image_radii(c: np.ndarray, pref: np.ndarray, n: int, precision: float) -> np.ndarray:
    # iterate r^2 = (log(pref/eps) + n log(2 c r)) / c, pyscf-style fixed point
    L = np.log(np.maximum(pref, 1e-300) / float(precision))
    r = np.zeros_like(c)
    live = L > 0.0
    cl = c[live]
    Ll = L[live]
    rl = np.sqrt(Ll / cl)
    for _ in range(2):
        rl = np.sqrt((Ll + n * np.log(np.maximum(2.0 * cl * rl, 1.0))) / cl)
    r[live] = rl
    return r


@dataclass(frozen=True)
class SpaceSelection:
    """Outcome of the G/R decision for one primitive pair."""

    space: str
    g_terms: float
    r_terms: int
    gcut: float


def _rspace_terms(param: MMEParams, alpha: float, n: int):
    key = (float(alpha), int(n))
    hit = param.rspace_cache.get(key)
    if hit is not None:
        return hit
    A = param.minimax_exp
    W = param.minimax_weight
    b = A + 0.25 / alpha
    c = 0.25 / b
    pref = 4.0 * pi * W * (4.0 * pi * b) ** -1.5
    radii = _image_radii(c, pref, n, param.precision / max(param.n_minimax, 1))
    for arr in (c, pref, radii):
        arr.setflags(write=False)
    const = 4.0 * pi / param.cell.volume * float(np.sum(W))
    param.rspace_cache[key] = (c, pref, radii, const)
    return c, pref, radii, const


def select_space(
    param: MMEParams,
    zeta: float,
    zetb: float,
    n: int,
    rab: np.ndarray,
) -> SpaceSelection:
    """Choose G or R space for a primitive pair with total derivative order ``n``.

    G-space cost is the number of G vectors inside the pair cutoff, R-space cost the
    number of lattice images of every minimax term, with image boxes widened by |rab|.
    The cheaper space wins; ties go to G space.
    """

    zeta = float(zeta)
    zetb = float(zetb)
    alpha = zeta * zetb / (zeta + zetb)
    gc = gspace_cutoff(alpha, n, param.precision)
    if gc > param.gcut * (1.0 + 1e-9):
        raise MMEConfigurationError(
            f"primitive pair zeta={zeta:.6g}, zetb={zetb:.6g}, n={n} needs G cutoff {gc:.6g} "
            f"beyond the calibrated {param.gcut:.6g}; recalibrate for this basis"
        )
    g_terms = estimate_gvector_count(param.cell, gc)

    rab_norm = float(np.linalg.norm(rab))
    c, pref, radii, _const = _rspace_terms(param, alpha, n)
    r_terms = image_count(param.cell, radii, rab_norm)

    if g_terms > param.max_terms and r_terms > param.max_terms:
        raise MMEConfigurationError(
            f"primitive pair zeta={zeta:.6g}, zetb={zetb:.6g}, n={n} needs {g_terms:.3g} G terms "
            f"and {r_terms} R terms, both above max_terms={param.max_terms}"
        )
    space = G_SPACE if g_terms <= r_terms else R_SPACE
    return SpaceSelection(space=space, g_terms=float(g_terms), r_terms=r_terms, gcut=gc)


def hermite_lattice_sum(
    param: MMEParams,
    zeta: float,
    zetb: float,
    nmax: int,
    rab: np.ndarray,
    space: str,
    *,
    backend: str = "python",
    gcut: float | None = None,
) -> np.ndarray:
    """``d^n S(rab)`` for all ``0 <= n_d`` with ``|n| <= nmax``, in the requested space."""

    gsum, rsum = get_sum_functions(backend)
    rab = np.asarray(rab, dtype=np.float64).reshape(3)
    alpha = float(zeta) * float(zetb) / (float(zeta) + float(zetb))
    omega = param.cell.volume
    if space == G_SPACE:
        if gcut is None:
            gcut = gspace_cutoff(alpha, nmax, param.precision)
        gv = gvectors_within(param.cell, gcut)
        g2 = np.einsum("gd,gd->g", gv, gv)
        weight = (4.0 * pi / omega) * np.exp(-g2 / (4.0 * alpha)) / g2
        return gsum(gv, weight, rab, nmax)
    if space == R_SPACE:
        c, pref, radii, const = _rspace_terms(param, alpha, nmax)
        pts = []
        cs = []
        ps = []
        for ck, pk, rk in zip(c, pref, radii):
            if rk <= 0.0:
                continue
            T = translations_within(param.cell, rab, rk)
            if T.shape[0] == 0:
                continue
            pts.append(rab[None, :] + T)
            cs.append(np.full(T.shape[0], ck))
            ps.append(np.full(T.shape[0], pk))
        n1 = int(nmax) + 1
        if pts:
            D = rsum(np.concatenate(pts), np.concatenate(cs), np.concatenate(ps), nmax)
        else:
            D = np.zeros((n1, n1, n1), dtype=np.float64)
        D[0, 0, 0] -= const
        return D
    raise ValueError(f"space must be {G_SPACE!r} or {R_SPACE!r}")


def integrate_low(
    param: MMEParams,
    la_min: int,
    la_max: int,
    lb_min: int,
    lb_max: int,
    zeta: float,
    zetb: float,
    rab: np.ndarray,
    hab: np.ndarray,
    o1: int,
    o2: int,
    counters: IntegralCounters,
    *,
    backend: str | None = None,
    space: str | None = None,
) -> str:
    """Add the Cartesian block of one primitive pair to ``hab[o1:, o2:]``.

    Rows cover the components of ``la_min..la_max``, columns those of
    ``lb_min..lb_max`` (coset ordering). Increments ``counters`` for the space
    used and returns it. ``space`` forces a space and bypasses the selection.
    """

    if la_max > param.l_max or lb_max > param.l_max:
        raise MMEConfigurationError(
            f"angular momenta la_max={la_max}, lb_max={lb_max} exceed calibrated l_max={param.l_max}"
        )
    if la_min < 0 or lb_min < 0 or la_min > la_max or lb_min > lb_max:
        raise ValueError("invalid angular momentum range")
    if backend is None:
        backend = select_backend(param.config.resolved_backend())

    rab = np.asarray(rab, dtype=np.float64).reshape(3)
    nmax = int(la_max) + int(lb_max)
    gcut = None
    if space is None:
        sel = select_space(param, zeta, zetb, nmax, rab)
        space = sel.space
        gcut = sel.gcut
    D = hermite_lattice_sum(param, zeta, zetb, nmax, rab, space, backend=backend, gcut=gcut)

    ta = hermite_indices(la_max)
    tb = hermite_indices(lb_max)
    idx = ta[:, None, :] + tb[None, :, :]
    Dmat = D[idx[..., 0], idx[..., 1], idx[..., 2]]
    Ea = hermite_to_cart(la_min, la_max, zeta)
    Eb = hermite_to_cart(lb_min, lb_max, zetb, conjugate=True)
    pref = (pi * pi / (float(zeta) * float(zetb))) ** 1.5
    block = pref * (Ea @ Dmat @ Eb.T)
    hab[o1 : o1 + block.shape[0], o2 : o2 + block.shape[1]] += block

    if space == G_SPACE:
        counters.g_count += 1
    else:
        counters.r_count += 1
    return space


__all__ = [
    "G_SPACE",
    "R_SPACE",
    "SpaceSelection",
    "gspace_cutoff",
    "gspace_tail",
    "hermite_lattice_sum",
    "integrate_low",
    "select_space",
]
