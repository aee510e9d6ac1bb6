"""
ReaxFF bond-order engine.

Bond orders are computed in two passes over every unordered atom pair:

1. Uncorrected sigma, pi and double-pi bond orders from the interatomic
   distance and the pair's covalent radii, followed by the per-atom
   deviations ``deltap`` and ``deltap_boc``.
2. Over-coordination (``f1``) and one-three (``f4``, ``f5``) corrections
   applied to the uncorrected orders, a snap of tiny components to zero,
   and the per-atom helper arrays consumed by the energy terms.

Only the upper triangle is evaluated; the result is mirrored into the lower
triangle, so every matrix is exactly symmetric with a zero diagonal.
The energy terms in :mod:`reaxpot.engine.energies` read the returned
:class:`BondOrders` and never recompute or mutate it.
"""


from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from reaxpot.core.atom_system import AtomSystem
from reaxpot.core.parameters import ParameterRepository
from reaxpot.utils.config import EngineConfig, default_config
from reaxpot.utils.exceptions import NumericalError
from reaxpot.utils.log import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class BondOrders:
    """
    Result of one bond-order evaluation.

    Matrices are ``(N, N)``; per-atom arrays are ``(N,)``.

    ``total``, ``sigma``, ``pi`` and ``pi2`` are the corrected bond orders
    (``total == sigma + pi + pi2``). The ``*_uncorrected`` matrices hold the
    pass-1 values after the cutoff subtraction.
    """
    distances: np.ndarray
    total: np.ndarray
    sigma: np.ndarray
    pi: np.ndarray
    pi2: np.ndarray
    total_uncorrected: np.ndarray
    sigma_uncorrected: np.ndarray
    pi_uncorrected: np.ndarray
    pi2_uncorrected: np.ndarray
    deltap: np.ndarray
    deltap_boc: np.ndarray
    delta_i: np.ndarray
    vlpex: np.ndarray
    n_lp: np.ndarray
    deltap_lp: np.ndarray
    total_bond_order: np.ndarray

    @property
    def n_atoms(self) -> int:
        return self.total.shape[0]

    def check_index(self, i: int) -> int:
        i = int(i)
        if not 0 <= i < self.n_atoms:
            raise IndexError(f"atom index {i} out of range for {self.n_atoms} atoms")
        return i


# ---------------- correction factors ------------------------------
def overcoordination_factor(deltap_i, deltap_j, val_i, val_j, pboc1: float, pboc2: float, enabled=True):
    """
    Over-coordination correction ``f1`` for one or more pairs.

    Parameters
    ----------
    deltap_i, deltap_j : float or array
        Uncorrected valence deviations of the two atoms.
    val_i, val_j : float or array
        Nominal valencies.
    pboc1, pboc2 : float
        General over-coordination exponents.
    enabled : bool or bool array, default=True
        The pair's over-coordination flag. Where it is off the factor is
        exactly ``1.0``.

    Returns
    -------
    float or numpy.ndarray
        ``f1``, with the shape of the broadcast inputs.
    """
    scalar = all(np.ndim(x) == 0 for x in (deltap_i, deltap_j, val_i, val_j, enabled))
    dpi, dpj, vi, vj, on = np.broadcast_arrays(
        *(np.atleast_1d(np.asarray(x)) for x in (deltap_i, deltap_j, val_i, val_j, enabled))
    )
    on = on.astype(bool)
    f1 = np.ones(dpi.shape, dtype=float)
    if np.any(on):
        a, b, va, vb = dpi[on], dpj[on], vi[on], vj[on]
        f2 = np.exp(-pboc1 * a) + np.exp(-pboc1 * b)
        f3 = -(1.0 / pboc2) * np.log(0.5 * (np.exp(-pboc2 * a) + np.exp(-pboc2 * b)))
        f1[on] = 0.5 * ((va + f2) / (va + f2 + f3) + (vb + f2) / (vb + f2 + f3))
    return float(f1[0]) if scalar else f1


def one_three_factors(bo_prime, deltap_boc_i, deltap_boc_j, pboc3, pboc4, pboc5, enabled=True):
    """
    One-three corrections ``(f4, f5)`` for one or more pairs.

    ``bo_prime`` is the uncorrected total bond order of the pair; it enters
    squared. Where ``enabled`` is off both factors are exactly ``1.0``.
    """
    inputs = (bo_prime, deltap_boc_i, deltap_boc_j, pboc3, pboc4, pboc5, enabled)
    scalar = all(np.ndim(x) == 0 for x in inputs)
    bo, dbi, dbj, p3, p4, p5, on = np.broadcast_arrays(*(np.atleast_1d(np.asarray(x)) for x in inputs))
    on = on.astype(bool)
    f4 = np.ones(bo.shape, dtype=float)
    f5 = np.ones(bo.shape, dtype=float)
    if np.any(on):
        exp_term = p4[on] * bo[on] ** 2
        f4[on] = 1.0 / (1.0 + np.exp(-(exp_term - dbi[on]) * p3[on] + p5[on]))
        f5[on] = 1.0 / (1.0 + np.exp(-(exp_term - dbj[on]) * p3[on] + p5[on]))
    if scalar:
        return float(f4[0]), float(f5[0])
    return f4, f5


# ---------------- engine -------------------------------------------
def compute_bond_orders(
    system: AtomSystem,
    params: ParameterRepository,
    config: Optional[EngineConfig] = None,
) -> BondOrders:
    """
    Evaluate corrected and uncorrected bond orders for every atom pair.

    Parameters
    ----------
    system : AtomSystem
        Snapshot to evaluate. It is not modified.
    params : ParameterRepository
        Force-field tables. Type pairs without a bonded row contribute zero
        bond order on every branch.
    config : EngineConfig, optional
        Numeric guards; the packaged defaults when omitted.

    Returns
    -------
    BondOrders
        Matrices and per-atom arrays for this snapshot.

    Raises
    ------
    IndexError
        If an atom type is outside the parameter tables.
    DegenerateGeometryError
        If two atoms coincide.
    NumericalError
        If a non-finite value escapes the numeric guards.

    Examples
    --------
    >>> bo = compute_bond_orders(system, params)
    >>> bo.total[0, 1]
    """
    cfg = config or default_config()
    types = system.types
    for t in np.unique(types):
        params.atom(int(t))

    n = system.n_atoms
    dist = system.distance_matrix()
    iu, ju = np.triu_indices(n, 1)
    ti, tj = types[iu], types[ju]
    r = dist[iu, ju]

    # pass 1: uncorrected bond orders
    cutoff = params.general.cutoff
    bonded = params.pair_array("bonded")[ti, tj] > 0.0

    def branch(radius: str, p_a: str, p_b: str) -> np.ndarray:
        atom_r = params.atom_array(radius)
        ro = params.pair_array(radius, default=-1.0)[ti, tj]
        mask = bonded & (atom_r[ti] > 0.0) & (atom_r[tj] > 0.0) & (ro > 0.0)
        out = np.zeros(r.shape, dtype=float)
        if np.any(mask):
            pa = params.pair_array(p_a)[ti, tj][mask]
            pb = params.pair_array(p_b)[ti, tj][mask]
            out[mask] = np.exp(pa * (r[mask] / ro[mask]) ** pb)
        return out

    s_raw = (1.0 + cutoff) * branch("ro_sigma", "pbo1", "pbo2")
    pi_raw = branch("ro_pi", "pbo3", "pbo4")
    pi2_raw = branch("ro_pipi", "pbo5", "pbo6")
    above = (s_raw + pi_raw + pi2_raw) > cutoff
    s_raw = np.where(above, s_raw - cutoff, s_raw)
    bo_raw = s_raw + pi_raw + pi2_raw

    valency = params.atom_array("valency")[types]
    total_uncorrected = _mirror(n, iu, ju, bo_raw)
    sum_raw = total_uncorrected.sum(axis=1)
    deltap = sum_raw - valency
    deltap_boc = sum_raw - params.atom_array("valency_boc")[types]

    # pass 2: corrections
    g = params.general
    f1 = overcoordination_factor(
        deltap[iu], deltap[ju], valency[iu], valency[ju], g.pboc1, g.pboc2,
        enabled=params.pair_array("overcoordination_correction")[ti, tj] > 0.0,
    )
    f4, f5 = one_three_factors(
        bo_raw, deltap_boc[iu], deltap_boc[ju],
        params.pair_array("pboc3")[ti, tj], params.pair_array("pboc4")[ti, tj],
        params.pair_array("pboc5")[ti, tj],
        enabled=params.pair_array("one_three_correction")[ti, tj] > 0.0,
    )
    s = _snap(s_raw * f1 * f4 * f5, cfg.bo_snap)
    pi = _snap(pi_raw * f1 * f1 * f4 * f5, cfg.bo_snap)
    pi2 = _snap(pi2_raw * f1 * f1 * f4 * f5, cfg.bo_snap)

    total = _mirror(n, iu, ju, s + pi + pi2)
    total_bond_order = total.sum(axis=1)

    # lone-pair helpers from the corrected totals
    delta_e = total_bond_order - params.atom_array("valency_e")[types]
    half = np.floor(delta_e / 2.0)
    vlpex = delta_e - 2.0 * half
    n_lp = np.exp(-g.plp1 * (2.0 + vlpex) ** 2) - half
    deltap_lp = params.atom_array("nlp_opt")[types] - n_lp

    result = BondOrders(
        distances=dist,
        total=total,
        sigma=_mirror(n, iu, ju, s),
        pi=_mirror(n, iu, ju, pi),
        pi2=_mirror(n, iu, ju, pi2),
        total_uncorrected=total_uncorrected,
        sigma_uncorrected=_mirror(n, iu, ju, s_raw),
        pi_uncorrected=_mirror(n, iu, ju, pi_raw),
        pi2_uncorrected=_mirror(n, iu, ju, pi2_raw),
        deltap=deltap,
        deltap_boc=deltap_boc,
        delta_i=sum_raw - valency,
        vlpex=vlpex,
        n_lp=n_lp,
        deltap_lp=deltap_lp,
        total_bond_order=total_bond_order,
    )
    _check_finite(result)
    logger.debug(
        "Bond orders: %d atoms, %d bonded pairs, max BO %.4f",
        n, int(np.count_nonzero(s + pi + pi2)), float(total.max()) if n else 0.0,
    )
    return result


def _mirror(n: int, iu: np.ndarray, ju: np.ndarray, values: np.ndarray) -> np.ndarray:
    out = np.zeros((n, n), dtype=float)
    out[iu, ju] = values
    out[ju, iu] = values
    return out


def _snap(values: np.ndarray, threshold: float) -> np.ndarray:
    return np.where(values < threshold, 0.0, values)


def _check_finite(bo: BondOrders) -> None:
    for name, arr in vars(bo).items():
        if not np.all(np.isfinite(arr)):
            raise NumericalError(f"non-finite values in bond-order field {name!r}")


def bond_order_components(bo: BondOrders, i: int, j: int) -> Tuple[float, float, float, float]:
    """``(total, sigma, pi, pi2)`` corrected bond orders for one pair."""
    i, j = bo.check_index(i), bo.check_index(j)
    return float(bo.total[i, j]), float(bo.sigma[i, j]), float(bo.pi[i, j]), float(bo.pi2[i, j])
