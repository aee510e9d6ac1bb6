"""
ReaxFF potential-energy terms.

Every function here is pure: it takes the snapshot, the parameter tables
and a finished :class:`~reaxpot.engine.bond_order.BondOrders` explicitly,
and returns one energy in kcal/mol. Absent pair or triple rows contribute
zero; out-of-range atom indices raise ``IndexError``; a non-finite energy
raises :class:`~reaxpot.utils.exceptions.NumericalError`.

Logistic gates ``1 / (1 + exp(x))`` are evaluated with
:func:`scipy.special.expit` so large arguments saturate instead of
overflowing.
"""


from __future__ import annotations

import math
from typing import NamedTuple, Optional, Tuple

import numpy as np
from scipy.special import expit

from reaxpot.core.atom_system import AtomSystem
from reaxpot.core.parameters import ParameterRepository
from reaxpot.engine.bond_order import BondOrders
from reaxpot.utils.config import EngineConfig, default_config
from reaxpot.utils.constants import const
from reaxpot.utils.exceptions import NumericalError


class Taper(NamedTuple):
    tap: float
    dtap: float


def taper(r: float, rcut: float) -> Taper:
    """
    Seventh-order switching polynomial and its derivative.

    ``tap`` is 1 at ``r = 0`` and falls to 0 with zero slope at ``rcut``;
    distances at or beyond ``rcut`` return ``Taper(0.0, 0.0)``.

    Examples
    --------
    >>> taper(0.0, 10.0).tap
    1.0
    """
    if rcut <= 0.0:
        raise ValueError(f"taper cutoff must be positive, got {rcut}")
    if r >= rcut:
        return Taper(0.0, 0.0)
    t7 = 20.0 / rcut ** 7
    t6 = -70.0 / rcut ** 6
    t5 = 84.0 / rcut ** 5
    t4 = -35.0 / rcut ** 4
    tap = ((((t7 * r + t6) * r + t5) * r + t4) * r ** 4) + 1.0
    dtap = (((7.0 * t7 * r + 6.0 * t6) * r + 5.0 * t5) * r + 4.0 * t4) * r ** 3
    return Taper(tap, dtap)


# ---------------- two-body terms -----------------------------------
def van_der_waals(
    system: AtomSystem, params: ParameterRepository, bond_orders: BondOrders, i: int, j: int,
) -> float:
    """Shielded Morse van der Waals energy of pair ``(i, j)``, tapered at ``swb``."""
    r, pair = _pair(system, params, bond_orders, i, j)
    if pair is None or pair.rvdw <= 0.0 or pair.gamma_w <= 0.0 or pair.epsilon == 0.0:
        return 0.0
    tap = taper(r, params.general.swb).tap
    if tap == 0.0:
        return 0.0
    p = params.general.pvdw1
    fn13 = (r ** p + pair.gamma_w ** -p) ** (1.0 / p)
    x = 1.0 - fn13 / pair.rvdw
    energy = tap * pair.epsilon * (np.exp(pair.alpha * x) - 2.0 * np.exp(0.5 * pair.alpha * x))
    return _finite(energy, "van_der_waals", i, j)


def coulomb(
    system: AtomSystem, params: ParameterRepository, bond_orders: BondOrders, i: int, j: int,
    config: Optional[EngineConfig] = None,
) -> float:
    """
    Shielded, tapered Coulomb energy of pair ``(i, j)`` from the system's charges.

    A type pair without a parameter row has no shielding constant and
    contributes nothing.
    """
    cfg = config or default_config()
    r, pair = _pair(system, params, bond_orders, i, j)
    qq = float(system.charges[i] * system.charges[j])
    if pair is None or qq == 0.0:
        return 0.0
    tap = taper(r, params.general.swb).tap
    dr3 = (r ** 3 + pair.gamma) ** (1.0 / 3.0)
    return _finite(cfg.coulomb_constant * qq * tap / dr3, "coulomb", i, j)


def bond_energy(
    system: AtomSystem, params: ParameterRepository, bond_orders: BondOrders, i: int, j: int,
) -> float:
    """Bond energy of pair ``(i, j)`` from its corrected sigma, pi and double-pi orders."""
    _, pair = _pair(system, params, bond_orders, i, j)
    if pair is None or not pair.bonded:
        return 0.0
    bo_s = float(bond_orders.sigma[i, j])
    e_sigma = 0.0
    if bo_s > 0.0:
        e_sigma = -pair.de_sigma * bo_s * np.exp(pair.pbe1 * (1.0 - bo_s ** pair.pbe2))
    energy = e_sigma - pair.de_pi * float(bond_orders.pi[i, j]) - pair.de_pipi * float(bond_orders.pi2[i, j])
    return _finite(energy, "bond_energy", i, j)


# ---------------- one-body terms -----------------------------------
def lone_pair_energy(
    system: AtomSystem, params: ParameterRepository, bond_orders: BondOrders, i: int,
) -> float:
    """
    Lone-pair energy of atom ``i``.

    Uses the ``deltap_lp`` helper computed by the bond-order pass; the
    logistic sharpness is fixed at ``const["lone_pair_sharpness"]`` (75).
    """
    i = _atom(system, bond_orders, i)
    atom = params.atom(system.types[i])
    dlp = float(bond_orders.deltap_lp[i])
    energy = atom.plp2 * dlp * float(expit(const["lone_pair_sharpness"] * dlp))
    return _finite(energy, "lone_pair_energy", i)


def coordination_terms(
    system: AtomSystem, params: ParameterRepository, bond_orders: BondOrders, i: int,
    config: Optional[EngineConfig] = None,
) -> Tuple[float, float]:
    """
    Neighbour sum ``S`` and lone-pair corrected deviation of atom ``i``.

    Shared by :func:`over_coordination` and :func:`under_coordination`.
    """
    cfg = config or default_config()
    i = _atom(system, bond_orders, i)
    atom = params.atom(system.types[i])
    dfvl = 0.0 if atom.mass > cfg.dfvl_mass_threshold else 1.0
    dlp = float(bond_orders.deltap_lp[i])
    pi_sum = bond_orders.pi[i] + bond_orders.pi2[i]
    s = float(np.sum((bond_orders.delta_i - dfvl * dlp) * pi_sum))
    g = params.general
    dlp_corr = float(bond_orders.delta_i[i]) - dfvl * dlp / (1.0 + g.povun3 * np.exp(g.povun4 * s))
    return s, dlp_corr


def over_coordination(
    system: AtomSystem, params: ParameterRepository, bond_orders: BondOrders, i: int,
    config: Optional[EngineConfig] = None,
) -> float:
    """Over-coordination energy of atom ``i``."""
    cfg = config or default_config()
    _, dlp_corr = coordination_terms(system, params, bond_orders, i, cfg)
    ti = int(system.types[i])
    atom = params.atom(ti)

    tj = system.types
    weights = params.pair_array("povun1")[ti, tj] * params.pair_array("de_sigma")[ti, tj]
    sum_ovun1 = float(np.sum(weights * bond_orders.total[i]))
    energy = (
        sum_ovun1 * dlp_corr / (dlp_corr + atom.valency + cfg.overcoord_guard)
        * float(expit(-atom.povun2 * dlp_corr))
    )
    return _finite(energy, "over_coordination", i)


def under_coordination(
    system: AtomSystem, params: ParameterRepository, bond_orders: BondOrders, i: int,
    config: Optional[EngineConfig] = None,
) -> float:
    """Under-coordination energy of atom ``i``."""
    cfg = config or default_config()
    s, dlp_corr = coordination_terms(system, params, bond_orders, i, cfg)
    atom = params.atom(system.types[i])
    g = params.general
    energy = (
        -atom.povun5 * (1.0 - np.exp(g.povun6 * dlp_corr))
        * float(expit(atom.povun2 * dlp_corr))
        / (1.0 + g.povun7 * np.exp(g.povun8 * s))
    )
    return _finite(energy, "under_coordination", i)


# ---------------- three-body terms ---------------------------------
def penalty_energy(
    system: AtomSystem, params: ParameterRepository, bond_orders: BondOrders, i: int, j: int, k: int,
    config: Optional[EngineConfig] = None,
) -> float:
    """
    Double-bond penalty of the valence triple ``i-j-k`` (``j`` central).

    Zero when the triple has no parameter row.
    """
    cfg = config or default_config()
    triple, boa_ij, boa_jk = _triple(system, params, bond_orders, i, j, k, cfg)
    if triple is None:
        return 0.0
    g = params.general
    dboc = float(bond_orders.deltap_boc[j])
    f9 = (2.0 + np.exp(-g.ppen3 * dboc)) / (1.0 + np.exp(-g.ppen3 * dboc) + np.exp(g.ppen4 * dboc))
    energy = (
        triple.ppen1 * f9
        * np.exp(-g.ppen2 * (boa_ij - 2.0) ** 2)
        * np.exp(-g.ppen2 * (boa_jk - 2.0) ** 2)
    )
    return _finite(energy, "penalty_energy", i, j, k)


def coalition_energy(
    system: AtomSystem, params: ParameterRepository, bond_orders: BondOrders, i: int, j: int, k: int,
    config: Optional[EngineConfig] = None,
) -> float:
    """
    Three-body conjugation (coalition) energy of ``i-j-k`` (``j`` central).

    Zero when the triple has no parameter row.
    """
    cfg = config or default_config()
    triple, boa_ij, boa_jk = _triple(system, params, bond_orders, i, j, k, cfg)
    if triple is None:
        return 0.0
    g = params.general
    tbo = bond_orders.total_bond_order
    energy = (
        triple.pcoa1 * float(expit(-g.pcoa2 * float(bond_orders.deltap_boc[j])))
        * np.exp(-g.pcoa3 * (float(tbo[i]) - boa_ij) ** 2)
        * np.exp(-g.pcoa3 * (float(tbo[k]) - boa_jk) ** 2)
        * np.exp(-g.pcoa4 * (boa_ij - 1.5) ** 2)
        * np.exp(-g.pcoa4 * (boa_jk - 1.5) ** 2)
    )
    return _finite(energy, "coalition_energy", i, j, k)


# ---------------- helpers ------------------------------------------
def _atom(system: AtomSystem, bond_orders: BondOrders, i: int) -> int:
    i = system.check_index(i)
    return bond_orders.check_index(i)


def _pair(system, params, bond_orders, i, j):
    i, j = _atom(system, bond_orders, i), _atom(system, bond_orders, j)
    if i == j:
        raise ValueError(f"pair terms need two distinct atoms, got ({i}, {j})")
    r = float(bond_orders.distances[i, j])
    return r, params.pair(system.types[i], system.types[j])


def _triple(system, params, bond_orders, i, j, k, cfg: EngineConfig):
    i, j, k = (_atom(system, bond_orders, a) for a in (i, j, k))
    triple = params.triple(system.types[i], system.types[j], system.types[k])
    boa_ij = float(bond_orders.total[i, j]) - cfg.thb_cutoff
    boa_jk = float(bond_orders.total[j, k]) - cfg.thb_cutoff
    return triple, boa_ij, boa_jk


def _finite(value: float, term: str, *atoms: int) -> float:
    if not math.isfinite(value):
        raise NumericalError(f"{term}{tuple(atoms)} is not finite ({value})")
    return float(value)
