"""
Full potential-energy evaluation for one snapshot.

:func:`evaluate` runs the bond-order pass once and then sums every energy
term of :mod:`reaxpot.engine.energies` over atom pairs, single atoms and
valence triples. The result is an :class:`EnergyReport` holding the named
scalars and one row per individual interaction.
"""


from __future__ import annotations

from dataclasses import dataclass, field
from itertools import combinations
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from reaxpot.core.atom_system import AtomSystem
from reaxpot.core.parameters import ParameterRepository
from reaxpot.engine import energies
from reaxpot.engine.bond_order import BondOrders, compute_bond_orders
from reaxpot.utils.config import EngineConfig, default_config
from reaxpot.utils.log import get_logger

logger = get_logger(__name__)

ENERGY_TERMS: List[str] = [
    "vdw", "coulomb", "bond", "lone_pair",
    "over_coordination", "under_coordination", "penalty", "coalition",
]

TERM_COLUMNS = ["term", "i", "j", "k", "energy"]


@dataclass
class EnergyReport:
    """
    Named potential-energy scalars (kcal/mol) for one snapshot.

    ``terms`` lists every non-zero interaction with columns
    ``term, i, j, k, energy``; ``j`` and ``k`` are -1 where unused.
    """
    vdw: float = 0.0
    coulomb: float = 0.0
    bond: float = 0.0
    lone_pair: float = 0.0
    over_coordination: float = 0.0
    under_coordination: float = 0.0
    penalty: float = 0.0
    coalition: float = 0.0
    terms: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=TERM_COLUMNS))
    bond_orders: Optional[BondOrders] = None

    @property
    def total(self) -> float:
        return float(sum(getattr(self, name) for name in ENERGY_TERMS))

    def as_dict(self) -> Dict[str, float]:
        out = {name: float(getattr(self, name)) for name in ENERGY_TERMS}
        out["total"] = self.total
        return out

    def summary(self) -> pd.DataFrame:
        """Two-column table ``term, energy`` including the total."""
        return pd.DataFrame(list(self.as_dict().items()), columns=["term", "energy"])


def evaluate(
    system: AtomSystem,
    params: ParameterRepository,
    config: Optional[EngineConfig] = None,
) -> EnergyReport:
    """
    Compute bond orders and every energy term for ``system``.

    Parameters
    ----------
    system : AtomSystem
        Snapshot to evaluate; charges feed the Coulomb term.
    params : ParameterRepository
        Force-field tables.
    config : EngineConfig, optional
        Numeric guards; the packaged defaults when omitted.

    Returns
    -------
    EnergyReport
        Named totals plus the per-interaction table.

    Examples
    --------
    >>> report = evaluate(system, params)
    >>> report.as_dict()["bond"]
    """
    cfg = config or default_config()
    bo = compute_bond_orders(system, params, cfg)
    n = system.n_atoms
    rows: List[tuple] = []
    sums = dict.fromkeys(ENERGY_TERMS, 0.0)

    def add(term: str, value: float, i: int, j: int = -1, k: int = -1) -> None:
        sums[term] += value
        if value != 0.0:
            rows.append((term, i, j, k, value))

    for i, j in combinations(range(n), 2):
        add("vdw", energies.van_der_waals(system, params, bo, i, j), i, j)
        add("coulomb", energies.coulomb(system, params, bo, i, j, cfg), i, j)
        if bo.total[i, j] > 0.0:
            add("bond", energies.bond_energy(system, params, bo, i, j), i, j)

    for i in range(n):
        add("lone_pair", energies.lone_pair_energy(system, params, bo, i), i)
        add("over_coordination", energies.over_coordination(system, params, bo, i, cfg), i)
        add("under_coordination", energies.under_coordination(system, params, bo, i, cfg), i)

    for j in range(n):
        neighbours = np.flatnonzero(bo.total[j] > cfg.thb_cutoff)
        for i, k in combinations(neighbours.tolist(), 2):
            add("penalty", energies.penalty_energy(system, params, bo, i, j, k, cfg), i, j, k)
            add("coalition", energies.coalition_energy(system, params, bo, i, j, k, cfg), i, j, k)

    terms = pd.DataFrame.from_records(rows, columns=TERM_COLUMNS)
    report = EnergyReport(**sums, terms=terms, bond_orders=bo)
    logger.debug("Energy terms: %s", ", ".join(f"{k}={v:.6g}" for k, v in report.as_dict().items()))
    return report
