"""
Bond and coordination analysis utilities.

This module turns a :class:`~reaxpot.engine.bond_order.BondOrders` result
into tables a renderer or report can consume directly.

Typical use cases include:

- listing bonds above a bond-order threshold with a single/double/triple kind
- classifying atoms as under / well / over coordinated
- attaching a numeric status code and a human-readable label
"""


from __future__ import annotations
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from reaxpot.core.atom_system import AtomSystem
from reaxpot.core.parameters import ParameterRepository
from reaxpot.engine.bond_order import BondOrders

STATUS_LABELS = {-1: "under", 0: "coord", 1: "over"}

BOND_KINDS = {1: "single", 2: "double", 3: "triple"}


def bond_table(
    bond_orders: BondOrders,
    threshold: float = 0.3,
    symbols: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """List atom pairs whose corrected bond order exceeds ``threshold``.

    The multiplicity is the rounded bond order clipped to ``1..3``, the same
    rule a renderer uses to draw one, two or three lines.

    Parameters
    ----------
    bond_orders : BondOrders
        Result of :func:`~reaxpot.engine.bond_order.compute_bond_orders`.
    threshold : float, default=0.3
        Minimum corrected bond order for a pair to count as a bond.
    symbols : sequence of str, optional
        Per-atom symbols; adds ``symbol_i`` and ``symbol_j`` columns.

    Returns
    -------
    pandas.DataFrame
        Columns ``i``, ``j``, ``bo``, ``bo_sigma``, ``bo_pi``, ``bo_pi2``,
        ``multiplicity``, ``kind`` (plus symbols when given), sorted by
        ``(i, j)``.

    Examples
    --------
    >>> df = bond_table(compute_bond_orders(system, params), threshold=0.3)
    """
    n = bond_orders.n_atoms
    if symbols is not None and len(symbols) != n:
        raise ValueError(f"Length mismatch: bond orders({n}) vs symbols({len(symbols)})")

    iu, ju = np.triu_indices(n, 1)
    bo = bond_orders.total[iu, ju]
    keep = bo > threshold
    iu, ju, bo = iu[keep], ju[keep], bo[keep]
    multiplicity = np.clip(np.rint(bo), 1, 3).astype(int)

    out = pd.DataFrame({
        "i": iu.astype(int),
        "j": ju.astype(int),
        "bo": bo.astype(float),
        "bo_sigma": bond_orders.sigma[iu, ju].astype(float),
        "bo_pi": bond_orders.pi[iu, ju].astype(float),
        "bo_pi2": bond_orders.pi2[iu, ju].astype(float),
        "multiplicity": multiplicity,
        "kind": [BOND_KINDS[int(m)] for m in multiplicity],
    })
    if symbols is not None:
        sym = np.asarray(symbols, dtype=object)
        out.insert(2, "symbol_i", sym[iu].astype(str))
        out.insert(3, "symbol_j", sym[ju].astype(str))
    return out


def coordination_table(
    system: AtomSystem,
    params: ParameterRepository,
    bond_orders: BondOrders,
    threshold: float = 0.3,
) -> pd.DataFrame:
    """Classify every atom as under-, well-, or over-coordinated.

    Classification is based on ``delta = total_bo - valency`` and a
    tolerance threshold:

    - ``status = -1``: under-coordinated (``delta < -threshold``)
    - ``status =  0``: well-coordinated (``|delta| <= threshold``)
    - ``status = +1``: over-coordinated (``delta > threshold``)

    Returns
    -------
    pandas.DataFrame
        Columns ``atom``, ``symbol``, ``total_bo``, ``valency``, ``delta``,
        ``status``, ``label``.
    """
    if threshold < 0 or not np.isfinite(threshold):
        raise ValueError(f"threshold must be a finite non-negative number, got {threshold}")
    if bond_orders.n_atoms != system.n_atoms:
        raise ValueError(
            f"Length mismatch: system({system.n_atoms}) vs bond orders({bond_orders.n_atoms})"
        )

    total_bo = bond_orders.total_bond_order.astype(float)
    valency = params.atom_array("valency")[system.types]
    delta = total_bo - valency
    status = np.zeros(delta.shape, dtype=int)
    status[delta < -threshold] = -1
    status[delta > threshold] = +1

    symbols = system.symbols or [params.atom(t).symbol for t in system.types]
    out = pd.DataFrame({
        "atom": np.arange(system.n_atoms, dtype=int),
        "symbol": [str(s) for s in symbols],
        "total_bo": total_bo,
        "valency": valency,
        "delta": delta,
        "status": status,
    })
    out["label"] = status_label(out["status"])
    return out


def status_label(series: Sequence[int | float]) -> list[Optional[str]]:
    """Convert numeric coordination status codes into labels.

    ``-1`` → ``"under"``, ``0`` → ``"coord"``, ``+1`` → ``"over"``,
    ``NaN`` → ``None``.

    Examples
    --------
    >>> status_label([-1, 0, 1])
    ['under', 'coord', 'over']
    """
    return [None if pd.isna(v) else STATUS_LABELS[int(np.sign(v))] for v in series]
