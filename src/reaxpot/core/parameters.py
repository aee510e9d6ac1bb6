"""
Force-field parameter tables for the ReaxPot engines.

The repository keeps four kinds of coefficients:

- ``GeneralParameters``: global scalars shared by every interaction
- ``AtomType``: one row per atom type (the ffield "atom" section)
- ``PairParameters``: one row per unordered type pair, keyed by the sorted
  pair of type indices
- ``TripleParameters``: one row per valence triple, keyed by
  ``(end, centre, end)`` with the two end types sorted

Absent pair or triple rows are not errors: the engines treat them as
"no contribution". Type indices are 0-based throughout; out-of-range
indices raise ``IndexError``.
"""


from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from reaxpot.io.handlers.ffield_handler import FFieldHandler
from reaxpot.utils.constants import const

PairKey = Tuple[int, int]
TripleKey = Tuple[int, int, int]


@dataclass(frozen=True)
class GeneralParameters:
    """Global ReaxFF scalars (ffield "general" section)."""
    pboc1: float = 50.0
    pboc2: float = 9.5469
    pcoa2: float = 26.5405
    pcoa3: float = 2.6962
    pcoa4: float = 2.1365
    povun3: float = 50.0
    povun4: float = 0.6991
    povun6: float = 1.0588
    povun7: float = 12.1176
    povun8: float = 13.3056
    plp1: float = 6.0891
    ppen2: float = 6.9290
    ppen3: float = 0.3989
    ppen4: float = 3.9954
    pvdw1: float = 1.5591
    cutoff: float = 0.001
    swa: float = 0.0
    swb: float = 10.0
    extras: Dict[str, float] = field(default_factory=dict, compare=False)

    _FFIELD_NAMES = {
        "pboc1": "p_boc1", "pboc2": "p_boc2", "pcoa2": "p_coa2", "pcoa3": "p_coa3",
        "pcoa4": "p_coa4", "povun3": "p_ovun3", "povun4": "p_ovun4", "povun6": "p_ovun6",
        "povun7": "p_ovun7", "povun8": "p_ovun8", "plp1": "p_lp1", "ppen2": "p_pen2",
        "ppen3": "p_pen3", "ppen4": "p_pen4", "pvdw1": "p_vdw1", "swa": "swa", "swb": "swb",
    }

    @classmethod
    def from_table(cls, general: pd.DataFrame) -> "GeneralParameters":
        """Build from the ``general`` section table of :class:`FFieldHandler`."""
        values = general["value"].astype(float).to_dict()
        kwargs = {attr: values[name] for attr, name in cls._FFIELD_NAMES.items() if name in values}
        if "bo_cutoff" in values:
            kwargs["cutoff"] = values["bo_cutoff"] * const["ffield_cutoff_scale"]
        used = set(cls._FFIELD_NAMES.values()) | {"bo_cutoff"}
        extras = {k: v for k, v in values.items() if k not in used and not k.startswith("nu_")}
        return cls(**kwargs, extras=extras)


@dataclass(frozen=True)
class AtomType:
    """Per-type coefficients (ffield "atom" section)."""
    symbol: str
    mass: float
    valency: float
    valency_e: float
    valency_boc: float
    valency_val: float
    ro_sigma: float
    ro_pi: float = -1.0
    ro_pipi: float = -1.0
    rvdw: float = 0.0
    epsilon: float = 0.0
    alpha: float = 0.0
    gamma_w: float = 0.0
    gamma_eem: float = 0.0
    chi_eem: float = 0.0
    eta_eem: float = 0.0
    nlp_opt: float = 0.0
    plp2: float = 0.0
    pboc3: float = 0.0
    pboc4: float = 0.0
    pboc5: float = 0.0
    povun2: float = 0.0
    povun5: float = 0.0


@dataclass(frozen=True)
class PairParameters:
    """
    Per-pair coefficients.

    ``bonded`` is False for pairs without an ffield bond row: such pairs
    still carry mixed van der Waals and Coulomb terms but never form a bond.
    """
    ro_sigma: float = -1.0
    ro_pi: float = -1.0
    ro_pipi: float = -1.0
    pbo1: float = 0.0
    pbo2: float = 0.0
    pbo3: float = 0.0
    pbo4: float = 0.0
    pbo5: float = 0.0
    pbo6: float = 0.0
    de_sigma: float = 0.0
    de_pi: float = 0.0
    de_pipi: float = 0.0
    pbe1: float = 0.0
    pbe2: float = 0.0
    povun1: float = 0.0
    overcoordination_correction: bool = False
    one_three_correction: bool = False
    pboc3: float = 0.0
    pboc4: float = 0.0
    pboc5: float = 0.0
    rvdw: float = 0.0
    epsilon: float = 0.0
    alpha: float = 0.0
    gamma_w: float = 0.0
    gamma: float = 0.0
    bonded: bool = True


@dataclass(frozen=True)
class TripleParameters:
    """Valence-triple coefficients (ffield "angle" section)."""
    theta0: float = 0.0
    pval1: float = 0.0
    pval2: float = 0.0
    pcoa1: float = 0.0
    pval7: float = 0.0
    ppen1: float = 0.0
    pval4: float = 0.0


def pair_key(ti: int, tj: int) -> PairKey:
    return (ti, tj) if ti <= tj else (tj, ti)


def triple_key(ti: int, tj: int, tk: int) -> TripleKey:
    return (ti, tj, tk) if ti <= tk else (tk, tj, ti)


def mix_pair(a: AtomType, b: AtomType, **bond_terms) -> PairParameters:
    """
    Combine two atom types into pair coefficients.

    Covalent radii use the arithmetic mean; one-three and van der Waals
    coefficients use geometric means; ``rvdw`` is twice the geometric mean
    and the Coulomb shielding is ``(gamma_i * gamma_j) ** -1.5``.
    ``bond_terms`` (``pbo1``, ``de_sigma``, flags, ...) are passed through.
    """
    def gmean(x: float, y: float) -> float:
        return math.sqrt(x * y) if x * y > 0.0 else 0.0

    gamma_prod = a.gamma_eem * b.gamma_eem
    return PairParameters(
        ro_sigma=0.5 * (a.ro_sigma + b.ro_sigma),
        ro_pi=0.5 * (a.ro_pi + b.ro_pi),
        ro_pipi=0.5 * (a.ro_pipi + b.ro_pipi),
        pboc3=gmean(a.pboc3, b.pboc3),
        pboc4=gmean(a.pboc4, b.pboc4),
        pboc5=gmean(a.pboc5, b.pboc5),
        rvdw=2.0 * gmean(a.rvdw, b.rvdw),
        epsilon=gmean(a.epsilon, b.epsilon),
        alpha=gmean(a.alpha, b.alpha),
        gamma_w=gmean(a.gamma_w, b.gamma_w),
        gamma=gamma_prod ** -1.5 if gamma_prod > 0.0 else 0.0,
        **bond_terms,
    )


@dataclass
class ParameterRepository:
    """
    Type-indexed parameter tables consumed by the bond-order and energy engines.

    Examples
    --------
    >>> from reaxpot.io.handlers.ffield_handler import FFieldHandler
    >>> params = ParameterRepository.from_ffield(FFieldHandler("ffield"))
    >>> params.type_index("O")
    2
    """
    general: GeneralParameters
    atom_types: List[AtomType]
    pairs: Dict[PairKey, PairParameters] = field(default_factory=dict)
    triples: Dict[TripleKey, TripleParameters] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.pairs = {pair_key(*k): v for k, v in self.pairs.items()}
        self.triples = {triple_key(*k): v for k, v in self.triples.items()}
        for key in list(self.pairs) + list(self.triples):
            for t in key:
                self._check_type(t)

    @property
    def n_types(self) -> int:
        return len(self.atom_types)

    def _check_type(self, t: int) -> int:
        t = int(t)
        if not 0 <= t < len(self.atom_types):
            raise IndexError(f"atom type {t} out of range for {len(self.atom_types)} types")
        return t

    def atom(self, t: int) -> AtomType:
        return self.atom_types[self._check_type(t)]

    def pair(self, ti: int, tj: int) -> Optional[PairParameters]:
        return self.pairs.get(pair_key(self._check_type(ti), self._check_type(tj)))

    def triple(self, ti: int, tj: int, tk: int) -> Optional[TripleParameters]:
        key = triple_key(self._check_type(ti), self._check_type(tj), self._check_type(tk))
        return self.triples.get(key)

    def type_index(self, symbol: str) -> int:
        for idx, at in enumerate(self.atom_types):
            if at.symbol == symbol:
                return idx
        raise KeyError(f"Unknown atom symbol {symbol!r}. Available: {[a.symbol for a in self.atom_types]}")

    def atom_array(self, name: str) -> np.ndarray:
        """``(T,)`` array of one :class:`AtomType` attribute."""
        return np.array([float(getattr(a, name)) for a in self.atom_types], dtype=float)

    def pair_array(self, name: str, default: float = 0.0) -> np.ndarray:
        """
        ``(T, T)`` symmetric array of one :class:`PairParameters` attribute.

        Pairs without a row get ``default``; use ``pair_array("bonded")`` to
        obtain the mask of pairs that may form bonds.
        """
        n = self.n_types
        out = np.full((n, n), float(default), dtype=float)
        for (ti, tj), row in self.pairs.items():
            out[ti, tj] = out[tj, ti] = float(getattr(row, name))
        return out

    # ---------------- construction -------------------------------
    @classmethod
    def from_ffield(cls, handler: FFieldHandler) -> "ParameterRepository":
        """
        Build the repository from a parsed ReaxFF ``ffield``.

        Every type pair receives mixed non-bonded coefficients; pairs listed
        in the bond section additionally carry the bond-order and bond-energy
        coefficients and are marked ``bonded``. Off-diagonal rows override
        the mixed ``epsilon``, ``rvdw``, ``alpha`` and covalent radii where
        their value is positive.
        """
        if not isinstance(handler, FFieldHandler):
            raise TypeError(f"from_ffield requires an FFieldHandler, got {type(handler)!r}")

        general = GeneralParameters.from_table(handler.section_df(FFieldHandler.SECTION_GENERAL))
        atom_types = [_atom_type_from_row(row) for _, row in handler.section_df(FFieldHandler.SECTION_ATOM).iterrows()]
        n = len(atom_types)

        bond_rows = {}
        for _, row in handler.section_df(FFieldHandler.SECTION_BOND).iterrows():
            key = _ffield_key(n, row["i"], row["j"])
            if key is not None:
                bond_rows[key] = _bond_terms_from_row(row)

        off_rows = {}
        for _, row in handler.section_df(FFieldHandler.SECTION_OFF_DIAGONAL).iterrows():
            key = _ffield_key(n, row["i"], row["j"])
            if key is not None:
                off_rows[key] = row

        pairs: Dict[PairKey, PairParameters] = {}
        for ti in range(n):
            for tj in range(ti, n):
                terms = bond_rows.get((ti, tj), {"bonded": False})
                pair = mix_pair(atom_types[ti], atom_types[tj], **terms)
                if (ti, tj) in off_rows:
                    pair = _apply_off_diagonal(pair, off_rows[(ti, tj)])
                pairs[(ti, tj)] = pair

        triples: Dict[TripleKey, TripleParameters] = {}
        for _, row in handler.section_df(FFieldHandler.SECTION_ANGLE).iterrows():
            idx = [int(row[c]) - 1 for c in ("i", "j", "k")]
            if min(idx) < 0 or max(idx) >= n:
                continue
            triples[triple_key(*idx)] = TripleParameters(
                theta0=float(row["theta0"]), pval1=float(row["p_val1"]), pval2=float(row["p_val2"]),
                pcoa1=float(row["p_coa1"]), pval7=float(row["p_val7"]), ppen1=float(row["p_pen1"]),
                pval4=float(row["p_val4"]),
            )

        return cls(general=general, atom_types=atom_types, pairs=pairs, triples=triples)


def _ffield_key(n: int, i, j) -> Optional[PairKey]:
    """ffield indices are 1-based; rows pointing outside the atom table are dropped."""
    ti, tj = int(i) - 1, int(j) - 1
    if min(ti, tj) < 0 or max(ti, tj) >= n:
        return None
    return pair_key(ti, tj)


def _atom_type_from_row(row: pd.Series) -> AtomType:
    g = lambda name: float(row[name])  # noqa: E731
    return AtomType(
        symbol=str(row["symbol"]),
        mass=g("mass"),
        valency=g("valency"),
        valency_e=g("valency_e"),
        valency_boc=g("valency_boc"),
        valency_val=g("valency_val"),
        ro_sigma=g("r_sigma"),
        ro_pi=g("r_pi"),
        ro_pipi=g("r_pipi"),
        rvdw=g("r_vdw"),
        epsilon=g("epsilon"),
        alpha=g("alpha"),
        gamma_w=g("gamma_w"),
        gamma_eem=g("gamma_eem"),
        chi_eem=g("chi_eem"),
        eta_eem=g("eta_eem"),
        nlp_opt=0.5 * (g("valency_e") - g("valency")),
        plp2=g("p_lp2"),
        pboc3=g("p_boc3"),
        pboc4=g("p_boc4"),
        pboc5=g("p_boc5"),
        povun2=g("p_ovun2"),
        povun5=g("p_ovun5"),
    )


def _bond_terms_from_row(row: pd.Series) -> Dict[str, float | bool]:
    flag = const["correction_flag_threshold"]
    terms: Dict[str, float | bool] = {
        attr: float(row[name]) for attr, name in (
            ("pbo1", "p_bo1"), ("pbo2", "p_bo2"), ("pbo3", "p_bo3"), ("pbo4", "p_bo4"),
            ("pbo5", "p_bo5"), ("pbo6", "p_bo6"), ("de_sigma", "de_sigma"), ("de_pi", "de_pi"),
            ("de_pipi", "de_pipi"), ("pbe1", "p_be1"), ("pbe2", "p_be2"), ("povun1", "p_ovun1"),
        )
    }
    terms["overcoordination_correction"] = float(row["ovc"]) >= flag
    terms["one_three_correction"] = float(row["v13cor"]) >= flag
    terms["bonded"] = True
    return terms


def _apply_off_diagonal(pair: PairParameters, row: pd.Series) -> PairParameters:
    updates = {}
    for attr, name, scale in (
        ("epsilon", "epsilon", 1.0), ("rvdw", "r_vdw", 2.0), ("alpha", "alpha", 1.0),
        ("ro_sigma", "r_sigma", 1.0), ("ro_pi", "r_pi", 1.0), ("ro_pipi", "r_pipi", 1.0),
    ):
        val = float(row[name])
        if val > 0.0:
            updates[attr] = scale * val
    return replace(pair, **updates)
