"""
ReaxFF force-field parameter (ffield) handler.

This module reads the classic ReaxFF ``ffield`` text format into one pandas
DataFrame per section. The sections are positional: a description line,
then general, atom, bond, off-diagonal, angle, torsion and hydrogen-bond
blocks, each opened by a line starting with its entry count.

Only the sections the energy engines consume are tabulated; torsion and
hydrogen-bond blocks are counted and skipped.
"""


from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

import pandas as pd

from reaxpot.io.base_handler import BaseHandler
from reaxpot.utils.exceptions import ParseError
from reaxpot.utils.log import get_logger

logger = get_logger(__name__)


class FFieldHandler(BaseHandler):
    """
    Parser for ReaxFF force-field parameter files (``ffield``).

    Parsed Data
    -----------
    Summary table
        ``dataframe()`` is intentionally empty; all data lives in the
        section tables.

    Section tables
        Accessible via ``sections`` or ``section_df(name)``:

        - ``general``: indexed by parameter name, column ``value``
        - ``atom``: indexed by 1-based type number, ``symbol`` + 32 columns
        - ``bond``: ``i``, ``j`` + 16 columns
        - ``off_diagonal``: ``i``, ``j`` + 6 columns
        - ``angle``: ``i``, ``j``, ``k`` + 7 columns

    Metadata
        ``description`` and the entry count of every section
        (``n_general``, ``n_atoms``, ``n_bonds``, ``n_off_diagonal``,
        ``n_angles``, ``n_torsions``, ``n_hbonds``).
    """

    SECTION_GENERAL = "general"
    SECTION_ATOM = "atom"
    SECTION_BOND = "bond"
    SECTION_OFF_DIAGONAL = "off_diagonal"
    SECTION_ANGLE = "angle"

    # 1-based ffield line numbers in the comments
    GENERAL_NAMES: List[str] = [
        "p_boc1", "p_boc2", "p_coa2", "p_trip4", "p_trip3",          # 1-5
        "k_c2", "p_ovun6", "p_trip2", "p_ovun7", "p_ovun8",          # 6-10
        "p_trip1", "swa", "swb", "nu_14", "p_val7",                  # 11-15
        "p_lp1", "p_val9", "p_val10", "nu_19", "p_pen2",             # 16-20
        "p_pen3", "p_pen4", "nu_23", "p_tor2", "p_tor3",             # 21-25
        "p_tor4", "nu_27", "p_cot2", "p_vdw1", "bo_cutoff",          # 26-30
        "p_coa4", "p_ovun4", "p_ovun3", "p_val8", "nu_35",           # 31-35
        "nu_36", "nu_37", "nu_38", "p_coa3",                         # 36-39
    ]

    ATOM_NAMES: List[str] = [
        "r_sigma", "valency", "mass", "r_vdw", "epsilon", "gamma_eem", "r_pi", "valency_e",
        "alpha", "gamma_w", "valency_boc", "p_ovun5", "nu_1", "chi_eem", "eta_eem", "p_hbond",
        "r_pipi", "p_lp2", "heat_increment", "p_boc4", "p_boc3", "p_boc5", "nu_2", "nu_3",
        "p_ovun2", "p_val3", "nu_4", "valency_val", "p_val5", "r_core2", "e_core2", "a_core2",
    ]

    BOND_NAMES: List[str] = [
        "de_sigma", "de_pi", "de_pipi", "p_be1", "p_bo5", "v13cor", "p_bo6", "p_ovun1",
        "p_be2", "p_bo3", "p_bo4", "nu_1", "p_bo1", "p_bo2", "ovc", "nu_2",
    ]

    OFF_DIAGONAL_NAMES: List[str] = ["epsilon", "r_vdw", "alpha", "r_sigma", "r_pi", "r_pipi"]

    ANGLE_NAMES: List[str] = ["theta0", "p_val1", "p_val2", "p_coa1", "p_val7", "p_pen1", "p_val4"]

    def __init__(self, file_path: str | Path = "ffield") -> None:
        super().__init__(file_path)
        self._sections: Dict[str, pd.DataFrame] = {}

    @property
    def sections(self) -> Dict[str, pd.DataFrame]:
        if not self._parsed:
            self.parse()
        return self._sections

    def section_df(self, name: str) -> pd.DataFrame:
        if not self._parsed:
            self.parse()
        if name not in self._sections:
            raise KeyError(f"Section {name!r} not found in {self.path}. Available: {sorted(self._sections)}")
        return self._sections[name]

    def atom_symbols(self) -> List[str]:
        """Atom symbols in type order (type index 0 is the first atom entry)."""
        return [str(s) for s in self.section_df(self.SECTION_ATOM)["symbol"].tolist()]

    # ---------------- core parsing -------------------------------
    def _parse(self) -> Tuple[pd.DataFrame, Dict[str, Any]]:
        lines = [ln.rstrip("\n") for ln in self.path.read_text().splitlines()]
        if not lines:
            raise ParseError(f"{self.path} is empty")

        meta: Dict[str, Any] = {"description": lines[0].strip()}
        cursor = _Cursor(lines, 1, self.path)

        n_general = cursor.count()
        general, cursor.pos = self._parse_general(lines, cursor.pos, n_general)
        meta["n_general"] = n_general

        n_atoms = cursor.count()
        cursor.skip(3)
        atom_rows = [self._read_entry(cursor, 0, self.ATOM_NAMES, symbol=True) for _ in range(n_atoms)]
        meta["n_atoms"] = n_atoms

        n_bonds = cursor.count()
        cursor.skip(1)
        bond_rows = [self._read_entry(cursor, 2, self.BOND_NAMES) for _ in range(n_bonds)]
        meta["n_bonds"] = n_bonds

        n_off = cursor.count()
        off_rows = [self._read_entry(cursor, 2, self.OFF_DIAGONAL_NAMES) for _ in range(n_off)]
        meta["n_off_diagonal"] = n_off

        n_angles = cursor.count()
        angle_rows = [self._read_entry(cursor, 3, self.ANGLE_NAMES) for _ in range(n_angles)]
        meta["n_angles"] = n_angles

        # torsion and hydrogen-bond blocks are not evaluated
        for key in ("n_torsions", "n_hbonds"):
            if cursor.exhausted():
                meta[key] = 0
                continue
            n = cursor.count()
            cursor.skip(n)
            meta[key] = n

        atom_df = pd.DataFrame.from_records(atom_rows)
        atom_df.index = pd.RangeIndex(1, len(atom_df) + 1, name="atom_index")

        self._sections = {
            self.SECTION_GENERAL: general,
            self.SECTION_ATOM: atom_df,
            self.SECTION_BOND: _index_table(bond_rows, ["i", "j"] + self.BOND_NAMES, "bond_index"),
            self.SECTION_OFF_DIAGONAL: _index_table(off_rows, ["i", "j"] + self.OFF_DIAGONAL_NAMES, "offdiag_index"),
            self.SECTION_ANGLE: _index_table(angle_rows, ["i", "j", "k"] + self.ANGLE_NAMES, "angle_index"),
        }
        logger.debug(
            "Parsed %s: %d atom types, %d bonds, %d off-diagonal, %d angles",
            self.path, n_atoms, n_bonds, n_off, n_angles,
        )
        return pd.DataFrame(), meta

    def _parse_general(self, lines: List[str], start: int, n_params: int) -> Tuple[pd.DataFrame, int]:
        expected = len(self.GENERAL_NAMES)
        if n_params != expected:
            logger.warning("Expected %d general parameters, header says %d.", expected, n_params)

        records: List[Dict[str, Any]] = []
        for idx in range(n_params):
            if start + idx >= len(lines):
                raise ParseError(f"{self.path}: general section ends after {idx} of {n_params} lines")
            raw = lines[start + idx]
            left, _, comment = raw.partition("!")
            tokens = left.split()
            value = _to_float(tokens[0], self.path, start + idx) if tokens else float("nan")
            name = self.GENERAL_NAMES[idx] if idx < expected else f"general_{idx + 1}"
            records.append({"name": name, "value": value, "raw_comment": comment.strip()})

        df = pd.DataFrame.from_records(records).set_index("name")
        return df, start + n_params

    def _read_entry(
        self, cursor: "_Cursor", n_index: int, names: Sequence[str], *, symbol: bool = False,
    ) -> Dict[str, Any]:
        """Read one (possibly multi-line) entry of ``len(names)`` numbers."""
        record: Dict[str, Any] = {}
        tokens = cursor.tokens()
        first_line = cursor.pos - 1
        if symbol:
            record["symbol"] = tokens.pop(0)
        labels = ["i", "j", "k"][:n_index]
        for label in labels:
            if not tokens:
                raise ParseError(f"{self.path}:{first_line + 1}: missing atom index {label!r}")
            try:
                record[label] = int(tokens.pop(0))
            except ValueError as e:
                raise ParseError(f"{self.path}:{first_line + 1}: atom index must be an integer") from e

        values = [_to_float(t, self.path, first_line) for t in tokens]
        while len(values) < len(names):
            values.extend(_to_float(t, self.path, cursor.pos - 1) for t in cursor.tokens())
        record.update(zip(names, values[: len(names)]))
        return record


class _Cursor:
    """Line cursor that skips blank lines and strips ``!`` comments."""

    def __init__(self, lines: List[str], pos: int, path: Path):
        self.lines = lines
        self.pos = pos
        self.path = path

    def exhausted(self) -> bool:
        while self.pos < len(self.lines) and not self.lines[self.pos].split("!", 1)[0].strip():
            self.pos += 1
        return self.pos >= len(self.lines)

    def tokens(self) -> List[str]:
        if self.exhausted():
            raise ParseError(f"{self.path}: unexpected end of file")
        toks = self.lines[self.pos].split("!", 1)[0].split()
        self.pos += 1
        return toks

    def count(self) -> int:
        toks = self.tokens()
        try:
            return int(toks[0])
        except ValueError as e:
            raise ParseError(f"{self.path}:{self.pos}: expected a section count, got {toks[0]!r}") from e

    def skip(self, n: int) -> None:
        self.pos = min(self.pos + n, len(self.lines))


def _to_float(token: str, path: Path, line_idx: int) -> float:
    try:
        return float(token)
    except ValueError as e:
        raise ParseError(f"{path}:{line_idx + 1}: cannot read {token!r} as a number") from e


def _index_table(rows: List[Dict[str, Any]], columns: List[str], index_name: str) -> pd.DataFrame:
    df = pd.DataFrame.from_records(rows, columns=columns)
    df.index = pd.RangeIndex(1, len(df) + 1, name=index_name)
    return df
