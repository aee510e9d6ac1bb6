"""
Atom snapshot (``.xyz``) handler.

Reads a single-frame XYZ file, the simplest way to hand a geometry to the
ReaxPot engines from the command line:

    3
    ozone, Angstrom
    O 0.000 0.000 0.000
    O 1.200 0.000 0.000
    O 2.000 0.800 0.000
"""


from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, List, Tuple

import numpy as np
import pandas as pd

from reaxpot.io.base_handler import BaseHandler
from reaxpot.utils.exceptions import ParseError


class XyzHandler(BaseHandler):
    """
    Parser for single-frame XYZ snapshots.

    Parsed Data
    -----------
    Main table
        One row per atom, returned by ``dataframe()``, with columns
        ``["symbol", "x", "y", "z"]``. Extra per-atom columns are ignored.

    Metadata
        ``n_atoms`` and the free-text ``comment`` line.
    """

    def __init__(self, file_path: str | Path = "snapshot.xyz"):
        super().__init__(file_path)

    def _parse(self) -> Tuple[pd.DataFrame, Dict[str, Any]]:
        lines = self.path.read_text().splitlines()
        if not lines or not lines[0].strip():
            raise ParseError(f"{self.path}: missing atom count on the first line")
        try:
            n_atoms = int(lines[0].split()[0])
        except ValueError as e:
            raise ParseError(f"{self.path}: first line must start with the atom count") from e

        comment = lines[1].strip() if len(lines) > 1 else ""
        rows: List[list] = []
        for lineno, line in enumerate(lines[2:], start=3):
            vals = line.split()
            if not vals:
                continue
            if len(vals) < 4:
                raise ParseError(f"{self.path}:{lineno}: expected 'symbol x y z'")
            try:
                rows.append([vals[0]] + [float(v) for v in vals[1:4]])
            except ValueError as e:
                raise ParseError(f"{self.path}:{lineno}: non-numeric coordinate") from e
            if len(rows) == n_atoms:
                break

        if len(rows) != n_atoms:
            raise ParseError(f"{self.path}: header announces {n_atoms} atoms, found {len(rows)}")

        df = pd.DataFrame(rows, columns=["symbol", "x", "y", "z"])
        return df, {"n_atoms": n_atoms, "comment": comment}

    def positions(self) -> np.ndarray:
        """Coordinates as an ``(N, 3)`` float array in Å."""
        return self.dataframe()[["x", "y", "z"]].to_numpy(dtype=float)

    def symbols(self) -> List[str]:
        return self.dataframe()["symbol"].astype(str).tolist()
