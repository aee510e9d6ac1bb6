"""
Atom snapshot container for the ReaxPot engines.

``AtomSystem`` is a thin holder of per-atom arrays. The engines read it and
never mutate it; an integrator owned by the caller updates positions and
velocities between evaluations.

Units: positions in Å, masses in amu, charges in e, velocities in Å/fs.
"""


from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import yaml
import importlib.resources as ir
from scipy.spatial.distance import pdist, squareform

from reaxpot.core.parameters import ParameterRepository
from reaxpot.io.handlers.xyz_handler import XyzHandler
from reaxpot.utils.exceptions import DegenerateGeometryError

# amu·Å²/fs² → kcal/mol
_KE_CONVERSION = 2390.057361


@dataclass
class Atom:
    """One atom as seen by the caller (renderer, editor, integrator)."""
    id: int
    type: int
    position: np.ndarray
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    force: np.ndarray = field(default_factory=lambda: np.zeros(3))
    mass: float = 1.0
    radius: float = 0.0  # sigma covalent radius of the type, 0 when unknown
    charge: float = 0.0


@dataclass
class AtomSystem:
    """
    Per-atom arrays for one snapshot.

    Parameters
    ----------
    positions : (N, 3) array
        Cartesian coordinates in Å.
    types : (N,) int array
        0-based atom type indices into a :class:`ParameterRepository`.
    masses, charges : (N,) arrays, optional
        Default to ones and zeros respectively.
    velocities, forces : (N, 3) arrays, optional
        Default to zeros.
    symbols, ids : sequences, optional
        Labels carried along for reports.
    """
    positions: np.ndarray
    types: np.ndarray
    masses: Optional[np.ndarray] = None
    charges: Optional[np.ndarray] = None
    velocities: Optional[np.ndarray] = None
    forces: Optional[np.ndarray] = None
    symbols: Optional[List[str]] = None
    ids: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        self.positions = np.asarray(self.positions, dtype=float).reshape(-1, 3)
        n = self.positions.shape[0]
        self.types = np.asarray(self.types, dtype=int).reshape(-1)
        if self.types.shape[0] != n:
            raise ValueError(f"Length mismatch: positions({n}) vs types({self.types.shape[0]})")

        self.masses = _per_atom(self.masses, n, 1.0, "masses")
        self.charges = _per_atom(self.charges, n, 0.0, "charges")
        self.velocities = _per_atom_vec(self.velocities, n, "velocities")
        self.forces = _per_atom_vec(self.forces, n, "forces")
        self.ids = np.arange(n) if self.ids is None else np.asarray(self.ids, dtype=int)
        if self.symbols is not None and len(self.symbols) != n:
            raise ValueError(f"Length mismatch: positions({n}) vs symbols({len(self.symbols)})")

    def __len__(self) -> int:
        return self.positions.shape[0]

    @property
    def n_atoms(self) -> int:
        return self.positions.shape[0]

    def check_index(self, i: int) -> int:
        i = int(i)
        if not 0 <= i < self.n_atoms:
            raise IndexError(f"atom index {i} out of range for {self.n_atoms} atoms")
        return i

    def distance(self, i: int, j: int) -> float:
        """Distance between atoms ``i`` and ``j``; coincident atoms raise."""
        i, j = self.check_index(i), self.check_index(j)
        r = float(np.linalg.norm(self.positions[i] - self.positions[j]))
        if r <= 0.0:
            raise DegenerateGeometryError(f"atoms {i} and {j} coincide (r = {r})")
        return r

    def distance_matrix(self) -> np.ndarray:
        """
        Symmetric ``(N, N)`` distance matrix with a zero diagonal.

        Raises
        ------
        DegenerateGeometryError
            If any two distinct atoms coincide.
        """
        if self.n_atoms < 2:
            return np.zeros((self.n_atoms, self.n_atoms))
        condensed = pdist(self.positions)
        if np.any(condensed <= 0.0):
            k = int(np.argmin(condensed))
            i, j = _condensed_to_pair(k, self.n_atoms)
            raise DegenerateGeometryError(f"atoms {i} and {j} coincide")
        return squareform(condensed)

    def kinetic_energy(self) -> float:
        """Kinetic energy in kcal/mol (``0.5 Σ m v²``)."""
        v2 = np.einsum("ij,ij->i", self.velocities, self.velocities)
        return float(0.5 * np.sum(self.masses * v2) * _KE_CONVERSION)

    def atoms(self, params: Optional[ParameterRepository] = None) -> List[Atom]:
        """
        Per-atom view for callers that work atom by atom.

        With ``params`` each atom's ``radius`` is the ``ro_sigma`` of its type;
        without it the radius stays 0.
        """
        radii = np.zeros(self.n_atoms)
        if params is not None:
            radii = params.atom_array("ro_sigma")[self.types]
        return [
            Atom(
                id=int(self.ids[i]), type=int(self.types[i]), position=self.positions[i].copy(),
                velocity=self.velocities[i].copy(), force=self.forces[i].copy(),
                mass=float(self.masses[i]), radius=float(radii[i]), charge=float(self.charges[i]),
            )
            for i in range(self.n_atoms)
        ]

    # ---------------- construction -------------------------------
    @classmethod
    def from_atoms(cls, atoms: Sequence[Atom], symbols: Optional[List[str]] = None) -> "AtomSystem":
        return cls(
            positions=np.array([a.position for a in atoms], dtype=float).reshape(-1, 3),
            types=np.array([a.type for a in atoms], dtype=int),
            masses=np.array([a.mass for a in atoms], dtype=float),
            charges=np.array([a.charge for a in atoms], dtype=float),
            velocities=np.array([a.velocity for a in atoms], dtype=float).reshape(-1, 3),
            forces=np.array([a.force for a in atoms], dtype=float).reshape(-1, 3),
            ids=np.array([a.id for a in atoms], dtype=int),
            symbols=symbols,
        )

    @classmethod
    def from_symbols(
        cls,
        symbols: Sequence[str],
        positions: np.ndarray,
        params: ParameterRepository,
        *,
        charges: Optional[Sequence[float]] = None,
    ) -> "AtomSystem":
        """Map element symbols onto the repository's type indices (masses from the ffield)."""
        types = np.array([params.type_index(s) for s in symbols], dtype=int)
        masses = np.array([params.atom(t).mass for t in types], dtype=float)
        return cls(
            positions=positions, types=types, masses=masses,
            charges=None if charges is None else np.asarray(charges, dtype=float),
            symbols=list(symbols),
        )

    @classmethod
    def from_xyz(cls, handler: XyzHandler, params: ParameterRepository, **kwargs) -> "AtomSystem":
        """
        Build a snapshot from a parsed ``.xyz`` file.

        Examples
        --------
        >>> system = AtomSystem.from_xyz(XyzHandler("ozone.xyz"), params)
        """
        return cls.from_symbols(handler.symbols(), handler.positions(), params, **kwargs)

    @classmethod
    def from_preset(cls, name: str, params: ParameterRepository, **kwargs) -> "AtomSystem":
        """Build one of the packaged molecules (see :func:`preset_names`)."""
        presets = _load_presets()
        key = name.strip().lower().replace("-", "_").replace(" ", "_")
        if key not in presets:
            raise KeyError(f"Unknown preset {name!r}. Valid options: {sorted(presets)}")
        rows = presets[key]
        symbols = [str(r["symbol"]) for r in rows]
        positions = np.array([[r["x"], r["y"], r["z"]] for r in rows], dtype=float)
        return cls.from_symbols(symbols, positions, params, **kwargs)


def preset_names() -> List[str]:
    return sorted(_load_presets())


@lru_cache(maxsize=1)
def _load_presets() -> Dict[str, List[Dict[str, Any]]]:
    with ir.files("reaxpot").joinpath("data/presets.yaml").open("r", encoding="utf-8") as f:
        doc = yaml.safe_load(f) or {}
    return {str(k): list(v) for k, v in (doc.get("presets") or {}).items()}


def _per_atom(values, n: int, fill: float, name: str) -> np.ndarray:
    if values is None:
        return np.full(n, fill, dtype=float)
    arr = np.asarray(values, dtype=float).reshape(-1)
    if arr.shape[0] != n:
        raise ValueError(f"Length mismatch: positions({n}) vs {name}({arr.shape[0]})")
    return arr


def _per_atom_vec(values, n: int, name: str) -> np.ndarray:
    if values is None:
        return np.zeros((n, 3), dtype=float)
    arr = np.asarray(values, dtype=float)
    if arr.shape != (n, 3):
        raise ValueError(f"{name} must have shape ({n}, 3), got {arr.shape}")
    return arr


def _condensed_to_pair(k: int, n: int) -> tuple[int, int]:
    i = 0
    while k >= n - i - 1:
        k -= n - i - 1
        i += 1
    return i, i + 1 + k
