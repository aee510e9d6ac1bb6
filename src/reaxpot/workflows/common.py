"""Input options shared by the ReaxPot workflows (ffield, snapshot, config)."""


from __future__ import annotations
import argparse
from typing import List, Optional, Tuple

import numpy as np

from reaxpot.core.atom_system import AtomSystem, preset_names
from reaxpot.core.parameters import ParameterRepository
from reaxpot.io.handlers.ffield_handler import FFieldHandler
from reaxpot.io.handlers.xyz_handler import XyzHandler
from reaxpot.utils.config import EngineConfig, load_config
from reaxpot.utils.log import get_logger, set_level

logger = get_logger(__name__)


def add_input_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--ffield", default="ffield", help="Path to the ReaxFF ffield file")
    src = p.add_mutually_exclusive_group(required=True)
    src.add_argument("--xyz", default=None, help="Path to a single-frame .xyz snapshot")
    src.add_argument("--preset", default=None, choices=preset_names(), help="Packaged molecule")
    p.add_argument("--charges", default=None, help="Per-atom charges in e, e.g. '-0.4,0.2,0.2'")
    p.add_argument("--config", default=None, help="YAML file overriding engine settings")


def parse_charges(s: Optional[str], n_atoms: int) -> Optional[List[float]]:
    if not s:
        return None
    values = [float(v) for v in s.split(",") if v.strip()]
    if len(values) != n_atoms:
        raise ValueError(f"--charges lists {len(values)} values for {n_atoms} atoms")
    return values


def load_inputs(args: argparse.Namespace) -> Tuple[AtomSystem, ParameterRepository, EngineConfig]:
    """Build the snapshot, parameter tables and engine settings named on the command line."""
    cfg = load_config(args.config)
    set_level(getattr(args, "log_level", None) or cfg.log_level)
    params = ParameterRepository.from_ffield(FFieldHandler(args.ffield))
    if args.xyz:
        system = AtomSystem.from_xyz(XyzHandler(args.xyz), params)
    else:
        system = AtomSystem.from_preset(args.preset, params)

    charges = parse_charges(getattr(args, "charges", None), system.n_atoms)
    if charges is not None:
        system.charges = np.asarray(charges, dtype=float)
    logger.info(
        "Loaded %d atoms (%s) with %d atom types from %s",
        system.n_atoms, args.xyz or args.preset, params.n_types, args.ffield,
    )
    return system, params, cfg
