"""
Engine configuration for ReaxPot.

Defaults live in the packaged file ``reaxpot/data/defaults.yaml`` and are
loaded on demand. A user YAML file with the same ``engine:`` layout can be
overlaid with :func:`load_config`.
"""


from __future__ import annotations

from dataclasses import dataclass, fields, replace
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
import importlib.resources as ir

from reaxpot.utils.constants import const


@dataclass(frozen=True)
class EngineConfig:
    """Numeric guards and constants used by the bond-order and energy engines."""
    bo_snap: float = 1e-10
    thb_cutoff: float = 0.001
    coulomb_constant: float = const["coulomb_kcalmol_A_e2"]
    overcoord_guard: float = 1e-8
    dfvl_mass_threshold: float = 21.0
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def _load_packaged_defaults() -> Dict[str, Any]:
    """
    Read the ``engine`` block of the packaged defaults file.

    Raises
    ------
    FileNotFoundError
        If ``defaults.yaml`` is not shipped with the package.
    """
    pkg = "reaxpot"
    rel = "data/defaults.yaml"
    try:
        with ir.files(pkg).joinpath(rel).open("r", encoding="utf-8") as f:
            doc = yaml.safe_load(f) or {}
    except FileNotFoundError as e:
        raise FileNotFoundError(
            f"Could not find packaged defaults at '{pkg}/{rel}'. "
            "Make sure defaults.yaml is included as package data."
        ) from e
    return dict(doc.get("engine") or {})


def _apply(base: EngineConfig, values: Dict[str, Any]) -> EngineConfig:
    known = {f.name: f for f in fields(EngineConfig)}
    unknown = sorted(set(values) - set(known))
    if unknown:
        raise KeyError(f"Unknown engine setting(s): {', '.join(unknown)}")
    cast = {k: (str(v) if known[k].type in ("str", str) else float(v)) for k, v in values.items()}
    return replace(base, **cast)


def default_config() -> EngineConfig:
    """Return the configuration described by the packaged ``defaults.yaml``."""
    return _apply(EngineConfig(), _load_packaged_defaults())


def load_config(path: Optional[str | Path] = None) -> EngineConfig:
    """
    Load engine settings, overlaying a user YAML file on the packaged defaults.

    Parameters
    ----------
    path : str or pathlib.Path, optional
        YAML file with an ``engine:`` mapping. When omitted, the packaged
        defaults are returned unchanged.

    Returns
    -------
    EngineConfig
        Frozen configuration object.

    Raises
    ------
    KeyError
        If the file contains a setting ``EngineConfig`` does not define.

    Examples
    --------
    >>> cfg = load_config("my_settings.yaml")
    >>> cfg.thb_cutoff
    0.001
    """
    cfg = default_config()
    if path is None:
        return cfg
    doc = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    return _apply(cfg, dict(doc.get("engine") or {}))
