"""
Tests for engine configuration loading (reaxpot.utils.config).
"""

from __future__ import annotations

from pathlib import Path

import pytest

from reaxpot.utils.config import EngineConfig, default_config, load_config


def test_packaged_defaults_match_dataclass():
    assert default_config() == EngineConfig()
    assert load_config() == default_config()


def test_user_file_overlays_defaults(tmp_path: Path):
    p = tmp_path / "settings.yaml"
    p.write_text("engine:\n  bo_snap: 1.0e-8\n  log_level: DEBUG\n", encoding="utf-8")
    cfg = load_config(p)
    assert cfg.bo_snap == pytest.approx(1e-8)
    assert cfg.log_level == "DEBUG"
    assert cfg.thb_cutoff == pytest.approx(0.001)


def test_empty_user_file_keeps_defaults(tmp_path: Path):
    p = tmp_path / "empty.yaml"
    p.write_text("", encoding="utf-8")
    assert load_config(p) == default_config()


def test_unknown_setting_raises(tmp_path: Path):
    p = tmp_path / "bad.yaml"
    p.write_text("engine:\n  not_a_setting: 1\n", encoding="utf-8")
    with pytest.raises(KeyError, match="not_a_setting"):
        load_config(p)


def test_config_is_frozen():
    with pytest.raises(Exception):
        EngineConfig().bo_snap = 0.0  # type: ignore[misc]


def test_lone_pair_sharpness_is_not_a_setting(tmp_path: Path):
    p = tmp_path / "sharp.yaml"
    p.write_text("engine:\n  lone_pair_sharpness: 1.0\n", encoding="utf-8")
    with pytest.raises(KeyError, match="lone_pair_sharpness"):
        load_config(p)
